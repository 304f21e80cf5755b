"""
vision_tools.samples
--------------------
Deterministic synthetic scenes (textured plates, green-screen frames,
blemished skin surrogates, photographed documents) for demos and tests.
"""
