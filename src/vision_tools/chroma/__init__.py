"""
vision_tools.chroma
-------------------
Green-screen (chroma key) background replacement with interactive
tolerance, softness and colour-cast controls.
"""
