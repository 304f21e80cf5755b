"""
vision_tools.scanner
--------------------
Document scanner: locate the page quadrilateral, let the user adjust its
corners, and warp it to a flat top-down view.
"""
