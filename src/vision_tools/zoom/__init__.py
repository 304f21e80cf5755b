"""
vision_tools.zoom
-----------------
Trackbar-driven zoom in / zoom out of a single image.
"""
