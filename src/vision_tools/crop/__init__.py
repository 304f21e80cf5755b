"""
vision_tools.crop
-----------------
Crop an image with a mouse-drawn bounding box.
"""
