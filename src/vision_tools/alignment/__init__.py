"""
vision_tools.alignment
----------------------
Feature-based alignment of the three stacked plates (blue, green, red) of a
glass-plate negative: ORB features → Hamming matches → RANSAC homography →
warp onto the green plate → merge.
"""
