"""
vision_tools.blemish
--------------------
Click-to-remove blemishes: the smoothest neighbouring square (lowest Sobel
gradient energy) is seamlessly cloned over the clicked spot.
"""
