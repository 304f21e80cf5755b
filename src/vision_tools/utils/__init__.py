"""
vision_tools.utils
------------------
Shared helpers: image/video I/O with explicit errors, keyboard codes for
the highgui loops, the delimited-text reader and matplotlib montages.
"""
