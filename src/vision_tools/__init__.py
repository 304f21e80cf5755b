"""
vision_tools — small interactive OpenCV utilities
================================================
A handful of standalone programs, each organized as its own subpackage:
    crop → zoom → blemish → chroma → scanner → alignment
plus shared helpers in utils (image I/O, key codes, CSV reader, plotting)
and deterministic synthetic scenes in samples.

Every program keeps its image logic in plain functions so it can be used
(and tested) without opening a window; the interactive loop is a thin
layer on top.
"""

__version__ = "0.1.0"
