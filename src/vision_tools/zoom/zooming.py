"""
zooming.py — trackbar-controlled zoom in / zoom out

Two trackbars drive cv2.resize:
  • "Scale"  0..100  — percentage to add (scale up) or remove (scale down)
  • "Type"   0..1    — 0: scale up, 1: scale down

    up:   factor = 1 + value/100      (1.00 .. 2.00)
    down: factor = 1 - value/100      (1.00 .. 0.00)

A factor of exactly 0 (scale down by 100%) would produce an empty image, so
it is shown at factor 1, as is factor 1 itself.

RUN
---
  zooming photo.jpg
  zooming photo.jpg -o zoomed.png       # press 's' to save the current view
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Sequence
import numpy as np
import cv2

from vision_tools.utils.image_io import (
    KEY_ESC, KEY_SAVE, default_output_path, is_key, load_image, save_image,
)

WINDOW_NAME = "Resize Image"
TRACKBAR_VALUE = "Scale"
TRACKBAR_TYPE = "Type: \n 0: Scale Up \n 1: Scale Down"
MAX_SCALE_UP = 100
MAX_TYPE = 1

SCALE_UP = 0
SCALE_DOWN = 1


def scale_factor(value: int, scale_type: int) -> float:
    """Map trackbar positions to a resize factor."""
    if scale_type == SCALE_UP:
        factor = 1.0 + value / 100.0
    else:
        factor = 1.0 - value / 100.0
    if factor <= 0.0 or factor == 1.0:
        factor = 1.0
    return factor


def scale_image(image: np.ndarray, factor: float) -> np.ndarray:
    if factor == 1.0:
        return image
    return cv2.resize(image, None, fx=factor, fy=factor, interpolation=cv2.INTER_LINEAR)


class Zoomer:
    """Holds the trackbar state and the current scaled view."""

    def __init__(self, image: np.ndarray, value: int = 0, scale_type: int = SCALE_UP):
        self.image = image
        self.value = value
        self.scale_type = scale_type
        self.scaled = image
        self.update()

    @property
    def factor(self) -> float:
        return scale_factor(self.value, self.scale_type)

    def update(self) -> np.ndarray:
        self.scaled = scale_image(self.image, self.factor)
        return self.scaled

    # trackbar callbacks
    def on_value(self, value: int):
        self.value = int(np.clip(value, 0, MAX_SCALE_UP))
        self.update()

    def on_type(self, scale_type: int):
        self.scale_type = SCALE_DOWN if scale_type else SCALE_UP
        self.update()


def run_zoom(input_path: str | Path, output_path: str | Path | None = None) -> Zoomer:
    image = load_image(input_path)
    output_path = Path(output_path) if output_path else default_output_path(input_path, "zoom")
    zoomer = Zoomer(image)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
    cv2.createTrackbar(TRACKBAR_VALUE, WINDOW_NAME, zoomer.value, MAX_SCALE_UP, zoomer.on_value)
    cv2.createTrackbar(TRACKBAR_TYPE, WINDOW_NAME, zoomer.scale_type, MAX_TYPE, zoomer.on_type)
    try:
        while True:
            cv2.imshow(WINDOW_NAME, zoomer.scaled)
            key = cv2.waitKey(20)
            if is_key(key, KEY_ESC):
                break
            if is_key(key, KEY_SAVE):
                save_image(output_path, zoomer.scaled)
                h, w = zoomer.scaled.shape[:2]
                print(f"[OK] Saved {w}x{h} (x{zoomer.factor:.2f}) → {output_path.resolve()}")
    finally:
        cv2.destroyWindow(WINDOW_NAME)
    return zoomer


def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="zooming", description="Zoom an image with trackbars.")
    p.add_argument("input", help="image file to zoom")
    p.add_argument("-o", "--output", default=None,
                   help="where 's' saves the current view (default: <name>_zoom.<ext>)")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        run_zoom(args.input, args.output)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
