"""
image_crop.py — crop an image with a mouse-drawn bounding box

HOW IT WORKS
------------
  1) Load the image (colour or grayscale, per -type).
  2) Press the left button at one corner, drag, release at the other corner.
     While dragging, the box is drawn in green on a copy of the image.
  3) The selected region is written to the output file.

Escape cancels. A click without a drag (zero-area box) is ignored and the
selection starts over.

RUN
---
  image-crop -i photo.jpg -o face.jpg
  image-crop -i photo.jpg -o face.png -type 0
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple
import numpy as np
import cv2

from vision_tools.utils.image_io import KEY_ESC, is_key, load_image, save_image

WINDOW_NAME = "Window"
BOX_COLOR = (0, 255, 0)
BOX_THICKNESS = 2

Point = Tuple[int, int]
Box = Tuple[int, int, int, int]     # x, y, w, h


# -----------------------------------------------------------------------------
# Geometry
# -----------------------------------------------------------------------------
def bounding_box(start: Point, end: Point, shape: Optional[Tuple[int, ...]] = None) -> Box:
    """
    Box spanned by two opposite corners, in any drag direction.

    If `shape` (an image .shape) is given, the box is clipped to the image so
    a drag that leaves the window still yields a valid region.
    """
    x1, y1 = start
    x2, y2 = end
    if shape is not None:
        h, w = shape[:2]
        x1, x2 = int(np.clip(x1, 0, w)), int(np.clip(x2, 0, w))
        y1, y2 = int(np.clip(y1, 0, h)), int(np.clip(y2, 0, h))
    return min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1)


def crop_image(image: np.ndarray, box: Box) -> np.ndarray:
    x, y, w, h = box
    if w <= 0 or h <= 0:
        raise ValueError(f"Cannot crop an empty region {box}")
    return image[y:y + h, x:x + w].copy()


# -----------------------------------------------------------------------------
# Mouse state
# -----------------------------------------------------------------------------
class CropSelector:
    """Tracks a left-button drag and renders the rubber-band preview."""

    def __init__(self, image: np.ndarray):
        self.image = image
        self.start: Optional[Point] = None
        self.end: Optional[Point] = None
        self.dragging = False
        self.done = False

    def on_mouse(self, event, x, y, flags, param=None):
        if event == cv2.EVENT_LBUTTONDOWN:
            self.dragging = True
            self.done = False
            self.start = (x, y)
            self.end = (x, y)
        elif event == cv2.EVENT_MOUSEMOVE and self.dragging:
            self.end = (x, y)
        elif event == cv2.EVENT_LBUTTONUP and self.dragging:
            self.dragging = False
            self.end = (x, y)
            _, _, w, h = self.box()
            # click without drag
            if w == 0 or h == 0:
                self.start = self.end = None
                return
            self.done = True

    def box(self) -> Box:
        if self.start is None or self.end is None:
            return 0, 0, 0, 0
        return bounding_box(self.start, self.end, self.image.shape)

    def preview(self) -> np.ndarray:
        """The source image, with the current box drawn while dragging."""
        if not self.dragging or self.start is None:
            return self.image
        canvas = self.image.copy()
        color = 255 if canvas.ndim == 2 else BOX_COLOR
        cv2.rectangle(canvas, self.start, self.end, color, BOX_THICKNESS)
        return canvas

    def cropped(self) -> np.ndarray:
        return crop_image(self.image, self.box())


# -----------------------------------------------------------------------------
# Interactive loop
# -----------------------------------------------------------------------------
def run_crop(input_path: str | Path, output_path: str | Path, image_type: int = 1) -> Optional[np.ndarray]:
    """
    Show the image, wait for a box, write the crop. Returns the crop, or None
    if the user pressed Escape.
    """
    image = load_image(input_path, image_type)
    selector = CropSelector(image)

    cv2.namedWindow(WINDOW_NAME)
    cv2.setMouseCallback(WINDOW_NAME, selector.on_mouse)
    try:
        while not selector.done:
            cv2.imshow(WINDOW_NAME, selector.preview())
            if is_key(cv2.waitKey(20), KEY_ESC):
                print("[INFO] Crop cancelled.")
                return None
    finally:
        cv2.destroyWindow(WINDOW_NAME)

    crop = selector.cropped()
    save_image(output_path, crop)
    x, y, w, h = selector.box()
    print(f"[OK] Cropped {w}x{h} at ({x}, {y}) → {Path(output_path).resolve()}")
    return crop


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------
def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="image_crop", description="An utility to crop the image.")
    p.add_argument("-i", "--input", required=True,
                   help="path of the image to crop (mandatory)")
    p.add_argument("-o", "--output", required=True,
                   help="path of the cropped image (mandatory)")
    p.add_argument("-type", "--type", dest="image_type", type=int, default=1, choices=[1, 0, -1],
                   help="1 for color, 0 for gray, -1 unchanged (default: 1)")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    print(f"Input File Name = {args.input}")
    print(f"Output File Name = {args.output}")
    print(f"Image Type = {args.image_type}")
    try:
        run_crop(args.input, args.output, args.image_type)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
