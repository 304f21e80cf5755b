"""
blemish_remover.py — click-to-remove blemishes with seamless cloning

WHAT THIS MODULE DOES
---------------------
Left-click on a blemish:
  1) Take the (2r × 2r) square centred on the click, r = blemish_size // 2.
  2) Look at the n × n grid of equally sized squares around it (n = 3 by
     default, i.e. the 8 neighbours) and measure how "rough" each one is:
         energy = mean|∂I/∂x| + mean|∂I/∂y|      (Sobel, float32)
  3) Seamlessly clone (Poisson blending, cv2.NORMAL_CLONE) the smoothest
     neighbour over the blemish through a filled circular mask of radius r.

Right-click undoes the last removal (repeatable). 's' saves, 'r' resets to
the original image, Escape quits.

NOTES
-----
• Squares that would leave the image are skipped; so is the blemish square
  itself, which is usually the roughest candidate anyway.
• Clicks closer than r to the border are ignored: the clone region must lie
  fully inside the image.

RUN
---
  blemish-remove -i face.jpg -s 30 -o face_clean.jpg
"""

from __future__ import annotations
import argparse
import sys
from collections import deque
from pathlib import Path
from typing import Deque, Optional, Sequence, Tuple
import numpy as np
import cv2

from vision_tools.utils.image_io import (
    KEY_ESC, KEY_RESET, KEY_SAVE, default_output_path, is_key, load_image, save_image,
)

WINDOW_NAME = "Blemish Remover"
DEFAULT_BLEMISH_SIZE = 30
N_SQUARES = 3
MAX_UNDO = 50

Box = Tuple[int, int, int, int]     # x, y, w, h


# -----------------------------------------------------------------------------
# Smoothness search
# -----------------------------------------------------------------------------
def gradient_energy(patch: np.ndarray) -> float:
    """Mean absolute Sobel response in x plus in y; lower is smoother."""
    sobel_x = cv2.Sobel(patch, cv2.CV_32F, 1, 0)
    sobel_y = cv2.Sobel(patch, cv2.CV_32F, 0, 1)
    return float(np.mean(np.abs(sobel_x)) + np.mean(np.abs(sobel_y)))


def square_around(center: Tuple[int, int], size: int) -> Box:
    r = size // 2
    return center[0] - r, center[1] - r, 2 * r, 2 * r


def inside(box: Box, shape: Tuple[int, ...]) -> bool:
    x, y, w, h = box
    rows, cols = shape[:2]
    return x >= 0 and y >= 0 and x + w <= cols and y + h <= rows


def find_best_square(
    image: np.ndarray,
    center: Tuple[int, int],
    size: int = DEFAULT_BLEMISH_SIZE,
    n_squares: int = N_SQUARES,
) -> Optional[Box]:
    """
    Smoothest (2r × 2r) square in the n × n neighbourhood grid of `center`.

    The grid starts at center - n*r and steps by 2r, so for odd n it is
    centred on the blemish square. Returns None if no candidate fits.
    """
    r = size // 2
    if r <= 0:
        raise ValueError(f"Blemish size must be at least 2 (got {size})")
    side = 2 * r
    start_x = center[0] - n_squares * r
    start_y = center[1] - n_squares * r
    blemish = square_around(center, size)

    best: Optional[Box] = None
    best_energy = np.inf
    for i in range(n_squares):
        for j in range(n_squares):
            box = (start_x + i * side, start_y + j * side, side, side)
            if box == blemish or not inside(box, image.shape):
                continue
            x, y, w, h = box
            energy = gradient_energy(image[y:y + h, x:x + w])
            if energy < best_energy:
                best_energy = energy
                best = box
    return best


def circular_mask(size: int) -> np.ndarray:
    r = size // 2
    mask = np.zeros((2 * r, 2 * r), dtype=np.uint8)
    cv2.circle(mask, (r, r), r, 255, -1, cv2.LINE_8)
    return mask


# -----------------------------------------------------------------------------
# Editing state
# -----------------------------------------------------------------------------
class BlemishRemover:
    """Working image plus an undo stack of (box, original pixels), keeping the last `max_undo` edits."""

    def __init__(self, image: np.ndarray, blemish_size: int = DEFAULT_BLEMISH_SIZE, max_undo: int = MAX_UNDO):
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        if blemish_size < 2:
            raise ValueError(f"Blemish size must be at least 2 (got {blemish_size})")
        self.original = image.copy()
        self.image = image.copy()
        self.blemish_size = int(blemish_size)
        self.history: Deque[Tuple[Box, np.ndarray]] = deque(maxlen=max_undo)
        self.edits = 0

    def remove(self, x: int, y: int) -> bool:
        """Clone the smoothest neighbour over (x, y); False if nothing changed."""
        box = square_around((x, y), self.blemish_size)
        if not inside(box, self.image.shape):
            return False
        best = find_best_square(self.image, (x, y), self.blemish_size)
        if best is None:
            return False

        bx, by, bw, bh = box
        saved = self.image[by:by + bh, bx:bx + bw].copy()
        sx, sy, sw, sh = best
        smooth = self.image[sy:sy + sh, sx:sx + sw].copy()
        mask = circular_mask(self.blemish_size)

        # clone center is the center of the mask's bounding box
        center = (bx + bw // 2, by + bh // 2)
        self.image = cv2.seamlessClone(smooth, self.image, mask, center, cv2.NORMAL_CLONE)
        self.history.append((box, saved))
        self.edits += 1
        return True

    def undo(self) -> bool:
        if not self.history:
            return False
        (x, y, w, h), saved = self.history.pop()
        self.image[y:y + h, x:x + w] = saved
        self.edits -= 1
        return True

    def reset(self):
        self.image = self.original.copy()
        self.history.clear()
        self.edits = 0

    def on_mouse(self, event, x, y, flags, param=None):
        if event == cv2.EVENT_LBUTTONDOWN:
            self.remove(x, y)
        elif event == cv2.EVENT_RBUTTONDOWN:
            self.undo()


# -----------------------------------------------------------------------------
# Interactive loop
# -----------------------------------------------------------------------------
def run_blemish_removal(
    input_path: str | Path,
    output_path: str | Path | None = None,
    blemish_size: int = DEFAULT_BLEMISH_SIZE,
) -> BlemishRemover:
    image = load_image(input_path)
    output_path = Path(output_path) if output_path else default_output_path(input_path, "clean")
    remover = BlemishRemover(image, blemish_size)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(WINDOW_NAME, remover.on_mouse)
    try:
        while True:
            cv2.imshow(WINDOW_NAME, remover.image)
            key = cv2.waitKey(20)
            if is_key(key, KEY_ESC):
                break
            if is_key(key, KEY_SAVE):
                save_image(output_path, remover.image)
                print(f"[OK] {remover.edits} blemish(es) removed → {output_path.resolve()}")
            elif is_key(key, KEY_RESET):
                remover.reset()
    finally:
        cv2.destroyWindow(WINDOW_NAME)
    return remover


def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="blemish_remove", description="An utility to remove blemishes.")
    p.add_argument("-i", "--input", required=True,
                   help="image where blemishes need to be removed (mandatory)")
    p.add_argument("-s", "--size", dest="blemish_size", type=int, default=DEFAULT_BLEMISH_SIZE,
                   help=f"blemish size in pixels (default: {DEFAULT_BLEMISH_SIZE})")
    p.add_argument("-o", "--output", default=None,
                   help="where 's' writes the result (default: <name>_clean.<ext>)")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    print(f"Input File Name = {args.input}")
    print(f"Blemish Size = {args.blemish_size}")
    print(f"Output File Name = {args.output or default_output_path(args.input, 'clean')}")
    try:
        run_blemish_removal(args.input, args.output, args.blemish_size)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
