"""
document_scanner.py — find a page in a photo and flatten it

WHAT THIS MODULE DOES
---------------------
  1) Detection: grayscale → Gaussian blur → Canny → dilate → external
     contours; the largest contour that simplifies (approxPolyDP, 2% of the
     perimeter) to four vertices and covers ≥ 10% of the image is the page.
     Without one, the full image rectangle is used.
  2) The four corners are ordered tl, tr, br, bl:
         tl = min(x + y), br = max(x + y), tr = min(y − x), bl = max(y − x)
  3) Output size: width = longest of the top/bottom edges, height = longest
     of the left/right edges.
  4) cv2.getPerspectiveTransform + cv2.warpPerspective give the flat page.

CONTROLS
--------
  drag a corner    adjust it (grab within GRAB_RADIUS px)
  Enter / s        warp, show and write the scan
  r                back to the detected corners
  Esc              quit

RUN
---
  document-scanner -i photo.jpg -o scan.png
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple
import numpy as np
import cv2

from vision_tools.utils.image_io import (
    KEY_ENTER, KEY_ESC, KEY_RESET, KEY_SAVE, default_output_path, is_key, load_image, save_image,
)

WINDOW_NAME = "Document Scanner"
RESULT_WINDOW = "Scanned Document"
GRAB_RADIUS = 20
MIN_AREA_FRACTION = 0.10
APPROX_EPSILON = 0.02
CORNER_COLOR = (0, 0, 255)
EDGE_COLOR = (0, 255, 0)


# -----------------------------------------------------------------------------
# Geometry
# -----------------------------------------------------------------------------
def order_corners(pts: np.ndarray) -> np.ndarray:
    """Return the four points as float32 (4, 2) in tl, tr, br, bl order."""
    pts = np.asarray(pts, dtype=np.float32).reshape(-1, 2)
    if pts.shape[0] != 4:
        raise ValueError(f"Expected 4 corner points, got {pts.shape[0]}")
    s = pts.sum(axis=1)
    d = pts[:, 1] - pts[:, 0]
    ordered = np.array([
        pts[np.argmin(s)],
        pts[np.argmin(d)],
        pts[np.argmax(s)],
        pts[np.argmax(d)],
    ], dtype=np.float32)
    if len({tuple(p) for p in ordered}) != 4:
        raise ValueError("Corner points are degenerate (two corners coincide)")
    return ordered


def image_corners(shape: Tuple[int, ...]) -> np.ndarray:
    h, w = shape[:2]
    return np.array([[0, 0], [w - 1, 0], [w - 1, h - 1], [0, h - 1]], dtype=np.float32)


def output_size(corners: np.ndarray) -> Tuple[int, int]:
    """(width, height) of the flattened page."""
    tl, tr, br, bl = np.asarray(corners, dtype=np.float32)
    width = max(np.linalg.norm(tr - tl), np.linalg.norm(br - bl))
    height = max(np.linalg.norm(bl - tl), np.linalg.norm(br - tr))
    return max(int(round(width)), 1), max(int(round(height)), 1)


# -----------------------------------------------------------------------------
# Detection & warping
# -----------------------------------------------------------------------------
def find_document(image: np.ndarray) -> Tuple[np.ndarray, bool]:
    """
    Locate the page quadrilateral.

    Returns
    -------
    corners : (4, 2) float32 in tl, tr, br, bl order
    found : False when the full-image fallback was used
    """
    gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    edges = cv2.Canny(blurred, 50, 150)
    edges = cv2.dilate(edges, np.ones((3, 3), np.uint8), iterations=1)

    contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    min_area = MIN_AREA_FRACTION * gray.shape[0] * gray.shape[1]
    for contour in sorted(contours, key=cv2.contourArea, reverse=True):
        if cv2.contourArea(contour) < min_area:
            break
        peri = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, APPROX_EPSILON * peri, True)
        if len(approx) != 4 or not cv2.isContourConvex(approx):
            continue
        try:
            return order_corners(approx), True
        except ValueError:
            continue
    return image_corners(image.shape), False


def warp_document(
    image: np.ndarray,
    corners: np.ndarray,
    size: Optional[Tuple[int, int]] = None,
) -> np.ndarray:
    """Perspective-warp the quadrilateral `corners` to a (width, height) rectangle."""
    src = order_corners(corners)
    w, h = size if size is not None else output_size(src)
    dst = np.array([[0, 0], [w - 1, 0], [w - 1, h - 1], [0, h - 1]], dtype=np.float32)
    M = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(image, M, (w, h))


# -----------------------------------------------------------------------------
# Interactive state
# -----------------------------------------------------------------------------
class DocumentScanner:
    """Detected corners, the one being dragged, and the overlay."""

    def __init__(self, image: np.ndarray):
        self.image = image
        self.detected, self.found = find_document(image)
        self.corners = self.detected.copy()
        self.active: Optional[int] = None

    def nearest_corner(self, x: int, y: int) -> Optional[int]:
        dist = np.linalg.norm(self.corners - np.array([x, y], dtype=np.float32), axis=1)
        idx = int(np.argmin(dist))
        return idx if dist[idx] <= GRAB_RADIUS else None

    def on_mouse(self, event, x, y, flags, param=None):
        h, w = self.image.shape[:2]
        x, y = int(np.clip(x, 0, w - 1)), int(np.clip(y, 0, h - 1))
        if event == cv2.EVENT_LBUTTONDOWN:
            self.active = self.nearest_corner(x, y)
        elif event == cv2.EVENT_MOUSEMOVE and self.active is not None:
            self.corners[self.active] = (x, y)
        elif event == cv2.EVENT_LBUTTONUP:
            self.active = None

    def reset(self):
        self.corners = self.detected.copy()
        self.active = None

    def overlay(self) -> np.ndarray:
        canvas = self.image.copy()
        if canvas.ndim == 2:
            canvas = cv2.cvtColor(canvas, cv2.COLOR_GRAY2BGR)
        pts = self.corners.astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(canvas, [pts], True, EDGE_COLOR, 2)
        for x, y in self.corners.astype(int):
            cv2.circle(canvas, (int(x), int(y)), 6, CORNER_COLOR, -1)
        return canvas

    def scan(self) -> np.ndarray:
        return warp_document(self.image, self.corners)


# -----------------------------------------------------------------------------
# Interactive loop
# -----------------------------------------------------------------------------
def run_scanner(input_path: str | Path, output_path: str | Path | None = None) -> Optional[np.ndarray]:
    image = load_image(input_path)
    output_path = Path(output_path) if output_path else default_output_path(input_path, "scanned")
    h, w = image.shape[:2]
    print(f"Size of Input Image = {w}x{h}")

    scanner = DocumentScanner(image)
    if not scanner.found:
        print("[WARN] No page outline found; drag the corners onto the document.")

    scanned = None
    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(WINDOW_NAME, scanner.on_mouse)
    try:
        while True:
            cv2.imshow(WINDOW_NAME, scanner.overlay())
            key = cv2.waitKey(25)
            if is_key(key, KEY_ESC):
                break
            if is_key(key, KEY_RESET):
                scanner.reset()
            elif is_key(key, KEY_ENTER) or is_key(key, KEY_SAVE):
                try:
                    scanned = scanner.scan()
                except ValueError as exc:
                    print(f"[WARN] {exc}")
                    continue
                save_image(output_path, scanned)
                sh, sw = scanned.shape[:2]
                print(f"[OK] Scanned {sw}x{sh} → {output_path.resolve()}")
                cv2.imshow(RESULT_WINDOW, scanned)
    finally:
        cv2.destroyAllWindows()
    return scanned


def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="document_scanner", description="An utility for Document Scanner.")
    p.add_argument("-i", "--input", required=True, help="photo of the document (mandatory)")
    p.add_argument("-o", "--output", default=None,
                   help="scanned image path (default: <name>_scanned.<ext>)")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    print(f"Input File Name = {args.input}")
    print(f"Output File Name = {args.output or default_output_path(args.input, 'scanned')}")
    try:
        run_scanner(args.input, args.output)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
