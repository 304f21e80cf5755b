"""
synthetic.py — deterministic test scenes for the vision tools (uint8)

WHAT THIS MODULE PROVIDES
-------------------------
Small generators standing in for the photographs the tools are normally run on:
  • textured_scene      — random rectangles/circles/lines; plenty of ORB corners
  • stacked_plate       — a glass-plate negative: three shifted exposures of the
                          same scene stacked vertically (blue, green, red)
  • green_screen_frame  — coloured foreground shapes on a green backdrop
  • blemished_scene     — smooth skin-tone gradient with dark spots
  • document_photo      — white page with text lines, perspective-warped onto
                          a dark desk

All generators take a `seed` and return identical output for identical
arguments, so tests can assert on exact geometry.
"""

from __future__ import annotations
from typing import Sequence, Tuple
import numpy as np
import cv2


# -----------------------------------------------------------------------------
# Textures
# -----------------------------------------------------------------------------
def textured_scene(height: int = 300, width: int = 300, seed: int = 0) -> np.ndarray:
    """
    Grayscale clutter of filled rectangles, circles and lines.

    Returns
    -------
    scene : (height, width) uint8
    """
    rng = np.random.default_rng(seed)
    img = np.full((height, width), 128, dtype=np.uint8)

    n_shapes = max(20, (height * width) // 1500)
    for _ in range(n_shapes):
        kind = rng.integers(0, 3)
        color = int(rng.integers(0, 256))
        x1, y1 = int(rng.integers(0, width)), int(rng.integers(0, height))
        if kind == 0:
            x2 = int(np.clip(x1 + rng.integers(8, 40), 0, width - 1))
            y2 = int(np.clip(y1 + rng.integers(8, 40), 0, height - 1))
            cv2.rectangle(img, (x1, y1), (x2, y2), color, -1)
        elif kind == 1:
            cv2.circle(img, (x1, y1), int(rng.integers(4, 20)), color, -1)
        else:
            x2, y2 = int(rng.integers(0, width)), int(rng.integers(0, height))
            cv2.line(img, (x1, y1), (x2, y2), color, int(rng.integers(1, 4)))
    return img


def stacked_plate(
    height: int = 300,
    width: int = 300,
    shifts: Sequence[Tuple[int, int]] = ((6, -4), (0, 0), (-5, 7)),
    seed: int = 0,
) -> np.ndarray:
    """
    Three exposures of one scene, stacked top to bottom as blue, green, red.

    Parameters
    ----------
    shifts : three (dx, dy) offsets, in pixels, of each plate's window into the
        common scene. A point at (x, y) in a plate shows the same scene point as
        (x + dx - dx_g, y + dy - dy_g) in the green plate, so the plate→green
        homography is a pure translation by (dx - dx_g, dy - dy_g).

    Returns
    -------
    plate : (3*height, width) uint8
    """
    if len(shifts) != 3:
        raise ValueError("stacked_plate needs exactly three (dx, dy) shifts")
    margin = int(max(max(abs(dx), abs(dy)) for dx, dy in shifts)) + 1
    base = textured_scene(height + 2 * margin, width + 2 * margin, seed=seed)

    plates = []
    for dx, dy in shifts:
        y0, x0 = margin + dy, margin + dx
        plates.append(base[y0:y0 + height, x0:x0 + width])
    return np.vstack(plates)


# -----------------------------------------------------------------------------
# Chroma key
# -----------------------------------------------------------------------------
def green_screen_frame(
    height: int = 240,
    width: int = 320,
    seed: int = 0,
    noise: float = 4.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Foreground shapes in front of a slightly noisy green screen.

    Returns
    -------
    frame : (H, W, 3) uint8 BGR
    foreground : (H, W) bool, True where a shape was drawn
    """
    rng = np.random.default_rng(seed)
    screen = np.array([40, 200, 50], dtype=np.float32)  # BGR
    frame = np.tile(screen, (height, width, 1))
    frame += rng.normal(0.0, noise, size=frame.shape)
    frame = np.clip(frame, 0, 255).astype(np.uint8)

    fg = np.zeros((height, width), dtype=np.uint8)
    cx, cy = width // 2, height // 2
    cv2.circle(frame, (cx - width // 6, cy), height // 5, (30, 30, 200), -1)
    cv2.circle(fg, (cx - width // 6, cy), height // 5, 255, -1)
    cv2.rectangle(frame, (cx + width // 12, cy - height // 4), (cx + width // 3, cy + height // 4),
                  (180, 90, 40), -1)
    cv2.rectangle(fg, (cx + width // 12, cy - height // 4), (cx + width // 3, cy + height // 4),
                  255, -1)
    return frame, fg > 0


# -----------------------------------------------------------------------------
# Blemish removal
# -----------------------------------------------------------------------------
def blemished_scene(
    size: int = 200,
    spots: Sequence[Tuple[int, int]] = ((100, 100),),
    spot_radius: int = 6,
    seed: int = 0,
) -> np.ndarray:
    """
    Smooth skin-tone gradient with dark circular spots.

    Returns
    -------
    image : (size, size, 3) uint8 BGR
    """
    rng = np.random.default_rng(seed)
    ramp = np.linspace(0.0, 1.0, size, dtype=np.float32)
    skin = np.array([140, 170, 220], dtype=np.float32)      # BGR
    img = skin[None, None, :] * (0.85 + 0.15 * ramp[None, :, None])
    img = np.repeat(img, size, axis=0)
    img += rng.normal(0.0, 1.0, size=img.shape)
    img = np.clip(img, 0, 255).astype(np.uint8)

    for x, y in spots:
        cv2.circle(img, (int(x), int(y)), int(spot_radius), (60, 70, 90), -1)
    return img


# -----------------------------------------------------------------------------
# Document scanner
# -----------------------------------------------------------------------------
def document_photo(
    height: int = 480,
    width: int = 640,
    corners: Sequence[Tuple[float, float]] | None = None,
    page_size: Tuple[int, int] = (300, 400),
    seed: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    A white page with text lines photographed at an angle on a dark desk.

    Parameters
    ----------
    corners : four (x, y) points in tl, tr, br, bl order where the page lands;
        a mild perspective default is used when None.
    page_size : (page_w, page_h) of the flat page before warping.

    Returns
    -------
    photo : (height, width, 3) uint8 BGR
    corners : (4, 2) float32, tl, tr, br, bl
    """
    rng = np.random.default_rng(seed)
    if corners is None:
        corners = [(170, 60), (470, 80), (500, 420), (140, 400)]
    dst = np.asarray(corners, dtype=np.float32)

    page_w, page_h = page_size
    page = np.full((page_h, page_w, 3), 245, dtype=np.uint8)
    for y in range(40, page_h - 30, 22):
        x_end = int(page_w - 30 - rng.integers(0, page_w // 3))
        cv2.line(page, (30, y), (x_end, y), (20, 20, 20), 3)

    src = np.array([[0, 0], [page_w - 1, 0], [page_w - 1, page_h - 1], [0, page_h - 1]],
                   dtype=np.float32)
    M = cv2.getPerspectiveTransform(src, dst)
    warped = cv2.warpPerspective(page, M, (width, height))
    mask = cv2.warpPerspective(np.full((page_h, page_w), 255, np.uint8), M, (width, height))

    desk = np.clip(rng.normal(45.0, 6.0, size=(height, width, 3)), 0, 255).astype(np.uint8)
    photo = np.where(mask[..., None] > 0, warped, desk)
    return photo, dst
