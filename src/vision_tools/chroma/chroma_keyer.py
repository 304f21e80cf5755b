"""
chroma_keyer.py — green-screen background replacement

WHAT THIS MODULE DOES
---------------------
  1) Click on the green screen in the video window: the HSV pixels of a small
     patch around the click define the key colour as per-channel min/max.
  2) Tolerance widens that range by a percentage of each channel's full scale
     (H: 0..180, S/V: 0..255); cv2.inRange gives the background mask.
  3) Softness feathers the mask with a Gaussian so edges blend instead of
     cutting hard.
  4) Colour cast desaturates foreground pixels whose hue is close to the key
     hue (green spill on hair and edges).
  5) The frame and the background image are blended with the mask as alpha:
         out = frame · (1 − α) + background · α

CONTROLS
--------
  left click   sample key colour          right click   clear key (raw video)
  p            pause / resume             Esc           quit
  Trackbars    Tolerance (0..100), Softness (0..20), Color cast (0..100)

NOTES
-----
• Hue wrap-around is not handled by the range: a key colour near hue 0/180
  (red screens) only matches on one side. Green and blue screens are fine.

RUN
---
  chroma-keying -i greenscreen.mp4 -b beach.jpg
  chroma-keying -i 0 -b beach.jpg -o keyed.mp4        # camera 0, record
"""

from __future__ import annotations
import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple
import numpy as np
import cv2

from vision_tools.utils.image_io import KEY_ESC, KEY_PAUSE, is_key, load_image, open_video

WINDOW_NAME = "Chroma Keying"
CHANNEL_SCALE = np.array([180.0, 255.0, 255.0], dtype=np.float64)   # OpenCV HSV ranges
HUE_MAX = 179
CAST_HUE_BAND = 20.0        # hue units (of 180) treated as "near" the key

MAX_TOLERANCE = 100
MAX_SOFTNESS = 20
MAX_CAST = 100
FOURCC_BY_EXT = {".avi": "MJPG"}    # anything else is written as mp4v


# -----------------------------------------------------------------------------
# Parameters
# -----------------------------------------------------------------------------
@dataclass
class ChromaKeyParams:
    """
    tolerance : widening of the sampled range, % of channel full scale
    softness : Gaussian feather radius of the mask (kernel 2*softness+1)
    cast : strength of key-colour spill removal on the foreground, %
    patch_radius : half-size of the square sampled on click
    """
    tolerance: int = 15
    softness: int = 3
    cast: int = 30
    patch_radius: int = 5


# -----------------------------------------------------------------------------
# Keying primitives
# -----------------------------------------------------------------------------
def sample_key_color(frame_bgr: np.ndarray, point: Tuple[int, int], radius: int = 5) -> np.ndarray:
    """HSV pixels of the (2*radius+1)² patch around `point`, clipped to the frame."""
    h, w = frame_bgr.shape[:2]
    x, y = int(point[0]), int(point[1])
    if not (0 <= x < w and 0 <= y < h):
        raise ValueError(f"Sample point {point} is outside the {w}x{h} frame")
    x0, x1 = max(x - radius, 0), min(x + radius + 1, w)
    y0, y1 = max(y - radius, 0), min(y + radius + 1, h)
    patch = frame_bgr[y0:y1, x0:x1]
    return cv2.cvtColor(patch, cv2.COLOR_BGR2HSV).reshape(-1, 3)


def key_range(patch_hsv: np.ndarray, tolerance: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-channel [min, max] of the sampled patch, widened by `tolerance` % of
    each channel's full scale.

    Returns
    -------
    lower, upper : uint8 arrays of shape (3,)
    """
    pixels = np.asarray(patch_hsv, dtype=np.float64).reshape(-1, 3)
    if pixels.size == 0:
        raise ValueError("Cannot build a key range from an empty patch")
    margin = np.round(CHANNEL_SCALE * float(tolerance) / 100.0, 6)
    lower = pixels.min(axis=0) - margin
    upper = pixels.max(axis=0) + margin
    top = np.array([HUE_MAX, 255, 255], dtype=np.float64)
    lower = np.clip(np.floor(lower), 0, top).astype(np.uint8)
    upper = np.clip(np.ceil(upper), 0, top).astype(np.uint8)
    return lower, upper


def key_mask(frame_bgr: np.ndarray, lower: np.ndarray, upper: np.ndarray, softness: int = 0) -> np.ndarray:
    """
    Background weight α in [0, 1] (float32, H×W): 1 where the key colour is.
    """
    hsv = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2HSV)
    mask = cv2.inRange(hsv, lower, upper)
    alpha = mask.astype(np.float32) / 255.0
    if softness > 0:
        k = 2 * int(softness) + 1
        alpha = cv2.GaussianBlur(alpha, (k, k), 0)
    return alpha


def reduce_color_cast(frame_bgr: np.ndarray, alpha: np.ndarray, key_hue: float, amount: float) -> np.ndarray:
    """
    Desaturate foreground pixels whose hue is within CAST_HUE_BAND of the key.

    The reduction scales with `amount` (%), with closeness in hue, and with
    how much foreground the pixel is (1 − α).
    """
    if amount <= 0:
        return frame_bgr
    hsv = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2HSV).astype(np.float32)
    d = np.abs(hsv[..., 0] - float(key_hue))
    d = np.minimum(d, 180.0 - d)
    closeness = np.clip(1.0 - d / CAST_HUE_BAND, 0.0, 1.0)
    weight = closeness * (1.0 - alpha) * (float(amount) / 100.0)
    hsv[..., 1] *= (1.0 - weight)
    hsv = np.clip(hsv, 0, 255).astype(np.uint8)
    # untouched pixels skip the HSV round trip
    return np.where(weight[..., None] > 0, cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR), frame_bgr)


def fit_background(background: np.ndarray, shape: Tuple[int, ...]) -> np.ndarray:
    h, w = shape[:2]
    if background.ndim == 2:
        background = cv2.cvtColor(background, cv2.COLOR_GRAY2BGR)
    if background.shape[:2] != (h, w):
        background = cv2.resize(background, (w, h), interpolation=cv2.INTER_AREA)
    return background


def composite(frame_bgr: np.ndarray, background_bgr: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """frame · (1 − α) + background · α, background resized to the frame."""
    bg = fit_background(background_bgr, frame_bgr.shape).astype(np.float32)
    a = alpha[..., None]
    out = frame_bgr.astype(np.float32) * (1.0 - a) + bg * a
    return np.clip(out + 0.5, 0, 255).astype(np.uint8)


# -----------------------------------------------------------------------------
# Interactive state
# -----------------------------------------------------------------------------
class ChromaKeyer:
    """Current key sample, slider values and the frame being shown."""

    def __init__(self, background: np.ndarray, params: ChromaKeyParams | None = None):
        self.background = background
        self.params = params or ChromaKeyParams()
        self.frame: Optional[np.ndarray] = None
        self.patch: Optional[np.ndarray] = None
        self.lower: Optional[np.ndarray] = None
        self.upper: Optional[np.ndarray] = None
        self.key_hue: float = 0.0

    @property
    def has_key(self) -> bool:
        return self.patch is not None

    def set_key(self, point: Tuple[int, int]):
        if self.frame is None:
            return
        h, w = self.frame.shape[:2]
        if not (0 <= point[0] < w and 0 <= point[1] < h):
            return
        self.patch = sample_key_color(self.frame, point, self.params.patch_radius)
        self.key_hue = float(np.median(self.patch[:, 0]))
        self._update_range()

    def clear_key(self):
        self.patch = self.lower = self.upper = None

    def _update_range(self):
        if self.patch is not None:
            self.lower, self.upper = key_range(self.patch, self.params.tolerance)

    def process(self, frame: np.ndarray) -> np.ndarray:
        self.frame = frame
        if not self.has_key:
            return frame
        alpha = key_mask(frame, self.lower, self.upper, self.params.softness)
        fg = reduce_color_cast(frame, alpha, self.key_hue, self.params.cast)
        return composite(fg, self.background, alpha)

    # highgui callbacks
    def on_mouse(self, event, x, y, flags, param=None):
        if event == cv2.EVENT_LBUTTONDOWN:
            self.set_key((x, y))
        elif event == cv2.EVENT_RBUTTONDOWN:
            self.clear_key()

    def on_tolerance(self, value: int):
        self.params.tolerance = int(value)
        self._update_range()

    def on_softness(self, value: int):
        self.params.softness = int(value)

    def on_cast(self, value: int):
        self.params.cast = int(value)


# -----------------------------------------------------------------------------
# Video loop
# -----------------------------------------------------------------------------
def run_chroma_key(
    input_source: str,
    background_path: str | Path,
    output_path: str | Path | None = None,
    params: ChromaKeyParams | None = None,
    loop: bool = False,
) -> int:
    """Play the video with keying applied; returns the number of frames shown."""
    background = load_image(background_path)
    cap = open_video(input_source)
    keyer = ChromaKeyer(background, params)
    writer = None
    shown = 0

    ok, frame = cap.read()
    if not ok:
        cap.release()
        raise ValueError(f"No frames could be read from {input_source}")

    if output_path:
        fps = cap.get(cv2.CAP_PROP_FPS) or 25.0
        h, w = frame.shape[:2]
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fourcc = FOURCC_BY_EXT.get(Path(output_path).suffix.lower(), "mp4v")
        writer = cv2.VideoWriter(str(output_path), cv2.VideoWriter_fourcc(*fourcc), fps, (w, h))
        if not writer.isOpened():
            writer.release()
            cap.release()
            raise ValueError(f"Could not open video writer for {output_path}")

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(WINDOW_NAME, keyer.on_mouse)
    cv2.createTrackbar("Tolerance", WINDOW_NAME, keyer.params.tolerance, MAX_TOLERANCE, keyer.on_tolerance)
    cv2.createTrackbar("Softness", WINDOW_NAME, keyer.params.softness, MAX_SOFTNESS, keyer.on_softness)
    cv2.createTrackbar("Color cast", WINDOW_NAME, keyer.params.cast, MAX_CAST, keyer.on_cast)

    paused = False
    fresh = True
    try:
        while True:
            out = keyer.process(frame)
            cv2.imshow(WINDOW_NAME, out)
            if fresh:
                shown += 1
                if writer is not None:
                    writer.write(out)

            key = cv2.waitKey(25)
            if is_key(key, KEY_ESC):
                break
            if is_key(key, KEY_PAUSE):
                paused = not paused

            fresh = False
            if paused:
                continue
            ok, next_frame = cap.read()
            if not ok:
                if not loop:
                    break
                cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
                ok, next_frame = cap.read()
                if not ok:
                    break
            frame = next_frame
            fresh = True
    finally:
        cap.release()
        if writer is not None:
            writer.release()
        cv2.destroyAllWindows()

    if output_path:
        print(f"[OK] Wrote {shown} frame(s) → {Path(output_path).resolve()}")
    return shown


def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="chroma_keying", description="An utility for Chroma Keying.")
    p.add_argument("-i", "--input", required=True,
                   help="green-screen video file, or a camera index (mandatory)")
    p.add_argument("-b", "--background", required=True,
                   help="background image (mandatory)")
    p.add_argument("-o", "--output", default=None,
                   help="optional output video (.avi as MJPG, otherwise mp4v)")
    p.add_argument("--loop", action="store_true", help="rewind when the video ends")
    p.add_argument("--tolerance", type=int, default=ChromaKeyParams.tolerance,
                   help="initial tolerance, percent")
    p.add_argument("--softness", type=int, default=ChromaKeyParams.softness,
                   help="initial mask feather radius")
    p.add_argument("--cast", type=int, default=ChromaKeyParams.cast,
                   help="initial colour-cast reduction, percent")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    print(f"Input File Name = {args.input}")
    print(f"Background Image = {args.background}")
    params = ChromaKeyParams(
        tolerance=int(np.clip(args.tolerance, 0, MAX_TOLERANCE)),
        softness=int(np.clip(args.softness, 0, MAX_SOFTNESS)),
        cast=int(np.clip(args.cast, 0, MAX_CAST)),
    )
    try:
        run_chroma_key(args.input, args.background, args.output, params, loop=args.loop)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
