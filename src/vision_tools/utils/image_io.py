"""
image_io.py — image/video loading and saving with explicit errors

WHAT THIS MODULE PROVIDES
-------------------------
• load_image / save_image
    Thin wrappers over cv2.imread / cv2.imwrite that fail loudly:
    a missing path raises FileNotFoundError, an undecodable file or a
    refused write raises ValueError (OpenCV itself just returns None/False).

• open_video
    cv2.VideoCapture for files or camera indices, with the same contract.

• default_output_path
    "<stem>_<suffix><ext>" next to the input; used by tools whose output
    flag is optional.

• Key codes for the highgui polling loops (ESC, s, p, r, Enter) and
  is_key(), which masks waitKey()'s return value to its low byte.

NOTES
-----
• image_type follows the command-line convention of the tools:
      1 → colour (BGR), 0 → grayscale, -1 → unchanged (keeps alpha/depth)
"""

from __future__ import annotations
from pathlib import Path
import numpy as np
import cv2


# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------
IMAGE_TYPES = {
    1: cv2.IMREAD_COLOR,
    0: cv2.IMREAD_GRAYSCALE,
    -1: cv2.IMREAD_UNCHANGED,
}

KEY_ESC = 27
KEY_ENTER = 13
KEY_SAVE = ord("s")
KEY_PAUSE = ord("p")
KEY_RESET = ord("r")


def is_key(code: int, key: int) -> bool:
    """True if a cv2.waitKey() return value corresponds to `key`."""
    return code != -1 and (code & 0xFF) == key


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------
def load_image(path: str | Path, image_type: int = 1) -> np.ndarray:
    """
    Read an image from disk.

    Parameters
    ----------
    path : str | Path
        Image file (anything cv2.imread can decode).
    image_type : int
        1 = colour, 0 = grayscale, -1 = unchanged.

    Returns
    -------
    image : uint8 ndarray (H, W) or (H, W, C)
    """
    if image_type not in IMAGE_TYPES:
        raise ValueError(f"Unknown image type {image_type}; expected one of {sorted(IMAGE_TYPES)}")

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file {path} does not exist.")

    image = cv2.imread(str(path), IMAGE_TYPES[image_type])
    if image is None:
        raise ValueError(f"Input file {path} is not a valid image.")
    return image


def save_image(path: str | Path, image: np.ndarray) -> Path:
    """Write `image` to `path`, creating parent folders; returns the path."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    if image is None or image.size == 0:
        raise ValueError(f"Refusing to write an empty image to {path}.")
    try:
        written = cv2.imwrite(str(path), image)
    except cv2.error as exc:
        raise ValueError(f"Could not write image to {path}: {exc}") from exc
    if not written:
        raise ValueError(f"Could not write image to {path} (unsupported extension?).")
    return path


def default_output_path(input_path: str | Path, suffix: str) -> Path:
    """`photo.jpg`, "clean" → `photo_clean.jpg` in the same folder."""
    p = Path(input_path)
    ext = p.suffix or ".png"
    return p.with_name(f"{p.stem}_{suffix}{ext}")


# -----------------------------------------------------------------------------
# Video
# -----------------------------------------------------------------------------
def open_video(source: str | int) -> cv2.VideoCapture:
    """
    Open a video file or camera.

    A purely numeric source ("0", 1) is treated as a camera index; anything
    else must be an existing file.
    """
    if isinstance(source, int) or str(source).isdigit():
        cap = cv2.VideoCapture(int(source))
        if not cap.isOpened():
            raise ValueError(f"Error opening camera {source}.")
        return cap

    path = Path(source)
    if not path.is_file():
        raise FileNotFoundError(f"Input file {path} does not exist.")
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        cap.release()
        raise ValueError(f"Error opening video stream or file {path}.")
    return cap
