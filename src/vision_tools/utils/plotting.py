"""
plotting.py — matplotlib montages for OpenCV images

OpenCV keeps colour images in BGR order; matplotlib expects RGB. Everything
here converts on the way in so callers can pass cv2 arrays unchanged.

• show_montage(images, titles, ...)
    1×N (or rows×cols) grid of images with titles, returns the Figure.
• save_figure(fig, path)
    Save at 150 dpi, creating the folder.
"""

from __future__ import annotations
from pathlib import Path
from typing import Sequence
import numpy as np
import cv2
import matplotlib.pyplot as plt


def to_rgb(image: np.ndarray) -> np.ndarray:
    """BGR/BGRA → RGB for display; grayscale passes through."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def show_montage(
    images: Sequence[np.ndarray],
    titles: Sequence[str] | None = None,
    rows: int = 1,
    figsize: tuple[float, float] = (12, 4),
    suptitle: str | None = None,
):
    """
    Lay out images on a grid.

    Parameters
    ----------
    images : sequence of ndarray
        Grayscale or BGR uint8 images.
    titles : sequence of str | None
        One title per image.
    rows : int
        Number of grid rows; columns are derived.
    figsize : (w, h)
        Figure size in inches.
    suptitle : str | None
        Optional figure title.

    Returns
    -------
    fig : matplotlib.figure.Figure
    """
    n = len(images)
    if n == 0:
        raise ValueError("show_montage needs at least one image")
    rows = max(1, int(rows))
    cols = (n + rows - 1) // rows
    titles = list(titles) if titles is not None else [""] * n

    fig = plt.figure(figsize=figsize)
    for i, (im, title) in enumerate(zip(images, titles), start=1):
        ax = fig.add_subplot(rows, cols, i)
        if im.ndim == 2:
            ax.imshow(im, cmap="gray", vmin=0, vmax=255)
        else:
            ax.imshow(to_rgb(im))
        ax.set_title(title)
        ax.axis("off")
    if suptitle:
        fig.suptitle(suptitle)
    fig.tight_layout()
    return fig


def save_figure(fig, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150)
    return path
