"""
image_alignment.py — align the colour plates of a glass-plate negative

WHAT THIS MODULE DOES
---------------------
Early colour photographs were taken as three exposures through blue, green
and red filters, stacked top to bottom on one plate. Because the camera (or
subject) moved between exposures, naively stacking them gives colour fringes.

Pipeline (green is the reference plate):
  1) Split    — cut the grayscale plate into three equal-height channels
  2) Detect   — ORB keypoints + binary descriptors per channel
  3) Match    — brute-force Hamming matching, keep the best GOOD_MATCH_PERCENT
  4) Estimate — RANSAC homography blue→green and red→green
  5) Warp     — warpPerspective blue and red into the green frame
  6) Merge    — cv2.merge([blue', green, red']) → BGR colour image

LEARNING NOTES
--------------
• ORB descriptors are 256-bit strings, hence Hamming distance.
• Only a small fraction of raw matches is kept; RANSAC discards the remaining
  outliers while fitting the 8-DOF homography.
• A homography needs ≥ 4 correspondences; fewer raises ValueError.

RUN
---
  image-alignment -i emir.jpg -o emir_aligned.jpg --show
  image-alignment -i emir.jpg --figdir figures/       # save the tutorial figures
"""

from __future__ import annotations
import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple
import numpy as np
import cv2
import matplotlib.pyplot as plt

from vision_tools.utils.image_io import default_output_path, load_image, save_image
from vision_tools.utils.plotting import save_figure, show_montage

MAX_FEATURES = 650
GOOD_MATCH_PERCENT = 0.1055
MIN_MATCHES = 4


# -----------------------------------------------------------------------------
# Parameters & result
# -----------------------------------------------------------------------------
@dataclass
class AlignmentParams:
    """
    max_features : ORB keypoint budget per channel
    good_match_percent : fraction (0..1] of sorted matches kept for RANSAC
    ransac_threshold : max reprojection error (px) for a RANSAC inlier
    """
    max_features: int = MAX_FEATURES
    good_match_percent: float = GOOD_MATCH_PERCENT
    ransac_threshold: float = 3.0


@dataclass
class AlignmentResult:
    blue: np.ndarray
    green: np.ndarray
    red: np.ndarray
    blue_warped: np.ndarray
    red_warped: np.ndarray
    aligned: np.ndarray
    original: np.ndarray
    h_blue_green: np.ndarray
    h_red_green: np.ndarray
    keypoints: dict = field(default_factory=dict)
    matches: dict = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------
def split_channels(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Cut a vertically stacked plate into (blue, green, red), each of height
    H // 3. Colour input is converted to grayscale first; leftover rows at the
    bottom (H % 3) are dropped.
    """
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    height = image.shape[0] // 3
    if height == 0:
        raise ValueError(f"Plate of shape {image.shape} is too short to split into 3 channels")
    blue = image[0:height]
    green = image[height:2 * height]
    red = image[2 * height:3 * height]
    return blue, green, red


def detect_features(plate: np.ndarray, max_features: int = MAX_FEATURES):
    """ORB keypoints and descriptors (descriptors may be None on blank input)."""
    orb = cv2.ORB_create(max_features)
    keypoints, descriptors = orb.detectAndCompute(plate, None)
    return keypoints, descriptors


def match_features(desc_a, desc_b, good_match_percent: float = GOOD_MATCH_PERCENT) -> List[cv2.DMatch]:
    """Hamming matches a→b sorted by distance, truncated to the best fraction."""
    if desc_a is None or desc_b is None:
        return []
    if not 0.0 < good_match_percent <= 1.0:
        raise ValueError(f"good_match_percent must be in (0, 1], got {good_match_percent}")
    matcher = cv2.BFMatcher(cv2.NORM_HAMMING, crossCheck=False)
    matches = sorted(matcher.match(desc_a, desc_b), key=lambda m: m.distance)
    num_good = int(len(matches) * good_match_percent)
    return matches[:num_good]


def estimate_homography(kp_a, kp_b, matches, ransac_threshold: float = 3.0) -> np.ndarray:
    """RANSAC homography mapping points of image a onto image b."""
    if len(matches) < MIN_MATCHES:
        raise ValueError(
            f"Not enough good matches to estimate a homography ({len(matches)} < {MIN_MATCHES})"
        )
    points_a = np.float32([kp_a[m.queryIdx].pt for m in matches]).reshape(-1, 1, 2)
    points_b = np.float32([kp_b[m.trainIdx].pt for m in matches]).reshape(-1, 1, 2)
    H, _ = cv2.findHomography(points_a, points_b, cv2.RANSAC, ransac_threshold)
    if H is None:
        raise ValueError("Homography estimation failed (degenerate point configuration)")
    return H


def align_plates(image: np.ndarray, params: AlignmentParams | None = None) -> AlignmentResult:
    """Run the full split → detect → match → estimate → warp → merge pipeline."""
    params = params or AlignmentParams()
    blue, green, red = split_channels(image)

    kp_b, desc_b = detect_features(blue, params.max_features)
    kp_g, desc_g = detect_features(green, params.max_features)
    kp_r, desc_r = detect_features(red, params.max_features)

    matches_bg = match_features(desc_b, desc_g, params.good_match_percent)
    matches_rg = match_features(desc_r, desc_g, params.good_match_percent)

    h_bg = estimate_homography(kp_b, kp_g, matches_bg, params.ransac_threshold)
    h_rg = estimate_homography(kp_r, kp_g, matches_rg, params.ransac_threshold)

    height, width = green.shape[:2]
    blue_warped = cv2.warpPerspective(blue, h_bg, (width, height))
    red_warped = cv2.warpPerspective(red, h_rg, (width, height))

    return AlignmentResult(
        blue=blue, green=green, red=red,
        blue_warped=blue_warped, red_warped=red_warped,
        aligned=cv2.merge([blue_warped, green, red_warped]),
        original=cv2.merge([blue, green, red]),
        h_blue_green=h_bg, h_red_green=h_rg,
        keypoints={"blue": kp_b, "green": kp_g, "red": kp_r},
        matches={"blue_green": matches_bg, "red_green": matches_rg},
    )


# -----------------------------------------------------------------------------
# Figures
# -----------------------------------------------------------------------------
def alignment_figures(result: AlignmentResult) -> dict:
    """Build the tutorial figures; returns {name: Figure}."""
    figs = {}
    figs["channels"] = show_montage(
        [result.blue, result.green, result.red], ["Blue", "Green", "Red"], figsize=(12, 3))

    kp = result.keypoints
    drawn = [
        cv2.drawKeypoints(result.blue, kp["blue"], None, (255, 0, 0),
                          cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS),
        cv2.drawKeypoints(result.green, kp["green"], None, (0, 255, 0),
                          cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS),
        cv2.drawKeypoints(result.red, kp["red"], None, (0, 0, 255),
                          cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS),
    ]
    figs["keypoints"] = show_montage(drawn, ["Blue keypoints", "Green keypoints", "Red keypoints"],
                                     figsize=(12, 3))

    im_bg = cv2.drawMatches(result.blue, kp["blue"], result.green, kp["green"],
                            result.matches["blue_green"], None)
    im_rg = cv2.drawMatches(result.red, kp["red"], result.green, kp["green"],
                            result.matches["red_green"], None)
    figs["matches"] = show_montage([im_bg, im_rg], ["Blue → Green matches", "Red → Green matches"],
                                   rows=2, figsize=(8, 6))

    figs["warped"] = show_montage(
        [result.blue_warped, result.red_warped],
        ["Blue channel aligned w.r.t green channel", "Red channel aligned w.r.t green channel"],
        figsize=(12, 5))
    figs["result"] = show_montage(
        [result.original, result.aligned], ["Original Mis-aligned Image", "Aligned Image"],
        figsize=(12, 5))
    return figs


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------
def run_alignment(
    input_path: str | Path,
    output_path: str | Path | None = None,
    params: AlignmentParams | None = None,
    show: bool = False,
    figdir: str | Path | None = None,
) -> AlignmentResult:
    image = load_image(input_path, image_type=0)
    h, w = image.shape[:2]
    print(f"[INFO] Plate size {w}x{h} → 3 channels of {w}x{h // 3}")

    result = align_plates(image, params)
    print(f"[INFO] Good matches: blue→green {len(result.matches['blue_green'])}, "
          f"red→green {len(result.matches['red_green'])}")

    output_path = Path(output_path) if output_path else default_output_path(input_path, "aligned")
    save_image(output_path, result.aligned)
    print(f"[OK] Aligned image → {output_path.resolve()}")

    if show or figdir:
        figs = alignment_figures(result)
        if figdir:
            for name, fig in figs.items():
                save_figure(fig, Path(figdir) / f"alignment_{name}.png")
            print(f"[OK] Saved figures to: {Path(figdir).resolve()}")
        if show:
            plt.show()
        plt.close("all")
    return result


def parse_args(argv: Sequence[str] | None = None):
    p = argparse.ArgumentParser(prog="image_alignment",
                                description="Align the B/G/R plates of a stacked glass negative.")
    p.add_argument("-i", "--input", required=True, help="stacked plate image (blue, green, red top to bottom)")
    p.add_argument("-o", "--output", default=None, help="aligned colour image (default: <name>_aligned.<ext>)")
    p.add_argument("--max-features", type=int, default=MAX_FEATURES, help="ORB features per channel")
    p.add_argument("--good-match-percent", type=float, default=GOOD_MATCH_PERCENT,
                   help="fraction of best matches kept (0..1]")
    p.add_argument("--show", action="store_true", help="display the matplotlib figures")
    p.add_argument("--figdir", default=None, help="save the figures as PNGs in this folder")
    return p.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    params = AlignmentParams(max_features=args.max_features, good_match_percent=args.good_match_percent)
    try:
        run_alignment(args.input, args.output, params, show=args.show, figdir=args.figdir)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
