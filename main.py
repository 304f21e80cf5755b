"""
vision_tools launcher:
crop | zoom | blemish | chroma | scanner | align

Each tool is a standalone program with its own flags; this file only
forwards to its main(). It also offers offline quick demos that run the image
logic of each tool on synthetic scenes and save figures, without opening any
window:
    demo_alignment()
    demo_chroma()
    demo_blemish()
    demo_scanner()
  Run via:  python main.py --demo <alignment|chroma|blemish|scanner|all>

Interactive tools:
  python main.py crop -i photo.jpg -o face.jpg
  python main.py zoom photo.jpg
  python main.py blemish -i face.jpg -s 30 -o face_clean.jpg
  python main.py chroma -i greenscreen.mp4 -b beach.jpg
  python main.py scanner -i page.jpg -o scan.png
  python main.py align -i emir.jpg --show
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path

import numpy as np
import matplotlib
import matplotlib.pyplot as plt

from vision_tools.alignment import image_alignment
from vision_tools.alignment.image_alignment import align_plates, alignment_figures
from vision_tools.blemish import blemish_remover
from vision_tools.blemish.blemish_remover import BlemishRemover
from vision_tools.chroma import chroma_keyer
from vision_tools.chroma.chroma_keyer import ChromaKeyer, ChromaKeyParams
from vision_tools.crop import image_crop
from vision_tools.samples.synthetic import (
    blemished_scene, document_photo, green_screen_frame, stacked_plate,
)
from vision_tools.scanner import document_scanner
from vision_tools.scanner.document_scanner import DocumentScanner
from vision_tools.utils.plotting import save_figure, show_montage
from vision_tools.zoom import zooming

TOOLS = {
    "crop": image_crop.main,
    "zoom": zooming.main,
    "blemish": blemish_remover.main,
    "chroma": chroma_keyer.main,
    "scanner": document_scanner.main,
    "align": image_alignment.main,
}


# -----------------------------------------------------------------------------
# Quick demos (synthetic input, figures saved to disk)
# -----------------------------------------------------------------------------
def demo_alignment(outdir: str | Path = "outputs_demo_alignment"):
    """
    Purpose: shifted B/G/R plates → ORB/RANSAC alignment.
    Expectation: the recovered homographies are near-pure translations equal
    to the synthetic shifts, and the merged image has no colour fringes.
    """
    outdir = Path(outdir); outdir.mkdir(parents=True, exist_ok=True)
    plate = stacked_plate(shifts=((6, -4), (0, 0), (-5, 7)))
    result = align_plates(plate)
    for name, fig in alignment_figures(result).items():
        save_figure(fig, outdir / f"alignment_{name}.png")
    plt.close("all")
    tb = result.h_blue_green[:2, 2]
    tr = result.h_red_green[:2, 2]
    print(f"[DEMO alignment] blue→green t=({tb[0]:.1f}, {tb[1]:.1f})  red→green t=({tr[0]:.1f}, {tr[1]:.1f})")
    print("[DEMO alignment] saved:", outdir.resolve())


def demo_chroma(outdir: str | Path = "outputs_demo_chroma"):
    """
    Purpose: key a synthetic green-screen frame onto a gradient background
    at three tolerance settings.
    """
    outdir = Path(outdir); outdir.mkdir(parents=True, exist_ok=True)
    frame, _ = green_screen_frame()
    h, w = frame.shape[:2]
    ramp = np.linspace(0, 255, w, dtype=np.float32)
    background = np.dstack([np.tile(ramp, (h, 1)), np.full((h, w), 120.0), np.tile(ramp[::-1], (h, 1))])
    background = background.astype(np.uint8)

    panels, titles = [frame], ["Input"]
    for tol in (0, 10, 25):
        keyer = ChromaKeyer(background, ChromaKeyParams(tolerance=tol))
        keyer.frame = frame
        keyer.set_key((10, 10))
        panels.append(keyer.process(frame))
        titles.append(f"Tolerance {tol}")
    fig = show_montage(panels, titles, figsize=(14, 4), suptitle="Chroma keying")
    save_figure(fig, outdir / "chroma_tolerance.png")
    plt.close("all")
    print("[DEMO chroma] saved:", outdir.resolve())


def demo_blemish(outdir: str | Path = "outputs_demo_blemish"):
    """Purpose: remove two synthetic spots, then undo one."""
    outdir = Path(outdir); outdir.mkdir(parents=True, exist_ok=True)
    spots = ((70, 80), (130, 120))
    image = blemished_scene(spots=spots)
    remover = BlemishRemover(image, blemish_size=30)
    for x, y in spots:
        remover.remove(x, y)
    cleaned = remover.image.copy()
    remover.undo()
    fig = show_montage([image, cleaned, remover.image],
                       ["Blemished", "Both removed", "After one undo"], figsize=(12, 4))
    save_figure(fig, outdir / "blemish_remove_undo.png")
    plt.close("all")
    print("[DEMO blemish] saved:", outdir.resolve())


def demo_scanner(outdir: str | Path = "outputs_demo_scanner"):
    """Purpose: detect the page outline in a synthetic photo and flatten it."""
    outdir = Path(outdir); outdir.mkdir(parents=True, exist_ok=True)
    photo, truth = document_photo()
    scanner = DocumentScanner(photo)
    err = float(np.abs(scanner.corners - truth).max())
    fig = show_montage([scanner.overlay(), scanner.scan()], ["Detected outline", "Scanned"],
                       figsize=(10, 5))
    save_figure(fig, outdir / "scanner.png")
    plt.close("all")
    print(f"[DEMO scanner] page found: {scanner.found} | max corner error {err:.1f}px")
    print("[DEMO scanner] saved:", outdir.resolve())


DEMOS = {
    "alignment": demo_alignment,
    "chroma": demo_chroma,
    "blemish": demo_blemish,
    "scanner": demo_scanner,
}


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------
def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Interactive OpenCV utilities",
                                epilog="Tool flags: python main.py <tool> -h")
    p.add_argument("--demo", default=None, choices=[*DEMOS, "all"],
                   help="run offline quick demos instead of a tool")
    p.add_argument("tool", nargs="?", choices=list(TOOLS), help="tool to launch")
    p.add_argument("tool_args", nargs=argparse.REMAINDER, help="arguments for the tool")
    return p.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()

    if args.demo:
        # Demos only write files
        matplotlib.use("Agg")
        for name, demo in DEMOS.items():
            if args.demo in (name, "all"):
                demo()
    elif args.tool:
        sys.exit(TOOLS[args.tool](args.tool_args))
    else:
        print("Get Help by: python main.py -h")
