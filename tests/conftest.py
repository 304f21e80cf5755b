"""Shared fixtures; figures are rendered off-screen."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from vision_tools.samples.synthetic import (
    blemished_scene, document_photo, green_screen_frame, stacked_plate,
)


@pytest.fixture
def plate():
    return stacked_plate(shifts=((6, -4), (0, 0), (-5, 7)))


@pytest.fixture
def green_frame():
    return green_screen_frame()


@pytest.fixture
def skin():
    return blemished_scene(size=200, spots=((100, 100),), spot_radius=6)


@pytest.fixture
def document():
    return document_photo()


@pytest.fixture
def rng():
    return np.random.default_rng(42)
