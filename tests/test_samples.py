"""Tests for the synthetic scenes"""

import numpy as np
import pytest

from vision_tools.samples.synthetic import (
    blemished_scene, document_photo, green_screen_frame, stacked_plate, textured_scene,
)


class TestSyntheticScenes:
    """Shapes, dtypes and determinism"""

    def test_textured_is_deterministic(self):
        a = textured_scene(64, 80, seed=3)
        assert a.shape == (64, 80) and a.dtype == np.uint8
        assert np.array_equal(a, textured_scene(64, 80, seed=3))
        assert not np.array_equal(a, textured_scene(64, 80, seed=4))

    def test_stacked_plate_is_shifted_copy(self):
        plate = stacked_plate(50, 60, shifts=((2, 0), (0, 0), (0, 3)))
        blue, green, red = plate[:50], plate[50:100], plate[100:]
        assert plate.shape == (150, 60)
        assert np.array_equal(blue[:, :-2], green[:, 2:])
        assert np.array_equal(red[:-3], green[3:])

    def test_stacked_plate_needs_three_shifts(self):
        with pytest.raises(ValueError):
            stacked_plate(shifts=((0, 0),))

    def test_green_screen(self):
        frame, fg = green_screen_frame(120, 160)
        assert frame.shape == (120, 160, 3) and fg.shape == (120, 160)
        assert 0 < fg.mean() < 0.5
        assert frame[~fg][:, 1].mean() > 150

    def test_blemished_scene(self):
        img = blemished_scene(100, spots=((50, 50),), spot_radius=5)
        assert img.shape == (100, 100, 3)
        assert img[50, 50].tolist() == [60, 70, 90]

    def test_document_photo(self):
        photo, corners = document_photo()
        assert photo.shape == (480, 640, 3)
        assert corners.shape == (4, 2) and corners.dtype == np.float32
        cx, cy = corners.mean(axis=0).astype(int)
        assert photo[cy - 10:cy + 10, cx - 10:cx + 10].mean() > 100
