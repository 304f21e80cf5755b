"""Tests for image/video I/O helpers"""

from pathlib import Path

import cv2
import numpy as np
import pytest

from vision_tools.utils.image_io import (
    KEY_ESC, KEY_SAVE, default_output_path, is_key, load_image, open_video, save_image,
)


class TestLoadImage:
    """Loading with explicit errors"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "nope.png")

    def test_undecodable_file(self, tmp_path):
        bogus = tmp_path / "bogus.png"
        bogus.write_text("not an image")
        with pytest.raises(ValueError):
            load_image(bogus)

    def test_unknown_type(self, tmp_path):
        with pytest.raises(ValueError):
            load_image(tmp_path / "x.png", image_type=7)

    def test_color_and_gray(self, tmp_path):
        img = np.zeros((20, 30, 3), dtype=np.uint8)
        img[:, :, 2] = 200
        path = save_image(tmp_path / "red.png", img)

        color = load_image(path, 1)
        gray = load_image(path, 0)
        assert color.shape == (20, 30, 3)
        assert gray.shape == (20, 30)
        assert np.array_equal(color, img)


class TestSaveImage:
    """Saving creates folders and refuses empty input"""

    def test_creates_parent(self, tmp_path):
        out = tmp_path / "a" / "b" / "img.png"
        save_image(out, np.full((5, 5), 7, np.uint8))
        assert out.is_file()

    def test_empty_image(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(tmp_path / "empty.png", np.zeros((0, 0), np.uint8))

    def test_bad_extension(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(tmp_path / "img.notanext", np.zeros((4, 4), np.uint8))


class TestHelpers:
    """Output naming and key codes"""

    def test_default_output_path(self):
        assert default_output_path("dir/photo.jpg", "clean") == Path("dir/photo_clean.jpg")
        assert default_output_path("photo", "zoom") == Path("photo_zoom.png")

    def test_is_key_masks_high_bits(self):
        assert is_key(27, KEY_ESC)
        assert is_key(0x100000 | ord("s"), KEY_SAVE)
        assert not is_key(-1, KEY_ESC)
        assert not is_key(ord("q"), KEY_SAVE)

    def test_open_video_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            open_video(tmp_path / "clip.mp4")

    def test_open_video_file(self, tmp_path):
        path = tmp_path / "clip.avi"
        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (32, 24))
        for _ in range(3):
            writer.write(np.zeros((24, 32, 3), np.uint8))
        writer.release()

        cap = open_video(path)
        ok, frame = cap.read()
        cap.release()
        assert ok
        assert frame.shape[:2] == (24, 32)
