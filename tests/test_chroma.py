"""Tests for chroma keying"""

import cv2
import numpy as np
import pytest

from vision_tools.chroma import chroma_keyer
from vision_tools.chroma.chroma_keyer import (
    ChromaKeyer, ChromaKeyParams, composite, key_mask, key_range, reduce_color_cast, sample_key_color,
)


def _patch(h=(50, 60), s=(200, 210), v=(100, 110)):
    return np.array([[h[0], s[0], v[0]], [h[1], s[1], v[1]]], dtype=np.uint8)


class TestKeyRange:
    """Per-channel min/max plus tolerance"""

    def test_zero_tolerance(self):
        lower, upper = key_range(_patch(), 0)
        assert lower.tolist() == [50, 200, 100]
        assert upper.tolist() == [60, 210, 110]

    def test_widened_by_channel_scale(self):
        lower, upper = key_range(_patch(), 10)
        assert lower.tolist() == [32, 174, 74]
        assert upper.tolist() == [78, 236, 136]

    def test_clipped_to_channel_range(self):
        lower, upper = key_range(_patch(), 100)
        assert lower.tolist() == [0, 0, 0]
        assert upper.tolist() == [179, 255, 255]
        assert lower.dtype == np.uint8

    def test_empty_patch(self):
        with pytest.raises(ValueError):
            key_range(np.empty((0, 3), np.uint8), 10)


class TestSampling:
    """Patch around the click"""

    def test_patch_size(self, green_frame):
        frame, _ = green_frame
        assert sample_key_color(frame, (10, 10), radius=5).shape == (121, 3)

    def test_patch_clipped_at_corner(self, green_frame):
        frame, _ = green_frame
        assert sample_key_color(frame, (0, 0), radius=5).shape == (36, 3)

    def test_outside_frame(self, green_frame):
        frame, _ = green_frame
        with pytest.raises(ValueError):
            sample_key_color(frame, (frame.shape[1], 0))


class TestMaskAndComposite:
    """inRange mask, feathering and blending"""

    def test_mask_separates_foreground(self, green_frame):
        frame, fg = green_frame
        lower, upper = key_range(sample_key_color(frame, (10, 10)), 10)
        alpha = key_mask(frame, lower, upper, softness=0)
        assert alpha.dtype == np.float32
        assert alpha[fg].max() == 0.0
        assert alpha[~fg].mean() > 0.95

    def test_softness_feathers_edges(self, green_frame):
        frame, fg = green_frame
        lower, upper = key_range(sample_key_color(frame, (10, 10)), 10)
        hard = key_mask(frame, lower, upper, softness=0)
        soft = key_mask(frame, lower, upper, softness=5)
        assert np.unique(hard).size <= 2
        assert ((soft > 0.05) & (soft < 0.95)).sum() > ((hard > 0.05) & (hard < 0.95)).sum()

    def test_composite_extremes(self):
        frame = np.full((10, 10, 3), 200, np.uint8)
        background = np.full((5, 5, 3), 20, np.uint8)      # resized to the frame
        assert np.all(composite(frame, background, np.ones((10, 10), np.float32)) == 20)
        assert np.all(composite(frame, background, np.zeros((10, 10), np.float32)) == 200)
        half = composite(frame, background, np.full((10, 10), 0.5, np.float32))
        assert np.all(half == 110)

    def test_color_cast_desaturates_key_hue(self):
        frame = np.zeros((4, 4, 3), np.uint8)
        frame[:] = (40, 200, 50)
        hue = float(cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)[0, 0, 0])
        out = reduce_color_cast(frame, np.zeros((4, 4), np.float32), hue, 100)
        px = out[0, 0].astype(int)
        assert px.max() - px.min() <= 1

    def test_color_cast_leaves_other_hues(self):
        frame = np.zeros((4, 4, 3), np.uint8)
        frame[:] = (30, 30, 200)
        out = reduce_color_cast(frame, np.zeros((4, 4), np.float32), 60.0, 100)
        assert np.array_equal(out, frame)

    def test_color_cast_zero_amount(self, green_frame):
        frame, _ = green_frame
        assert reduce_color_cast(frame, np.zeros(frame.shape[:2], np.float32), 60.0, 0) is frame

    def test_color_cast_spares_keyed_pixels(self, green_frame):
        frame, _ = green_frame
        out = reduce_color_cast(frame, np.ones(frame.shape[:2], np.float32), 60.0, 100)
        assert np.array_equal(out, frame)


class TestChromaKeyer:
    """Mouse and trackbar state"""

    def _background(self, frame):
        return np.full(frame.shape, (255, 0, 0), np.uint8)

    def test_no_key_passes_frame_through(self, green_frame):
        frame, _ = green_frame
        keyer = ChromaKeyer(self._background(frame))
        assert keyer.process(frame) is frame

    def test_click_keys_background(self, green_frame):
        frame, fg = green_frame
        keyer = ChromaKeyer(self._background(frame), ChromaKeyParams(tolerance=10, softness=0, cast=0))
        keyer.process(frame)
        keyer.on_mouse(cv2.EVENT_LBUTTONDOWN, 10, 10, 0)
        assert keyer.has_key

        out = keyer.process(frame)
        assert np.array_equal(out[fg], frame[fg])
        assert (out[~fg] == (255, 0, 0)).all(axis=1).mean() > 0.95

    def test_right_click_clears_key(self, green_frame):
        frame, _ = green_frame
        keyer = ChromaKeyer(self._background(frame))
        keyer.process(frame)
        keyer.on_mouse(cv2.EVENT_LBUTTONDOWN, 10, 10, 0)
        keyer.on_mouse(cv2.EVENT_RBUTTONDOWN, 10, 10, 0)
        assert not keyer.has_key

    def test_tolerance_trackbar_updates_range(self, green_frame):
        frame, _ = green_frame
        keyer = ChromaKeyer(self._background(frame))
        keyer.process(frame)
        keyer.set_key((10, 10))
        narrow = keyer.upper.astype(int) - keyer.lower.astype(int)
        keyer.on_tolerance(40)
        wide = keyer.upper.astype(int) - keyer.lower.astype(int)
        assert (wide >= narrow).all() and (wide > narrow).any()

    def test_click_before_first_frame_is_ignored(self):
        keyer = ChromaKeyer(np.zeros((4, 4, 3), np.uint8))
        keyer.on_mouse(cv2.EVENT_LBUTTONDOWN, 1, 1, 0)
        assert not keyer.has_key

    def test_cli_missing_background(self, tmp_path):
        code = chroma_keyer.main(["-i", "clip.mp4", "-b", str(tmp_path / "bg.jpg")])
        assert code == 1


class TestVideoLoop:
    """Playback, pause, rewind and recording with highgui stubbed out"""

    @pytest.fixture
    def clip(self, tmp_path, green_frame):
        frame, _ = green_frame
        h, w = frame.shape[:2]
        path = tmp_path / "clip.avi"
        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (w, h))
        assert writer.isOpened()
        for _ in range(3):
            writer.write(frame)
        writer.release()
        return path

    @pytest.fixture
    def background(self, tmp_path, green_frame):
        frame, _ = green_frame
        path = tmp_path / "bg.png"
        cv2.imwrite(str(path), np.full(frame.shape, (255, 0, 0), np.uint8))
        return path

    @pytest.fixture
    def keys(self, monkeypatch):
        """Silence the windows; waitKey replays the returned list, then -1."""
        scripted = []
        for name in ("namedWindow", "imshow", "createTrackbar", "setMouseCallback", "destroyAllWindows"):
            monkeypatch.setattr(cv2, name, lambda *a, **k: None)
        monkeypatch.setattr(cv2, "waitKey", lambda delay=0: scripted.pop(0) if scripted else -1)
        return scripted

    def test_plays_to_end_and_records(self, tmp_path, clip, background, keys):
        out = tmp_path / "out" / "keyed.avi"
        assert chroma_keyer.run_chroma_key(str(clip), background, out) == 3

        cap = cv2.VideoCapture(str(out))
        frames = 0
        while cap.read()[0]:
            frames += 1
        cap.release()
        assert frames == 3

    def test_loop_rewinds_until_escape(self, clip, background, keys):
        keys.extend([-1] * 6 + [27])
        assert chroma_keyer.run_chroma_key(str(clip), background, loop=True) > 3

    def test_pause_holds_the_frame(self, clip, background, keys):
        keys.extend([ord("p"), -1, -1, 27])
        assert chroma_keyer.run_chroma_key(str(clip), background) == 1

    def test_unwritable_output_fails(self, tmp_path, clip, background, keys, capsys):
        out = tmp_path / "keyed.bogusext"
        code = chroma_keyer.main(["-i", str(clip), "-b", str(background), "-o", str(out)])
        assert code == 1
        assert "[ERROR] Could not open video writer" in capsys.readouterr().out
        assert not out.exists()
