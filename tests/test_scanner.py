"""Tests for the document scanner"""

import cv2
import numpy as np
import pytest

from vision_tools.scanner import document_scanner
from vision_tools.scanner.document_scanner import (
    DocumentScanner, find_document, image_corners, order_corners, output_size,
    warp_document,
)

SQUARE = np.array([[10, 10], [110, 10], [110, 60], [10, 60]], dtype=np.float32)


class TestGeometry:
    """Corner ordering and output size"""

    def test_order_from_shuffled(self):
        shuffled = SQUARE[[2, 0, 3, 1]]
        np.testing.assert_array_equal(order_corners(shuffled), SQUARE)

    def test_order_accepts_contour_shape(self):
        contour = SQUARE[[1, 2, 3, 0]].reshape(-1, 1, 2).astype(np.int32)
        np.testing.assert_array_equal(order_corners(contour), SQUARE)

    def test_wrong_count(self):
        with pytest.raises(ValueError):
            order_corners(SQUARE[:3])

    def test_degenerate(self):
        with pytest.raises(ValueError):
            order_corners(np.zeros((4, 2), np.float32))

    def test_output_size(self):
        assert output_size(SQUARE) == (100, 50)

    def test_image_corners(self):
        np.testing.assert_array_equal(image_corners((40, 60, 3)),
                                      [[0, 0], [59, 0], [59, 39], [0, 39]])


class TestDetection:
    """Page outline detection and warping"""

    def test_finds_page(self, document):
        photo, truth = document
        corners, found = find_document(photo)
        assert found
        assert np.abs(corners - truth).max() < 6.0

    def test_blank_image_falls_back(self):
        blank = np.full((100, 150, 3), 30, np.uint8)
        corners, found = find_document(blank)
        assert not found
        np.testing.assert_array_equal(corners, image_corners(blank.shape))

    def test_warp_flattens_page(self, document):
        photo, truth = document
        scan = warp_document(photo, truth, size=(300, 400))
        assert scan.shape == (400, 300, 3)
        # page is near-white away from the text lines
        assert scan[5:30, 5:290].mean() > 200

    def test_warp_default_size(self):
        img = np.zeros((80, 130, 3), np.uint8)
        assert warp_document(img, SQUARE).shape == (50, 100, 3)


class TestDocumentScanner:
    """Corner dragging"""

    def test_drag_corner(self, document):
        photo, _ = document
        scanner = DocumentScanner(photo)
        x, y = scanner.corners[0]
        scanner.on_mouse(cv2.EVENT_LBUTTONDOWN, int(x) + 3, int(y) + 3, 0)
        assert scanner.active == 0
        scanner.on_mouse(cv2.EVENT_MOUSEMOVE, 100, 50, 0)
        scanner.on_mouse(cv2.EVENT_LBUTTONUP, 100, 50, 0)
        assert scanner.active is None
        np.testing.assert_array_equal(scanner.corners[0], [100, 50])

        scanner.reset()
        np.testing.assert_array_equal(scanner.corners, scanner.detected)

    def test_click_far_from_corners(self, document):
        photo, _ = document
        scanner = DocumentScanner(photo)
        cx, cy = scanner.corners.mean(axis=0)
        scanner.on_mouse(cv2.EVENT_LBUTTONDOWN, int(cx), int(cy), 0)
        assert scanner.active is None

    def test_drag_is_clipped_to_image(self):
        scanner = DocumentScanner(np.full((100, 150, 3), 30, np.uint8))
        scanner.on_mouse(cv2.EVENT_LBUTTONDOWN, 0, 0, 0)
        scanner.on_mouse(cv2.EVENT_MOUSEMOVE, -50, -20, 0)
        np.testing.assert_array_equal(scanner.corners[0], [0, 0])

    def test_overlay_does_not_touch_source(self, document):
        photo, _ = document
        before = photo.copy()
        overlay = DocumentScanner(photo).overlay()
        assert overlay.shape == photo.shape
        assert np.array_equal(photo, before)

    def test_cli_missing_input(self, tmp_path):
        assert document_scanner.main(["-i", str(tmp_path / "page.jpg")]) == 1
