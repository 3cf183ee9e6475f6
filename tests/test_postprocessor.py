"""
Tests for the postprocessing module.
"""

import numpy as np

from qr_overlay.detection import FORMAT_BARCODE, FORMAT_QR_CODE
from qr_overlay.geometry import Rect
from qr_overlay.postprocessor import postprocess


def test_postprocess_valid_detection():
    """Corner points become an axis-aligned box in frame pixels."""
    points = np.array([[[10, 20], [110, 20], [110, 120], [10, 120]]], dtype=np.float32)

    detections = postprocess(("https://example.com",), points)

    assert len(detections) == 1
    det = detections[0]
    assert det.payload == "https://example.com"
    assert det.bounding_box == Rect(10, 20, 110, 120)
    assert det.format == FORMAT_QR_CODE


def test_postprocess_rotated_code():
    """A code seen at 45 degrees is bounded by its extreme corners."""
    points = np.array([[[50, 0], [100, 50], [50, 100], [0, 50]]], dtype=np.float32)

    detections = postprocess(("tilted",), points)

    assert detections[0].bounding_box == Rect(0, 0, 100, 100)


def test_postprocess_no_points():
    """Nothing located means no detections."""
    assert postprocess((), None) == []


def test_postprocess_drops_undecoded_by_default():
    """Located codes with an empty payload are dropped unless requested."""
    points = np.array([
        [[0, 0], [10, 0], [10, 10], [0, 10]],
        [[20, 20], [30, 20], [30, 30], [20, 30]],
    ], dtype=np.float32)

    kept = postprocess(("", "ok"), points)
    assert [d.payload for d in kept] == ["ok"]

    all_codes = postprocess(("", "ok"), points, keep_undecoded=True)
    assert [d.payload for d in all_codes] == ["", "ok"]


def test_postprocess_degenerate_box():
    """Zero-area boxes are skipped."""
    points = np.array([[[5, 5], [5, 5], [5, 5], [5, 5]]], dtype=np.float32)
    assert postprocess(("dot",), points) == []


def test_postprocess_single_code_shape():
    """A (4, 2) point array from single-code detection is accepted."""
    points = np.array([[0, 0], [10, 0], [10, 10], [0, 10]], dtype=np.float32)

    detections = postprocess(("single",), points, code_format=FORMAT_BARCODE)

    assert len(detections) == 1
    assert detections[0].format == FORMAT_BARCODE


def test_postprocess_orders_top_to_bottom():
    """Output ordering does not depend on detector ordering."""
    points = np.array([
        [[0, 50], [10, 50], [10, 60], [0, 60]],
        [[40, 0], [50, 0], [50, 10], [40, 10]],
        [[0, 0], [10, 0], [10, 10], [0, 10]],
    ], dtype=np.float32)

    detections = postprocess(("low", "top-right", "top-left"), points)

    assert [d.payload for d in detections] == ["top-left", "top-right", "low"]
