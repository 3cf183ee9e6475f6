"""
Tests for the per-frame analyzer stage.

The detector is replaced by small fakes so these tests exercise only
the pipeline contract: mapping, the empty signal, and frame skipping.
"""

import numpy as np
import pytest

from qr_overlay.analyzer import QrCodeAnalyzer
from qr_overlay.detection import Detection, OverlayResult
from qr_overlay.geometry import EMPTY_RECT, Dimensions, Rect


class FakeDetector:
    """Returns a fixed list of detections and records the frames it saw."""

    def __init__(self, detections):
        self.detections = detections
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        return list(self.detections)


class FailingDetector:
    def detect(self, frame):
        raise RuntimeError("decoder crashed")


def _frame(width=100, height=50):
    return np.zeros((height, width, 3), dtype=np.uint8)


def test_detection_is_mapped_to_viewport():
    """Boxes come out in viewport pixels."""
    detector = FakeDetector([Detection("hello", Rect(10, 10, 30, 40))])
    analyzer = QrCodeAnalyzer(detector, Dimensions(100, 100))

    results = analyzer.analyze(_frame(100, 50))

    # frame 100x50 in a 100x100 viewport: scale 2, width offset 50
    assert results == [OverlayResult("hello", Rect(-30, 20, 10, 80))]


def test_no_detection_emits_empty_signal():
    """A frame without codes emits exactly one empty result."""
    received = []
    analyzer = QrCodeAnalyzer(
        FakeDetector([]), Dimensions(100, 100), on_result=received.append
    )

    results = analyzer.analyze(_frame())

    assert results == [OverlayResult.empty()]
    assert received == [OverlayResult("", EMPTY_RECT)]
    assert received[0].is_empty


def test_callback_receives_every_result():
    detections = [
        Detection("a", Rect(0, 0, 10, 10)),
        Detection("b", Rect(20, 20, 30, 30)),
    ]
    received = []
    analyzer = QrCodeAnalyzer(
        FakeDetector(detections), Dimensions(100, 50), on_result=received.append
    )

    results = analyzer.analyze(_frame(100, 50))

    assert [r.payload for r in received] == ["a", "b"]
    assert received == results


def test_detection_without_box_is_ignored():
    """Detections lacking a location do not reach the renderer."""
    detector = FakeDetector([
        Detection("lost", None),
        Detection("kept", Rect(0, 0, 10, 10)),
    ])
    analyzer = QrCodeAnalyzer(detector, Dimensions(100, 50))

    results = analyzer.analyze(_frame(100, 50))

    assert [r.payload for r in results] == ["kept"]


def test_only_unusable_detections_emit_empty_signal():
    analyzer = QrCodeAnalyzer(FakeDetector([Detection("lost", None)]), Dimensions(100, 50))
    assert analyzer.analyze(_frame(100, 50)) == [OverlayResult.empty()]


def test_failing_detector_skips_frame():
    """Detector errors are logged and nothing is emitted."""
    received = []
    analyzer = QrCodeAnalyzer(
        FailingDetector(), Dimensions(100, 100), on_result=received.append
    )

    assert analyzer.analyze(_frame()) == []
    assert received == []


def test_invalid_frame_skips_without_detecting():
    """A zero-sized frame never reaches the detector."""
    detector = FakeDetector([Detection("x", Rect(0, 0, 1, 1))])
    analyzer = QrCodeAnalyzer(detector, Dimensions(100, 100))

    assert analyzer.analyze(np.zeros((0, 10, 3), dtype=np.uint8)) == []
    assert detector.calls == 0


def test_invalid_viewport_skips_frame():
    detector = FakeDetector([])
    analyzer = QrCodeAnalyzer(detector, Dimensions(0, 100))

    assert analyzer.analyze(_frame()) == []
    assert detector.calls == 0


def test_viewport_change_applies_on_next_frame():
    """set_viewport() changes the mapping of subsequent frames."""
    detector = FakeDetector([Detection("code", Rect(10, 10, 20, 20))])
    analyzer = QrCodeAnalyzer(detector, Dimensions(100, 50))

    first = analyzer.analyze(_frame(100, 50))
    analyzer.set_viewport(Dimensions(200, 100))
    second = analyzer.analyze(_frame(100, 50))

    assert first[0].rect == Rect(10, 10, 20, 20)
    assert second[0].rect == Rect(20, 20, 40, 40)
    assert analyzer.mapper.state.scale_factor == pytest.approx(2.0)


def test_undecoded_detection_is_drawn_without_payload():
    """A located-but-undecoded code still gets a box."""
    detector = FakeDetector([Detection("", Rect(0, 0, 10, 10))])
    analyzer = QrCodeAnalyzer(detector, Dimensions(100, 50))

    results = analyzer.analyze(_frame(100, 50))

    assert len(results) == 1
    assert results[0].payload == ""
    assert not results[0].is_empty
