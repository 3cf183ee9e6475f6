"""
Tests for the detector module.
"""

import cv2
import numpy as np
import pytest

from qr_overlay.config import AppConfig, DetectionConfig
from qr_overlay.detector import Detector

_HAS_ENCODER = hasattr(cv2, "QRCodeEncoder")


def _qr_frame(text: str, module_px: int = 8, margin: int = 60) -> np.ndarray:
    """Render `text` as a QR code on a white BGR canvas."""
    code = cv2.QRCodeEncoder.create().encode(text)
    code = cv2.resize(
        code,
        (code.shape[1] * module_px, code.shape[0] * module_px),
        interpolation=cv2.INTER_NEAREST,
    )
    code = cv2.copyMakeBorder(
        code, margin, margin, margin, margin, cv2.BORDER_CONSTANT, value=255
    )
    return cv2.cvtColor(code, cv2.COLOR_GRAY2BGR)


def test_detector_blank_frame():
    """A frame with no code yields no detections."""
    detector = Detector()
    frame = np.full((480, 640, 3), 255, dtype=np.uint8)

    assert detector.detect(frame) == []


def test_detector_input_validation():
    """Strict input validation."""
    detector = Detector()

    # 1. Wrong type
    with pytest.raises(TypeError):
        detector.detect("not a frame")

    # 2. Empty frame
    with pytest.raises(ValueError):
        detector.detect(np.array([]))

    # 3. Wrong channels (BGRA)
    bgra = np.zeros((100, 100, 4), dtype=np.uint8)
    with pytest.raises(ValueError, match="3 channels"):
        detector.detect(bgra)


def test_detector_accepts_grayscale():
    detector = Detector()
    gray = np.full((100, 100), 255, dtype=np.uint8)

    assert detector.detect(gray) == []


def test_detector_rejects_unknown_format():
    config = AppConfig(detection=DetectionConfig(formats=("aztec",)))
    with pytest.raises(ValueError):
        Detector(config)


@pytest.mark.skipif(not _HAS_ENCODER, reason="cv2.QRCodeEncoder not available")
@pytest.mark.parametrize("multi", [True, False])
def test_detector_decodes_generated_code(multi):
    """Smoke test: a rendered QR code is decoded and located."""
    frame = _qr_frame("hello overlay")
    detector = Detector(AppConfig(detection=DetectionConfig(multi=multi)))

    detections = detector.detect(frame)

    assert [d.payload for d in detections] == ["hello overlay"]
    box = detections[0].bounding_box
    h, w = frame.shape[:2]
    # The code sits inside the white margin, plus any quiet zone the encoder adds.
    assert 0 <= box.left < box.right <= w
    assert 0 <= box.top < box.bottom <= h
    assert 50 <= box.left <= 110
    assert 50 <= box.top <= 110
