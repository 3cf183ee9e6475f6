"""
Detector backend loading for the QR overlay scanner.

Responsibility:
    Build the OpenCV graphical-code detectors requested by the
    configuration and return them keyed by format.

Non-goals:
    - No preprocessing, decoding, or frame-level logic.
    - No automatic installation of optional OpenCV modules.
    - No fallback to alternative decoders.

Failure behavior:
    - A format whose OpenCV detector is unavailable in the installed
      build raises RuntimeError naming the missing class.
"""

import logging
from typing import Dict

import cv2

from qr_overlay.config import DetectionConfig
from qr_overlay.detection import FORMAT_BARCODE, FORMAT_QR_CODE

logger = logging.getLogger(__name__)


def load_detectors(config: DetectionConfig) -> Dict[str, object]:
    """Instantiate one OpenCV detector per configured format.

    Args:
        config: DetectionConfig listing the formats to scan for.

    Returns:
        Mapping of format name to a detector exposing OpenCV's
        detectAndDecode / detectAndDecodeMulti interface.

    Raises:
        RuntimeError: If a requested detector is missing from the
                      installed OpenCV build.
        ValueError: If a format is not recognized.
    """
    detectors: Dict[str, object] = {}

    for code_format in config.formats:
        if code_format == FORMAT_QR_CODE:
            detectors[code_format] = cv2.QRCodeDetector()
        elif code_format == FORMAT_BARCODE:
            detectors[code_format] = _load_barcode_detector()
        else:
            raise ValueError(f"Unsupported code format: '{code_format}'.")

        logger.info("Loaded %s detector.", code_format)

    return detectors


def _load_barcode_detector() -> object:
    """Create a 1D barcode detector (OpenCV >= 4.8)."""
    barcode_module = getattr(cv2, "barcode", None)
    if barcode_module is None or not hasattr(barcode_module, "BarcodeDetector"):
        raise RuntimeError(
            "cv2.barcode.BarcodeDetector is not available in this OpenCV build.\n"
            f"  Installed OpenCV: {cv2.__version__}\n"
            "  Install opencv-python>=4.8 or remove 'barcode' from detection.formats."
        )

    try:
        return barcode_module.BarcodeDetector()
    except cv2.error as e:
        raise RuntimeError(f"Failed to create barcode detector: {e}") from e
