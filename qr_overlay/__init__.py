"""
QR Overlay — live QR/barcode scanning with viewport-aligned overlays.

Public API:
    - CoordinateMapper: Maps boxes from frame pixels to viewport pixels.
    - Detector: Decodes QR codes (and optionally barcodes) in a frame.
    - QrCodeAnalyzer: Per-frame stage wiring the two together.
    - Dimensions, Rect, InvalidDimensions: Geometry value types.
    - Detection, OverlayResult: Result data transfer objects.

Usage:
    from qr_overlay import Detector, QrCodeAnalyzer, Dimensions

    analyzer = QrCodeAnalyzer(Detector(), Dimensions(720, 1280))
    results = analyzer.analyze(frame)
"""

from qr_overlay.analyzer import QrCodeAnalyzer
from qr_overlay.coordinate_mapper import CoordinateMapper, MappingState
from qr_overlay.detection import Detection, OverlayResult
from qr_overlay.detector import Detector
from qr_overlay.geometry import EMPTY_RECT, Dimensions, InvalidDimensions, Rect

__all__ = [
    "CoordinateMapper",
    "MappingState",
    "Detector",
    "QrCodeAnalyzer",
    "Detection",
    "OverlayResult",
    "Dimensions",
    "Rect",
    "EMPTY_RECT",
    "InvalidDimensions",
]
