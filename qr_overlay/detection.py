"""
Detection data transfer objects.

This module defines the two result types that flow through the pipeline:

    - Detection: one decoded code in FRAME space, returned by Detector.detect().
    - OverlayResult: one emission to the renderer in VIEWPORT space,
      produced by QrCodeAnalyzer.analyze().

Both are frozen containers with no behavior beyond data access.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No coordinate transformation (that belongs in coordinate_mapper).
"""

from dataclasses import dataclass
from typing import Optional

from qr_overlay.geometry import EMPTY_RECT, Rect

FORMAT_QR_CODE = "qr_code"
FORMAT_BARCODE = "barcode"


@dataclass(frozen=True, slots=True)
class Detection:
    """A single decoded code with its bounding box.

    Attributes:
        payload: Decoded text. May be empty when the code was located
                 but could not be decoded.
        bounding_box: Axis-aligned box in frame pixels, or None when the
                      detector reported no location.
        format: Code family, FORMAT_QR_CODE or FORMAT_BARCODE.
    """

    payload: str
    bounding_box: Optional[Rect]
    format: str = FORMAT_QR_CODE


@dataclass(frozen=True, slots=True)
class OverlayResult:
    """What the renderer should draw for one detection.

    Attributes:
        payload: Decoded text to display. Empty for the "nothing
                 detected" signal.
        rect: Box in viewport pixels. Guaranteed left <= right only.

    A frame with no detections still yields exactly one result,
    OverlayResult.empty(), so the renderer can clear a stale overlay.
    """

    payload: str
    rect: Rect

    @classmethod
    def empty(cls) -> "OverlayResult":
        return cls(payload="", rect=EMPTY_RECT)

    @property
    def is_empty(self) -> bool:
        return not self.payload and self.rect.is_empty

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {"payload": self.payload, **self.rect.to_dict()}
