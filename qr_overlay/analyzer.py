"""
Per-frame analysis stage: detection plus frame-to-viewport mapping.

Responsibility:
    For every frame, refresh the coordinate transform for the current
    frame/viewport pair, run the detector, and emit one OverlayResult
    per decoded code in viewport coordinates. A frame with no codes
    emits a single empty result so the renderer can clear its overlay.

Failure behavior:
    - Invalid frame dimensions or a failing detector call are logged and
      the frame is skipped: nothing is emitted and the previous overlay
      stays on screen.

Constraints:
    - One analyzer (and therefore one mapper) per frame stream.
    - Calls must be serialized by the caller.
"""

import logging
from typing import Callable, List, Optional

import numpy as np

from qr_overlay.coordinate_mapper import CoordinateMapper
from qr_overlay.detection import OverlayResult
from qr_overlay.geometry import Dimensions, InvalidDimensions

logger = logging.getLogger(__name__)

ResultCallback = Callable[[OverlayResult], None]


class QrCodeAnalyzer:
    """Runs the detector on a frame and maps its boxes onto the viewport.

    Usage:
        analyzer = QrCodeAnalyzer(detector, Dimensions(720, 1280), on_result=print)
        results = analyzer.analyze(frame)

    The detector may be any object with a detect(frame) -> list[Detection]
    method.
    """

    def __init__(
        self,
        detector,
        viewport: Dimensions,
        on_result: Optional[ResultCallback] = None,
        mapper: Optional[CoordinateMapper] = None,
    ) -> None:
        """
        Args:
            detector: Object exposing detect(frame) -> list[Detection].
            viewport: Size of the display surface in pixels.
            on_result: Called once per emitted OverlayResult.
            mapper: Mapper to use; a fresh identity mapper by default.
        """
        self._detector = detector
        self._viewport = viewport
        self._on_result = on_result
        self._mapper = mapper if mapper is not None else CoordinateMapper()

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    def set_viewport(self, viewport: Dimensions) -> None:
        """Change the destination size; applied on the next analyze() call."""
        self._viewport = viewport

    def analyze(self, frame: np.ndarray) -> List[OverlayResult]:
        """Detect codes in one upright frame and map them to the viewport.

        Args:
            frame: Upright image as a numpy array (H, W[, C]).

        Returns:
            The emitted results: one per decoded code, or a single empty
            result when nothing was found. An empty list means the frame
            was skipped.
        """
        try:
            self._mapper.update_transform(
                Dimensions.from_shape(np.shape(frame)), self._viewport
            )
        except InvalidDimensions as e:
            logger.warning("Skipping frame with invalid dimensions: %s", e)
            return []

        try:
            detections = self._detector.detect(frame)
        except (RuntimeError, ValueError, TypeError) as e:
            logger.exception("Detection failed, skipping frame: %s", e)
            return []

        results: List[OverlayResult] = []
        for det in detections:
            if det.bounding_box is None:
                logger.debug("Ignoring detection without a bounding box: %s", det)
                continue
            results.append(OverlayResult(
                payload=det.payload,
                rect=self._mapper.map_rect(det.bounding_box),
            ))

        if not results:
            results.append(OverlayResult.empty())

        return self._emit(results)

    def _emit(self, results: List[OverlayResult]) -> List[OverlayResult]:
        if self._on_result is not None:
            for result in results:
                self._on_result(result)
        return results
