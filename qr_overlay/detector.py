"""
Detector — the opaque QR/barcode detection stage.

Public contract:
    Detector.detect(frame: np.ndarray) -> list[Detection]

Bounding boxes are returned in the frame's own pixel space. Mapping
them onto a display is the job of CoordinateMapper.

Constraints:
    - Input must be a BGR (or single-channel) numpy array as returned by OpenCV.
    - Frames are assumed upright; rotation is normalized upstream.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No visualization or output writing.
    - No tracking or temporal state.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from qr_overlay.config import AppConfig, load_config
from qr_overlay.detection import Detection
from qr_overlay.detector_loader import load_detectors
from qr_overlay.postprocessor import postprocess

logger = logging.getLogger(__name__)


class Detector:
    """QR code (and optionally 1D barcode) detector built on OpenCV.

    Usage:
        detector = Detector()                      # QR codes, safe defaults
        detector = Detector(config=my_config)      # Custom formats/options
        detections = detector.detect(frame)        # BGR numpy array

    The OpenCV detectors are created once in the constructor and
    reused for every frame.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        """Initialize the detector.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (QR codes only, multi-decode).

        Raises:
            RuntimeError: If a requested detector is unavailable.
            ValueError: If configuration values are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._detectors = load_detectors(config.detection)

        logger.info(
            "Detector initialized (formats=%s, multi=%s)",
            ",".join(config.detection.formats),
            config.detection.multi,
        )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect and decode codes in a single frame.

        Args:
            frame: A BGR image (H, W, 3) or grayscale image (H, W),
                   dtype uint8.

        Returns:
            A list of Detection objects in frame pixel coordinates,
            ordered top-to-bottom then left-to-right per format.
            Empty if nothing was decoded.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame has incorrect shape or is empty.
            RuntimeError: If the underlying OpenCV call fails.
        """
        self._validate_frame(frame)

        detections: List[Detection] = []
        for code_format, backend in self._detectors.items():
            try:
                decoded, points = self._run(backend, frame)
            except cv2.error as e:
                raise RuntimeError(
                    f"{code_format} detection failed: {e}"
                ) from e

            detections.extend(postprocess(
                decoded=decoded,
                points=points,
                code_format=code_format,
                keep_undecoded=self._config.detection.keep_undecoded,
            ))

        return detections

    def _run(self, backend, frame: np.ndarray):
        """Invoke one OpenCV detector, normalizing single/multi results."""
        if self._config.detection.multi:
            ok, decoded, points, _ = backend.detectAndDecodeMulti(frame)
            if not ok:
                return (), None
            return decoded, points

        payload, points, _ = backend.detectAndDecode(frame)
        return (payload,), points

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the input frame meets the API contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected frame to be a numpy ndarray, "
                f"got {type(frame).__name__}. "
                f"Use cv2.imread() or VideoCapture.read() to obtain frames."
            )

        if frame.size == 0:
            raise ValueError(
                "Frame is empty (zero size). "
                "Ensure the input source is providing valid frames."
            )

        if frame.ndim not in (2, 3):
            raise ValueError(
                f"Expected a 2- or 3-dimensional frame, "
                f"got {frame.ndim} dimensions with shape {frame.shape}."
            )

        if frame.ndim == 3 and frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels. "
                f"Input must be a BGR image as returned by OpenCV."
            )
