"""
Preprocessing for the QR overlay pipeline.

Responsibility:
    Bring raw source frames into the form the detector and the
    coordinate mapper expect: upright (rotation hint applied) and
    optionally downscaled.

Non-goals:
    - No frame acquisition or I/O.
    - No detection or coordinate mapping.

Hard-coded:
    - Rotation hints are clockwise quarter turns, the convention camera
      stacks use for "rotate the buffer by N degrees to display it upright".
"""

from typing import Optional

import cv2
import numpy as np

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def normalize_rotation(frame: np.ndarray, rotation_degrees: int) -> np.ndarray:
    """Rotate a frame clockwise so that it is upright.

    Args:
        frame: Input image as a numpy array (H, W[, C]).
        rotation_degrees: 0, 90, 180 or 270. Negative or >= 360 values
                          are reduced modulo 360.

    Returns:
        The rotated frame. The input is returned unchanged for 0.

    Raises:
        ValueError: If the frame is empty or the rotation is not a
                    quarter turn.
    """
    if frame is None or frame.size == 0:
        raise ValueError(
            "Cannot rotate an empty frame. "
            "Ensure the input source is providing valid frames."
        )

    degrees = rotation_degrees % 360
    if degrees == 0:
        return frame

    if degrees not in _ROTATIONS:
        raise ValueError(
            f"Rotation must be a multiple of 90 degrees, got {rotation_degrees}."
        )

    return cv2.rotate(frame, _ROTATIONS[degrees])


def resize_to_width(frame: np.ndarray, width: Optional[int]) -> np.ndarray:
    """Downscale a frame to the given width, preserving aspect ratio.

    Frames already narrower than `width`, or a width of None, are
    returned unchanged.
    """
    if width is None:
        return frame

    h, w = frame.shape[:2]
    if w <= width:
        return frame

    scale = width / w
    new_h = max(1, int(h * scale))
    return cv2.resize(frame, (width, new_h), interpolation=cv2.INTER_AREA)
