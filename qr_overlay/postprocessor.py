"""
Postprocessing for the code detection pipeline.

Responsibility:
    Turn the raw output of an OpenCV graphical-code detector (decoded
    strings plus quadrilateral corner points) into a list of Detection
    objects with axis-aligned bounding boxes in frame pixels.

Non-goals:
    - No drawing, saving, or display logic.
    - No detector construction or inference.
    - No mapping into viewport space.

Hard-coded:
    - Corner point layout: (N, 4, 2) float array, one quadrilateral per
      code, matching decoded strings by index. A single-code detector
      call may return (4, 2) or (1, 4, 2).
"""

from typing import List, Optional, Sequence

import numpy as np

from qr_overlay.detection import FORMAT_QR_CODE, Detection
from qr_overlay.geometry import Rect


def postprocess(
    decoded: Sequence[str],
    points: Optional[np.ndarray],
    code_format: str = FORMAT_QR_CODE,
    keep_undecoded: bool = False,
) -> List[Detection]:
    """Convert raw detector output into Detection objects.

    Args:
        decoded: Decoded payloads, one per located code. An empty
                 string means the code was located but not decoded.
        points: Corner points, shape (N, 4, 2), or None when nothing
                was located.
        code_format: Format tag stored on each Detection.
        keep_undecoded: Keep located-but-undecoded codes with an empty payload.

    Returns:
        Detections ordered top-to-bottom, then left-to-right.
        Empty list if nothing usable was found.
    """
    if points is None:
        return []

    quads = np.asarray(points, dtype=np.float32).reshape(-1, 4, 2)
    detections: List[Detection] = []

    for payload, quad in zip(decoded, quads):
        payload = payload or ""

        if not payload and not keep_undecoded:
            continue

        box = Rect.from_points(quad.tolist())

        # Skip degenerate boxes
        if box.is_empty:
            continue

        detections.append(Detection(
            payload=payload,
            bounding_box=box,
            format=code_format,
        ))

    # Deterministic ordering regardless of detector internals
    detections.sort(key=lambda d: (d.bounding_box.top, d.bounding_box.left))

    return detections
