"""
Visualization for the QR overlay pipeline.

Responsibility:
    Build the viewport image the user sees (the frame scaled to cover
    the viewport and center-cropped) and draw the mapped code outlines
    and decoded text on top of it.

Non-goals:
    - No file writing or detection logic.
    - No coordinate math beyond what CoordinateMapper provides.
"""

import math
from typing import Iterable, List, Sequence, Tuple

import cv2
import numpy as np

from qr_overlay.config import VisualizationConfig
from qr_overlay.coordinate_mapper import CoordinateMapper
from qr_overlay.detection import OverlayResult
from qr_overlay.geometry import Dimensions

# Hard-coded rendering constants (cosmetic internals, not user-facing)
_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.7
_FONT_THICKNESS = 1
_LABEL_PADDING = 8
_LABEL_MARGIN = 16
_ELLIPSIS = "..."
_WINDOW_NAME = "QR Scanner"


def render_viewport(
    frame: np.ndarray,
    mapper: CoordinateMapper,
    viewport: Dimensions,
) -> np.ndarray:
    """Scale a frame to fill the viewport, cropping the overflow evenly.

    The mapper must already hold the transform for this frame and
    viewport, so the canvas lines up with boxes from mapper.map_rect().

    Args:
        frame: Upright BGR or grayscale image.
        mapper: Mapper updated for (frame size, viewport).
        viewport: Destination size in pixels.

    Returns:
        A new BGR image of shape (viewport.height, viewport.width, 3).
    """
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)

    frame_h, frame_w = frame.shape[:2]
    crop = mapper.viewport_crop(viewport)

    left = max(0, int(math.floor(crop.left)))
    top = max(0, int(math.floor(crop.top)))
    right = min(frame_w, int(math.ceil(crop.right)))
    bottom = min(frame_h, int(math.ceil(crop.bottom)))

    visible = frame[top:bottom, left:right]
    return cv2.resize(
        visible, viewport.as_int_tuple(), interpolation=cv2.INTER_LINEAR
    )


def draw_overlays(
    canvas: np.ndarray,
    results: Iterable[OverlayResult],
    config: VisualizationConfig,
) -> np.ndarray:
    """Draw code outlines and payload labels onto a viewport canvas.

    Args:
        canvas: Viewport-sized BGR image (not modified; a copy is returned).
        results: Overlay results in viewport coordinates. Empty results
                 are ignored.
        config: Visualization parameters.

    Returns:
        A new BGR numpy array with the overlays drawn.
    """
    annotated = canvas.copy()
    visible = [r for r in results if not r.is_empty]

    for result in visible:
        left, top, right, bottom = result.rect.to_int()
        cv2.rectangle(
            annotated,
            (left, top),
            (right, bottom),
            color=config.box_color,
            thickness=config.thickness,
        )

    if config.show_payload:
        payloads = [r.payload for r in visible if r.payload]
        _draw_labels(annotated, payloads, config)

    return annotated


def _draw_labels(
    canvas: np.ndarray,
    payloads: Sequence[str],
    config: VisualizationConfig,
) -> None:
    """Stack payload labels upward from the bottom-center of the canvas."""
    canvas_h, canvas_w = canvas.shape[:2]
    max_text_w = canvas_w - 2 * (_LABEL_MARGIN + _LABEL_PADDING)
    baseline_y = canvas_h - _LABEL_MARGIN - _LABEL_PADDING

    for payload in reversed(payloads):
        text, (text_w, text_h) = _fit_text(payload, max_text_w)
        x = (canvas_w - text_w) // 2

        cv2.rectangle(
            canvas,
            (x - _LABEL_PADDING, baseline_y - text_h - _LABEL_PADDING),
            (x + text_w + _LABEL_PADDING, baseline_y + _LABEL_PADDING),
            color=config.label_background,
            thickness=cv2.FILLED,
        )
        cv2.putText(
            canvas,
            text,
            (x, baseline_y),
            _FONT,
            _FONT_SCALE,
            config.text_color,
            _FONT_THICKNESS,
            cv2.LINE_AA,
        )

        baseline_y -= text_h + 2 * _LABEL_PADDING + _LABEL_MARGIN // 2
        if baseline_y - text_h < 0:
            break


def _fit_text(text: str, max_width: int) -> Tuple[str, Tuple[int, int]]:
    """Truncate text with an ellipsis until it fits max_width pixels."""
    candidate = text
    while True:
        (w, h), _ = cv2.getTextSize(candidate, _FONT, _FONT_SCALE, _FONT_THICKNESS)
        if w <= max_width or len(text) == 0:
            return candidate, (w, h)
        text = text[:-1]
        candidate = text + _ELLIPSIS


class OverlayRenderer:
    """Holds the overlay currently on screen and renders viewport frames.

    The overlay only changes when update() receives results: an empty
    signal clears it, real results replace it, and a skipped frame
    (no results at all) leaves the previous overlay in place.
    """

    def __init__(self, config: VisualizationConfig) -> None:
        self._config = config
        self._current: List[OverlayResult] = []

    @property
    def current(self) -> Tuple[OverlayResult, ...]:
        return tuple(self._current)

    def update(self, results: Sequence[OverlayResult]) -> None:
        if not results:
            return
        self._current = [r for r in results if not r.is_empty]

    def render(
        self,
        frame: np.ndarray,
        mapper: CoordinateMapper,
        viewport: Dimensions,
    ) -> np.ndarray:
        """Return the viewport image with the current overlay drawn."""
        canvas = render_viewport(frame, mapper, viewport)
        return draw_overlays(canvas, self._current, self._config)


def show_frame(canvas: np.ndarray) -> int:
    """Show a rendered viewport in a window and return the key press.

    Returns:
        The key code (int) pressed during waitKey, or 255 if no key.
    """
    cv2.imshow(_WINDOW_NAME, canvas)
    return cv2.waitKey(1) & 0xFF
