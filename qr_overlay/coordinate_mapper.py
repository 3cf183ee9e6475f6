"""
Frame-to-viewport coordinate mapping.

Responsibility:
    Map rectangles and points from the analyzed frame's pixel space
    into the viewport's pixel space under a fill-center ("cover")
    scaling policy: the frame is scaled until it covers the whole
    viewport and the excess is cropped equally on both sides.

Constraints:
    - Pure, synchronous arithmetic. No I/O and no logging per call.
    - One small mutable state record, updated in place.
    - Not thread-safe: use one mapper per frame stream.

Non-goals:
    - No rotation handling (frames are normalized upright upstream).
    - No clamping to the viewport; mapped boxes may extend past the edges.
"""

from dataclasses import dataclass, replace
from typing import Tuple

from qr_overlay.geometry import Dimensions, InvalidDimensions, Rect


@dataclass(slots=True)
class MappingState:
    """Scale and offsets for the current frame/viewport pair.

    Attributes:
        scale_factor: Multiplier from frame pixels to viewport pixels.
        width_offset: Horizontal crop subtracted after scaling.
        height_offset: Vertical crop subtracted after scaling.
    """

    scale_factor: float = 1.0
    width_offset: float = 0.0
    height_offset: float = 0.0


class CoordinateMapper:
    """Maps detections from frame space to viewport space.

    Until update_transform() is called the mapping is the identity.

    Usage:
        mapper = CoordinateMapper()
        mapper.update_transform(Dimensions(640, 480), Dimensions(720, 1280))
        box = mapper.map_rect(Rect(100, 120, 220, 240))
    """

    def __init__(self, order_vertical: bool = False) -> None:
        """
        Args:
            order_vertical: Also apply min/max ordering to top/bottom in
                            map_rect(). Off by default: only the horizontal
                            edges are reordered.
        """
        self._state = MappingState()
        self._order_vertical = order_vertical

    @property
    def state(self) -> MappingState:
        """Return a copy of the current mapping state."""
        return replace(self._state)

    def update_transform(self, frame: Dimensions, viewport: Dimensions) -> None:
        """Recompute scale and offsets for a frame/viewport pair.

        Args:
            frame: Size of the analyzed frame in pixels.
            viewport: Size of the display surface in pixels.

        Raises:
            InvalidDimensions: If either size has a non-positive or
                               non-finite side. The previous state is kept.
        """
        _require_valid(frame, "frame")
        _require_valid(viewport, "viewport")

        viewport_aspect = viewport.aspect_ratio
        frame_aspect = frame.aspect_ratio

        state = self._state
        if viewport_aspect > frame_aspect:
            # Width matches, scaled height overflows the viewport.
            state.scale_factor = viewport.width / frame.width
            state.width_offset = 0.0
            state.height_offset = (viewport.width / frame_aspect - viewport.height) / 2
        else:
            # Height matches, scaled width overflows the viewport.
            state.scale_factor = viewport.height / frame.height
            state.width_offset = (viewport.height * frame_aspect - viewport.width) / 2
            state.height_offset = 0.0

    def map_x(self, x: float) -> float:
        return x * self._state.scale_factor - self._state.width_offset

    def map_y(self, y: float) -> float:
        return y * self._state.scale_factor - self._state.height_offset

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        """Map a single (x, y) point from frame space to viewport space."""
        return self.map_x(x), self.map_y(y)

    def map_rect(self, rect: Rect) -> Rect:
        """Map a rectangle from frame space to viewport space.

        Left and right are reordered so that left <= right. Top and
        bottom are mapped as-is unless order_vertical was requested.
        """
        x0 = self.map_x(rect.left)
        x1 = self.map_x(rect.right)
        top = self.map_y(rect.top)
        bottom = self.map_y(rect.bottom)

        if self._order_vertical:
            top, bottom = min(top, bottom), max(top, bottom)

        return Rect(left=min(x0, x1), top=top, right=max(x0, x1), bottom=bottom)

    def viewport_crop(self, viewport: Dimensions) -> Rect:
        """Region of the frame, in frame pixels, visible in the viewport.

        This is the inverse of the current transform applied to the
        viewport's corners, i.e. the center crop a fill-scaled preview shows.
        """
        _require_valid(viewport, "viewport")
        scale = self._state.scale_factor
        return Rect(
            left=self._state.width_offset / scale,
            top=self._state.height_offset / scale,
            right=(self._state.width_offset + viewport.width) / scale,
            bottom=(self._state.height_offset + viewport.height) / scale,
        )


def _require_valid(dims: Dimensions, label: str) -> None:
    if not dims.is_valid:
        raise InvalidDimensions(
            f"{label} dimensions must be positive and finite, "
            f"got {dims.width}x{dims.height}."
        )
