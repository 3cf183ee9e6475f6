"""
Geometry value types for the QR overlay pipeline.

Responsibility:
    Define the plain value types shared by every stage: pixel
    dimensions of a frame or viewport, and axis-aligned rectangles
    expressed as left/top/right/bottom.

Non-goals:
    - No coordinate transformation (that belongs in coordinate_mapper).
    - No drawing or OpenCV types.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple


class InvalidDimensions(ValueError):
    """Raised when a frame or viewport has a non-positive width or height."""


@dataclass(frozen=True, slots=True)
class Dimensions:
    """Pixel size of a frame or viewport.

    Attributes:
        width: Width in pixels.
        height: Height in pixels.

    Positivity is not enforced here; CoordinateMapper.update_transform
    rejects invalid sizes with InvalidDimensions.
    """

    width: float
    height: float

    @classmethod
    def from_shape(cls, shape: Sequence[int]) -> "Dimensions":
        """Build from a numpy image shape (H, W) or (H, W, C)."""
        if len(shape) < 2:
            raise InvalidDimensions(
                f"Expected an image shape with at least 2 dimensions, got {tuple(shape)}."
            )
        return cls(width=float(shape[1]), height=float(shape[0]))

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def is_valid(self) -> bool:
        """True when both sides are finite and strictly positive."""
        return all(
            math.isfinite(v) and v > 0 for v in (self.width, self.height)
        )

    def as_int_tuple(self) -> Tuple[int, int]:
        """Return (width, height) rounded to whole pixels, as OpenCV expects."""
        return int(round(self.width)), int(round(self.height))


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates.

    Attributes:
        left: Left edge (x).
        top: Top edge (y).
        right: Right edge (x).
        bottom: Bottom edge (y).

    Ordering (left <= right, top <= bottom) is NOT enforced; a mapped
    rectangle only guarantees left <= right.
    """

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Rect":
        """Axis-aligned bounds of a polygon given as (x, y) pairs.

        Raises:
            ValueError: If no points are given.
        """
        pts = [(float(p[0]), float(p[1])) for p in points]
        if not pts:
            raise ValueError("Cannot build a Rect from an empty point list.")

        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return cls(left=min(xs), top=min(ys), right=max(xs), bottom=max(ys))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        """Unsigned area; a rect with swapped edges still has positive area."""
        return abs(self.width * self.height)

    @property
    def is_empty(self) -> bool:
        return self.area == 0

    def to_int(self) -> Tuple[int, int, int, int]:
        """Return (left, top, right, bottom) rounded for drawing."""
        return (
            int(round(self.left)),
            int(round(self.top)),
            int(round(self.right)),
            int(round(self.bottom)),
        )

    def to_dict(self) -> dict:
        return {
            "left": round(self.left, 2),
            "top": round(self.top, 2),
            "right": round(self.right, 2),
            "bottom": round(self.bottom, 2),
        }


# Zero-area rectangle used as the "nothing detected" overlay.
EMPTY_RECT = Rect(0.0, 0.0, 0.0, 0.0)
