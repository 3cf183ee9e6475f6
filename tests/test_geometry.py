"""
Tests for the geometry value types.
"""

import numpy as np
import pytest

from qr_overlay.geometry import EMPTY_RECT, Dimensions, InvalidDimensions, Rect


def test_dimensions_from_shape():
    """Numpy shapes are (H, W[, C]); Dimensions is (width, height)."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    dims = Dimensions.from_shape(frame.shape)

    assert dims == Dimensions(640.0, 480.0)
    assert dims.aspect_ratio == pytest.approx(640 / 480)
    assert Dimensions.from_shape((10, 20)) == Dimensions(20.0, 10.0)


def test_dimensions_from_short_shape():
    """A 1-D shape has no width/height."""
    with pytest.raises(InvalidDimensions):
        Dimensions.from_shape((5,))


def test_dimensions_validity():
    assert Dimensions(1, 1).is_valid
    assert not Dimensions(0, 1).is_valid
    assert not Dimensions(1, -3).is_valid


def test_rect_properties():
    """Width, height and area of a plain rectangle."""
    rect = Rect(left=10, top=20, right=40, bottom=60)

    assert rect.width == 30
    assert rect.height == 40
    assert rect.area == 1200
    assert not rect.is_empty


def test_rect_from_points_bounds_polygon():
    """A rotated quadrilateral becomes its axis-aligned bounds."""
    quad = [(50, 10), (90, 50), (50, 90), (10, 50)]
    assert Rect.from_points(quad) == Rect(10, 10, 90, 90)


def test_rect_from_points_empty():
    with pytest.raises(ValueError):
        Rect.from_points([])


def test_empty_rect():
    """The 'nothing detected' rect has zero area."""
    assert EMPTY_RECT.is_empty
    assert EMPTY_RECT.to_int() == (0, 0, 0, 0)


def test_rect_to_int_rounds():
    assert Rect(1.4, 1.6, 10.5, -2.7).to_int() == (1, 2, 10, -3)
