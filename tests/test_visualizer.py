"""
Tests for the visualization module.
"""

import numpy as np

from qr_overlay.config import VisualizationConfig
from qr_overlay.coordinate_mapper import CoordinateMapper
from qr_overlay.detection import OverlayResult
from qr_overlay.geometry import Dimensions, Rect
from qr_overlay.visualizer import OverlayRenderer, draw_overlays, render_viewport


def _striped_frame():
    """200x100 frame: left quarter blue, right quarter green, middle black."""
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    frame[:, :50] = (255, 0, 0)
    frame[:, 150:] = (0, 255, 0)
    return frame


def test_render_viewport_crops_center():
    """A wide frame in a square viewport loses its left and right quarters."""
    frame = _striped_frame()
    viewport = Dimensions(100, 100)
    mapper = CoordinateMapper()
    mapper.update_transform(Dimensions.from_shape(frame.shape), viewport)

    canvas = render_viewport(frame, mapper, viewport)

    assert canvas.shape == (100, 100, 3)
    assert canvas.max() == 0


def test_render_viewport_scales_up():
    frame = np.zeros((50, 100, 3), dtype=np.uint8)
    viewport = Dimensions(300, 150)
    mapper = CoordinateMapper()
    mapper.update_transform(Dimensions.from_shape(frame.shape), viewport)

    assert render_viewport(frame, mapper, viewport).shape == (150, 300, 3)


def test_render_viewport_grayscale_becomes_bgr():
    frame = np.zeros((50, 50), dtype=np.uint8)
    viewport = Dimensions(60, 80)
    mapper = CoordinateMapper()
    mapper.update_transform(Dimensions.from_shape(frame.shape), viewport)

    assert render_viewport(frame, mapper, viewport).shape == (80, 60, 3)


def test_draw_overlays_does_not_modify_input():
    canvas = np.zeros((100, 100, 3), dtype=np.uint8)
    config = VisualizationConfig(show_payload=False)

    annotated = draw_overlays(canvas, [OverlayResult("x", Rect(10, 10, 50, 50))], config)

    assert canvas.max() == 0
    assert annotated is not canvas
    # Red outline (BGR) on the left edge of the box.
    assert annotated[30, 10].tolist() == [0, 0, 255]


def test_draw_overlays_ignores_empty_signal():
    canvas = np.zeros((100, 100, 3), dtype=np.uint8)

    annotated = draw_overlays(canvas, [OverlayResult.empty()], VisualizationConfig())

    assert annotated.max() == 0


def test_draw_overlays_draws_label():
    canvas = np.zeros((200, 300, 3), dtype=np.uint8)
    config = VisualizationConfig(label_background=(50, 50, 50))

    annotated = draw_overlays(
        canvas, [OverlayResult("a rather long payload " * 10, Rect(0, 0, 1, 1))], config
    )

    # Label box sits at the bottom-center and never exceeds the canvas.
    assert (annotated[150:, :, :] == 50).any()


def test_renderer_keeps_overlay_on_skipped_frame():
    renderer = OverlayRenderer(VisualizationConfig())
    code = OverlayResult("code", Rect(1, 2, 3, 4))

    renderer.update([code])
    renderer.update([])  # skipped frame

    assert renderer.current == (code,)


def test_renderer_clears_on_empty_signal():
    renderer = OverlayRenderer(VisualizationConfig())
    renderer.update([OverlayResult("code", Rect(1, 2, 3, 4))])

    renderer.update([OverlayResult.empty()])

    assert renderer.current == ()


def test_renderer_render_shape():
    renderer = OverlayRenderer(VisualizationConfig())
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    viewport = Dimensions(90, 160)
    mapper = CoordinateMapper()
    mapper.update_transform(Dimensions.from_shape(frame.shape), viewport)

    renderer.update([OverlayResult("code", mapper.map_rect(Rect(300, 200, 340, 280)))])

    assert renderer.render(frame, mapper, viewport).shape == (160, 90, 3)
