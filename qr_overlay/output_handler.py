"""
Output handling for the QR overlay pipeline.

Responsibility:
    Render each frame into the viewport with the current overlay and
    route it to the configured sinks: display window, saved images,
    video file, JSON, or CSV. Multiple sinks can be active at once.

Non-goals:
    - No detection or coordinate math.
    - No input acquisition.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set

import cv2
import numpy as np

from qr_overlay.config import AppConfig, get_project_root
from qr_overlay.coordinate_mapper import CoordinateMapper
from qr_overlay.detection import OverlayResult
from qr_overlay.geometry import Dimensions
from qr_overlay.serializer import save_csv, save_json
from qr_overlay.visualizer import OverlayRenderer, show_frame

logger = logging.getLogger(__name__)

_QUIT_KEYS = {ord("q"), 27}  # 'q' or ESC
_VIDEO_FPS = 20.0


class OutputHandler:
    """Routes rendered viewport frames and overlay results to sinks.

    Supported modes (comma-separated in config.output.mode):
        - 'display': Show the viewport in an OpenCV window.
        - 'save_image': Write each rendered viewport to a JPEG file.
        - 'save_video': Append each rendered viewport to a video file.
        - 'save_json': Accumulate results, write JSON on finalize.
        - 'save_csv': Accumulate results, write CSV on finalize.

    Usage:
        handler = OutputHandler(config)
        handler.process_frame(frame_id, frame, analyzer.mapper, results)
        ...
        handler.finalize()  # Flush any buffered output
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._viewport = Dimensions(config.viewport.width, config.viewport.height)
        self._renderer = OverlayRenderer(config.visualization)
        self._video_writer: Optional[cv2.VideoWriter] = None

        self._modes: Set[str] = set(m.strip() for m in config.output.mode.split(','))
        self._results_buffer: Dict[int, List[OverlayResult]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path

        if self._modes & {'save_image', 'save_video', 'save_json', 'save_csv'}:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info(
            "OutputHandler initialized: modes=%s, viewport=%dx%d, save_path=%s",
            self._modes, config.viewport.width, config.viewport.height, self._save_path,
        )

    @property
    def renderer(self) -> OverlayRenderer:
        return self._renderer

    def process_frame(
        self,
        frame_id: int,
        frame: np.ndarray,
        mapper: CoordinateMapper,
        results: List[OverlayResult],
    ) -> bool:
        """Render one frame and push it through the active sinks.

        Args:
            frame_id: Frame index.
            frame: Upright frame the results were computed on.
            mapper: Mapper holding the transform for this frame.
            results: Results emitted by the analyzer for this frame.
                     An empty list (skipped frame) keeps the previous overlay.

        Returns:
            True to continue processing, False if the user asked to quit.
        """
        self._renderer.update(results)

        if results and self._modes & {'save_json', 'save_csv'}:
            self._results_buffer[frame_id] = list(results)

        if not self._modes & {'display', 'save_image', 'save_video'}:
            return True

        canvas = self._renderer.render(frame, mapper, self._viewport)
        should_continue = True

        if 'display' in self._modes:
            key = show_frame(canvas)
            if key in _QUIT_KEYS:
                logger.info("Quit signal received (key press).")
                should_continue = False

        if 'save_image' in self._modes:
            output_file = self._save_path / f"frame_{frame_id:06d}.jpg"
            cv2.imwrite(str(output_file), canvas)
            logger.debug("Saved frame %d to %s", frame_id, output_file)

        if 'save_video' in self._modes:
            self._write_video(canvas)

        return should_continue

    def _write_video(self, canvas: np.ndarray) -> None:
        if self._video_writer is None:
            output_file = str(self._save_path / "output.avi")
            h, w = canvas.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"XVID")
            self._video_writer = cv2.VideoWriter(output_file, fourcc, _VIDEO_FPS, (w, h))
            logger.info("Video writer opened: %s (%dx%d)", output_file, w, h)

        self._video_writer.write(canvas)

    def finalize(self) -> None:
        """Flush buffered output and release resources.

        Must be called after all frames have been processed.
        """
        if 'save_json' in self._modes and self._results_buffer:
            save_json(self._results_buffer, str(self._save_path / "codes.json"))

        if 'save_csv' in self._modes and self._results_buffer:
            save_csv(self._results_buffer, str(self._save_path / "codes.csv"))

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logger.info("Video writer released.")

        if 'display' in self._modes:
            cv2.destroyAllWindows()

        self._results_buffer.clear()
        logger.info("OutputHandler finalized.")
