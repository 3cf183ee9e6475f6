"""
Input handling for the QR overlay pipeline (the frame source).

Responsibility:
    Abstract away frame acquisition from images, video files, image
    directories, and webcam streams. Provides a uniform iterator
    interface yielding upright (frame_id, frame) tuples.

Non-goals:
    - No detection, coordinate mapping, drawing, or output writing.
    - No infinite retry on bad sources.
    - No implicit fallback between source types.

Robustness:
    - Validates the source at initialization time.
    - Logs and skips unreadable frames (never crashes the pipeline).
    - Releases resources on cleanup.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import cv2
import numpy as np

from qr_overlay.config import InputConfig
from qr_overlay.preprocessor import normalize_rotation, resize_to_width

logger = logging.getLogger(__name__)

# Image extensions recognized by this handler
_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}

# Video extensions recognized by this handler
_VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv"}


class InputHandler:
    """Uniform frame iterator for images, videos, and webcam streams.

    The source type is auto-detected at initialization:
        - Integer or digit string  → webcam device index
        - File with image extension → single image
        - File with video extension → video file
        - Directory path → all images in directory (sorted)

    Usage:
        with InputHandler.from_config(config.input) as frames:
            for frame_id, frame in frames:
                ...

    Invalid frames are logged and skipped. The iterator never raises
    on a single bad frame.
    """

    def __init__(
        self,
        source: Union[str, int],
        resize_width: Optional[int] = None,
        rotation_degrees: int = 0,
    ) -> None:
        """Initialize the input handler and validate the source.

        Args:
            source: Input source — file path, directory path, video path,
                    or integer device index (or digit string like "0").
            resize_width: Optional width to downscale frames. Aspect ratio
                          is preserved. None means no resizing.
            rotation_degrees: Clockwise rotation applied to every frame so
                              that it is upright (0, 90, 180 or 270).

        Raises:
            FileNotFoundError: If a file/directory source does not exist.
            ValueError: If the source type cannot be determined, or the
                        rotation is not a quarter turn.
            RuntimeError: If a video/webcam source cannot be opened.
        """
        self._cap: Optional[cv2.VideoCapture] = None
        self._resize_width = resize_width
        self._rotation_degrees = rotation_degrees

        if rotation_degrees % 90 != 0:
            raise ValueError(
                f"rotation_degrees must be a multiple of 90, got {rotation_degrees}."
            )

        # Determine source type
        source_str = str(source).strip()

        if source_str.isdigit():
            # Webcam device index
            self._mode = "webcam"
            self._device_index = int(source_str)
            self._open_video_capture(self._device_index)
        elif os.path.isfile(source_str):
            ext = Path(source_str).suffix.lower()
            if ext in _IMAGE_EXTENSIONS:
                self._mode = "image"
                self._image_paths = [source_str]
            elif ext in _VIDEO_EXTENSIONS:
                self._mode = "video"
                self._open_video_capture(source_str)
            else:
                raise ValueError(
                    f"Unrecognized file extension: '{ext}' for source '{source_str}'. "
                    f"Supported images: {_IMAGE_EXTENSIONS}. "
                    f"Supported videos: {_VIDEO_EXTENSIONS}."
                )
        elif os.path.isdir(source_str):
            self._mode = "directory"
            self._image_paths = sorted(
                str(p)
                for p in Path(source_str).iterdir()
                if p.suffix.lower() in _IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(
                    f"No image files found in directory: '{source_str}'. "
                    f"Supported extensions: {_IMAGE_EXTENSIONS}."
                )
            logger.info("Found %d images in directory: %s", len(self._image_paths), source_str)
        else:
            raise FileNotFoundError(
                f"Input source not found: '{source_str}'. "
                f"Provide a valid file path, directory, or device index."
            )

        logger.info(
            "InputHandler initialized: mode=%s, source=%s, rotation=%d",
            self._mode, source_str, rotation_degrees,
        )

    @classmethod
    def from_config(cls, config: InputConfig) -> "InputHandler":
        """Build a handler from the input section of the app config."""
        return cls(
            source=config.source,
            resize_width=config.resize_width,
            rotation_degrees=config.rotation_degrees,
        )

    @property
    def mode(self) -> str:
        """Detected source type: image, directory, video or webcam."""
        return self._mode

    def _open_video_capture(self, source: Union[str, int]) -> None:
        """Open a VideoCapture and validate it.

        Raises:
            RuntimeError: If the source cannot be opened.
        """
        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            source_desc = (
                f"webcam device {source}" if isinstance(source, int)
                else f"video file '{source}'"
            )
            raise RuntimeError(
                f"Failed to open {source_desc}. "
                f"Ensure the source exists and is accessible."
            )

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Iterate over frames from the configured source.

        Yields:
            Tuples of (frame_id, frame) where frame_id is a 0-based
            index and frame is an upright BGR numpy array.

        Invalid frames are logged and skipped (never raises mid-iteration).
        """
        if self._mode in ("image", "directory"):
            yield from self._iterate_images()
        elif self._mode in ("video", "webcam"):
            yield from self._iterate_video()

    def _iterate_images(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield frames from a list of image file paths."""
        for idx, path in enumerate(self._image_paths):
            frame = cv2.imread(path)
            if frame is None:
                logger.warning(
                    "Skipping unreadable image (frame_id=%d): %s", idx, path
                )
                continue

            yield idx, self._prepare(frame)

    def _iterate_video(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield frames from a video file or webcam stream."""
        frame_id = 0
        consecutive_failures = 0
        max_consecutive_failures = 30  # Safety valve for dead streams

        while True:
            ret, frame = self._cap.read()

            if not ret or frame is None:
                consecutive_failures += 1
                if self._mode == "video":
                    # End of video file
                    logger.info("End of video reached at frame %d.", frame_id)
                    break
                if consecutive_failures >= max_consecutive_failures:
                    logger.error(
                        "Webcam produced %d consecutive failed reads. "
                        "Stopping to avoid infinite loop.",
                        max_consecutive_failures,
                    )
                    break
                logger.warning(
                    "Failed to read frame %d from webcam, skipping.", frame_id
                )
                frame_id += 1
                continue

            consecutive_failures = 0
            yield frame_id, self._prepare(frame)
            frame_id += 1

    def _prepare(self, frame: np.ndarray) -> np.ndarray:
        """Rotate the frame upright, then apply the optional downscale."""
        frame = normalize_rotation(frame, self._rotation_degrees)
        return resize_to_width(frame, self._resize_width)

    def release(self) -> None:
        """Release any held resources (video capture handles)."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("VideoCapture released.")

    def __enter__(self) -> "InputHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __del__(self) -> None:
        """Safety net: release resources if not explicitly released."""
        self.release()
