"""
Configuration management for the QR overlay scanner.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No detection logic, I/O, or coordinate mapping belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from qr_overlay.detection import FORMAT_BARCODE, FORMAT_QR_CODE

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: qr_overlay/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectionConfig:
    """Code detector settings.

    Attributes:
        formats: Code families to scan for: 'qr_code' and/or 'barcode'.
        multi: Decode every code in the frame rather than only the first.
        keep_undecoded: Keep codes that were located but not decoded
                        (reported with an empty payload).
    """

    formats: Tuple[str, ...] = (FORMAT_QR_CODE,)
    multi: bool = True
    keep_undecoded: bool = False


@dataclass(frozen=True)
class ViewportConfig:
    """Display surface the overlay is mapped onto.

    Attributes:
        width: Viewport width in pixels.
        height: Viewport height in pixels.
        order_vertical: Also reorder top/bottom of mapped boxes.
    """

    width: int = 720
    height: int = 1280
    order_vertical: bool = False


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Input source — file path, directory path, video path,
                or integer device index (as string or int).
        resize_width: Optional width to downscale input frames before detection.
                      None means no resizing.
        rotation_degrees: Clockwise rotation that makes source frames
                          upright (0, 90, 180 or 270).
    """

    source: str = "0"
    resize_width: Optional[int] = None
    rotation_degrees: int = 0


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Output mode(s). Supports multiple comma-separated values:
              'display', 'save_image', 'save_video', 'save_json', 'save_csv'.
              Example: "display,save_json"
        save_path: Directory where output artifacts are written.
    """

    mode: str = "display"
    save_path: str = "output/"


@dataclass(frozen=True)
class VisualizationConfig:
    """Overlay rendering parameters.

    Attributes:
        box_color: BGR color tuple for the code outline.
        thickness: Outline thickness in pixels.
        show_payload: Whether to render the decoded text label.
        text_color: BGR color of the label text.
        label_background: BGR color of the label box.
    """

    box_color: Tuple[int, int, int] = (0, 0, 255)
    thickness: int = 2
    show_payload: bool = True
    text_color: Tuple[int, int, int] = (255, 255, 255)
    label_background: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_FORMATS = {FORMAT_QR_CODE, FORMAT_BARCODE}
_VALID_OUTPUT_MODES = {"display", "save_image", "save_video", "save_json", "save_csv"}
_VALID_ROTATIONS = {0, 90, 180, 270}


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if not config.detection.formats:
        raise ValueError("detection.formats must name at least one format.")

    invalid_formats = set(config.detection.formats) - _VALID_FORMATS
    if invalid_formats:
        raise ValueError(
            f"Invalid detection.formats: {invalid_formats}. "
            f"Must be drawn from {_VALID_FORMATS}."
        )

    modes = set(m.strip() for m in config.output.mode.split(','))
    invalid_modes = modes - _VALID_OUTPUT_MODES
    if invalid_modes:
        raise ValueError(
            f"Invalid output.mode(s): {invalid_modes}. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    if config.viewport.width <= 0 or config.viewport.height <= 0:
        raise ValueError(
            f"viewport dimensions must be positive, "
            f"got {config.viewport.width}x{config.viewport.height}."
        )

    if config.input.rotation_degrees not in _VALID_ROTATIONS:
        raise ValueError(
            f"input.rotation_degrees must be one of {sorted(_VALID_ROTATIONS)}, "
            f"got {config.input.rotation_degrees}."
        )

    if config.input.resize_width is not None and config.input.resize_width <= 0:
        raise ValueError(
            f"input.resize_width must be positive or None, "
            f"got {config.input.resize_width}."
        )

    if config.visualization.thickness <= 0:
        raise ValueError(
            f"visualization.thickness must be positive, "
            f"got {config.visualization.thickness}."
        )


def validate_config(config: AppConfig) -> None:
    """Re-validate a config after programmatic overrides (e.g. CLI flags)."""
    _validate(config)


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _parse_bool(value) -> bool:
    """Accept YAML booleans as well as env-style strings ('true', '0', ...)."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_formats(value) -> Tuple[str, ...]:
    """Accept a YAML list or a comma-separated string."""
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip().lower() for v in value if str(v).strip())


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    if "formats" in raw:
        kwargs["formats"] = _parse_formats(raw["formats"])
    if "multi" in raw:
        kwargs["multi"] = _parse_bool(raw["multi"])
    if "keep_undecoded" in raw:
        kwargs["keep_undecoded"] = _parse_bool(raw["keep_undecoded"])
    return DetectionConfig(**kwargs)


def _build_viewport_config(raw: dict) -> ViewportConfig:
    """Build ViewportConfig from a raw YAML dict."""
    kwargs = {}
    if "width" in raw:
        kwargs["width"] = int(raw["width"])
    if "height" in raw:
        kwargs["height"] = int(raw["height"])
    if "order_vertical" in raw:
        kwargs["order_vertical"] = _parse_bool(raw["order_vertical"])
    return ViewportConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if "source" in raw:
        kwargs["source"] = str(raw["source"])
    if "resize_width" in raw:
        val = raw["resize_width"]
        kwargs["resize_width"] = int(val) if val is not None else None
    if "rotation_degrees" in raw:
        kwargs["rotation_degrees"] = int(raw["rotation_degrees"])
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    return OutputConfig(**kwargs)


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    kwargs = {}
    if "box_color" in raw:
        kwargs["box_color"] = _parse_tuple(raw["box_color"], 3, int)
    if "thickness" in raw:
        kwargs["thickness"] = int(raw["thickness"])
    if "show_payload" in raw:
        kwargs["show_payload"] = _parse_bool(raw["show_payload"])
    if "text_color" in raw:
        kwargs["text_color"] = _parse_tuple(raw["text_color"], 3, int)
    if "label_background" in raw:
        kwargs["label_background"] = _parse_tuple(raw["label_background"], 3, int)
    return VisualizationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "QR_OVERLAY_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        QR_OVERLAY_VIEWPORT_WIDTH=1080
        QR_OVERLAY_DETECTION_FORMATS=qr_code,barcode
    """
    env_map = {
        f"{_ENV_PREFIX}DETECTION_FORMATS": ("detection", "formats"),
        f"{_ENV_PREFIX}DETECTION_MULTI": ("detection", "multi"),
        f"{_ENV_PREFIX}DETECTION_KEEP_UNDECODED": ("detection", "keep_undecoded"),
        f"{_ENV_PREFIX}VIEWPORT_WIDTH": ("viewport", "width"),
        f"{_ENV_PREFIX}VIEWPORT_HEIGHT": ("viewport", "height"),
        f"{_ENV_PREFIX}VIEWPORT_ORDER_VERTICAL": ("viewport", "order_vertical"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}INPUT_RESIZE_WIDTH": ("input", "resize_width"),
        f"{_ENV_PREFIX}INPUT_ROTATION_DEGREES": ("input", "rotation_degrees"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.is_absolute():
            resolved = _PROJECT_ROOT / resolved

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        detection=_build_detection_config(raw.get("detection", {})),
        viewport=_build_viewport_config(raw.get("viewport", {})),
        input=_build_input_config(raw.get("input", {})),
        output=_build_output_config(raw.get("output", {})),
        visualization=_build_visualization_config(raw.get("visualization", {})),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
