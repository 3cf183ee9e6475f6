"""
QR Overlay CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the frame source, analyzer and output sinks, and run the main loop.

Usage:
    python main.py --source 0                              # Webcam
    python main.py --source 0 --viewport 1080x1920         # Phone-sized view
    python main.py --source clip.mp4 --rotation 90 --output-mode save_video
    python main.py --source images/ --output-mode save_json,save_csv
    python main.py --config my_config.yaml

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time
from typing import Tuple

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from qr_overlay.analyzer import QrCodeAnalyzer
from qr_overlay.config import load_config, validate_config
from qr_overlay.coordinate_mapper import CoordinateMapper
from qr_overlay.detector import Detector
from qr_overlay.geometry import Dimensions
from qr_overlay.input_handler import InputHandler
from qr_overlay.output_handler import OutputHandler


def _parse_viewport(value: str) -> Tuple[int, int]:
    """Parse 'WIDTHxHEIGHT' into a (width, height) tuple."""
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Viewport must look like 720x1280, got '{value}'."
        )
    return width, height


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="QR Overlay — live QR/barcode scanner with aligned overlays",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--source",
        type=str,
        help="Input source: '0' for webcam, path to image/video file, or directory.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--viewport",
        type=_parse_viewport,
        help="Viewport size as WIDTHxHEIGHT. Overrides config.",
    )
    parser.add_argument(
        "--rotation",
        type=int,
        choices=[0, 90, 180, 270],
        help="Clockwise rotation that makes source frames upright. Overrides config.",
    )
    parser.add_argument(
        "--formats",
        type=str,
        help="Comma-separated code formats: qr_code, barcode. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Output mode(s). Use comma-separated values for multiple outputs: "
             "display, save_image, save_video, save_json, save_csv. "
             "Example: 'display,save_json'. Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Path/directory for output artifacts. Overrides config.",
    )

    return parser.parse_args()


def main() -> int:
    """Main execution loop."""
    args = parse_args()

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config)

        # Frozen dataclasses: apply CLI overrides with object.__setattr__
        if args.source is not None:
            object.__setattr__(config.input, "source", args.source)

        if args.rotation is not None:
            object.__setattr__(config.input, "rotation_degrees", args.rotation)

        if args.viewport is not None:
            object.__setattr__(config.viewport, "width", args.viewport[0])
            object.__setattr__(config.viewport, "height", args.viewport[1])

        if args.formats is not None:
            formats = tuple(f.strip().lower() for f in args.formats.split(",") if f.strip())
            object.__setattr__(config.detection, "formats", formats)

        if args.output_mode is not None:
            object.__setattr__(config.output, "mode", args.output_mode)

        if args.output_path is not None:
            object.__setattr__(config.output, "save_path", args.output_path)

        validate_config(config)
        logger.info("Configuration active for this run.")

    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = Detector(config)
        analyzer = QrCodeAnalyzer(
            detector,
            viewport=Dimensions(config.viewport.width, config.viewport.height),
            mapper=CoordinateMapper(order_vertical=config.viewport.order_vertical),
        )
        input_handler = InputHandler.from_config(config.input)
        output_handler = OutputHandler(config)

    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    # 3. Processing Loop
    logger.info("Starting processing loop. Press 'q' or ESC to quit in display mode.")

    frame_count = 0
    last_payloads: Tuple[str, ...] = ()
    start_time = time.perf_counter()

    try:
        for frame_id, frame in input_handler:
            frame_count += 1

            results = analyzer.analyze(frame)

            payloads = tuple(r.payload for r in results if not r.is_empty)
            if results and payloads != last_payloads:
                if payloads:
                    logger.info("Frame %d: decoded %s", frame_id, ", ".join(payloads))
                last_payloads = payloads

            if frame_count % 30 == 0:
                logger.info("Processed %d frames...", frame_count)

            should_continue = output_handler.process_frame(
                frame_id, frame, analyzer.mapper, results
            )
            if not should_continue:
                logger.info("Stopping loop per user request.")
                break

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        return 1
    finally:
        # 4. Cleanup
        elapsed = time.perf_counter() - start_time
        fps = frame_count / elapsed if elapsed > 0 else 0.0

        input_handler.release()
        output_handler.finalize()

        logger.info(
            "Processing finished. Total frames: %d. Avg FPS: %.2f.",
            frame_count, fps
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
