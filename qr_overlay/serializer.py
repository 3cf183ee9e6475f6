"""
Serialization for the QR overlay pipeline.

Responsibility:
    Export overlay results (decoded payloads with their boxes in
    viewport coordinates) to JSON or CSV for offline inspection.

Non-goals:
    - No rendering, display, or detection logic.
    - No streaming output — writes complete files on finalize.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List

from qr_overlay.detection import OverlayResult

logger = logging.getLogger(__name__)

_CSV_FIELDS = ["frame_id", "payload", "left", "top", "right", "bottom"]


def save_json(
    results_by_frame: Dict[int, List[OverlayResult]],
    output_path: str,
) -> None:
    """Export overlay results to a JSON file.

    Output schema:
        {
            "frames": [
                {
                    "frame_id": 0,
                    "codes": [
                        {"payload": "...", "left": ..., "top": ..., "right": ..., "bottom": ...}
                    ]
                }
            ],
            "total_frames": N,
            "total_codes": M
        }

    Frames whose only result is the empty signal are written with an
    empty "codes" list.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    frames = []
    total_codes = 0

    for frame_id in sorted(results_by_frame):
        codes = [r.to_dict() for r in results_by_frame[frame_id] if not r.is_empty]
        total_codes += len(codes)
        frames.append({"frame_id": frame_id, "codes": codes})

    payload = {
        "frames": frames,
        "total_frames": len(frames),
        "total_codes": total_codes,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    logger.info(
        "JSON output saved: %s (%d frames, %d codes)",
        output_path, len(frames), total_codes,
    )


def save_csv(
    results_by_frame: Dict[int, List[OverlayResult]],
    output_path: str,
) -> None:
    """Export overlay results to a CSV file, one row per code.

    Columns: frame_id, payload, left, top, right, bottom

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS)
        writer.writeheader()

        total = 0
        for frame_id in sorted(results_by_frame):
            for result in results_by_frame[frame_id]:
                if result.is_empty:
                    continue
                writer.writerow({"frame_id": frame_id, **result.to_dict()})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
