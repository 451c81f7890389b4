"""
Visualization and image output utilities.

Draws diagnostic overlays on copies of the input frame and writes them
to the output directory. Nothing here feeds back into detection results.
"""

import time
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from ..core.result import DetectionOutcome, StabilityResult
from ..detection.marker_detector import MarkerDetection
from ..detection.region import Region
from ..detection.stability import TargetConfig


def _to_bgr(frame: np.ndarray) -> np.ndarray:
    """Return a BGR copy of a grayscale, BGR or BGRA frame."""
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame.copy()


def _color(config: dict[str, Any], key: str, default: list[int]) -> tuple[int, int, int]:
    return tuple(config.get(key, default))  # type: ignore


def draw_stripe_overlay(
    frame: np.ndarray,
    region: Region,
    outcome: DetectionOutcome,
    config: dict[str, Any] | None = None,
) -> np.ndarray:
    """
    Draw the ROI rectangle and the fitted line extended across the ROI.

    Args:
        frame: Original frame
        region: ROI used for detection
        outcome: Pipeline outcome (the line is drawn when present)
        config: Visualization settings

    Returns:
        Annotated BGR copy
    """
    config = config or {}
    annotated = _to_bgr(frame)
    roi_color = _color(config, "roi_color", [0, 255, 0])
    line_color = _color(config, "line_color", [0, 0, 255])

    cv2.rectangle(
        annotated,
        (region.x, region.y),
        (region.x + region.width, region.y + region.height),
        roi_color,
        2,
    )

    line = outcome.line
    if line is not None:
        left_y = line.y_at(0)
        right_y = line.y_at(region.width - 1)
        if left_y is not None and right_y is not None:
            pt1 = (region.x, region.y + int(round(left_y)))
            pt2 = (region.x + region.width - 1, region.y + int(round(right_y)))
        else:
            # Vertical line: span the ROI height instead
            x = region.x + int(round(line.x0))
            pt1 = (x, region.y)
            pt2 = (x, region.y + region.height - 1)
        cv2.line(annotated, pt1, pt2, line_color, 1, cv2.LINE_AA)

    if outcome.angle is not None:
        text = f"{np.degrees(outcome.angle):.2f} deg"
    else:
        text = outcome.status.name
    cv2.putText(
        annotated,
        text,
        (region.x, max(region.y - 8, 15)),
        cv2.FONT_HERSHEY_SIMPLEX,
        config.get("font_scale", 0.7),
        line_color,
        config.get("font_thickness", 2),
    )

    return annotated


def draw_stability_overlay(
    frame: np.ndarray,
    result: StabilityResult,
    target: TargetConfig,
    detection: MarkerDetection | None = None,
    config: dict[str, Any] | None = None,
) -> np.ndarray:
    """
    Draw markers, measured center, expected center, tolerance circle and vector.

    Args:
        frame: Original frame
        result: Stability verdict
        target: Expected centroid and tolerance
        detection: Marker detection, for marker boxes
        config: Visualization settings

    Returns:
        Annotated BGR copy
    """
    config = config or {}
    annotated = _to_bgr(frame)
    marker_color = _color(config, "marker_color", [0, 255, 0])
    center_color = _color(config, "center_color", [0, 0, 255])
    tolerance_color = _color(config, "tolerance_color", [255, 0, 0])
    vector_color = _color(config, "vector_color", [0, 255, 255])
    font_scale = config.get("font_scale", 0.7)
    thickness = config.get("font_thickness", 2)

    if detection is not None:
        for (x, y, w, h), (cx, cy) in zip(detection.bounding_boxes, detection.centroids):
            cv2.rectangle(annotated, (x, y), (x + w, y + h), marker_color, 2)
            cv2.circle(annotated, (int(round(cx)), int(round(cy))), 8, marker_color, 2)

    expected = (int(round(target.center_x)), int(round(target.center_y)))
    cv2.circle(annotated, expected, max(int(target.tolerance), 1), tolerance_color, 2)

    if result.measured_center is not None:
        measured = (int(round(result.measured_center[0])), int(round(result.measured_center[1])))
        cv2.circle(annotated, measured, 10, center_color, -1)
        cv2.circle(annotated, measured, 15, center_color, 2)
        cv2.line(annotated, expected, measured, vector_color, 2)

    text_color = marker_color if result.is_stable else center_color
    cv2.putText(
        annotated, result.message, (20, 30), cv2.FONT_HERSHEY_SIMPLEX, font_scale, text_color, thickness
    )

    return annotated


def build_output_path(
    base_path: str | Path, session_id: str, timestamp: float | None = None
) -> Path:
    """
    Build `<base_path>_<session_id>_<timestamp>.jpg`.

    The timestamp is the ctime() form with spaces and colons replaced
    by underscores, e.g. `Sat_Oct_17_09_15_02_2026`.
    """
    stamp = time.ctime(timestamp)
    for ch in (" ", ":"):
        stamp = stamp.replace(ch, "_")
    return Path(f"{base_path}_{session_id}_{stamp}.jpg")


def save_image(image: np.ndarray, path: str | Path) -> bool:
    """
    Write an image, creating the parent directory if needed.

    Returns:
        True if the image was written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return bool(cv2.imwrite(str(path), image))
    except (OSError, cv2.error):
        return False
