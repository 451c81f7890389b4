"""
Camera mount stability check.

Locates the four-marker calibration target, computes its centroid and
compares it with the expected centroid recorded at installation time.
A displacement within the tolerance radius (inclusive) is stable.
"""

import math
import time
from dataclasses import dataclass
from typing import Any

import cv2
import numpy as np

from ..core.result import StabilityResult, StatusCode
from .marker_detector import MarkerDetection, MarkerDetector
from .marker_geometry import order_markers, target_centroid
from .preprocessor import Preprocessor


@dataclass(frozen=True)
class TargetConfig:
    """
    Expected target position.

    Attributes:
        center_x: Expected centroid x in frame pixels
        center_y: Expected centroid y in frame pixels
        tolerance: Allowed displacement radius in pixels
    """

    center_x: float
    center_y: float
    tolerance: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.center_x, self.center_y)


class StabilityEvaluator:
    """Compares a measured centroid with the expected one."""

    def evaluate(
        self, measured: tuple[float, float], target: TargetConfig
    ) -> StabilityResult:
        """
        Build the stability verdict.

        Args:
            measured: Measured target centroid
            target: Expected centroid and tolerance

        Returns:
            StabilityResult with SUCCESS status
        """
        dx = measured[0] - target.center_x
        dy = measured[1] - target.center_y
        distance = math.sqrt(dx * dx + dy * dy)
        is_stable = distance <= target.tolerance

        if is_stable:
            message = f"Camera stable, deviation: {distance:.1f}px"
        else:
            message = f"Camera moved! deviation: {distance:.1f}px (>{target.tolerance:.1f}px)"

        return StabilityResult(
            is_stable=is_stable,
            dx=dx,
            dy=dy,
            distance=distance,
            status=StatusCode.SUCCESS,
            message=message,
            measured_center=(measured[0], measured[1]),
        )


class StabilityPipeline:
    """
    Marker detection, ordering, centroid and evaluation in one call.

    Usage:
        pipeline = StabilityPipeline(config)
        result = pipeline.check(frame, target)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize pipeline.

        Args:
            config: Full configuration dictionary containing:
                - preprocessing: Preprocessor settings
                - markers: MarkerDetector settings
        """
        config = config or {}
        self.detector = MarkerDetector(
            config.get("markers", {}), Preprocessor(config.get("preprocessing", {}))
        )
        self.evaluator = StabilityEvaluator()

    def check(self, frame: np.ndarray, target: TargetConfig) -> tuple[StabilityResult, MarkerDetection | None]:
        """
        Check camera stability against the target.

        Args:
            frame: Grayscale, BGR or BGRA image of the calibration target
            target: Expected centroid and tolerance

        Returns:
            (StabilityResult, MarkerDetection). The detection is None only
            when marker detection itself raised.
        """
        start_time = time.perf_counter()

        try:
            detection = self.detector.detect(frame)
        except (cv2.error, ValueError) as e:
            return StabilityResult.failure(StatusCode.UNKNOWN, f"Target detection error: {e}"), None

        if not detection.complete:
            return (
                StabilityResult.failure(
                    StatusCode.CAMERA_SELF_CHECK_FAILED,
                    f"Target detection failed: {detection.count} of "
                    f"{detection.expected_count} markers found",
                    marker_count=detection.count,
                ),
                detection,
            )

        corners = order_markers(detection.centroids)
        center = target_centroid(corners)
        if not all(math.isfinite(v) for v in center):
            return (
                StabilityResult.failure(
                    StatusCode.CAMERA_SELF_CHECK_FAILED,
                    "Target centroid calculation failed",
                    marker_count=detection.count,
                ),
                detection,
            )

        result = self.evaluator.evaluate(center, target)
        result.marker_count = detection.count
        result.corners = corners
        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        return result, detection
