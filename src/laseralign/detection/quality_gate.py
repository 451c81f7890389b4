"""
Quality gate for fitted stripe lines.

Takes a fitted line and the points it was fitted to and rejects fits
that are too noisy or curved (RMS perpendicular residual) or too short
(span of the points projected on the line direction).
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from ..core.result import FittedLine


@dataclass(frozen=True)
class QualityVerdict:
    """
    Result of the quality checks.

    Attributes:
        passed: Both checks passed
        rms_residual: RMS perpendicular distance of the points to the line
        projected_length: max - min of the points projected on the direction
        min_length: Required projected length for this ROI
        reason: Explanation when a check failed
    """

    passed: bool
    rms_residual: float
    projected_length: float
    min_length: float
    reason: str = ""


class QualityGate:
    """
    Rejects line fits that do not look like a full-width straight stripe.

    Usage:
        gate = QualityGate(config['quality'])
        verdict = gate.evaluate(line, points, roi_width)
    """

    DEFAULT_THRESHOLDS = {
        "max_rms_residual": 5.0,
        "min_length_ratio": 0.5,
    }

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize gate with thresholds.

        Args:
            config: Dictionary with 'max_rms_residual' (pixels) and
                'min_length_ratio' (fraction of ROI width), or None for defaults
        """
        thresholds = {**self.DEFAULT_THRESHOLDS, **(config or {})}
        self.max_rms_residual = float(thresholds["max_rms_residual"])
        self.min_length_ratio = float(thresholds["min_length_ratio"])

    def evaluate(self, line: FittedLine, points: np.ndarray, roi_width: int) -> QualityVerdict:
        """
        Run both checks.

        Args:
            line: Fitted line in ROI-local coordinates
            points: (N, 2) points the line was fitted to
            roi_width: ROI width in pixels

        Returns:
            QualityVerdict
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        rms = rms_residual(line, pts)
        length = projected_length(line, pts)
        min_length = self.min_length_ratio * roi_width

        if rms > self.max_rms_residual:
            return QualityVerdict(
                passed=False,
                rms_residual=rms,
                projected_length=length,
                min_length=min_length,
                reason=f"RMS residual {rms:.2f}px exceeds {self.max_rms_residual:.1f}px",
            )

        if length < min_length:
            return QualityVerdict(
                passed=False,
                rms_residual=rms,
                projected_length=length,
                min_length=min_length,
                reason=f"Stripe length {length:.1f}px shorter than {min_length:.1f}px",
            )

        return QualityVerdict(
            passed=True,
            rms_residual=rms,
            projected_length=length,
            min_length=min_length,
        )


def rms_residual(line: FittedLine, points: np.ndarray) -> float:
    """Root mean square perpendicular distance of points to the line."""
    if len(points) == 0:
        return 0.0
    norm = np.hypot(line.vx, line.vy)
    distances = np.abs(line.vy * (points[:, 0] - line.x0) - line.vx * (points[:, 1] - line.y0)) / norm
    return float(np.sqrt(np.mean(distances**2)))


def projected_length(line: FittedLine, points: np.ndarray) -> float:
    """Span of the points' scalar projections on the line direction."""
    if len(points) == 0:
        return 0.0
    projections = (points[:, 0] - line.x0) * line.vx + (points[:, 1] - line.y0) * line.vy
    return float(projections.max() - projections.min())
