"""
Detection result data structures.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Generic, TypeVar

import numpy as np

T = TypeVar("T")


class StatusCode(IntEnum):
    """Outcome codes shared by both pipelines and the host contract."""

    SUCCESS = 0
    NOT_FOUND = 1
    OUT_OF_ROI = 2
    IMAGE_LOAD_FAILED = 3
    CONFIG_LOAD_FAILED = 4
    ROI_INVALID = 5
    IMAGE_SAVE_FAILED = 6
    CAMERA_SELF_CHECK_FAILED = 7
    UNKNOWN = 100

    def __str__(self) -> str:
        return self.name


class DetectionStage(Enum):
    """Last stage reached by the stripe pipeline."""

    START = "START"
    REGION_CHECKED = "REGION_CHECKED"
    POINTS_EXTRACTED = "POINTS_EXTRACTED"
    LINE_FITTED = "LINE_FITTED"
    QUALITY_CHECKED = "QUALITY_CHECKED"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FittedLine:
    """
    Line through a point set, in ROI-local coordinates.

    Attributes:
        vx: Unit direction x component
        vy: Unit direction y component
        x0: x of a point on the line (the point-set centroid)
        y0: y of a point on the line
    """

    vx: float
    vy: float
    x0: float
    y0: float

    @property
    def angle(self) -> float:
        """Signed angle of the direction vector in radians."""
        return math.atan2(self.vy, self.vx)

    def y_at(self, x: float) -> float | None:
        """y where the line crosses the given x, or None for a vertical line."""
        if self.vx == 0:
            return None
        return self.y0 + (x - self.x0) * self.vy / self.vx


@dataclass(frozen=True)
class DetectionOutcome:
    """
    Result of one pass through the stripe detection pipeline.

    Attributes:
        status: SUCCESS, NOT_FOUND, OUT_OF_ROI or UNKNOWN
        angle: Line angle in radians (only on SUCCESS)
        reason: Human-readable explanation
        stage: Last pipeline stage reached
        line: Fitted line, when a fit was performed
        point_count: Number of stripe points extracted
        rms_residual: RMS perpendicular residual of the fit
        projected_length: Span of points projected on the line direction
        processing_time_ms: Time spent in the pipeline
    """

    status: StatusCode
    angle: float | None = None
    reason: str = ""
    stage: DetectionStage = DetectionStage.START
    line: FittedLine | None = None
    point_count: int = 0
    rms_residual: float | None = None
    projected_length: float | None = None
    processing_time_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status == StatusCode.SUCCESS

    @property
    def angle_degrees(self) -> float | None:
        if self.angle is None:
            return None
        return math.degrees(self.angle)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "status": self.status.name,
            "status_code": int(self.status),
            "angle": self.angle,
            "angle_degrees": None if self.angle is None else round(math.degrees(self.angle), 3),
            "reason": self.reason,
            "stage": self.stage.value,
            "point_count": self.point_count,
            "rms_residual": None if self.rms_residual is None else round(self.rms_residual, 3),
            "projected_length": (
                None if self.projected_length is None else round(self.projected_length, 1)
            ),
            "processing_time_ms": round(self.processing_time_ms, 2),
        }


@dataclass
class StripeDetectionResult:
    """
    Session-level stripe detection result.

    Detection and persistence are reported independently: a failed image
    write sets save_status but never changes outcome.status.
    """

    outcome: DetectionOutcome
    image_path: str = ""
    save_status: StatusCode = StatusCode.SUCCESS
    annotated_frame: np.ndarray | None = None

    @property
    def status(self) -> StatusCode:
        return self.outcome.status

    @property
    def detected(self) -> bool:
        return self.outcome.is_success

    @property
    def angle(self) -> float:
        """Angle in radians, 0.0 placeholder when nothing was detected."""
        return self.outcome.angle if self.outcome.angle is not None else 0.0

    def to_dict(self) -> dict[str, Any]:
        data = self.outcome.to_dict()
        data["detected"] = self.detected
        data["image_path"] = self.image_path
        data["save_status"] = self.save_status.name
        return data


@dataclass
class StabilityResult:
    """
    Camera mount stability verdict.

    Attributes:
        is_stable: distance <= tolerance
        dx: measured.x - expected.x
        dy: measured.y - expected.y
        distance: sqrt(dx^2 + dy^2)
        status: SUCCESS, CAMERA_SELF_CHECK_FAILED, IMAGE_LOAD_FAILED or UNKNOWN
        message: Human-readable verdict
        marker_count: Number of markers accepted by the detector
        measured_center: Centroid of the ordered markers, if found
        corners: Ordered marker centroids (TL, TR, BL, BR)
        processing_time_ms: Time spent in the pipeline
    """

    is_stable: bool
    dx: float
    dy: float
    distance: float
    status: StatusCode
    message: str
    marker_count: int = 0
    measured_center: tuple[float, float] | None = None
    corners: list[tuple[float, float]] = field(default_factory=list)
    processing_time_ms: float = 0.0
    image_path: str = ""
    save_status: StatusCode = StatusCode.SUCCESS
    annotated_frame: np.ndarray | None = None

    @classmethod
    def failure(cls, status: StatusCode, message: str, marker_count: int = 0) -> "StabilityResult":
        return cls(
            is_stable=False,
            dx=0.0,
            dy=0.0,
            distance=0.0,
            status=status,
            message=message,
            marker_count=marker_count,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary (excludes numpy arrays)."""
        return {
            "is_stable": self.is_stable,
            "dx": round(self.dx, 3),
            "dy": round(self.dy, 3),
            "distance": round(self.distance, 3),
            "status": self.status.name,
            "status_code": int(self.status),
            "message": self.message,
            "marker_count": self.marker_count,
            "measured_center": self.measured_center,
            "corners": self.corners,
            "processing_time_ms": round(self.processing_time_ms, 2),
            "image_path": self.image_path,
            "save_status": self.save_status.name,
        }


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    """Outcome of loading a deployment file: a status plus the value on success."""

    status: StatusCode
    value: T | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == StatusCode.SUCCESS
