"""Core components for LaserAlign."""

from .config import Config, load_roi_config, load_target_config, save_target_config
from .result import (
    DetectionOutcome,
    DetectionStage,
    FittedLine,
    LoadResult,
    StabilityResult,
    StatusCode,
    StripeDetectionResult,
)
from .session import DetectionSession, VersionInfo

__all__ = [
    "Config",
    "load_roi_config",
    "load_target_config",
    "save_target_config",
    "DetectionOutcome",
    "DetectionStage",
    "FittedLine",
    "LoadResult",
    "StabilityResult",
    "StatusCode",
    "StripeDetectionResult",
    "DetectionSession",
    "VersionInfo",
]
