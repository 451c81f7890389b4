"""
LaserAlign - Laser Stripe Angle and Camera Stability Measurement

Measures the orientation of a laser stripe inside a region of interest
and verifies that a camera has not drifted by tracking a four-marker
calibration target.
"""

__version__ = "1.0.0"
__author__ = "LaserAlign Team"

from .core.result import DetectionOutcome, StabilityResult, StatusCode, StripeDetectionResult
from .core.session import DetectionSession
from .detection.region import Region
from .detection.stability import TargetConfig

__all__ = [
    "DetectionSession",
    "DetectionOutcome",
    "StripeDetectionResult",
    "StabilityResult",
    "StatusCode",
    "Region",
    "TargetConfig",
    "__version__",
]
