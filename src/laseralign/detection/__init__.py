"""Detection pipeline components for LaserAlign."""

from .preprocessor import Preprocessor
from .region import Region, RegionValidator
from .stripe_extractor import ExtractionStrategy, StripePointExtractor
from .line_fitter import LineFitter
from .quality_gate import QualityGate, QualityVerdict
from .stripe_pipeline import StripeDetectionPipeline
from .marker_detector import MarkerDetection, MarkerDetector
from .marker_geometry import order_markers, target_centroid
from .stability import StabilityEvaluator, StabilityPipeline, TargetConfig

__all__ = [
    "Preprocessor",
    "Region",
    "RegionValidator",
    "ExtractionStrategy",
    "StripePointExtractor",
    "LineFitter",
    "QualityGate",
    "QualityVerdict",
    "StripeDetectionPipeline",
    "MarkerDetection",
    "MarkerDetector",
    "order_markers",
    "target_centroid",
    "StabilityEvaluator",
    "StabilityPipeline",
    "TargetConfig",
]
