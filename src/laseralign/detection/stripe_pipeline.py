"""
Laser stripe angle detection pipeline.

Coordinates the detection steps:
1. Region check and crop
2. Grayscale conversion
3. Stripe point extraction
4. Line fitting
5. Quality gating
6. Angle result

Each call is single-shot and side-effect free; drawing and saving the
diagnostic image is left to the caller.
"""

import time
from typing import Any

import cv2
import numpy as np

from ..core.result import DetectionOutcome, DetectionStage, StatusCode
from .line_fitter import LineFitter
from .preprocessor import Preprocessor
from .quality_gate import QualityGate
from .region import Region, RegionValidator
from .stripe_extractor import StripePointExtractor


class StripeDetectionPipeline:
    """
    Measures the angle of a laser stripe inside a region of interest.

    Usage:
        pipeline = StripeDetectionPipeline(config)
        outcome = pipeline.detect(frame, region)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Full configuration dictionary containing:
                - preprocessing: Preprocessor settings
                - stripe: Extraction strategy, thresholds and min_points
                - quality: Quality gate thresholds
        """
        config = config or {}
        stripe_config = config.get("stripe", {})

        self.validator = RegionValidator()
        self.preprocessor = Preprocessor(config.get("preprocessing", {}))
        self.extractor = StripePointExtractor(stripe_config)
        self.fitter = LineFitter()
        self.gate = QualityGate(config.get("quality", {}))
        self.min_points = stripe_config.get("min_points", 10)

    def detect(self, frame: np.ndarray, region: Region) -> DetectionOutcome:
        """
        Detect the stripe in one frame.

        Args:
            frame: Grayscale, BGR or BGRA image
            region: Region of interest in frame coordinates

        Returns:
            DetectionOutcome with SUCCESS and the angle, or the failure status
        """
        start_time = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start_time) * 1000

        try:
            # Step 1: Region check
            roi = self.validator.crop(frame, region)
            if roi is None:
                rows, cols = frame.shape[:2]
                return DetectionOutcome(
                    status=StatusCode.OUT_OF_ROI,
                    reason=f"ROI {region} exceeds frame {cols}x{rows}",
                    stage=DetectionStage.START,
                    processing_time_ms=elapsed(),
                )

            # Step 2: Grayscale
            gray = self.preprocessor.process(roi)

            # Step 3: Stripe points
            points = self.extractor.extract(gray)
            if len(points) < self.min_points:
                return DetectionOutcome(
                    status=StatusCode.NOT_FOUND,
                    reason=f"Only {len(points)} stripe points found (need {self.min_points})",
                    stage=DetectionStage.POINTS_EXTRACTED,
                    point_count=len(points),
                    processing_time_ms=elapsed(),
                )

            # Step 4: Line fit
            line = self.fitter.fit(points)

            # Step 5: Quality gate
            verdict = self.gate.evaluate(line, points, region.width)
            if not verdict.passed:
                return DetectionOutcome(
                    status=StatusCode.OUT_OF_ROI,
                    reason=verdict.reason,
                    stage=DetectionStage.LINE_FITTED,
                    line=line,
                    point_count=len(points),
                    rms_residual=verdict.rms_residual,
                    projected_length=verdict.projected_length,
                    processing_time_ms=elapsed(),
                )

        except (cv2.error, ValueError) as e:
            return DetectionOutcome(
                status=StatusCode.UNKNOWN,
                reason=f"Detection error: {e}",
                processing_time_ms=elapsed(),
            )

        return DetectionOutcome(
            status=StatusCode.SUCCESS,
            angle=line.angle,
            reason=f"Stripe angle {np.degrees(line.angle):.2f} deg from {len(points)} points",
            stage=DetectionStage.QUALITY_CHECKED,
            line=line,
            point_count=len(points),
            rms_residual=verdict.rms_residual,
            projected_length=verdict.projected_length,
            processing_time_ms=elapsed(),
        )
