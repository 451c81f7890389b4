"""
Detection session.

A DetectionSession owns the caller's mutable state (region, session id,
output directory) and the two pipelines. The pipelines themselves are
stateless; the session adds logging and diagnostic image output after
each pipeline call completes.

A session is meant for one caller context. Independent sessions can run
in parallel.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from .. import __version__
from ..detection.region import Region
from ..detection.stability import StabilityPipeline, TargetConfig
from ..detection.stripe_pipeline import StripeDetectionPipeline
from ..utils.visualization import (
    build_output_path,
    draw_stability_overlay,
    draw_stripe_overlay,
    save_image,
)
from .config import load_roi_config, load_target_config
from .result import (
    DetectionOutcome,
    LoadResult,
    StabilityResult,
    StatusCode,
    StripeDetectionResult,
)

logger = logging.getLogger(__name__)

# Characters allowed in session ids; they become part of output file names
SESSION_ID_PATTERN = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(frozen=True)
class VersionInfo:
    major: int
    minor: int
    patch: int
    version_string: str


def _parse_version(version: str) -> VersionInfo:
    major, minor, patch = (int(part) for part in version.split(".")[:3])
    return VersionInfo(major, minor, patch, version)


class DetectionSession:
    """
    Resource owner for stripe detection and stability checks.

    Usage:
        with DetectionSession(config.as_dict) as session:
            session.initialize("config/roi_config.txt")
            session.set_session_id("SN123")
            session.set_output_directory("output")
            result = session.detect(frame)
    """

    VERSION = _parse_version(__version__)

    def __init__(self, config: dict[str, Any] | None = None, log: logging.Logger | None = None):
        """
        Create a session.

        Args:
            config: Full configuration dictionary (see config/default.yaml)
            log: Logger to report to, defaults to this module's logger
        """
        self.config = config or {}
        self.log = log or logger

        self.stripe_pipeline = StripeDetectionPipeline(self.config)
        self.stability_pipeline = StabilityPipeline(self.config)

        output_config = self.config.get("output", {})
        self.base_name = output_config.get("base_name", "result")
        self.stability_base_name = output_config.get("stability_base_name", "stability")
        self.save_stability_images = output_config.get("save_stability_images", True)
        self.vis_config = self.config.get("visualization", {})

        self.region: Region | None = None
        self.session_id = ""
        self.output_dir: Path | None = None
        self._closed = False

    # Lifecycle

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the session. Later calls report UNKNOWN."""
        if not self._closed:
            self._closed = True
            self.log.debug(f"Session {self.session_id or '<unnamed>'} closed")

    def __enter__(self) -> "DetectionSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # Configuration

    def initialize(self, config_path: str | Path) -> StatusCode:
        """
        Load the ROI from a deployment file and set it on the session.

        Returns:
            SUCCESS, CONFIG_LOAD_FAILED or ROI_INVALID
        """
        if self._closed:
            return StatusCode.UNKNOWN

        loaded = load_roi_config(config_path)
        if loaded.ok:
            self.region = loaded.value
        else:
            self.log.error(f"Initialization failed ({loaded.status.name}): {loaded.reason}")
        return loaded.status

    def set_region(self, x: int, y: int, width: int, height: int) -> StatusCode:
        """
        Set the ROI directly.

        Returns:
            SUCCESS, or ROI_INVALID (region unchanged) for a non-positive size
        """
        if self._closed:
            return StatusCode.UNKNOWN
        if width <= 0 or height <= 0:
            self.log.error(f"Rejected ROI with size {width}x{height}")
            return StatusCode.ROI_INVALID
        self.region = Region(x, y, width, height)
        self.log.info(f"ROI set: {self.region}")
        return StatusCode.SUCCESS

    def set_session_id(self, session_id: str | None) -> None:
        """
        Set the id used in output file names.

        Characters outside [A-Za-z0-9_.-] become "_" and leading dots are
        dropped, so the id can never leave the output directory.
        """
        raw = session_id or ""
        self.session_id = SESSION_ID_PATTERN.sub("_", raw).lstrip(".")
        if self.session_id != raw:
            self.log.warning(f"Session id {raw!r} sanitized to {self.session_id!r}")

    def set_output_directory(self, output_dir: str | Path | None) -> None:
        """Set where diagnostic images go; None or '' disables output."""
        self.output_dir = Path(output_dir) if output_dir else None

    def load_target_config(self, config_path: str | Path) -> LoadResult[TargetConfig]:
        if self._closed:
            return LoadResult(StatusCode.UNKNOWN, reason="Session closed")
        return load_target_config(config_path)

    # Detection

    def detect(self, frame: np.ndarray | None) -> StripeDetectionResult:
        """
        Measure the stripe angle in one frame.

        Returns:
            StripeDetectionResult. IMAGE_LOAD_FAILED for a missing frame,
            ROI_INVALID when no region is set.
        """
        if self._closed:
            return StripeDetectionResult(DetectionOutcome(StatusCode.UNKNOWN, reason="Session closed"))
        if frame is None or frame.size == 0:
            self.log.error("Stripe detection called with an empty frame")
            return StripeDetectionResult(
                DetectionOutcome(StatusCode.IMAGE_LOAD_FAILED, reason="Empty frame")
            )
        if self.region is None:
            self.log.error("Stripe detection called before a ROI was set")
            return StripeDetectionResult(
                DetectionOutcome(StatusCode.ROI_INVALID, reason="No ROI configured")
            )

        outcome = self.stripe_pipeline.detect(frame, self.region)
        result = StripeDetectionResult(outcome)

        if outcome.is_success:
            self.log.info(
                f"Stripe detected: angle={outcome.angle_degrees:.2f} deg, "
                f"points={outcome.point_count}, rms={outcome.rms_residual:.2f}px"
            )
            if self.output_dir is not None:
                self._save_stripe_image(frame, result)
        else:
            self.log.warning(f"Stripe detection {outcome.status.name}: {outcome.reason}")

        return result

    def check_stability(self, frame: np.ndarray | None, target: TargetConfig) -> StabilityResult:
        """
        Check that the camera has not moved relative to the target.

        Returns:
            StabilityResult. IMAGE_LOAD_FAILED for a missing frame,
            CAMERA_SELF_CHECK_FAILED when not exactly four markers are found.
        """
        if self._closed:
            return StabilityResult.failure(StatusCode.UNKNOWN, "Session closed")
        if frame is None or frame.size == 0:
            self.log.error("Stability check called with an empty frame")
            return StabilityResult.failure(StatusCode.IMAGE_LOAD_FAILED, "Empty frame")

        result, detection = self.stability_pipeline.check(frame, target)

        if result.status == StatusCode.SUCCESS:
            self.log.info(
                f"Stability check: {'stable' if result.is_stable else 'moved'} "
                f"(distance {result.distance:.1f}px, tolerance {target.tolerance:.1f}px)"
            )
        else:
            self.log.warning(f"Stability check {result.status.name}: {result.message}")

        if self.output_dir is not None and self.save_stability_images:
            annotated = draw_stability_overlay(frame, result, target, detection, self.vis_config)
            result.annotated_frame = annotated
            path = build_output_path(self.output_dir / self.stability_base_name, self.session_id)
            if save_image(annotated, path):
                result.image_path = str(path)
            else:
                self.log.error(f"Failed to save stability image: {path}")
                result.save_status = StatusCode.IMAGE_SAVE_FAILED

        return result

    def _save_stripe_image(self, frame: np.ndarray, result: StripeDetectionResult) -> None:
        annotated = draw_stripe_overlay(frame, self.region, result.outcome, self.vis_config)  # type: ignore[arg-type]
        result.annotated_frame = annotated
        path = build_output_path(self.output_dir / self.base_name, self.session_id)  # type: ignore[operator]
        if save_image(annotated, path):
            result.image_path = str(path)
            self.log.info(f"Result image saved: {path}")
        else:
            result.save_status = StatusCode.IMAGE_SAVE_FAILED
            self.log.error(f"Failed to save result image: {path}")

    # Version

    @staticmethod
    def version_info() -> VersionInfo:
        return DetectionSession.VERSION

    @staticmethod
    def version_string() -> str:
        return DetectionSession.VERSION.version_string

    @staticmethod
    def version_major() -> int:
        return DetectionSession.VERSION.major

    @staticmethod
    def version_minor() -> int:
        return DetectionSession.VERSION.minor

    @staticmethod
    def version_patch() -> int:
        return DetectionSession.VERSION.patch
