"""
Image preprocessing shared by the stripe and marker pipelines.

Converts frames of any supported layout to single-channel intensity
and optionally smooths them before thresholding.
"""

from typing import Any

import cv2
import numpy as np


class Preprocessor:
    """
    Grayscale conversion with optional Gaussian blur.

    Usage:
        preprocessor = Preprocessor(config['preprocessing'])
        gray = preprocessor.process(frame)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize preprocessor with configuration.

        Args:
            config: Preprocessing configuration with keys:
                - blur_kernel: [int, int] - Gaussian blur kernel size, [0, 0] disables
        """
        config = config or {}
        self.blur_kernel = tuple(config.get("blur_kernel", [0, 0]))

    def process(self, frame: np.ndarray) -> np.ndarray:
        """
        Convert a frame to grayscale and apply blur if enabled.

        Args:
            frame: Grayscale, BGR or BGRA image

        Returns:
            Single-channel uint8 image
        """
        gray = to_gray(frame)

        if self.blur_kernel[0] > 0:
            gray = cv2.GaussianBlur(gray, self.blur_kernel, 0)

        return gray


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Return a single-channel view of a grayscale, BGR or BGRA frame."""
    if frame.ndim == 2:
        return frame
    channels = frame.shape[2]
    if channels == 1:
        return frame[:, :, 0]
    if channels == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"Unsupported channel count: {channels}")
