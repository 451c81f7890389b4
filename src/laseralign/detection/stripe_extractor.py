"""
Stripe point extraction.

Selects the pixels of a grayscale ROI that belong to the bright laser
stripe. Two strategies are available:

- brightest_per_row: one point per row at the row maximum, kept when the
  maximum exceeds row_threshold. Suits thin stripes that cross rows.
- above_threshold: every pixel brighter than pixel_threshold. Denser,
  suits wide stripes.
"""

from enum import Enum
from typing import Any

import numpy as np


class ExtractionStrategy(Enum):
    """Stripe point extraction strategy."""

    BRIGHTEST_PER_ROW = "brightest_per_row"
    ABOVE_THRESHOLD = "above_threshold"


class StripePointExtractor:
    """
    Extracts candidate stripe points from a grayscale ROI.

    Points are returned as an (N, 2) int array of (x, y) in ROI-local
    coordinates, in row-major scan order.

    Usage:
        extractor = StripePointExtractor(config['stripe'])
        points = extractor.extract(gray_roi)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize extractor.

        Args:
            config: Configuration dictionary with keys:
                - strategy: 'brightest_per_row' or 'above_threshold'
                - row_threshold: Minimum row maximum (exclusive), default 200
                - pixel_threshold: Minimum pixel value (exclusive), default 220
        """
        config = config or {}
        self.strategy = ExtractionStrategy(config.get("strategy", "brightest_per_row"))
        self.row_threshold = config.get("row_threshold", 200)
        self.pixel_threshold = config.get("pixel_threshold", 220)

    @property
    def threshold(self) -> int:
        """Threshold used by the active strategy."""
        if self.strategy == ExtractionStrategy.BRIGHTEST_PER_ROW:
            return self.row_threshold
        return self.pixel_threshold

    def extract(self, gray: np.ndarray) -> np.ndarray:
        """
        Extract stripe points.

        Args:
            gray: Single-channel ROI image

        Returns:
            (N, 2) int array of (x, y) points
        """
        if gray.size == 0:
            return np.empty((0, 2), dtype=np.int32)

        if self.strategy == ExtractionStrategy.BRIGHTEST_PER_ROW:
            return self._brightest_per_row(gray)
        return self._above_threshold(gray)

    def _brightest_per_row(self, gray: np.ndarray) -> np.ndarray:
        # argmax returns the first (leftmost) maximum in each row
        cols = np.argmax(gray, axis=1)
        rows = np.arange(gray.shape[0])
        keep = gray[rows, cols] > self.row_threshold
        return np.column_stack((cols[keep], rows[keep])).astype(np.int32)

    def _above_threshold(self, gray: np.ndarray) -> np.ndarray:
        ys, xs = np.nonzero(gray > self.pixel_threshold)
        return np.column_stack((xs, ys)).astype(np.int32)
