"""
Region of interest handling.

A Region is an immutable rectangle in frame pixel coordinates. The
validator checks that it fits inside a frame and crops the sub-image.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Region:
    """
    Rectangular region of interest.

    Attributes:
        x: Left edge in frame pixels
        y: Top edge in frame pixels
        width: Width in pixels, > 0
        height: Height in pixels, > 0
    """

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Region size must be positive, got {self.width}x{self.height}")

    @property
    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.width}x{self.height})"


class RegionValidator:
    """
    Checks a Region against frame bounds and extracts the ROI sub-image.

    Usage:
        validator = RegionValidator()
        if validator.is_valid(region, frame.shape):
            roi = validator.crop(frame, region)
    """

    def is_valid(self, region: Region, frame_shape: tuple[int, ...]) -> bool:
        """
        Check that the region lies fully inside the frame.

        Args:
            region: Requested region
            frame_shape: numpy shape of the frame (rows, cols[, channels])

        Returns:
            True if x >= 0, y >= 0, x + width <= cols and y + height <= rows
        """
        rows, cols = frame_shape[:2]
        return (
            region.x >= 0
            and region.y >= 0
            and region.x + region.width <= cols
            and region.y + region.height <= rows
        )

    def crop(self, frame: np.ndarray, region: Region) -> np.ndarray | None:
        """
        Extract the region from the frame.

        Returns:
            The ROI sub-image, or None if the region is out of bounds or
            the extracted buffer is empty.
        """
        if not self.is_valid(region, frame.shape):
            return None

        roi = frame[region.y : region.y + region.height, region.x : region.x + region.width]
        if roi.size == 0:
            return None
        return roi
