"""
Calibration target marker detection.

Finds the dark square fiducials of the four-marker target: inverse
binary threshold, morphological open + close, external contours, then
area, polygon, convexity and aspect ratio filters. Each accepted
contour contributes its moment centroid.
"""

from dataclasses import dataclass, field
from typing import Any

import cv2
import numpy as np

from .preprocessor import Preprocessor


@dataclass
class MarkerDetection:
    """
    Result from marker detection.

    Attributes:
        centroids: Moment centroids of accepted contours, in scan order
        bounding_boxes: (x, y, w, h) of each accepted marker polygon
        contour_count: Number of external contours examined
        expected_count: Number of markers the target should have
    """

    centroids: list[tuple[float, float]] = field(default_factory=list)
    bounding_boxes: list[tuple[int, int, int, int]] = field(default_factory=list)
    contour_count: int = 0
    expected_count: int = 4

    @property
    def count(self) -> int:
        return len(self.centroids)

    @property
    def complete(self) -> bool:
        return self.count == self.expected_count


class MarkerDetector:
    """
    Detects square markers on a light background.

    Usage:
        detector = MarkerDetector(config['markers'])
        detection = detector.detect(frame)
        if detection.complete:
            ...
    """

    def __init__(self, config: dict[str, Any] | None = None, preprocessor: Preprocessor | None = None):
        """
        Initialize marker detector.

        Args:
            config: Configuration dictionary with keys:
                - binary_threshold: Gray level below which pixels are marker foreground
                - kernel_size: Square structuring element size for open/close
                - min_area, max_area: Accepted contour area band (inclusive)
                - min_aspect, max_aspect: Accepted bounding box w/h band (inclusive)
                - approx_epsilon: Polygon approximation tolerance as fraction of perimeter
                - expected_count: Markers on the target
            preprocessor: Grayscale converter, defaults to one without blur
        """
        config = config or {}
        self.binary_threshold = config.get("binary_threshold", 80)
        kernel_size = config.get("kernel_size", 5)
        self.kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
        self.min_area = config.get("min_area", 2000)
        self.max_area = config.get("max_area", 50000)
        self.min_aspect = config.get("min_aspect", 0.7)
        self.max_aspect = config.get("max_aspect", 1.3)
        self.approx_epsilon = config.get("approx_epsilon", 0.02)
        self.expected_count = config.get("expected_count", 4)
        self.preprocessor = preprocessor or Preprocessor()

    def binarize(self, frame: np.ndarray) -> np.ndarray:
        """
        Produce the cleaned foreground mask (255 = dark marker pixels).

        Opening removes speckle, closing fills pinholes inside markers.
        """
        gray = self.preprocessor.process(frame)
        _, binary = cv2.threshold(gray, self.binary_threshold, 255, cv2.THRESH_BINARY_INV)
        binary = cv2.morphologyEx(binary, cv2.MORPH_OPEN, self.kernel)
        binary = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, self.kernel)
        return binary

    def detect(self, frame: np.ndarray) -> MarkerDetection:
        """
        Detect markers in a frame.

        Args:
            frame: Grayscale, BGR or BGRA image

        Returns:
            MarkerDetection with every accepted centroid; callers check
            `complete` before using them.
        """
        binary = self.binarize(frame)
        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        detection = MarkerDetection(
            contour_count=len(contours), expected_count=self.expected_count
        )

        for contour in contours:
            area = cv2.contourArea(contour)
            if area < self.min_area or area > self.max_area:
                continue

            # Approximate contour to polygon
            epsilon = self.approx_epsilon * cv2.arcLength(contour, True)
            approx = cv2.approxPolyDP(contour, epsilon, True)

            if len(approx) != 4 or not cv2.isContourConvex(approx):
                continue

            x, y, w, h = cv2.boundingRect(approx)
            aspect = w / h if h > 0 else 0.0
            if aspect < self.min_aspect or aspect > self.max_aspect:
                continue

            M = cv2.moments(contour)
            if M["m00"] == 0:
                continue

            detection.centroids.append((M["m10"] / M["m00"], M["m01"] / M["m00"]))
            detection.bounding_boxes.append((x, y, w, h))

        return detection
