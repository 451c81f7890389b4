"""
Pytest fixtures for LaserAlign tests.

Provides common test fixtures including:
- Synthetic laser stripe frames
- Synthetic four-marker calibration target frames
- Test configuration
"""

import math

import cv2
import numpy as np
import pytest

FRAME_WIDTH = 600
FRAME_HEIGHT = 400
STRIPE_ROI = (100, 50, 400, 300)

TARGET_WIDTH = 640
TARGET_HEIGHT = 480
MARKER_CENTERS = [(150, 120), (490, 120), (150, 360), (490, 360)]


@pytest.fixture
def test_config():
    """Test configuration dictionary."""
    return {
        "preprocessing": {"blur_kernel": [0, 0]},
        "stripe": {
            "strategy": "brightest_per_row",
            "row_threshold": 200,
            "pixel_threshold": 220,
            "min_points": 10,
        },
        "quality": {
            "max_rms_residual": 5.0,
            "min_length_ratio": 0.5,
        },
        "markers": {
            "binary_threshold": 80,
            "kernel_size": 5,
            "min_area": 2000,
            "max_area": 50000,
            "min_aspect": 0.7,
            "max_aspect": 1.3,
            "approx_epsilon": 0.02,
            "expected_count": 4,
        },
        "output": {
            "base_name": "result",
            "stability_base_name": "stability",
            "save_stability_images": True,
        },
    }


def generate_stripe_frame(
    angle_deg: float,
    length: int = 1000,
    center: tuple[int, int] = (300, 200),
    thickness: int = 3,
    width: int = FRAME_WIDTH,
    height: int = FRAME_HEIGHT,
) -> np.ndarray:
    """
    Generate a dark BGR frame with a white stripe.

    Args:
        angle_deg: Stripe angle in image coordinates (y down)
        length: Stripe length in pixels (clipped by the frame)
        center: Stripe midpoint
        thickness: Stripe thickness
        width: Frame width
        height: Frame height

    Returns:
        BGR image as numpy array
    """
    rng = np.random.default_rng(7)
    img = np.full((height, width, 3), 30, dtype=np.uint8)
    noise = rng.integers(0, 30, (height, width, 3), dtype=np.uint8)
    img = cv2.add(img, noise)

    theta = math.radians(angle_deg)
    half = length / 2
    dx, dy = half * math.cos(theta), half * math.sin(theta)
    pt1 = (int(round(center[0] - dx)), int(round(center[1] - dy)))
    pt2 = (int(round(center[0] + dx)), int(round(center[1] + dy)))
    cv2.line(img, pt1, pt2, (255, 255, 255), thickness)

    return img


def generate_target_frame(
    centers: list[tuple[int, int]] | None = None,
    size: int = 60,
    offset: tuple[int, int] = (0, 0),
) -> np.ndarray:
    """
    Generate a light BGR frame with filled black square markers.

    Args:
        centers: Marker centers, defaults to the four MARKER_CENTERS
        size: Marker side length in pixels
        offset: Shift applied to every marker

    Returns:
        BGR image as numpy array
    """
    if centers is None:
        centers = MARKER_CENTERS
    img = np.full((TARGET_HEIGHT, TARGET_WIDTH, 3), 230, dtype=np.uint8)
    half = size // 2
    for cx, cy in centers:
        cx, cy = cx + offset[0], cy + offset[1]
        cv2.rectangle(img, (cx - half, cy - half), (cx + half, cy + half), (0, 0, 0), -1)
    return img


@pytest.fixture
def make_stripe_frame():
    """Factory for synthetic stripe frames."""
    return generate_stripe_frame


@pytest.fixture
def make_target_frame():
    """Factory for synthetic target frames."""
    return generate_target_frame


@pytest.fixture
def stripe_frame():
    """Frame with a 20 degree stripe through the ROI center."""
    return generate_stripe_frame(20)


@pytest.fixture
def target_frame():
    """Frame with four markers whose centroid is (320, 240)."""
    return generate_target_frame()


@pytest.fixture
def roi_file(tmp_path):
    """ROI deployment file matching STRIPE_ROI."""
    path = tmp_path / "roi_config.txt"
    x, y, w, h = STRIPE_ROI
    path.write_text(f"x: {x}\ny: {y}\nwidth: {w}\nheight: {h}\n", encoding="utf-8")
    return path


@pytest.fixture
def target_file(tmp_path):
    """Target deployment file centered on the synthetic target."""
    path = tmp_path / "target_config.txt"
    path.write_text("center_x: 320.0\ncenter_y: 240.0\ntolerance: 5.0\n", encoding="utf-8")
    return path


@pytest.fixture
def stripe_region():
    """ROI (x, y, width, height) used with the synthetic stripe frames."""
    return STRIPE_ROI


@pytest.fixture
def marker_centers():
    """Marker centers of the synthetic target in TL, TR, BL, BR order."""
    return list(MARKER_CENTERS)
