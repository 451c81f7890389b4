#!/usr/bin/env python3
"""
Target Recording Tool for LaserAlign.

Measures the four-marker calibration target in a reference image and
writes the expected centroid to a target config file. Run once at
installation, with the camera in its final position.

Trackbars tune the marker threshold and area band until exactly four
markers are found.

Usage:
    python scripts/record_target.py reference.png
    python scripts/record_target.py reference.png --tolerance 3 --output config/target_config.txt
    python scripts/record_target.py reference.png --no-gui
"""

import argparse
import sys
from pathlib import Path

import cv2
import numpy as np

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from laseralign.core.config import Config, save_target_config
from laseralign.core.result import StatusCode
from laseralign.detection.marker_detector import MarkerDetection, MarkerDetector
from laseralign.detection.marker_geometry import order_markers, target_centroid
from laseralign.detection.stability import TargetConfig


def nothing(x):
    """Trackbar callback (required but unused)."""
    pass


def create_trackbars(window_name: str, markers: dict):
    """Create marker tuning trackbars in a window."""
    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)

    cv2.createTrackbar("Threshold", window_name, markers.get("binary_threshold", 80), 255, nothing)
    cv2.createTrackbar("Min Area", window_name, markers.get("min_area", 2000), 20000, nothing)
    cv2.createTrackbar("Max Area", window_name, markers.get("max_area", 50000), 200000, nothing)


def get_trackbar_values(window_name: str) -> dict:
    """Get current trackbar values as marker settings."""
    return {
        "binary_threshold": cv2.getTrackbarPos("Threshold", window_name),
        "min_area": cv2.getTrackbarPos("Min Area", window_name),
        "max_area": cv2.getTrackbarPos("Max Area", window_name),
    }


def measure(detector: MarkerDetector, image: np.ndarray) -> tuple[MarkerDetection, tuple[float, float] | None]:
    """Detect markers and return the target centroid when all four are found."""
    detection = detector.detect(image)
    if not detection.complete:
        return detection, None
    return detection, target_centroid(order_markers(detection.centroids))


def draw(image: np.ndarray, detection: MarkerDetection, center: tuple[float, float] | None) -> np.ndarray:
    """Draw accepted markers and the measured centroid."""
    result = image.copy() if image.ndim == 3 else cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

    for x, y, w, h in detection.bounding_boxes:
        cv2.rectangle(result, (x, y), (x + w, y + h), (0, 255, 0), 2)

    if center is not None:
        cx, cy = int(round(center[0])), int(round(center[1]))
        cv2.drawMarker(result, (cx, cy), (0, 0, 255), cv2.MARKER_CROSS, 30, 2)
        text = f"Center: ({center[0]:.1f}, {center[1]:.1f})"
        color = (0, 255, 0)
    else:
        text = f"Markers: {detection.count} of {detection.expected_count}"
        color = (0, 0, 255)

    cv2.putText(result, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2)
    return result


def record(center: tuple[float, float], tolerance: float, output: Path) -> bool:
    target = TargetConfig(center[0], center[1], tolerance)
    if save_target_config(output, target) != StatusCode.SUCCESS:
        print(f"Error: Failed to write {output}")
        return False
    print(f"Saved target to {output}:")
    print(f"  center_x: {target.center_x:.3f}")
    print(f"  center_y: {target.center_y:.3f}")
    print(f"  tolerance: {target.tolerance:.3f}")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="LaserAlign Target Recording Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Controls:
    q       Quit and print current marker settings
    s       Save the measured center to the target config
        """,
    )
    parser.add_argument("image", help="Reference image of the calibration target")
    parser.add_argument("--tolerance", type=float, default=5.0, help="Allowed displacement in pixels")
    parser.add_argument("--output", type=str, default="config/target_config.txt", help="Target config file")
    parser.add_argument("--config", type=str, help="Path to config directory")
    parser.add_argument("--no-gui", action="store_true", help="Measure once with configured settings and save")

    args = parser.parse_args()

    config_dir = Path(args.config) if args.config else None
    config = Config(config_dir)
    markers = dict(config["markers"])

    image = cv2.imread(args.image, cv2.IMREAD_UNCHANGED)
    if image is None:
        print(f"Error: Failed to load image {args.image}")
        sys.exit(1)
    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    output = Path(args.output)

    if args.no_gui:
        detection, center = measure(MarkerDetector(markers), image)
        if center is None:
            print(f"Error: Found {detection.count} of {detection.expected_count} markers")
            sys.exit(1)
        sys.exit(0 if record(center, args.tolerance, output) else 1)

    main_window = "LaserAlign Target Recording"
    mask_window = "Marker Mask"
    create_trackbars(main_window, markers)
    cv2.namedWindow(mask_window, cv2.WINDOW_NORMAL)

    print("=== LaserAlign Target Recording ===")
    print("Adjust trackbars until exactly four markers are found")
    print("Press 's' to save, 'q' to quit")

    try:
        while True:
            markers.update(get_trackbar_values(main_window))
            detector = MarkerDetector(markers)
            detection, center = measure(detector, image)

            cv2.imshow(main_window, draw(image, detection, center))
            cv2.imshow(mask_window, detector.binarize(image))

            key = cv2.waitKey(30) & 0xFF

            if key == ord("q"):
                print("\n=== Final Marker Settings ===")
                print("markers:")
                print(f"  binary_threshold: {markers['binary_threshold']}")
                print(f"  min_area: {markers['min_area']}")
                print(f"  max_area: {markers['max_area']}")
                break

            elif key == ord("s"):
                if center is None:
                    print(f"Cannot save: {detection.count} of {detection.expected_count} markers found")
                else:
                    record(center, args.tolerance, output)

    except KeyboardInterrupt:
        print("\nInterrupted")
    finally:
        cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
