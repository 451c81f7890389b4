"""
LaserAlign CLI entry point.

Usage:
    python -m laseralign detect frame.png --roi-config config/roi_config.txt
    python -m laseralign detect frame.png --roi 100 50 400 300 --output-dir out
    python -m laseralign stability target.png --target-config config/target_config.txt
    python -m laseralign web
    python -m laseralign version
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

import cv2

from .core.config import Config, load_target_config
from .core.result import StatusCode
from .core.session import DetectionSession
from .detection.stability import TargetConfig


def setup_logging(config: Config) -> None:
    """Configure logging based on config."""
    log_config = config["logging"]
    level = getattr(logging, log_config.get("level", "INFO"))

    log_file = log_config.get("file", "logs/laseralign.log")
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file),
        ],
    )


def run_detect(args: argparse.Namespace, config: Config) -> int:
    """Run stripe detection on one image file."""
    logger = logging.getLogger(__name__)

    with DetectionSession(config.as_dict) as session:
        if args.roi:
            status = session.set_region(*args.roi)
        else:
            status = session.initialize(args.roi_config)
        if status != StatusCode.SUCCESS:
            logger.error(f"ROI setup failed: {status.name}")
            return 1

        session.set_session_id(args.session_id)
        session.set_output_directory(args.output_dir)

        frame = cv2.imread(args.image, cv2.IMREAD_UNCHANGED)
        if frame is None:
            logger.error(f"Failed to load image: {args.image}")
        result = session.detect(frame)

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.status == StatusCode.SUCCESS else 1


def run_stability(args: argparse.Namespace, config: Config) -> int:
    """Run a camera stability check on one image file."""
    logger = logging.getLogger(__name__)

    if args.target:
        target = TargetConfig(*args.target)
    else:
        loaded = load_target_config(args.target_config)
        if not loaded.ok:
            logger.error(f"Target config failed: {loaded.reason}")
            return 1
        target = loaded.value

    with DetectionSession(config.as_dict) as session:
        session.set_session_id(args.session_id)
        session.set_output_directory(args.output_dir)

        frame = cv2.imread(args.image, cv2.IMREAD_UNCHANGED)
        if frame is None:
            logger.error(f"Failed to load image: {args.image}")
        result = session.check_stability(frame, target)

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.status == StatusCode.SUCCESS and result.is_stable else 1


def run_web_server(config: Config) -> None:
    """Start the Flask web server."""
    logger = logging.getLogger(__name__)

    from .web.app import create_app

    app = create_app(config)

    web_config = config["web"]
    host = web_config.get("host", "0.0.0.0")
    port = web_config.get("port", 5000)
    debug = config.get("app.debug", False)

    logger.info(f"Web server starting at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug, threaded=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="laseralign",
        description="LaserAlign - Laser Stripe Angle and Camera Stability Measurement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m laseralign detect frame.png --roi-config config/roi_config.txt
    python -m laseralign stability target.png --target 320 240 5
    python -m laseralign web
        """,
    )
    parser.add_argument("--config", type=str, help="Path to configuration directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="Measure the laser stripe angle in an image")
    detect.add_argument("image", help="Image file")
    roi = detect.add_mutually_exclusive_group()
    roi.add_argument("--roi-config", default="config/roi_config.txt", help="ROI config file")
    roi.add_argument("--roi", type=int, nargs=4, metavar=("X", "Y", "W", "H"), help="ROI in pixels")
    detect.add_argument("--session-id", default="", help="Session identifier for output names")
    detect.add_argument("--output-dir", help="Directory for annotated result images")

    stability = sub.add_parser("stability", help="Check camera stability against the target")
    stability.add_argument("image", help="Image file")
    target = stability.add_mutually_exclusive_group()
    target.add_argument(
        "--target-config", default="config/target_config.txt", help="Target config file"
    )
    target.add_argument(
        "--target", type=float, nargs=3, metavar=("CX", "CY", "TOL"), help="Expected center and tolerance"
    )
    stability.add_argument("--session-id", default="", help="Session identifier for output names")
    stability.add_argument("--output-dir", help="Directory for annotated result images")

    sub.add_parser("web", help="Start the web server")
    sub.add_parser("version", help="Print the version")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print(DetectionSession.version_string())
        return 0

    if args.debug:
        os.environ["LASERALIGN_ENV"] = "development"

    config_dir = Path(args.config) if args.config else None
    config = Config(config_dir)

    setup_logging(config)

    logger = logging.getLogger(__name__)
    logger.info(f"LaserAlign {DetectionSession.version_string()} starting ({config.env})")

    if args.command == "detect":
        return run_detect(args, config)
    if args.command == "stability":
        return run_stability(args, config)

    run_web_server(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
