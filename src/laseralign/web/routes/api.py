"""
REST API routes for LaserAlign.

Provides JSON endpoints for:
- Stripe angle detection
- Camera stability checks
- Version information

Each request gets its own DetectionSession, so concurrent requests
share no mutable state.
"""

import logging

import cv2
import numpy as np
from flask import Blueprint, current_app, jsonify, request

from ...core.config import load_target_config
from ...core.result import StatusCode
from ...core.session import DetectionSession
from ...detection.stability import TargetConfig

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)

ROI_FIELDS = ("x", "y", "width", "height")
TARGET_FIELDS = ("center_x", "center_y", "tolerance")


def _error(status: StatusCode, message: str, http_status: int):
    return jsonify({"status": status.name, "status_code": int(status), "message": message}), http_status


def _read_image() -> np.ndarray | None:
    """Decode the uploaded 'image' file, or None if missing or undecodable."""
    upload = request.files.get("image")
    if upload is None:
        return None
    data = np.frombuffer(upload.read(), dtype=np.uint8)
    if data.size == 0:
        return None
    return cv2.imdecode(data, cv2.IMREAD_UNCHANGED)


def _new_session() -> DetectionSession:
    config = current_app.config["LASERALIGN_CONFIG"]
    session = DetectionSession(config.as_dict)
    session.set_output_directory(current_app.config.get("OUTPUT_DIR"))
    return session


@bp.route("/version")
def version():
    """
    Get library version.

    Returns:
        JSON with major, minor, patch and version string
    """
    info = DetectionSession.version_info()
    return jsonify({
        "major": info.major,
        "minor": info.minor,
        "patch": info.patch,
        "version": info.version_string,
    })


@bp.route("/detect", methods=["POST"])
def detect():
    """
    Detect the laser stripe angle in an uploaded frame.

    Form fields x, y, width, height set the ROI; without them the
    configured ROI file is used. Optional session_id names output images.

    Returns:
        JSON stripe detection result
    """
    frame = _read_image()
    if frame is None:
        return _error(StatusCode.IMAGE_LOAD_FAILED, "No decodable image uploaded", 400)

    with _new_session() as session:
        session.set_session_id(request.form.get("session_id", ""))

        if all(field in request.form for field in ROI_FIELDS):
            try:
                x, y, width, height = (int(request.form[field]) for field in ROI_FIELDS)
            except ValueError:
                return _error(StatusCode.ROI_INVALID, "ROI fields must be integers", 400)
            status = session.set_region(x, y, width, height)
        else:
            roi_path = current_app.config.get("ROI_CONFIG")
            if not roi_path:
                return _error(StatusCode.CONFIG_LOAD_FAILED, "No ROI given or configured", 400)
            status = session.initialize(roi_path)

        if status != StatusCode.SUCCESS:
            return _error(status, "ROI setup failed", 400)

        result = session.detect(frame)

    return jsonify(result.to_dict())


@bp.route("/stability", methods=["POST"])
def stability():
    """
    Check camera stability against the calibration target.

    Form fields center_x, center_y, tolerance set the expected target;
    without them the configured target file is used.

    Returns:
        JSON stability result
    """
    frame = _read_image()
    if frame is None:
        return _error(StatusCode.IMAGE_LOAD_FAILED, "No decodable image uploaded", 400)

    if all(field in request.form for field in TARGET_FIELDS):
        try:
            target = TargetConfig(*(float(request.form[field]) for field in TARGET_FIELDS))
        except ValueError:
            return _error(StatusCode.CONFIG_LOAD_FAILED, "Target fields must be numbers", 400)
    else:
        target_path = current_app.config.get("TARGET_CONFIG")
        if not target_path:
            return _error(StatusCode.CONFIG_LOAD_FAILED, "No target given or configured", 400)
        loaded = load_target_config(target_path)
        if not loaded.ok:
            return _error(loaded.status, loaded.reason, 400)
        target = loaded.value

    with _new_session() as session:
        result = session.check_stability(frame, target)

    return jsonify(result.to_dict())
