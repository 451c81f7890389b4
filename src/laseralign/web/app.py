"""
Flask application factory for the LaserAlign web interface.

Exposes the detection session over HTTP:
- Stripe angle detection on uploaded frames
- Camera stability checks on uploaded target frames
- Version and health endpoints
"""

import logging

from flask import Flask

from ..core.config import Config
from ..core.session import DetectionSession

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> Flask:
    """
    Application factory for Flask app.

    Args:
        config: LaserAlign configuration, or None to load defaults

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    if config is None:
        config = Config()

    app.config["LASERALIGN_CONFIG"] = config
    app.config["ROI_CONFIG"] = config.get("web.roi_config")
    app.config["TARGET_CONFIG"] = config.get("web.target_config")
    app.config["OUTPUT_DIR"] = config.get("web.output_dir")

    from .routes import api

    app.register_blueprint(api.bp, url_prefix="/api")

    @app.route("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "version": DetectionSession.version_string()}

    logger.info("Flask app created")
    return app
