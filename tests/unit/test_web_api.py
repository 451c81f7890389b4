"""
Unit tests for the Flask REST API.
"""

import io

import cv2
import pytest

from laseralign.core.config import Config
from laseralign.web.app import create_app


@pytest.fixture
def app(tmp_path, roi_file, target_file, monkeypatch):
    monkeypatch.delenv("LASERALIGN_ENV", raising=False)
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text(
        "web:\n"
        f"  roi_config: {roi_file}\n"
        f"  target_config: {target_file}\n"
        f"  output_dir: {tmp_path / 'output'}\n",
        encoding="utf-8",
    )
    app = create_app(Config(config_dir))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def upload(frame, **fields):
    ok, encoded = cv2.imencode(".png", frame)
    assert ok
    data = {"image": (io.BytesIO(encoded.tobytes()), "frame.png")}
    data.update({key: str(value) for key, value in fields.items()})
    return data


class TestInfoEndpoints:
    """Tests for health and version."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "version": "1.0.0"}

    def test_version(self, client):
        data = client.get("/api/version").get_json()
        assert data == {"major": 1, "minor": 0, "patch": 0, "version": "1.0.0"}


class TestDetectEndpoint:
    """Tests for POST /api/detect."""

    def test_configured_roi(self, client, stripe_frame, tmp_path):
        response = client.post(
            "/api/detect", data=upload(stripe_frame, session_id="SN1"), content_type="multipart/form-data"
        )
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "SUCCESS"
        assert data["detected"] is True
        assert data["angle_degrees"] == pytest.approx(20.0, abs=2.0)
        assert len(list((tmp_path / "output").glob("result_SN1_*.jpg"))) == 1

    def test_session_id_cannot_escape_output_dir(self, client, stripe_frame, tmp_path):
        response = client.post(
            "/api/detect",
            data=upload(stripe_frame, session_id="z/../../../pwned"),
            content_type="multipart/form-data",
        )
        data = response.get_json()

        assert data["status"] == "SUCCESS"
        saved = list((tmp_path / "output").iterdir())
        assert len(saved) == 1
        assert data["image_path"] == str(saved[0])
        assert list(tmp_path.parent.glob("pwned*")) == []
        assert list(tmp_path.glob("pwned*")) == []

    def test_roi_from_form(self, client, stripe_frame):
        response = client.post(
            "/api/detect",
            data=upload(stripe_frame, x=500, y=300, width=200, height=200),
            content_type="multipart/form-data",
        )
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "OUT_OF_ROI"
        assert data["detected"] is False

    def test_invalid_roi(self, client, stripe_frame):
        response = client.post(
            "/api/detect",
            data=upload(stripe_frame, x=0, y=0, width=0, height=10),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert response.get_json()["status"] == "ROI_INVALID"

    def test_missing_image(self, client):
        response = client.post("/api/detect", data={}, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["status"] == "IMAGE_LOAD_FAILED"

    def test_undecodable_image(self, client):
        data = {"image": (io.BytesIO(b"not an image"), "frame.png")}
        response = client.post("/api/detect", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["status"] == "IMAGE_LOAD_FAILED"


class TestStabilityEndpoint:
    """Tests for POST /api/stability."""

    def test_configured_target(self, client, target_frame):
        response = client.post(
            "/api/stability", data=upload(target_frame), content_type="multipart/form-data"
        )
        data = response.get_json()

        assert response.status_code == 200
        assert data["status"] == "SUCCESS"
        assert data["is_stable"] is True

    def test_target_from_form(self, client, make_target_frame):
        response = client.post(
            "/api/stability",
            data=upload(make_target_frame(offset=(6, 8)), center_x=320, center_y=240, tolerance=5),
            content_type="multipart/form-data",
        )
        data = response.get_json()

        assert data["is_stable"] is False
        assert data["distance"] == pytest.approx(10.0, abs=0.5)

    def test_missing_markers(self, client, make_target_frame, marker_centers):
        response = client.post(
            "/api/stability",
            data=upload(make_target_frame(centers=marker_centers[:2])),
            content_type="multipart/form-data",
        )
        data = response.get_json()

        assert data["status"] == "CAMERA_SELF_CHECK_FAILED"
        assert data["marker_count"] == 2

    def test_bad_target_fields(self, client, target_frame):
        response = client.post(
            "/api/stability",
            data=upload(target_frame, center_x="a", center_y=1, tolerance=1),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert response.get_json()["status"] == "CONFIG_LOAD_FAILED"
