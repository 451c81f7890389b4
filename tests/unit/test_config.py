"""
Unit tests for configuration loading.
"""

import os

import pytest

from laseralign.core.config import (
    Config,
    deep_merge,
    load_roi_config,
    load_target_config,
    save_target_config,
)
from laseralign.core.result import StatusCode
from laseralign.detection.region import Region
from laseralign.detection.stability import TargetConfig


@pytest.fixture
def clean_env(monkeypatch):
    """Remove LASERALIGN_* variables from the environment."""
    for key in list(os.environ):
        if key.startswith("LASERALIGN_"):
            monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "config"
    path.mkdir()
    (path / "default.yaml").write_text(
        "stripe:\n"
        "  strategy: brightest_per_row\n"
        "  row_threshold: 200\n"
        "quality:\n"
        "  max_rms_residual: 5.0\n",
        encoding="utf-8",
    )
    (path / "development.yaml").write_text(
        "stripe:\n  row_threshold: 150\n", encoding="utf-8"
    )
    return path


class TestConfig:
    """Tests for the YAML configuration loader."""

    def test_default_file(self, clean_env, config_dir):
        config = Config(config_dir)

        assert config.env == "production"
        assert config.get("stripe.strategy") == "brightest_per_row"
        assert config["stripe"]["row_threshold"] == 200

    def test_environment_file_merges(self, clean_env, config_dir):
        clean_env.setenv("LASERALIGN_ENV", "development")
        config = Config(config_dir)

        assert config.get("stripe.row_threshold") == 150
        assert config.get("stripe.strategy") == "brightest_per_row"

    def test_env_variable_override(self, clean_env, config_dir):
        clean_env.setenv("LASERALIGN_STRIPE_ROW_THRESHOLD", "180")
        clean_env.setenv("LASERALIGN_QUALITY_MAX_RMS_RESIDUAL", "2.5")
        config = Config(config_dir)

        assert config.get("stripe.row_threshold") == 180
        assert config.get("quality.max_rms_residual") == 2.5

    def test_env_boolean(self, clean_env, config_dir):
        clean_env.setenv("LASERALIGN_OUTPUT_SAVE_STABILITY_IMAGES", "false")
        config = Config(config_dir)
        assert config.get("output.save_stability_images") is False

    def test_missing_key_default(self, clean_env, config_dir):
        config = Config(config_dir)

        assert config.get("markers.min_area", 2000) == 2000
        assert config.get("stripe.strategy.nested", "x") == "x"
        assert config["web"] == {}

    def test_missing_directory(self, clean_env, tmp_path):
        assert Config(tmp_path / "nowhere").as_dict == {}

    def test_reload(self, clean_env, config_dir):
        config = Config(config_dir)
        (config_dir / "default.yaml").write_text("stripe:\n  row_threshold: 190\n", encoding="utf-8")
        config.reload()
        assert config.get("stripe.row_threshold") == 190

    def test_env_top_level_value(self, clean_env, config_dir):
        clean_env.setenv("LASERALIGN_DEBUG", "true")
        assert Config(config_dir).get("debug") is True

    def test_env_text_value(self, clean_env, config_dir):
        clean_env.setenv("LASERALIGN_STRIPE_STRATEGY", "above_threshold")
        assert Config(config_dir).get("stripe.strategy") == "above_threshold"

    def test_as_dict_is_a_copy(self, clean_env, config_dir):
        config = Config(config_dir)
        config.as_dict["stripe"]["row_threshold"] = 1
        assert config.get("stripe.row_threshold") == 200

    def test_non_mapping_file_rejected(self, clean_env, config_dir):
        (config_dir / "default.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            Config(config_dir)

    def test_project_defaults(self, clean_env):
        """The shipped default.yaml matches the built-in defaults."""
        config = Config()

        assert config.get("stripe.strategy") == "brightest_per_row"
        assert config.get("stripe.row_threshold") == 200
        assert config.get("stripe.min_points") == 10
        assert config.get("markers.min_area") == 2000
        assert config.get("markers.max_area") == 50000


def test_deep_merge_nested():
    base = {"stripe": {"row_threshold": 200, "min_points": 10}, "app": {"debug": False}}
    merged = deep_merge(base, {"stripe": {"row_threshold": 150}, "app": True})

    assert merged == {"stripe": {"row_threshold": 150, "min_points": 10}, "app": True}
    assert base["stripe"]["row_threshold"] == 200


class TestLoadRoiConfig:
    """Tests for the ROI deployment file."""

    def test_valid_file(self, roi_file, stripe_region):
        loaded = load_roi_config(roi_file)

        assert loaded.ok
        assert loaded.status == StatusCode.SUCCESS
        assert loaded.value == Region(*stripe_region)

    def test_comments_and_unknown_keys(self, tmp_path):
        path = tmp_path / "roi.txt"
        path.write_text(
            "# camera 2\n\nx: 10\nlabel: left rail\ny: 20\nwidth: 30\nheight: 40\n",
            encoding="utf-8",
        )
        loaded = load_roi_config(path)
        assert loaded.value == Region(10, 20, 30, 40)

    def test_missing_file(self, tmp_path):
        loaded = load_roi_config(tmp_path / "missing.txt")

        assert loaded.status == StatusCode.CONFIG_LOAD_FAILED
        assert loaded.value is None
        assert "missing.txt" in loaded.reason

    @pytest.mark.parametrize("dropped", ["x", "y", "width", "height"])
    def test_missing_key(self, tmp_path, dropped):
        values = {"x": 1, "y": 2, "width": 3, "height": 4}
        del values[dropped]
        path = tmp_path / "roi.txt"
        path.write_text("".join(f"{k}: {v}\n" for k, v in values.items()), encoding="utf-8")

        loaded = load_roi_config(path)
        assert loaded.status == StatusCode.CONFIG_LOAD_FAILED
        assert dropped in loaded.reason

    def test_unparsable_value(self, tmp_path):
        path = tmp_path / "roi.txt"
        path.write_text("x: ten\ny: 2\nwidth: 3\nheight: 4\n", encoding="utf-8")
        assert load_roi_config(path).status == StatusCode.CONFIG_LOAD_FAILED

    @pytest.mark.parametrize("line", ["width: 400.0", "width: 400px"])
    def test_width_must_be_plain_integer(self, tmp_path, line):
        """Values are whole tokens; a decimal or suffixed number counts as missing."""
        path = tmp_path / "roi.txt"
        path.write_text(f"x: 0\ny: 0\n{line}\nheight: 10\n", encoding="utf-8")

        loaded = load_roi_config(path)
        assert loaded.status == StatusCode.CONFIG_LOAD_FAILED
        assert "width" in loaded.reason

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 10)])
    def test_non_positive_size(self, tmp_path, width, height):
        path = tmp_path / "roi.txt"
        path.write_text(f"x: 0\ny: 0\nwidth: {width}\nheight: {height}\n", encoding="utf-8")

        loaded = load_roi_config(path)
        assert loaded.status == StatusCode.ROI_INVALID
        assert loaded.value is None


class TestLoadTargetConfig:
    """Tests for the target deployment file."""

    def test_valid_file(self, target_file):
        loaded = load_target_config(target_file)

        assert loaded.ok
        assert loaded.value.center == (320.0, 240.0)
        assert loaded.value.tolerance == 5.0

    def test_missing_file(self, tmp_path):
        assert load_target_config(tmp_path / "none.txt").status == StatusCode.CONFIG_LOAD_FAILED

    @pytest.mark.parametrize("dropped", ["center_x", "center_y", "tolerance"])
    def test_missing_key(self, tmp_path, dropped):
        values = {"center_x": 1.5, "center_y": 2.5, "tolerance": 3.0}
        del values[dropped]
        path = tmp_path / "target.txt"
        path.write_text("".join(f"{k}: {v}\n" for k, v in values.items()), encoding="utf-8")

        loaded = load_target_config(path)
        assert loaded.status == StatusCode.CONFIG_LOAD_FAILED
        assert loaded.value is None


class TestSaveTargetConfig:
    """Tests for writing the target file."""

    def test_written_file_loads_back(self, tmp_path):
        path = tmp_path / "deploy" / "target_config.txt"
        target = TargetConfig(321.25, 239.5, 4.0)

        assert save_target_config(path, target) == StatusCode.SUCCESS
        assert load_target_config(path).value == target

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        status = save_target_config(blocker / "target_config.txt", TargetConfig(1.0, 2.0, 3.0))
        assert status == StatusCode.CONFIG_LOAD_FAILED
