"""
Configuration loading.

Tuning settings are layered, later layers winning key by key:
1. config/default.yaml
2. config/<env>.yaml, where <env> comes from LASERALIGN_ENV (default production)
3. LASERALIGN_<SECTION>_<KEY> environment variables

Deployment files (ROI and target) are plain text, one `key: value`
pair per line, and are read with load_roi_config / load_target_config.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Callable

import yaml

from ..detection.region import Region
from ..detection.stability import TargetConfig
from .result import LoadResult, StatusCode

logger = logging.getLogger(__name__)

ROI_KEYS = ("x", "y", "width", "height")
TARGET_KEYS = ("center_x", "center_y", "tolerance")

# <repo>/config when running from a source checkout
PROJECT_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


def deep_merge(base: dict, override: dict) -> dict:
    """Return base updated with override, merging nested sections."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top level of {path} must be a mapping")
    return data


def _scalar(text: str) -> Any:
    """Type an environment value the way YAML types a scalar; anything else stays text."""
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    if isinstance(value, (bool, int, float)):
        return value
    return text


class Config:
    """
    Layered LaserAlign settings.

    Usage:
        config = Config()
        row_threshold = config.get('stripe.row_threshold', 200)
        stripe_settings = config['stripe']
        pipeline = StripeDetectionPipeline(config.as_dict)
    """

    ENV_PREFIX = "LASERALIGN_"
    ENV_SELECTOR = "LASERALIGN_ENV"
    DEFAULT_ENV = "production"

    def __init__(self, config_dir: Path | None = None):
        """
        Args:
            config_dir: Directory holding default.yaml and <env>.yaml,
                defaults to the project's config/ directory
        """
        self.config_dir = Path(config_dir) if config_dir is not None else PROJECT_CONFIG_DIR
        self.env = os.getenv(self.ENV_SELECTOR, self.DEFAULT_ENV)
        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for name in ("default", self.env):
            settings = deep_merge(settings, _read_yaml(self.config_dir / f"{name}.yaml"))
        return deep_merge(settings, self._environment_overrides())

    def _environment_overrides(self) -> dict[str, Any]:
        """
        Collect LASERALIGN_<SECTION>_<KEY> variables.

        Only the first underscore after the prefix separates section from
        key, so LASERALIGN_STRIPE_ROW_THRESHOLD=180 sets stripe.row_threshold.
        A name without a second part sets a top-level value.
        """
        overrides: dict[str, Any] = {}
        for name, text in os.environ.items():
            if not name.startswith(self.ENV_PREFIX) or name == self.ENV_SELECTOR:
                continue
            section, _, key = name[len(self.ENV_PREFIX) :].lower().partition("_")
            if key:
                overrides.setdefault(section, {})[key] = _scalar(text)
            else:
                overrides[section] = _scalar(text)
        return overrides

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted path such as 'markers.min_area'.

        Returns default when any part of the path is missing or null.
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def __getitem__(self, section: str) -> Any:
        """Settings of one section, {} if absent."""
        return self._config.get(section, {})

    @property
    def as_dict(self) -> dict[str, Any]:
        """Independent copy of all settings, as the pipelines take them."""
        return copy.deepcopy(self._config)

    def reload(self) -> None:
        """Re-read the YAML files and environment."""
        self._config = self._load_config()


def _read_key_values(
    path: str | Path, parsers: dict[str, Callable[[str], Any]]
) -> tuple[dict[str, Any] | None, str]:
    """
    Read the known keys of a `key: value` file.

    Values that fail to parse are logged and treated as missing.

    Returns:
        (values, reason). values is None when the file cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot open config file {path}: {e}")
        return None, f"Cannot open config file {path}"

    values: dict[str, Any] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, raw = (part.strip() for part in line.split(":", 1))
        parser = parsers.get(key)
        if parser is None:
            continue
        try:
            values[key] = parser(raw)
        except ValueError:
            logger.error(f"Failed to parse {key} in {path}: {line}")

    return values, ""


def load_roi_config(path: str | Path) -> LoadResult[Region]:
    """
    Load a region of interest from a `x/y/width/height` file.

    Returns:
        LoadResult with CONFIG_LOAD_FAILED if the file is unreadable or a
        key is missing, ROI_INVALID if width or height is not positive.
    """
    logger.info(f"Loading ROI config: {path}")
    values, reason = _read_key_values(path, {key: int for key in ROI_KEYS})
    if values is None:
        return LoadResult(StatusCode.CONFIG_LOAD_FAILED, reason=reason)

    missing = [key for key in ROI_KEYS if key not in values]
    if missing:
        reason = f"Missing ROI keys: {', '.join(missing)}"
        logger.error(reason)
        return LoadResult(StatusCode.CONFIG_LOAD_FAILED, reason=reason)

    if values["width"] <= 0 or values["height"] <= 0:
        reason = f"ROI size must be positive, got {values['width']}x{values['height']}"
        logger.error(reason)
        return LoadResult(StatusCode.ROI_INVALID, reason=reason)

    region = Region(values["x"], values["y"], values["width"], values["height"])
    logger.info(f"ROI loaded: {region}")
    return LoadResult(StatusCode.SUCCESS, region)


def load_target_config(path: str | Path) -> LoadResult[TargetConfig]:
    """
    Load the expected target centroid and tolerance.

    Returns:
        LoadResult with CONFIG_LOAD_FAILED if the file is unreadable or any
        of center_x, center_y, tolerance is missing.
    """
    logger.info(f"Loading target config: {path}")
    values, reason = _read_key_values(path, {key: float for key in TARGET_KEYS})
    if values is None:
        return LoadResult(StatusCode.CONFIG_LOAD_FAILED, reason=reason)

    missing = [key for key in TARGET_KEYS if key not in values]
    if missing:
        reason = f"Missing target keys: {', '.join(missing)}"
        logger.error(reason)
        return LoadResult(StatusCode.CONFIG_LOAD_FAILED, reason=reason)

    target = TargetConfig(values["center_x"], values["center_y"], values["tolerance"])
    logger.info(
        f"Target loaded: center=({target.center_x:.1f}, {target.center_y:.1f}), "
        f"tolerance={target.tolerance:.1f}"
    )
    return LoadResult(StatusCode.SUCCESS, target)


def save_target_config(path: str | Path, target: TargetConfig) -> StatusCode:
    """
    Write a target file readable by load_target_config.

    Returns:
        SUCCESS, or CONFIG_LOAD_FAILED if the file cannot be written
    """
    path = Path(path)
    lines = [
        f"center_x: {target.center_x:.3f}",
        f"center_y: {target.center_y:.3f}",
        f"tolerance: {target.tolerance:.3f}",
    ]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot write target config {path}: {e}")
        return StatusCode.CONFIG_LOAD_FAILED

    logger.info(f"Target config written: {path}")
    return StatusCode.SUCCESS
