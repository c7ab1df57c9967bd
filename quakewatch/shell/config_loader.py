"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, MonitoringRegion) are defined in quakewatch/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from quakewatch.core.config import Config, MonitoringRegion
from quakewatch.core.region import BoundingBox


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"

# Prefix for load_config_from_env variables
ENV_PREFIX = "QUAKEWATCH_"


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Non-strings and strings without a placeholder are returned unchanged.
    An unset variable leaves the placeholder in place (config validation
    flags it later).
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_region(data: dict[str, Any]) -> MonitoringRegion:
    """Parse the monitored region from config data."""
    if not isinstance(data, dict):
        raise ValueError(f"region must be a mapping, got {data!r}")
    return MonitoringRegion(
        name=data.get("name", "region"),
        bounds=_parse_bounds(data["bounds"]),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    Missing keys take the Config defaults. This is a pure-ish function
    (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    defaults = Config()

    region = defaults.region
    if "region" in data:
        region = _parse_region(data["region"])

    raw_log_path = _resolve_value(data.get("raw_log_path"))

    return Config(
        feed_url=_resolve_value(data.get("feed_url", defaults.feed_url)),
        poll_interval_seconds=float(data.get("poll_interval_seconds", defaults.poll_interval_seconds)),
        window_days=int(data.get("window_days", defaults.window_days)),
        lookahead_days=int(data.get("lookahead_days", defaults.lookahead_days)),
        min_magnitude=float(data.get("min_magnitude", defaults.min_magnitude)),
        region=region,
        watch_place=str(data.get("watch_place", defaults.watch_place)),
        request_timeout_seconds=float(
            data.get("request_timeout_seconds", defaults.request_timeout_seconds)
        ),
        backoff_multiplier=float(data.get("backoff_multiplier", defaults.backoff_multiplier)),
        max_backoff_seconds=float(data.get("max_backoff_seconds", defaults.max_backoff_seconds)),
        max_dedup_entries=int(data.get("max_dedup_entries", defaults.max_dedup_entries)),
        max_region_matches=int(data.get("max_region_matches", defaults.max_region_matches)),
        raw_log_path=str(raw_log_path) if raw_log_path else None,
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If the file is not a mapping or a value has the wrong type
        KeyError: If the region has no bounds
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a mapping, got {type(data).__name__}")

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: region %s, M%.1f+, %d-day window, polling every %.0fs",
        config.region.name,
        config.min_magnitude,
        config.window_days,
        config.poll_interval_seconds,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file. Unset variables
    take the Config defaults.

    Environment variables:
        QUAKEWATCH_FEED_URL: Feed query endpoint
        QUAKEWATCH_POLL_INTERVAL: Seconds between cycles
        QUAKEWATCH_MIN_MAGNITUDE: Minimum magnitude to fetch
        QUAKEWATCH_WINDOW_DAYS: Query window length
        QUAKEWATCH_LOOKAHEAD_DAYS: Days past today the window ends
        QUAKEWATCH_REGION_BOUNDS: Comma-separated bounds (min_lat,max_lat,min_lon,max_lon)
        QUAKEWATCH_REGION_NAME: Display name for the region
        QUAKEWATCH_WATCH_PLACE: Place substring listed in the report
        QUAKEWATCH_RAW_LOG: File receiving raw responses

    Returns:
        Config object from environment
    """
    data: dict[str, Any] = {}

    simple = {
        "FEED_URL": "feed_url",
        "POLL_INTERVAL": "poll_interval_seconds",
        "MIN_MAGNITUDE": "min_magnitude",
        "WINDOW_DAYS": "window_days",
        "LOOKAHEAD_DAYS": "lookahead_days",
        "WATCH_PLACE": "watch_place",
        "RAW_LOG": "raw_log_path",
    }
    for env_name, key in simple.items():
        value = os.environ.get(ENV_PREFIX + env_name)
        if value:
            data[key] = value

    bounds_str = os.environ.get(ENV_PREFIX + "REGION_BOUNDS")
    if bounds_str:
        parts = [float(p.strip()) for p in bounds_str.split(",")]
        if len(parts) == 4:
            data["region"] = {
                "name": os.environ.get(ENV_PREFIX + "REGION_NAME", "custom"),
                "bounds": {
                    "min_latitude": parts[0],
                    "max_latitude": parts[1],
                    "min_longitude": parts[2],
                    "max_longitude": parts[3],
                },
            }
        else:
            logger.warning(
                "%sREGION_BOUNDS needs 4 values, got %d; using default region",
                ENV_PREFIX,
                len(parts),
            )

    return load_config_from_dict(data)
