"""YAML config loader with environment overrides and dotted lookup."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from thermhub.config.schema import ThermHubConfig

# Environment variable -> dotted config key
ENV_OVERRIDES: dict[str, str] = {
    "THERMHUB_DB": "db_path",
    "WEATHER_URL_HOURLY": "weather.hourly_url",
    "WEATHER_URL_DAILY": "weather.daily_url",
    "ECOBEE_CLIENT_ID": "ecobee.client_id",
    "ECOBEE_TOKEN_POLICY": "ecobee.token_policy",
    "LISTEN_PORT": "server.port",
    "CORS_HOST": "server.cors_host",
    "SHARED_SECRET": "server.shared_secret",
    "THROTTLE_SECONDS": "worker.throttle_seconds",
    "TICK_SECONDS": "worker.tick_seconds",
}


def load_config(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> ThermHubConfig:
    """Load and validate config from a YAML file, then apply env overrides.

    A missing path yields the defaults so the collector can run from the
    environment alone.
    """
    raw: dict[str, Any] = {}
    if path is not None and Path(path).exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    apply_env_overrides(raw, os.environ if environ is None else environ)
    return ThermHubConfig(**raw)


def apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Write any set override variables into the raw config dict in place."""
    for env_name, dotted_key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        parts = dotted_key.split(".")
        target = raw
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return raw


def get_config_value(config: ThermHubConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'worker.throttle_seconds'."""
    parts = dotted_key.split(".")
    obj: Any = config
    for part in parts:
        if hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj
