"""Configuration loading from CLI args, env vars, and optional YAML file."""

import logging
import os
from dataclasses import dataclass, field

import yaml

from perflog.filters import STATUS_BUCKETS

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


class ConfigError(ValueError):
    """Raised for configuration values that cannot be used."""


@dataclass(frozen=True)
class Config:
    slow_threshold: float = 0.05        # seconds, quick stats
    slow_threshold_ms: float = 100.0    # milliseconds, aggregates
    output_format: str = "text"
    log_level: str = "INFO"
    status_buckets: tuple[int, ...] = field(default=STATUS_BUCKETS)
    protocol_marker: str = "[SignalR]"
    hub_marker: str = "WebScapeHub"


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def _threshold(value, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if number < 0:
        raise ConfigError(f"{name} must not be negative, got {number}")
    return number


def _buckets(values) -> tuple[int, ...]:
    if not isinstance(values, (list, tuple)):
        raise ConfigError(f"status_buckets must be a list, got {values!r}")
    result = []
    for value in values:
        try:
            bucket = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"status bucket must be an integer, got {value!r}") from None
        if bucket not in STATUS_BUCKETS:
            raise ConfigError(f"status bucket must be one of {STATUS_BUCKETS}, got {bucket}")
        result.append(bucket)
    return tuple(result)


def _marker(value, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{name} must be a non-empty string, got {value!r}")
    return value


def _pick(cli_value, env_name: str, yaml_data: dict, key: str, default):
    """CLI flag > environment variable > YAML value > default."""
    if cli_value is not None:
        return cli_value
    if env_name and env_name in os.environ:
        return os.environ[env_name]
    return yaml_data.get(key, default)


def load_config(cli_args=None, yaml_data: dict | None = None) -> Config:
    """Build Config from CLI args, env vars, and parsed YAML data."""
    yaml_data = yaml_data or {}

    def arg(name):
        return getattr(cli_args, name, None) if cli_args is not None else None

    output_format = _pick(arg("output"), "PERFLOG_OUTPUT", yaml_data, "output", Config.output_format)
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"output must be one of {OUTPUT_FORMATS}, got {output_format!r}")

    return Config(
        slow_threshold=_threshold(
            _pick(arg("threshold"), "PERFLOG_SLOW_THRESHOLD", yaml_data, "slow_threshold",
                  Config.slow_threshold),
            "slow_threshold",
        ),
        slow_threshold_ms=_threshold(
            _pick(arg("threshold_ms"), "PERFLOG_SLOW_THRESHOLD_MS", yaml_data, "slow_threshold_ms",
                  Config.slow_threshold_ms),
            "slow_threshold_ms",
        ),
        output_format=output_format,
        log_level=str(_pick(arg("log_level"), "PERFLOG_LOG_LEVEL", yaml_data, "log_level",
                            Config.log_level)).upper(),
        status_buckets=_buckets(yaml_data.get("status_buckets", STATUS_BUCKETS)),
        protocol_marker=_marker(yaml_data.get("protocol_marker", Config.protocol_marker), "protocol_marker"),
        hub_marker=_marker(yaml_data.get("hub_marker", Config.hub_marker), "hub_marker"),
    )
