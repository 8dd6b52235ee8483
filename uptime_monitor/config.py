"""Configuration management for the uptime monitor."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator


DEFAULT_CONFIG_PATH = "config/monitor.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Markers left in the example config until a real webhook is pasted in.
WEBHOOK_PLACEHOLDER_MARKERS = (
    "YOUR/SLACK/WEBHOOK",
    "hooks.slack.com/services/XXX",
)


class ConfigError(Exception):
    """Raised when the monitor configuration cannot be loaded or is invalid."""


class MonitorConfig(BaseModel):
    """Settings for the uptime monitor. Read-only once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    domains: Tuple[str, ...] = Field(min_length=1, description="URLs to probe, in report order")
    check_interval_minutes: int = Field(
        default=5,
        gt=0,
        validation_alias=AliasChoices("check_interval_minutes", "checkInterval"),
        description="Minutes between check cycles",
    )
    slack_webhook_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("slack_webhook_url", "slackWebhookUrl"),
        description="Slack incoming webhook; unset or placeholder disables alerts",
    )
    probe_timeout_seconds: float = Field(default=30.0, gt=0, description="Upper bound per domain probe")
    notify_timeout_seconds: float = Field(default=10.0, gt=0, description="Upper bound per Slack delivery")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("domains")
    @classmethod
    def _check_domains(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = []
        for idx, raw in enumerate(value):
            url = str(raw or "").strip()
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"domains[{idx}] must be an absolute http(s) URL, got {raw!r}")
            if url in cleaned:
                raise ValueError(f"domains[{idx}] duplicates an earlier entry: {url!r}")
            cleaned.append(url)
        return tuple(cleaned)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = str(value or "").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @property
    def alerts_enabled(self) -> bool:
        return not is_placeholder_webhook(self.slack_webhook_url)


def is_placeholder_webhook(url: Optional[str]) -> bool:
    """True when the webhook is missing or still the example placeholder."""
    s = (url or "").strip()
    if not s:
        return True
    return any(marker in s for marker in WEBHOOK_PLACEHOLDER_MARKERS)


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    return data


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """Load configuration from a YAML/JSON file plus environment overrides."""
    if config_path is None:
        config_path = os.getenv("UPTIME_MONITOR_CONFIG", DEFAULT_CONFIG_PATH)

    config_data = _read_config_file(Path(config_path))

    # Override with environment variables
    env_overrides = {
        "slack_webhook_url": os.getenv("SLACK_WEBHOOK_URL"),
        "check_interval_minutes": os.getenv("CHECK_INTERVAL_MINUTES"),
        "log_level": os.getenv("LOG_LEVEL"),
    }

    for key, value in env_overrides.items():
        if value is not None:
            if key == "check_interval_minutes":
                config_data.pop("checkInterval", None)
            elif key == "slack_webhook_url":
                config_data.pop("slackWebhookUrl", None)
            config_data[key] = value

    try:
        return MonitorConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {config_path}: {exc}") from exc
