# ============================================================================
# WORKER SETTINGS
# ============================================================================
# STATUS: Core - Validated worker configuration
# PURPOSE: Load engine client + worker definitions from YAML or environment
# CREATED: 17 OCT 2026
# ============================================================================
"""
Worker Settings

Settings are loaded once at startup and are immutable afterwards.

Source precedence:
1. YAML file from `WORKER_CONFIG_FILE` (or an explicit path)
2. Environment variables (single worker) when no file is configured
3. ENGINE_BASE_URL / ENGINE_USER / ENGINE_PASSWORD always override the
   engine section, so credentials can stay out of the file

YAML layout:

    engine:
      base_url: https://engine.example/external-job-api
      user: worker
      password: secret
    logging:
      level: INFO
      json_output: false
    workers:
      - name: invoices
        strategy: path
        topic: invoice-export
        worker_id: invoice-worker-1
        max_concurrency: 4
        retry: {initial_delay_seconds: 30}
        time_window:
          pause_from_hour: 1
          pause_to_hour: 3
          weekly:
            saturday: {enabled: false}
            monday: {windows: [{start: "06:00", end: "22:00"}]}
        http:
          target_url: https://svc.example/api/invoices
          payload_path: payload.inputPayload.data
"""

import logging
import os
import socket
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.config.defaults import get_defaults

logger = logging.getLogger(__name__)


WEEKDAYS: Tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)
_WEEKDAY_ALIASES = {name[:3]: name for name in WEEKDAYS}


class ConfigurationError(ValueError):
    """Raised when worker configuration is missing or invalid."""
    pass


# ============================================================================
# ENGINE CLIENT
# ============================================================================

class EngineClientSettings(BaseModel):
    """Connection to the workflow engine's external job REST API."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = Field(..., min_length=1)
    user: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)
    allow_insecure_ssl: bool = False
    http_timeout_seconds: float = Field(
        default_factory=lambda: get_defaults().engine.http_timeout_seconds,
        gt=0,
    )


# ============================================================================
# RETRY
# ============================================================================

class RetrySettings(BaseModel):
    """Backoff parameters for retryable failures."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_delay_seconds: int = Field(
        default_factory=lambda: get_defaults().retry.initial_delay_seconds, ge=1
    )
    max_delay_seconds: int = Field(
        default_factory=lambda: get_defaults().retry.max_delay_seconds, ge=1
    )
    jitter_seconds: int = Field(
        default_factory=lambda: get_defaults().retry.jitter_seconds, ge=0
    )
    backoff_multiplier: float = Field(
        default_factory=lambda: get_defaults().retry.backoff_multiplier, ge=1.0
    )


# ============================================================================
# PAUSE WINDOW
# ============================================================================

def _parse_clock(value: str) -> Optional[int]:
    """'HH:MM' -> minute of day (24:00 allowed as end of day)."""
    try:
        hours_text, minutes_text = value.strip().split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError):
        return None
    if not (0 <= minutes < 60):
        return None
    if hours == 24 and minutes == 0:
        return 24 * 60
    if not (0 <= hours < 24):
        return None
    return hours * 60 + minutes


class DayWindow(BaseModel):
    """An active time-of-day window, [start, end)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: str
    end: str

    def bounds(self) -> Optional[Tuple[int, int]]:
        """(start_minute, end_minute), or None when the window is invalid."""
        start = _parse_clock(self.start)
        end = _parse_clock(self.end)
        if start is None or end is None or start >= end:
            return None
        return start, end


class DaySchedule(BaseModel):
    """
    Schedule for one weekday.

    enabled=False pauses the whole day. An enabled day with no valid
    windows is active all day.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    windows: List[DayWindow] = Field(default_factory=list)


class TimeWindowSettings(BaseModel):
    """
    When the worker must not acquire jobs.

    The weekly schedule, when present, replaces the simple hour range.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    time_zone: str = Field(default_factory=lambda: get_defaults().engine.time_zone)
    pause_from_hour: Optional[int] = Field(default=None, ge=0, le=23)
    pause_to_hour: Optional[int] = Field(default=None, ge=0, le=24)
    weekly: Optional[Dict[str, DaySchedule]] = None

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("weekly", mode="before")
    @classmethod
    def normalize_weekdays(cls, v: Any) -> Any:
        """Accept 'Monday', 'mon', 'MONDAY' as keys."""
        if not isinstance(v, dict):
            return v
        normalized = {}
        for key, value in v.items():
            name = str(key).strip().lower()
            name = _WEEKDAY_ALIASES.get(name, name)
            if name not in WEEKDAYS:
                raise ValueError(f"Unknown weekday: {key}")
            normalized[name] = value
        return normalized

    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)


# ============================================================================
# HTTP ENDPOINT
# ============================================================================

class HttpEndpointSettings(BaseModel):
    """Outbound business endpoint called by the HTTP forwarding handlers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_url: str = Field(..., min_length=1)
    timeout_seconds: float = Field(
        default_factory=lambda: get_defaults().endpoint.timeout_seconds, gt=0
    )
    verify_ssl: bool = True

    # Input extraction
    input_variable: str = Field(default_factory=lambda: get_defaults().endpoint.input_variable)
    payload_path: List[str] = Field(
        default_factory=lambda: list(get_defaults().endpoint.payload_path)
    )
    search_property: Optional[str] = None
    search_case_insensitive: bool = False

    # Business error recognition (422 responses)
    business_error_code_field: str = Field(
        default_factory=lambda: get_defaults().endpoint.business_error_code_field
    )
    business_error_message_field: str = Field(
        default_factory=lambda: get_defaults().endpoint.business_error_message_field
    )

    @field_validator("payload_path", mode="before")
    @classmethod
    def split_dotted_path(cls, v: Any) -> Any:
        """Allow "a.b.c" as shorthand for ["a", "b", "c"]."""
        if isinstance(v, str):
            return [segment for segment in v.split(".") if segment]
        return v


# ============================================================================
# WORKER
# ============================================================================

class WorkerSettings(BaseModel):
    """One worker: topic subscription, loop cadence, retry policy, endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    strategy: str = "raw"

    # Identity (MUST be set explicitly)
    topic: str = Field(..., min_length=1)
    worker_id: str = Field(..., min_length=1)

    # Acquisition
    lock_duration: str = Field(default_factory=lambda: get_defaults().polling.lock_duration)
    max_jobs_per_tick: int = Field(
        default_factory=lambda: get_defaults().polling.max_jobs_per_tick, ge=1
    )
    poll_period_seconds: float = Field(
        default_factory=lambda: get_defaults().polling.poll_period_seconds, gt=0
    )
    max_concurrency: int = Field(
        default_factory=lambda: get_defaults().polling.max_concurrency, ge=1
    )
    initial_retries: int = Field(
        default_factory=lambda: get_defaults().polling.initial_retries, ge=0
    )
    shutdown_timeout_seconds: float = Field(
        default_factory=lambda: get_defaults().polling.shutdown_timeout_seconds, gt=0
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    time_window: TimeWindowSettings = Field(default_factory=TimeWindowSettings)
    http: HttpEndpointSettings

    @property
    def display_name(self) -> str:
        return self.name or self.worker_id


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    json_output: bool = False


class AppSettings(BaseModel):
    """Everything the worker process needs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    engine: EngineClientSettings
    workers: List[WorkerSettings] = Field(..., min_length=1)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    health_port: int = Field(default=8000, ge=0, le=65535)

    @field_validator("workers")
    @classmethod
    def unique_worker_ids(cls, v: List[WorkerSettings]) -> List[WorkerSettings]:
        seen = set()
        for worker in v:
            key = (worker.topic, worker.worker_id)
            if key in seen:
                raise ValueError(
                    f"Duplicate worker definition: topic={worker.topic} worker_id={worker.worker_id}"
                )
            seen.add(key)
        return v


# ============================================================================
# LOADING
# ============================================================================

def _engine_env_overrides() -> Dict[str, str]:
    overrides = {}
    for key, env_name in (
        ("base_url", "ENGINE_BASE_URL"),
        ("user", "ENGINE_USER"),
        ("password", "ENGINE_PASSWORD"),
    ):
        value = os.getenv(env_name)
        if value:
            overrides[key] = value
    if os.getenv("ENGINE_ALLOW_INSECURE_SSL"):
        overrides["allow_insecure_ssl"] = os.getenv("ENGINE_ALLOW_INSECURE_SSL", "").lower() == "true"
    return overrides


def _worker_from_env() -> Dict[str, Any]:
    """Single worker definition from environment variables."""
    worker: Dict[str, Any] = {
        "name": os.getenv("WORKER_NAME", ""),
        "strategy": os.getenv("WORKER_STRATEGY", "raw"),
        "topic": os.getenv("WORKER_TOPIC", ""),
        "worker_id": os.getenv("WORKER_ID", f"worker-{socket.gethostname()}"),
        "http": {"target_url": os.getenv("HTTP_TARGET_URL", "")},
    }

    pause_from = os.getenv("WORKER_PAUSE_FROM_HOUR")
    pause_to = os.getenv("WORKER_PAUSE_TO_HOUR")
    if pause_from and pause_to:
        worker["time_window"] = {
            "pause_from_hour": int(pause_from),
            "pause_to_hour": int(pause_to),
        }

    search_property = os.getenv("HTTP_SEARCH_PROPERTY")
    if search_property:
        worker["http"]["search_property"] = search_property

    return worker


def settings_from_dict(data: Dict[str, Any]) -> AppSettings:
    """Validate a raw settings mapping (env overrides applied)."""
    data = dict(data or {})
    engine = dict(data.get("engine") or {})
    engine.update(_engine_env_overrides())
    data["engine"] = engine

    try:
        return AppSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid worker configuration: {e}") from e


def load_settings(path: Optional[Union[str, Path]] = None) -> AppSettings:
    """
    Load settings from a YAML file, or from environment variables.

    Args:
        path: Settings file; defaults to WORKER_CONFIG_FILE

    Returns:
        Validated AppSettings

    Raises:
        ConfigurationError if the file is missing or the content is invalid
    """
    path = path or os.getenv("WORKER_CONFIG_FILE")

    if path:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"Settings file not found: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file must contain a mapping: {config_path}")
        logger.info(f"Loaded worker settings from {config_path}")
        return settings_from_dict(data)

    logger.info("No settings file configured - using environment variables")
    return settings_from_dict({
        "workers": [_worker_from_env()],
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "json_output": os.getenv("LOG_FORMAT", "").lower() == "json",
        },
        "health_port": int(os.getenv("PORT", "8000")),
    })


# Cached instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get settings (loaded on first use)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings. Primarily for testing."""
    global _settings
    _settings = None


__all__ = [
    "WEEKDAYS",
    "ConfigurationError",
    "EngineClientSettings",
    "RetrySettings",
    "DayWindow",
    "DaySchedule",
    "TimeWindowSettings",
    "HttpEndpointSettings",
    "WorkerSettings",
    "LoggingSettings",
    "AppSettings",
    "settings_from_dict",
    "load_settings",
    "get_settings",
    "reset_settings",
]
