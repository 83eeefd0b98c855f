# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for polling, retries, endpoints, engine client
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides the default values used when a worker section in the settings file
leaves a field out. Each group can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class PollingDefaults:
    """
    Defaults for the acquire/dispatch loop.

    Controls lock duration, batch size, cadence and concurrency.
    """
    lock_duration: str = "PT30S"  # ISO-8601, passed through to the engine
    max_jobs_per_tick: int = 5
    poll_period_seconds: float = 3
    max_concurrency: int = 2
    initial_retries: int = 3  # engine-side retries configured on the task
    shutdown_timeout_seconds: float = 30

    @classmethod
    def from_env(cls) -> "PollingDefaults":
        """Create from environment variables."""
        return cls(
            lock_duration=os.getenv("WORKER_LOCK_DURATION", "PT30S"),
            max_jobs_per_tick=int(os.getenv("WORKER_MAX_JOBS_PER_TICK", 5)),
            poll_period_seconds=float(os.getenv("WORKER_POLL_PERIOD_SECONDS", 3)),
            max_concurrency=int(os.getenv("WORKER_MAX_CONCURRENCY", 2)),
            initial_retries=int(os.getenv("WORKER_INITIAL_RETRIES", 3)),
            shutdown_timeout_seconds=float(os.getenv("WORKER_SHUTDOWN_TIMEOUT", 30)),
        )


@dataclass(frozen=True)
class RetryDefaults:
    """
    Defaults for retry backoff.

    delay = min(max_delay, initial_delay * multiplier ** attempt) + jitter
    """
    initial_delay_seconds: int = 60
    max_delay_seconds: int = 900  # 15 minutes
    jitter_seconds: int = 5
    backoff_multiplier: float = 2.0

    @classmethod
    def from_env(cls) -> "RetryDefaults":
        """Create from environment variables."""
        return cls(
            initial_delay_seconds=int(os.getenv("RETRY_INITIAL_DELAY_SECONDS", 60)),
            max_delay_seconds=int(os.getenv("RETRY_MAX_DELAY_SECONDS", 900)),
            jitter_seconds=int(os.getenv("RETRY_JITTER_SECONDS", 5)),
            backoff_multiplier=float(os.getenv("RETRY_BACKOFF_MULTIPLIER", 2.0)),
        )


@dataclass(frozen=True)
class EndpointDefaults:
    """
    Defaults for the outbound business call.

    Controls timeout, which variable carries the payload and how
    business errors are recognized in 422 responses.
    """
    timeout_seconds: float = 10
    input_variable: str = "JsonPayload"
    payload_path: Tuple[str, ...] = ("payload", "inputPayload", "data")
    business_error_code_field: str = "businessErrorCode"
    business_error_message_field: str = "businessErrorMessage"
    business_error_fallback_message: str = "Business validation failed."

    @classmethod
    def from_env(cls) -> "EndpointDefaults":
        """Create from environment variables."""
        path = os.getenv("HTTP_PAYLOAD_PATH")
        return cls(
            timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", 10)),
            input_variable=os.getenv("HTTP_INPUT_VARIABLE", "JsonPayload"),
            payload_path=(
                tuple(p for p in path.split(".") if p)
                if path is not None
                else ("payload", "inputPayload", "data")
            ),
            business_error_code_field=os.getenv("HTTP_BUSINESS_ERROR_CODE_FIELD", "businessErrorCode"),
            business_error_message_field=os.getenv(
                "HTTP_BUSINESS_ERROR_MESSAGE_FIELD", "businessErrorMessage"
            ),
        )


@dataclass(frozen=True)
class EngineDefaults:
    """
    Defaults for the engine REST client and local time handling.
    """
    http_timeout_seconds: float = 30
    time_zone: str = "Europe/Prague"

    @classmethod
    def from_env(cls) -> "EngineDefaults":
        """Create from environment variables."""
        return cls(
            http_timeout_seconds=float(os.getenv("ENGINE_HTTP_TIMEOUT_SECONDS", 30)),
            time_zone=os.getenv("WORKER_TIME_ZONE", "Europe/Prague"),
        )


@dataclass(frozen=True)
class Defaults:
    """All default groups."""
    polling: PollingDefaults = field(default_factory=PollingDefaults)
    retry: RetryDefaults = field(default_factory=RetryDefaults)
    endpoint: EndpointDefaults = field(default_factory=EndpointDefaults)
    engine: EngineDefaults = field(default_factory=EngineDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            polling=PollingDefaults.from_env(),
            retry=RetryDefaults.from_env(),
            endpoint=EndpointDefaults.from_env(),
            engine=EngineDefaults.from_env(),
        )


# Cached instance
_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get the defaults (loaded from environment on first use)."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Drop the cached defaults. Primarily for testing."""
    global _defaults
    _defaults = None


__all__ = [
    "PollingDefaults",
    "RetryDefaults",
    "EndpointDefaults",
    "EngineDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
