# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Module

Provides defaults and validated settings for the external task worker.
"""

from core.config.defaults import (
    PollingDefaults,
    RetryDefaults,
    EndpointDefaults,
    EngineDefaults,
    get_defaults,
    reset_defaults,
)
from core.config.settings import (
    AppSettings,
    ConfigurationError,
    DaySchedule,
    DayWindow,
    EngineClientSettings,
    HttpEndpointSettings,
    LoggingSettings,
    RetrySettings,
    TimeWindowSettings,
    WorkerSettings,
    get_settings,
    load_settings,
    reset_settings,
    settings_from_dict,
)

__all__ = [
    # Defaults
    "PollingDefaults",
    "RetryDefaults",
    "EndpointDefaults",
    "EngineDefaults",
    "get_defaults",
    "reset_defaults",
    # Settings
    "AppSettings",
    "ConfigurationError",
    "DaySchedule",
    "DayWindow",
    "EngineClientSettings",
    "HttpEndpointSettings",
    "LoggingSettings",
    "RetrySettings",
    "TimeWindowSettings",
    "WorkerSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "settings_from_dict",
]
