# ============================================================================
# HANDLER REGISTRY
# ============================================================================
# STATUS: Core - Strategy registration and lookup
# PURPOSE: Register and discover task handler classes by strategy name
# CREATED: 17 OCT 2026
# ============================================================================
"""
Handler Registry

Central registry for task handler strategies. Worker settings name a
strategy ("raw", "path"); the entry point uses this registry to build the
handler instance for each configured worker.

Design:
- Handler classes are registered at import time via decorator
- Registry is a simple dict (strategy_name -> handler class)
- Fail-fast on duplicate registration
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type

import httpx

from core.config.settings import WorkerSettings
from core.serialization import SerializationConfig
from handlers.base import TaskHandler

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class StrategyError(Exception):
    """Base exception for strategy registry errors."""
    pass


class StrategyNotFoundError(StrategyError):
    """Raised when a strategy is not found in the registry."""
    def __init__(self, strategy_name: str):
        self.strategy_name = strategy_name
        available = ", ".join(sorted(_strategies)) or "none"
        super().__init__(f"Strategy not found: {strategy_name} (available: {available})")


class DuplicateStrategyError(StrategyError):
    """Raised when a strategy name is already registered."""
    def __init__(self, strategy_name: str):
        self.strategy_name = strategy_name
        super().__init__(f"Strategy already registered: {strategy_name}")


# ============================================================================
# REGISTRY
# ============================================================================

HandlerClass = Type[TaskHandler]

_strategies: Dict[str, HandlerClass] = {}
_strategy_metadata: Dict[str, Dict[str, Any]] = {}


def register_strategy(
    name: str,
    *,
    description: str = "",
) -> Callable[[HandlerClass], HandlerClass]:
    """
    Decorator to register a handler class under a strategy name.

    Example:
        @register_strategy("path", description="Forward a nested payload")
        class PathPayloadHandler(HttpForwardingHandler):
            ...
    """
    def decorator(cls: HandlerClass) -> HandlerClass:
        if name in _strategies:
            raise DuplicateStrategyError(name)

        cls.strategy_name = name
        _strategies[name] = cls
        _strategy_metadata[name] = {
            "name": name,
            "description": description or (cls.__doc__ or "").strip().split("\n")[0],
            "class": cls.__name__,
            "module": cls.__module__,
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.debug(f"Registered strategy: {name} ({cls.__module__}.{cls.__name__})")
        return cls

    return decorator


def get_strategy(name: str) -> Optional[HandlerClass]:
    """Get a handler class by strategy name, or None."""
    return _strategies.get(name)


def get_strategy_or_raise(name: str) -> HandlerClass:
    """
    Get a handler class by strategy name.

    Raises:
        StrategyNotFoundError if the strategy is not registered
    """
    cls = _strategies.get(name)
    if cls is None:
        raise StrategyNotFoundError(name)
    return cls


def list_strategies() -> List[Dict[str, Any]]:
    """List all registered strategies with metadata."""
    return list(_strategy_metadata.values())


def unregister_strategy(name: str) -> None:
    """Remove a strategy. Primarily for testing."""
    _strategies.pop(name, None)
    _strategy_metadata.pop(name, None)


def create_handler(
    settings: WorkerSettings,
    serialization: SerializationConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TaskHandler:
    """
    Build the handler for a configured worker.

    Args:
        settings: Worker settings naming the strategy
        serialization: Serialization options shared with the engine client
        transport: Optional httpx transport (tests)

    Raises:
        StrategyNotFoundError if settings.strategy is not registered
    """
    cls = get_strategy_or_raise(settings.strategy)
    handler = cls(
        worker_id=settings.worker_id,
        endpoint=settings.http,
        serialization=serialization,
        transport=transport,
    )
    logger.info(
        f"Created handler '{settings.strategy}' for worker {settings.display_name} "
        f"-> {settings.http.target_url}"
    )
    return handler


__all__ = [
    "register_strategy",
    "get_strategy",
    "get_strategy_or_raise",
    "list_strategies",
    "unregister_strategy",
    "create_handler",
    "StrategyError",
    "StrategyNotFoundError",
    "DuplicateStrategyError",
]
