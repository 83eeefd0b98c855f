# ============================================================================
# HANDLERS
# ============================================================================
# STATUS: Core - Handler contract, registry and strategies
# PURPOSE: Register and discover task handler strategies
# CREATED: 17 OCT 2026
# ============================================================================
"""
Handlers

Usage:
    from handlers import create_handler

    handler = create_handler(worker_settings, SerializationConfig())
    outcome = await handler.handle(HandlerContext.for_job(job, worker_id))
"""

from handlers.base import HandlerContext, TaskHandler
from handlers.registry import (
    register_strategy,
    get_strategy,
    get_strategy_or_raise,
    list_strategies,
    unregister_strategy,
    create_handler,
    StrategyError,
    StrategyNotFoundError,
    DuplicateStrategyError,
)

# Import strategy modules to trigger registration
import handlers.http  # noqa: F401 - import for side effects

__all__ = [
    "HandlerContext",
    "TaskHandler",
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
