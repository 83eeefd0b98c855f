# ============================================================================
# WORKER MODULE
# ============================================================================
# STATUS: Core - External task worker components
# PURPOSE: Engine loop, engine REST client, retry policy, pause schedule
# CREATED: 17 OCT 2026
# ============================================================================
"""
Worker Module

Components for running external task workers:
- contracts: Engine REST request bodies
- engine_client: HTTP client for the engine's external job API
- retry: Backoff policy for retryable failures
- schedule: Pause window (hour range, weekly schedule)
- engine: Poll / acquire / dispatch loop
- main: Process entry point
"""

from worker.contracts import (
    AcquireRequest,
    BpmnErrorRequest,
    CompleteRequest,
    FailRequest,
)
from worker.engine_client import EngineClient
from worker.retry import RetryPolicy, compute_backoff, format_iso_duration
from worker.schedule import PauseSchedule
from worker.engine import WorkerEngine

__all__ = [
    # Contracts
    "AcquireRequest",
    "BpmnErrorRequest",
    "CompleteRequest",
    "FailRequest",
    # Client
    "EngineClient",
    # Policies
    "RetryPolicy",
    "compute_backoff",
    "format_iso_duration",
    "PauseSchedule",
    # Engine
    "WorkerEngine",
]
