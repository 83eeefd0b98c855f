# ============================================================================
# TASK HANDLER CONTRACT
# ============================================================================
# STATUS: Core - Handler interface used by the worker engine
# PURPOSE: HandlerContext + TaskHandler base class
# CREATED: 17 OCT 2026
# ============================================================================
"""
Task Handler Contract

A handler turns one acquired job into exactly one JobOutcome. It does not
talk to the engine; the worker engine maps the outcome onto engine calls.

Usage:
    class MyHandler(TaskHandler):
        async def handle(self, ctx: HandlerContext) -> JobOutcome:
            value = ctx.variables.get("JsonPayload")
            ...
            return Success([Variable.integer("count", 3)])
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

from core.models import EngineJob, FinalFailureAction, JobOutcome, TypedValue

logger = logging.getLogger(__name__)


@dataclass
class HandlerContext:
    """
    Everything a handler needs about the job being processed.

    `variables` is the job's variable map (last-write-wins on duplicate
    names).
    """
    job: EngineJob
    worker_id: str
    topic: str = ""
    variables: Dict[str, TypedValue] = field(default_factory=dict)

    @classmethod
    def for_job(cls, job: EngineJob, worker_id: str, topic: str = "") -> "HandlerContext":
        return cls(job=job, worker_id=worker_id, topic=topic, variables=job.variables_map())

    @property
    def job_id(self) -> str:
        return self.job.id

    @property
    def element_id(self) -> str:
        return self.job.element_id

    def variable(self, name: str) -> Optional[TypedValue]:
        return self.variables.get(name)


class TaskHandler(ABC):
    """Base class for job handlers."""

    #: Registry name, set by @register_strategy
    strategy_name: str = ""

    @abstractmethod
    async def handle(self, ctx: HandlerContext) -> JobOutcome:
        """
        Process one job.

        Must return a JobOutcome; may raise, in which case the engine
        treats the failure as retryable. asyncio.CancelledError must
        propagate.
        """

    async def handle_final_failure(
        self,
        ctx: HandlerContext,
        cause: str,
        action: FinalFailureAction,
    ) -> None:
        """
        Called before the engine reports a final failure.

        Override for alerting or compensation. Exceptions raised here are
        logged by the engine and do not change the reported outcome.
        """
        logger.error(
            f"Job {ctx.job_id} ({ctx.element_id}) failed permanently: "
            f"{action.kind.value} - {cause}"
        )

    async def close(self) -> None:
        """Release resources (HTTP clients etc.)."""
        return None


__all__ = [
    "HandlerContext",
    "TaskHandler",
]
