# ============================================================================
# WORKER ENGINE
# ============================================================================
# STATUS: Core - Poll / acquire / dispatch loop
# PURPOSE: Run jobs through a handler under bounded concurrency and report
#          each outcome back to the engine
# CREATED: 17 OCT 2026
# ============================================================================
"""
Worker Engine

One engine per configured worker. Each tick:

    1. Skip acquisition when the pause schedule says so
    2. Acquire up to max_jobs_per_tick jobs for the topic
    3. Run every job through the handler, at most max_concurrency at once
    4. Map each JobOutcome onto an engine call:
         Success                  -> complete
         Retry                    -> fail(retries - 1, backoff)
                                     or incident when no retries remain
         FinalFailure(Incident)   -> fail(retries = 0)
         FinalFailure(Complete)   -> complete
         FinalFailure(BpmnError)  -> bpmnError
    5. Wait one poll interval (interrupted by stop())

Shutdown:
    stop() interrupts the sleep, gives handler calls in flight up to
    shutdown_timeout_seconds to finish, then cancels the rest.
    Report calls that already started are shielded and run to completion.
    Cancelled jobs are not reported; their lock expires on the engine.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Set

from core.config.settings import WorkerSettings
from core.contracts import FinalFailureKind, JobState, OutcomeKind
from core.logging import log_checkpoint, log_context
from core.models import EngineJob, FinalFailureAction, Incident, JobOutcome, Retry
from core.serialization import SerializationConfig
from handlers.base import HandlerContext, TaskHandler
from worker.contracts import AcquireRequest, BpmnErrorRequest, CompleteRequest, FailRequest
from worker.engine_client import EngineClient
from worker.retry import RetryPolicy, format_iso_duration
from worker.schedule import PauseSchedule

logger = logging.getLogger(__name__)


MAX_RETRIES_MESSAGE = "Maximum retries reached"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkerEngine:
    """
    Acquire-and-dispatch loop for one worker.

    The semaphore is the only state shared between concurrently running
    jobs; everything else is per job.
    """

    def __init__(
        self,
        settings: WorkerSettings,
        handler: TaskHandler,
        client: EngineClient,
        serialization: SerializationConfig,
        retry_policy: Optional[RetryPolicy] = None,
        schedule: Optional[PauseSchedule] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize engine.

        Args:
            settings: Worker settings (topic, cadence, retry, time window)
            handler: Handler producing one JobOutcome per job
            client: Engine REST client
            serialization: JSON options (shared with client and handler)
            retry_policy: Backoff policy (built from settings if not provided)
            schedule: Pause schedule (built from settings if not provided)
            clock: Returns the current UTC time (tests)
        """
        self.settings = settings
        self.handler = handler
        self.client = client
        self.serialization = serialization
        self.retry_policy = retry_policy or RetryPolicy(settings.retry, settings.initial_retries)
        self.schedule = schedule or PauseSchedule(settings.time_window)
        self._clock = clock or _utc_now

        self._limiter = asyncio.Semaphore(settings.max_concurrency)
        self._stop_event = asyncio.Event()
        self._running = False
        self._in_flight: Set[asyncio.Task] = set()

        # Stats
        self._ticks = 0
        self._ticks_paused = 0
        self._jobs_acquired = 0
        self._jobs_skipped = 0
        self._jobs_cancelled = 0
        self._states: Dict[JobState, int] = {}
        self._report_failures = 0

    @property
    def worker_id(self) -> str:
        return self.settings.worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Run ticks until stop() is called."""
        if self._running:
            logger.warning(f"Worker {self.worker_id} already running")
            return

        if self._stop_event.is_set():
            logger.info(f"Worker {self.worker_id} was stopped before it started")
            return

        self._running = True

        logger.info(
            f"Worker starting topic={self.settings.topic} worker={self.worker_id} "
            f"poll={self.settings.poll_period_seconds}s concurrency={self.settings.max_concurrency} "
            f"maxJobs={self.settings.max_jobs_per_tick} lock={self.settings.lock_duration}"
        )

        try:
            with log_context(worker_id=self.worker_id, topic=self.settings.topic):
                while not self._stop_event.is_set():
                    try:
                        await self.run_once()
                    except asyncio.CancelledError:
                        raise
                    except Exception as e:
                        logger.exception(f"Unhandled error in worker loop: {e}")

                    if self._stop_event.is_set():
                        break
                    await self._sleep(self.settings.poll_period_seconds)
        finally:
            self._running = False
            logger.info(f"Worker {self.worker_id} stopped. Stats: {self.stats()}")

    async def stop(self) -> None:
        """
        Stop the loop.

        Handler calls in flight get shutdown_timeout_seconds to finish (and
        be reported); whatever is still running afterwards is cancelled.
        """
        if self._stop_event.is_set():
            return

        logger.info(f"Stopping worker {self.worker_id}...")
        self._stop_event.set()

        if self._in_flight:
            pending = list(self._in_flight)
            logger.info(f"Waiting for {len(pending)} in-flight handler calls...")
            try:
                await asyncio.wait_for(
                    asyncio.gather(*pending, return_exceptions=True),
                    timeout=self.settings.shutdown_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning("Shutdown timeout - cancelling remaining handler calls")
                for task in pending:
                    task.cancel()

    async def _sleep(self, seconds: float) -> None:
        """Sleep for one poll interval, returning early on stop()."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run_once(self) -> int:
        """
        Execute a single tick.

        Returns:
            Number of jobs acquired
        """
        self._ticks += 1

        if self.schedule.is_paused(self._clock()):
            self._ticks_paused += 1
            logger.info(f"Worker {self.worker_id} paused due to configured window")
            return 0

        request = AcquireRequest(
            worker_id=self.worker_id,
            max_jobs=self.settings.max_jobs_per_tick,
            lock_duration=self.settings.lock_duration,
            topic=self.settings.topic,
            fetch_variables=True,
        )
        jobs = await self.client.acquire_jobs(request)
        if not jobs:
            return 0

        self._jobs_acquired += len(jobs)
        logger.info(f"Acquired {len(jobs)} jobs for topic {self.settings.topic}")

        await asyncio.gather(*(self.process_job(job) for job in jobs))
        return len(jobs)

    # ------------------------------------------------------------------
    # Per job
    # ------------------------------------------------------------------

    async def process_job(self, job: EngineJob) -> JobState:
        """Handle and report one job while holding a concurrency slot."""
        async with self._limiter:
            with log_context(**job.correlation_fields(), element_id=job.element_id or None):
                state = await self._process_locked(job)
                self._states[state] = self._states.get(state, 0) + 1
                return state

    async def _process_locked(self, job: EngineJob) -> JobState:
        log_checkpoint("job_acquired", {"retries": job.retries}, logger=logger)

        if not job.is_locked(self._clock()):
            self._jobs_skipped += 1
            logger.warning(
                f"Skipping job {job.id}: lock expired at {job.lock_expiration_time}"
            )
            return JobState.SKIPPED

        if self._stop_event.is_set():
            self._jobs_cancelled += 1
            logger.info(f"Not starting job {job.id}: worker is stopping")
            return JobState.CANCELLED

        ctx = HandlerContext.for_job(job, self.worker_id, self.settings.topic)
        log_checkpoint("job_processing", logger=logger)

        outcome = await self._invoke(ctx)
        if outcome is None:
            self._jobs_cancelled += 1
            return JobState.CANCELLED

        state = await asyncio.shield(self._report(ctx, outcome))
        log_checkpoint(f"job_{state.value}", logger=logger)
        return state

    async def _invoke(self, ctx: HandlerContext) -> Optional[JobOutcome]:
        """
        Run the handler as a tracked task.

        Returns None when the call was cancelled by stop().
        """
        task = asyncio.create_task(self.handler.handle(ctx))
        self._in_flight.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self._stop_event.is_set():
                logger.warning(
                    f"Handler for job {ctx.job_id} cancelled by shutdown; lock will expire"
                )
                return None
            task.cancel()
            raise
        except Exception as e:
            logger.error(f"Unhandled exception while processing job {ctx.job_id}: {e}", exc_info=True)
            return Retry(str(e) or type(e).__name__)
        finally:
            self._in_flight.discard(task)

    # ------------------------------------------------------------------
    # Outcome mapping
    # ------------------------------------------------------------------

    async def _report(self, ctx: HandlerContext, outcome: JobOutcome) -> JobState:
        if outcome.kind == OutcomeKind.SUCCESS:
            ok = await self.client.complete_job(
                ctx.job_id,
                CompleteRequest(
                    worker_id=self.worker_id,
                    variables=outcome.variables,
                    local_variables=outcome.local_variables,
                ),
            )
            self._track(ok)
            if ok:
                logger.info(f"Job {ctx.job_id} completed worker={self.worker_id}")
            return JobState.COMPLETED

        if outcome.kind == OutcomeKind.RETRY:
            return await self._report_retry(ctx, outcome)

        return await self._report_final_failure(ctx, outcome.action, outcome.message)

    async def _report_retry(self, ctx: HandlerContext, outcome: Retry) -> JobState:
        remaining = ctx.job.retries - 1
        if remaining <= 0:
            logger.warning(f"Job {ctx.job_id} reached max retries. Triggering final failure.")
            return await self._report_final_failure(ctx, Incident(outcome.message), outcome.message)

        if outcome.retry_after is not None:
            delay = outcome.retry_after
        else:
            delay = self.retry_policy.backoff_for(ctx.job)
        ok = await self.client.fail_job(
            ctx.job_id,
            FailRequest(
                worker_id=self.worker_id,
                retries=remaining,
                retry_timeout=format_iso_duration(delay),
                error_message=outcome.message,
            ),
        )
        self._track(ok)
        if ok:
            logger.warning(
                f"Job {ctx.job_id} failed. retriesLeft={remaining} "
                f"backoff={int(delay.total_seconds())}s: {outcome.message}"
            )
        return JobState.RETRY_SCHEDULED

    async def _report_final_failure(
        self,
        ctx: HandlerContext,
        action: FinalFailureAction,
        cause: str,
    ) -> JobState:
        try:
            await self.handler.handle_final_failure(ctx, cause, action)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Final failure hook raised for job {ctx.job_id}: {e}", exc_info=True)

        if action.kind == FinalFailureKind.COMPLETE:
            ok = await self.client.complete_job(
                ctx.job_id,
                CompleteRequest(worker_id=self.worker_id, variables=action.variables),
            )
            self._track(ok)
            return JobState.COMPLETED

        if action.kind == FinalFailureKind.BPMN_ERROR:
            ok = await self.client.raise_bpmn_error(
                ctx.job_id,
                BpmnErrorRequest(
                    worker_id=self.worker_id,
                    error_code=action.code,
                    error_message=action.message,
                    variables=action.variables,
                ),
            )
            self._track(ok)
            return JobState.BPMN_ERROR_RAISED

        ok = await self.client.fail_job(
            ctx.job_id,
            FailRequest(
                worker_id=self.worker_id,
                retries=0,
                retry_timeout=format_iso_duration(self.retry_policy.initial_delay),
                error_message=action.message or cause or MAX_RETRIES_MESSAGE,
            ),
        )
        self._track(ok)
        return JobState.INCIDENT

    def _track(self, ok: bool) -> None:
        if not ok:
            self._report_failures += 1

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        """Counters for logging and the health endpoint."""
        return {
            "worker_id": self.worker_id,
            "topic": self.settings.topic,
            "running": self._running,
            "ticks": self._ticks,
            "ticks_paused": self._ticks_paused,
            "jobs_acquired": self._jobs_acquired,
            "jobs_skipped": self._jobs_skipped,
            "jobs_cancelled": self._jobs_cancelled,
            "in_flight": len(self._in_flight),
            "report_failures": self._report_failures,
            "states": {state.value: count for state, count in self._states.items()},
        }

    async def close(self) -> None:
        """Close handler and client."""
        await self.handler.close()
        await self.client.close()


__all__ = [
    "WorkerEngine",
]
