# ============================================================================
# ENGINE CLIENT
# ============================================================================
# STATUS: Worker - HTTP client for the engine's external job REST API
# PURPOSE: Acquire jobs and report complete / fail / bpmnError
# CREATED: 17 OCT 2026
# ============================================================================
"""
Engine Client

Async httpx client for the workflow engine. Uses HTTP Basic auth and an
optional insecure-SSL mode for test environments.

Failures never raise into the worker loop:
- any httpx error (transport, body decoding, redirects) is logged and
  treated as no response
- acquire_jobs returns [] on those errors, non-success statuses and
  invalid bodies; invalid individual jobs are skipped
- report calls return False and log at error level
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from core.config.settings import EngineClientSettings
from core.models import EngineJob
from core.serialization import SerializationConfig
from worker.contracts import AcquireRequest, BpmnErrorRequest, CompleteRequest, FailRequest

logger = logging.getLogger(__name__)


ACQUIRE_PATH = "acquire/jobs"


class EngineClient:
    """HTTP client for the engine's external job API."""

    def __init__(
        self,
        settings: EngineClientSettings,
        serialization: SerializationConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize engine client.

        Args:
            settings: Base URL, credentials, SSL and timeout
            serialization: JSON options for request bodies
            transport: Optional httpx transport (tests)
        """
        self.settings = settings
        self.serialization = serialization
        if settings.allow_insecure_ssl:
            logger.warning(f"SSL verification disabled for engine at {settings.base_url}")

        self._client = httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            auth=httpx.BasicAuth(settings.user, settings.password),
            timeout=settings.http_timeout_seconds,
            verify=not settings.allow_insecure_ssl,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def _post(self, path: str, body: Dict[str, Any]) -> Optional[httpx.Response]:
        """POST a JSON body. Returns None when no usable response arrives."""
        try:
            return await self._client.post(
                path,
                content=self.serialization.dumps(body).encode("utf-8"),
                headers={"Content-Type": "application/json; charset=utf-8"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Engine request POST {path} failed: {e!r}")
            return None

    # ------------------------------------------------------------------
    # ACQUIRE
    # ------------------------------------------------------------------

    async def acquire_jobs(self, request: AcquireRequest) -> List[EngineJob]:
        """
        Acquire and lock up to request.max_jobs jobs for a topic.

        Returns:
            Acquired jobs (empty on any failure)
        """
        response = await self._post(ACQUIRE_PATH, request.to_dict(self.serialization))
        if response is None:
            return []

        if not response.is_success:
            logger.error(
                f"Acquire failed for topic {request.topic}: "
                f"status={response.status_code} body={response.text}"
            )
            return []

        try:
            items = self.serialization.loads(response.text) if response.text.strip() else []
        except ValueError as e:
            logger.error(f"Acquire returned invalid JSON for topic {request.topic}: {e}")
            return []

        if not isinstance(items, list):
            logger.error(f"Acquire returned {type(items).__name__}, expected a list")
            return []

        jobs: List[EngineJob] = []
        for item in items:
            try:
                jobs.append(EngineJob.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid job in acquire response: {e}")

        if jobs:
            logger.debug(f"Acquired {len(jobs)} jobs for topic {request.topic}")
        return jobs

    # ------------------------------------------------------------------
    # REPORTING
    # ------------------------------------------------------------------

    async def _report(self, job_id: str, action: str, body: Dict[str, Any]) -> bool:
        path = f"{ACQUIRE_PATH}/{quote(job_id, safe='')}/{action}"
        response = await self._post(path, body)
        if response is None:
            return False

        if not response.is_success:
            logger.error(
                f"Engine {action} for job {job_id} failed: "
                f"status={response.status_code} body={response.text}"
            )
            return False

        return True

    async def complete_job(self, job_id: str, request: CompleteRequest) -> bool:
        """Complete a job, writing back variables."""
        return await self._report(job_id, "complete", request.to_dict(self.serialization))

    async def fail_job(self, job_id: str, request: FailRequest) -> bool:
        """Fail a job (retries > 0 schedules a retry, 0 raises an incident)."""
        return await self._report(job_id, "fail", request.to_dict(self.serialization))

    async def raise_bpmn_error(self, job_id: str, request: BpmnErrorRequest) -> bool:
        """Throw a BPMN error for the job."""
        return await self._report(job_id, "bpmnError", request.to_dict(self.serialization))

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


__all__ = [
    "EngineClient",
]
