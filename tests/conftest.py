# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# STATUS: Tests - Factories and fakes shared across test modules
# PURPOSE: Engine job factory, fake engine REST API, clean configuration
# CREATED: 17 OCT 2026
# ============================================================================
"""
Shared fixtures.

FakeEngine is an httpx.MockTransport handler standing in for the engine's
external job API: it hands out queued jobs on acquire and records every
report call.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from core.config import reset_defaults, reset_settings

FUTURE_LOCK = "2099-01-01T00:00:00.000Z"

_CONFIG_ENV = (
    "WORKER_CONFIG_FILE",
    "ENGINE_BASE_URL",
    "ENGINE_USER",
    "ENGINE_PASSWORD",
    "ENGINE_ALLOW_INSECURE_SSL",
    "WORKER_TOPIC",
    "WORKER_ID",
    "WORKER_NAME",
    "WORKER_STRATEGY",
    "WORKER_PAUSE_FROM_HOUR",
    "WORKER_PAUSE_TO_HOUR",
    "WORKER_MAX_CONCURRENCY",
    "WORKER_MAX_JOBS_PER_TICK",
    "WORKER_TIME_ZONE",
    "HTTP_TARGET_URL",
    "HTTP_SEARCH_PROPERTY",
    "HTTP_PAYLOAD_PATH",
    "RETRY_INITIAL_DELAY_SECONDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from host environment and cached config."""
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_defaults()
    reset_settings()
    yield
    reset_defaults()
    reset_settings()


def make_job_dict(
    job_id: str = "job-1",
    retries: int = 3,
    element_id: str = "callService",
    variables: Optional[List[Dict[str, Any]]] = None,
    lock_expiration: Optional[str] = FUTURE_LOCK,
    **extra: Any,
) -> Dict[str, Any]:
    """Job as returned by POST acquire/jobs."""
    job = {
        "id": job_id,
        "url": f"http://engine.test/api/jobs/{job_id}",
        "processInstanceId": f"pi-{job_id}",
        "processDefinitionId": "invoice:1:42",
        "executionId": f"ex-{job_id}",
        "elementId": element_id,
        "elementName": "Call service",
        "retries": retries,
        "createTime": "2026-10-17T08:00:00.000Z",
        "tenantId": "",
        "lockOwner": "w1",
        "lockExpirationTime": lock_expiration,
        "variables": variables if variables is not None else [],
    }
    job.update(extra)
    return job


class FakeEngine:
    """In-memory stand-in for the engine's external job REST API."""

    def __init__(self, jobs: Optional[List[Dict[str, Any]]] = None, report_status: int = 200):
        self.jobs = list(jobs or [])
        self.report_status = report_status
        self.calls: List[Tuple[str, Any]] = []
        self.requests: List[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        self.calls.append((path, body))

        if path.endswith("/acquire/jobs"):
            batch, self.jobs = self.jobs, []
            return httpx.Response(200, json=batch)

        return httpx.Response(self.report_status)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls_to(self, action: str) -> List[Any]:
        """Bodies of calls whose path ends with /<action>."""
        return [body for path, body in self.calls if path.endswith(f"/{action}")]

    @property
    def acquire_calls(self) -> List[Any]:
        return [body for path, body in self.calls if path.endswith("/acquire/jobs")]


@pytest.fixture
def job_factory():
    """Factory for acquire-response job dicts."""
    return make_job_dict


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
