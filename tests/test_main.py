# ============================================================================
# ENTRY POINT TESTS
# ============================================================================
# STATUS: Tests - Process wiring and health endpoint
# PURPOSE: Verify engine construction, health payload, startup failures
# CREATED: 17 OCT 2026
# ============================================================================
"""
Entry Point Tests

Run with:
    pytest tests/test_main.py -v
"""

import asyncio
import json

from core.config import settings_from_dict
from handlers.http import PathPayloadHandler, RawPayloadHandler
from worker import main as worker_main


SETTINGS = {
    "engine": {"base_url": "http://engine.test/api", "user": "u", "password": "p"},
    "workers": [
        {
            "topic": "invoice-export",
            "worker_id": "w1",
            "http": {"target_url": "http://svc.test/invoices"},
        },
        {
            "topic": "reminders",
            "worker_id": "w2",
            "strategy": "path",
            "http": {"target_url": "http://svc.test/reminders"},
        },
    ],
}


def close_all(engines):
    async def go():
        for engine in engines:
            await engine.close()

    asyncio.run(go())


def test_build_engines_one_per_worker():
    engines = worker_main.build_engines(settings_from_dict(SETTINGS))
    try:
        assert [e.settings.topic for e in engines] == ["invoice-export", "reminders"]
        assert isinstance(engines[0].handler, RawPayloadHandler)
        assert isinstance(engines[1].handler, PathPayloadHandler)
        assert engines[0].client is not engines[1].client
    finally:
        close_all(engines)


def test_health_reports_worker_stats(monkeypatch):
    engines = worker_main.build_engines(settings_from_dict(SETTINGS))
    monkeypatch.setattr(worker_main, "_engines", engines)
    try:
        response = asyncio.run(worker_main.health_handler(None))
    finally:
        close_all(engines)

    assert response.status == 200
    body = json.loads(response.text)
    assert body["status"] == "healthy"
    assert body["version"] == worker_main.__version__
    assert [w["worker_id"] for w in body["workers"]] == ["w1", "w2"]


def test_health_unhealthy(monkeypatch):
    monkeypatch.setattr(worker_main, "_engines", [])
    monkeypatch.setattr(worker_main, "_worker_healthy", False)
    response = asyncio.run(worker_main.health_handler(None))
    assert response.status == 503


def test_main_exits_on_unknown_strategy(tmp_path, monkeypatch):
    path = tmp_path / "workers.yaml"
    path.write_text(
        "engine: {base_url: 'http://engine.test', user: u, password: p}\n"
        "workers:\n  - {topic: t, worker_id: w, strategy: unknown, "
        "http: {target_url: 'http://svc.test'}}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("WORKER_CONFIG_FILE", str(path))
    assert asyncio.run(worker_main.main()) == 1


def test_main_exits_on_missing_config(tmp_path, monkeypatch):
    monkeypatch.setenv("WORKER_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    assert asyncio.run(worker_main.main()) == 1
