# ============================================================================
# LOGGING TESTS
# ============================================================================
# STATUS: Tests - Log context and formatters
# PURPOSE: Verify context nesting, task isolation and JSON output
# CREATED: 17 OCT 2026
# ============================================================================
"""
Logging Tests

Run with:
    pytest tests/test_logging.py -v
"""

import asyncio
import json
import logging

from core.logging import (
    HumanFormatter,
    StructuredFormatter,
    get_current_context,
    log_checkpoint,
    log_context,
)


def make_record(message="hello", extra=None):
    record = logging.LogRecord("worker.engine", logging.INFO, __file__, 10, message, None, None)
    if extra is not None:
        record.extra = extra
    return record


class TestLogContext:
    """Tests for log_context()."""

    def test_nesting_and_reset(self):
        with log_context(worker_id="w1", topic="invoice-export"):
            with log_context(job_id="job-1", attempt=2):
                context = get_current_context()
                assert context.worker_id == "w1"
                assert context.job_id == "job-1"
                assert context.extra == {"attempt": 2}
            assert get_current_context().job_id is None
        assert get_current_context().worker_id is None

    def test_to_dict_skips_empty(self):
        with log_context(job_id="job-1", batch="b1"):
            assert get_current_context().to_dict() == {"job_id": "job-1", "batch": "b1"}

    def test_tasks_do_not_share_context(self):
        async def job(job_id, seen):
            with log_context(job_id=job_id):
                await asyncio.sleep(0)
                seen.append((job_id, get_current_context().job_id))

        async def go():
            seen = []
            with log_context(worker_id="w1"):
                await asyncio.gather(job("a", seen), job("b", seen))
            return seen

        assert sorted(asyncio.run(go())) == [("a", "a"), ("b", "b")]


class TestFormatters:
    """Tests for StructuredFormatter / HumanFormatter."""

    def test_structured_output(self):
        formatter = StructuredFormatter()
        with log_context(job_id="job-1", worker_id="w1"):
            payload = json.loads(formatter.format(make_record(extra={"status": 200})))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "worker.engine"
        assert payload["message"] == "hello"
        assert payload["context"] == {"job_id": "job-1", "worker_id": "w1"}
        assert payload["data"] == {"status": 200}
        assert payload["timestamp"].endswith("Z")
        assert payload["source"]["line"] == 10

    def test_structured_without_source(self):
        payload = json.loads(StructuredFormatter(include_source=False).format(make_record()))
        assert "source" not in payload
        assert "context" not in payload

    def test_human_output(self):
        with log_context(worker_id="w1", job_id="job-1", element_id="callService"):
            line = HumanFormatter().format(make_record())
        assert "[worker=w1, job=job-1, element=callService]" in line
        assert line.endswith("worker.engine [worker=w1, job=job-1, element=callService]: hello")


class TestCheckpoint:
    """Tests for log_checkpoint()."""

    def test_checkpoint_record(self, caplog):
        logger = logging.getLogger("tests.checkpoint")
        with caplog.at_level(logging.INFO, logger="tests.checkpoint"):
            with log_context(job_id="job-1", worker_id="w1"):
                log_checkpoint("job_completed", {"retries": 3}, logger=logger)

        [record] = caplog.records
        assert record.getMessage() == "CHECKPOINT: job_completed"
        assert record.extra["checkpoint"] == "job_completed"
        assert record.extra["job_id"] == "job-1"
        assert record.extra["data"] == {"retries": 3}
