# ============================================================================
# RETRY POLICY
# ============================================================================
# STATUS: Worker - Backoff computation for retryable failures
# PURPOSE: Exponential backoff with jitter, ISO-8601 duration formatting
# CREATED: 17 OCT 2026
# ============================================================================
"""
Retry Policy

The engine counts retries down on the job; the worker derives the attempt
number from how many retries have been used so far:

    attempt = max(0, initial_retries - job.retries)
    base    = round_half_up(initial_delay * multiplier ** attempt)
    delay   = min(max_delay, min(max_delay, base) + randint(0, jitter))
    delay   = max(1, delay)

With defaults (60s, x2, max 900s): 60, 120, 240, 480, 900, 900, ... (+0..5s)
"""

import math
import random
from datetime import timedelta
from typing import Optional

from core.config.settings import RetrySettings
from core.models import EngineJob


def compute_backoff(
    attempt: int,
    settings: RetrySettings,
    rng: Optional[random.Random] = None,
) -> timedelta:
    """
    Backoff delay for a zero-based attempt number.

    Args:
        attempt: 0 for the first retry
        settings: Retry settings
        rng: Random source for jitter (tests pass a seeded one)

    Returns:
        Delay of at least one second, at most max_delay_seconds
    """
    rng = rng or random
    attempt = max(0, attempt)
    max_delay = settings.max_delay_seconds

    try:
        raw = settings.initial_delay_seconds * math.pow(settings.backoff_multiplier, attempt)
    except OverflowError:
        raw = float(max_delay)

    base = max_delay if raw >= max_delay else math.floor(raw + 0.5)
    jitter = rng.randint(0, settings.jitter_seconds) if settings.jitter_seconds > 0 else 0
    delay = min(max_delay, base + jitter)

    return timedelta(seconds=max(1, delay))


def format_iso_duration(delay: timedelta) -> str:
    """timedelta -> 'PT<seconds>S' (whole seconds, at least 1)."""
    seconds = max(1, int(delay.total_seconds()))
    return f"PT{seconds}S"


class RetryPolicy:
    """Backoff policy bound to one worker's settings."""

    def __init__(
        self,
        settings: RetrySettings,
        initial_retries: int,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings
        self.initial_retries = initial_retries
        self._rng = rng

    def attempt_for(self, retries: int) -> int:
        """Attempt number from the job's remaining retries."""
        return max(0, self.initial_retries - retries)

    def backoff_for(self, job: EngineJob) -> timedelta:
        return compute_backoff(self.attempt_for(job.retries), self.settings, self._rng)

    @property
    def initial_delay(self) -> timedelta:
        return timedelta(seconds=self.settings.initial_delay_seconds)


__all__ = [
    "compute_backoff",
    "format_iso_duration",
    "RetryPolicy",
]
