# ============================================================================
# PAUSE SCHEDULE
# ============================================================================
# STATUS: Worker - Decide whether acquisition is paused
# PURPOSE: Hour-range pause window and per-weekday schedule in local time
# CREATED: 17 OCT 2026
# ============================================================================
"""
Pause Schedule

Evaluated once per tick against the current UTC time converted to the
configured time zone.

Weekly schedule (when configured, it replaces the hour range):
    day not listed                  -> active
    enabled: false                  -> paused all day
    no valid windows                -> active all day
    otherwise                       -> active only inside a [start, end) window

Hour range (pause_from_hour, pause_to_hour):
    from < to                       -> paused when from <= hour < to
    from > to                       -> wraps midnight (paused from..24, 0..to)
    from == to                      -> never paused
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from core.config.settings import WEEKDAYS, DaySchedule, TimeWindowSettings

logger = logging.getLogger(__name__)


class PauseSchedule:
    """Answers "is acquisition paused right now?" for one worker."""

    def __init__(self, settings: TimeWindowSettings):
        self.settings = settings
        self._zone = settings.zone()
        self._windows: Dict[str, List[Tuple[int, int]]] = {}

        for day, schedule in (settings.weekly or {}).items():
            valid = []
            for window in schedule.windows:
                bounds = window.bounds()
                if bounds is None:
                    logger.warning(
                        f"Ignoring invalid schedule window on {day}: {window.start}-{window.end}"
                    )
                    continue
                valid.append(bounds)
            self._windows[day] = valid

    @property
    def has_weekly(self) -> bool:
        return bool(self.settings.weekly)

    def local_time(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self._zone)

    def is_paused(self, now: Optional[datetime] = None) -> bool:
        """True when the worker must skip acquisition at `now` (UTC)."""
        local = self.local_time(now)

        if self.has_weekly:
            return self._weekly_paused(local)

        return self._hour_range_paused(local.hour)

    def _weekly_paused(self, local: datetime) -> bool:
        day = WEEKDAYS[local.weekday()]
        schedule: Optional[DaySchedule] = (self.settings.weekly or {}).get(day)
        if schedule is None:
            return False
        if not schedule.enabled:
            return True

        windows = self._windows.get(day, [])
        if not windows:
            return False

        minute = local.hour * 60 + local.minute
        return not any(start <= minute < end for start, end in windows)

    def _hour_range_paused(self, hour: int) -> bool:
        start = self.settings.pause_from_hour
        end = self.settings.pause_to_hour
        if start is None or end is None or start == end:
            return False
        if start < end:
            return start <= hour < end
        return hour >= start or hour < end


__all__ = ["PauseSchedule"]
