"""Daily activity planning: randomized sleep/wake hours and walk/run blocks."""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .archetypes import ActivityRate, ArchetypeProfile, TimeWindow
from .rng import make_rng

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
MAX_WALKS_PER_DAY = 3

@dataclass(frozen=True)
class ActivityBlock:
    kind: str  # "walk" | "run"
    start_hour: int
    start_minute: int
    duration_minutes: int
    steps_per_minute: int

    @property
    def start_of_day(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_of_day(self) -> int:
        # may exceed 1440 for blocks started late in the evening
        return self.start_of_day + self.duration_minutes

    def contains(self, minute_of_day: int) -> bool:
        return self.start_of_day <= minute_of_day < self.end_of_day

@dataclass(frozen=True)
class DailyPlan:
    date: str  # YYYY-MM-DD
    sleep_hour: int
    wake_hour: int
    activities: Tuple[ActivityBlock, ...] = ()

    def active_block(self, hour: int, minute: int) -> Optional[ActivityBlock]:
        """First block whose [start, start+duration) window holds hour:minute."""
        m = hour * 60 + minute
        for block in self.activities:
            if block.contains(m):
                return block
        return None

def date_key(ts: pd.Timestamp) -> str:
    return pd.Timestamp(ts).strftime("%Y-%m-%d")

def awake_hours(wake_hour: int, sleep_hour: int) -> int:
    """Length of the awake window; sleep may wrap past midnight."""
    if sleep_hour > wake_hour:
        return sleep_hour - wake_hour
    return (24 - wake_hour) + sleep_hour

class DailyActivityPlanner:
    """Produces one DailyPlan per simulated calendar day.

    The random source is injectable; pass a seeded ``np.random.Generator``
    for reproducible schedules.
    """

    def __init__(self, archetype: ArchetypeProfile, rng: Optional[np.random.Generator] = None):
        self.archetype = archetype
        self.rng = rng if rng is not None else make_rng()

    def randomize_hour(self, window: TimeWindow) -> int:
        """Offset base hour by a uniform k in {-n..n} steps, wrapped to 0-23."""
        n = window.randomization_minutes // window.step_minutes if window.step_minutes > 0 else 0
        k = int(self.rng.integers(-n, n + 1))
        total = window.hour * 60 + k * window.step_minutes
        return int((total % MINUTES_PER_DAY) // 60)

    def random_awake_time(self, wake_hour: int, sleep_hour: int) -> Tuple[int, int]:
        span = awake_hours(wake_hour, sleep_hour) * 60
        offset = int(self.rng.integers(0, span))
        total = wake_hour * 60 + offset
        return (total // 60) % 24, total % 60

    def rate_with_dispersion(self, base: float, dispersion: float) -> int:
        noise = float(self.rng.uniform(-dispersion, dispersion)) if dispersion > 0 else 0.0
        return int(math.floor(base + noise + 0.5))

    def _block(self, kind: str, rate: ActivityRate, wake_hour: int, sleep_hour: int) -> ActivityBlock:
        hour, minute = self.random_awake_time(wake_hour, sleep_hour)
        return ActivityBlock(
            kind=kind,
            start_hour=hour,
            start_minute=minute,
            duration_minutes=int(rate.duration_minutes),
            steps_per_minute=self.rate_with_dispersion(rate.steps_per_minute, rate.dispersion),
        )

    def plan_daily_activities(self, current_date: pd.Timestamp) -> DailyPlan:
        a = self.archetype
        sleep_hour = self.randomize_hour(a.sleep_time)
        wake_hour = self.randomize_hour(a.wake_time)

        blocks: List[ActivityBlock] = []
        if self.rng.random() < a.walks.frequency_per_week / 7.0:
            n_walks = 1 + int(self.rng.integers(0, MAX_WALKS_PER_DAY))
            for _ in range(n_walks):
                blocks.append(self._block("walk", a.walks, wake_hour, sleep_hour))

        if self.rng.random() < a.runs.frequency_per_week / 7.0:
            blocks.append(self._block("run", a.runs, wake_hour, sleep_hour))

        blocks.sort(key=lambda b: b.start_of_day)

        plan = DailyPlan(date=date_key(current_date), sleep_hour=sleep_hour, wake_hour=wake_hour, activities=tuple(blocks))
        logger.info(
            "New day planned: %s sleep %02d:00 wake %02d:00, activities: %s",
            plan.date, sleep_hour, wake_hour, ", ".join(b.kind for b in blocks) or "none",
        )
        return plan
