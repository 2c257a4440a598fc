"""Step generation from the daily plan, with fractional-step accumulation."""
from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .archetypes import DEFAULT_ARCHETYPE, ArchetypeProfile, get_archetype
from .planner import DailyActivityPlanner, DailyPlan, date_key

logger = logging.getLogger(__name__)

def is_sleeping(hour: int, sleep_hour: int, wake_hour: int) -> bool:
    if sleep_hour < wake_hour:
        return sleep_hour <= hour < wake_hour
    # sleep wraps past midnight (or sleep == wake: always asleep)
    return hour >= sleep_hour or hour < wake_hour

@dataclass(frozen=True)
class StepData:
    steps: int
    total_steps: int
    steps_this_minute: int
    activity_type: str
    steps_per_minute: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

class StepSimulator:
    def __init__(self, archetype_id: str = DEFAULT_ARCHETYPE, rng: Optional[np.random.Generator] = None):
        self.archetype: ArchetypeProfile = get_archetype(archetype_id)
        self.planner = DailyActivityPlanner(self.archetype, rng)
        self.reset()

    def reset(self) -> None:
        self.current_plan: Optional[DailyPlan] = None
        self.last_date = ""
        self.total_steps = 0
        self.steps_this_minute = 0
        self.last_minute = -1
        self.accumulated_steps = 0.0
        self.hourly_steps: List[int] = [0] * 24

    def set_archetype(self, archetype_id: str) -> None:
        self.archetype = get_archetype(archetype_id)
        self.planner.archetype = self.archetype
        self.reset()

    def get_archetype(self) -> ArchetypeProfile:
        return self.archetype

    def get_current_plan(self) -> Optional[DailyPlan]:
        return self.current_plan

    def get_total_steps(self) -> int:
        return self.total_steps

    def is_asleep_at(self, hour: int) -> bool:
        if self.current_plan is None:
            return False
        return is_sleeping(hour, self.current_plan.sleep_hour, self.current_plan.wake_hour)

    def process_tick(self, simulated_time: pd.Timestamp, delta_seconds: float, multiplier: float = 1.0) -> Optional[StepData]:
        """Advance by delta_seconds; return the emitted steps, or None if none."""
        ts = pd.Timestamp(simulated_time)
        key = date_key(ts)
        if key != self.last_date:
            if self.last_date:
                logger.info("Date change detected: %s -> %s", self.last_date, key)
            self.current_plan = self.planner.plan_daily_activities(ts)
            self.last_date = key

        hour, minute = ts.hour, ts.minute
        if minute != self.last_minute:
            self.steps_this_minute = 0
            self.last_minute = minute

        plan = self.current_plan
        if is_sleeping(hour, plan.sleep_hour, plan.wake_hour):
            return None

        block = plan.active_block(hour, minute)
        if block is None:
            return None

        self.accumulated_steps += block.steps_per_minute / 60.0 * delta_seconds * max(0.0, multiplier)
        if self.accumulated_steps < 1:
            return None

        steps = int(self.accumulated_steps)
        self.accumulated_steps -= steps
        self.total_steps += steps
        self.steps_this_minute += steps
        self.hourly_steps[hour] += steps
        return StepData(
            steps=steps,
            total_steps=self.total_steps,
            steps_this_minute=self.steps_this_minute,
            activity_type=block.kind,
            steps_per_minute=block.steps_per_minute,
        )

    def get_hourly_distribution(self) -> List[Dict[str, int]]:
        """Steps emitted so far, binned by hour of day."""
        return [{"hour": h, "steps": s} for h, s in enumerate(self.hourly_steps)]

    def get_expected_daily_steps(self) -> int:
        """Steps the current plan would yield if every block ran fully while awake."""
        plan = self.current_plan
        if plan is None:
            return 0
        total = 0
        for block in plan.activities:
            for m in range(block.start_of_day, min(block.end_of_day, 24 * 60)):
                if not is_sleeping(m // 60, plan.sleep_hour, plan.wake_hour):
                    total += block.steps_per_minute
        return total
