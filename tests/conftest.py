"""
Shared fixtures: a planner that always returns the same daily plan.
"""
from dataclasses import replace

import pytest

from watchsim.planner import ActivityBlock, DailyPlan, date_key


class FixedPlanner:
    """Stands in for DailyActivityPlanner; re-dates one plan every day."""

    def __init__(self, archetype, plan):
        self.archetype = archetype
        self.plan = plan
        self.calls = 0

    def plan_daily_activities(self, current_date):
        self.calls += 1
        return replace(self.plan, date=date_key(current_date))


@pytest.fixture
def install_plan():
    def _install(step_sim, sleep_hour, wake_hour, blocks=()):
        plan = DailyPlan(date="", sleep_hour=sleep_hour, wake_hour=wake_hour, activities=tuple(blocks))
        step_sim.planner = FixedPlanner(step_sim.archetype, plan)
        return step_sim.planner
    return _install


@pytest.fixture
def walk_block():
    def _block(hour, minute, duration=10, spm=110, kind="walk"):
        return ActivityBlock(kind=kind, start_hour=hour, start_minute=minute, duration_minutes=duration, steps_per_minute=spm)
    return _block
