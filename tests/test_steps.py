"""
Unit tests for step generation against a fixed daily plan.
"""
import pandas as pd
import pytest

from watchsim.steps import StepSimulator, is_sleeping


def _run(sim, start, n_seconds, multiplier=1.0):
    emitted = []
    for ts in pd.date_range(start, periods=n_seconds, freq="s"):
        data = sim.process_tick(ts, 1, multiplier)
        if data is not None:
            emitted.append((ts, data))
    return emitted


@pytest.mark.parametrize("hour,sleep,wake,expected", [
    (23, 23, 7, True),
    (3, 23, 7, True),
    (7, 23, 7, False),
    (12, 23, 7, False),
    (5, 1, 9, True),
    (9, 1, 9, False),
    (0, 1, 9, False),
    (10, 10, 10, True),
])
def test_is_sleeping(hour, sleep, wake, expected):
    assert is_sleeping(hour, sleep, wake) is expected


def test_fractional_rate_accumulates(install_plan, walk_block):
    """
    110 steps/min over a 10-minute block yields floor(N*R/60) steps, one
    second at a time, with no steps outside the block.
    """
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(10, 0, duration=10, spm=110)])

    emitted = _run(sim, "2024-01-01T09:59:00", 60 * 12)

    assert 1099 <= sim.get_total_steps() <= 1100, f"Got {sim.get_total_steps()}"
    assert all(ts.hour == 10 and ts.minute < 10 for ts, _ in emitted), "Steps only inside the block"
    assert all(d.steps in (1, 2) for _, d in emitted), "1.83 steps/s emits 1 or 2 per tick"
    assert all(d.activity_type == "walk" and d.steps_per_minute == 110 for _, d in emitted)

    totals = [d.total_steps for _, d in emitted]
    assert totals == sorted(totals), "Running total must be monotonic"
    assert totals[-1] == sim.get_total_steps()


def test_steps_this_minute_resets(install_plan, walk_block):
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(10, 0, duration=5, spm=120)])
    emitted = _run(sim, "2024-01-01T10:00:00", 120)

    by_minute = {}
    for ts, d in emitted:
        by_minute[ts.minute] = d.steps_this_minute
    assert by_minute == {0: 120, 1: 120}, f"Per-minute counter should restart: {by_minute}"


def test_no_steps_while_asleep(install_plan, walk_block):
    """
    A block scheduled inside the sleep window produces nothing.
    """
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(3, 0, duration=30, spm=150)])
    assert _run(sim, "2024-01-01T03:00:00", 1800) == []
    assert sim.get_total_steps() == 0
    assert sim.is_asleep_at(3) and not sim.is_asleep_at(12)


def test_block_past_midnight_stops_at_midnight(install_plan, walk_block):
    """
    A 23:55 block of 10 minutes walks until 23:59:59; the part past
    midnight yields nothing once the next day's plan is in place.
    """
    sim = StepSimulator("office")
    planner = install_plan(sim, 2, 8, [walk_block(23, 55, duration=10, spm=120)])
    emitted = _run(sim, "2024-01-01T23:55:00", 600)

    assert sim.get_total_steps() == 600, "Five minutes at 2 steps/s before midnight"
    assert all(ts.day == 1 for ts, _ in emitted), "No steps after midnight"
    assert planner.calls == 2, "A new plan is requested when the date changes"
    assert sim.get_current_plan().date == "2024-01-02"


def test_multiplier_scales_rate(install_plan, walk_block):
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(10, 0, duration=10, spm=120)])
    _run(sim, "2024-01-01T10:00:00", 60, multiplier=0.5)
    assert sim.get_total_steps() == 60

    sim.reset()
    _run(sim, "2024-01-01T10:00:00", 60, multiplier=0.0)
    assert sim.get_total_steps() == 0, "A zero multiplier suppresses steps"


def test_hourly_distribution_and_expected_steps(install_plan, walk_block):
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(10, 0, duration=10, spm=120), walk_block(15, 30, duration=5, spm=100)])
    _run(sim, "2024-01-01T10:00:00", 60)

    dist = sim.get_hourly_distribution()
    assert len(dist) == 24
    assert dist[10] == {"hour": 10, "steps": 120}
    assert sum(d["steps"] for d in dist) == sim.get_total_steps()
    assert sim.get_expected_daily_steps() == 10 * 120 + 5 * 100


def test_reset_clears_progress(install_plan, walk_block):
    sim = StepSimulator("office")
    install_plan(sim, 0, 8, [walk_block(10, 0, spm=120)])
    _run(sim, "2024-01-01T10:00:00", 30)
    assert sim.get_total_steps() > 0

    sim.reset()
    assert sim.get_total_steps() == 0
    assert sim.get_current_plan() is None
    assert sim.accumulated_steps == 0
    assert sim.get_expected_daily_steps() == 0


def test_set_archetype_switches_profile():
    sim = StepSimulator("office")
    sim.set_archetype("shift")
    assert sim.get_archetype().id == "shift"
    assert sim.planner.archetype.id == "shift", "Planner follows the new profile"
