from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)

DEFAULT_ARCHETYPE = "office"

@dataclass(frozen=True)
class TimeWindow:
    """Base hour randomized by +/- randomization_minutes in step_minutes increments."""
    hour: int
    randomization_minutes: int
    step_minutes: int

@dataclass(frozen=True)
class ActivityRate:
    steps_per_minute: float
    dispersion: float
    duration_minutes: int
    frequency_per_week: float

@dataclass(frozen=True)
class ArchetypeProfile:
    id: str
    name: str
    description: str
    sleep_time: TimeWindow
    wake_time: TimeWindow
    walks: ActivityRate
    runs: ActivityRate

_WALK = ActivityRate(steps_per_minute=110, dispersion=10, duration_minutes=10, frequency_per_week=7)
_RUN = ActivityRate(steps_per_minute=150, dispersion=15, duration_minutes=10, frequency_per_week=3)

ARCHETYPES: Dict[str, ArchetypeProfile] = {
    "office": ArchetypeProfile(
        id="office",
        name="Office Worker",
        description="Regular office schedule with randomized sleep/wake times",
        sleep_time=TimeWindow(0, 60, 60),
        wake_time=TimeWindow(8, 60, 60),
        walks=_WALK,
        runs=_RUN,
    ),
    "shift": ArchetypeProfile(
        id="shift",
        name="Night Shift Worker",
        description="Night shift schedule with daytime sleep",
        sleep_time=TimeWindow(9, 60, 60),
        wake_time=TimeWindow(17, 60, 60),
        walks=_WALK,
        runs=_RUN,
    ),
    "athlete": ArchetypeProfile(
        id="athlete",
        name="Athlete",
        description="Early riser with near-daily training runs",
        sleep_time=TimeWindow(23, 30, 30),
        wake_time=TimeWindow(5, 30, 30),
        walks=ActivityRate(120, 10, 20, 7),
        runs=ActivityRate(165, 15, 45, 6),
    ),
    "sedentary": ArchetypeProfile(
        id="sedentary",
        name="Sedentary",
        description="Minimal daily movement, occasional short walks",
        sleep_time=TimeWindow(0, 60, 60),
        wake_time=TimeWindow(7, 60, 60),
        walks=ActivityRate(95, 10, 5, 3),
        runs=ActivityRate(140, 10, 10, 0),
    ),
    "active": ArchetypeProfile(
        id="active",
        name="Active Lifestyle",
        description="Regular walks throughout the day, several runs a week",
        sleep_time=TimeWindow(23, 60, 60),
        wake_time=TimeWindow(6, 60, 60),
        walks=ActivityRate(115, 10, 20, 7),
        runs=ActivityRate(155, 15, 30, 4),
    ),
    "flexible": ArchetypeProfile(
        id="flexible",
        name="Flexible Worker",
        description="Works from home with an irregular schedule",
        sleep_time=TimeWindow(1, 120, 30),
        wake_time=TimeWindow(9, 120, 30),
        walks=ActivityRate(105, 15, 15, 5),
        runs=ActivityRate(150, 15, 20, 2),
    ),
}

def get_archetype(archetype_id: str) -> ArchetypeProfile:
    """Look up a profile; unknown ids fall back to the office worker."""
    profile = ARCHETYPES.get(archetype_id)
    if profile is None:
        logger.warning("Unknown archetype %r, falling back to %r", archetype_id, DEFAULT_ARCHETYPE)
        return ARCHETYPES[DEFAULT_ARCHETYPE]
    return profile

def list_archetypes() -> List[str]:
    return list(ARCHETYPES)
