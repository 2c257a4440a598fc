from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

MIN_SPEED = 1
MAX_SPEED = 1000

@dataclass(frozen=True)
class SimConfig:
    """Configuration for one simulation run.

    Notes:
      - speed is the ratio of simulated time to wall time (1..1000).
      - seed=None leaves daily plans non-deterministic.
    """
    start_iso: str = "2024-01-01T00:00:00"
    archetype_id: str = "office"
    speed: int = 1
    duration_days: int = 7
    seed: Optional[int] = None

    # Wall-clock cadence
    frame_interval_ms: float = 16.0    # render-synchronized path
    timer_interval_ms: float = 5.0     # minimum-delay timer path
    fast_path_threshold: int = 20      # speeds above this use the timer path

    # Device state machine
    initial_state: str = "IDLE"
    history_limit: int = 50
    modulate_by_state: bool = False

# camelCase keys from launcher config.json files
_ALIASES = {
    "startDate": "start_iso",
    "archetype": "archetype_id",
    "duration": "duration_days",
    "durationDays": "duration_days",
    "archetypeId": "archetype_id",
}

def load_jsonc(file_path: str) -> Dict[str, Any]:
    """Read a JSON file that may contain // and /* */ comments."""
    with open(file_path, "r", encoding="utf-8") as f:
        content = f.read()
    content = re.sub(r"^\s*//.*$", "", content, flags=re.MULTILINE)
    content = re.sub(r"/\*.*?\*/", "", content, flags=re.DOTALL)
    return json.loads(content)

def config_from_dict(data: Dict[str, Any]) -> SimConfig:
    """Build a SimConfig from a flat or {"simulation": {...}} mapping."""
    section = data.get("simulation", data)
    known = {f.name for f in fields(SimConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in section.items():
        name = _ALIASES.get(key, key)
        if name in known:
            kwargs[name] = value

    speed = kwargs.get("speed")
    if speed is not None:
        try:
            speed = int(speed)
        except (TypeError, ValueError):
            speed = None
        if speed is None or not (MIN_SPEED <= speed <= MAX_SPEED):
            logger.warning("Speed %r outside %d-%d, using default", kwargs["speed"], MIN_SPEED, MAX_SPEED)
            kwargs.pop("speed")
        else:
            kwargs["speed"] = speed
    if "duration_days" in kwargs:
        kwargs["duration_days"] = int(kwargs["duration_days"])
    return SimConfig(**kwargs)

def load_config(path: str | Path) -> SimConfig:
    """Load a SimConfig from a JSON/JSONC file."""
    return config_from_dict(load_jsonc(str(path)))
