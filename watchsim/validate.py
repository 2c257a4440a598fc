from __future__ import annotations
import pandas as pd

from .archetypes import ARCHETYPES
from .config import MAX_SPEED, MIN_SPEED, SimConfig
from .state_machine import DeviceState

def validate_config(cfg: SimConfig) -> list[str]:
    """Lightweight validation; returns a list of problems (empty when usable)."""
    issues = []
    if not (MIN_SPEED <= cfg.speed <= MAX_SPEED):
        issues.append(f"speed must be between {MIN_SPEED} and {MAX_SPEED}")
    if cfg.duration_days <= 0:
        issues.append("duration_days must be positive")
    if cfg.archetype_id not in ARCHETYPES:
        issues.append(f"unknown archetype: {cfg.archetype_id}")
    try:
        pd.Timestamp(cfg.start_iso)
    except (TypeError, ValueError):
        issues.append(f"start_iso is not a valid timestamp: {cfg.start_iso}")
    if cfg.initial_state not in {s.value for s in DeviceState}:
        issues.append(f"unknown initial_state: {cfg.initial_state}")
    if cfg.history_limit <= 0:
        issues.append("history_limit must be positive")
    return issues

def validate_minute_log(df: pd.DataFrame) -> list[str]:
    issues = []
    for col in ("timestamp", "steps"):
        if col not in df.columns:
            issues.append(f"minute log missing {col}")
    if not issues:
        if (df["steps"] < 0).any():
            issues.append("minute log has negative step counts")
        if not df["timestamp"].is_monotonic_increasing:
            issues.append("minute log timestamps are not ordered")
    return issues
