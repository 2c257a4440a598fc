"""Event envelope and listener fan-out shared by all simulation components."""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

NEW_SECOND = "NEW_SECOND"
NEW_MINUTE = "NEW_MINUTE"
NEW_STEP = "NEW_STEP"
NEW_STATE = "NEW_STATE"
SIMULATION_COMPLETE = "SIMULATION_COMPLETE"

DEVICE_EVENTS = (NEW_SECOND, NEW_MINUTE, NEW_STEP, NEW_STATE)

def wall_ms() -> float:
    return time.time() * 1000.0

@dataclass(frozen=True)
class SimEvent:
    """Tagged event: wall-clock emission time (epoch ms) plus simulated time."""
    type: str
    timestamp: float
    simulated_time: pd.Timestamp
    data: Dict[str, Any] = field(default_factory=dict)

def make_event(event_type: str, simulated_time: pd.Timestamp, data: Optional[Dict[str, Any]] = None) -> SimEvent:
    return SimEvent(event_type, wall_ms(), pd.Timestamp(simulated_time), dict(data or {}))

Listener = Callable[[SimEvent], None]

class EventEmitter:
    """Per-type listener registry.

    Listeners run synchronously in registration order. A listener that
    raises is logged and skipped; the remaining listeners still run.
    """

    def __init__(self, event_types: Iterable[str], allow_custom: bool = False):
        self._listeners: Dict[str, List[Listener]] = {t: [] for t in event_types}
        self._allow_custom = allow_custom

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type)
        if listeners is None:
            if not self._allow_custom:
                logger.warning("Ignoring listener for unknown event type %s", event_type)
                return
            listeners = self._listeners[event_type] = []
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event: SimEvent) -> None:
        # copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(event.type, ())):
            try:
                listener(event)
            except Exception:
                logger.exception("Error in event listener for %s", event.type)

    def clear(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()
