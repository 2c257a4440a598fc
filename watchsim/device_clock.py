"""Device clock: the authoritative simulated timestamp.

Time only moves in fixed 100 ms quanta, whatever the size of the incoming
delta, so second/minute boundaries land on the same sub-steps at any speed.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .events import NEW_MINUTE, NEW_SECOND, EventEmitter, Listener, make_event

logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 100
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S

@dataclass(frozen=True)
class RTCTime:
    year: int
    month: int         # 1-12
    day: int
    hour: int
    minute: int
    second: int
    millisecond: int
    day_of_week: int   # 0=Sunday

def _to_timestamp(value) -> pd.Timestamp:
    ts = pd.Timestamp(value) if value is not None else pd.Timestamp.now().floor("s")
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts

class DeviceClock:
    def __init__(self, start=None):
        self._emitter = EventEmitter((NEW_SECOND, NEW_MINUTE))
        self.reset(start)

    def reset(self, start=None) -> None:
        """Re-initialise the timestamp and boundary trackers; zero the accumulator."""
        self._ns = int(_to_timestamp(start).value)
        self._last_second = self._second_of(self._ns)
        self._last_minute = self._minute_of(self._ns)
        self.accumulated_ms = 0.0

    @staticmethod
    def _second_of(ns: int) -> int:
        return (ns // _NS_PER_S) % 60

    @staticmethod
    def _minute_of(ns: int) -> int:
        return (ns // _NS_PER_MIN) % 60

    def advance(self, delta_ms: float) -> None:
        """Accumulate delta_ms and step time forward in 100 ms quanta.

        Each quantum is checked for a second boundary, then a minute
        boundary, so one large delta raises every interrupt it spans.
        """
        if delta_ms is None or delta_ms < 0:
            delta_ms = 0.0
        self.accumulated_ms += delta_ms
        step_ns = TICK_INTERVAL_MS * _NS_PER_MS

        while self.accumulated_ms >= TICK_INTERVAL_MS:
            self._ns += step_ns
            self.accumulated_ms -= TICK_INTERVAL_MS

            second = self._second_of(self._ns)
            if second != self._last_second:
                self._last_second = second
                self._emitter.emit(make_event(NEW_SECOND, self.get_current_time(), {"second": second}))

            minute = self._minute_of(self._ns)
            if minute != self._last_minute:
                self._last_minute = minute
                self._emitter.emit(make_event(NEW_MINUTE, self.get_current_time(), {"minute": minute}))

    def get_current_time(self) -> pd.Timestamp:
        return pd.Timestamp(self._ns)

    def get_current_time_iso(self) -> str:
        return self.get_current_time().isoformat()

    def get_rtc(self) -> RTCTime:
        t = self.get_current_time()
        return RTCTime(
            year=t.year,
            month=t.month,
            day=t.day,
            hour=t.hour,
            minute=t.minute,
            second=t.second,
            millisecond=t.microsecond // 1000,
            day_of_week=(t.dayofweek + 1) % 7,
        )

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.add_event_listener(event_type, listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.remove_event_listener(event_type, listener)

    def destroy(self) -> None:
        self._emitter.clear()
