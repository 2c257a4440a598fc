"""Device orchestrator: clock -> step simulator -> state machine, one event stream."""
from __future__ import annotations
import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .archetypes import DEFAULT_ARCHETYPE, ArchetypeProfile
from .device_clock import DeviceClock, RTCTime
from .events import (
    DEVICE_EVENTS, NEW_MINUTE, NEW_SECOND, NEW_STATE, NEW_STEP,
    EventEmitter, Listener, SimEvent, make_event,
)
from .planner import DailyPlan
from .state_machine import DeviceState, DeviceStateMachine, StateContext, StateTransitionEvent
from .steps import StepSimulator

logger = logging.getLogger(__name__)

# step generation runs once per simulated second, independent of wall-clock jitter
SECOND_DELTA = 1

class DeviceOrchestrator:
    def __init__(
        self,
        start=None,
        archetype_id: str = DEFAULT_ARCHETYPE,
        rng: Optional[np.random.Generator] = None,
        initial_state=DeviceState.IDLE,
        history_limit: int = 50,
        modulate_by_state: bool = False,
    ):
        self.initial_state = initial_state
        self.modulate_by_state = bool(modulate_by_state)

        self.clock = DeviceClock(start)
        self.steps = StepSimulator(archetype_id, rng)
        self.state_machine = DeviceStateMachine(initial_state, history_limit=history_limit)
        self.steps_in_last_minute = 0

        self._emitter = EventEmitter(DEVICE_EVENTS)
        self.clock.add_event_listener(NEW_SECOND, self._on_second)
        self.clock.add_event_listener(NEW_MINUTE, self._on_minute)

    def _on_second(self, event: SimEvent) -> None:
        multiplier = self.state_machine.get_state_multiplier() if self.modulate_by_state else 1.0
        data = self.steps.process_tick(event.simulated_time, SECOND_DELTA, multiplier)
        if data is not None:
            self.steps_in_last_minute += data.steps
            payload = data.to_dict()
            payload["device_state"] = self.state_machine.get_current_state().value
            self._emitter.emit(make_event(NEW_STEP, event.simulated_time, payload))
        self._emitter.emit(event)

    def _on_minute(self, event: SimEvent) -> None:
        self._emitter.emit(event)

        ts = event.simulated_time
        steps = self.steps_in_last_minute
        self.steps_in_last_minute = 0
        if self.steps.current_plan is None:
            activity_level = "sedentary"
        elif self.steps.is_asleep_at(ts.hour):
            activity_level = "sleep"
        else:
            activity_level = "moderate" if steps > 50 else "sedentary"

        ctx = StateContext.at(ts, steps, total_steps=self.steps.get_total_steps(), activity_level=activity_level)
        transition = self.state_machine.update(ctx)
        if transition is not None:
            self._emitter.emit(make_event(NEW_STATE, ts, {
                "from": transition.from_state.value,
                "to": transition.to_state.value,
                "reason": transition.reason,
                "timestamp": transition.timestamp.isoformat(),
            }))

    def advance(self, delta_ms: float) -> None:
        self.clock.advance(delta_ms)

    def get_rtc(self) -> RTCTime:
        return self.clock.get_rtc()

    def get_current_time(self) -> pd.Timestamp:
        return self.clock.get_current_time()

    def get_current_time_iso(self) -> str:
        return self.clock.get_current_time_iso()

    def set_archetype(self, archetype_id: str) -> None:
        self.steps.set_archetype(archetype_id)

    def get_archetype(self) -> ArchetypeProfile:
        return self.steps.get_archetype()

    def get_total_steps(self) -> int:
        return self.steps.get_total_steps()

    def get_current_state(self) -> DeviceState:
        return self.state_machine.get_current_state()

    def get_current_plan(self) -> Optional[DailyPlan]:
        return self.steps.get_current_plan()

    def get_hourly_distribution(self) -> List[Dict[str, int]]:
        return self.steps.get_hourly_distribution()

    def get_expected_daily_steps(self) -> int:
        return self.steps.get_expected_daily_steps()

    def get_transition_history(self) -> List[StateTransitionEvent]:
        return self.state_machine.get_transition_history()

    def get_state_distribution(self) -> Dict[DeviceState, float]:
        return self.state_machine.get_state_distribution()

    def reset(self, start=None) -> None:
        self.clock.reset(start)
        self.steps.reset()
        self.state_machine.reset(self.initial_state)
        self.steps_in_last_minute = 0

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.add_event_listener(event_type, listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.remove_event_listener(event_type, listener)

    def destroy(self) -> None:
        self.clock.destroy()
        self._emitter.clear()
