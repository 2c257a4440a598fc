"""Device state machine (SLEEP / IDLE / BACKGROUND / ACTIVE).

Evaluated once per simulated minute. Rules whose ``from_state`` matches the
current state are tried in descending priority; the first predicate that
holds decides the target state.

"Night" here is a fixed 22:00-06:00 window, independent of the archetype's
sleep/wake hours used by the step simulator.
"""
from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6
HISTORY_LIMIT = 50

class DeviceState(str, Enum):
    SLEEP = "SLEEP"
    IDLE = "IDLE"
    BACKGROUND = "BACKGROUND"
    ACTIVE = "ACTIVE"

@dataclass(frozen=True)
class StateConfig:
    state: DeviceState
    step_multiplier: float
    description: str

STATE_CONFIGS: Dict[DeviceState, StateConfig] = {
    DeviceState.SLEEP: StateConfig(DeviceState.SLEEP, 0.0, "Device in sleep mode - no activity tracking"),
    DeviceState.IDLE: StateConfig(DeviceState.IDLE, 0.3, "Device idle - minimal activity detection"),
    DeviceState.BACKGROUND: StateConfig(DeviceState.BACKGROUND, 0.7, "Background tracking - normal activity detection"),
    DeviceState.ACTIVE: StateConfig(DeviceState.ACTIVE, 1.0, "Active mode - full activity tracking"),
}

def is_night(hour: int) -> bool:
    return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR

@dataclass(frozen=True)
class StateContext:
    current_time: pd.Timestamp
    hour: int
    is_night: bool
    steps_in_last_minute: int
    total_steps: int = 0
    activity_level: str = "sedentary"  # sleep | sedentary | light | moderate | vigorous
    minutes_since_last_activity: int = 0

    @classmethod
    def at(cls, current_time: pd.Timestamp, steps_in_last_minute: int, **kwargs) -> "StateContext":
        ts = pd.Timestamp(current_time)
        return cls(current_time=ts, hour=ts.hour, is_night=is_night(ts.hour), steps_in_last_minute=steps_in_last_minute, **kwargs)

@dataclass(frozen=True)
class StateTransitionRule:
    from_state: DeviceState
    to_state: DeviceState
    priority: int
    condition: Callable[[StateContext], bool]

@dataclass(frozen=True)
class StateTransitionEvent:
    from_state: DeviceState
    to_state: DeviceState
    timestamp: pd.Timestamp
    reason: str

S, I, B, A = DeviceState.SLEEP, DeviceState.IDLE, DeviceState.BACKGROUND, DeviceState.ACTIVE

TRANSITION_RULES: Sequence[StateTransitionRule] = (
    StateTransitionRule(S, A, 100, lambda c: c.steps_in_last_minute > 20 and not c.is_night),
    StateTransitionRule(S, I, 90, lambda c: not c.is_night and c.steps_in_last_minute == 0),

    StateTransitionRule(I, S, 95, lambda c: c.is_night and c.steps_in_last_minute == 0 and c.minutes_since_last_activity > 30),
    StateTransitionRule(I, A, 85, lambda c: c.steps_in_last_minute > 30),
    StateTransitionRule(I, B, 80, lambda c: 10 < c.steps_in_last_minute <= 30),

    StateTransitionRule(B, S, 92, lambda c: c.is_night and c.steps_in_last_minute == 0 and c.minutes_since_last_activity > 30),
    StateTransitionRule(B, A, 88, lambda c: c.steps_in_last_minute > 50),
    StateTransitionRule(B, I, 75, lambda c: c.steps_in_last_minute == 0 and c.minutes_since_last_activity > 5),

    StateTransitionRule(A, S, 93, lambda c: c.is_night and c.steps_in_last_minute == 0 and c.minutes_since_last_activity > 15),
    StateTransitionRule(A, B, 78, lambda c: 0 < c.steps_in_last_minute < 20),
    StateTransitionRule(A, I, 70, lambda c: c.steps_in_last_minute == 0 and c.minutes_since_last_activity > 3),
)

def transition_reason(rule: StateTransitionRule, ctx: StateContext) -> str:
    """Human-readable explanation of why a rule fired."""
    steps = ctx.steps_in_last_minute
    idle_min = ctx.minutes_since_last_activity
    if rule.to_state is S and ctx.is_night and idle_min > 15:
        return f"Night time with {idle_min}min inactivity"
    if rule.to_state is A:
        if steps > 50:
            return f"High activity detected ({steps} steps/min)"
        if steps > 20:
            return f"Moderate activity detected ({steps} steps/min)"
    if rule.to_state is B:
        if 10 < steps <= 30:
            return f"Light activity detected ({steps} steps/min)"
        if rule.from_state is A and steps < 20:
            return f"Activity decreasing ({steps} steps/min)"
    if rule.to_state is I:
        if idle_min > 3:
            return f"{idle_min}min without activity"
        if not ctx.is_night and steps == 0:
            return "Daytime with no activity"
    return f"{rule.from_state.value} -> {rule.to_state.value}"

def _coerce_state(state) -> DeviceState:
    try:
        return DeviceState(state)
    except ValueError:
        raise ValueError(f"Unknown device state: {state!r}") from None

class DeviceStateMachine:
    def __init__(
        self,
        initial_state=DeviceState.IDLE,
        rules: Sequence[StateTransitionRule] = TRANSITION_RULES,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.rules = list(rules)
        self.history_limit = int(history_limit)
        self.reset(initial_state)

    def reset(self, initial_state=DeviceState.IDLE) -> None:
        self.current_state = _coerce_state(initial_state)
        self.history: Deque[StateTransitionEvent] = deque(maxlen=self.history_limit)
        self.steps_in_last_minute = 0
        self.minutes_since_last_activity = 0
        self.last_activity_time: Optional[pd.Timestamp] = None
        self.last_update_time: Optional[pd.Timestamp] = None

    def _rules_for(self, state: DeviceState) -> List[StateTransitionRule]:
        return sorted((r for r in self.rules if r.from_state is state), key=lambda r: r.priority, reverse=True)

    def update(self, context: StateContext) -> Optional[StateTransitionEvent]:
        now = pd.Timestamp(context.current_time)
        self.steps_in_last_minute = context.steps_in_last_minute
        self.last_update_time = now

        if context.steps_in_last_minute > 0 or self.last_activity_time is None:
            # the first evaluated minute anchors the inactivity counter
            self.last_activity_time = now
            self.minutes_since_last_activity = 0
        else:
            delta = now - self.last_activity_time
            self.minutes_since_last_activity = int(delta.total_seconds() // 60)

        ctx = replace(context, minutes_since_last_activity=self.minutes_since_last_activity)

        for rule in self._rules_for(self.current_state):
            if rule.condition(ctx):
                return self._transition(rule.to_state, transition_reason(rule, ctx), now)
        return None

    def _transition(self, new_state: DeviceState, reason: str, when: pd.Timestamp) -> Optional[StateTransitionEvent]:
        if new_state is self.current_state:
            return None
        event = StateTransitionEvent(self.current_state, new_state, when, reason)
        self.current_state = new_state
        self.history.append(event)
        logger.info("State %s -> %s (%s)", event.from_state.value, event.to_state.value, reason)
        return event

    def get_current_state(self) -> DeviceState:
        return self.current_state

    def get_current_state_config(self) -> StateConfig:
        return STATE_CONFIGS[self.current_state]

    def get_state_multiplier(self) -> float:
        return STATE_CONFIGS[self.current_state].step_multiplier

    def get_transition_history(self) -> List[StateTransitionEvent]:
        return list(self.history)

    def get_state_distribution(self, now: Optional[pd.Timestamp] = None) -> Dict[DeviceState, float]:
        """Percentage of simulated time spent in each state since the oldest recorded transition."""
        dist = {s: 0.0 for s in DeviceState}
        if not self.history:
            dist[self.current_state] = 100.0
            return dist

        end = pd.Timestamp(now) if now is not None else (self.last_update_time or self.history[-1].timestamp)
        events = list(self.history)
        for prev, nxt in zip(events, events[1:]):
            dist[prev.to_state] += (nxt.timestamp - prev.timestamp).total_seconds()
        dist[self.current_state] += max(0.0, (end - events[-1].timestamp).total_seconds())

        total = sum(dist.values())
        if total <= 0:
            return {s: (100.0 if s is self.current_state else 0.0) for s in DeviceState}
        return {s: v / total * 100.0 for s, v in dist.items()}
