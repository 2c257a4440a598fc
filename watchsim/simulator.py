"""Top-level simulation supervisor.

Wires the wall-clock adapter to the device, re-publishes every device event
and stops itself once the configured simulated duration has elapsed.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from .config import MAX_SPEED, SimConfig
from .device import DeviceOrchestrator
from .device_clock import RTCTime
from .events import DEVICE_EVENTS, SIMULATION_COMPLETE, EventEmitter, Listener, SimEvent, make_event
from .export import MinuteStepLog
from .rng import make_rng
from .scheduler import Scheduler
from .state_machine import DeviceState, StateTransitionEvent
from .wallclock import WallClockAdapter

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000

class SimulationSupervisor:
    def __init__(
        self,
        config: Optional[SimConfig] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or SimConfig()
        cfg = self.config

        self.device = DeviceOrchestrator(
            start=cfg.start_iso,
            archetype_id=cfg.archetype_id,
            rng=rng if rng is not None else make_rng(cfg.seed),
            initial_state=cfg.initial_state,
            history_limit=cfg.history_limit,
            modulate_by_state=cfg.modulate_by_state,
        )
        self.adapter = WallClockAdapter(
            speed=cfg.speed,
            scheduler=scheduler,
            frame_interval_ms=cfg.frame_interval_ms,
            timer_interval_ms=cfg.timer_interval_ms,
            fast_path_threshold=cfg.fast_path_threshold,
        )
        self.adapter.set_tick_callback(self.device.advance)

        self._emitter = EventEmitter(DEVICE_EVENTS + (SIMULATION_COMPLETE,), allow_custom=True)
        for event_type in DEVICE_EVENTS:
            self.device.add_event_listener(event_type, self._forward)

        self.completed = False
        self._reset_progress()

    @property
    def scheduler(self) -> Scheduler:
        return self.adapter.scheduler

    def _reset_progress(self) -> None:
        self.simulated_start = self.device.get_current_time()
        self.total_duration_ms = self.config.duration_days * MS_PER_DAY

    def _forward(self, event: SimEvent) -> None:
        self._emitter.emit(event)
        if not self._should_auto_stop():
            return
        self.pause()
        if not self.completed:
            self.completed = True
            logger.info("Simulation complete: %d steps over %s days", self.device.get_total_steps(), self.config.duration_days)
            self._emitter.emit(make_event(SIMULATION_COMPLETE, self.device.get_current_time(), {
                "duration": self.config.duration_days,
                "total_steps": self.device.get_total_steps(),
            }))

    def _should_auto_stop(self) -> bool:
        return self.adapter.is_running and self.get_progress() >= 100

    def get_progress(self) -> float:
        if self.total_duration_ms <= 0:
            return 100.0
        elapsed_ms = (self.device.get_current_time() - self.simulated_start).total_seconds() * 1000.0
        return min(100.0, elapsed_ms / self.total_duration_ms * 100.0)

    def start(self) -> None:
        if not self.adapter.is_running:
            logger.info("Starting simulation (%s, %sx, %s days)", self.config.archetype_id, self.adapter.speed, self.config.duration_days)
        self.adapter.start()

    def pause(self) -> None:
        self.adapter.pause()

    def run(self, max_callbacks: Optional[int] = None) -> int:
        """Drive the scheduler on the calling thread until it goes idle."""
        return self.scheduler.run(max_callbacks)

    def reset(self, **overrides: Any) -> None:
        """Reset every component, optionally with new config values."""
        self.pause()
        speed = overrides.pop("speed", None)
        self.config = replace(self.config, **overrides)
        cfg = self.config

        self.device.reset(cfg.start_iso)
        if "archetype_id" in overrides:
            self.device.set_archetype(cfg.archetype_id)
        if "seed" in overrides:
            self.device.steps.planner.rng = make_rng(cfg.seed)

        self.adapter.reset()
        if speed is not None:
            self.set_speed(speed)

        self.completed = False
        self._reset_progress()
        logger.info("Simulation reset to %s", cfg.start_iso)

    def set_speed(self, speed: int) -> bool:
        ok = self.adapter.set_speed(speed)
        if ok:
            self.config = replace(self.config, speed=speed)
        return ok

    def get_speed(self) -> float:
        return self.adapter.get_speed()

    def set_archetype(self, archetype_id: str) -> None:
        self.config = replace(self.config, archetype_id=archetype_id)
        self.device.set_archetype(archetype_id)

    @property
    def is_running(self) -> bool:
        return self.adapter.is_running

    def get_rtc(self) -> RTCTime:
        return self.device.get_rtc()

    def get_current_time(self) -> pd.Timestamp:
        return self.device.get_current_time()

    def get_current_time_iso(self) -> str:
        return self.device.get_current_time_iso()

    def get_total_steps(self) -> int:
        return self.device.get_total_steps()

    def get_expected_daily_steps(self) -> int:
        return self.device.get_expected_daily_steps()

    def get_current_state(self) -> DeviceState:
        return self.device.get_current_state()

    def get_hourly_distribution(self) -> List[Dict[str, int]]:
        return self.device.get_hourly_distribution()

    def get_state(self) -> Dict[str, Any]:
        return {
            "is_running": self.adapter.is_running,
            "speed": self.adapter.get_speed(),
            "progress": self.get_progress(),
            "current_time": self.device.get_current_time(),
            "rtc": self.device.get_rtc(),
            "total_steps": self.device.get_total_steps(),
            "device_state": self.device.get_current_state().value,
            "archetype": self.config.archetype_id,
            "duration": self.config.duration_days,
        }

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.add_event_listener(event_type, listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        self._emitter.remove_event_listener(event_type, listener)

    def destroy(self) -> None:
        self.pause()
        self.device.destroy()
        self.adapter.destroy()
        self._emitter.clear()

@dataclass
class SimulationResult:
    """Outcome of a headless run.

    end_time can sit a few simulated seconds past the configured duration:
    the tick that crosses it still finishes its remaining 100 ms steps, and
    their second/minute events reach listeners after SIMULATION_COMPLETE.
    """
    config: SimConfig
    completed: bool
    progress: float
    total_steps: int
    final_state: str
    end_time: pd.Timestamp
    minute_log: MinuteStepLog
    hourly: pd.DataFrame
    transitions: List[StateTransitionEvent] = field(default_factory=list)
    state_distribution: Dict[str, float] = field(default_factory=dict)

def run_headless(
    config: Optional[SimConfig] = None,
    rng: Optional[np.random.Generator] = None,
    max_callbacks: Optional[int] = None,
    on_event: Optional[Callable[[SimEvent], None]] = None,
) -> SimulationResult:
    """Run a whole simulation on a virtual clock, without waiting wall time.

    The adapter always runs at MAX_SPEED here, so the number of scheduler
    callbacks is fixed by the duration alone; config.speed is carried through
    to the result for export naming only.
    """
    cfg = config or SimConfig()
    sup = SimulationSupervisor(replace(cfg, speed=MAX_SPEED), scheduler=Scheduler.virtual(), rng=rng)
    minute_log = MinuteStepLog()
    minute_log.attach(sup)
    if on_event is not None:
        for event_type in DEVICE_EVENTS + (SIMULATION_COMPLETE,):
            sup.add_event_listener(event_type, on_event)

    sup.start()
    sup.run(max_callbacks)
    sup.pause()

    return SimulationResult(
        config=cfg,
        completed=sup.completed,
        progress=sup.get_progress(),
        total_steps=sup.get_total_steps(),
        final_state=sup.get_current_state().value,
        end_time=sup.get_current_time(),
        minute_log=minute_log,
        hourly=pd.DataFrame(sup.get_hourly_distribution(), columns=["hour", "steps"]),
        transitions=sup.device.get_transition_history(),
        state_distribution={s.value: v for s, v in sup.device.get_state_distribution().items()},
    )
