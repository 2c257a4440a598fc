"""Wall-clock to simulated-time adapter.

Each invocation measures real time since the previous one, multiplies it by
the speed factor and hands the simulated delta to the registered callback,
then reschedules itself. Low speeds use the render-synchronized cadence,
high speeds a minimum-delay timer so frame pacing does not cap throughput.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional, Tuple

from .config import MAX_SPEED, MIN_SPEED
from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

FRAME = "frame"
TIMER = "timer"

class WallClockAdapter:
    def __init__(
        self,
        speed: int = 1,
        scheduler: Optional[Scheduler] = None,
        frame_interval_ms: float = 16.0,
        timer_interval_ms: float = 5.0,
        fast_path_threshold: int = 20,
    ):
        self.scheduler = scheduler or Scheduler()
        self.frame_interval_ms = float(frame_interval_ms)
        self.timer_interval_ms = float(timer_interval_ms)
        self.fast_path_threshold = int(fast_path_threshold)

        self.speed = 1
        self.set_speed(speed)

        self.is_running = False
        self.last_cadence: Optional[str] = None
        self.frame_index = 0
        self.simulated_elapsed_ms = 0.0
        self._handle: Optional[Handle] = None
        self._last_frame_ms = 0.0
        self._real_start_ms = 0.0
        self._on_tick: Optional[Callable[[float], None]] = None

    def _now_ms(self) -> float:
        return self.scheduler.time() * 1000.0

    def set_tick_callback(self, callback: Optional[Callable[[float], None]]) -> None:
        self._on_tick = callback

    def cadence_for_speed(self, speed: Optional[float] = None) -> Tuple[str, float]:
        """Return (kind, delay_ms) used to reschedule at the given speed."""
        s = self.speed if speed is None else speed
        if s > self.fast_path_threshold:
            return TIMER, self.timer_interval_ms
        return FRAME, self.frame_interval_ms

    def set_speed(self, speed: float) -> bool:
        """Apply a new speed on the next tick; out-of-range values are rejected."""
        try:
            ok = MIN_SPEED <= speed <= MAX_SPEED
        except TypeError:
            ok = False
        if not ok:
            logger.warning("Speed must be between %d and %d (got %r); keeping %sx", MIN_SPEED, MAX_SPEED, speed, self.speed)
            return False
        self.speed = speed
        return True

    def get_speed(self) -> float:
        return self.speed

    def get_elapsed_simulated_ms(self) -> float:
        return self.simulated_elapsed_ms

    def get_elapsed_real_ms(self) -> float:
        if not self.is_running:
            return 0.0
        return self._now_ms() - self._real_start_ms

    def start(self) -> None:
        if self.is_running:
            return
        self.is_running = True
        self._real_start_ms = self._now_ms()
        self._last_frame_ms = self._real_start_ms
        logger.info("Wall clock started at %sx", self.speed)
        self._tick()

    def pause(self) -> None:
        self.is_running = False
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None

    def reset(self) -> None:
        self.pause()
        self.simulated_elapsed_ms = 0.0
        self._last_frame_ms = 0.0
        self._real_start_ms = 0.0
        self.frame_index = 0
        self.last_cadence = None

    def destroy(self) -> None:
        self.pause()
        self._on_tick = None

    def _tick(self) -> None:
        self._handle = None
        if not self.is_running:
            return

        now = self._now_ms()
        real_delta = now - self._last_frame_ms
        self._last_frame_ms = now

        simulated_delta = real_delta * self.speed
        self.simulated_elapsed_ms += simulated_delta
        self.frame_index += 1

        if self._on_tick is not None:
            try:
                self._on_tick(simulated_delta)
            except Exception:
                logger.exception("Tick callback failed")

        # the callback may have paused us (e.g. simulation complete)
        if not self.is_running:
            return
        kind, delay_ms = self.cadence_for_speed()
        self.last_cadence = kind
        self._handle = self.scheduler.call_later(delay_ms / 1000.0, self._tick)
