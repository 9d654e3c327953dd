"""Millisecond timers advanced from the frame loop."""
from __future__ import annotations

from typing import Callable

MINUTES_PER_DAY = 24 * 60


class PeriodicTimer:
    """Calls ``callback`` once for every whole ``interval_ms`` that elapses."""

    def __init__(self, interval_ms: float, callback: Callable[[], None]) -> None:
        self.interval_ms = interval_ms
        self.callback = callback
        self.elapsed_ms = 0.0
        self.active = True

    def advance(self, dt_ms: float) -> int:
        fired = 0
        if not self.active:
            return fired
        self.elapsed_ms += dt_ms
        while self.active and self.elapsed_ms >= self.interval_ms:
            self.elapsed_ms -= self.interval_ms
            self.callback()
            fired += 1
        return fired

    def cancel(self) -> None:
        self.active = False


class SimulationClock:
    """Time of day shown on the panel; one simulated minute per real second."""

    def __init__(self, start_minute: int = 0, ms_per_minute: float = 1000.0) -> None:
        self.minutes = start_minute % MINUTES_PER_DAY
        self.timer = PeriodicTimer(ms_per_minute, self._tick)

    def _tick(self) -> None:
        self.minutes = (self.minutes + 1) % MINUTES_PER_DAY

    def advance(self, dt_ms: float) -> None:
        self.timer.advance(dt_ms)

    def stop(self) -> None:
        self.timer.cancel()

    @property
    def running(self) -> bool:
        return self.timer.active

    def display(self) -> str:
        hours, minutes = divmod(self.minutes, 60)
        return f"{hours:02d}:{minutes:02d}"
