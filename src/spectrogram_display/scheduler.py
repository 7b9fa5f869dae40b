"""Fixed-rate, drift-corrected scheduling of spectrogram line updates."""

from __future__ import annotations

import functools
import logging
import math
import threading
import time
from numbers import Real
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

MAX_LINE_RATE = 50.0


class InvalidRate(ValueError):
    """Raised for a line rate that is not a number in 0..50 lines/sec."""


def validate_line_rate(rate: Any) -> float:
    """Return ``rate`` as a float or raise :class:`InvalidRate`."""

    if isinstance(rate, bool) or not isinstance(rate, Real):
        raise InvalidRate(f"line rate must be a number, got {rate!r}")
    value = float(rate)
    if math.isnan(value) or value < 0.0 or value > MAX_LINE_RATE:
        raise InvalidRate(
            f"invalid line rate {rate!r} [0 <= lineRate <= {MAX_LINE_RATE:g} lines/sec]"
        )
    return value


class TimerHandle(Protocol):
    def cancel(self) -> None:  # pragma: no cover - interface method
        ...


class Scheduler(Protocol):
    def call_later(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> TimerHandle:  # pragma: no cover - interface method
        ...


class ThreadingScheduler:
    """Run each callback once on a daemon :class:`threading.Timer`."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(delay_ms, 0.0) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer


class _CanvasTimerHandle:
    def __init__(self, timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class MatplotlibScheduler:
    """Single-shot matplotlib canvas timers, so ticks run on the GUI loop."""

    def __init__(self, figure) -> None:
        self.figure = figure

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = self.figure.canvas.new_timer(interval=max(int(round(delay_ms)), 0))
        timer.single_shot = True
        timer.add_callback(callback)
        timer.start()
        return _CanvasTimerHandle(timer)


class DriftCorrectedTimer:
    """Call ``callback`` repeatedly at ``interval_ms`` without accumulating drift.

    Rather than re-arming with a fixed delay, the timer keeps the ideal
    elapsed time (``interval`` added per tick) and the wall-clock start, and
    shortens the next delay by however late the loop is running. Every
    scheduled tick carries the generation it was started under; :meth:`stop`
    and :meth:`start` bump the generation, so a tick already handed to the
    scheduler, or one still running on another thread, never re-arms.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._clock = clock
        self._interval_ms = 0.0
        self._start_ms = 0.0
        self._elapsed_ms = 0.0
        self._running = False
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._lock = threading.RLock()
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: float) -> None:
        self._interval_ms = float(value)

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def start(self, interval_ms: float) -> None:
        self.stop()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._interval_ms = float(interval_ms)
            self._start_ms = self._now_ms()
            self._elapsed_ms = 0.0
            self.ticks = 0
            self._running = True
        self._tick(generation)

    def stop(self) -> None:
        with self._lock:
            self._running = False
            self._generation += 1
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _current(self, generation: int) -> bool:
        return self._running and generation == self._generation

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._current(generation):
                return
            self._handle = None
        try:
            self._callback()
        except Exception:  # noqa: BLE001 - keep the display loop alive
            logger.exception("Scheduled line update failed")

        with self._lock:
            # a restart or stop during the callback owns the schedule now
            if not self._current(generation):
                return
            self.ticks += 1
            self._elapsed_ms += self._interval_ms
            drift = (self._now_ms() - self._start_ms) - self._elapsed_ms
            delay = max(self._interval_ms - drift, 0.0)
            self._handle = self._scheduler.call_later(
                delay, functools.partial(self._tick, generation)
            )


__all__ = [
    "DriftCorrectedTimer",
    "InvalidRate",
    "MAX_LINE_RATE",
    "MatplotlibScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "validate_line_rate",
]
