"""Deterministic clock and scheduler for exercising timed updates."""

from __future__ import annotations

import pytest


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, due_ms: float, callback) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects ``call_later`` requests and fires them on demand."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[FakeHandle] = []

    def call_later(self, delay_ms: float, callback) -> FakeHandle:
        handle = FakeHandle(self.clock.now * 1000.0 + delay_ms, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire_next(self, jitter_ms: float = 0.0) -> FakeHandle:
        handle = min(self.pending, key=lambda h: h.due_ms)
        self.handles.remove(handle)
        self.clock.now = (handle.due_ms + jitter_ms) / 1000.0
        handle.callback()
        return handle

    def run_until(self, end_ms: float, jitter=None) -> None:
        while self.pending:
            handle = min(self.pending, key=lambda h: h.due_ms)
            fire_ms = handle.due_ms + (jitter() if jitter is not None else 0.0)
            if fire_ms > end_ms:
                return
            self.handles.remove(handle)
            self.clock.now = fire_ms / 1000.0
            handle.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> FakeScheduler:
    return FakeScheduler(clock)
