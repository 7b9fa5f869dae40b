"""Keep successive waveform snapshots visually aligned."""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy import signal


def bytes_to_unit(data) -> np.ndarray:
    """Map 0..255 time-domain bytes onto roughly -1..1."""
    return np.asarray(data, dtype=np.float32) / 128.0 - 1.0


class WaveformAligner:
    """Choose an ``n``-sample window of each new frame that lines up with the last.

    The new frame is cross-correlated with the previous one and the window
    centre moves by the best lag. A centre that would push the window past
    either end of the frame snaps back to the middle.
    """

    def __init__(self, n: int) -> None:
        if n <= 0:
            raise ValueError("n must be positive")
        self.n = int(n)
        self._last: Optional[np.ndarray] = None
        self._middle = 0.0

    @property
    def middle(self) -> float:
        return self._middle

    def reset(self) -> None:
        self._last = None
        self._middle = 0.0

    def align(self, frame) -> np.ndarray:
        data = bytes_to_unit(frame)
        length = data.size
        if self.n >= length:
            self._last = data
            self._middle = length / 2.0
            return data

        half_n = 0.5 * self.n
        if self._last is None or self._last.size != length:
            mid = length / 2.0
        else:
            corr = signal.correlate(data, self._last, mode="full", method="fft")
            # index length-1 is zero lag; positive lag = new frame shifted right
            lag = int(np.argmax(corr)) - (length - 1)
            mid = self._middle + lag
            if mid > length - half_n or mid < half_n:
                mid = length / 2.0

        self._middle = mid
        self._last = data
        start = int(np.floor(mid - half_n))
        start = min(max(start, 0), length - self.n)
        return data[start : start + self.n]


__all__ = ["WaveformAligner", "bytes_to_unit"]
