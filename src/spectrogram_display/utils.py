"""Small signal helpers used by the demos and plots."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

EPS = 1e-12


def dbfs(x: np.ndarray) -> np.ndarray:
    """Convert a linear magnitude array into dBFS."""
    return 20.0 * np.log10(np.maximum(x, EPS))


def compute_cosines(
    n: int, secs: float, freqs: Sequence[float], amps: Sequence[float]
) -> np.ndarray:
    """Sum of cosines over ``secs`` seconds evaluated at ``n`` points.

    Amplitudes are normalised so they sum to one, keeping the peak at 1.
    """

    if len(freqs) != len(amps):
        raise ValueError("freqs and amps must have the same length")
    total = float(np.sum(amps))
    if total == 0.0:
        raise ValueError("amplitudes must not sum to zero")
    x = np.arange(n, dtype=np.float64)
    factor = 2.0 * np.pi * secs / n
    out = np.zeros(n, dtype=np.float32)
    for freq, amp in zip(freqs, amps):
        out += (amp / total) * np.cos(freq * factor * x)
    return out


def extract(data, step: float) -> np.ndarray:
    """Decimate by keeping ``data[round(i)]`` for ``i = 0, step, 2*step, ...``."""

    data = np.asarray(data)
    if step <= 0:
        raise ValueError("step must be positive")
    positions = np.arange(math.ceil(len(data) / step)) * step
    idx = np.minimum(np.floor(positions + 0.5).astype(np.int64), len(data) - 1)
    return data[idx].astype(np.float32)


def average_down(data, step: int) -> np.ndarray:
    """Decimate by averaging each run of ``step`` consecutive values."""

    data = np.asarray(data, dtype=np.float32)
    step = int(step)
    if step <= 0:
        raise ValueError("step must be positive")
    count = len(data) // step
    return data[: count * step].reshape(count, step).mean(axis=1)


__all__ = ["EPS", "average_down", "compute_cosines", "dbfs", "extract"]
