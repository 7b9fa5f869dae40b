"""Map one line of input samples onto one line of RGBA pixels."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .colormap import SENTINEL_INDEX, ColorMap

# Output pixels per octave when the frequency axis is log scaled.
LOG_BINS_PER_OCTAVE = 48
HIGHLIGHT_COLOR = (255, 255, 255, 255)


def coerce_samples(samples) -> np.ndarray:
    """Return ``samples`` as a flat float64 array clamped to 0..255 (NaN -> 0)."""

    arr = np.asarray(samples, dtype=np.float64).ravel()
    arr = np.nan_to_num(arr, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(arr, 0.0, 255.0)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def log_bin_edges(
    px_per_line: int, start_bin: float, end_bin: float
) -> tuple[np.ndarray, np.ndarray]:
    """Fractional input indices bounding each output pixel on a log axis.

    Pixel ``i`` spans ``factor * (2**((i -/+ 0.5)/48) - 1) + start_bin`` where
    ``factor`` stretches the last pixel centre onto ``end_bin``.
    """

    i = np.arange(px_per_line, dtype=np.float64)
    denom = 2.0 ** ((px_per_line - 1) / LOG_BINS_PER_OCTAVE) - 1.0
    factor = (end_bin - start_bin) / denom if denom > 0 else 0.0
    lo = factor * (2.0 ** ((i - 0.5) / LOG_BINS_PER_OCTAVE) - 1.0) + start_bin
    hi = factor * (2.0 ** ((i + 0.5) / LOG_BINS_PER_OCTAVE) - 1.0) + start_bin
    return lo, hi


def _integrate(samples: np.ndarray, lo: np.ndarray, hi: np.ndarray) -> np.ndarray:
    # Sample k covers [k, k + 1); anything outside the buffer contributes 0.
    n = samples.size
    prefix = np.concatenate(([0.0], np.cumsum(samples)))

    def cumulative(x: np.ndarray) -> np.ndarray:
        xc = np.clip(x, 0.0, float(n))
        k = np.minimum(np.floor(xc).astype(np.int64), n - 1)
        return prefix[k] + (xc - k) * samples[k]

    span = hi - lo
    out = np.full(lo.shape, np.nan)
    ok = span > 0
    out[ok] = (cumulative(hi[ok]) - cumulative(lo[ok])) / span[ok]
    return out


def line_indices(
    samples,
    px_per_line: int,
    start_bin: float = 0.0,
    end_bin: Optional[float] = None,
    log_scale: bool = False,
) -> np.ndarray:
    """Color table indices (0..255, or the sentinel) for one output line."""

    if px_per_line <= 0:
        raise ValueError("px_per_line must be positive")
    buf = coerce_samples(samples)
    if end_bin is None:
        end_bin = buf.size
    if buf.size == 0:
        return np.full(px_per_line, SENTINEL_INDEX, dtype=np.int64)

    if log_scale:
        lo, hi = log_bin_edges(px_per_line, float(start_bin), float(end_bin))
        values = _integrate(buf, lo, hi)
        valid = np.isfinite(values)
        values = np.where(valid, values, 0.0)
    else:
        factor = (float(end_bin) - float(start_bin)) / px_per_line
        pos = _round_half_up(float(start_bin) + np.arange(px_per_line) * factor)
        valid = (pos >= 0) & (pos < buf.size)
        values = buf[np.where(valid, pos, 0).astype(np.int64)]

    indices = np.clip(_round_half_up(values), 0, 255).astype(np.int64)
    return np.where(valid, indices, SENTINEL_INDEX)


def render_line(
    samples,
    px_per_line: int,
    colormap: ColorMap,
    start_bin: float = 0.0,
    end_bin: Optional[float] = None,
    log_scale: bool = False,
) -> np.ndarray:
    """Render ``samples`` into a ``(px_per_line, 4)`` uint8 RGBA line."""

    indices = line_indices(samples, px_per_line, start_bin, end_bin, log_scale)
    return colormap.colorize(indices)


def highlight_line(px_per_line: int) -> np.ndarray:
    return np.tile(np.asarray(HIGHLIGHT_COLOR, dtype=np.uint8), (px_per_line, 1))


__all__ = [
    "HIGHLIGHT_COLOR",
    "LOG_BINS_PER_OCTAVE",
    "coerce_samples",
    "highlight_line",
    "line_indices",
    "log_bin_edges",
    "render_line",
]
