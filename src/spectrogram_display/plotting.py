"""Matplotlib helpers for waveform, winding and Fourier views."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from matplotlib.axes import Axes
from matplotlib.patches import Circle, Rectangle

from .fourier import DisplaySpectrum, display_spectrum

GRID_COLOR = "lightgray"
BACKGROUND = "black"
TRACE_COLOR = "lime"

# Reference pitches (Hz) and their note names for the kHz-range Fourier grid.
NOTE_FREQUENCIES = (
    55.0, 110.0,
    164.8138, 220.0,
    261.6256, 329.6276, 391.9954, 440.0,
    523.2511, 587.3295, 659.2551, 698.4565, 783.9909, 880.0, 932.3275, 987.7666,
    1046.502, 1108.731, 1174.659, 1244.508, 1318.510, 1396.913, 1479.978,
    1567.982, 1661.219, 1760.0, 1864.655, 1975.533,
    2093.005,
)
NOTE_LABELS = (
    "A", "A",
    "E", "A",
    "C", "E", "G", "A",
    "C", "D", "E", "F", "G", "A", "B♭", "B",
    "C", "C♯", "D", "E♭", "E", "F", "F♯", "G", "A♭", "A", "B♭", "B",
    "C",
)
MIDDLE_C = 261.6256


def clear_axes(ax: Axes, style: str = BACKGROUND) -> None:
    ax.cla()
    ax.set_facecolor(style)
    ax.set_xticks([])
    ax.set_yticks([])


def draw_grid(
    ax: Axes, positions: Sequence[float], labels: Optional[Sequence[str]] = None
) -> None:
    """Dashed verticals at ``positions`` (data units) plus a centre line."""

    style = dict(color=GRID_COLOR, linewidth=1, linestyle=(0, (8, 4)))
    for i, x in enumerate(positions):
        ax.axvline(x, **style)
        if labels and i < len(labels) and labels[i]:
            ax.annotate(
                labels[i],
                xy=(x, 0.0),
                xycoords=("data", "axes fraction"),
                xytext=(-4, 3),
                textcoords="offset points",
                ha="right",
                va="bottom",
                color=GRID_COLOR,
                fontsize="x-small",
            )
    ax.axhline(0.0, **style)


def curve_scale(data, scale="auto") -> float:
    if scale != "auto":
        return float(scale)
    data = np.asarray(data, dtype=np.float64)
    peak = max(float(np.max(data, initial=0.0)), abs(float(np.min(data, initial=0.0))))
    return 0.95 / peak if peak > 0 else 1.0


def draw_curve(ax: Axes, data, x=None, stride: int = 1, scale="auto", **style):
    """Plot every ``stride``-th value of ``data`` scaled into -1..1."""

    data = np.asarray(data, dtype=np.float64)[::stride]
    if x is None:
        x = np.arange(data.size) * stride
    (line,) = ax.plot(x, data * curve_scale(data, scale), **style)
    ax.set_ylim(-1.0, 1.0)
    return line


def draw_waveform(
    ax: Axes, data, secs: float, total_seconds: Optional[float] = None
) -> None:
    """Waveform of ``data`` (covering ``secs``) with a grid line every second.

    When ``total_seconds`` is longer than ``secs`` the axis spans the full
    duration and the data only fills its start.
    """

    total = secs if total_seconds is None else total_seconds
    data = np.asarray(data, dtype=np.float64)
    clear_axes(ax)
    seconds = np.arange(int(np.floor(total)) + 1)
    draw_grid(ax, seconds, [f"{s} sec" for s in seconds])
    x = np.linspace(0.0, secs, data.size, endpoint=False)
    draw_curve(ax, data, x=x, color=TRACE_COLOR, linewidth=2)
    ax.set_xlim(0.0, total)


def winding_center(data, cycles: float) -> Tuple[float, float]:
    """Centre of mass of ``data`` wound around the unit circle.

    Sample ``i`` sits at angle ``-i * 2*pi/cycles`` with radius ``data[i]``.
    """

    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        return 0.0, 0.0
    angle = np.arange(data.size) * (2.0 * np.pi / cycles)
    return float(np.mean(data * np.cos(angle))), float(np.mean(-data * np.sin(angle)))


def draw_winding(ax: Axes, data, cycles: float, amp_scale: float = 1.0) -> Tuple[float, float]:
    data = np.asarray(data, dtype=np.float64)
    clear_axes(ax)
    ax.set_aspect("equal")
    ax.set_xlim(-1.0, 1.0)
    ax.set_ylim(-1.0, 1.0)
    style = dict(color=GRID_COLOR, linewidth=1, linestyle=(0, (8, 4)))
    ax.axhline(0.0, **style)
    ax.axvline(0.0, **style)

    angle = np.arange(data.size) * (2.0 * np.pi / cycles)
    ax.plot(data * np.cos(angle), -data * np.sin(angle), color=TRACE_COLOR, linewidth=2)

    cx, cy = winding_center(data, cycles)
    ax.add_patch(Circle((cx, cy), 0.03, color="red"))
    ax.text(
        0.98,
        0.02,
        f"{cx * amp_scale:.2f}, {cy * amp_scale:.2f}",
        transform=ax.transAxes,
        ha="right",
        va="bottom",
        color="white",
        fontweight="bold",
    )
    return cx, cy


def frequency_grid(max_freq: float) -> Tuple[list, list]:
    """Grid positions and labels for a Fourier plot up to ``max_freq`` Hz."""

    if max_freq > 1000:
        return list(NOTE_FREQUENCIES), list(NOTE_LABELS)
    step = max(1, int(10 ** np.floor(np.log10(max(max_freq, 2.0) / 2.0))))
    freqs = list(range(0, int(max_freq) + 1, step))
    return freqs, [f"{f} Hz" for f in freqs]


def draw_fourier(
    ax: Axes,
    data,
    seconds: float,
    max_freq: Optional[float] = None,
    width: int = 512,
    transform: str = "direct",
) -> DisplaySpectrum:
    """Real, imaginary and magnitude spectrum of ``data`` up to ``max_freq``.

    ``max_freq`` defaults to the Nyquist frequency of ``data``.
    """

    data = np.asarray(data, dtype=np.float64)
    if max_freq is None:
        max_freq = data.size / (2.0 * seconds)
    spectrum = display_spectrum(data, seconds, max_freq, width, transform)
    scale = 1.0 / spectrum.scale_max if spectrum.scale_max > 0 else 1.0

    clear_axes(ax)
    positions, labels = frequency_grid(max_freq)
    if max_freq > 1000:
        ax.add_patch(
            Rectangle(
                (MIDDLE_C - 0.015 * max_freq, -1.0),
                0.015 * max_freq,
                0.1,
                color="#440000",
            )
        )
    draw_grid(ax, positions, labels)

    freqs = spectrum.frequencies
    draw_curve(ax, spectrum.reals, x=freqs, scale=scale, color="#FF8888", linewidth=2)
    draw_curve(ax, spectrum.imags, x=freqs, scale=scale, color="#8888FF", linewidth=2)
    draw_curve(ax, spectrum.magnitudes, x=freqs, scale=scale, color="white", linewidth=2)
    ax.set_xlim(0.0, max_freq)
    return spectrum


__all__ = [
    "NOTE_FREQUENCIES",
    "NOTE_LABELS",
    "clear_axes",
    "curve_scale",
    "draw_curve",
    "draw_fourier",
    "draw_grid",
    "draw_waveform",
    "draw_winding",
    "frequency_grid",
    "winding_center",
]
