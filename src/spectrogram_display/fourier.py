"""Discrete Fourier transforms evaluated at caller-chosen frequencies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Tuple

import numpy as np
import scipy.fft

Spectrum = Tuple[np.ndarray, np.ndarray]
Transform = Callable[[np.ndarray, float, np.ndarray], Spectrum]


@dataclass(frozen=True)
class SpectrumSample:
    frequency: float
    real: float
    imag: float

    @property
    def magnitude(self) -> float:
        return float(np.hypot(self.real, self.imag))

    @staticmethod
    def from_arrays(frequencies, reals, imags) -> List["SpectrumSample"]:
        return [
            SpectrumSample(float(f), float(r), float(i))
            for f, r, i in zip(frequencies, reals, imags)
        ]


def direct_transform(samples, duration_seconds: float, target_frequencies) -> Spectrum:
    """Direct-summation DFT of ``samples`` at each frequency in Hz.

    ``samples`` are assumed to span ``duration_seconds``. For frequency ``f``
    the angular step per sample is ``2*pi*f*duration/len(samples)`` and::

        real = sum(s[i] * cos(i * w))
        imag = -sum(s[i] * sin(i * w))

    Cost is ``O(len(samples) * len(target_frequencies))``.
    """

    data = np.asarray(samples, dtype=np.float64).ravel()
    freqs = np.asarray(target_frequencies, dtype=np.float64).ravel()
    n = data.size
    if n == 0:
        return np.zeros(freqs.size), np.zeros(freqs.size)

    omega = 2.0 * np.pi * freqs * float(duration_seconds) / n
    phase = np.outer(omega, np.arange(n, dtype=np.float64))
    reals = np.cos(phase) @ data
    imags = -(np.sin(phase) @ data)
    return reals, imags


def fft_transform(samples, duration_seconds: float, target_frequencies) -> Spectrum:
    """Same contract as :func:`direct_transform`, backed by ``scipy.fft``.

    Results are taken from the nearest FFT bin (``round(f * duration)``), so
    they are exact only for frequencies completing a whole number of cycles
    over the buffer. Frequencies above Nyquist come back as zero.
    """

    data = np.asarray(samples, dtype=np.float64).ravel()
    freqs = np.asarray(target_frequencies, dtype=np.float64).ravel()
    if data.size == 0:
        return np.zeros(freqs.size), np.zeros(freqs.size)
    if data.size % 2:
        data = np.append(data, 0.0)

    spectrum = scipy.fft.rfft(data)
    # Padding stretched the buffer, so bins are spaced 1/padded_duration.
    padded_duration = float(duration_seconds) * data.size / np.asarray(samples).size
    bins = np.rint(freqs * padded_duration).astype(np.int64)
    valid = (bins >= 0) & (bins < spectrum.size)
    picked = np.where(valid, spectrum[np.clip(bins, 0, spectrum.size - 1)], 0.0)
    return picked.real.copy(), picked.imag.copy()


_TRANSFORMS: Dict[str, Transform] = {
    "direct": direct_transform,
    "fft": fft_transform,
}


def get_transform(name: str = "direct") -> Transform:
    try:
        return _TRANSFORMS[name.lower()]
    except KeyError:
        raise ValueError(
            f"unknown transform {name!r}; choose from {sorted(_TRANSFORMS)}"
        ) from None


def magnitudes(reals, imags) -> np.ndarray:
    return np.sqrt(np.square(reals) + np.square(imags))


def linear_frequencies(max_freq: float, count: int) -> np.ndarray:
    """``count`` frequencies from 0 (inclusive) to ``max_freq`` (exclusive)."""
    return np.arange(count, dtype=np.float64) * (float(max_freq) / count)


def log2_frequencies(min_freq: float, max_freq: float, count: int) -> np.ndarray:
    """``count`` frequencies evenly spaced in octaves from min to max."""
    if min_freq <= 0:
        raise ValueError("log-spaced frequencies need min_freq > 0")
    return np.logspace(np.log2(min_freq), np.log2(max_freq), count, base=2.0)


@dataclass
class DisplaySpectrum:
    frequencies: np.ndarray
    reals: np.ndarray
    imags: np.ndarray
    magnitudes: np.ndarray
    scale_max: float

    def __iter__(self) -> Iterator[SpectrumSample]:
        return iter(SpectrumSample.from_arrays(self.frequencies, self.reals, self.imags))


def display_spectrum(
    data,
    seconds: float,
    max_freq: float,
    width: int,
    transform: str = "direct",
) -> DisplaySpectrum:
    """Spectrum of ``data`` at ``width`` frequencies below ``max_freq`` for plotting.

    The DC term is zeroed and ``scale_max`` leaves 5% headroom above the
    largest magnitude.
    """

    freqs = linear_frequencies(max_freq, width)
    reals, imags = get_transform(transform)(data, seconds, freqs)
    reals = np.array(reals, dtype=np.float64)
    imags = np.array(imags, dtype=np.float64)
    if reals.size:
        reals[0] = 0.0
        imags[0] = 0.0
    mags = magnitudes(reals, imags)
    peak = float(mags.max()) if mags.size else 0.0
    return DisplaySpectrum(freqs, reals, imags, mags, peak * 1.05)


__all__ = [
    "DisplaySpectrum",
    "SpectrumSample",
    "direct_transform",
    "display_spectrum",
    "fft_transform",
    "get_transform",
    "linear_frequencies",
    "log2_frequencies",
    "magnitudes",
]
