"""Byte-valued spectra and waveforms for feeding the spectrogram renderers."""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.signal import windows

from .utils import dbfs


class ByteAnalyser:
    """Turn a rolling audio window into 0..255 frequency and time-domain bytes.

    Mirrors a browser ``AnalyserNode``: Blackman window, magnitudes scaled by
    ``1/fft_size``, exponential smoothing between frames, then decibels mapped
    linearly from ``[min_decibels, max_decibels]`` onto 0..255.
    """

    def __init__(
        self,
        fft_size: int = 8192,
        min_decibels: float = -70.0,
        max_decibels: float = -30.0,
        smoothing: float = 0.2,
    ) -> None:
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        if max_decibels <= min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        self.fft_size = int(fft_size)
        self.min_decibels = float(min_decibels)
        self.max_decibels = float(max_decibels)
        self.smoothing = float(smoothing)
        self.window = windows.blackman(self.fft_size, sym=False)
        self._samples = np.zeros(self.fft_size, dtype=np.float32)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        self._samples[:] = 0.0
        self._smoothed[:] = 0.0

    def process(self, samples) -> None:
        """Append ``samples`` to the rolling window and update the smoothed spectrum."""

        samples = np.asarray(samples, dtype=np.float32).ravel()
        if samples.size == 0:
            return
        if samples.size >= self.fft_size:
            self._samples[:] = samples[-self.fft_size :]
        else:
            self._samples = np.roll(self._samples, -samples.size)
            self._samples[-samples.size :] = samples

        spectrum = np.fft.rfft(self._samples * self.window)[: self.frequency_bin_count]
        mag = np.abs(spectrum) / self.fft_size
        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * mag

    def frequency_db(self) -> np.ndarray:
        return dbfs(self._smoothed)

    def get_byte_frequency_data(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Write the scaled spectrum into ``out`` (allocated if None) and return it."""

        span = self.max_decibels - self.min_decibels
        scaled = 255.0 * (self.frequency_db() - self.min_decibels) / span
        data = np.clip(np.floor(scaled), 0, 255).astype(np.uint8)
        if out is None:
            return data
        count = min(out.size, data.size)
        out[:count] = data[:count]
        return out

    def get_byte_time_domain_data(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        data = np.clip(np.floor(128.0 * (1.0 + self._samples)), 0, 255).astype(np.uint8)
        if out is None:
            return data
        count = min(out.size, data.size)
        out[:count] = data[-count:]
        return out


__all__ = ["ByteAnalyser"]
