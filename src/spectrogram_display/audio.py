"""Audio sources that feed the spectrogram player."""
from __future__ import annotations

import logging
import queue
import threading
from typing import Optional, Sequence

import numpy as np

try:  # Optional dependency
    import sounddevice as sd
except Exception:  # pragma: no cover - optional dependency may be absent in CI
    sd = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class AudioSource:
    """Abstract audio stream interface.

    ``read`` returns the next block of mono float32 samples, or an empty
    array when nothing is pending.
    """

    samplerate: int
    seekable = False

    def start(self) -> None:  # pragma: no cover - interface method
        raise NotImplementedError

    def read(self) -> np.ndarray:  # pragma: no cover - interface method
        raise NotImplementedError

    def stop(self) -> None:  # pragma: no cover - interface method
        raise NotImplementedError

    def seek(self, seconds: float) -> None:
        raise NotImplementedError(f"{type(self).__name__} cannot seek")


class MicSource(AudioSource):
    """Audio source backed by the default system microphone."""

    def __init__(self, samplerate: int, hop: int, device: Optional[str] = None) -> None:
        if sd is None:
            raise RuntimeError("sounddevice is not available. Install it or use --demo.")

        self.samplerate = samplerate
        self.hop = hop
        self.device = device
        self.q: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=64)
        self.stream = None

    def _callback(self, indata, frames, time_info, status):  # pragma: no cover - sounddevice callback
        if status:
            logger.debug("Input stream status: %s", status)
        if indata.ndim == 2 and indata.shape[1] > 1:
            mono = indata.mean(axis=1).copy()
        else:
            mono = indata[:, 0].copy() if indata.ndim == 2 else indata.copy()
        try:
            self.q.put_nowait(mono)
        except queue.Full:
            logger.debug("Dropping %d input frames, reader is behind", frames)

    def start(self) -> None:
        if sd is None:  # pragma: no cover - checked in __init__
            raise RuntimeError("sounddevice is not available.")
        self.stream = sd.InputStream(
            channels=1,
            samplerate=self.samplerate,
            blocksize=self.hop,
            device=self.device,
            callback=self._callback,
            dtype="float32",
        )
        self.stream.start()

    def read(self) -> np.ndarray:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return np.array([], dtype=np.float32)

    def stop(self) -> None:
        if self.stream is not None:
            try:  # pragma: no cover - depends on audio backend
                self.stream.stop()
                self.stream.close()
            except Exception:  # noqa: BLE001
                logger.warning("Could not close the input stream", exc_info=True)
            self.stream = None
        while not self.q.empty():
            self.q.get_nowait()


class _SyntheticSource(AudioSource):
    """Generates one ``hop`` block of samples per read."""

    seekable = True

    def __init__(self, samplerate: int, hop: int) -> None:
        self.samplerate = samplerate
        self.hop = hop
        self.t = 0
        self._lock = threading.Lock()

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def seek(self, seconds: float) -> None:
        with self._lock:
            self.t = max(0, int(round(seconds * self.samplerate)))

    def _generate(self, t: np.ndarray) -> np.ndarray:  # pragma: no cover - interface method
        raise NotImplementedError

    def read(self) -> np.ndarray:
        with self._lock:
            n = self.hop
            t = (self.t + np.arange(n)) / self.samplerate
            self.t += n
        return self._generate(t).astype(np.float32)


class DemoSource(_SyntheticSource):
    """Synthetic chirp plus tones, used when no microphone is available."""

    def _generate(self, t: np.ndarray) -> np.ndarray:
        chirp = np.sin(2 * np.pi * (100 + (t * 0.5e3)) * t) * 0.4
        tone1 = 0.25 * np.sin(2 * np.pi * 440 * t)
        tone2 = 0.2 * np.sin(2 * np.pi * 880 * t + 0.3)
        noise = 0.02 * np.random.randn(t.size)
        return np.tanh(1.5 * (chirp + tone1 + tone2 + noise))


class CosineSource(_SyntheticSource):
    """Steady sum of cosines at ``freqs`` Hz weighted by ``amps``."""

    def __init__(
        self,
        samplerate: int,
        hop: int,
        freqs: Sequence[float],
        amps: Optional[Sequence[float]] = None,
    ) -> None:
        super().__init__(samplerate, hop)
        self.freqs = list(freqs)
        self.amps = list(amps) if amps is not None else [1.0] * len(self.freqs)

    def _generate(self, t: np.ndarray) -> np.ndarray:
        weights = np.asarray(self.amps, dtype=np.float64) / float(np.sum(self.amps))
        phases = 2 * np.pi * np.outer(self.freqs, t)
        return weights @ np.cos(phases)


__all__ = ["AudioSource", "CosineSource", "DemoSource", "MicSource", "sd"]
