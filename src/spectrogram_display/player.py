"""Matplotlib spectrogram player with play/pause/stop/rewind controls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import matplotlib.pyplot as plt
import numpy as np

from .analyser import ByteAnalyser
from .audio import AudioSource
from .config import PlayerConfig
from .scheduler import MatplotlibScheduler, Scheduler
from .spectrogram import SampleBuffer, Waterfall
from .waveform import WaveformAligner

logger = logging.getLogger(__name__)

# Audio blocks pulled from a live source per redraw.
MAX_BLOCKS_PER_DRAW = 16


class SpectrogramPlayer:
    """Scrolling spectrogram of an :class:`AudioSource` in a matplotlib figure.

    The waterfall pulls lines from the analyser's byte spectrum at its own
    line rate while a ~30 ms canvas timer feeds audio into the analyser and
    redraws the image. Keys: space play/pause, ``r`` rewind, ``q`` quit.
    """

    def __init__(
        self,
        source: AudioSource,
        config: Optional[PlayerConfig] = None,
        *,
        figure=None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if config is None:
            config = PlayerConfig()
        self.config = config
        self.source = source
        self.clock = clock
        self.is_microphone = bool(config.microphone)
        self.has_rewind = bool(config.rewind) and not self.is_microphone

        self.analyser = ByteAnalyser(
            fft_size=config.fft_size,
            min_decibels=config.min_decibels,
            max_decibels=config.max_decibels,
            smoothing=config.smoothing,
        )
        self.freq_buffer = np.zeros(self.analyser.frequency_bin_count, dtype=np.uint8)
        self.time_buffer = np.zeros(self.analyser.fft_size, dtype=np.uint8)

        self.figure = figure if figure is not None else plt.figure(figsize=(10, 4))
        if scheduler is None:
            scheduler = MatplotlibScheduler(self.figure)
        self.spectrogram = Waterfall(
            SampleBuffer(self.freq_buffer),
            config.height,
            config.width,
            config.direction,
            config.render_options(),
            scheduler=scheduler,
            clock=clock,
        )

        if config.waveform:
            gs = self.figure.add_gridspec(nrows=2, ncols=1, height_ratios=[5, 1])
            self.ax_spec = self.figure.add_subplot(gs[0, 0])
            self.ax_wave = self.figure.add_subplot(gs[1, 0])
            self.aligner: Optional[WaveformAligner] = WaveformAligner(config.waveform_points)
            (self.wave_line,) = self.ax_wave.plot(
                np.zeros(config.waveform_points), color="lime", linewidth=1.5
            )
            self.ax_wave.set_facecolor("black")
            self.ax_wave.set_ylim(-1.0, 1.0)
            self.ax_wave.set_xticks([])
            self.ax_wave.set_yticks([])
        else:
            self.ax_spec = self.figure.add_subplot(1, 1, 1)
            self.ax_wave = None
            self.aligner = None
        self.ax_spec.set_xticks([])
        self.ax_spec.set_yticks([])
        self.im = self.ax_spec.imshow(
            self.spectrogram.surface.pixels,
            origin="upper",
            aspect="auto",
            interpolation="nearest",
        )

        self._started_at = 0.0
        self._paused_at = 0.0
        self._consumed = 0
        self._playing = False
        self._draw_timer = self.figure.canvas.new_timer(interval=30)
        self._draw_timer.add_callback(self.draw)
        self.figure.canvas.mpl_connect("key_press_event", self.on_key)
        self._set_title()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def playing(self) -> bool:
        return self._playing

    def position(self) -> float:
        """Seconds into the stream."""
        if self._playing:
            return self.clock() - self._started_at
        return self._paused_at

    def play(self) -> None:
        if self._playing:
            return
        offset = self._paused_at
        if offset == 0:
            self.spectrogram.clear()
        if self.source.seekable:
            self.source.seek(offset)
        self.source.start()
        self._consumed = int(round(offset * self.source.samplerate))
        self._started_at = self.clock() - offset
        self._paused_at = 0.0
        self._playing = True
        logger.info("Playing from %.2f s", offset)
        self.spectrogram.start()
        self._draw_timer.start()
        self._set_title()
        self.draw()

    def pause(self) -> None:
        if not self._playing:
            return
        elapsed = self.clock() - self._started_at
        self.stop()
        self._paused_at = elapsed

    def stop(self) -> None:
        if self._playing:
            self._draw_timer.stop()
            self.spectrogram.stop()
            self.source.stop()
            self.analyser.reset()
            self._playing = False
            logger.info("Stopped")
        self._paused_at = self._started_at = 0.0
        self._set_title()

    def play_pause(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def rewind(self) -> None:
        if self._playing:
            self.stop()
            self.play()
            return
        self._paused_at = 0.0
        self.spectrogram.clear()
        self.im.set_data(self.spectrogram.surface.pixels)
        if self.aligner is not None:
            self.aligner.reset()
            self.wave_line.set_ydata(np.zeros(self.config.waveform_points))
        self.figure.canvas.draw_idle()

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _pull_audio(self) -> None:
        due = int(self.position() * self.source.samplerate)
        for _ in range(MAX_BLOCKS_PER_DRAW):
            # synthetic sources never run dry, so pace them by the clock
            if self.source.seekable and self._consumed >= due:
                break
            chunk = self.source.read()
            if chunk.size == 0:
                break
            self.analyser.process(chunk)
            self._consumed += chunk.size

    def draw(self) -> None:
        if not self._playing:
            return
        self._pull_audio()
        self.analyser.get_byte_frequency_data(self.freq_buffer)
        self.im.set_data(self.spectrogram.surface.pixels)
        if self.aligner is not None:
            self.analyser.get_byte_time_domain_data(self.time_buffer)
            self.wave_line.set_ydata(self.aligner.align(self.time_buffer))
        self.figure.canvas.draw_idle()

    def _set_title(self) -> None:
        state = "playing" if self._playing else "stopped"
        controls = "space: play/pause" + (", r: rewind" if self.has_rewind else "")
        self.ax_spec.set_title(f"Spectrogram ({state})  |  {controls}, q: quit")

    def on_key(self, event) -> None:
        if event.key in ("q", "escape"):
            self.stop()
            plt.close(self.figure)
        elif event.key == " ":
            self.play_pause()
        elif event.key == "r" and self.has_rewind:
            self.rewind()

    def show(self) -> None:
        try:
            if self.config.autoplay:
                self.play()
            plt.show()
        finally:
            self.stop()


__all__ = ["SpectrogramPlayer"]
