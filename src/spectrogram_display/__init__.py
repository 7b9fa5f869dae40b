"""Scrolling spectrogram rendering, Fourier helpers and a matplotlib player."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ByteAnalyser",
    "ColorMap",
    "InvalidColorMap",
    "InvalidRate",
    "JET_COLORS",
    "RasterSurface",
    "RenderConfig",
    "RenderOptions",
    "Rasterscan",
    "SampleBuffer",
    "Spectrogram",
    "SpectrogramPlayer",
    "SpectrumSample",
    "Waterfall",
    "WaveformAligner",
    "direct_transform",
    "fft_transform",
    "magnitudes",
    "raster_image",
    "render_line",
    "main",
]

_EXPORT_MAP = {
    "ByteAnalyser": ("spectrogram_display.analyser", "ByteAnalyser"),
    "ColorMap": ("spectrogram_display.colormap", "ColorMap"),
    "InvalidColorMap": ("spectrogram_display.colormap", "InvalidColorMap"),
    "JET_COLORS": ("spectrogram_display.colormap", "JET_COLORS"),
    "InvalidRate": ("spectrogram_display.scheduler", "InvalidRate"),
    "RasterSurface": ("spectrogram_display.surface", "RasterSurface"),
    "RenderConfig": ("spectrogram_display.spectrogram", "RenderConfig"),
    "RenderOptions": ("spectrogram_display.config", "RenderOptions"),
    "Rasterscan": ("spectrogram_display.spectrogram", "Rasterscan"),
    "SampleBuffer": ("spectrogram_display.spectrogram", "SampleBuffer"),
    "Spectrogram": ("spectrogram_display.spectrogram", "Spectrogram"),
    "SpectrogramPlayer": ("spectrogram_display.player", "SpectrogramPlayer"),
    "SpectrumSample": ("spectrogram_display.fourier", "SpectrumSample"),
    "Waterfall": ("spectrogram_display.spectrogram", "Waterfall"),
    "WaveformAligner": ("spectrogram_display.waveform", "WaveformAligner"),
    "direct_transform": ("spectrogram_display.fourier", "direct_transform"),
    "fft_transform": ("spectrogram_display.fourier", "fft_transform"),
    "magnitudes": ("spectrogram_display.fourier", "magnitudes"),
    "raster_image": ("spectrogram_display.spectrogram", "raster_image"),
    "render_line": ("spectrogram_display.compositor", "render_line"),
    "main": ("spectrogram_display.cli", "main"),
}


if TYPE_CHECKING:  # pragma: no cover - only for type checkers
    from spectrogram_display.analyser import ByteAnalyser
    from spectrogram_display.cli import main
    from spectrogram_display.colormap import JET_COLORS, ColorMap, InvalidColorMap
    from spectrogram_display.compositor import render_line
    from spectrogram_display.config import RenderOptions
    from spectrogram_display.fourier import (
        SpectrumSample,
        direct_transform,
        fft_transform,
        magnitudes,
    )
    from spectrogram_display.player import SpectrogramPlayer
    from spectrogram_display.scheduler import InvalidRate
    from spectrogram_display.spectrogram import (
        Rasterscan,
        RenderConfig,
        SampleBuffer,
        Spectrogram,
        Waterfall,
        raster_image,
    )
    from spectrogram_display.surface import RasterSurface
    from spectrogram_display.waveform import WaveformAligner


def __getattr__(name: str) -> Any:
    """Lazily import heavy submodules (matplotlib, scipy) on demand."""

    if name in _EXPORT_MAP:
        module_name, attribute = _EXPORT_MAP[name]
        module = import_module(module_name)
        value = getattr(module, attribute)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(set(__all__))
