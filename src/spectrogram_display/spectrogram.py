"""Scrolling waterfall and raster-scan spectrogram renderers."""

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from typing import Any, Callable, Mapping, Optional, Union

import numpy as np

from .colormap import ColorMap
from .compositor import highlight_line, render_line
from .config import RenderOptions, normalize_key
from .scheduler import DriftCorrectedTimer, InvalidRate, Scheduler, validate_line_rate
from .surface import RasterSurface

logger = logging.getLogger(__name__)

DEFAULT_LINE_RATE = 30.0


class DisplayMode(enum.Enum):
    WATERFALL = "waterfall"
    RASTERSCAN = "rasterscan"


class Orientation(enum.Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclasses.dataclass(frozen=True)
class ScrollGeometry:
    """Where lines go: along rows (vertical) or columns, and which end is the head.

    ``reverse_head`` puts the newest waterfall line at index 0.
    """

    orientation: Orientation
    reverse_head: bool

    @property
    def vertical(self) -> bool:
        return self.orientation is Orientation.VERTICAL

    @property
    def advances_forward(self) -> bool:
        """Raster scans step ``next_line`` by +1 when true, -1 otherwise."""
        return self.vertical != self.reverse_head


_V, _H = Orientation.VERTICAL, Orientation.HORIZONTAL

# The waterfall and raster-scan tables intentionally disagree for up/down.
_DIRECTIONS = {
    DisplayMode.WATERFALL: {
        "up": ScrollGeometry(_V, False),
        "down": ScrollGeometry(_V, True),
        "left": ScrollGeometry(_H, False),
        "right": ScrollGeometry(_H, True),
    },
    DisplayMode.RASTERSCAN: {
        "up": ScrollGeometry(_V, True),
        "down": ScrollGeometry(_V, False),
        "left": ScrollGeometry(_H, False),
        "right": ScrollGeometry(_H, True),
    },
}


def resolve_direction(mode: DisplayMode, direction: Any = "down") -> ScrollGeometry:
    """Map ``up``/``down``/``left``/``right`` (any case) to a geometry.

    Anything else, including non-strings, is treated as ``down``.
    """

    table = _DIRECTIONS[DisplayMode(mode)]
    key = direction.lower() if isinstance(direction, str) else "down"
    return table.get(key, table["down"])


@dataclasses.dataclass(frozen=True)
class RenderConfig:
    px_per_line: int = 200
    lines: int = 200
    mode: DisplayMode = DisplayMode.WATERFALL
    geometry: ScrollGeometry = ScrollGeometry(Orientation.VERTICAL, True)
    line_rate: float = DEFAULT_LINE_RATE

    def __post_init__(self) -> None:
        if int(self.px_per_line) <= 0 or int(self.lines) <= 0:
            raise ValueError(
                f"px_per_line and lines must be positive, got "
                f"{self.px_per_line} and {self.lines}"
            )

    @property
    def surface_size(self) -> tuple[int, int]:
        """``(width, height)`` of the pixel surface."""
        if self.geometry.vertical:
            return self.px_per_line, self.lines
        return self.lines, self.px_per_line


@dataclasses.dataclass
class SampleBuffer:
    """Minimal sample source: whatever ``buffer`` holds when a line is drawn."""

    buffer: Any = None


OptionsLike = Union[RenderOptions, Mapping[str, Any], None]


class Spectrogram:
    """Render lines from ``source.buffer`` into a scrolling RGBA surface.

    In waterfall mode every new line pushes the existing lines one step
    toward the tail. In raster-scan mode lines overwrite the surface at an
    advancing, wrapping position with a white marker ahead of the newest line
    while the display is dynamic (line rate > 0).
    """

    def __init__(
        self,
        source: Any,
        config: RenderConfig,
        options: OptionsLike = None,
        *,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.config = config
        self.surface = RasterSurface(*config.surface_size)
        self.colormap = ColorMap.default()
        self.line_rate = DEFAULT_LINE_RATE
        self._interval_ms = 1000.0 / DEFAULT_LINE_RATE
        self.start_bin = 0.0
        buffer = getattr(source, "buffer", None)
        self.end_bin = float(len(buffer)) if buffer is not None else float(config.px_per_line)
        self.log_scale = False
        self.next_line = 0

        self._timer = DriftCorrectedTimer(self.new_line, scheduler, clock)
        self._highlight = highlight_line(config.px_per_line)
        if config.geometry.vertical:
            self._draw_line = self._vertical_new_line
        else:
            self._draw_line = self._horizontal_new_line

        self.set_line_rate(config.line_rate)
        self.apply_options(options)
        self.stop()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    @property
    def mode(self) -> DisplayMode:
        return self.config.mode

    @property
    def geometry(self) -> ScrollGeometry:
        return self.config.geometry

    @property
    def lines(self) -> int:
        return self.config.lines

    @property
    def px_per_line(self) -> int:
        return self.config.px_per_line

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def running(self) -> bool:
        return self._timer.running

    def apply_options(self, options: OptionsLike) -> None:
        if options is None:
            return
        if not isinstance(options, RenderOptions):
            options = RenderOptions.from_dict(options)
        if options.line_rate is not None:
            self.set_line_rate(options.line_rate)
        if options.start_bin is not None:
            self.start_bin = options.start_bin
        if options.end_bin is not None:
            self.end_bin = options.end_bin
        if options.log_scale is not None:
            self.log_scale = options.log_scale
        if options.color_map is not None:
            self.colormap = options.color_map

    def set_option(self, name: str, value: Any) -> None:
        """Set one option by name; invalid or unknown options are ignored."""
        self.apply_options({name: value})

    def set_line_rate(self, rate: Any) -> bool:
        """Set lines/sec; 0 makes the display static. Returns False if rejected."""

        try:
            value = validate_line_rate(rate)
        except InvalidRate as exc:
            logger.error("%s", exc)
            return False
        self.line_rate = value
        if value > 0:
            self._interval_ms = 1000.0 / value
            self._timer.interval_ms = self._interval_ms
        return True

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self.surface.fill(self.colormap.background)
        self.surface.present()

    def start(self) -> None:
        """Start pulling lines at the line rate (a single line if static)."""

        if self.line_rate == 0:
            self.new_line()
            return
        logger.debug(
            "Starting %s display at %.1f lines/sec", self.mode.value, self.line_rate
        )
        self._timer.start(self._interval_ms)

    def stop(self) -> None:
        """Halt updates and reset ``next_line`` to the starting edge."""

        self._timer.stop()
        self.next_line = self._initial_line()

    def new_line(self) -> None:
        """Render ``source.buffer`` as the newest line."""

        self._draw_line(self.source.buffer)
        self.surface.present()

    def render(self, samples) -> np.ndarray:
        return render_line(
            samples,
            self.px_per_line,
            self.colormap,
            self.start_bin,
            self.end_bin,
            self.log_scale,
        )

    def _initial_line(self) -> int:
        last = self.lines - 1
        reverse = self.geometry.reverse_head
        if self.mode is DisplayMode.RASTERSCAN:
            if self.geometry.vertical:
                return last if reverse else 0
            return 0 if reverse else last
        return 0 if reverse else last

    def _advance(self) -> None:
        step = 1 if self.geometry.advances_forward else -1
        self.next_line = (self.next_line + step) % self.lines

    def _vertical_new_line(self, samples) -> None:
        px, lines = self.px_per_line, self.lines
        surface = self.surface
        if self.mode is DisplayMode.WATERFALL and lines > 1:
            if self.geometry.reverse_head:
                # shift down one row, oldest line drops off the bottom
                surface.put_region(surface.get_region(0, 0, px, lines - 1), 0, 1)
            else:
                surface.put_region(surface.get_region(0, 1, px, lines - 1), 0, 0)

        surface.put_region(self.render(samples)[np.newaxis], 0, self.next_line)
        if self.mode is DisplayMode.RASTERSCAN:
            self._advance()
            if self.line_rate:
                surface.put_region(self._highlight[np.newaxis], 0, self.next_line)

    def _horizontal_new_line(self, samples) -> None:
        # Lines are surface columns, so the whole page is read and written back.
        px, lines = self.px_per_line, self.lines
        surface = self.surface
        if self.mode is DisplayMode.WATERFALL and lines > 1:
            if self.geometry.reverse_head:
                surface.put_region(surface.get_region(0, 0, lines - 1, px), 1, 0)
            else:
                surface.put_region(surface.get_region(1, 0, lines - 1, px), 0, 0)

        page = surface.get_region(0, 0, lines, px)
        # first bin at the bottom row
        page[:, self.next_line] = self.render(samples)[::-1]
        if self.mode is DisplayMode.RASTERSCAN:
            self._advance()
            if self.line_rate:
                page[:, self.next_line] = self._highlight
        surface.put_region(page, 0, 0)


class Waterfall(Spectrogram):
    def __init__(
        self,
        source: Any,
        px_per_line: int = 200,
        lines: int = 200,
        direction: Any = "down",
        options: OptionsLike = None,
        **kwargs: Any,
    ) -> None:
        config = RenderConfig(
            px_per_line=px_per_line,
            lines=lines,
            mode=DisplayMode.WATERFALL,
            geometry=resolve_direction(DisplayMode.WATERFALL, direction),
        )
        super().__init__(source, config, options, **kwargs)


class Rasterscan(Spectrogram):
    def __init__(
        self,
        source: Any,
        px_per_line: int = 200,
        lines: int = 200,
        direction: Any = "down",
        options: OptionsLike = None,
        **kwargs: Any,
    ) -> None:
        config = RenderConfig(
            px_per_line=px_per_line,
            lines=lines,
            mode=DisplayMode.RASTERSCAN,
            geometry=resolve_direction(DisplayMode.RASTERSCAN, direction),
        )
        super().__init__(source, config, options, **kwargs)


_IMAGE_DIRECTIONS = ("up", "down", "left")


def raster_image(data, options: Optional[Mapping[str, Any]] = None) -> np.ndarray:
    """Render a 2-D array of color indices row by row as a static image.

    ``data[r]`` becomes line ``r``. The ``dir``/``direction`` option picks
    ``up``, ``down`` (default) or ``left``. Returns the RGBA pixel array.
    """

    arr = np.asarray(data)
    if arr.ndim != 2:
        raise ValueError(f"raster image data must be 2-D, got shape {arr.shape}")
    rows, cols = arr.shape

    opts = dict(options or {})
    direction = "down"
    for key in ("dir", "direction"):
        value = opts.get(key)
        if isinstance(value, str):
            if value.lower() in _IMAGE_DIRECTIONS:
                direction = value.lower()
            break
    opts = {k: v for k, v in opts.items() if normalize_key(str(k)) != "linerate"}
    opts["lineRate"] = 0

    holder = SampleBuffer(arr[0])
    raster = Rasterscan(holder, cols, rows, direction, opts)
    for row in arr:
        holder.buffer = row
        raster.new_line()
    return np.array(raster.surface.pixels)


__all__ = [
    "DisplayMode",
    "Orientation",
    "RenderConfig",
    "Rasterscan",
    "SampleBuffer",
    "ScrollGeometry",
    "Spectrogram",
    "Waterfall",
    "raster_image",
    "resolve_direction",
]
