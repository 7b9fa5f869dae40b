from pathlib import Path
import logging
import sys

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from spectrogram_display.colormap import TRANSPARENT, ColorMap
from spectrogram_display.compositor import HIGHLIGHT_COLOR
from spectrogram_display.config import RenderOptions
from spectrogram_display.spectrogram import (
    DisplayMode,
    Orientation,
    Rasterscan,
    RenderConfig,
    SampleBuffer,
    ScrollGeometry,
    Spectrogram,
    Waterfall,
    raster_image,
    resolve_direction,
)

V, H = Orientation.VERTICAL, Orientation.HORIZONTAL
PX = 8
LINES = 5
CMAP = ColorMap.default()


def _line_at(pixels: np.ndarray, vertical: bool, index: int) -> np.ndarray:
    return pixels[index] if vertical else pixels[:, index]


def _color_of(pixels: np.ndarray, vertical: bool, index: int) -> tuple:
    line = _line_at(pixels, vertical, index)
    assert (line == line[0]).all(), "line is not uniform"
    return tuple(int(c) for c in line[0])


def _feed(display: Spectrogram, source: SampleBuffer, values) -> None:
    for value in values:
        source.buffer = np.full(PX, value)
        display.new_line()


@pytest.mark.parametrize(
    "mode, direction, geometry",
    [
        (DisplayMode.WATERFALL, "up", ScrollGeometry(V, False)),
        (DisplayMode.WATERFALL, "down", ScrollGeometry(V, True)),
        (DisplayMode.WATERFALL, "left", ScrollGeometry(H, False)),
        (DisplayMode.WATERFALL, "right", ScrollGeometry(H, True)),
        (DisplayMode.RASTERSCAN, "up", ScrollGeometry(V, True)),
        (DisplayMode.RASTERSCAN, "down", ScrollGeometry(V, False)),
        (DisplayMode.RASTERSCAN, "left", ScrollGeometry(H, False)),
        (DisplayMode.RASTERSCAN, "right", ScrollGeometry(H, True)),
    ],
)
def test_direction_tables(mode, direction, geometry):
    assert resolve_direction(mode, direction) == geometry
    assert resolve_direction(mode, direction.upper()) == geometry


@pytest.mark.parametrize("direction", ["sideways", "", None, 3])
def test_unknown_direction_means_down(direction):
    for mode in DisplayMode:
        assert resolve_direction(mode, direction) == resolve_direction(mode, "down")


@pytest.mark.parametrize("cls", [Waterfall, Rasterscan])
@pytest.mark.parametrize(
    "direction, size", [("up", (PX, LINES)), ("down", (PX, LINES)),
                        ("left", (LINES, PX)), ("right", (LINES, PX))]
)
def test_surface_size_follows_orientation(cls, direction, size):
    display = cls(SampleBuffer(np.zeros(PX)), PX, LINES, direction)
    assert (display.surface.width, display.surface.height) == size
    assert display.surface.pixels.shape == (size[1], size[0], 4)
    # nothing drawn yet
    assert (display.surface.pixels == 0).all()


@pytest.mark.parametrize(
    "cls, direction, expected",
    [
        (Waterfall, "down", 0),
        (Waterfall, "up", LINES - 1),
        (Waterfall, "left", LINES - 1),
        (Waterfall, "right", 0),
        (Rasterscan, "down", 0),
        (Rasterscan, "up", LINES - 1),
        (Rasterscan, "left", LINES - 1),
        (Rasterscan, "right", 0),
    ],
)
def test_initial_next_line(cls, direction, expected):
    display = cls(SampleBuffer(np.zeros(PX)), PX, LINES, direction)
    assert display.next_line == expected


def test_render_config_rejects_empty_surface():
    with pytest.raises(ValueError):
        RenderConfig(px_per_line=0, lines=10)
    with pytest.raises(ValueError):
        Waterfall(SampleBuffer(np.zeros(4)), 4, 0)


@pytest.mark.parametrize("direction", ["up", "down", "left", "right"])
def test_rasterscan_wraps_back_to_start(direction):
    source = SampleBuffer(np.zeros(PX))
    display = Rasterscan(source, PX, LINES, direction)
    start = display.next_line
    seen = []
    for _ in range(LINES):
        seen.append(display.next_line)
        display.new_line()
    assert display.next_line == start
    assert sorted(seen) == list(range(LINES))


@pytest.mark.parametrize(
    "direction, newest, step",
    [("down", 0, 1), ("up", LINES - 1, -1), ("right", 0, 1), ("left", LINES - 1, -1)],
)
def test_waterfall_keeps_latest_lines_in_order(direction, newest, step):
    source = SampleBuffer(np.zeros(PX))
    display = Waterfall(source, PX, LINES, direction)
    vertical = display.geometry.vertical
    values = [10 * (k + 1) for k in range(LINES + 3)]
    _feed(display, source, values)

    pixels = display.surface.pixels
    recent = values[::-1][:LINES]
    for age, value in enumerate(recent):
        assert _color_of(pixels, vertical, newest + step * age) == CMAP.lookup(value)
    assert display.next_line == newest


def test_waterfall_down_pushes_existing_lines():
    source = SampleBuffer(np.zeros(PX))
    display = Waterfall(source, PX, LINES, "down")
    _feed(display, source, [40])
    pixels = display.surface.pixels
    assert _color_of(pixels, True, 0) == CMAP.lookup(40)
    assert (pixels[1:] == 0).all()
    _feed(display, source, [90])
    pixels = display.surface.pixels
    assert _color_of(pixels, True, 0) == CMAP.lookup(90)
    assert _color_of(pixels, True, 1) == CMAP.lookup(40)


def test_horizontal_lines_put_first_bin_at_bottom():
    samples = np.zeros(PX)
    samples[0] = 200
    display = Waterfall(SampleBuffer(samples), PX, LINES, "right")
    display.new_line()
    column = display.surface.pixels[:, 0]
    assert tuple(column[PX - 1]) == CMAP.lookup(200)
    assert all(tuple(p) == CMAP.lookup(0) for p in column[:-1])


def test_vertical_lines_put_first_bin_on_the_left():
    samples = np.zeros(PX)
    samples[0] = 200
    display = Waterfall(SampleBuffer(samples), PX, LINES, "down")
    display.new_line()
    assert tuple(display.surface.pixels[0, 0]) == CMAP.lookup(200)
    assert tuple(display.surface.pixels[0, 1]) == CMAP.lookup(0)


@pytest.mark.parametrize("direction", ["down", "right"])
def test_rasterscan_marks_next_line_when_dynamic(direction):
    source = SampleBuffer(np.zeros(PX))
    display = Rasterscan(source, PX, LINES, direction)
    vertical = display.geometry.vertical
    _feed(display, source, [10, 20, 30])
    pixels = display.surface.pixels
    assert [_color_of(pixels, vertical, i) for i in range(3)] == [
        CMAP.lookup(10),
        CMAP.lookup(20),
        CMAP.lookup(30),
    ]
    assert display.next_line == 3
    assert _color_of(pixels, vertical, 3) == HIGHLIGHT_COLOR
    assert _color_of(pixels, vertical, 4) == (0, 0, 0, 0)


def test_rasterscan_overwrites_highlight_on_wrap():
    source = SampleBuffer(np.zeros(PX))
    display = Rasterscan(source, PX, LINES, "up")
    _feed(display, source, [10] * LINES)
    pixels = display.surface.pixels
    # the marker sits on the oldest line, which is the next to be replaced
    assert display.next_line == LINES - 1
    assert _color_of(pixels, True, LINES - 1) == HIGHLIGHT_COLOR
    _feed(display, source, [50])
    pixels = display.surface.pixels
    assert _color_of(pixels, True, LINES - 1) == CMAP.lookup(50)
    assert _color_of(pixels, True, LINES - 2) == HIGHLIGHT_COLOR


def test_static_rasterscan_has_no_marker():
    source = SampleBuffer(np.zeros(PX))
    display = Rasterscan(source, PX, LINES, "down", {"lineRate": 0})
    _feed(display, source, [10, 20])
    pixels = display.surface.pixels
    assert _color_of(pixels, True, 2) == TRANSPARENT


def test_horizontal_paths_read_the_whole_page(monkeypatch):
    calls = {}

    def counting(display):
        original = display.surface.get_region

        def wrapper(*args):
            calls[display] = calls.get(display, 0) + 1
            return original(*args)

        monkeypatch.setattr(display.surface, "get_region", wrapper)
        return display

    source = SampleBuffer(np.zeros(PX))
    wf_v = counting(Waterfall(source, PX, LINES, "down"))
    wf_h = counting(Waterfall(source, PX, LINES, "right"))
    rs_v = counting(Rasterscan(source, PX, LINES, "down"))
    rs_h = counting(Rasterscan(source, PX, LINES, "right"))
    for display in (wf_v, wf_h, rs_v, rs_h):
        display.new_line()

    assert calls.get(wf_v, 0) == 1
    assert calls.get(wf_h, 0) == 2
    assert calls.get(rs_v, 0) == 0
    assert calls.get(rs_h, 0) == 1


def test_new_line_presents_surface():
    source = SampleBuffer(np.zeros(PX))
    display = Waterfall(source, PX, LINES)
    presented = []
    display.surface.add_listener(presented.append)
    display.new_line()
    display.clear()
    assert presented == [display.surface, display.surface]


def test_clear_uses_colormap_background():
    source = SampleBuffer(np.zeros(PX))
    cmap = [(9, 8, 7, 255), (1, 1, 1, 255)]
    display = Waterfall(source, PX, LINES, "down", {"colorMap": cmap})
    display.clear()
    assert (display.surface.pixels == (9, 8, 7, 255)).all()


def test_stop_keeps_pixels_and_resets_position():
    source = SampleBuffer(np.zeros(PX))
    display = Rasterscan(source, PX, LINES, "down")
    _feed(display, source, [60, 70])
    before = np.array(display.surface.pixels)
    display.stop()
    assert display.next_line == 0
    assert np.array_equal(display.surface.pixels, before)


def test_line_rate_validation(caplog):
    display = Waterfall(SampleBuffer(np.zeros(PX)), PX, LINES)
    assert display.line_rate == 30
    assert display.interval_ms == pytest.approx(1000 / 30)

    with caplog.at_level(logging.ERROR, logger="spectrogram_display"):
        assert display.set_line_rate(60) is False
    assert display.line_rate == 30
    assert any("invalid line rate" in r.getMessage() for r in caplog.records)

    for bad in ("fast", -1, float("nan"), True, None):
        assert display.set_line_rate(bad) is False
    assert display.line_rate == 30

    assert display.set_line_rate(20) is True
    assert display.interval_ms == pytest.approx(50.0)
    assert display.set_line_rate(50) is True
    assert display.interval_ms == pytest.approx(20.0)
    assert display.set_line_rate(0) is True
    assert display.line_rate == 0
    assert display.interval_ms == pytest.approx(20.0)


def test_options_are_case_insensitive():
    display = Waterfall(
        SampleBuffer(np.zeros(64)),
        PX,
        LINES,
        options={"LINERATE": 20, "start_bin": 5, "EndBin": 10, "logscale": 1},
    )
    assert display.line_rate == 20
    assert display.start_bin == 5
    assert display.end_bin == 10
    assert display.log_scale is True


def test_end_bin_defaults_to_buffer_length():
    display = Waterfall(SampleBuffer(np.zeros(300)), PX, LINES)
    assert display.start_bin == 0
    assert display.end_bin == 300
    assert display.log_scale is False


def test_invalid_options_are_ignored():
    display = Waterfall(
        SampleBuffer(np.zeros(64)),
        PX,
        LINES,
        options={
            "startBin": -1,
            "endBin": "x",
            "logScale": "maybe",
            "lineRate": 99,
            "colorMap": [(1, 2, 3)],
            "unknown": 4,
        },
    )
    assert display.line_rate == 30
    assert display.start_bin == 0
    assert display.end_bin == 64
    assert display.log_scale is False
    assert display.colormap == ColorMap.default()


def test_set_option_updates_single_setting():
    display = Waterfall(SampleBuffer(np.zeros(64)), PX, LINES)
    display.set_option("startBin", 3)
    display.set_option("log_scale", "1")
    display.set_option("lineRate", "fast")
    assert display.start_bin == 3
    assert display.log_scale is True
    assert display.line_rate == 30


def test_accepts_render_options_instance():
    options = RenderOptions(line_rate=10.0, end_bin=32.0)
    display = Rasterscan(SampleBuffer(np.zeros(64)), PX, LINES, "down", options)
    assert display.line_rate == 10
    assert display.end_bin == 32


def test_start_runs_timer_and_stop_cancels(clock, scheduler):
    source = SampleBuffer(np.full(PX, 10))
    display = Waterfall(source, PX, LINES, "down", scheduler=scheduler, clock=clock)
    drawn = []
    display.surface.add_listener(lambda s: drawn.append(clock.now))

    display.start()
    assert display.running
    assert drawn == [0.0]
    assert len(scheduler.pending) == 1

    scheduler.fire_next()
    scheduler.fire_next()
    assert len(drawn) == 3

    display.stop()
    assert not display.running
    assert scheduler.pending == []
    assert display.next_line == 0


def test_static_start_draws_one_line(clock, scheduler):
    source = SampleBuffer(np.full(PX, 10))
    display = Waterfall(
        source, PX, LINES, "down", {"lineRate": 0}, scheduler=scheduler, clock=clock
    )
    display.start()
    assert not display.running
    assert scheduler.pending == []
    assert _color_of(display.surface.pixels, True, 0) == CMAP.lookup(10)


def test_line_rate_change_applies_on_next_tick(clock, scheduler):
    source = SampleBuffer(np.zeros(PX))
    display = Waterfall(source, PX, LINES, scheduler=scheduler, clock=clock)
    display.start()
    assert scheduler.pending[0].due_ms == pytest.approx(2000 / 30)
    display.set_line_rate(10)
    scheduler.fire_next()
    first = scheduler.fire_next()
    second = scheduler.pending[0]
    assert second.due_ms - first.due_ms == pytest.approx(100.0, abs=1e-6)


def _index_image(rows, cols):
    return (np.arange(rows * cols).reshape(rows, cols) * 7) % 200 + 1


def test_raster_image_down_maps_rows_to_rows():
    data = _index_image(4, 6)
    image = raster_image(data)
    assert image.shape == (4, 6, 4)
    for r in range(4):
        for c in range(6):
            assert tuple(image[r, c]) == CMAP.lookup(data[r, c])


def test_raster_image_up_flips_rows():
    data = _index_image(4, 6)
    image = raster_image(data, {"dir": "up"})
    for r in range(4):
        assert np.array_equal(image[3 - r], CMAP.colorize(data[r]))


def test_raster_image_left_draws_columns():
    data = _index_image(4, 6)
    image = raster_image(data, {"direction": "LEFT"})
    assert image.shape == (6, 4, 4)
    for r in range(4):
        # first sample at the bottom, first row in the rightmost column
        assert np.array_equal(image[::-1, 3 - r], CMAP.colorize(data[r]))


def test_raster_image_right_falls_back_to_down():
    data = _index_image(3, 5)
    assert np.array_equal(raster_image(data, {"dir": "right"}), raster_image(data))


def test_raster_image_is_static_regardless_of_line_rate():
    data = _index_image(3, 5)
    image = raster_image(data, {"lineRate": 40, "line_rate": 12})
    # no highlight marker anywhere
    assert not (image == HIGHLIGHT_COLOR).all(axis=-1).any()
    assert np.array_equal(image, raster_image(data))


def test_raster_image_uses_color_map_option():
    data = np.zeros((2, 3), dtype=int)
    image = raster_image(data, {"colorMap": [(5, 6, 7, 8)]})
    assert (image == (5, 6, 7, 8)).all()


def test_raster_image_rejects_1d_data():
    with pytest.raises(ValueError):
        raster_image(np.zeros(5))


@pytest.mark.parametrize("direction", ["up", "down", "left", "right"])
def test_waterfall_fills_with_constant_line(direction):
    source = SampleBuffer(np.full(PX, 120))
    display = Waterfall(source, PX, LINES, direction)
    display.clear()
    for _ in range(LINES):
        display.new_line()
    expected = display.render(source.buffer)
    pixels = display.surface.pixels
    for index in range(LINES):
        line = _line_at(pixels, display.geometry.vertical, index)
        if not display.geometry.vertical:
            line = line[::-1]
        assert np.array_equal(line, expected)
