"""Command-line entrypoints for the spectrogram player and Fourier demo."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

from .audio import DemoSource, MicSource, sd
from .config import PlayerConfig, load_player_config

logger = logging.getLogger(__name__)


def _add_log_level(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scrolling spectrogram player (waterfall of live or demo audio)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with player defaults (default: bundled player_config.json)",
    )
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument(
        "--direction", choices=["up", "down", "left", "right"], default=None
    )
    parser.add_argument("--line-rate", type=float, default=None)
    parser.add_argument("--start-bin", type=float, default=None)
    parser.add_argument("--end-bin", type=float, default=None)
    parser.add_argument(
        "--log-scale",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Compress the frequency axis logarithmically",
    )
    parser.add_argument("--samplerate", type=int, default=None)
    parser.add_argument("--fft", type=int, default=None)
    parser.add_argument("--hop", type=int, default=None)
    parser.add_argument("--waveform", action="store_true", default=None)
    parser.add_argument("--autoplay", action="store_true", default=None)
    parser.add_argument("--device", type=str, default=None)
    parser.add_argument("--demo", action="store_true")
    _add_log_level(parser)
    return parser.parse_args(argv)


_ARG_TO_FIELD = {
    "width": "width",
    "height": "height",
    "direction": "direction",
    "line_rate": "line_rate",
    "start_bin": "start_bin",
    "end_bin": "end_bin",
    "log_scale": "log_scale",
    "samplerate": "sample_rate",
    "fft": "fft_size",
    "hop": "hop",
    "waveform": "waveform",
    "autoplay": "autoplay",
    "device": "device",
}


def build_config(args: argparse.Namespace) -> PlayerConfig:
    config = load_player_config(args.config)
    overrides = {
        field: getattr(args, arg)
        for arg, field in _ARG_TO_FIELD.items()
        if getattr(args, arg) is not None
    }
    return dataclasses.replace(config, **overrides)


def create_source(args: argparse.Namespace, config: PlayerConfig):
    if args.demo or sd is None:
        return DemoSource(config.sample_rate, config.hop)
    try:
        return MicSource(config.sample_rate, config.hop, device=config.device)
    except Exception as exc:  # pragma: no cover - interactive fallback
        logger.warning("Could not initialize microphone input: %s", exc)
        logger.warning(
            "Falling back to demo mode. Use --device to select input or install sounddevice."
        )
        return DemoSource(config.sample_rate, config.hop)


def main(argv: list[str] | None = None) -> None:
    from .player import SpectrogramPlayer

    args = parse_args(argv)
    _configure_logging(args.log_level)
    config = build_config(args)
    source = create_source(args, config)
    if isinstance(source, MicSource):
        config = dataclasses.replace(config, microphone=True)
    player = SpectrogramPlayer(source=source, config=config)
    player.show()


def parse_fourier_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Waveform, winding and Fourier views of a sum of cosines"
    )
    parser.add_argument(
        "--freqs", type=float, nargs="+", default=[2.0, 3.0], help="Frequencies in Hz"
    )
    parser.add_argument(
        "--amps", type=float, nargs="+", default=None, help="Relative amplitudes"
    )
    parser.add_argument("--seconds", type=float, default=4.0)
    parser.add_argument("--points", type=int, default=2000)
    parser.add_argument("--winding-freq", type=float, default=None)
    parser.add_argument("--max-freq", type=float, default=5.0)
    parser.add_argument("--transform", choices=["direct", "fft"], default="direct")
    _add_log_level(parser)
    return parser.parse_args(argv)


def fourier_main(argv: list[str] | None = None) -> None:
    import matplotlib.pyplot as plt

    from .plotting import draw_fourier, draw_waveform, draw_winding
    from .utils import compute_cosines

    args = parse_fourier_args(argv)
    _configure_logging(args.log_level)
    amps = args.amps if args.amps is not None else [1.0] * len(args.freqs)
    if len(amps) != len(args.freqs):
        raise SystemExit("--amps needs one value per frequency")

    data = compute_cosines(args.points, args.seconds, args.freqs, amps)
    winding_freq = args.winding_freq if args.winding_freq else args.freqs[0]
    samples_per_turn = args.points / (args.seconds * winding_freq)
    logger.info(
        "Winding at %.2f Hz (%.1f samples per turn)", winding_freq, samples_per_turn
    )

    fig = plt.figure(figsize=(12, 8))
    gs = fig.add_gridspec(nrows=2, ncols=2, height_ratios=[1, 1])
    draw_waveform(fig.add_subplot(gs[0, :]), data, args.seconds)
    draw_winding(fig.add_subplot(gs[1, 0]), data, samples_per_turn)
    draw_fourier(
        fig.add_subplot(gs[1, 1]),
        data,
        args.seconds,
        max_freq=args.max_freq,
        transform=args.transform,
    )
    plt.show()


__all__ = [
    "build_config",
    "create_source",
    "fourier_main",
    "main",
    "parse_args",
    "parse_fourier_args",
]
