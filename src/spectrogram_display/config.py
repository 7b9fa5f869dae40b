"""Typed configuration for spectrogram renderers and the player."""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from numbers import Real
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .colormap import ColorMap, InvalidColorMap
from .scheduler import InvalidRate, validate_line_rate

logger = logging.getLogger(__name__)

_PLAYER_CONFIG_NAME = "player_config.json"

# Normalised option key -> RenderOptions field.
_OPTION_KEYS = {
    "linerate": "line_rate",
    "startbin": "start_bin",
    "endbin": "end_bin",
    "logscale": "log_scale",
    "colormap": "color_map",
}


def normalize_key(key: str) -> str:
    """``"lineRate"``, ``"line_rate"`` and ``"LINERATE"`` all become ``"linerate"``."""
    return key.replace("_", "").replace("-", "").lower()


def _as_bin(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _as_flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, Real):
        return None if math.isnan(float(value)) else bool(value)
    return None


@dataclasses.dataclass(frozen=True)
class RenderOptions:
    """Optional renderer settings; ``None`` means "leave as is"."""

    line_rate: Optional[float] = None
    start_bin: Optional[float] = None
    end_bin: Optional[float] = None
    log_scale: Optional[bool] = None
    color_map: Optional[ColorMap] = None

    @staticmethod
    def from_dict(raw: Optional[Mapping[str, Any]]) -> "RenderOptions":
        """Validate loosely typed options keyed by case-insensitive names.

        Unknown keys and malformed values are dropped rather than raised so a
        partially valid configuration still applies what it can.
        """

        values: Dict[str, Any] = {}
        for key, value in (raw or {}).items():
            if not isinstance(key, str) or value is None:
                continue
            field = _OPTION_KEYS.get(normalize_key(key))
            if field is None:
                continue

            if field == "line_rate":
                try:
                    values[field] = validate_line_rate(value)
                except InvalidRate as exc:
                    logger.error("%s", exc)
            elif field in ("start_bin", "end_bin"):
                converted = _as_bin(value)
                if converted is None:
                    logger.debug("Ignoring %s=%r: not a non-negative number", key, value)
                else:
                    values[field] = converted
            elif field == "log_scale":
                flag = _as_flag(value)
                if flag is None:
                    logger.debug("Ignoring %s=%r: not a flag", key, value)
                else:
                    values[field] = flag
            else:
                try:
                    values[field] = (
                        value if isinstance(value, ColorMap) else ColorMap.build(value)
                    )
                except InvalidColorMap as exc:
                    logger.warning("Ignoring color map: %s", exc)
        return RenderOptions(**values)

    def as_dict(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


@dataclasses.dataclass
class PlayerConfig:
    """Settings for :class:`~spectrogram_display.player.SpectrogramPlayer`."""

    width: int = 800
    height: int = 250
    direction: str = "right"
    line_rate: float = 45.0
    start_bin: float = 2.0
    end_bin: float = (256 + 128) * 4
    log_scale: bool = True
    sample_rate: int = 44100
    fft_size: int = 8192
    hop: int = 1024
    min_decibels: float = -70.0
    max_decibels: float = -30.0
    smoothing: float = 0.2
    rewind: bool = True
    autoplay: bool = False
    waveform: bool = False
    waveform_points: int = 1024
    microphone: bool = False
    device: Optional[str] = None

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> "PlayerConfig":
        known = {f.name for f in dataclasses.fields(PlayerConfig)}
        filtered = {k: v for k, v in raw.items() if k in known}
        return PlayerConfig(**filtered)

    def render_options(self) -> RenderOptions:
        return RenderOptions.from_dict(
            {
                "lineRate": self.line_rate,
                "startBin": self.start_bin,
                "endBin": self.end_bin,
                "logScale": self.log_scale,
            }
        )


def default_config_path() -> Path:
    return Path(__file__).with_name(_PLAYER_CONFIG_NAME)


def load_player_config(path: Optional[Path] = None) -> PlayerConfig:
    """Load player defaults from JSON (the bundled file when ``path`` is None)."""

    config_path = Path(path) if path is not None else default_config_path()
    with config_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return PlayerConfig.from_dict(data)


__all__ = [
    "PlayerConfig",
    "RenderOptions",
    "default_config_path",
    "load_player_config",
    "normalize_key",
]
