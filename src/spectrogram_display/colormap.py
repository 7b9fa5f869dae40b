"""256-entry RGBA color lookup tables for spectrogram rendering."""

from __future__ import annotations

import math
from numbers import Real
from typing import Iterable, Sequence

import numpy as np

TABLE_SIZE = 256
TRANSPARENT = (0, 0, 0, 0)
SENTINEL_INDEX = TABLE_SIZE

# Black -> red -> yellow -> white "jet"-style gradient.
JET_COLORS: tuple[tuple[int, int, int, int], ...] = (
    (0, 0, 0, 255), (3, 1, 1, 255), (7, 2, 1, 255), (10, 3, 2, 255),
    (13, 4, 2, 255), (16, 5, 3, 255), (18, 6, 3, 255), (20, 7, 4, 255),
    (22, 8, 4, 255), (24, 9, 5, 255), (26, 10, 5, 255), (27, 11, 6, 255),
    (29, 11, 6, 255), (30, 12, 7, 255), (32, 13, 8, 255), (33, 14, 8, 255),
    (34, 15, 9, 255), (36, 15, 9, 255), (37, 16, 10, 255), (38, 16, 10, 255),
    (40, 17, 11, 255), (41, 17, 11, 255), (43, 18, 12, 255), (44, 18, 12, 255),
    (46, 18, 13, 255), (47, 19, 13, 255), (49, 19, 14, 255), (50, 19, 14, 255),
    (52, 20, 15, 255), (54, 20, 15, 255), (55, 20, 15, 255), (57, 21, 16, 255),
    (58, 21, 16, 255), (60, 21, 16, 255), (62, 22, 17, 255), (63, 22, 17, 255),
    (65, 22, 17, 255), (66, 23, 18, 255), (68, 23, 18, 255), (70, 23, 18, 255),
    (71, 24, 19, 255), (73, 24, 19, 255), (75, 24, 19, 255), (76, 25, 20, 255),
    (78, 25, 20, 255), (80, 25, 20, 255), (81, 25, 20, 255), (83, 26, 21, 255),
    (85, 26, 21, 255), (86, 26, 21, 255), (88, 26, 21, 255), (90, 27, 22, 255),
    (91, 27, 22, 255), (93, 27, 22, 255), (95, 27, 22, 255), (97, 28, 23, 255),
    (98, 28, 23, 255), (100, 28, 23, 255), (102, 28, 23, 255), (104, 29, 24, 255),
    (105, 29, 24, 255), (107, 29, 24, 255), (109, 29, 24, 255), (111, 29, 25, 255),
    (112, 30, 25, 255), (114, 30, 25, 255), (116, 30, 25, 255), (118, 30, 26, 255),
    (119, 30, 26, 255), (121, 31, 26, 255), (123, 31, 26, 255), (125, 31, 27, 255),
    (127, 31, 27, 255), (128, 31, 27, 255), (130, 31, 27, 255), (132, 32, 28, 255),
    (134, 32, 28, 255), (136, 32, 28, 255), (137, 32, 28, 255), (139, 32, 29, 255),
    (141, 32, 29, 255), (143, 32, 29, 255), (145, 33, 29, 255), (147, 33, 30, 255),
    (148, 33, 30, 255), (150, 33, 30, 255), (152, 33, 31, 255), (154, 33, 31, 255),
    (156, 33, 31, 255), (158, 33, 31, 255), (160, 33, 32, 255), (161, 34, 32, 255),
    (163, 34, 32, 255), (165, 34, 32, 255), (167, 34, 33, 255), (169, 34, 33, 255),
    (171, 34, 33, 255), (173, 34, 33, 255), (175, 34, 34, 255), (177, 34, 34, 255),
    (178, 34, 34, 255), (179, 36, 34, 255), (180, 38, 34, 255), (181, 40, 33, 255),
    (182, 42, 33, 255), (183, 44, 33, 255), (184, 45, 33, 255), (185, 47, 32, 255),
    (186, 49, 32, 255), (187, 50, 32, 255), (188, 52, 31, 255), (189, 53, 31, 255),
    (190, 55, 31, 255), (191, 56, 31, 255), (192, 58, 30, 255), (193, 59, 30, 255),
    (194, 61, 30, 255), (195, 62, 29, 255), (196, 64, 29, 255), (197, 65, 28, 255),
    (198, 66, 28, 255), (199, 68, 28, 255), (200, 69, 27, 255), (201, 71, 27, 255),
    (202, 72, 26, 255), (203, 73, 26, 255), (204, 75, 25, 255), (205, 76, 25, 255),
    (206, 77, 24, 255), (207, 79, 24, 255), (208, 80, 23, 255), (209, 82, 23, 255),
    (210, 83, 22, 255), (211, 84, 21, 255), (212, 85, 21, 255), (213, 87, 20, 255),
    (214, 88, 19, 255), (215, 89, 19, 255), (216, 91, 18, 255), (217, 92, 17, 255),
    (218, 93, 16, 255), (219, 95, 15, 255), (220, 96, 14, 255), (221, 97, 13, 255),
    (222, 98, 12, 255), (223, 100, 11, 255), (224, 101, 9, 255), (225, 102, 8, 255),
    (226, 104, 7, 255), (227, 105, 5, 255), (227, 107, 5, 255), (227, 109, 6, 255),
    (228, 110, 7, 255), (228, 112, 7, 255), (228, 114, 8, 255), (228, 116, 8, 255),
    (229, 118, 9, 255), (229, 119, 10, 255), (229, 121, 10, 255), (229, 123, 11, 255),
    (229, 124, 12, 255), (230, 126, 12, 255), (230, 128, 13, 255), (230, 130, 14, 255),
    (230, 131, 14, 255), (230, 133, 15, 255), (230, 135, 15, 255), (231, 136, 16, 255),
    (231, 138, 17, 255), (231, 140, 17, 255), (231, 141, 18, 255), (231, 143, 19, 255),
    (231, 145, 19, 255), (231, 146, 20, 255), (232, 148, 21, 255), (232, 150, 21, 255),
    (232, 151, 22, 255), (232, 153, 22, 255), (232, 154, 23, 255), (232, 156, 24, 255),
    (232, 158, 24, 255), (232, 159, 25, 255), (232, 161, 26, 255), (232, 162, 26, 255),
    (233, 164, 27, 255), (233, 166, 27, 255), (233, 167, 28, 255), (233, 169, 29, 255),
    (233, 170, 29, 255), (233, 172, 30, 255), (233, 174, 30, 255), (233, 175, 31, 255),
    (233, 177, 32, 255), (233, 178, 32, 255), (233, 180, 33, 255), (233, 181, 34, 255),
    (233, 183, 34, 255), (233, 185, 35, 255), (233, 186, 35, 255), (233, 188, 36, 255),
    (233, 189, 37, 255), (233, 191, 37, 255), (233, 192, 38, 255), (233, 194, 38, 255),
    (233, 195, 39, 255), (233, 197, 40, 255), (233, 199, 40, 255), (233, 200, 41, 255),
    (232, 202, 42, 255), (232, 203, 42, 255), (232, 205, 43, 255), (232, 206, 43, 255),
    (232, 208, 44, 255), (232, 209, 45, 255), (232, 211, 45, 255), (232, 213, 46, 255),
    (232, 214, 47, 255), (232, 216, 47, 255), (231, 217, 48, 255), (231, 219, 48, 255),
    (231, 220, 49, 255), (231, 222, 50, 255), (231, 223, 50, 255), (231, 225, 51, 255),
    (230, 226, 52, 255), (230, 228, 52, 255), (230, 229, 53, 255), (231, 231, 60, 255),
    (233, 231, 69, 255), (234, 232, 78, 255), (236, 233, 87, 255), (237, 234, 94, 255),
    (238, 235, 102, 255), (240, 236, 109, 255), (241, 236, 117, 255), (242, 237, 124, 255),
    (243, 238, 131, 255), (245, 239, 137, 255), (246, 240, 144, 255), (247, 241, 151, 255),
    (248, 241, 158, 255), (249, 242, 164, 255), (249, 243, 171, 255), (250, 244, 177, 255),
    (251, 245, 184, 255), (252, 246, 190, 255), (252, 247, 197, 255), (253, 248, 203, 255),
    (253, 249, 210, 255), (254, 249, 216, 255), (254, 250, 223, 255), (254, 251, 229, 255),
    (255, 252, 236, 255), (255, 253, 242, 255), (255, 254, 249, 255), (255, 255, 255, 255),
)


class InvalidColorMap(ValueError):
    """Raised when color map entries cannot be turned into a lookup table."""


def _validate_entry(position: int, entry: object) -> tuple[int, int, int, int]:
    if isinstance(entry, (str, bytes)) or not isinstance(entry, Iterable):
        raise InvalidColorMap(f"entry {position} is not a sequence of channels")
    channels = list(entry)
    if len(channels) != 4:
        raise InvalidColorMap(
            f"entry {position} has {len(channels)} channels, expected 4 (RGBA)"
        )
    for value in channels:
        if isinstance(value, bool) or not isinstance(value, (Real, np.integer)):
            raise InvalidColorMap(f"entry {position} has a non-numeric channel")
        if not 0 <= value <= 255:
            raise InvalidColorMap(f"entry {position} has a channel outside 0..255")
    return tuple(int(v) for v in channels)  # type: ignore[return-value]


class ColorMap:
    """Immutable index -> RGBA lookup table.

    The table always holds 256 colors plus one extra transparent slot at
    index 256. Rendering code routes degenerate pixels (empty integration
    spans, samples outside the input buffer) to that slot; :meth:`lookup`
    itself never reaches it because indices are clamped to 0..255.
    """

    __slots__ = ("_table",)

    def __init__(self, table: np.ndarray) -> None:
        if table.shape != (TABLE_SIZE + 1, 4) or table.dtype != np.uint8:
            raise InvalidColorMap("color table must be a (257, 4) uint8 array")
        table = table.copy()
        table.setflags(write=False)
        self._table = table

    @classmethod
    def build(cls, entries: Sequence[Sequence[int]]) -> "ColorMap":
        """Build a table from ``entries``, padding with the last entry.

        Raises :class:`InvalidColorMap` if ``entries`` is empty or any entry
        is not exactly four channel values in 0..255. Extra entries past 256
        are dropped.
        """

        if isinstance(entries, np.ndarray):
            entries = entries.tolist()
        try:
            entries = list(entries)
        except TypeError as exc:
            raise InvalidColorMap("color map must be a sequence of entries") from exc
        if not entries:
            raise InvalidColorMap("color map needs at least one entry")

        rows = [_validate_entry(i, e) for i, e in enumerate(entries[:TABLE_SIZE])]
        rows.extend([rows[-1]] * (TABLE_SIZE - len(rows)))
        rows.append(TRANSPARENT)
        return cls(np.asarray(rows, dtype=np.uint8))

    @classmethod
    def default(cls) -> "ColorMap":
        return cls.build(JET_COLORS)

    @property
    def table(self) -> np.ndarray:
        """Read-only ``(257, 4)`` view; row 256 is the transparent sentinel."""
        return self._table

    @property
    def background(self) -> tuple[int, int, int, int]:
        return self.lookup(0)

    def lookup(self, index: float) -> tuple[int, int, int, int]:
        """Return the RGBA entry for ``index`` clamped to 0..255 (NaN -> 0)."""

        if isinstance(index, (int, np.integer)) and not isinstance(index, bool):
            idx = int(index)
        else:
            try:
                value = float(index)
            except (TypeError, ValueError, OverflowError):
                value = 0.0
            if math.isnan(value):
                value = 0.0
            value = min(max(value, 0.0), float(TABLE_SIZE - 1))
            idx = int(math.floor(value + 0.5))
        idx = min(max(idx, 0), TABLE_SIZE - 1)
        return tuple(int(c) for c in self._table[idx])  # type: ignore[return-value]

    def colorize(self, indices: np.ndarray) -> np.ndarray:
        """Vectorised lookup of integer ``indices``.

        Values are clamped to 0..255 except :data:`SENTINEL_INDEX`, which
        selects the transparent entry. Returns an ``(..., 4)`` uint8 array.
        """

        idx = np.asarray(indices, dtype=np.int64)
        clamped = np.clip(idx, 0, TABLE_SIZE - 1)
        clamped = np.where(idx == SENTINEL_INDEX, SENTINEL_INDEX, clamped)
        return self._table[clamped]

    def __len__(self) -> int:
        return TABLE_SIZE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColorMap):
            return NotImplemented
        return bool(np.array_equal(self._table, other._table))

    def __hash__(self) -> int:
        return hash(self._table.tobytes())

    def __repr__(self) -> str:
        first = self.lookup(0)
        last = self.lookup(TABLE_SIZE - 1)
        return f"ColorMap({first} .. {last})"


__all__ = [
    "ColorMap",
    "InvalidColorMap",
    "JET_COLORS",
    "SENTINEL_INDEX",
    "TABLE_SIZE",
    "TRANSPARENT",
]
