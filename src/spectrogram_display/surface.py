"""Fixed-size RGBA pixel surface the spectrogram renders into."""

from __future__ import annotations

from typing import Callable, List

import numpy as np

PresentListener = Callable[["RasterSurface"], None]


class RasterSurface:
    """A ``width`` x ``height`` RGBA buffer addressed by (column, row).

    Regions are exchanged as ``(rows, cols, 4)`` uint8 arrays. ``get_region``
    always returns a copy so callers can modify it before putting it back.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid surface size {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self._pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self._listeners: List[PresentListener] = []

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the whole buffer."""
        view = self._pixels.view()
        view.setflags(write=False)
        return view

    def get_region(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        self._check_region(x, y, width, height)
        return self._pixels[y : y + height, x : x + width].copy()

    def put_region(self, data: np.ndarray, x: int, y: int) -> None:
        data = np.asarray(data, dtype=np.uint8)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError("region data must have shape (rows, cols, 4)")
        rows, cols = data.shape[:2]
        self._check_region(x, y, cols, rows)
        self._pixels[y : y + rows, x : x + cols] = data

    def fill(self, rgba) -> None:
        self._pixels[:, :] = np.asarray(rgba, dtype=np.uint8)

    def add_listener(self, listener: PresentListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PresentListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def present(self) -> None:
        """Tell listeners (e.g. an on-screen image) that new content is ready."""
        for listener in list(self._listeners):
            listener(self)

    def _check_region(self, x: int, y: int, width: int, height: int) -> None:
        if (
            x < 0
            or y < 0
            or width < 0
            or height < 0
            or x + width > self.width
            or y + height > self.height
        ):
            raise ValueError(
                f"region ({x}, {y}, {width}, {height}) outside "
                f"{self.width}x{self.height} surface"
            )


__all__ = ["RasterSurface", "PresentListener"]
