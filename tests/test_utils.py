from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from spectrogram_display.utils import average_down, compute_cosines, dbfs, extract


def test_compute_cosines_normalises_amplitudes():
    assert compute_cosines(5, 1.0, [0.0], [2.0]) == pytest.approx(np.ones(5))
    data = compute_cosines(1000, 2.0, [2.0, 3.0], [1.0, 1.0])
    assert data.dtype == np.float32
    assert data[0] == pytest.approx(1.0)
    assert np.abs(data).max() <= 1.0 + 1e-6


def test_compute_cosines_frequency():
    data = compute_cosines(400, 2.0, [1.0], [1.0])
    # one cycle per second: half way through the first second is a trough
    assert data[100] == pytest.approx(-1.0)
    assert data[200] == pytest.approx(1.0)


def test_compute_cosines_rejects_bad_amplitudes():
    with pytest.raises(ValueError):
        compute_cosines(10, 1.0, [1.0, 2.0], [1.0])
    with pytest.raises(ValueError):
        compute_cosines(10, 1.0, [1.0, 2.0], [1.0, -1.0])


def test_extract_rounds_fractional_steps():
    assert extract(np.arange(10), 2.5).tolist() == [0, 3, 5, 8]
    assert extract(np.arange(5), 1).tolist() == [0, 1, 2, 3, 4]
    with pytest.raises(ValueError):
        extract([1, 2], 0)


def test_average_down_drops_partial_group():
    assert average_down(np.arange(10), 3).tolist() == [1, 4, 7]
    with pytest.raises(ValueError):
        average_down([1, 2], 0)


def test_dbfs():
    assert dbfs(np.array([1.0, 0.1])) == pytest.approx([0.0, -20.0])
    assert dbfs(np.array([0.0]))[0] == pytest.approx(-240.0)
