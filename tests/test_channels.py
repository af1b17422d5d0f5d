import math

import numpy as np
import pandas as pd
import pytest

from tankproc.channels import (
    CalibrationRecord,
    reduce,
    reduce_channels,
    to_physical,
    trim,
    zero_row_filter,
)
from tankproc.errors import CalibrationRecordError, InsufficientSamplesError


def test_to_physical_is_affine():
    out = to_physical([1.0, 2.0, 3.0], zero=1.0, factor=2.5)
    assert np.allclose(out, [0.0, 2.5, 5.0])


def test_trim_drops_head_and_tail():
    s = np.arange(10)
    assert list(trim(s, 3, 2)) == [3, 4, 5, 6, 7]
    assert list(trim(s, 0, 0)) == list(range(10))


def test_trim_too_long_raises():
    with pytest.raises(InsufficientSamplesError):
        trim(np.arange(10), 6, 4)


def test_reduce_statistics():
    st = reduce([1.0, 2.0, 3.0, 4.0])
    assert st.min == 1.0 and st.max == 4.0
    assert np.isclose(st.mean, 2.5)
    assert np.isclose(st.std, np.std([1, 2, 3, 4]))   # population
    assert np.isclose(st.pct_dev, (4 - 2.5) / 4 * 100)


def test_reduce_range_basis_and_idempotence():
    x = np.array([-1.0, 0.0, 0.5, 1.0])
    a = reduce(x, pct_basis="range")
    b = reduce(x, pct_basis="range")
    assert a == b
    assert np.isclose(a.pct_dev, abs(1.0 - 0.125) / 2.0 * 100)


def test_reduce_pct_undefined_when_max_zero():
    st = reduce([0.0, 0.0])
    assert math.isnan(st.pct_dev)


def test_zero_row_filter_drops_placeholder_rows():
    table = np.array([
        [1.0, 2.0, 3.0],
        [2.0, 3.0, 4.0],
        [0.0, 0.0, 0.0],
        [3.0, 4.0, 5.0],
        [4.0, 5.0, 6.0],
    ])
    kept = zero_row_filter(table)
    assert kept.shape == (4, 3)
    st = reduce(kept[:, 0])
    assert np.isclose(st.mean, 2.5)
    assert st.min == 1.0


def test_zero_row_filter_dataframe():
    df = pd.DataFrame({"a": [0.0, 1.0, 0.0], "b": [0.0, 0.0, np.nan]})
    out = zero_row_filter(df)
    assert list(out.index) == [1]


def test_calibration_record_from_header():
    rec = CalibrationRecord.from_header([0, 1, 0.1, 2, 0.2, 3, 0.3, 4, 0.4, 5])
    assert rec.zeros["speed"] == 0.1
    assert rec.factors["drag"] == 5
    with pytest.raises(CalibrationRecordError):
        CalibrationRecord.from_header([0, 1, 0.1, 2, 0.2, 0.0, 0.3, 4, 0.4, 5])
    with pytest.raises(CalibrationRecordError):
        CalibrationRecord.from_header([0, 1, 2])


def test_reduce_channels_uses_full_mean_and_trimmed_stats():
    n = 20
    raw = pd.DataFrame({
        "time": np.arange(1, n + 1) / 10.0,
        "speed": np.r_[np.zeros(5), np.full(n - 5, 2.0)],
        "fwd_lvdt": np.ones(n),
        "aft_lvdt": np.ones(n),
        "drag": np.full(n, 10.0),
    })
    rec = CalibrationRecord.from_header([0, 1, 0, 1, 0, 2, 0, 2, 5, 1])
    red = reduce_channels(raw, rec, start_cut=5, end_cut=2)
    assert np.isclose(red.full_mean["speed"], 2.0 * 15 / 20)
    assert red.stats["speed"].min == 2.0
    assert np.isclose(red.full_mean["fwd_lvdt"], 2.0)
    assert np.isclose(red.full_mean["drag"], 5.0)
    frame = red.time_series_frame()
    assert frame.shape == (n, 9)
    assert np.allclose(frame["drag_V"], 5.0)
