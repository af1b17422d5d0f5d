import math

import numpy as np
import pytest

from tankproc.aggregate import (
    MINMAX_COLUMNS,
    average,
    averaged_table,
    condition_envelopes,
    min_max_envelope,
    minmax_table,
    partition_by_condition,
    partition_by_froude,
)


def test_partition_by_condition_is_complete(summary_factory):
    runs = [
        summary_factory(63, condition=7),
        summary_factory(150, condition=8),
        summary_factory(64, condition=7),
    ]
    groups = partition_by_condition(runs)
    assert sorted(groups) == list(range(1, 14))
    assert [s.run for s in groups[7]] == [63, 64]
    assert groups[1] == []
    flat = [s.run for g in groups.values() for s in g]
    assert sorted(flat) == [63, 64, 150]


def test_partition_rejects_unknown_condition(summary_factory):
    with pytest.raises(ValueError):
        partition_by_condition([summary_factory(1, condition=14)])


def test_froude_buckets_ascending(summary_factory):
    runs = [summary_factory(1, froude=0.31), summary_factory(2, froude=0.23),
            summary_factory(3, froude=0.31)]
    buckets = partition_by_froude(runs)
    assert list(buckets) == [0.23, 0.31]
    assert [s.run for s in buckets[0.31]] == [1, 3]


def test_repeat_runs_average_and_envelope(summary_factory):
    a = summary_factory(80, froude=0.23, heave=-8.0)
    b = summary_factory(81, froude=0.23, heave=-8.4)
    avg = average([a, b])
    assert np.isclose(avg.heave, -8.2)
    assert avg.run is None and avg.sampling_hz is None
    assert avg.condition == 7 and avg.froude == 0.23
    env = min_max_envelope([a, b])
    assert env.min["heave"] == -8.4
    assert env.max["heave"] == -8.0
    assert env.n_runs == 2
    assert np.isclose(env.std["heave"], np.std([-8.0, -8.4], ddof=1))


def test_average_ignores_input_order(summary_factory):
    runs = [summary_factory(90 + i, heave=h, rtm=r)
            for i, (h, r) in enumerate([(-8.1, 19.1), (-7.7, 18.3), (-8.9, 20.7)])]
    assert average(runs) == average(runs[::-1]) == average([runs[1], runs[2], runs[0]])


def test_average_rejects_mixed_conditions(summary_factory):
    with pytest.raises(ValueError):
        average([summary_factory(1, condition=7), summary_factory(2, condition=8)])
    with pytest.raises(ValueError):
        average([])


def test_single_run_has_no_spread(summary_factory):
    env = min_max_envelope([summary_factory(5)])
    assert math.isnan(env.std["heave"])


def test_tables(summary_factory):
    runs = [summary_factory(80, froude=0.23, heave=-8.0, trim=0.10),
            summary_factory(81, froude=0.23, heave=-8.4, trim=0.14),
            summary_factory(82, froude=0.31, heave=-11.0, trim=0.30)]
    avg = averaged_table(runs)
    assert list(avg["repeats"]) == [2, 1]
    assert avg.shape == (2, 49)
    mm = minmax_table(runs)
    assert list(mm.columns) == MINMAX_COLUMNS
    first = mm.iloc[0]
    assert first["heave_min"] == -8.4 and first["heave_max"] == -8.0
    assert np.isclose(first["heave_mid"], -8.2)
    assert np.isclose(first["trim_mid"], 0.12)
    assert np.isclose(first["crm_x1000"], 7.6)
    assert len(condition_envelopes(runs)) == 2


def test_empty_condition_tables(summary_factory):
    assert averaged_table([]).empty
    assert minmax_table([]).empty
