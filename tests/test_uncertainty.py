import math

import numpy as np
import pytest

from tankproc.presets import Constants
from tankproc.uncertainty import BiasInputs, CTUncertainty, ct_uncertainty, uncertainty_table

WSA = 1.501


def _ct(rtm, c, v=1.5):
    return 2 * rtm / (c.rho_fresh * WSA * v ** 2)


def test_precision_and_total_limits(summary_factory):
    c = Constants()
    runs = [summary_factory(100 + i, rtm=r) for i, r in enumerate([19.0, 19.2, 19.4])]
    u = ct_uncertainty(runs, WSA, c)
    cts = [_ct(r, c) for r in (19.0, 19.2, 19.4)]
    assert u.repeats == 3 and u.first_run == 100
    assert np.isclose(u.ct_mean, np.mean(cts))
    assert np.isclose(u.ct_std, np.std(cts, ddof=1))
    assert np.isclose(u.pct, 2 * u.ct_std / math.sqrt(3))
    assert np.isclose(u.uct, math.hypot(u.bct, u.ct_std))
    assert u.bct > 0
    assert np.isclose(u.bs_pct, math.hypot(0.005, 0.0025) * 100)
    assert np.isclose(u.bv_pct, 0.003 / 1.5 * 100)


def test_bias_grows_with_inputs(summary_factory):
    c = Constants()
    runs = [summary_factory(1, rtm=19.0), summary_factory(2, rtm=19.3)]
    loose = ct_uncertainty(runs, WSA, c, BiasInputs(speed_ms=0.03))
    tight = ct_uncertainty(runs, WSA, c)
    assert loose.bct > tight.bct


def test_single_run_has_undefined_precision(summary_factory):
    u = ct_uncertainty([summary_factory(1)], WSA, Constants())
    assert math.isnan(u.ct_std) and math.isnan(u.uct)
    with pytest.raises(ValueError):
        ct_uncertainty([], WSA, Constants())


def test_table_rows_per_bucket(summary_factory):
    groups = {
        7: [summary_factory(63, froude=0.23), summary_factory(64, froude=0.23, rtm=19.2),
            summary_factory(65, froude=0.31, speed=2.0, rtm=33.0)],
        8: [],
    }
    df = uncertainty_table(groups, {7: WSA, 8: 1.48}, Constants(), conditions=(7, 8))
    assert list(df.columns) == list(CTUncertainty.__dataclass_fields__)
    assert list(df["froude"]) == [0.23, 0.31]
    assert list(df["repeats"]) == [2, 1]
