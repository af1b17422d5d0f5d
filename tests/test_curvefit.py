import numpy as np
import pandas as pd
import pytest

from tankproc.curvefit import (
    PolynomialFit,
    extremum,
    fit_condition,
    fit_condition_pair,
    polyeval,
    polyfit,
)
from tankproc.errors import IllConditionedFitError, InsufficientDataError


def test_exact_interpolation_with_degree_n_minus_one():
    x = np.array([0.15, 0.2, 0.25, 0.3, 0.35])
    y = np.array([-2.0, -4.5, -8.2, -10.1, -9.0])
    coeffs = polyfit(x, y, 4)
    assert np.allclose(polyeval(coeffs, x), y, atol=1e-8)


def test_degree_too_high_for_distinct_points():
    with pytest.raises(IllConditionedFitError):
        polyfit([0.2, 0.2, 0.3], [1.0, 1.1, 2.0], 2)
    with pytest.raises(InsufficientDataError):
        polyfit([], [], 1)


def test_extremum_on_sampled_domain():
    coeffs = [1.0, -0.6, 0.0]          # (x - 0.3)^2 - 0.09
    x, y = extremum(coeffs, [0.1, 0.2, 0.3, 0.4])
    assert x == 0.3 and np.isclose(y, -0.09)
    x, _ = extremum(coeffs, [0.1, 0.2, 0.3, 0.4], kind="max")
    assert x == 0.1


def test_polynomial_fit_to_dict():
    pf = PolynomialFit.fit([0.1, 0.2, 0.3], [-1.0, -3.0, -2.0], 2)
    d = pf.to_dict()
    assert d["degree"] == 2
    assert len(d["coefficients"]) == 3
    assert d["x_at_min"] == 0.2
    assert np.isclose(d["y_min"], -3.0)


def _minmax(fr, lo, hi):
    lo, hi = np.asarray(lo), np.asarray(hi)
    return pd.DataFrame({"froude": fr, "heave_min": lo, "heave_max": hi,
                         "heave_mid": (lo + hi) / 2})


def test_fit_condition_records_failures():
    mm = _minmax([0.2, 0.3], [-5.0, -9.0], [-4.0, -8.0])
    out = fit_condition(mm, 7, degree=7)
    assert out.avg is None and out.min is None
    assert set(out.errors) == {"avg", "min"}
    ok = fit_condition(mm, 7, degree=1)
    assert ok.avg is not None and ok.errors == {}
    assert np.allclose(ok.min.y_hat, [-5.0, -9.0])


def test_fit_pair_with_empty_condition():
    mm = {8: _minmax([0.2, 0.25, 0.3, 0.35, 0.4], [-3, -5, -8, -9, -8.5], [-2, -4, -7, -8, -7.5])}
    fits = fit_condition_pair(mm, (8, 11), 4)
    assert fits[8].avg is not None
    assert fits[11].avg is None
    assert fits[11].errors["avg"] == "no data"
    assert fits[11].to_dict()["min"] is None
