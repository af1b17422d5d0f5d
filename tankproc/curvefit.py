from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from .errors import IllConditionedFitError, InsufficientDataError

logger = logging.getLogger(__name__)


def polyfit(x, y, degree: int) -> np.ndarray:
    """Least-squares polynomial coefficients, highest power first.

    Raises
    ------
    InsufficientDataError
        No finite points.
    IllConditionedFitError
        ``degree`` is not below the number of distinct ``x`` values.
    """
    if degree < 0:
        raise ValueError("degree must be >= 0")
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    m = np.isfinite(x) & np.isfinite(y)
    x, y = x[m], y[m]
    if x.size == 0:
        raise InsufficientDataError("No finite points to fit")
    distinct = np.unique(x).size
    if degree >= distinct:
        raise IllConditionedFitError(
            f"Degree {degree} needs more than {degree} distinct x values, got {distinct}")
    return np.polyfit(x, y, degree)


def polyeval(coefficients, x) -> np.ndarray:
    return np.polyval(np.asarray(coefficients, dtype=float), np.asarray(x, dtype=float))


def extremum(coefficients, domain, kind: Literal["min", "max"] = "min") -> Tuple[float, float]:
    """Extremum of the fitted curve over the sampled ``domain`` points.

    The curve is evaluated at the given abscissae only; there is no root
    finding between samples.
    """
    xs = np.asarray(domain, dtype=float)
    if xs.size == 0:
        raise InsufficientDataError("Empty domain")
    ys = polyeval(coefficients, xs)
    i = int(np.argmin(ys)) if kind == "min" else int(np.argmax(ys))
    return float(xs[i]), float(ys[i])


@dataclass(frozen=True)
class PolynomialFit:
    degree: int
    coefficients: np.ndarray
    x: np.ndarray
    y_hat: np.ndarray

    @classmethod
    def fit(cls, x, y, degree: int) -> "PolynomialFit":
        coeffs = polyfit(x, y, degree)
        xs = np.asarray(x, dtype=float)
        return cls(degree=degree, coefficients=coeffs, x=xs, y_hat=polyeval(coeffs, xs))

    def extremum(self, kind: Literal["min", "max"] = "min") -> Tuple[float, float]:
        return extremum(self.coefficients, self.x, kind)

    def to_dict(self) -> dict:
        x_min, y_min = self.extremum("min")
        return {
            "degree": self.degree,
            "coefficients": [float(c) for c in self.coefficients],
            "x": [float(v) for v in self.x],
            "y_hat": [float(v) for v in self.y_hat],
            "x_at_min": x_min,
            "y_min": y_min,
        }


@dataclass
class ConditionFits:
    """Heave fits of one condition against its min/max table."""

    condition: int
    avg: Optional[PolynomialFit] = None
    min: Optional[PolynomialFit] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "avg": self.avg.to_dict() if self.avg is not None else None,
            "min": self.min.to_dict() if self.min is not None else None,
            "errors": dict(self.errors),
        }


def fit_condition(minmax: pd.DataFrame, condition: int, degree: int) -> ConditionFits:
    """Fit heave bucket-midpoint and bucket-minimum series against Fr.

    A failed fit leaves that entry ``None`` and records the reason.
    """
    out = ConditionFits(condition=condition)
    x = minmax["froude"].to_numpy(dtype=float)
    for name, col in (("avg", "heave_mid"), ("min", "heave_min")):
        try:
            setattr(out, name, PolynomialFit.fit(x, minmax[col].to_numpy(dtype=float), degree))
        except (IllConditionedFitError, InsufficientDataError) as e:
            logger.warning("Condition %d %s heave fit (degree %d) failed: %s",
                           condition, name, degree, e)
            out.errors[name] = str(e)
    return out


def fit_condition_pair(minmax_by_condition: Dict[int, pd.DataFrame],
                       pair: Sequence[int], degree: int) -> Dict[int, ConditionFits]:
    """Fit both conditions of a displacement pair with the same degree."""
    out: Dict[int, ConditionFits] = {}
    for code in pair:
        table = minmax_by_condition.get(code)
        if table is None or table.empty:
            out[code] = ConditionFits(condition=code, errors={"avg": "no data", "min": "no data"})
            logger.warning("Condition %d has no runs to fit", code)
            continue
        out[code] = fit_condition(table, code, degree)
    return out
