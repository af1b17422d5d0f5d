"""
Sensor calibration fitter.

Each calibration file holds (value, voltage) pairs for one sensor. A straight
line value = slope * voltage + intercept is fitted by ordinary least squares
and scored by R^2, adjusted R^2, residual mean/stddev and the standard error
of estimate (SEE).

The 1x/2x/3x SEE bands are quoted as ~68/95/99 % confidence assuming normal
residuals. No Student-t correction is applied for the small point counts of
a calibration (n ~ 18); reports depend on these exact multipliers.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import math

import numpy as np
import pandas as pd

from .errors import InsufficientDataError, MissingFileError, UndefinedFitError
from .io import load_calibration_file

logger = logging.getLogger(__name__)

LOAD_CELL = 1
AFT_LVDT = 2
FWD_LVDT = 3

SENSOR_NAMES = {LOAD_CELL: "Load cell", AFT_LVDT: "Aft LVDT", FWD_LVDT: "Fwd LVDT"}

# 1-based calibration file index ranges per sensor type; must not overlap.
SENSOR_INDEX_RANGES: Dict[int, Tuple[int, int]] = {
    LOAD_CELL: (1, 7),
    AFT_LVDT: (8, 12),
    FWD_LVDT: (13, 17),
}

CALIBRATION_COLUMNS = [
    "index", "sensor_type", "mean_error", "stddev_error",
    "see", "see_2x", "see_3x",
    "intercept", "slope", "r2", "r2_adj",
    "intercept_raw", "slope_raw", "r2_raw", "r2_adj_raw",
]


def grams_to_newtons(grams, gravity: float = 9.806) -> np.ndarray:
    """N = g / 1000 * gravity."""
    return np.asarray(grams, dtype=float) / 1000.0 * gravity


def sensor_type_for_index(index: int) -> int:
    for sensor, (lo, hi) in SENSOR_INDEX_RANGES.items():
        if lo <= index <= hi:
            return sensor
    raise ValueError(f"Calibration file index {index} has no sensor type")


def _clean(x, y) -> Tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError("x and y must have the same length")
    mask = np.isfinite(x) & np.isfinite(y)
    return x[mask], y[mask]


def fit_linear(x, y) -> Tuple[float, float]:
    """Ordinary least-squares line ``y = slope * x + intercept``.

    Returns
    -------
    (slope, intercept)

    Raises
    ------
    InsufficientDataError
        Fewer than two finite points, or zero variance in ``x``.
    """
    x, y = _clean(x, y)
    if x.size < 2:
        raise InsufficientDataError(f"Need at least 2 points for a line, got {x.size}")
    xbar = float(np.mean(x))
    ybar = float(np.mean(y))
    Sxx = float(np.sum((x - xbar) ** 2))
    if Sxx == 0.0:
        raise InsufficientDataError("x has zero variance")
    Sxy = float(np.sum((x - xbar) * (y - ybar)))
    slope = Sxy / Sxx
    intercept = ybar - slope * xbar
    return slope, intercept


def _residuals(x, y, slope: float, intercept: float) -> np.ndarray:
    return y - (slope * x + intercept)


def goodness_of_fit(x, y, slope: float, intercept: float) -> Tuple[float, float]:
    """Return ``(r2, r2_adj)`` for a two-parameter line.

    ``SStotal = (n - 1) * var(y)``; adjusted R^2 uses ``(n - 1)/(n - 2)`` and
    is NaN when ``n <= 2``.
    """
    x, y = _clean(x, y)
    n = x.size
    if n < 2:
        raise InsufficientDataError(f"Need at least 2 points, got {n}")
    ss_resid = float(np.sum(_residuals(x, y, slope, intercept) ** 2))
    ss_total = (n - 1) * float(np.var(y, ddof=1))
    if ss_total == 0.0:
        raise UndefinedFitError("Total sum of squares is zero (constant y)")
    r2 = 1.0 - ss_resid / ss_total
    r2_adj = 1.0 - ss_resid / ss_total * (n - 1) / (n - 2) if n > 2 else math.nan
    return r2, r2_adj


def residual_stats(x, y, slope: float, intercept: float) -> Tuple[float, float]:
    """Mean and sample stddev of ``y - (slope * x + intercept)``."""
    x, y = _clean(x, y)
    if x.size < 2:
        raise InsufficientDataError(f"Need at least 2 points, got {x.size}")
    r = _residuals(x, y, slope, intercept)
    return float(np.mean(r)), float(np.std(r, ddof=1))


def _sse(x, y, slope: float, intercept: float) -> float:
    return float(np.sum(_residuals(x, y, slope, intercept) ** 2))


def _see(sse: float, n: int) -> float:
    if n < 3:
        raise InsufficientDataError(f"Need at least 3 points for SEE, got {n}")
    return math.sqrt(sse / (n - 2))


def sum_squared_errors(x, y) -> float:
    slope, intercept = fit_linear(x, y)
    x, y = _clean(x, y)
    return _sse(x, y, slope, intercept)


def standard_error(x, y) -> float:
    """Residual standard error ``sqrt(SSE / (n - 2))`` of the OLS line."""
    x, y = _clean(x, y)
    return _see(sum_squared_errors(x, y), x.size)


@dataclass(frozen=True)
class CalibrationFit:
    index: int
    sensor_type: int
    n_points: int
    slope: float
    intercept: float
    r2: float
    r2_adj: float
    mean_error: float
    stddev_error: float
    sse: float
    see: float
    # Fit against the raw file value (grams for the load cell).
    slope_raw: float
    intercept_raw: float
    r2_raw: float
    r2_adj_raw: float
    source: Optional[str] = None

    @property
    def see_bands(self) -> Tuple[float, float, float]:
        """1x, 2x, 3x SEE (~68 %, ~95 %, ~99 % under normality)."""
        return self.see, 2.0 * self.see, 3.0 * self.see

    def to_row(self) -> List[float]:
        return [
            self.index, self.sensor_type, self.mean_error, self.stddev_error,
            *self.see_bands,
            self.intercept, self.slope, self.r2, self.r2_adj,
            self.intercept_raw, self.slope_raw, self.r2_raw, self.r2_adj_raw,
        ]

    def to_dict(self) -> dict:
        d = asdict(self)
        d["see_2x"], d["see_3x"] = self.see_bands[1:]
        return d


def fit_calibration(voltage, value, *, index: int, sensor_type: Optional[int] = None,
                    gravity: float = 9.806, source: Optional[str] = None) -> CalibrationFit:
    """Fit one calibration file.

    Load-cell values are converted from grams to newtons before the main fit;
    LVDT values are fitted in millimetres as read. The raw-value fit is kept
    alongside for comparison.
    """
    if sensor_type is None:
        sensor_type = sensor_type_for_index(index)
    v, raw = _clean(voltage, value)
    physical = grams_to_newtons(raw, gravity) if sensor_type == LOAD_CELL else raw

    slope, intercept = fit_linear(v, physical)
    r2, r2_adj = goodness_of_fit(v, physical, slope, intercept)
    mean_err, std_err = residual_stats(v, physical, slope, intercept)
    sse = _sse(v, physical, slope, intercept)
    see = _see(sse, v.size)

    slope_raw, intercept_raw = fit_linear(v, raw)
    r2_raw, r2_adj_raw = goodness_of_fit(v, raw, slope_raw, intercept_raw)

    return CalibrationFit(
        index=index,
        sensor_type=sensor_type,
        n_points=int(v.size),
        slope=slope,
        intercept=intercept,
        r2=r2,
        r2_adj=r2_adj,
        mean_error=mean_err,
        stddev_error=std_err,
        sse=sse,
        see=see,
        slope_raw=slope_raw,
        intercept_raw=intercept_raw,
        r2_raw=r2_raw,
        r2_adj_raw=r2_adj_raw,
        source=source,
    )


def fit_calibration_files(paths: Sequence[Path | str], *, gravity: float = 9.806
                          ) -> Tuple[List[CalibrationFit], List[dict]]:
    """Fit an ordered list of calibration files.

    File position (1-based) fixes the sensor type. Missing files and failed
    fits are logged and returned in the skip list; the rest of the batch
    continues.
    """
    fits: List[CalibrationFit] = []
    skipped: List[dict] = []
    for index, path in enumerate(paths, start=1):
        try:
            sensor = sensor_type_for_index(index)
            samples = load_calibration_file(path)
            fit = fit_calibration(
                samples["voltage"], samples["value"],
                index=index, sensor_type=sensor, gravity=gravity, source=str(path),
            )
        except MissingFileError as e:
            logger.warning("Calibration file %d missing, skipped: %s", index, e)
            skipped.append({"index": index, "path": str(path), "reason": str(e)})
            continue
        except (InsufficientDataError, UndefinedFitError, ValueError) as e:
            logger.error("Calibration file %d not fitted: %s", index, e)
            skipped.append({"index": index, "path": str(path), "reason": str(e)})
            continue
        logger.info("Calibration %d (%s): slope=%.5g r2=%.6f SEE=%.4g",
                    index, SENSOR_NAMES[sensor], fit.slope, fit.r2, fit.see)
        fits.append(fit)
    return fits, skipped


def partition_by_sensor(fits: Iterable[CalibrationFit]) -> Dict[int, List[CalibrationFit]]:
    """Group fits by sensor type; every known type is present, possibly empty."""
    out: Dict[int, List[CalibrationFit]] = {s: [] for s in SENSOR_INDEX_RANGES}
    for fit in fits:
        out[fit.sensor_type].append(fit)
    return out


def calibration_table(fits: Iterable[CalibrationFit]) -> pd.DataFrame:
    rows = [f.to_row() for f in fits]
    return pd.DataFrame(rows, columns=CALIBRATION_COLUMNS)
