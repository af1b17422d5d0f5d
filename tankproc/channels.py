from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Sequence
import math

import numpy as np
import pandas as pd

from .errors import CalibrationRecordError, InsufficientSamplesError

# DAQ channel order in a run file (after the time column).
CHANNELS = ("speed", "fwd_lvdt", "aft_lvdt", "drag")
CHANNEL_UNITS = {"speed": "m/s", "fwd_lvdt": "mm", "aft_lvdt": "mm", "drag": "g"}

# LVDTs sit close to zero, so their plateau deviation is taken against the range.
_PCT_BASIS = {"speed": "max", "fwd_lvdt": "range", "aft_lvdt": "range", "drag": "max"}


@dataclass(frozen=True)
class ChannelStats:
    min: float
    max: float
    mean: float
    std: float       # population (ddof=0)
    pct_dev: float   # percent


@dataclass(frozen=True)
class CalibrationRecord:
    """Zero offset and calibration factor per channel, read from a run header."""

    time_zero: float
    time_factor: float
    zeros: Dict[str, float]
    factors: Dict[str, float]

    @classmethod
    def from_header(cls, values: Sequence[float]) -> "CalibrationRecord":
        """Build from the ten header numbers ``[t0, tCF, z0, CF0, ..., z3, CF3]``."""
        vals = [float(v) for v in values]
        if len(vals) < 10:
            raise CalibrationRecordError(
                f"Expected 10 zero/calibration-factor values, got {len(vals)}")
        if not all(math.isfinite(v) for v in vals[:10]):
            raise CalibrationRecordError("Non-finite zero/calibration-factor value")
        zeros = {ch: vals[2 + 2 * i] for i, ch in enumerate(CHANNELS)}
        factors = {ch: vals[3 + 2 * i] for i, ch in enumerate(CHANNELS)}
        bad = [ch for ch, f in factors.items() if f == 0.0]
        if bad:
            raise CalibrationRecordError(f"Zero calibration factor for {', '.join(bad)}")
        return cls(time_zero=vals[0], time_factor=vals[1], zeros=zeros, factors=factors)


def to_physical(raw, zero: float, factor: float) -> np.ndarray:
    """``physical = (raw - zero) * factor``."""
    return (np.asarray(raw, dtype=float) - zero) * factor


def trim(series, start_cut: int, end_cut: int) -> np.ndarray:
    """Drop ``start_cut`` leading and ``end_cut`` trailing samples."""
    if start_cut < 0 or end_cut < 0:
        raise ValueError("Trim counts must be non-negative")
    s = np.asarray(series)
    stop = len(s) - end_cut
    if stop - start_cut <= 0:
        raise InsufficientSamplesError(
            f"Trim window {start_cut}+{end_cut} leaves no samples of {len(s)}")
    return s[start_cut:stop]


def reduce(series, pct_basis: Literal["max", "range"] = "max") -> ChannelStats:
    """Summary statistics of an already trimmed series.

    ``pct_dev = (max - mean) / max * 100``. With ``pct_basis="range"`` the
    deviation is ``|max - mean| / |max - min| * 100``. An undefined ratio
    (zero denominator) is NaN.
    """
    x = np.asarray(series, dtype=float)
    if x.size == 0:
        raise InsufficientSamplesError("Cannot reduce an empty series")
    lo = float(np.min(x))
    hi = float(np.max(x))
    mean = math.fsum(x) / x.size
    std = float(np.sqrt(math.fsum((x - mean) ** 2) / x.size))
    if pct_basis == "max":
        denom = hi
        num = hi - mean
    elif pct_basis == "range":
        denom = abs(hi - lo)
        num = abs(hi - mean)
    else:
        raise ValueError(f"Unsupported pct_basis: {pct_basis}")
    pct = num / denom * 100.0 if denom != 0 else math.nan
    return ChannelStats(min=lo, max=hi, mean=mean, std=std, pct_dev=pct)


def zero_row_filter(table):
    """Remove rows whose every value is zero.

    Accepts a 2-D array or a DataFrame and returns the same type. All-zero rows
    are placeholders for runs that were never recorded.
    """
    if isinstance(table, pd.DataFrame):
        keep = table.fillna(0).ne(0).any(axis=1)
        return table.loc[keep]
    arr = np.asarray(table, dtype=float)
    if arr.ndim != 2:
        raise ValueError("zero_row_filter expects a 2-D table")
    keep = np.any(np.nan_to_num(arr) != 0, axis=1)
    return arr[keep]


@dataclass(frozen=True)
class ReducedChannels:
    """Real-unit series and trimmed statistics for the four DAQ channels."""

    time: np.ndarray
    physical: Dict[str, np.ndarray]
    volts: Dict[str, np.ndarray]
    full_mean: Dict[str, float]
    stats: Dict[str, ChannelStats]

    def time_series_frame(self) -> pd.DataFrame:
        """Nine-column per-sample table: time, real units, zero-corrected volts."""
        cols = {"time_s": self.time}
        for ch in CHANNELS:
            cols[f"{ch}_{CHANNEL_UNITS[ch].replace('/', 'p')}"] = self.physical[ch]
        for ch in CHANNELS:
            cols[f"{ch}_V"] = self.volts[ch]
        return pd.DataFrame(cols)


def reduce_channels(raw: pd.DataFrame, calib: CalibrationRecord,
                    start_cut: int, end_cut: int) -> ReducedChannels:
    """Convert raw run columns to real units and reduce each channel.

    ``raw`` needs a ``time`` column and one column per entry of ``CHANNELS``.
    Full-record means feed the run averages; statistics use the trimmed window.
    """
    time = raw["time"].to_numpy(dtype=float)
    physical: Dict[str, np.ndarray] = {}
    volts: Dict[str, np.ndarray] = {}
    full_mean: Dict[str, float] = {}
    stats: Dict[str, ChannelStats] = {}
    for ch in CHANNELS:
        series = raw[ch].to_numpy(dtype=float)
        phys = to_physical(series, calib.zeros[ch], calib.factors[ch])
        physical[ch] = phys
        volts[ch] = to_physical(series, calib.zeros[ch], 1.0)
        full_mean[ch] = math.fsum(phys) / phys.size if phys.size else math.nan
        stats[ch] = reduce(trim(phys, start_cut, end_cut), pct_basis=_PCT_BASIS[ch])
    return ReducedChannels(time=time, physical=physical, volts=volts,
                           full_mean=full_mean, stats=stats)
