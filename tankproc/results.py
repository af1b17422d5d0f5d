"""Per-run summary record and the 48-column results table contract.

Column order and count are read by downstream reporting and must not change.
Missing values are NaN in tables and ``None`` on the record, never 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
import math

import numpy as np
import pandas as pd

from .channels import CHANNELS, ChannelStats

# (name, unit); position i is table column i + 1.
RESULT_SCHEMA = [
    ("run", "-"),
    ("sampling_hz", "Hz"),
    ("n_samples", "-"),
    ("record_time_s", "s"),
    ("speed", "m/s"),
    ("fwd_lvdt", "mm"),
    ("aft_lvdt", "mm"),
    ("drag_g", "g"),
    ("rtm", "N"),
    ("ctm", "-"),
    ("froude", "-"),
    ("heave", "mm"),
    ("trim", "deg"),
    ("vfs", "m/s"),
    ("vfs_knots", "kn"),
    ("rem", "-"),
    ("cfm_ittc57", "-"),
    ("cfm_grigson", "-"),
    ("crm", "-"),
    ("pem", "W"),
    ("pbm", "W"),
    ("res", "-"),
    ("cfs_ittc57", "-"),
    ("cts", "-"),
    ("rts", "N"),
    ("pes", "W"),
    ("pbs", "W"),
    ("condition", "-"),
    ("speed_min", "m/s"), ("speed_max", "m/s"), ("speed_avg", "m/s"), ("speed_pct", "%"),
    ("fwd_min", "mm"), ("fwd_max", "mm"), ("fwd_avg", "mm"), ("fwd_pct", "%"),
    ("aft_min", "mm"), ("aft_max", "mm"), ("aft_avg", "mm"), ("aft_pct", "%"),
    ("drag_min", "g"), ("drag_max", "g"), ("drag_avg", "g"), ("drag_pct", "%"),
    ("speed_std", "m/s"),
    ("fwd_std", "mm"),
    ("aft_std", "mm"),
    ("drag_std", "g"),
]

RESULT_COLUMNS: List[str] = [name for name, _ in RESULT_SCHEMA]
CONDITION_COL = RESULT_COLUMNS.index("condition")   # 27, i.e. column 28
FROUDE_COL = RESULT_COLUMNS.index("froude")         # 10, i.e. column 11

_META = RESULT_COLUMNS[:4]
_SCALARS = RESULT_COLUMNS[4:27]
_STAT_PREFIX = {"speed": "speed", "fwd_lvdt": "fwd", "aft_lvdt": "aft", "drag": "drag"}


def _opt(v) -> Optional[float]:
    if v is None:
        return None
    v = float(v)
    return None if math.isnan(v) else v


def _nan(v) -> float:
    return math.nan if v is None else float(v)


@dataclass(frozen=True)
class RunSummary:
    """Reduced values of one run (or of a Froude bucket when averaged).

    Averaged records have no run metadata: ``run``, ``sampling_hz``,
    ``n_samples`` and ``record_time_s`` are ``None``.
    """

    run: Optional[int]
    sampling_hz: Optional[float]
    n_samples: Optional[int]
    record_time_s: Optional[float]
    speed: float
    fwd_lvdt: float
    aft_lvdt: float
    drag_g: float
    rtm: float
    ctm: float
    froude: float
    heave: float
    trim: float
    vfs: float
    vfs_knots: float
    rem: float
    cfm_ittc57: float
    cfm_grigson: float
    crm: float
    pem: float
    pbm: float
    res: float
    cfs_ittc57: float
    cts: float
    rts: float
    pes: float
    pbs: float
    condition: int
    speed_stats: ChannelStats
    fwd_stats: ChannelStats
    aft_stats: ChannelStats
    drag_stats: ChannelStats

    def channel_stats(self, channel: str) -> ChannelStats:
        return getattr(self, f"{_STAT_PREFIX[channel]}_stats")

    def to_row(self) -> List[float]:
        row = [_nan(getattr(self, c)) for c in _META]
        row += [float(getattr(self, c)) for c in _SCALARS]
        row.append(float(self.condition))
        for ch in CHANNELS:
            s = self.channel_stats(ch)
            row += [s.min, s.max, s.mean, s.pct_dev]
        row += [self.channel_stats(ch).std for ch in CHANNELS]
        return row

    @classmethod
    def from_row(cls, row: Sequence[float]) -> "RunSummary":
        vals = [float(v) for v in row]
        if len(vals) < len(RESULT_COLUMNS):
            raise ValueError(f"Results row needs {len(RESULT_COLUMNS)} values, got {len(vals)}")
        run, fs, n, t = (_opt(v) for v in vals[:4])
        stats = {}
        for i, ch in enumerate(CHANNELS):
            lo, hi, mean, pct = vals[28 + 4 * i: 32 + 4 * i]
            stats[ch] = ChannelStats(min=lo, max=hi, mean=mean, std=vals[44 + i], pct_dev=pct)
        return cls(
            run=None if run is None else int(run),
            sampling_hz=fs,
            n_samples=None if n is None else int(n),
            record_time_s=t,
            **dict(zip(_SCALARS, vals[4:27])),
            condition=int(vals[27]),
            speed_stats=stats["speed"],
            fwd_stats=stats["fwd_lvdt"],
            aft_stats=stats["aft_lvdt"],
            drag_stats=stats["drag"],
        )


def summaries_to_frame(summaries: Iterable[RunSummary]) -> pd.DataFrame:
    rows = [s.to_row() for s in summaries]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS, dtype=float)


def frame_to_summaries(df: pd.DataFrame) -> List[RunSummary]:
    """Inverse of :func:`summaries_to_frame`; columns are taken by position."""
    arr = df.to_numpy(dtype=float)
    if arr.ndim != 2 or arr.shape[1] < len(RESULT_COLUMNS):
        raise ValueError(f"Results table needs {len(RESULT_COLUMNS)} columns")
    return [RunSummary.from_row(r[: len(RESULT_COLUMNS)]) for r in arr]


def summaries_to_array(summaries: Iterable[RunSummary]) -> np.ndarray:
    rows = [s.to_row() for s in summaries]
    return np.asarray(rows, dtype=float).reshape(len(rows), len(RESULT_COLUMNS))
