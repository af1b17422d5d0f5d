from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple
import math

import numpy as np
import pandas as pd

from .results import RESULT_COLUMNS, RunSummary, summaries_to_array, summaries_to_frame

CONDITION_CODES: Tuple[int, ...] = tuple(range(1, 14))

MINMAX_COLUMNS = [
    "condition", "froude",
    "heave_min", "heave_max", "heave_mid",
    "crm_x1000", "froude_mean",
    "trim_min", "trim_max", "trim_mid",
]


def _ordered(bucket: Iterable[RunSummary]) -> List[RunSummary]:
    # Sorted by run number; metadata-less records last.
    return sorted(bucket, key=lambda s: (s.run is None, s.run if s.run is not None else 0))


def _fsum_mean(arr: np.ndarray) -> np.ndarray:
    n = arr.shape[0]
    return np.array([math.fsum(arr[:, j]) / n for j in range(arr.shape[1])])


def _fsum_std(arr: np.ndarray, mean: np.ndarray) -> np.ndarray:
    n = arr.shape[0]
    if n < 2:
        return np.full(arr.shape[1], np.nan)
    return np.array([math.sqrt(math.fsum((arr[:, j] - mean[j]) ** 2) / (n - 1))
                     for j in range(arr.shape[1])])


def partition_by_condition(summaries: Iterable[RunSummary],
                           codes: Sequence[int] = CONDITION_CODES) -> Dict[int, List[RunSummary]]:
    """Stable partition keyed by condition code.

    Every code in ``codes`` is present, empty when no run carries it.
    """
    groups: Dict[int, List[RunSummary]] = {c: [] for c in codes}
    for s in summaries:
        if s.condition not in groups:
            raise ValueError(f"Run {s.run}: condition {s.condition} not in {list(codes)}")
        groups[s.condition].append(s)
    return groups


def partition_by_froude(group: Iterable[RunSummary]) -> Dict[float, List[RunSummary]]:
    """Bucket repeats by exact Froude number, buckets in ascending Fr."""
    buckets: Dict[float, List[RunSummary]] = {}
    for s in group:
        buckets.setdefault(s.froude, []).append(s)
    return {fr: buckets[fr] for fr in sorted(buckets)}


def _single_condition(bucket: Sequence[RunSummary]) -> int:
    codes = {s.condition for s in bucket}
    if len(codes) != 1:
        raise ValueError(f"Bucket mixes conditions {sorted(codes)}")
    return codes.pop()


def average(bucket: Iterable[RunSummary]) -> RunSummary:
    """Elementwise mean of every numeric field across a bucket.

    Run metadata (run, sampling rate, sample count, record time) has no
    meaningful mean and is left empty on the averaged record.
    """
    runs = _ordered(bucket)
    if not runs:
        raise ValueError("Cannot average an empty bucket")
    code = _single_condition(runs)
    arr = summaries_to_array(runs)
    mean = _fsum_mean(arr)
    mean[:4] = np.nan
    mean[RESULT_COLUMNS.index("condition")] = code
    mean[RESULT_COLUMNS.index("froude")] = runs[0].froude
    return RunSummary.from_row(mean)


@dataclass(frozen=True)
class GroupStatistic:
    """Repeat-run envelope of one Froude bucket.

    ``min``/``max``/``mean``/``std`` are Series indexed by ``RESULT_COLUMNS``.
    ``std`` is the sample stddev and NaN for a single run.
    """

    condition: int
    froude: float
    runs: Tuple[int, ...]
    min: pd.Series
    max: pd.Series
    mean: pd.Series
    std: pd.Series

    @property
    def n_runs(self) -> int:
        return len(self.runs)


def min_max_envelope(bucket: Iterable[RunSummary]) -> GroupStatistic:
    runs = _ordered(bucket)
    if not runs:
        raise ValueError("Cannot build an envelope from an empty bucket")
    code = _single_condition(runs)
    arr = summaries_to_array(runs)
    mean = _fsum_mean(arr)
    return GroupStatistic(
        condition=code,
        froude=runs[0].froude,
        runs=tuple(s.run for s in runs if s.run is not None),
        min=pd.Series(arr.min(axis=0), index=RESULT_COLUMNS),
        max=pd.Series(arr.max(axis=0), index=RESULT_COLUMNS),
        mean=pd.Series(mean, index=RESULT_COLUMNS),
        std=pd.Series(_fsum_std(arr, mean), index=RESULT_COLUMNS),
    )


def condition_envelopes(group: Iterable[RunSummary]) -> List[GroupStatistic]:
    """Envelopes of one condition in ascending Froude order."""
    return [min_max_envelope(b) for b in partition_by_froude(group).values()]


def averaged_table(group: Iterable[RunSummary]) -> pd.DataFrame:
    """One averaged row per Froude bucket plus the repeat count.

    Columns 45-48 of an averaged row are the mean of the per-run channel
    standard deviations.
    """
    buckets = partition_by_froude(group)
    df = summaries_to_frame(average(b) for b in buckets.values())
    df["repeats"] = [len(b) for b in buckets.values()]
    return df


def minmax_table(group: Iterable[RunSummary]) -> pd.DataFrame:
    """Heave/trim envelope per Froude bucket (mid = mean of min and max)."""
    rows = []
    for env in condition_envelopes(group):
        h_lo, h_hi = env.min["heave"], env.max["heave"]
        t_lo, t_hi = env.min["trim"], env.max["trim"]
        rows.append([
            env.condition, env.froude,
            h_lo, h_hi, (h_lo + h_hi) / 2.0,
            env.mean["crm"] * 1000.0, env.mean["froude"],
            t_lo, t_hi, (t_lo + t_hi) / 2.0,
        ])
    return pd.DataFrame(rows, columns=MINMAX_COLUMNS, dtype=float)
