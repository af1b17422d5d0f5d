"""Batch orchestrator (reduce -> aggregate -> fit -> uncertainty -> report)."""


from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import json
import logging

import pandas as pd

from .aggregate import averaged_table, minmax_table, partition_by_condition
from .calibration import calibration_table, fit_calibration_files
from .curvefit import ConditionFits, fit_condition_pair
from .errors import (
    CalibrationRecordError,
    InsufficientSamplesError,
    InvalidSpeedError,
    MissingFileError,
    UnmappedRunError,
)
from .hydro import summarize_run
from .io import load_run_file, run_file_path, write_table, write_time_series
from .presets import CampaignConfig
from .channels import reduce_channels, zero_row_filter
from .results import RunSummary, frame_to_summaries, summaries_to_frame
from .uncertainty import uncertainty_table

logger = logging.getLogger(__name__)


def reduce_run(path: Path | str, run: int, cfg: CampaignConfig,
               ts_dir: Optional[Path] = None) -> RunSummary:
    """Load, convert, trim and summarise one run file.

    Raises the per-run errors unchanged; :func:`reduce_runs` decides what to skip.
    """
    cond = cfg.condition_for_run(run)
    if cond is None:
        raise UnmappedRunError(f"Run {run} is not in any condition range")
    raw = load_run_file(path)
    reduced = reduce_channels(raw.samples, raw.calib, cfg.trim_start, cfg.trim_end)
    if ts_dir is not None:
        write_time_series(reduced.time_series_frame(), ts_dir, run)
    return summarize_run(run, reduced, cond, cfg.hulls[cond.hull], cfg.constants)


def reduce_runs(cfg: CampaignConfig) -> Tuple[List[RunSummary], List[Dict[str, Any]]]:
    """Reduce every run in ``cfg.first_run..cfg.last_run``.

    A missing file is a warning. A malformed calibration record, a record
    shorter than the trim window, a non-positive mean speed or an unmapped
    run number is an error for that run only. Each skip is returned with its reason.
    """
    ts_dir = Path(cfg.output_dir) / "time_series" if cfg.write_time_series else None
    summaries: List[RunSummary] = []
    skipped: List[Dict[str, Any]] = []
    for run in range(cfg.first_run, cfg.last_run + 1):
        path = run_file_path(cfg.run_dir, run)
        try:
            summary = reduce_run(path, run, cfg, ts_dir)
        except MissingFileError as e:
            logger.warning("Run %d skipped, file missing: %s", run, e)
            skipped.append({"run": run, "reason": "missing", "detail": str(e)})
            continue
        except (CalibrationRecordError, InsufficientSamplesError, InvalidSpeedError,
                UnmappedRunError, ValueError) as e:
            logger.error("Run %d skipped: %s", run, e)
            skipped.append({"run": run, "reason": type(e).__name__, "detail": str(e)})
            continue
        logger.info("Run %d: cond %d Fr=%.2f Rtm=%.3f N heave=%.2f mm trim=%.3f deg",
                    run, summary.condition, summary.froude, summary.rtm,
                    summary.heave, summary.trim)
        summaries.append(summary)
    return summaries, skipped


def aggregate(summaries: List[RunSummary], cfg: CampaignConfig) -> Dict[str, Any]:
    """Group by condition and build averaged and min/max tables per condition."""
    codes = [c.code for c in cfg.conditions]
    groups = partition_by_condition(summaries, codes)
    averaged = {code: averaged_table(runs) for code, runs in groups.items()}
    minmax = {code: minmax_table(runs) for code, runs in groups.items()}
    return {"groups": groups, "averaged": averaged, "minmax": minmax}


def fit(minmax: Dict[int, pd.DataFrame], cfg: CampaignConfig) -> Dict[int, ConditionFits]:
    fits: Dict[int, ConditionFits] = {}
    for a, b, degree in cfg.fit_pairs:
        fits.update(fit_condition_pair(minmax, (a, b), degree))
    return fits


def uncertainty(groups: Dict[int, List[RunSummary]], cfg: CampaignConfig) -> pd.DataFrame:
    wsa = {code: cfg.hull_for(code).wsa for code in cfg.uncertainty_conditions}
    return uncertainty_table(groups, wsa, cfg.constants, cfg.uncertainty_conditions)


def report(outdir: Path, agg: Dict[str, Any], fits: Dict[int, ConditionFits],
           ua: pd.DataFrame, cfg: CampaignConfig) -> Dict[str, Any]:
    """Persist grouped tables, fits and optional plots."""
    files: Dict[str, Any] = {"averaged": {}, "minmax": {}}
    for code, df in agg["averaged"].items():
        if not df.empty:
            files["averaged"][code] = write_table(
                df, outdir / "conditions" / f"cond{code:02d}_avg.csv",
                outdir / "conditions" / f"cond{code:02d}_avg.txt")
    for code, df in agg["minmax"].items():
        if not df.empty:
            files["minmax"][code] = write_table(
                df, outdir / "conditions" / f"cond{code:02d}_minmax.csv")
    files["uncertainty"] = write_table(ua, outdir / "uncertainty.csv", outdir / "uncertainty.txt")
    fits_path = outdir / "fits.json"
    fits_path.write_text(json.dumps({str(k): v.to_dict() for k, v in fits.items()}, indent=2))
    files["fits"] = str(fits_path)
    if cfg.plots:
        from .visuals import plot_fit_overlay

        plots = []
        for a, b, _ in cfg.fit_pairs:
            pair_fits = {c: fits[c] for c in (a, b) if c in fits}
            plots.append(plot_fit_overlay(
                outdir / "plots", agg["groups"], agg["minmax"], pair_fits,
                title=f"Heave vs Fr, conditions {a} and {b}", stem=f"heave_cond{a}_{b}"))
        files["plots"] = plots
    return files


def run_all(cfg: CampaignConfig) -> Dict[str, Any]:
    """Execute the full batch and write artefacts under ``cfg.output_dir``.

    Returns a JSON-serialisable summary that is also written to
    ``summary.json``.
    """
    outdir = Path(cfg.output_dir)
    outdir.mkdir(parents=True, exist_ok=True)
    logger.info("Reducing runs %d-%d from %s", cfg.first_run, cfg.last_run, cfg.run_dir)

    summaries, skipped = reduce_runs(cfg)
    results = zero_row_filter(summaries_to_frame(summaries))
    results_files = write_table(results, outdir / "results.csv", outdir / "results.txt")
    summaries = frame_to_summaries(results)

    agg = aggregate(summaries, cfg)
    fits = fit(agg["minmax"], cfg)
    ua = uncertainty(agg["groups"], cfg)
    files = report(outdir, agg, fits, ua, cfg)
    files["results"] = results_files

    summary = {
        "run_range": [cfg.first_run, cfg.last_run],
        "n_reduced": len(summaries),
        "skipped": skipped,
        "runs_per_condition": {str(k): len(v) for k, v in agg["groups"].items()},
        "fits": {str(k): v.to_dict() for k, v in fits.items()},
        "files": files,
    }
    (outdir / "summary.json").write_text(json.dumps(summary, indent=2, default=str))
    logger.info("Reduced %d runs, skipped %d", len(summaries), len(skipped))
    return summary


def aggregate_table(results: pd.DataFrame, cfg: CampaignConfig) -> Dict[str, Any]:
    """Aggregate and fit an existing 48-column results table."""
    summaries = frame_to_summaries(zero_row_filter(results))
    agg = aggregate(summaries, cfg)
    agg["fits"] = fit(agg["minmax"], cfg)
    return agg


def calibrate_all(cfg: CampaignConfig) -> Dict[str, Any]:
    """Fit every calibration file and write the sensor error table."""
    if not cfg.calib_dir:
        raise ValueError("calib_dir is not set")
    outdir = Path(cfg.output_dir)
    paths = [Path(cfg.calib_dir) / name for name in cfg.calib_files]
    fits, skipped = fit_calibration_files(paths, gravity=cfg.constants.gravity)
    files = write_table(calibration_table(fits),
                        outdir / "calibration.csv", outdir / "calibration.txt")
    if cfg.plots and fits:
        from .visuals import plot_calibration_errors

        files["plot"] = plot_calibration_errors(outdir / "plots", fits)
    return {
        "n_fitted": len(fits),
        "skipped": skipped,
        "fits": [f.to_dict() for f in fits],
        "files": files,
    }
