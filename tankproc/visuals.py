from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt

from .calibration import CalibrationFit, SENSOR_NAMES
from .curvefit import ConditionFits
from .results import RunSummary


def plot_fit_overlay(outdir: Path, runs: Dict[int, List[RunSummary]],
                     minmax: Dict[int, pd.DataFrame], fits: Dict[int, ConditionFits],
                     title: str = "Heave vs Froude number", stem: str = "heave_fit") -> str:
    """Raw repeats, bucket midpoints and fitted curves for each condition."""
    outdir.mkdir(parents=True, exist_ok=True)
    fig = plt.figure(figsize=(9, 4.5))
    for code, fit in fits.items():
        raw = runs.get(code, [])
        if raw:
            plt.plot([s.froude for s in raw], [s.heave for s in raw], "x", alpha=0.4,
                     label=f"Cond. {code} runs")
        mm = minmax.get(code)
        if mm is not None and not mm.empty:
            plt.plot(mm["froude"], mm["heave_mid"], "o", label=f"Cond. {code} averaged")
            plt.fill_between(mm["froude"], mm["heave_min"], mm["heave_max"], alpha=0.15)
        if fit.avg is not None:
            xs = np.linspace(fit.avg.x.min(), fit.avg.x.max(), 200)
            plt.plot(xs, np.polyval(fit.avg.coefficients, xs), "-",
                     label=f"Cond. {code} fit (deg {fit.avg.degree})")
        if fit.min is not None:
            xs = np.linspace(fit.min.x.min(), fit.min.x.max(), 200)
            plt.plot(xs, np.polyval(fit.min.coefficients, xs), "--",
                     label=f"Cond. {code} min fit")
    plt.xlabel("Froude length number Fr (-)")
    plt.ylabel("Heave (mm)")
    plt.legend(fontsize=7)
    plt.title(title)
    p = outdir / f"{stem}.png"
    fig.tight_layout()
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return str(p)


def plot_calibration_errors(outdir: Path, fits: List[CalibrationFit],
                            stem: str = "calibration_see", title: Optional[str] = None) -> str:
    """1/2/3 SEE per calibration file, grouped by sensor."""
    outdir.mkdir(parents=True, exist_ok=True)
    fig = plt.figure(figsize=(9, 4.5))
    idx = np.array([f.index for f in fits], dtype=float)
    for mult, marker in ((0, "o"), (1, "s"), (2, "^")):
        plt.plot(idx, [f.see_bands[mult] for f in fits], marker, linestyle="none",
                 label=f"{mult + 1} x SEE")
    for sensor, name in SENSOR_NAMES.items():
        xs = [f.index for f in fits if f.sensor_type == sensor]
        if xs:
            plt.axvspan(min(xs) - 0.5, max(xs) + 0.5, alpha=0.08)
            plt.text((min(xs) + max(xs)) / 2, 0.02, name, ha="center", va="bottom",
                     fontsize=8, transform=plt.gca().get_xaxis_transform())
    plt.xlabel("Calibration file")
    plt.ylabel("Standard error (N or mm)")
    plt.legend()
    plt.title(title or "Calibration standard error of estimate")
    p = outdir / f"{stem}.png"
    fig.tight_layout()
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return str(p)
