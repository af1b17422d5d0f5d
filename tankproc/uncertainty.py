"""
Resistance-test uncertainty per Froude bucket (ITTC 7.5-02-02-02).

For each bucket of repeat runs the total resistance coefficient CT is
computed per run. The bias limit B_CT combines wetted surface, speed,
resistance (mass calibration) and density/temperature terms through their
sensitivity coefficients; the precision limit is P_CT = k * S_CT / sqrt(M)
with k = 2 and M repeats. The total is U_CT = sqrt(B_CT^2 + S_CT^2).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List
import math

import pandas as pd

from .aggregate import partition_by_froude
from .presets import Constants
from .results import RunSummary


@dataclass(frozen=True)
class BiasInputs:
    wsa_frac: float = 0.005                      # wetted surface, fraction of S
    speed_ms: float = 0.003                      # carriage speed
    mass_kg: tuple = (6.847e-6, 7.174e-6, 8.384e-4, 0.0)  # weight calibration terms
    water_temp_C: float = 0.2
    density: float = 1.0
    coverage_k: float = 2.0
    ref_temp_C: float = 15.0


@dataclass(frozen=True)
class CTUncertainty:
    condition: int
    froude: float
    first_run: int
    repeats: int
    ct_mean: float
    ct_std: float
    rx: float
    mx: float
    bs: float
    bs_pct: float
    bv: float
    bv_pct: float
    bmx: float
    bmx_pct: float
    btw: float
    btw_pct: float
    brho: float
    brho_pct: float
    theta_s: float
    theta_v: float
    theta_mx: float
    theta_rho: float
    theta_rho_tw: float
    bct: float
    bct_pct: float
    pct: float
    pct_pct: float
    uct: float
    uct_pct: float
    bias_share: float
    precision_share: float


def ct_uncertainty(bucket: Iterable[RunSummary], wsa: float, c: Constants,
                   bias: BiasInputs = BiasInputs()) -> CTUncertainty:
    """Uncertainty of CT for one bucket of repeats on a hull with wetted area ``wsa``."""
    runs = sorted(bucket, key=lambda s: s.run if s.run is not None else 0)
    if not runs:
        raise ValueError("Empty bucket")
    rho = c.rho_fresh
    g = c.gravity
    v = runs[0].speed
    cts = [2.0 * s.rtm / (rho * wsa * s.speed ** 2) for s in runs]
    m = len(cts)
    ct_mean = math.fsum(cts) / m
    if m > 1:
        ct_std = math.sqrt(math.fsum((x - ct_mean) ** 2 for x in cts) / (m - 1))
    else:
        ct_std = math.nan

    rx = ct_mean * 0.5 * rho * wsa * v ** 2
    mx = rx / g

    bs1 = wsa * bias.wsa_frac
    bs = math.hypot(bs1, bs1 / 2.0)
    bv = bias.speed_ms
    bmx = math.sqrt(math.fsum(t ** 2 for t in bias.mass_kg))
    btw = bias.water_temp_C
    brho = bias.density

    theta_s = rx / (0.5 * rho * v ** 2) * (-1.0 / wsa ** 2)
    theta_v = rx / (0.5 * rho * wsa) * (-2.0 / v ** 3)
    theta_mx = g / (0.5 * rho * v ** 2 * wsa)
    theta_rho = rx / (0.5 * v ** 2 * wsa) * (-1.0 / rho ** 2)
    t = bias.ref_temp_C
    theta_rho_tw = abs(0.0638 - 0.0173 * t + 0.000189 * t ** 2)

    bct = math.sqrt(
        (bs * theta_s) ** 2
        + (bv * theta_v) ** 2
        + (bmx * theta_mx) ** 2
        + (theta_rho * (brho + btw * theta_rho_tw)) ** 2
    )
    pct = bias.coverage_k * ct_std / math.sqrt(m)
    uct = math.sqrt(bct ** 2 + ct_std ** 2)

    return CTUncertainty(
        condition=runs[0].condition,
        froude=runs[0].froude,
        first_run=runs[0].run if runs[0].run is not None else -1,
        repeats=m,
        ct_mean=ct_mean,
        ct_std=ct_std,
        rx=rx,
        mx=mx,
        bs=bs,
        bs_pct=bs / wsa * 100.0,
        bv=bv,
        bv_pct=bv / v * 100.0,
        bmx=bmx,
        bmx_pct=bmx / mx * 100.0,
        btw=btw,
        btw_pct=btw / c.tank_temp_C * 100.0,
        brho=brho,
        brho_pct=brho / rho * 100.0,
        theta_s=theta_s,
        theta_v=theta_v,
        theta_mx=theta_mx,
        theta_rho=theta_rho,
        theta_rho_tw=theta_rho_tw,
        bct=bct,
        bct_pct=bct / ct_mean * 100.0,
        pct=pct,
        pct_pct=pct / ct_mean * 100.0,
        uct=uct,
        uct_pct=uct / ct_mean * 100.0,
        bias_share=bct ** 2 / uct ** 2 * 100.0,
        precision_share=pct ** 2 / uct ** 2 * 100.0,
    )


def uncertainty_table(groups: Dict[int, List[RunSummary]], wsa_by_condition: Dict[int, float],
                      c: Constants, conditions: Iterable[int] = (7, 8, 9, 10, 11, 12),
                      bias: BiasInputs = BiasInputs()) -> pd.DataFrame:
    """One row per (condition, Froude bucket) for the requested conditions."""
    rows = []
    for code in conditions:
        for bucket in partition_by_froude(groups.get(code, [])).values():
            rows.append(asdict(ct_uncertainty(bucket, wsa_by_condition[code], c, bias)))
    cols = list(CTUncertainty.__dataclass_fields__)
    return pd.DataFrame(rows, columns=cols)
