"""
Resistance physics for one reduced run.

Model-scale quantities follow ITTC 1978 (2011) 7.5-02-03-01.4; friction lines
are ITTC'57 and Grigson. Full-scale extrapolation assumes CRs = CRm and adds
roughness, correlation and air-resistance allowances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import math

from .errors import InvalidSpeedError
from .presets import Condition, Constants, HullVariant
from .channels import ReducedChannels
from .results import RunSummary

# Linear fit of turbulence-stud drag [N] against Fr, from the two-speed stud tests.
TS_SLOPE = 3.1638
TS_OFFSET = -0.4031

GRIGSON_SWITCH_RE = 1e7


def froude_number(speed: float, lwl: float, gravity: float = 9.806) -> float:
    """Fr from speed rounded to 2 dp, itself rounded to 2 dp.

    Rounding makes repeats at the same nominal speed share one Fr bucket.
    """
    v = round(speed, 2)
    return round(v / math.sqrt(gravity * lwl), 2)


def reynolds_number(speed: float, length: float, kin_visc: float) -> float:
    return speed * length / kin_visc


def cf_ittc57(re: float) -> float:
    return 0.075 / (math.log10(re) - 2.0) ** 2


def cf_grigson(re: float) -> float:
    L = math.log10(math.log10(re))
    if re < GRIGSON_SWITCH_RE:
        return 10 ** (2.98651 - 10.8843 * L + 5.15283 * L ** 2)
    return 10 ** (-9.57459 + 26.6084 * L - 30.8285 * L ** 2 + 10.8914 * L ** 3)


def turbulence_stud_reduction(froude: float) -> float:
    """Stud drag [N] to subtract; 0 where the linear fit goes non-positive."""
    r = TS_SLOPE * froude + TS_OFFSET
    return r if r > 0 else 0.0


def heave(fwd_mm: float, aft_mm: float) -> float:
    return (fwd_mm + aft_mm) / 2.0


def trim_angle(fwd_mm: float, aft_mm: float, post_spacing_mm: float = 1150.0) -> float:
    """Running trim in degrees from the two LVDT posts."""
    return math.degrees(math.atan((fwd_mm - aft_mm) / post_spacing_mm))


@dataclass(frozen=True)
class FullScale:
    vfs: float
    vfs_knots: float
    res: float
    cfs_ittc57: float
    cfs_grigson: float
    roughness: float
    correlation: float
    air: float
    cts: float
    rts: float
    pes: float
    pbs: float


def full_scale_extrapolation(speed: float, crm: float, hull: HullVariant,
                             c: Constants) -> FullScale:
    fs = hull.full_scale(c.scale_ratio)
    vfs = speed * math.sqrt(c.scale_ratio)
    res = reynolds_number(vfs, fs.lwl, c.kin_visc_full)
    cfs = cf_grigson(res)
    roughness = 0.044 * ((c.hull_roughness_m / fs.lwl) ** (1 / 3) - 10 * res ** (-1 / 3)) + 0.000125
    correlation = (5.68 - 0.6 * math.log10(res)) * 1e-3
    air = c.air_drag_coeff * (c.rho_air * c.fs_projected_area_m2) / (c.rho_salt * fs.wsa)
    cts = c.form_factor * cfs + roughness + correlation + crm + air
    rts = 0.5 * c.rho_salt * vfs ** 2 * fs.wsa * cts
    pes = vfs * rts
    return FullScale(
        vfs=vfs,
        vfs_knots=vfs / c.knots_per_ms,
        res=res,
        cfs_ittc57=cf_ittc57(res),
        cfs_grigson=cfs,
        roughness=roughness,
        correlation=correlation,
        air=air,
        cts=cts,
        rts=rts,
        pes=pes,
        pbs=pes / c.prop_efficiency,
    )


def summarize_run(run: int, reduced: ReducedChannels, condition: Condition,
                  hull: HullVariant, c: Constants,
                  sampling_hz: Optional[float] = None) -> RunSummary:
    """Build the :class:`RunSummary` of one run from its reduced channels.

    ``sampling_hz`` defaults to ``round(n / t_end)`` from the time column.
    """
    n = int(reduced.time.size)
    t_end = float(reduced.time[-1]) if n else math.nan
    if sampling_hz is None:
        if not (t_end > 0):
            raise ValueError(f"Run {run}: cannot infer sampling rate from time column")
        sampling_hz = float(round(n / t_end))
    record_time = float(round(n / sampling_hz))

    m = reduced.full_mean
    speed = m["speed"]
    if not (math.isfinite(speed) and speed > 0):
        raise InvalidSpeedError(f"Run {run}: mean speed {speed} m/s is not positive")
    fwd, aft, drag = m["fwd_lvdt"], m["aft_lvdt"], m["drag"]
    fr = froude_number(speed, hull.lwl, c.gravity)

    rtm = drag / 1000.0 * c.gravity
    if condition.turbulence_correction:
        rtm -= turbulence_stud_reduction(fr)
    ctm = rtm / (0.5 * c.rho_fresh * hull.wsa * speed ** 2)

    rem = reynolds_number(speed, hull.lwl, c.kin_visc_model)
    cfm_g = cf_grigson(rem)
    crm = ctm - c.form_factor * cfm_g
    pem = speed * rtm
    full = full_scale_extrapolation(speed, crm, hull, c)

    st = reduced.stats
    return RunSummary(
        run=run,
        sampling_hz=sampling_hz,
        n_samples=n,
        record_time_s=record_time,
        speed=speed,
        fwd_lvdt=fwd,
        aft_lvdt=aft,
        drag_g=drag,
        rtm=rtm,
        ctm=ctm,
        froude=fr,
        heave=heave(fwd, aft),
        trim=trim_angle(fwd, aft, c.post_spacing_mm),
        vfs=full.vfs,
        vfs_knots=full.vfs_knots,
        rem=rem,
        cfm_ittc57=cf_ittc57(rem),
        cfm_grigson=cfm_g,
        crm=crm,
        pem=pem,
        pbm=pem / c.prop_efficiency,
        res=full.res,
        cfs_ittc57=full.cfs_ittc57,
        cts=full.cts,
        rts=full.rts,
        pes=full.pes,
        pbs=full.pbs,
        condition=condition.code,
        speed_stats=st["speed"],
        fwd_stats=st["fwd_lvdt"],
        aft_stats=st["aft_lvdt"],
        drag_stats=st["drag"],
    )
