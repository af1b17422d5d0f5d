from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Optional, Tuple
import json


@dataclass(frozen=True)
class Constants:
    """Physical constants and tank particulars for the campaign.

    Water properties follow the ITTC 7.5-02-01-03 (2008) tables at the
    measured tank temperature (model) and the assumed sea temperature
    (full scale).
    """

    gravity: float = 9.806                  # m/s^2
    kin_visc_model: float = 1.0411e-6       # m^2/s, fresh water 18.5 C
    kin_visc_full: float = 1.0711e-6        # m^2/s, salt water 19.2 C
    rho_fresh: float = 998.5048             # kg/m^3
    rho_salt: float = 1025.0187             # kg/m^3
    post_spacing_mm: float = 1150.0         # distance between carriage posts
    scale_ratio: float = 21.6               # full scale / model scale
    tank_length_m: float = 100.0
    tank_width_m: float = 3.5
    tank_depth_m: float = 1.45
    tank_temp_C: float = 17.5
    form_factor: float = 1.18               # (1 + k)
    correlation_allowance: float = 0.00035  # Ca
    air_drag_coeff: float = 0.446
    hull_roughness_m: float = 150e-6
    rho_air: float = 1.2041
    fs_projected_area_m2: float = 341.5 / 2
    prop_efficiency: float = 0.5            # brake power estimate
    knots_per_ms: float = 0.5144


@dataclass(frozen=True)
class HullVariant:
    """Model-scale particulars of one loading / static-trim configuration."""

    name: str
    lwl: float     # m
    wsa: float     # m^2
    draft: float   # m

    def full_scale(self, scale_ratio: float) -> "HullVariant":
        return HullVariant(
            name=self.name,
            lwl=self.lwl * scale_ratio,
            wsa=self.wsa * scale_ratio ** 2,
            draft=self.draft * scale_ratio,
        )


@dataclass(frozen=True)
class Condition:
    code: int
    first_run: int
    last_run: int
    description: str
    hull: str
    turbulence_correction: bool = False

    def contains(self, run: int) -> bool:
        return self.first_run <= run <= self.last_run

    @property
    def runs(self) -> range:
        return range(self.first_run, self.last_run + 1)


HULLS: Dict[str, HullVariant] = {
    h.name: h
    for h in (
        HullVariant("1500", 4.30, 1.501, 0.133),
        HullVariant("1500_bybow", 4.33, 1.48, 0.138),
        HullVariant("1500_bystern", 4.22, 1.52, 0.131),
        HullVariant("1500_prohaska", 3.78, 1.49, 0.133),
        HullVariant("1804", 4.22, 1.68, 0.153),
        HullVariant("1804_bybow", 4.31, 1.66, 0.157),
        HullVariant("1804_bystern", 4.11, 1.70, 0.151),
    )
}

# Turbulence-stud drag is subtracted for conditions 4-12 only.
CONDITIONS: Tuple[Condition, ...] = (
    Condition(1, 1, 15, "Turb-studs: bare hull", "1500"),
    Condition(2, 16, 25, "Turb-studs: 1st row", "1500"),
    Condition(3, 26, 35, "Turb-studs: 1st and 2nd row", "1500"),
    Condition(4, 36, 44, "Trim-tab: 5 deg, level static trim", "1500", True),
    Condition(5, 45, 53, "Trim-tab: 0 deg, level static trim", "1500", True),
    Condition(6, 54, 62, "Trim-tab: 10 deg, level static trim", "1500", True),
    Condition(7, 63, 141, "Resistance: 1,500t, level", "1500", True),
    Condition(8, 142, 156, "Resistance: 1,500t, -0.5 deg by bow", "1500_bybow", True),
    Condition(9, 157, 171, "Resistance: 1,500t, 0.5 deg by stern", "1500_bystern", True),
    Condition(10, 172, 201, "Resistance: 1,804t, level", "1804", True),
    Condition(11, 202, 216, "Resistance: 1,804t, -0.5 deg by bow", "1804_bybow", True),
    Condition(12, 217, 231, "Resistance: 1,804t, 0.5 deg by stern", "1804_bystern", True),
    Condition(13, 232, 249, "Prohaska: 1,500t, deep transom", "1500_prohaska"),
)

# Ordered calibration files; position fixes the sensor type (1-7 load cell,
# 8-12 aft LVDT, 13-17 fwd LVDT).
CALIBRATION_FILES: Tuple[str, ...] = (
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 270813_67.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 280813_68.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 290813_69.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 300813_70.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 020913_72.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 030913_73.cal",
    "03_Ch3 Force Trans Gain 2x10 Filter 1Hz 050913_76.cal",
    "02_Ch2_AftLVDT Gain 2.5 Filter 1Hz280813_36.cal",
    "02_Ch2_AftLVDT Gain 2.5 Filter 1Hz290813_37.cal",
    "02_Ch2_AftLVDT Gain 2.5 Filter 1Hz300813_38.cal",
    "02_Ch2_AftLVDT Gain 2.5 Filter 1Hz020913_39.cal",
    "02_Ch2_AftLVDT Gain 2.5 Filter 1Hz030913_40.cal",
    "01_Ch1_FwdLVDT_ Gain 2.5 Filter 1Hz 280813_36.cal",
    "01_Ch1_FwdLVDT_ Gain 2.5 Filter 1Hz 290813_37.cal",
    "01_Ch1_FwdLVDT_ Gain 2.5 Filter 1Hz 300813_38.cal",
    "01_Ch1_FwdLVDT_ Gain 2.5 Filter 1Hz 020913_39.cal",
    "01_Ch1_FwdLVDT_ Gain 2.5 Filter 1Hz 030913_40.cal",
)

# (condition a, condition b, polynomial degree)
FIT_PAIRS: Tuple[Tuple[int, int, int], ...] = ((7, 10, 7), (8, 11, 4), (9, 12, 4))


@dataclass
class CampaignConfig:
    """Inputs required by :func:`tankproc.pipeline.run_all`.

    ``run_dir`` holds the ``R??.run`` folders, ``calib_dir`` the ``.cal``
    files. Remaining fields default to the campaign values and are rarely
    overridden.
    """

    run_dir: str = "."
    output_dir: str = "out"
    calib_dir: Optional[str] = None
    calib_files: Tuple[str, ...] = CALIBRATION_FILES
    first_run: int = 1
    last_run: int = 249
    sampling_hz: float = 200.0
    trim_start: int = 1000       # first 5 s at 200 Hz
    trim_end: int = 400          # last 2 s at 200 Hz
    constants: Constants = field(default_factory=Constants)
    hulls: Dict[str, HullVariant] = field(default_factory=lambda: dict(HULLS))
    conditions: Tuple[Condition, ...] = CONDITIONS
    fit_pairs: Tuple[Tuple[int, int, int], ...] = FIT_PAIRS
    uncertainty_conditions: Tuple[int, ...] = (7, 8, 9, 10, 11, 12)
    write_time_series: bool = False
    plots: bool = False

    def condition_for_run(self, run: int) -> Optional[Condition]:
        for cond in self.conditions:
            if cond.contains(run):
                return cond
        return None

    def condition(self, code: int) -> Condition:
        for cond in self.conditions:
            if cond.code == code:
                return cond
        raise KeyError(f"Unknown condition code {code}")

    def hull_for(self, code: int) -> HullVariant:
        return self.hulls[self.condition(code).hull]


PRESETS: Dict[str, CampaignConfig] = {
    "AMC2013": CampaignConfig(),
    "AMC2013-resistance": CampaignConfig(first_run=63, last_run=231),
}


def load_config(path: Path | str, base: Optional[CampaignConfig] = None) -> CampaignConfig:
    """Return ``base`` (or the default preset) with fields overridden from a JSON file.

    Only top-level scalar fields and ``constants`` entries may be overridden;
    unknown keys raise ``ValueError``.
    """
    data = json.loads(Path(path).read_text())
    cfg = base if base is not None else PRESETS["AMC2013"]
    names = {f.name for f in fields(CampaignConfig)}
    unknown = set(data) - names
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")
    overrides = dict(data)
    if "constants" in overrides:
        overrides["constants"] = replace(cfg.constants, **overrides["constants"])
    if "calib_files" in overrides:
        overrides["calib_files"] = tuple(overrides["calib_files"])
    for key in ("hulls", "conditions", "fit_pairs"):
        if key in overrides:
            raise ValueError(f"'{key}' cannot be overridden from JSON")
    if "uncertainty_conditions" in overrides:
        overrides["uncertainty_conditions"] = tuple(overrides["uncertainty_conditions"])
    return replace(cfg, **overrides)
