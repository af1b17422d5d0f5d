"""
tankproc - towing-tank resistance reduction, repeat-run statistics and
sensor calibration uncertainty.
"""

__version__ = "0.1.0"

from .errors import (
    TankProcError,
    MissingFileError,
    InsufficientDataError,
    UndefinedFitError,
    IllConditionedFitError,
    InsufficientSamplesError,
    CalibrationRecordError,
    UnmappedRunError,
    InvalidSpeedError,
)
from .calibration import (
    CalibrationFit,
    fit_linear,
    goodness_of_fit,
    residual_stats,
    standard_error,
    grams_to_newtons,
    fit_calibration,
    fit_calibration_files,
    partition_by_sensor,
    calibration_table,
)
from .channels import (
    CalibrationRecord,
    ChannelStats,
    to_physical,
    trim,
    reduce,
    zero_row_filter,
    reduce_channels,
)
from .hydro import (
    froude_number,
    reynolds_number,
    cf_ittc57,
    cf_grigson,
    turbulence_stud_reduction,
    full_scale_extrapolation,
    summarize_run,
)
from .results import RESULT_COLUMNS, RunSummary, summaries_to_frame, frame_to_summaries
from .aggregate import (
    GroupStatistic,
    partition_by_condition,
    partition_by_froude,
    average,
    min_max_envelope,
    averaged_table,
    minmax_table,
)
from .curvefit import PolynomialFit, polyfit, polyeval, extremum, fit_condition_pair
from .uncertainty import ct_uncertainty, uncertainty_table
from .io import load_run_file, load_calibration_file, load_results_table, write_table
from .presets import CampaignConfig, Constants, HullVariant, Condition, PRESETS, load_config
from .pipeline import run_all, calibrate_all, reduce_run

__all__ = [
    "__version__",
    "TankProcError", "MissingFileError", "InsufficientDataError", "UndefinedFitError",
    "IllConditionedFitError", "InsufficientSamplesError", "CalibrationRecordError",
    "UnmappedRunError", "InvalidSpeedError",
    "CalibrationFit", "fit_linear", "goodness_of_fit", "residual_stats", "standard_error",
    "grams_to_newtons", "fit_calibration", "fit_calibration_files", "partition_by_sensor",
    "calibration_table",
    "CalibrationRecord", "ChannelStats", "to_physical", "trim", "reduce", "zero_row_filter",
    "reduce_channels",
    "froude_number", "reynolds_number", "cf_ittc57", "cf_grigson",
    "turbulence_stud_reduction", "full_scale_extrapolation", "summarize_run",
    "RESULT_COLUMNS", "RunSummary", "summaries_to_frame", "frame_to_summaries",
    "GroupStatistic", "partition_by_condition", "partition_by_froude", "average",
    "min_max_envelope", "averaged_table", "minmax_table",
    "PolynomialFit", "polyfit", "polyeval", "extremum", "fit_condition_pair",
    "ct_uncertainty", "uncertainty_table",
    "load_run_file", "load_calibration_file", "load_results_table", "write_table",
    "CampaignConfig", "Constants", "HullVariant", "Condition", "PRESETS", "load_config",
    "run_all", "calibrate_all", "reduce_run",
]
