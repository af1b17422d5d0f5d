"""Error taxonomy for the reduction pipeline.

Every error is scoped to one unit of work (a run, a calibration file, a fit).
The batch orchestrator catches these per unit and records the skip; nothing
else in the package swallows them.
"""

from __future__ import annotations


class TankProcError(Exception):
    """Base class for all reduction errors."""


class MissingFileError(TankProcError, FileNotFoundError):
    """A run or calibration file is absent."""


class InsufficientDataError(TankProcError, ValueError):
    """Too few points, or zero variance in x, for a fit."""


class UndefinedFitError(TankProcError, ValueError):
    """Goodness of fit is undefined because the total sum of squares is zero."""


class IllConditionedFitError(TankProcError, ValueError):
    """Polynomial degree is not below the number of distinct abscissae."""


class InsufficientSamplesError(TankProcError, ValueError):
    """The trim window leaves no samples."""


class CalibrationRecordError(TankProcError, ValueError):
    """Zero/calibration-factor header is malformed or has a zero factor."""


class UnmappedRunError(TankProcError, ValueError):
    """A run number does not fall in any configured condition range."""


class InvalidSpeedError(TankProcError, ValueError):
    """Mean carriage speed of a run is zero, negative or not finite."""
