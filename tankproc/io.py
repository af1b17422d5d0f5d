from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging

import numpy as np
import pandas as pd

from .errors import CalibrationRecordError, MissingFileError
from .channels import CHANNELS, CalibrationRecord

logger = logging.getLogger(__name__)

RUN_HEADER_LINES = 22          # lines before the sample block
RUN_ZERO_CF_HEADER_LINES = 16  # lines before the zero/CF row
CAL_HEADER_LINES = 15
RUN_COLUMNS = ["time", *CHANNELS]
CAL_COLUMNS = ["value", "voltage", "slope"]


def run_file_path(run_dir: Path | str, run: int) -> Path:
    """``R07.run/RR07-02_moving.dat``; numbers below 10 are zero padded."""
    return Path(run_dir) / f"R{run:02d}.run" / f"RR{run:02d}-02_moving.dat"


def _require(path: Path | str) -> Path:
    p = Path(path)
    if not p.is_file():
        raise MissingFileError(f"No such file: {p}")
    return p


@dataclass(frozen=True)
class RawRun:
    path: Path
    samples: pd.DataFrame      # time, speed, fwd_lvdt, aft_lvdt, drag (raw DAQ units)
    calib: CalibrationRecord


def _parse_floats(line: str) -> List[float]:
    out = []
    for tok in line.replace(",", " ").split():
        try:
            out.append(float(tok))
        except ValueError:
            break
    return out


def load_run_file(path: Path | str) -> RawRun:
    """Read one DAQ run file.

    Raises
    ------
    MissingFileError
        File absent.
    CalibrationRecordError
        Zero/CF row missing, short, or with a zero factor.
    """
    p = _require(path)
    with p.open("r", errors="replace") as fh:
        head = [fh.readline() for _ in range(RUN_ZERO_CF_HEADER_LINES + 1)]
    if not head[-1]:
        raise CalibrationRecordError(f"{p.name}: header too short for zero/CF row")
    calib = CalibrationRecord.from_header(_parse_floats(head[RUN_ZERO_CF_HEADER_LINES]))

    df = pd.read_csv(p, sep=r"\s+", header=None, skiprows=RUN_HEADER_LINES,
                     engine="python")
    if df.shape[1] < len(RUN_COLUMNS):
        raise ValueError(f"{p.name}: expected {len(RUN_COLUMNS)} columns, got {df.shape[1]}")
    df = df.iloc[:, : len(RUN_COLUMNS)].apply(pd.to_numeric, errors="coerce")
    df.columns = RUN_COLUMNS
    df = df.dropna(how="all").reset_index(drop=True)
    logger.debug("Loaded %s: %d samples", p.name, len(df))
    return RawRun(path=p, samples=df, calib=calib)


def load_calibration_file(path: Path | str) -> pd.DataFrame:
    """Read a ``.cal`` file: 15 header lines then value, voltage, slope."""
    p = _require(path)
    df = pd.read_csv(p, sep=r"\s+", header=None, skiprows=CAL_HEADER_LINES,
                     engine="python")
    if df.shape[1] < len(CAL_COLUMNS):
        raise ValueError(f"{p.name}: expected {len(CAL_COLUMNS)} columns, got {df.shape[1]}")
    df = df.iloc[:, : len(CAL_COLUMNS)].apply(pd.to_numeric, errors="coerce")
    df.columns = CAL_COLUMNS
    return df.dropna(how="all").reset_index(drop=True)


def write_table(df: pd.DataFrame, csv_path: Path | str,
                txt_path: Optional[Path | str] = None) -> dict:
    """Write a numeric table as CSV (full precision, header row) and
    optionally as headerless tab-delimited text at 4 significant digits."""
    csv_path = Path(csv_path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(csv_path, index=False)
    out = {"csv": str(csv_path)}
    if txt_path is not None:
        txt_path = Path(txt_path)
        txt_path.parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(txt_path, df.to_numpy(dtype=float), delimiter="\t", fmt="%.4g")
        out["txt"] = str(txt_path)
    return out


def write_time_series(frame: pd.DataFrame, outdir: Path | str, run: int) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / f"R{run:02d}.dat"
    frame.to_csv(path, index=False)
    return path


def _has_header(path: Path) -> bool:
    with path.open("r") as fh:
        first = fh.readline()
    toks = first.replace("\t", ",").split(",")
    for tok in toks:
        tok = tok.strip()
        if not tok:
            continue
        try:
            float(tok)
        except ValueError:
            return True
    return False


def load_results_table(path: Path | str) -> pd.DataFrame:
    """Read a results table written by :func:`write_table` (CSV or tab text).

    Columns are returned positionally; names come from the header when present.
    """
    p = _require(path)
    sep = "\t" if p.suffix.lower() == ".txt" else ","
    header = 0 if _has_header(p) else None
    return pd.read_csv(p, sep=sep, header=header).apply(pd.to_numeric, errors="coerce")
