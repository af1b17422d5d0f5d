from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tankproc.errors import CalibrationRecordError, MissingFileError
from tankproc.io import (
    load_calibration_file,
    load_results_table,
    load_run_file,
    run_file_path,
    write_table,
    write_time_series,
)


def test_run_file_path_zero_pads():
    assert run_file_path("/data", 7) == Path("/data/R07.run/RR07-02_moving.dat")
    assert run_file_path("/data", 142).name == "RR142-02_moving.dat"


def test_load_run_file(tmp_path, run_file_writer):
    p = run_file_writer(tmp_path / "r.dat", n=50, speed=1.5,
                        zeros=(0.5, 0.0, 0.0, 0.0), factors=(2.0, 1.0, 1.0, 1.0))
    raw = load_run_file(p)
    assert list(raw.samples.columns) == ["time", "speed", "fwd_lvdt", "aft_lvdt", "drag"]
    assert len(raw.samples) == 50
    assert np.allclose(raw.samples["speed"], 1.25)
    assert raw.calib.zeros["speed"] == 0.5
    assert raw.calib.factors["speed"] == 2.0


def test_missing_run_file(tmp_path):
    with pytest.raises(MissingFileError):
        load_run_file(tmp_path / "absent.dat")
    # still a FileNotFoundError for callers that only know the builtin
    with pytest.raises(FileNotFoundError):
        load_run_file(tmp_path / "absent.dat")


def test_zero_factor_rejected(tmp_path, run_file_writer):
    p = run_file_writer(tmp_path / "r.dat", n=20)
    lines = p.read_text().splitlines()
    lines[16] = "0 1 0 1 0 0 0 1 0 1"
    p.write_text("\n".join(lines) + "\n")
    with pytest.raises(CalibrationRecordError):
        load_run_file(p)


def test_load_calibration_file(tmp_path, cal_file_writer):
    p = cal_file_writer(tmp_path / "x.cal", [0, 100, 200], [0.0, -0.2, -0.4])
    df = load_calibration_file(p)
    assert list(df.columns) == ["value", "voltage", "slope"]
    assert list(df["value"]) == [0, 100, 200]


def test_write_table_formats(tmp_path):
    df = pd.DataFrame({"a": [3.14159265, 1234567.0], "b": [np.nan, 0.000123456]})
    files = write_table(df, tmp_path / "t.csv", tmp_path / "t.txt")
    txt = Path(files["txt"]).read_text().splitlines()
    assert txt[0].split("\t") == ["3.142", "nan"]
    assert txt[1].split("\t") == ["1.235e+06", "0.0001235"]
    back = load_results_table(files["csv"])
    assert list(back.columns) == ["a", "b"]
    assert np.isclose(back.iloc[0, 0], 3.14159265)
    plain = load_results_table(files["txt"])
    assert plain.shape == (2, 2)
    assert np.isclose(plain.iloc[0, 0], 3.142)


def test_write_time_series(tmp_path):
    p = write_time_series(pd.DataFrame({"time_s": [0.005]}), tmp_path / "ts", 9)
    assert p.name == "R09.dat"
    assert p.read_text().startswith("time_s")
