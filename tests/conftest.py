from pathlib import Path

import numpy as np
import pytest

from tankproc.channels import ChannelStats
from tankproc.results import RunSummary


def write_run_file(path: Path, *, n=2000, fs=200.0, speed=1.5, fwd=-4.0, aft=-6.0,
                   drag=2000.0, zeros=(0.0, 0.0, 0.0, 0.0), factors=(1.0, 1.0, 1.0, 1.0),
                   ripple=0.0):
    """Synthetic DAQ file: 16 header lines, zero/CF row, 5 more header lines, samples.

    Channel values are given in real units and written back as raw values via
    ``raw = physical / factor + zero``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    header = [f"# header line {i + 1}" for i in range(16)]
    zcf = [0.0, 1.0]
    for z, f in zip(zeros, factors):
        zcf += [z, f]
    lines = header + [" ".join(f"{v:g}" for v in zcf)]
    lines += [f"# channel info {i + 1}" for i in range(5)]
    i = np.arange(n)
    t = (i + 1) / fs
    wobble = ripple * np.sin(i / 7.0)
    phys = [speed + wobble, fwd + wobble, aft + wobble, drag + 10 * wobble]
    raw = [p / f + z for p, f, z in zip(phys, factors, zeros)]
    for k in range(n):
        lines.append(" ".join(f"{v:.8g}" for v in (t[k], raw[0][k], raw[1][k], raw[2][k], raw[3][k])))
    path.write_text("\n".join(lines) + "\n")
    return path


def write_cal_file(path: Path, values, voltages):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"header {i + 1}" for i in range(15)]
    for v, u in zip(values, voltages):
        lines.append(f"{v:g} {u:g} 0")
    path.write_text("\n".join(lines) + "\n")
    return path


def make_summary(run, condition=7, froude=0.23, heave=-8.0, trim=0.1, **kw):
    stats = ChannelStats(min=0.0, max=1.0, mean=0.5, std=0.1, pct_dev=1.0)
    base = dict(
        run=run, sampling_hz=200.0, n_samples=2000, record_time_s=10.0,
        speed=1.5, fwd_lvdt=heave + 1.0, aft_lvdt=heave - 1.0, drag_g=2000.0,
        rtm=19.0, ctm=0.0113, froude=froude, heave=heave, trim=trim,
        vfs=6.97, vfs_knots=13.5, rem=6.2e6, cfm_ittc57=0.0032, cfm_grigson=0.0031,
        crm=0.0076, pem=28.5, pbm=57.0, res=6.7e8, cfs_ittc57=0.0016, cts=0.0098,
        rts=2.0e5, pes=1.4e6, pbs=2.8e6, condition=condition,
        speed_stats=stats, fwd_stats=stats, aft_stats=stats, drag_stats=stats,
    )
    base.update(kw)
    return RunSummary(**base)


@pytest.fixture
def summary_factory():
    return make_summary


@pytest.fixture
def run_file_writer():
    return write_run_file


@pytest.fixture
def cal_file_writer():
    return write_cal_file
