from __future__ import annotations
import argparse, json, logging
from dataclasses import asdict, replace
from pathlib import Path
from .presets import PRESETS, load_config
from .pipeline import aggregate_table, calibrate_all, reduce_run, run_all
from .io import load_results_table, load_calibration_file
from .calibration import fit_calibration
from .curvefit import PolynomialFit


def _config(args):
    cfg = PRESETS[args.preset]
    if getattr(args, "config", None):
        cfg = load_config(args.config, base=cfg)
    return cfg


def build_parser():
    p = argparse.ArgumentParser(prog="tankproc", description="Towing-tank resistance reduction and uncertainty")
    p.add_argument("--preset", default="AMC2013", choices=PRESETS.keys())
    p.add_argument("--config", help="JSON file overriding CampaignConfig fields")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    r0 = sub.add_parser("reduce", help="Reduce one run file to its results row")
    r0.add_argument("--file", required=True, help="RR??-02_moving.dat path")
    r0.add_argument("--run", required=True, type=int, help="Run number (selects condition)")

    r1 = sub.add_parser("run-all", help="Reduce → aggregate → fit → uncertainty for a run range")
    r1.add_argument("--run-dir", required=True, help="Directory holding R??.run folders")
    r1.add_argument("--out", required=True)
    r1.add_argument("--first", type=int, default=None)
    r1.add_argument("--last", type=int, default=None)
    r1.add_argument("--time-series", action="store_true", help="Also write per-run real-unit series")
    r1.add_argument("--plots", action="store_true")

    r2 = sub.add_parser("calib", help="Fit sensor calibration files")
    r2.add_argument("--calib-dir", help="Directory with the campaign .cal files")
    r2.add_argument("--file", help="Fit a single .cal file instead")
    r2.add_argument("--index", type=int, default=None, help="File index (1-17) for --file; selects the sensor type")
    r2.add_argument("--out", default=None)

    r3 = sub.add_parser("aggregate", help="Group an existing results table by condition and Fr")
    r3.add_argument("--results", required=True, help="results.csv or results.txt")
    r3.add_argument("--outdir", required=True)

    r4 = sub.add_parser("fit", help="Polynomial fit of a column pair from a CSV table")
    r4.add_argument("--csv", required=True)
    r4.add_argument("--x", default="froude")
    r4.add_argument("--y", default="heave_mid")
    r4.add_argument("--degree", type=int, required=True)
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    cfg = _config(args)

    if args.cmd == "reduce":
        summary = reduce_run(args.file, args.run, cfg)
        print(json.dumps(asdict(summary), indent=2))
        return

    if args.cmd == "run-all":
        cfg = replace(
            cfg,
            run_dir=args.run_dir,
            output_dir=args.out,
            first_run=args.first if args.first is not None else cfg.first_run,
            last_run=args.last if args.last is not None else cfg.last_run,
            write_time_series=args.time_series or cfg.write_time_series,
            plots=args.plots or cfg.plots,
        )
        res = run_all(cfg)
        print(json.dumps({k: res[k] for k in ("n_reduced", "skipped", "runs_per_condition")}, indent=2))
        return

    if args.cmd == "calib":
        if args.file:
            if args.index is None:
                raise SystemExit("calib: --file needs --index (1-17) to fix the sensor type")
            df = load_calibration_file(args.file)
            fit = fit_calibration(df["voltage"], df["value"], index=args.index,
                                  gravity=cfg.constants.gravity, source=args.file)
            print(json.dumps(fit.to_dict(), indent=2))
            return
        if not args.calib_dir:
            raise SystemExit("calib: give --calib-dir or --file")
        cfg = replace(cfg, calib_dir=args.calib_dir, output_dir=args.out or cfg.output_dir)
        res = calibrate_all(cfg)
        print(json.dumps({k: res[k] for k in ("n_fitted", "skipped", "files")}, indent=2))
        return

    if args.cmd == "aggregate":
        outdir = Path(args.outdir)
        outdir.mkdir(parents=True, exist_ok=True)
        agg = aggregate_table(load_results_table(args.results), cfg)
        counts = {}
        for code, df in agg["averaged"].items():
            counts[str(code)] = int(df["repeats"].sum()) if not df.empty else 0
            if not df.empty:
                df.to_csv(outdir / f"cond{code:02d}_avg.csv", index=False)
                agg["minmax"][code].to_csv(outdir / f"cond{code:02d}_minmax.csv", index=False)
        fits = {str(k): v.to_dict() for k, v in agg["fits"].items()}
        (outdir / "fits.json").write_text(json.dumps(fits, indent=2))
        print(json.dumps({"runs_per_condition": counts, "fits": fits}, indent=2))
        return

    if args.cmd == "fit":
        import pandas as pd
        df = pd.read_csv(args.csv)
        pf = PolynomialFit.fit(df[args.x], df[args.y], args.degree)
        print(json.dumps(pf.to_dict(), indent=2))
        return


if __name__ == "__main__":
    main()
