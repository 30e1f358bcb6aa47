"""Run a mass-balance-adjusted reconstruction from CSV inputs.

Instrumental data must have ``season``, ``year`` and ``Qa`` columns.  Each
``--pcs`` file holds the principal components of one target (in the order
given by ``--seasons``, annual last), one row per year from
``--start-year`` to the last instrumental year; a ``year`` column, if
present, is dropped.

Example::

    python scripts/run_reconstruction.py --instrumental inst.csv \\
        --seasons NJ JO Ann --pcs pc_nj.csv pc_jo.csv pc_ann.csv \\
        --start-year 1750 --lam 1 --log-trans 0 1 2 --cv-runs 50
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import pandas as pd

# Ensure the repository's src/ is importable when running this script directly
repo_root = Path(__file__).resolve().parents[1]
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from paleoflow import cross_validate, make_z, reconstruct  # noqa: E402
from paleoflow.config import (  # noqa: E402
    DEFAULT_HOLDOUT_FRACTION,
    DEFAULT_LAMBDA,
    SEASON_COLUMN,
    YEAR_COLUMN,
)

LOGGER = logging.getLogger("run_reconstruction")


def load_instrumental(path: Path, seasons: List[str]) -> pd.DataFrame:
    data = pd.read_csv(path)
    data[SEASON_COLUMN] = pd.Categorical(data[SEASON_COLUMN].astype(str), categories=seasons, ordered=True)
    if data[SEASON_COLUMN].isna().any():
        raise ValueError(f"{path} contains seasons not listed in --seasons {seasons}")
    return data


def load_pcs(paths: List[Path]) -> List[pd.DataFrame]:
    return [pd.read_csv(path).drop(columns=[YEAR_COLUMN], errors="ignore") for path in paths]


def main() -> None:
    parser = argparse.ArgumentParser(description="Mass-balance-adjusted streamflow reconstruction")
    parser.add_argument("--instrumental", type=Path, required=True, help="CSV with season, year, Qa")
    parser.add_argument("--seasons", nargs="+", required=True, help="Target names, annual last")
    parser.add_argument("--pcs", type=Path, nargs="+", required=True, help="One PC CSV per target")
    parser.add_argument("--start-year", type=int, required=True, help="First year of the reconstruction")
    parser.add_argument("--lam", type=float, default=DEFAULT_LAMBDA, help="Mass-balance penalty weight")
    parser.add_argument("--log-trans", type=int, nargs="*", default=None, help="0-based targets to log-transform")
    parser.add_argument("--force-standardize", action="store_true", help="Standardise every target")
    parser.add_argument("--output", type=Path, default=Path("reconstruction.csv"), help="Reconstruction CSV")
    parser.add_argument("--cv-runs", type=int, default=0, help="Number of cross-validation folds (0 to skip)")
    parser.add_argument("--cv-frac", type=float, default=DEFAULT_HOLDOUT_FRACTION, help="Fraction held out per fold")
    parser.add_argument("--scattered", action="store_true", help="Hold out scattered rather than contiguous years")
    parser.add_argument("--seed", type=int, default=None, help="Seed for fold generation")
    parser.add_argument("--processes", type=int, default=1, help="Worker processes for cross-validation")
    parser.add_argument("--cv-output", type=Path, default=Path("cv_metric_means.csv"), help="CV metric means CSV")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    instrumental = load_instrumental(args.instrumental, args.seasons)
    pc_list = load_pcs(args.pcs)

    recon = reconstruct(
        instrumental, pc_list, args.start_year,
        lam=args.lam, log_trans=args.log_trans, force_standardize=args.force_standardize,
    )
    args.output.parent.mkdir(parents=True, exist_ok=True)
    recon.to_csv(args.output, index=False)
    LOGGER.info("Wrote %d rows to %s", len(recon), args.output)

    if args.cv_runs > 0:
        inst_years = sorted(instrumental[YEAR_COLUMN].unique())
        folds = make_z(
            inst_years, n_runs=args.cv_runs, frac=args.cv_frac,
            contiguous=not args.scattered, random_state=args.seed,
        )
        means = cross_validate(
            instrumental, pc_list, folds, args.start_year,
            lam=args.lam, log_trans=args.log_trans, force_standardize=args.force_standardize,
            return_type="metric means", n_processes=args.processes, verbose=args.verbose,
        )
        args.cv_output.parent.mkdir(parents=True, exist_ok=True)
        means.to_csv(args.cv_output, index=False)
        LOGGER.info("Wrote cross-validation metric means to %s", args.cv_output)


if __name__ == "__main__":  # pragma: no cover - command-line entrypoint
    main()
