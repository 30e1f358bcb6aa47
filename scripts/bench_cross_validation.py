"""Baseline benchmark for parallel cross-validation.

Run the script directly to compare sequential and parallel fold execution
on a synthetic record.  The log-transformed case exercises the L-BFGS-B
path, which dominates the run time.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Tuple

import numpy as np
import pandas as pd

repo_root = Path(__file__).resolve().parents[1]
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from paleoflow import cross_validate, make_z  # noqa: E402


def _build_fake_record(n_years: int, n_inst: int, seed: int = 42) -> Tuple[pd.DataFrame, List[np.ndarray], int]:
    rng = np.random.default_rng(seed)
    pcs = [rng.normal(size=(n_years, 3)) for _ in range(3)]
    wet = np.exp(3.0 + 0.3 * pcs[0][:, 0] + 0.1 * rng.normal(size=n_years))
    dry = np.exp(2.0 + 0.2 * pcs[1][:, 0] + 0.1 * rng.normal(size=n_years))
    flows = {"wet": wet, "dry": dry, "annual": wet + dry}

    start_year = 1700
    years = np.arange(start_year, start_year + n_years)[-n_inst:]
    instrumental = pd.concat(
        [pd.DataFrame({"season": name, "year": years, "Qa": q[-n_inst:]}) for name, q in flows.items()],
        ignore_index=True,
    )
    instrumental["season"] = pd.Categorical(instrumental["season"], categories=list(flows), ordered=True)
    return instrumental, pcs, start_year


def benchmark(n_runs: int, processes: int, log: bool) -> None:
    instrumental, pcs, start_year = _build_fake_record(n_years=300, n_inst=80)
    folds = make_z(sorted(instrumental["year"].unique()), n_runs=n_runs, frac=0.25, random_state=1)

    start = time.perf_counter()
    cross_validate(
        instrumental, pcs, folds, start_year,
        log_trans=[0, 1, 2] if log else None, return_type="metric means", n_processes=processes,
    )
    duration = time.perf_counter() - start
    print(f"Cross-validated {n_runs} folds with {processes} process(es) in {duration:.3f}s")


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark parallel cross-validation")
    parser.add_argument("--runs", type=int, default=100, help="Number of folds")
    parser.add_argument("--processes", type=int, default=1, help="Number of worker processes")
    parser.add_argument("--log", action="store_true", help="Log-transform every target")
    args = parser.parse_args()

    benchmark(n_runs=args.runs, processes=args.processes, log=args.log)


if __name__ == "__main__":  # pragma: no cover - manual benchmarking entrypoint
    main()
