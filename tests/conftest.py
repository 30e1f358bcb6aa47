from pathlib import Path
import sys
from typing import List, NamedTuple, Sequence

import numpy as np
import pandas as pd
import pytest

repo_root = Path(__file__).resolve().parents[1]
# Make `paleoflow` importable without installing the package.
src_str = str(repo_root / "src")
if src_str not in sys.path:
	sys.path.insert(0, src_str)


class SyntheticRecord(NamedTuple):
	instrumental: pd.DataFrame
	pc_list: List[np.ndarray]
	start_year: int
	seasons: List[str]
	inst_years: np.ndarray


def make_synthetic_record(
	n_years: int = 60,
	n_inst: int = 40,
	start_year: int = 1800,
	seasons: Sequence[str] = ("wet", "dry", "annual"),
	seed: int = 7,
) -> SyntheticRecord:
	"""Two seasons plus annual, annual flow equal to the seasonal sum."""

	rng = np.random.default_rng(seed)
	pcs_wet = rng.normal(size=(n_years, 2))
	pcs_dry = rng.normal(size=(n_years, 1))
	wet = np.exp(3.0 + 0.3 * pcs_wet[:, 0] - 0.1 * pcs_wet[:, 1] + 0.1 * rng.normal(size=n_years))
	dry = np.exp(2.0 + 0.25 * pcs_dry[:, 0] + 0.1 * rng.normal(size=n_years))
	annual = wet + dry
	pcs_ann = np.column_stack([pcs_wet[:, 0] + 0.2 * rng.normal(size=n_years), pcs_dry[:, 0]])

	years = np.arange(start_year, start_year + n_years)
	inst = slice(n_years - n_inst, n_years)
	frames = [
		pd.DataFrame({"season": name, "year": years[inst], "Qa": flow[inst]})
		for name, flow in zip(seasons, (wet, dry, annual))
	]
	instrumental = pd.concat(frames, ignore_index=True)
	instrumental["season"] = pd.Categorical(instrumental["season"], categories=list(seasons), ordered=True)

	return SyntheticRecord(
		instrumental=instrumental,
		pc_list=[pcs_wet, pcs_dry, pcs_ann],
		start_year=start_year,
		seasons=list(seasons),
		inst_years=years[inst],
	)


@pytest.fixture()
def record() -> SyntheticRecord:
	return make_synthetic_record()
