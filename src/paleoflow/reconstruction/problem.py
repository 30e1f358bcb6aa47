"""Input validation and the shared setup of a reconstruction run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import pandas as pd

from ..config import OBSERVED_COLUMN, SEASON_COLUMN, YEAR_COLUMN
from .design import Block, subset_rows, with_intercepts

LOGGER = logging.getLogger(__name__)


class InputShapeError(ValueError):
    """Raised when instrumental data and predictor blocks do not line up."""


def canonical_seasons(instrumental: pd.DataFrame) -> List[str]:
    """Target order: categorical order if defined, else order of appearance."""

    column = instrumental[SEASON_COLUMN]
    if isinstance(column.dtype, pd.CategoricalDtype):
        return list(column.cat.categories)
    return list(pd.unique(column))


@dataclass
class ReconstructionProblem:
    """Everything a fit needs, derived once from the raw inputs.

    Attributes
    ----------
    seasons:
        Target names in canonical order; the annual target is last.
    years:
        Study period ``start_year .. last instrumental year``.
    inst_ind:
        Positions of the instrumental years within ``years``.
    Y:
        Year-major ``(n_inst_years, n_targets)`` observed flows.
    blocks, inst_blocks:
        Intercept-prepended predictor blocks over the study period and over
        the instrumental years.
    instrumental:
        Observations in long form with ``season`` as an ordered categorical.
    """

    seasons: List[str]
    years: np.ndarray
    inst_ind: np.ndarray
    Y: np.ndarray
    blocks: List[np.ndarray]
    inst_blocks: List[np.ndarray]
    instrumental: pd.DataFrame

    @property
    def n_targets(self) -> int:
        return len(self.seasons)

    @property
    def inst_years(self) -> np.ndarray:
        return self.years[self.inst_ind]

    @classmethod
    def from_inputs(
        cls,
        instrumental: pd.DataFrame,
        pc_list: Sequence[Block],
        start_year: int,
    ) -> "ReconstructionProblem":
        required = {SEASON_COLUMN, YEAR_COLUMN, OBSERVED_COLUMN}
        missing = required - set(instrumental.columns)
        if missing:
            raise KeyError(f"Instrumental data is missing columns: {sorted(missing)}")

        seasons = canonical_seasons(instrumental)
        n_targets = len(seasons)
        if n_targets < 2:
            raise InputShapeError("Instrumental data must contain at least one season and the annual target.")
        if len(pc_list) != n_targets:
            raise InputShapeError(f"Expected {n_targets} predictor blocks (one per target), got {len(pc_list)}.")

        inst_years_all = instrumental[YEAR_COLUMN].astype(int)
        start_year = int(start_year)
        if inst_years_all.min() < start_year:
            raise InputShapeError(
                f"Instrumental data starts in {inst_years_all.min()}, before start_year {start_year}."
            )
        years = np.arange(start_year, int(inst_years_all.max()) + 1)

        for k, block in enumerate(pc_list):
            n_rows = np.asarray(block).shape[0]
            if n_rows != years.shape[0]:
                raise InputShapeError(
                    f"Predictor block {k} ({seasons[k]}) has {n_rows} rows; "
                    f"the study period {years[0]}-{years[-1]} has {years.shape[0]} years."
                )

        long = pd.DataFrame(
            {
                SEASON_COLUMN: pd.Categorical(instrumental[SEASON_COLUMN], categories=seasons, ordered=True),
                YEAR_COLUMN: inst_years_all.to_numpy(),
                OBSERVED_COLUMN: instrumental[OBSERVED_COLUMN].astype(float).to_numpy(),
            }
        )
        if long.duplicated([SEASON_COLUMN, YEAR_COLUMN]).any():
            raise InputShapeError("Instrumental data has more than one value for some (season, year) pair.")

        wide = long.pivot(index=YEAR_COLUMN, columns=SEASON_COLUMN, values=OBSERVED_COLUMN)
        wide = wide.reindex(columns=seasons).sort_index()
        if wide.isna().any().any():
            gaps = wide.index[wide.isna().any(axis=1)].tolist()
            raise InputShapeError(f"Instrumental years without a value for every target: {gaps}")

        inst_years = wide.index.to_numpy(dtype=int)
        inst_ind = np.searchsorted(years, inst_years)

        blocks = with_intercepts(pc_list)
        LOGGER.debug(
            "Study period %d-%d, %d instrumental years, %d targets",
            years[0], years[-1], inst_years.shape[0], n_targets,
        )

        return cls(
            seasons=seasons,
            years=years,
            inst_ind=inst_ind,
            Y=wide.to_numpy(dtype=float),
            blocks=blocks,
            inst_blocks=subset_rows(blocks, inst_ind),
            instrumental=long.sort_values([SEASON_COLUMN, YEAR_COLUMN]).reset_index(drop=True),
        )


__all__ = ["InputShapeError", "ReconstructionProblem", "canonical_seasons"]
