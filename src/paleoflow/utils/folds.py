"""Hold-out fold generation for cross-validation.

Each fold is an array of positions into the instrumental year sequence.
Contiguous folds hold out one unbroken run of years (useful when proxies
carry low-frequency signal); scattered folds draw years at random without
replacement via :class:`sklearn.model_selection.ShuffleSplit`.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

import numpy as np
from sklearn.model_selection import ShuffleSplit

from ..config import DEFAULT_HOLDOUT_FRACTION, DEFAULT_N_RUNS

LOGGER = logging.getLogger(__name__)

RandomState = Optional[Union[int, np.random.Generator]]


def make_z(
    years: Sequence[int],
    n_runs: int = DEFAULT_N_RUNS,
    frac: float = DEFAULT_HOLDOUT_FRACTION,
    contiguous: bool = True,
    random_state: RandomState = None,
) -> List[np.ndarray]:
    """Generate ``n_runs`` hold-out folds over ``years``.

    Parameters
    ----------
    years:
        Instrumental years; only the length is used.
    n_runs:
        Number of folds to generate.
    frac:
        Fraction of years held out in each fold.
    contiguous:
        Hold out a single run of consecutive years when ``True``.
    random_state:
        Seed or generator for reproducible folds.

    Returns
    -------
    list of np.ndarray
        Sorted integer positions, one array per fold.
    """

    n_years = len(years)
    if n_years < 2:
        raise ValueError("At least two years are required to build folds.")
    if n_runs < 1:
        raise ValueError("n_runs must be at least 1")
    if not 0.0 < frac < 1.0:
        raise ValueError("frac must lie strictly between 0 and 1")

    n_holdout = min(max(1, int(round(frac * n_years))), n_years - 1)

    if contiguous:
        rng = np.random.default_rng(random_state)
        starts = rng.integers(0, n_years - n_holdout + 1, size=n_runs)
        folds = [np.arange(start, start + n_holdout) for start in starts]
    else:
        seed = random_state
        if isinstance(random_state, np.random.Generator):
            seed = int(random_state.integers(0, 2**31 - 1))
        splitter = ShuffleSplit(n_splits=n_runs, test_size=n_holdout, random_state=seed)
        folds = [np.sort(test_idx) for _, test_idx in splitter.split(np.arange(n_years))]

    LOGGER.debug("Generated %d folds holding out %d of %d years.", n_runs, n_holdout, n_years)
    return folds


__all__ = ["make_z"]
