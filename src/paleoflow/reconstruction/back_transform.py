"""Map modelling-space predictions back to flow units."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..config import RECONSTRUCTED_COLUMN, SEASON_COLUMN, YEAR_COLUMN
from .transforms import ScaleParameters, TransformSpec, unscale_with, unstack_targets


def back_transform(
    hat: np.ndarray,
    years: Sequence[int],
    scale: Optional[ScaleParameters],
    spec: TransformSpec,
    target_names: Sequence[str],
) -> pd.DataFrame:
    """Back-transform a stacked prediction into a long flow table.

    Parameters
    ----------
    hat:
        Target-major stacked prediction covering ``years``.
    years:
        Calendar years of the prediction, in row order.
    scale:
        Scale parameters used in the fit, or ``None``.
    spec:
        Transform specification used in the fit.
    target_names:
        Target labels in canonical order.

    Returns
    -------
    pandas.DataFrame
        Columns ``Q``, ``season`` and ``year`` with ``len(years) * n_targets``
        rows, grouped by target.
    """

    years = np.asarray(years)
    n_targets = spec.n_targets
    if len(target_names) != n_targets:
        raise ValueError(f"Expected {n_targets} target names, got {len(target_names)}.")

    wide = unstack_targets(hat, n_targets).copy()
    if wide.shape[0] != years.shape[0]:
        raise ValueError(f"Prediction covers {wide.shape[0]} years but {years.shape[0]} years were given.")

    wide = unscale_with(wide, scale)
    if spec.has_log:
        cols = list(spec.log_indices)
        wide[:, cols] = np.exp(wide[:, cols])

    return pd.DataFrame(
        {
            RECONSTRUCTED_COLUMN: wide.ravel(order="F"),
            SEASON_COLUMN: np.repeat(np.asarray(target_names, dtype=object), years.shape[0]),
            YEAR_COLUMN: np.tile(years, n_targets),
        }
    )


__all__ = ["back_transform"]
