"""Least squares with a mass-balance penalty.

The objective is

``sum((hat - obs)**2) + lam * sum((implied_annual - annual_hat)**2)``

where ``implied_annual`` is the sum of the seasonal predictions in flow
units, mapped back into the modelling space of the annual target.  With no
log transform the penalty is quadratic in the coefficients; once any target
is exponentiated it is not, which is why :mod:`.fitting` has two solvers.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..config import NONFINITE_PENALTY
from ..utils.scaling import row_unscale
from .transforms import ScaleParameters, TransformSpec, target_rows


def mass_balance_penalty(
    hat: np.ndarray,
    scale: Optional[ScaleParameters],
    spec: TransformSpec,
) -> float:
    """Squared gap between summed seasons and the annual prediction.

    ``hat`` is a target-major stacked vector in the modelling space.
    """

    n_targets = spec.n_targets
    rows = target_rows(hat, n_targets).copy()
    seasons = slice(0, n_targets - 1)

    if scale is not None:
        rows[seasons] = row_unscale(rows[seasons], scale.mean[seasons], scale.sd[seasons])

    # The annual row stays in the modelling space; only seasons go back to flow.
    cols = list(spec.log_seasons)
    if cols:
        with np.errstate(over="ignore"):
            rows[cols] = np.exp(rows[cols])

    if not np.all(np.isfinite(rows)):
        return NONFINITE_PENALTY

    total_seasonal = rows[seasons].sum(axis=0)
    if spec.log_annual:
        with np.errstate(divide="ignore", invalid="ignore"):
            total_seasonal = np.log(total_seasonal)
        if not np.all(np.isfinite(total_seasonal)):
            # Negative seasonal totals have no logarithm
            return NONFINITE_PENALTY
    if scale is not None:
        total_seasonal = (total_seasonal - scale.mean[-1]) / scale.sd[-1]

    return float(np.sum((total_seasonal - rows[-1]) ** 2))


def mass_balance_objective(
    hat: np.ndarray,
    obs: np.ndarray,
    lam: float,
    scale: Optional[ScaleParameters],
    spec: TransformSpec,
) -> float:
    """Regression sum of squares plus ``lam`` times the mass-balance penalty.

    Parameters
    ----------
    hat, obs:
        Predicted and observed target-major stacked vectors in the
        modelling (log and/or standardised) space.
    lam:
        Penalty weight; ``0`` skips the penalty entirely.
    scale:
        Scale parameters of the current fit or ``None`` when targets are not
        standardised.
    spec:
        Transform specification of the current fit.
    """

    hat = np.asarray(hat, dtype=float).ravel()
    obs = np.asarray(obs, dtype=float).ravel()

    s1 = float(np.sum((hat - obs) ** 2))
    if lam == 0:
        return s1
    return s1 + lam * mass_balance_penalty(hat, scale, spec)


def objective_from_beta(
    beta: np.ndarray,
    X: np.ndarray,
    Y: np.ndarray,
    lam: float,
    scale: Optional[ScaleParameters],
    spec: TransformSpec,
) -> float:
    """Objective value for coefficients ``beta``; the optimizer's target."""

    return mass_balance_objective(X @ beta, Y, lam, scale, spec)


__all__ = ["mass_balance_objective", "mass_balance_penalty", "objective_from_beta"]
