"""Fitting engine for the mass-balance-adjusted regression.

Two strategies are used depending on the transform:

* **Analytical** (no log transform): the penalty is the quadratic form
  ``||A beta||²`` and the coefficients solve the regularised normal
  equations ``(XᵀX + λ AᵀA) beta = XᵀY``.
* **Numerical** (any log transform): the penalty involves exponentials, so
  the objective is minimised with L-BFGS-B starting from the unpenalised
  least-squares solution.

Both the reconstruction driver and every cross-validation fold go through
:func:`fit`, which derives scale parameters from the rows it is given and
nothing else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

import numpy as np
from scipy.optimize import minimize

from ..config import OPTIMIZATION_METHOD
from .design import build_design_matrix
from .objective import objective_from_beta
from .transforms import ScaleParameters, TransformSpec, stack_targets, standardize

LOGGER = logging.getLogger(__name__)

Objective = Callable[[np.ndarray], float]


class Minimizer(Protocol):
    """Minimise ``objective`` starting from ``initial_guess``."""

    def __call__(self, objective: Objective, initial_guess: np.ndarray) -> np.ndarray:
        ...


def lbfgsb_minimizer(objective: Objective, initial_guess: np.ndarray) -> np.ndarray:
    """Unbounded L-BFGS-B with finite-difference gradients.

    The optimizer's final point is returned whether or not it reports
    convergence.
    """

    res = minimize(objective, x0=np.asarray(initial_guess, dtype=float).ravel(), method=OPTIMIZATION_METHOD)
    LOGGER.debug("%s finished after %d iterations: %s", OPTIMIZATION_METHOD, res.nit, res.message)
    return np.asarray(res.x, dtype=float)


@dataclass(frozen=True)
class FitResult:
    """Fitted coefficients and the scale parameters they were fitted under."""

    beta: np.ndarray
    scale: Optional[ScaleParameters]


def penalty_matrix(blocks: Sequence[np.ndarray], scale: Optional[ScaleParameters]) -> np.ndarray:
    """Matrix ``A`` with ``A @ beta`` = summed seasons minus annual prediction.

    With standardised targets each seasonal block is weighted by its standard
    deviation relative to the annual one so the gap is expressed in the
    annual target's standardised units.
    """

    seasonal: List[np.ndarray] = list(blocks[:-1])
    if scale is not None:
        ratio = scale.ratio_to_annual()
        seasonal = [block * ratio[k] for k, block in enumerate(seasonal)]
    return np.hstack(seasonal + [-np.asarray(blocks[-1])])


def solve_analytical(X: np.ndarray, y: np.ndarray, A: np.ndarray, lam: float) -> np.ndarray:
    XTX = X.T @ X
    XTY = X.T @ y
    ATA = A.T @ A
    return np.linalg.solve(XTX + lam * ATA, XTY)


def solve_unpenalized(X: np.ndarray, y: np.ndarray) -> np.ndarray:
    return np.linalg.solve(X.T @ X, X.T @ y)


def fit(
    blocks: Sequence[np.ndarray],
    Y: np.ndarray,
    lam: float,
    spec: TransformSpec,
    minimizer: Optional[Minimizer] = None,
) -> FitResult:
    """Fit the joint regression on one calibration set.

    Parameters
    ----------
    blocks:
        Intercept-prepended predictor blocks restricted to the calibration
        years, one per target.
    Y:
        Year-major ``(n_years, n_targets)`` calibration targets, already
        log-transformed where ``spec`` asks for it but not standardised.
    lam:
        Mass-balance penalty weight.
    spec:
        Transform specification.
    minimizer:
        Replacement for :func:`lbfgsb_minimizer` on the numerical path.

    Raises
    ------
    numpy.linalg.LinAlgError
        If the normal equations are singular.
    """

    Y = np.asarray(Y, dtype=float)
    if Y.shape[1] != spec.n_targets or len(blocks) != spec.n_targets:
        raise ValueError(
            f"Expected {spec.n_targets} targets, got {Y.shape[1]} target columns and {len(blocks)} blocks."
        )

    scaled, scale = standardize(Y, spec)
    y = stack_targets(scaled)
    X = build_design_matrix(blocks)

    if not spec.has_log:
        LOGGER.debug("Analytical fit (%s), lambda=%s, %d calibration years", spec.kind.value, lam, Y.shape[0])
        beta = solve_analytical(X, y, penalty_matrix(blocks, scale), lam)
        return FitResult(beta=beta, scale=scale)

    LOGGER.debug("Numerical fit (%s), lambda=%s, %d calibration years", spec.kind.value, lam, Y.shape[0])
    beta_free = solve_unpenalized(X, y)
    minimizer = minimizer or lbfgsb_minimizer
    beta = minimizer(lambda b: objective_from_beta(b, X, y, lam, scale, spec), beta_free)
    return FitResult(beta=np.asarray(beta, dtype=float), scale=scale)


__all__ = [
    "FitResult",
    "Minimizer",
    "fit",
    "lbfgsb_minimizer",
    "penalty_matrix",
    "solve_analytical",
    "solve_unpenalized",
]
