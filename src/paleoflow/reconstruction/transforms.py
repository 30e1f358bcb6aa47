"""Target transformations applied before fitting.

Two layouts are used for target values and the helpers below are the only
place where one is converted into the other:

* **year-major matrix** ``(n_years, n_targets)``: one row per year, one
  column per target.  Standardisation works on this layout.
* **stacked vector** ``(n_targets * n_years,)``: target-major, i.e. all years
  of the first target followed by all years of the second target.  This is
  the layout of the regression response and of ``X @ beta``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from ..utils.scaling import col_scale, col_unscale


class TransformKind(enum.Enum):
    IDENTITY = "identity"
    LOG_ONLY = "log"
    LOG_AND_SCALE = "log+scale"
    SCALE_ONLY = "scale"


@dataclass(frozen=True)
class ScaleParameters:
    """Per-target mean and sample standard deviation."""

    mean: np.ndarray
    sd: np.ndarray

    def ratio_to_annual(self) -> np.ndarray:
        """Standard deviation of every target divided by the annual one."""

        return self.sd / self.sd[-1]


@dataclass(frozen=True)
class TransformSpec:
    """Which targets are log-transformed and whether targets are standardised.

    Build instances with :meth:`from_options`; ``log_indices`` are 0-based
    target positions with the annual target last.
    """

    kind: TransformKind
    n_targets: int
    log_indices: Tuple[int, ...] = ()

    @classmethod
    def from_options(
        cls,
        log_trans: Optional[Iterable[int]],
        force_standardize: bool,
        n_targets: int,
    ) -> "TransformSpec":
        if n_targets < 2:
            raise ValueError("At least one season and the annual target are required.")

        indices = tuple(sorted(int(i) for i in (log_trans or ())))
        if len(set(indices)) != len(indices):
            raise ValueError(f"Duplicate log-transform indices: {indices}")
        if indices and (indices[0] < 0 or indices[-1] >= n_targets):
            raise ValueError(
                f"Log-transform indices must lie in [0, {n_targets - 1}], got {indices}"
            )

        if not indices:
            kind = TransformKind.SCALE_ONLY if force_standardize else TransformKind.IDENTITY
        elif len(indices) < n_targets or force_standardize:
            # Mixed log/raw targets live on different scales
            kind = TransformKind.LOG_AND_SCALE
        else:
            kind = TransformKind.LOG_ONLY
        return cls(kind=kind, n_targets=n_targets, log_indices=indices)

    @property
    def has_log(self) -> bool:
        return self.kind in (TransformKind.LOG_ONLY, TransformKind.LOG_AND_SCALE)

    @property
    def has_scale(self) -> bool:
        return self.kind in (TransformKind.SCALE_ONLY, TransformKind.LOG_AND_SCALE)

    @property
    def log_seasons(self) -> Tuple[int, ...]:
        return tuple(i for i in self.log_indices if i < self.n_targets - 1)

    @property
    def log_annual(self) -> bool:
        return (self.n_targets - 1) in self.log_indices


# ---------------------------------------------------------------------------
# Layout conversion
# ---------------------------------------------------------------------------

def stack_targets(matrix: np.ndarray) -> np.ndarray:
    """Year-major matrix -> target-major stacked vector."""

    return np.asarray(matrix, dtype=float).ravel(order="F")


def unstack_targets(vector: np.ndarray, n_targets: int) -> np.ndarray:
    """Target-major stacked vector -> year-major matrix."""

    return np.asarray(vector, dtype=float).reshape((-1, n_targets), order="F")


def target_rows(vector: np.ndarray, n_targets: int) -> np.ndarray:
    """Target-major stacked vector -> ``(n_targets, n_years)`` matrix."""

    return np.asarray(vector, dtype=float).reshape((n_targets, -1))


# ---------------------------------------------------------------------------
# Transformations
# ---------------------------------------------------------------------------

def apply_log(Y: np.ndarray, spec: TransformSpec) -> np.ndarray:
    """Log-transform the selected columns of a year-major matrix."""

    out = np.array(Y, dtype=float, copy=True)
    if spec.has_log:
        cols = list(spec.log_indices)
        out[:, cols] = np.log(out[:, cols])
    return out


def standardize(Y: np.ndarray, spec: TransformSpec) -> Tuple[np.ndarray, Optional[ScaleParameters]]:
    """Standardise columns when ``spec`` asks for it.

    Statistics come from ``Y`` alone; callers pass calibration rows only.
    """

    if not spec.has_scale:
        return np.asarray(Y, dtype=float), None
    scaled, center, scale = col_scale(Y)
    return scaled, ScaleParameters(mean=center, sd=scale)


def scale_with(Y: np.ndarray, params: Optional[ScaleParameters]) -> np.ndarray:
    """Apply previously derived scale parameters to a year-major matrix."""

    Y = np.asarray(Y, dtype=float)
    if params is None:
        return Y
    return (Y - params.mean) / params.sd


def unscale_with(Y: np.ndarray, params: Optional[ScaleParameters]) -> np.ndarray:
    Y = np.asarray(Y, dtype=float)
    if params is None:
        return Y
    return col_unscale(Y, params.mean, params.sd)


def transform_targets(Y: np.ndarray, spec: TransformSpec) -> Tuple[np.ndarray, Optional[ScaleParameters]]:
    """Log, standardise and stack a year-major matrix of physical flows."""

    scaled, params = standardize(apply_log(Y, spec), spec)
    return stack_targets(scaled), params


__all__ = [
    "ScaleParameters",
    "TransformKind",
    "TransformSpec",
    "apply_log",
    "scale_with",
    "stack_targets",
    "standardize",
    "target_rows",
    "transform_targets",
    "unscale_with",
    "unstack_targets",
]
