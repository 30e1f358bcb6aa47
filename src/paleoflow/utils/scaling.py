"""Column and row standardisation helpers.

The reconstruction engine standardises targets per column (year-major
layout) when calibrating and un-standardises per row (target-major layout)
when evaluating the mass-balance penalty.  Both directions share one
numeric contract: the centre is the arithmetic mean and the scale is the
sample standard deviation (``ddof=1``), so that

``col_unscale(*col_scale(x)) == x``

up to floating-point rounding.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def _as_matrix(x: np.ndarray) -> np.ndarray:
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got an array with {arr.ndim} dimensions.")
    return arr


# ---------------------------------------------------------------------------
# Column-wise (one statistic per column)
# ---------------------------------------------------------------------------

def col_scale(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Standardise each column of ``x``.

    Returns
    -------
    scaled, center, scale
        The standardised matrix followed by the column means and the column
        sample standard deviations.
    """

    arr = _as_matrix(x)
    center = arr.mean(axis=0)
    scale = arr.std(axis=0, ddof=1)
    return (arr - center) / scale, center, scale


def col_unscale(x: np.ndarray, center: np.ndarray, scale: np.ndarray) -> np.ndarray:
    """Invert :func:`col_scale` using previously derived statistics."""

    arr = _as_matrix(x)
    return arr * np.asarray(scale, dtype=float) + np.asarray(center, dtype=float)


# ---------------------------------------------------------------------------
# Row-wise (one statistic per row)
# ---------------------------------------------------------------------------

def row_scale(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Standardise each row of ``x``; returns ``(scaled, center, scale)``."""

    arr = _as_matrix(x)
    center = arr.mean(axis=1)
    scale = arr.std(axis=1, ddof=1)
    return (arr - center[:, None]) / scale[:, None], center, scale


def row_unscale(x: np.ndarray, center: np.ndarray, scale: np.ndarray) -> np.ndarray:
    """Invert :func:`row_scale` using previously derived statistics."""

    arr = np.asarray(x, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    center = np.asarray(center, dtype=float).reshape(-1, 1)
    scale = np.asarray(scale, dtype=float).reshape(-1, 1)
    return arr * scale + center


__all__ = ["col_scale", "col_unscale", "row_scale", "row_unscale"]
