"""Block-diagonal design matrices for the joint seasonal/annual regression."""

from __future__ import annotations

from typing import List, Sequence, Union

import numpy as np
import pandas as pd
from scipy.linalg import block_diag

from ..config import INTERCEPT_COLUMN

Block = Union[np.ndarray, pd.DataFrame]


def prepend_ones(block: Block) -> Block:
    """Return ``block`` with a column of ones prepended.

    DataFrames keep their column labels and gain an ``Int`` column so the
    intercept is identifiable in coefficient listings.
    """

    if isinstance(block, pd.DataFrame):
        out = block.copy()
        out.insert(0, INTERCEPT_COLUMN, 1.0)
        return out

    arr = np.asarray(block, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    return np.column_stack([np.ones(arr.shape[0]), arr])


def with_intercepts(blocks: Sequence[Block]) -> List[np.ndarray]:
    """Prepend intercepts to every block and return plain float matrices."""

    return [np.asarray(prepend_ones(block), dtype=float) for block in blocks]


def subset_rows(blocks: Sequence[np.ndarray], rows: Sequence[int]) -> List[np.ndarray]:
    """Select ``rows`` from every block, keeping 2-D shape."""

    rows = np.asarray(rows, dtype=int)
    return [np.asarray(block)[rows, :] for block in blocks]


def build_design_matrix(blocks: Sequence[np.ndarray]) -> np.ndarray:
    """Assemble the block-diagonal design matrix.

    ``blocks`` must already carry their intercept column.  Row blocks follow
    target order and each block's row order is preserved, so row ``k`` of
    target ``j`` sits at ``j * n_rows + k``.
    """

    if not blocks:
        raise ValueError("At least one predictor block is required.")
    return block_diag(*[np.asarray(block, dtype=float) for block in blocks])


def block_column_counts(blocks: Sequence[np.ndarray]) -> List[int]:
    return [np.asarray(block).shape[1] for block in blocks]


__all__ = [
    "block_column_counts",
    "build_design_matrix",
    "prepend_ones",
    "subset_rows",
    "with_intercepts",
]
