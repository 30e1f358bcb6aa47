"""Tests for :mod:`paleoflow.utils.folds`."""

from __future__ import annotations

import pytest

np = pytest.importorskip("numpy")

from paleoflow.utils.folds import make_z

YEARS = list(range(1922, 2004))


def test_contiguous_folds_are_single_runs() -> None:
    folds = make_z(YEARS, n_runs=20, frac=0.25, contiguous=True, random_state=1)

    assert len(folds) == 20
    for fold in folds:
        assert fold.size == round(0.25 * len(YEARS))
        assert np.all(np.diff(fold) == 1)
        assert fold[0] >= 0 and fold[-1] < len(YEARS)


def test_scattered_folds_are_unique_and_sorted() -> None:
    folds = make_z(YEARS, n_runs=10, frac=0.1, contiguous=False, random_state=5)

    assert len(folds) == 10
    for fold in folds:
        assert fold.size == round(0.1 * len(YEARS))
        assert np.all(np.diff(fold) > 0)
        assert fold[-1] < len(YEARS)


@pytest.mark.parametrize("contiguous", [True, False])
def test_folds_are_reproducible_with_seed(contiguous: bool) -> None:
    first = make_z(YEARS, n_runs=5, contiguous=contiguous, random_state=42)
    second = make_z(YEARS, n_runs=5, contiguous=contiguous, random_state=42)
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("frac", [0.0, 1.0, -0.2])
def test_invalid_fraction_raises(frac: float) -> None:
    with pytest.raises(ValueError):
        make_z(YEARS, frac=frac)
