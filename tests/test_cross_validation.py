"""Tests for :func:`paleoflow.cross_validate`."""

from __future__ import annotations

import numpy as np
import pytest

from paleoflow import InputShapeError, ReconstructionProblem, cross_validate, make_z
from paleoflow.reconstruction import cross_validation as cv_module
from paleoflow.reconstruction.fitting import fit as real_fit

METRICS = ["R2", "RE", "CE", "nRMSE", "KGE"]


@pytest.fixture()
def folds(record):
    return make_z(record.inst_years, n_runs=4, frac=0.25, contiguous=True, random_state=11)


def test_fval_has_one_value_per_fold_in_order(record, folds):
    fvals = cross_validate(record.instrumental, record.pc_list, folds, record.start_year, return_type="fval")

    assert isinstance(fvals, np.ndarray)
    assert fvals.shape == (len(folds),)
    assert np.all(np.isfinite(fvals)) and np.all(fvals >= 0)
    for k, fold in enumerate(folds):
        single = cross_validate(record.instrumental, record.pc_list, [fold], record.start_year, return_type="fval")
        assert single[0] == pytest.approx(fvals[k])


def test_fval_matches_manual_holdout_objective(record):
    z = np.arange(30, 40)
    fval = cross_validate(record.instrumental, record.pc_list, [z], record.start_year, lam=0.0)[0]

    problem = ReconstructionProblem.from_inputs(record.instrumental, record.pc_list, record.start_year)
    sse = 0.0
    for k, block in enumerate(problem.inst_blocks):
        coef = np.linalg.lstsq(block[:30], problem.Y[:30, k], rcond=None)[0]
        sse += np.sum((block[30:] @ coef - problem.Y[30:, k]) ** 2)
    assert fval == pytest.approx(sse, rel=1e-8)


def test_metrics_rows_per_fold_and_target(record, folds):
    metrics = cross_validate(
        record.instrumental, record.pc_list, folds, record.start_year, return_type="metrics"
    )

    assert len(metrics) == len(folds) * 3
    assert list(metrics.columns) == ["rep", "season"] + METRICS + ["fval"]
    assert sorted(metrics["rep"].unique()) == [1, 2, 3, 4]
    assert list(metrics["season"].drop_duplicates()) == record.seasons
    # every target row of a fold carries that fold's loss value
    assert metrics.groupby("rep")["fval"].nunique().eq(1).all()


@pytest.mark.parametrize("n_runs", [1, 3, 6])
def test_metric_means_one_row_per_target(record, n_runs):
    folds = make_z(record.inst_years, n_runs=n_runs, frac=0.2, contiguous=False, random_state=3)
    means = cross_validate(
        record.instrumental, record.pc_list, folds, record.start_year,
        log_trans=[0, 1, 2], return_type="metric means",
    )

    assert list(means["season"]) == record.seasons
    assert list(means.columns) == ["season"] + METRICS
    assert np.all(np.isfinite(means[METRICS].to_numpy()))


def test_q_returns_predicted_and_observed_flow(record, folds):
    flows = cross_validate(record.instrumental, record.pc_list, folds, record.start_year, return_type="Q")

    assert len(flows) == len(folds) * 3 * len(record.inst_years)
    assert {"rep", "season", "year", "Q", "Qa"} <= set(flows.columns)
    assert list(flows["season"].drop_duplicates()) == record.seasons
    first = flows[(flows["rep"] == 1) & (flows["season"] == "wet")]
    np.testing.assert_array_equal(first["year"].to_numpy(), record.inst_years)


def test_standardisation_is_recomputed_inside_each_fold(record, monkeypatch):
    # shift the held-out years so fold-local and full-record statistics must differ
    instrumental = record.instrumental.copy()
    late = instrumental["year"] >= record.inst_years[-10]
    shift = instrumental["season"].map({"wet": 25.0, "dry": 25.0, "annual": 50.0}).astype(float)
    instrumental.loc[late, "Qa"] += shift[late]

    captured = []

    def spy(blocks, Y, lam, spec, minimizer=None):
        result = real_fit(blocks, Y, lam, spec, minimizer=minimizer)
        captured.append((Y.copy(), result.scale))
        return result

    monkeypatch.setattr(cv_module, "fit", spy)
    z = np.arange(30, 40)
    cross_validate(instrumental, record.pc_list, [z], record.start_year, force_standardize=True)

    full = ReconstructionProblem.from_inputs(instrumental, record.pc_list, record.start_year).Y
    Y_cal, scale = captured[0]
    assert Y_cal.shape[0] == 30
    np.testing.assert_allclose(scale.mean, full[:30].mean(axis=0))
    assert not np.allclose(scale.mean, full.mean(axis=0))


def test_log_transformed_cross_validation_is_finite(record, folds):
    fvals = cross_validate(
        record.instrumental, record.pc_list, folds, record.start_year,
        lam=2.0, log_trans=[0, 1], return_type="fval",
    )
    assert np.all(np.isfinite(fvals))


def test_invalid_return_type(record, folds):
    with pytest.raises(ValueError):
        cross_validate(record.instrumental, record.pc_list, folds, record.start_year, return_type="mean")


def test_empty_fold_list(record):
    with pytest.raises(ValueError):
        cross_validate(record.instrumental, record.pc_list, [], record.start_year)


@pytest.mark.parametrize("fold", [[38, 39, 40], list(range(40))])
def test_invalid_folds(record, fold):
    with pytest.raises(InputShapeError):
        cross_validate(record.instrumental, record.pc_list, [fold], record.start_year)
