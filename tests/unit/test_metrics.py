"""Tests for :mod:`paleoflow.utils.metrics`."""

from __future__ import annotations

import warnings

import pytest

np = pytest.importorskip("numpy")

from paleoflow.utils.metrics import (
    calculate_metrics,
    coefficient_of_determination,
    kling_gupta_efficiency,
    nash_sutcliffe_efficiency,
    reduction_of_error,
    tukey_biweight_mean,
)


def test_perfect_simulation_scores_perfectly() -> None:
    obs = np.array([3.0, 5.0, 4.0, 6.0, 8.0, 7.0, 5.5, 4.5])
    metrics = calculate_metrics(obs.copy(), obs, z=[5, 6, 7])

    assert set(metrics) == {"R2", "RE", "CE", "nRMSE", "KGE"}
    assert metrics["R2"] == pytest.approx(1.0)
    assert metrics["RE"] == pytest.approx(1.0)
    assert metrics["CE"] == pytest.approx(1.0)
    assert metrics["nRMSE"] == pytest.approx(0.0)
    assert metrics["KGE"] == pytest.approx(1.0)


def test_re_uses_calibration_mean_and_ce_validation_mean() -> None:
    obs = np.array([1.0, 1.0, 1.0, 1.0, 5.0, 7.0])
    sim = np.array([1.0, 1.0, 1.0, 1.0, 6.0, 6.0])
    z = [4, 5]
    metrics = calculate_metrics(sim, obs, z)

    # SSE on held-out years is 2; calibration mean is 1, validation mean 6
    assert metrics["RE"] == pytest.approx(1.0 - 2.0 / (16.0 + 36.0))
    assert metrics["CE"] == pytest.approx(1.0 - 2.0 / 2.0)
    assert metrics["nRMSE"] == pytest.approx(1.0 / 6.0)
    assert reduction_of_error(obs[z], sim[z], 1.0) == pytest.approx(metrics["RE"])


def test_calculate_metrics_rejects_length_mismatch() -> None:
    with pytest.raises(ValueError):
        calculate_metrics([1.0, 2.0], [1.0, 2.0, 3.0], [0])


def test_kge_needs_two_points() -> None:
    assert np.isnan(kling_gupta_efficiency([1.0], [1.0]))


def test_tukey_biweight_mean_resists_outliers() -> None:
    values = [1.0, 2.0, 3.0, 4.0, 100.0]
    robust = tukey_biweight_mean(values)
    assert 1.0 < robust < 4.0
    assert robust < np.mean(values)


def test_tukey_biweight_mean_constant_and_nan() -> None:
    assert tukey_biweight_mean([2.5, 2.5, np.nan, 2.5]) == pytest.approx(2.5)
    assert np.isnan(tukey_biweight_mean([np.nan, np.nan]))


def test_kge_is_undefined_for_flat_series() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error", RuntimeWarning)
        assert np.isnan(kling_gupta_efficiency([2.0, 2.0, 2.0], [1.0, 2.0, 3.0]))
        assert np.isnan(kling_gupta_efficiency([1.0, 2.0, 3.0], [2.0, 2.0, 2.0]))


def test_flat_validation_years_give_nan_kge_without_warnings() -> None:
    obs = np.array([3.0, 5.0, 4.0, 6.0, 4.0, 4.0])
    sim = np.array([3.5, 4.5, 4.0, 6.0, 4.2, 3.9])
    with warnings.catch_warnings():
        warnings.simplefilter("error", RuntimeWarning)
        metrics = calculate_metrics(sim, obs, z=[4, 5])
    assert np.isnan(metrics["KGE"])
    assert metrics["CE"] == float("-inf")


def test_kge_components() -> None:
    obs = np.array([1.0, 2.0, 3.0, 4.0])
    # perfectly correlated, doubled: r = 1, alpha = 2, beta = 2
    assert kling_gupta_efficiency(obs, 2.0 * obs) == pytest.approx(1.0 - np.sqrt(2.0))


def test_skill_scores_ignore_nan_pairs() -> None:
    obs = np.array([1.0, 2.0, np.nan, 4.0])
    sim = np.array([1.5, 2.0, 3.0, np.nan])
    # remaining pairs (1, 1.5) and (2, 2): SSE 0.25, SST 0.5
    assert coefficient_of_determination(obs, sim) == pytest.approx(0.5)
    assert nash_sutcliffe_efficiency(obs, sim) == pytest.approx(0.5)
    assert reduction_of_error(obs, sim, 0.0) == pytest.approx(1.0 - 0.25 / 5.0)
