"""Skill metrics for cross-validated reconstructions.

All metrics follow the usual dendrohydrology conventions: ``R2`` is
computed over the calibration years, every other statistic over the
held-out (validation) years ``z``.

* ``RE`` (reduction of error) uses the calibration mean as the reference
  forecast.
* ``CE`` (coefficient of efficiency) uses the validation mean, i.e. the
  Nash–Sutcliffe efficiency of the held-out years.
* ``nRMSE`` is the validation RMSE normalised by the validation mean.
* ``KGE`` is the Kling–Gupta efficiency of the held-out years.

RE, CE and R² share one form, ``1 - SSE / SS_ref``, and differ only in
the reference the squared deviations of the observations are taken about.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from ..config import TUKEY_C, TUKEY_EPSILON

NAN = float("nan")


def _paired(obs: Sequence[float], sim: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Observed/simulated pairs with every non-finite pair dropped."""

    obs = np.asarray(obs, dtype=float).ravel()
    sim = np.asarray(sim, dtype=float).ravel()
    if obs.shape != sim.shape:
        raise ValueError(f"obs has {obs.size} values but sim has {sim.size}.")
    keep = np.isfinite(obs) & np.isfinite(sim)
    return obs[keep], sim[keep]


def _skill_score(
    obs: Sequence[float],
    sim: Sequence[float],
    reference: Optional[float],
    flat_reference: float,
) -> float:
    obs, sim = _paired(obs, sim)
    if obs.size == 0:
        return NAN

    centre = np.mean(obs) if reference is None else reference
    spread = np.sum((obs - centre) ** 2)
    if spread == 0:
        return flat_reference
    return float(1.0 - np.sum((sim - obs) ** 2) / spread)


# ---------------------------------------------------------------------------
# Individual metrics
# ---------------------------------------------------------------------------

def coefficient_of_determination(obs: Sequence[float], sim: Sequence[float]) -> float:
    """R² as ``1 - SSE/SST``; 0 when the observations do not vary."""

    return _skill_score(obs, sim, None, 0.0)


def reduction_of_error(obs: Sequence[float], sim: Sequence[float], reference_mean: float) -> float:
    """Skill against a constant forecast of ``reference_mean``."""

    return _skill_score(obs, sim, float(reference_mean), float("-inf"))


def nash_sutcliffe_efficiency(obs: Sequence[float], sim: Sequence[float]) -> float:
    return _skill_score(obs, sim, None, float("-inf"))


def root_mean_square_error(obs: Sequence[float], sim: Sequence[float]) -> float:
    obs, sim = _paired(obs, sim)
    if obs.size == 0:
        return NAN
    return float(np.sqrt(np.mean((sim - obs) ** 2)))


def kling_gupta_efficiency(obs: Sequence[float], sim: Sequence[float]) -> float:
    """Kling–Gupta efficiency from correlation, variability and bias ratios.

    Undefined (``NaN``) for fewer than two pairs, for a flat series on
    either side (no correlation exists) and for a zero observed mean.
    """

    obs, sim = _paired(obs, sim)
    if obs.size < 2:
        return NAN

    sd_obs, sd_sim = np.std(obs), np.std(sim)
    mean_obs = np.mean(obs)
    if sd_obs == 0 or sd_sim == 0 or mean_obs == 0:
        return NAN

    r = np.corrcoef(obs, sim)[0, 1]
    components = np.array([r, sd_sim / sd_obs, np.mean(sim) / mean_obs])
    return float(1.0 - np.sqrt(np.sum((components - 1.0) ** 2)))


# ---------------------------------------------------------------------------
# Combined record
# ---------------------------------------------------------------------------

def _split(values: np.ndarray, held_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    return values[~held_out], values[held_out]


def calculate_metrics(sim: Sequence[float], obs: Sequence[float], z: Sequence[int]) -> Dict[str, float]:
    """Return the calibration/validation skill record for one target.

    Parameters
    ----------
    sim, obs:
        Simulated and observed flow over the whole instrumental period, in
        year order.
    z:
        Positions of the held-out years.

    Returns
    -------
    dict
        ``R2``, ``RE``, ``CE``, ``nRMSE`` and ``KGE``.
    """

    sim = np.asarray(sim, dtype=float)
    obs = np.asarray(obs, dtype=float)
    if sim.shape != obs.shape:
        raise ValueError("sim and obs must have the same length.")

    held_out = np.zeros(obs.shape[0], dtype=bool)
    held_out[np.asarray(z, dtype=int)] = True
    sim_cal, sim_val = _split(sim, held_out)
    obs_cal, obs_val = _split(obs, held_out)

    val_mean = float(np.mean(obs_val)) if obs_val.size else NAN
    nrmse = root_mean_square_error(obs_val, sim_val) / val_mean if val_mean else NAN

    return {
        "R2": coefficient_of_determination(obs_cal, sim_cal),
        "RE": reduction_of_error(obs_val, sim_val, float(np.mean(obs_cal))),
        "CE": nash_sutcliffe_efficiency(obs_val, sim_val),
        "nRMSE": nrmse,
        "KGE": kling_gupta_efficiency(obs_val, sim_val),
    }


def tukey_biweight_mean(x: Sequence[float], c: float = TUKEY_C, epsilon: float = TUKEY_EPSILON) -> float:
    """Tukey's biweight robust mean.

    Observations further than ``c`` median absolute deviations from the
    median receive zero weight; ``NaN`` values are ignored.
    """

    values = np.asarray(x, dtype=float)
    values = values[~np.isnan(values)]
    if values.size == 0:
        return NAN

    median = np.median(values)
    mad = np.median(np.abs(values - median))
    u = (values - median) / (c * mad + epsilon)
    weights = np.where(np.abs(u) <= 1.0, (1.0 - u ** 2) ** 2, 0.0)
    total = np.sum(weights)
    if total == 0:
        return float(median)
    return float(np.sum(weights * values) / total)


__all__ = [
    "calculate_metrics",
    "coefficient_of_determination",
    "kling_gupta_efficiency",
    "nash_sutcliffe_efficiency",
    "reduction_of_error",
    "root_mean_square_error",
    "tukey_biweight_mean",
]
