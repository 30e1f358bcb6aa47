"""Cross-validation of mass-balance-adjusted reconstructions.

The log transform is applied to the instrumental targets once, before the
fold loop.  Standardisation statistics are recomputed inside every fold
from the calibration years only; computing them from the full instrumental
record would leak validation information into the calibration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import (
    DEFAULT_LAMBDA,
    DEFAULT_RETURN_TYPE,
    FOLD_COLUMN,
    FVAL_COLUMN,
    METRIC_NAMES,
    OBSERVED_COLUMN,
    RECONSTRUCTED_COLUMN,
    RETURN_TYPES,
    SEASON_COLUMN,
    YEAR_COLUMN,
)
from ..utils.metrics import calculate_metrics, tukey_biweight_mean
from ..utils.parallel_processing import ParallelFoldRunner
from .back_transform import back_transform
from .design import Block, build_design_matrix, subset_rows
from .fitting import Minimizer, fit
from .objective import mass_balance_objective
from .problem import InputShapeError, ReconstructionProblem
from .transforms import TransformSpec, apply_log, scale_with, stack_targets, unstack_targets

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FoldContext:
    """Read-only inputs shared by every fold."""

    problem: ReconstructionProblem
    spec: TransformSpec
    Y_model: np.ndarray
    X_inst: np.ndarray
    lam: float
    return_type: str
    minimizer: Optional[Minimizer] = None


@dataclass(frozen=True)
class _FoldTask:
    rep: int
    z: np.ndarray
    context: _FoldContext


def _validate_fold(z: Iterable[int], n_years: int, rep: int) -> np.ndarray:
    z = np.unique(np.asarray(list(z), dtype=int))
    if z.size and (z[0] < 0 or z[-1] >= n_years):
        raise InputShapeError(f"Fold {rep} holds out positions outside the {n_years} instrumental years.")
    if z.size == n_years:
        raise InputShapeError(f"Fold {rep} holds out every instrumental year; nothing left to calibrate.")
    if z.size == 0:
        LOGGER.warning("Fold %d holds out no years; validation statistics will be undefined.", rep)
    return z


def _run_fold(task: _FoldTask) -> Any:
    """Calibrate on all but ``task.z`` and validate on ``task.z``."""

    ctx = task.context
    problem, spec = ctx.problem, ctx.spec
    z = task.z
    cal = np.setdiff1d(np.arange(problem.Y.shape[0]), z)

    result = fit(subset_rows(problem.inst_blocks, cal), ctx.Y_model[cal], ctx.lam, spec, minimizer=ctx.minimizer)

    # Predict the whole instrumental period, then evaluate on held-out years
    hat = ctx.X_inst @ result.beta
    val_hat = stack_targets(unstack_targets(hat, spec.n_targets)[z])
    val_obs = stack_targets(scale_with(ctx.Y_model[z], result.scale))
    fval = mass_balance_objective(val_hat, val_obs, ctx.lam, result.scale, spec)
    LOGGER.debug("Fold %d: %d calibration years, fval=%.6g", task.rep, cal.size, fval)

    if ctx.return_type == "fval":
        return fval

    flows = back_transform(hat, problem.inst_years, result.scale, spec, problem.seasons)
    flows[SEASON_COLUMN] = pd.Categorical(flows[SEASON_COLUMN], categories=problem.seasons, ordered=True)
    merged = flows.merge(problem.instrumental, on=[YEAR_COLUMN, SEASON_COLUMN])
    merged = merged.sort_values([SEASON_COLUMN, YEAR_COLUMN]).reset_index(drop=True)

    if ctx.return_type == "Q":
        return merged

    records: List[Dict[str, Any]] = []
    for season, group in merged.groupby(SEASON_COLUMN, observed=True, sort=True):
        metrics = calculate_metrics(group[RECONSTRUCTED_COLUMN].to_numpy(), group[OBSERVED_COLUMN].to_numpy(), z)
        records.append({SEASON_COLUMN: season, **metrics, FVAL_COLUMN: fval})
    return pd.DataFrame(records)


def cross_validate(
    instrumental: pd.DataFrame,
    pc_list: Sequence[Block],
    cv_folds: Sequence[Iterable[int]],
    start_year: int,
    lam: float = DEFAULT_LAMBDA,
    log_trans: Optional[Iterable[int]] = None,
    force_standardize: bool = False,
    return_type: str = DEFAULT_RETURN_TYPE,
    n_processes: Optional[int] = 1,
    verbose: bool = False,
    minimizer: Optional[Minimizer] = None,
):
    """Cross-validate a mass-balance-adjusted reconstruction.

    Parameters
    ----------
    instrumental, pc_list, start_year, lam, log_trans, force_standardize:
        As for :func:`paleoflow.reconstruction.reconstruct`.
    cv_folds:
        Hold-out sets, each a collection of positions into the instrumental
        years (see :func:`paleoflow.utils.folds.make_z`).
    return_type:
        ``"fval"``
            Penalised least-squares value of the held-out years, one per fold;
            handy as the objective of an outer search (e.g. over ``lam``).
        ``"metrics"``
            All skill metrics for every fold and target.
        ``"metric means"``
            Tukey's biweight mean of each metric over folds, per target.
        ``"Q"``
            Predicted and observed instrumental flow of every fold.
    n_processes:
        Worker processes for the fold loop; ``1`` runs serially.
    verbose:
        Show a progress bar.
    minimizer:
        Optional replacement for the L-BFGS-B optimizer.  Must be picklable
        when ``n_processes > 1``.

    Returns
    -------
    numpy.ndarray or pandas.DataFrame
        A 1-D array for ``"fval"``; otherwise a frame ordered by target, with
        a 1-based ``rep`` fold column except for ``"metric means"``.
    """

    if return_type not in RETURN_TYPES:
        raise ValueError(f"return_type must be one of {RETURN_TYPES}, got {return_type!r}")

    problem = ReconstructionProblem.from_inputs(instrumental, pc_list, start_year)
    spec = TransformSpec.from_options(log_trans, force_standardize, problem.n_targets)

    folds = list(cv_folds)
    if not folds:
        raise ValueError("cv_folds must contain at least one fold.")

    context = _FoldContext(
        problem=problem,
        spec=spec,
        Y_model=apply_log(problem.Y, spec),
        X_inst=build_design_matrix(problem.inst_blocks),
        lam=lam,
        return_type=return_type,
        minimizer=minimizer,
    )
    n_years = problem.Y.shape[0]
    tasks = [
        _FoldTask(rep=rep, z=_validate_fold(z, n_years, rep), context=context)
        for rep, z in enumerate(folds, start=1)
    ]

    runner = ParallelFoldRunner(n_processes=n_processes, verbose=verbose)
    outputs = runner.map(_run_fold, tasks)
    LOGGER.info(
        "Cross-validated %d folds (lambda=%s, transform=%s, return_type=%s)",
        len(tasks), lam, spec.kind.value, return_type,
    )

    if return_type == "fval":
        return np.asarray(outputs, dtype=float)

    reps = pd.concat(
        [frame.assign(**{FOLD_COLUMN: task.rep}) for task, frame in zip(tasks, outputs)],
        ignore_index=True,
    )
    reps = reps[[FOLD_COLUMN] + [col for col in reps.columns if col != FOLD_COLUMN]]

    if return_type == "metric means":
        out = (
            reps.groupby(SEASON_COLUMN, observed=True, sort=False)[list(METRIC_NAMES)]
            .agg(tukey_biweight_mean)
            .reset_index()
        )
    else:
        out = reps

    out[SEASON_COLUMN] = pd.Categorical(out[SEASON_COLUMN], categories=problem.seasons, ordered=True)
    return out.sort_values(SEASON_COLUMN, kind="stable").reset_index(drop=True)


__all__ = ["cross_validate"]
