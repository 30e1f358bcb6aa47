"""Utility helpers for reconstruction workflows."""

from .folds import make_z
from .metrics import (
    calculate_metrics,
    coefficient_of_determination,
    kling_gupta_efficiency,
    nash_sutcliffe_efficiency,
    reduction_of_error,
    root_mean_square_error,
    tukey_biweight_mean,
)
from .parallel_processing import ParallelFoldRunner
from .scaling import col_scale, col_unscale, row_scale, row_unscale

__all__ = [
    "ParallelFoldRunner",
    "calculate_metrics",
    "coefficient_of_determination",
    "col_scale",
    "col_unscale",
    "kling_gupta_efficiency",
    "make_z",
    "nash_sutcliffe_efficiency",
    "reduction_of_error",
    "root_mean_square_error",
    "row_scale",
    "row_unscale",
    "tukey_biweight_mean",
]
