"""Public API for mass-balance-adjusted reconstructions."""

from .back_transform import back_transform
from .cross_validation import cross_validate
from .design import build_design_matrix, prepend_ones
from .driver import reconstruct
from .fitting import FitResult, Minimizer, fit, lbfgsb_minimizer
from .objective import mass_balance_objective, mass_balance_penalty
from .problem import InputShapeError, ReconstructionProblem
from .transforms import ScaleParameters, TransformKind, TransformSpec

__all__ = [
    "FitResult",
    "InputShapeError",
    "Minimizer",
    "ReconstructionProblem",
    "ScaleParameters",
    "TransformKind",
    "TransformSpec",
    "back_transform",
    "build_design_matrix",
    "cross_validate",
    "fit",
    "lbfgsb_minimizer",
    "mass_balance_objective",
    "mass_balance_penalty",
    "prepend_ones",
    "reconstruct",
]
