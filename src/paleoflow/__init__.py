"""Mass-balance-adjusted reconstruction of seasonal and annual streamflow."""

from .reconstruction import (
    InputShapeError,
    ReconstructionProblem,
    TransformSpec,
    cross_validate,
    reconstruct,
)
from .utils import make_z

__version__ = "0.1.0"

__all__ = [
    "InputShapeError",
    "ReconstructionProblem",
    "TransformSpec",
    "cross_validate",
    "make_z",
    "reconstruct",
]
