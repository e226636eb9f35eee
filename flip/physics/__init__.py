"""Grid physics: incompressibility relaxation and boundary forcing."""

from .pressure import solve_incompressibility, compute_divergence, mean_abs_divergence
from .forcing import WavePaddle, apply_external_force

__all__ = [
    'solve_incompressibility',
    'compute_divergence',
    'mean_abs_divergence',
    'WavePaddle',
    'apply_external_force'
]
