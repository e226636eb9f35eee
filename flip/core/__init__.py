"""Core components: particles, staggered grid, spatial hashing, transfer and advection."""

from .particles import ParticleArrays, count_block, seed_block
from .grid import CellType, MACGrid
from .spatial_hash import SpatialHash, build_linked_cells_numba, separate_particles_numba
from .transfer import (
    particles_to_grid,
    compute_particle_density,
    grid_to_particles,
    sample_u,
    sample_v
)
from .integrator import advect_particles, clamp_to_walls, wall_bounds

__all__ = [
    'ParticleArrays',
    'count_block',
    'seed_block',
    'CellType',
    'MACGrid',
    'SpatialHash',
    'build_linked_cells_numba',
    'separate_particles_numba',
    'particles_to_grid',
    'compute_particle_density',
    'grid_to_particles',
    'sample_u',
    'sample_v',
    'advect_particles',
    'clamp_to_walls',
    'wall_bounds'
]
