"""
Particle <-> grid transfer kernels.

Particle to grid: bilinear splat of particle velocities onto the staggered
faces (normalized by accumulated weight) and of unit mass onto cell
centers (density, not normalized).

Grid to particle: bilinear sampling of the pre-solve and post-solve grids,
blended between FLIP (particle velocity plus grid change) and PIC (grid
velocity).

Sample coordinates are clamped into the valid index range so every
particle reads and writes exactly four in-bounds grid points.
"""

import numpy as np
import numba as nb

from .grid import MACGrid
from .particles import ParticleArrays


# Sample offsets (in cells) of each staggered quantity
U_OFFSET = (0.0, 0.5)
V_OFFSET = (0.5, 0.0)
CELL_OFFSET = (0.5, 0.5)


@nb.njit(cache=True)
def _bilinear_coords(x: float, y: float, inv_h: float, ox: float, oy: float,
                     cols: int, rows: int):
    """Clamped base index and fractional offsets of a sample point."""
    gx = x * inv_h - ox
    gy = y * inv_h - oy
    gx = max(0.0, min(gx, cols - 2.0))
    gy = max(0.0, min(gy, rows - 2.0))
    ix = int(np.floor(gx))
    iy = int(np.floor(gy))
    return ix, iy, gx - ix, gy - iy


@nb.njit(cache=True)
def splat_velocity_numba(position_x: np.ndarray, position_y: np.ndarray,
                         values: np.ndarray, n_active: int, inv_h: float,
                         ox: float, oy: float,
                         field: np.ndarray, weight: np.ndarray):
    """Scatter one velocity component onto a face array and normalize.

    ``field`` and ``weight`` are overwritten. Faces that received no
    weight stay at zero.
    """
    cols = field.shape[0]
    rows = field.shape[1]
    field[:, :] = 0.0
    weight[:, :] = 0.0

    for p in range(n_active):
        x = position_x[p]
        y = position_y[p]
        if np.isnan(x) or np.isnan(y):
            continue

        ix, iy, fx, fy = _bilinear_coords(x, y, inv_h, ox, oy, cols, rows)
        w00 = (1.0 - fx) * (1.0 - fy)
        w10 = fx * (1.0 - fy)
        w01 = (1.0 - fx) * fy
        w11 = fx * fy
        val = values[p]

        field[ix, iy] += val * w00
        weight[ix, iy] += w00
        field[ix + 1, iy] += val * w10
        weight[ix + 1, iy] += w10
        field[ix, iy + 1] += val * w01
        weight[ix, iy + 1] += w01
        field[ix + 1, iy + 1] += val * w11
        weight[ix + 1, iy + 1] += w11

    for i in range(cols):
        for j in range(rows):
            if weight[i, j] > 0.0:
                field[i, j] /= weight[i, j]


@nb.njit(cache=True)
def splat_density_numba(position_x: np.ndarray, position_y: np.ndarray,
                        n_active: int, inv_h: float, density: np.ndarray):
    """Scatter unit mass per particle onto cell centers (no normalization)."""
    cols = density.shape[0]
    rows = density.shape[1]
    density[:, :] = 0.0

    for p in range(n_active):
        x = position_x[p]
        y = position_y[p]
        if np.isnan(x) or np.isnan(y):
            continue

        ix, iy, fx, fy = _bilinear_coords(x, y, inv_h, 0.5, 0.5, cols, rows)
        density[ix, iy] += (1.0 - fx) * (1.0 - fy)
        density[ix + 1, iy] += fx * (1.0 - fy)
        density[ix, iy + 1] += (1.0 - fx) * fy
        density[ix + 1, iy + 1] += fx * fy


@nb.njit(cache=True)
def sample_numba(x: float, y: float, inv_h: float, ox: float, oy: float,
                 field: np.ndarray) -> float:
    """Bilinearly interpolate ``field`` at a world position."""
    if np.isnan(x) or np.isnan(y):
        return 0.0

    ix, iy, fx, fy = _bilinear_coords(x, y, inv_h, ox, oy,
                                      field.shape[0], field.shape[1])
    return (field[ix, iy] * (1.0 - fx) * (1.0 - fy)
            + field[ix + 1, iy] * fx * (1.0 - fy)
            + field[ix, iy + 1] * (1.0 - fx) * fy
            + field[ix + 1, iy + 1] * fx * fy)


@nb.njit(cache=True)
def grid_to_particles_numba(position_x: np.ndarray, position_y: np.ndarray,
                            velocity_x: np.ndarray, velocity_y: np.ndarray,
                            n_active: int, inv_h: float,
                            u: np.ndarray, v: np.ndarray,
                            u_prev: np.ndarray, v_prev: np.ndarray,
                            flip_ratio: float):
    """Blend FLIP and PIC velocity updates back onto the particles."""
    for p in range(n_active):
        x = position_x[p]
        y = position_y[p]

        u_pic = sample_numba(x, y, inv_h, 0.0, 0.5, u)
        v_pic = sample_numba(x, y, inv_h, 0.5, 0.0, v)
        u_old = sample_numba(x, y, inv_h, 0.0, 0.5, u_prev)
        v_old = sample_numba(x, y, inv_h, 0.5, 0.0, v_prev)

        u_flip = velocity_x[p] + (u_pic - u_old)
        v_flip = velocity_y[p] + (v_pic - v_old)

        velocity_x[p] = u_flip * flip_ratio + u_pic * (1.0 - flip_ratio)
        velocity_y[p] = v_flip * flip_ratio + v_pic * (1.0 - flip_ratio)


def particles_to_grid(particles: ParticleArrays, grid: MACGrid):
    """Rebuild the grid face velocities from the particles.

    Overwrites ``u``/``v`` and their weights, then zeroes every face that
    touches a solid cell.
    """
    inv_h = 1.0 / grid.h
    n = particles.n_active
    splat_velocity_numba(particles.position_x, particles.position_y,
                         particles.velocity_x, n, inv_h,
                         U_OFFSET[0], U_OFFSET[1], grid.u, grid.u_weight)
    splat_velocity_numba(particles.position_x, particles.position_y,
                         particles.velocity_y, n, inv_h,
                         V_OFFSET[0], V_OFFSET[1], grid.v, grid.v_weight)
    grid.enforce_boundaries()


def compute_particle_density(particles: ParticleArrays, grid: MACGrid):
    """Rebuild ``grid.density`` from unit-mass particle splats."""
    splat_density_numba(particles.position_x, particles.position_y,
                        particles.n_active, 1.0 / grid.h, grid.density)


def grid_to_particles(particles: ParticleArrays, grid: MACGrid, flip_ratio: float = 0.95):
    """Update particle velocities from the solved grid.

    ``flip_ratio = 1`` is pure FLIP, ``0`` is pure PIC.
    """
    grid_to_particles_numba(particles.position_x, particles.position_y,
                            particles.velocity_x, particles.velocity_y,
                            particles.n_active, 1.0 / grid.h,
                            grid.u, grid.v, grid.u_prev, grid.v_prev,
                            flip_ratio)


def sample_u(grid: MACGrid, x: float, y: float) -> float:
    """Horizontal grid velocity at a world position."""
    return float(sample_numba(x, y, 1.0 / grid.h, U_OFFSET[0], U_OFFSET[1], grid.u))


def sample_v(grid: MACGrid, x: float, y: float) -> float:
    """Vertical grid velocity at a world position."""
    return float(sample_numba(x, y, 1.0 / grid.h, V_OFFSET[0], V_OFFSET[1], grid.v))
