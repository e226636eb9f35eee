"""
Numba-compiled spatial hashing for particle separation.

A uniform grid at the simulation cell size stores one linked list per
cell: ``cell_head[c]`` holds the last particle inserted into cell ``c``
and ``particle_next[i]`` the particle inserted before ``i``. Both arrays
are rebuilt from scratch every step.
"""

import numpy as np
import numba as nb
from typing import Optional

from .particles import ParticleArrays


@nb.njit(cache=True)
def build_linked_cells_numba(position_x: np.ndarray, position_y: np.ndarray,
                             n_active: int, cell_size: float, nx: int, ny: int,
                             cell_head: np.ndarray, particle_next: np.ndarray):
    """Bucket particles into per-cell linked lists.

    Sequential on purpose: head insertion is not safe under ``prange``.

    Args:
        position_x, position_y: Particle positions
        n_active: Number of active particles
        cell_size: Size of each hash cell
        nx, ny: Hash dimensions
        cell_head: Output, shape (nx * ny,), -1 for an empty bucket
        particle_next: Output, shape (>= n_active,), -1 terminates a chain
    """
    inv_h = 1.0 / cell_size
    cell_head[:] = -1
    particle_next[:] = -1

    for i in range(n_active):
        cx = int(np.floor(position_x[i] * inv_h))
        cy = int(np.floor(position_y[i] * inv_h))

        # Clip to bounds
        cx = max(0, min(cx, nx - 1))
        cy = max(0, min(cy, ny - 1))

        c = cx + cy * nx
        particle_next[i] = cell_head[c]
        cell_head[c] = i


@nb.njit(cache=True)
def separate_particles_numba(position_x: np.ndarray, position_y: np.ndarray,
                             order: np.ndarray, cell_size: float, nx: int, ny: int,
                             cell_head: np.ndarray, particle_next: np.ndarray,
                             radius: float, strength: float, min_dist2: float):
    """One relaxation pass pushing overlapping particle pairs apart.

    Positions are updated in place while iterating, so later particles see
    the corrections applied by earlier ones (Gauss-Seidel style). Buckets
    keep the membership computed at build time.

    Returns:
        Number of pair corrections applied
    """
    inv_h = 1.0 / cell_size
    radius2 = radius * radius
    n_corrections = 0

    for k in range(order.shape[0]):
        i = order[k]
        cx = int(np.floor(position_x[i] * inv_h))
        cy = int(np.floor(position_y[i] * inv_h))

        for ncx in range(cx - 1, cx + 2):
            for ncy in range(cy - 1, cy + 2):
                if ncx < 0 or ncx >= nx or ncy < 0 or ncy >= ny:
                    continue

                j = cell_head[ncx + ncy * nx]
                while j != -1:
                    if j != i:
                        dx = position_x[i] - position_x[j]
                        dy = position_y[i] - position_y[j]
                        dist2 = dx * dx + dy * dy

                        if dist2 < radius2 and dist2 > min_dist2:
                            dist = np.sqrt(dist2)
                            push = (radius - dist) * strength
                            fx = dx / dist * push
                            fy = dy / dist * push

                            position_x[i] += fx
                            position_y[i] += fy
                            position_x[j] -= fx
                            position_y[j] -= fy
                            n_corrections += 1
                    j = particle_next[j]

    return n_corrections


class SpatialHash:
    """Disposable bucket hash sized to the simulation grid.

    The two index arrays are allocated once and refilled on every
    :meth:`build`; nothing is updated incrementally.
    """

    def __init__(self, nx: int, ny: int, cell_size: float, max_particles: int):
        self.nx = nx
        self.ny = ny
        self.cell_size = cell_size
        self.cell_head = np.full(nx * ny, -1, dtype=np.int32)
        self.particle_next = np.full(max(1, max_particles), -1, dtype=np.int32)
        self._n_built = 0

    def build(self, particles: ParticleArrays):
        """Rebuild the buckets from the current particle positions."""
        n = particles.n_active
        if len(self.particle_next) < n:
            self.particle_next = np.full(n, -1, dtype=np.int32)

        build_linked_cells_numba(
            particles.position_x, particles.position_y, n,
            self.cell_size, self.nx, self.ny,
            self.cell_head, self.particle_next
        )
        self._n_built = n

    def separate(self, particles: ParticleArrays, radius: float,
                 strength: float = 0.5, passes: int = 1,
                 order: Optional[np.ndarray] = None,
                 min_dist2: float = 1e-6) -> int:
        """Push apart particles closer than ``radius``.

        The hash must have been built from the same particles. Each pair
        closer than ``radius`` is moved apart symmetrically by
        ``(radius - dist) * strength`` per particle.

        Args:
            particles: Particle arena (positions updated in place)
            radius: Interaction radius, normally the cell size
            strength: Fraction of the overlap each particle moves
            passes: Number of relaxation passes over all particles
            order: Optional visiting order (permutation of active indices)
            min_dist2: Pairs at or below this squared distance are skipped

        Returns:
            Total number of pair corrections applied
        """
        n = particles.n_active
        if order is None:
            order = np.arange(n, dtype=np.int32)
        else:
            order = np.ascontiguousarray(order, dtype=np.int32)

        total = 0
        for _ in range(passes):
            total += separate_particles_numba(
                particles.position_x, particles.position_y, order,
                self.cell_size, self.nx, self.ny,
                self.cell_head, self.particle_next,
                radius, strength, min_dist2
            )
        return total

    def bucket(self, i: int, j: int) -> list:
        """Particle indices stored in cell (i, j), most recent first."""
        members = []
        k = self.cell_head[i + j * self.nx]
        while k != -1:
            members.append(int(k))
            k = self.particle_next[k]
        return members

    def get_statistics(self) -> dict:
        """Get hash table statistics."""
        counts = np.zeros(self.nx * self.ny, dtype=np.int32)
        for c in np.nonzero(self.cell_head >= 0)[0]:
            k = self.cell_head[c]
            while k != -1:
                counts[c] += 1
                k = self.particle_next[k]

        occupied = int(np.sum(counts > 0))
        return {
            'total_cells': self.nx * self.ny,
            'occupied_cells': occupied,
            'occupancy_rate': occupied / (self.nx * self.ny),
            'max_particles_per_cell': int(counts.max()) if counts.size else 0,
            'mean_particles_per_occupied_cell': int(counts.sum()) / max(1, occupied)
        }
