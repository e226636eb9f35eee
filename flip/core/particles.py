"""
Fixed-capacity particle arena using the Structure-of-Arrays (SoA) pattern.

The arena is allocated once per seeding and never grows or shrinks while
the simulation runs, so every per-step loop touches contiguous float32
arrays of a known length.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional


@dataclass
class ParticleArrays:
    """Structure of Arrays holding particle position and velocity.

    Only the first ``n_active`` slots are live. Axes follow screen space:
    x grows to the right, y grows downward.
    """
    position_x: np.ndarray      # shape: (N,) float32
    position_y: np.ndarray      # shape: (N,) float32
    velocity_x: np.ndarray      # shape: (N,) float32
    velocity_y: np.ndarray      # shape: (N,) float32
    n_active: int = 0

    @staticmethod
    def allocate(max_particles: int) -> 'ParticleArrays':
        """Pre-allocate zeroed arrays for ``max_particles`` particles.

        Args:
            max_particles: Capacity of the arena

        Returns:
            ParticleArrays with ``n_active == 0``
        """
        if max_particles < 0:
            raise ValueError(f"max_particles must be non-negative, got {max_particles}")

        return ParticleArrays(
            position_x=np.zeros(max_particles, dtype=np.float32),
            position_y=np.zeros(max_particles, dtype=np.float32),
            velocity_x=np.zeros(max_particles, dtype=np.float32),
            velocity_y=np.zeros(max_particles, dtype=np.float32),
        )

    @staticmethod
    def from_positions(x, y, u=None, v=None) -> 'ParticleArrays':
        """Build a fully active arena from explicit coordinates."""
        x = np.asarray(x, dtype=np.float32)
        y = np.asarray(y, dtype=np.float32)
        arrays = ParticleArrays.allocate(len(x))
        arrays.position_x[:] = x
        arrays.position_y[:] = y
        if u is not None:
            arrays.velocity_x[:] = np.asarray(u, dtype=np.float32)
        if v is not None:
            arrays.velocity_y[:] = np.asarray(v, dtype=np.float32)
        arrays.n_active = len(x)
        return arrays

    @property
    def capacity(self) -> int:
        return len(self.position_x)

    def get_positions(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle positions as (N, 2) array for convenience."""
        n = self.n_active
        if indices is None:
            return np.column_stack((self.position_x[:n], self.position_y[:n]))
        else:
            return np.column_stack((self.position_x[indices], self.position_y[indices]))

    def get_velocities(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle velocities as (N, 2) array for convenience."""
        n = self.n_active
        if indices is None:
            return np.column_stack((self.velocity_x[:n], self.velocity_y[:n]))
        else:
            return np.column_stack((self.velocity_x[indices], self.velocity_y[indices]))

    def clear(self):
        """Zero every slot and mark the arena empty."""
        self.position_x[:] = 0.0
        self.position_y[:] = 0.0
        self.velocity_x[:] = 0.0
        self.velocity_y[:] = 0.0
        self.n_active = 0


def _block_axes(h: float, nx: int, ny: int, fill_fraction: float,
                spacing_ratio: float):
    """Lattice coordinates of the initial fluid block (before jitter)."""
    start_x = h * 2.0
    block_width = (nx - 4) * h
    block_height = (ny - 2) * h * fill_fraction
    max_y = (ny - 1) * h
    start_y = max_y - block_height
    spacing = h * spacing_ratio

    xs = start_x + spacing * np.arange(max(0, int(np.ceil(block_width / spacing))))
    xs = xs[xs < start_x + block_width]
    ys = start_y + spacing * np.arange(max(0, int(np.ceil(block_height / spacing))))
    ys = ys[ys < max_y]
    return xs, ys


def count_block(h: float, nx: int, ny: int, fill_fraction: float = 0.4,
                spacing_ratio: float = 0.85) -> int:
    """Number of particles :func:`seed_block` will create for this grid."""
    xs, ys = _block_axes(h, nx, ny, fill_fraction, spacing_ratio)
    return len(xs) * len(ys)


def seed_block(particles: ParticleArrays, h: float, nx: int, ny: int,
               rng: np.random.Generator,
               fill_fraction: float = 0.4,
               spacing_ratio: float = 0.85,
               jitter_ratio: float = 0.1) -> int:
    """Fill the arena with a jittered block of fluid resting on the floor.

    The block spans nearly the full width (two cells of padding on each
    side) and the bottom ``fill_fraction`` of the interior height. Each
    particle receives one jitter draw applied to both axes so the lattice
    does not imprint on the grid.

    Args:
        particles: Arena with capacity of at least ``count_block(...)``
        h: Grid cell size
        nx, ny: Grid dimensions in cells
        rng: Random source for the jitter
        fill_fraction: Fraction of interior height filled with fluid
        spacing_ratio: Lattice spacing as a multiple of ``h``
        jitter_ratio: Jitter span as a multiple of ``h``

    Returns:
        Number of particles seeded
    """
    xs, ys = _block_axes(h, nx, ny, fill_fraction, spacing_ratio)
    n = len(xs) * len(ys)
    if n > particles.capacity:
        raise ValueError(f"Arena holds {particles.capacity} particles, block needs {n}")

    # x-major ordering, matching a column-by-column sweep of the block
    grid_x, grid_y = np.meshgrid(xs, ys, indexing='ij')
    jitter = (rng.random(n) - 0.5) * (h * jitter_ratio)

    particles.clear()
    particles.position_x[:n] = grid_x.ravel() + jitter
    particles.position_y[:n] = grid_y.ravel() + jitter
    particles.n_active = n
    return n
