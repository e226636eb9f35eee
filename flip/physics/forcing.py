"""
Boundary forcing: the wave paddle and external point forces.
"""

import numpy as np
from dataclasses import dataclass

from ..core.grid import MACGrid
from ..core.particles import ParticleArrays


@dataclass
class WavePaddle:
    """Sinusoidal piston on the left wall.

    Each step the horizontal velocity of the first interior face column
    (``u[1, j]``) is overwritten from the bottom of the solid ring up to
    ``height_fraction`` of the grid. The solver never updates these faces
    (their left neighbour is solid), so they act as a source term for the
    next relaxation.
    """
    amplitude: float = 400.0
    frequency: float = 1.0
    height_fraction: float = 0.7
    enabled: bool = True

    def value_at(self, time: float) -> float:
        """Paddle velocity at simulation time ``time``."""
        return self.amplitude * np.sin(time * self.frequency)

    def rows(self, ny: int) -> range:
        """Face rows driven by the paddle, never touching the top/bottom ring."""
        top = min(int(np.ceil(ny * self.height_fraction)), ny - 1)
        return range(1, max(1, top))

    def apply(self, grid: MACGrid, time: float):
        """Write the paddle velocity into the left boundary faces."""
        if not self.enabled:
            return
        rows = self.rows(grid.ny)
        if len(rows) == 0:
            return
        grid.u[1, rows.start:rows.stop] = self.value_at(time)


def apply_external_force(particles: ParticleArrays, x: float, y: float,
                         vx: float, vy: float, radius: float) -> int:
    """Add velocity to particles near a point with linear falloff.

    Every particle strictly closer than ``radius`` to (x, y) gains
    ``(vx, vy) * (1 - dist / radius)``.

    Returns:
        Number of particles affected
    """
    if not radius > 0:
        return 0

    n = particles.n_active
    dx = particles.position_x[:n] - x
    dy = particles.position_y[:n] - y
    dist2 = dx * dx + dy * dy
    mask = dist2 < radius * radius
    if not np.any(mask):
        return 0

    strength = 1.0 - np.sqrt(dist2[mask]) / radius
    particles.velocity_x[:n][mask] += (vx * strength).astype(np.float32)
    particles.velocity_y[:n][mask] += (vy * strength).astype(np.float32)
    return int(np.count_nonzero(mask))
