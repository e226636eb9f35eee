"""
Save simulation snapshots as images instead of interactive display.

Particles are coloured in a few speed buckets (deep blue for slow water,
pale cyan for fast spray) and the solid wall ring is drawn in grey.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .core.grid import CellType

if TYPE_CHECKING:
    from .simulation import FlipFluidSim


# Dark blue -> light cyan
SPEED_COLORS = [
    (30, 144, 255),
    (78, 171, 255),
    (127, 199, 255),
    (175, 227, 255),
    (224, 255, 255),
]


def speed_buckets(sim: FlipFluidSim, n_buckets: int = len(SPEED_COLORS),
                  max_speed: float = 1000.0) -> np.ndarray:
    """Bucket index per particle, proportional to speed and capped at the top bucket.

    Non-finite velocities land in bucket 0.
    """
    vel = sim.get_velocities().astype(np.float64)
    speed = np.linalg.norm(vel, axis=1)
    speed = np.where(np.isfinite(speed), speed, 0.0)
    buckets = np.floor(speed / max_speed * n_buckets).astype(np.int64)
    return np.clip(buckets, 0, n_buckets - 1)


def save_snapshot(sim: FlipFluidSim, path, dpi: int = 100, max_speed: float = 1000.0):
    """Render walls and particles to ``path`` (any format matplotlib saves)."""
    width, height = sim.grid.domain_size
    h = sim.h

    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax.set_facecolor((0.06, 0.09, 0.16))

    # Walls
    solid_i, solid_j = np.nonzero(sim.cell_type == CellType.SOLID)
    for i, j in zip(solid_i, solid_j):
        ax.add_patch(plt.Rectangle((i * h, j * h), h, h, color=(0.3, 0.33, 0.4), lw=0))

    pos = sim.get_positions()
    finite = np.all(np.isfinite(pos), axis=1)
    buckets = speed_buckets(sim, max_speed=max_speed)
    colors = np.array(SPEED_COLORS, dtype=np.float64) / 255.0
    ax.scatter(pos[finite, 0], pos[finite, 1], s=4, c=colors[buckets[finite]], linewidths=0)

    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)  # screen space: y grows downward
    ax.set_aspect('equal')
    ax.set_axis_off()
    ax.set_title(f"t = {sim.time:.2f}s, {sim.n_particles} particles", fontsize=8)

    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
