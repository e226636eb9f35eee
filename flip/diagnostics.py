"""Caller-side health checks and summary statistics.

The solver never recovers from numerical blow-up on its own; drivers use
these helpers between frames to detect it and decide when to reset.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import TYPE_CHECKING

import numpy as np

from .physics.pressure import compute_divergence

if TYPE_CHECKING:
    from .simulation import FlipFluidSim


@dataclass
class SimulationStats:
    """Scalar snapshot of a simulation between sub-steps."""
    time: float
    step: int
    n_particles: int
    kinetic_energy: float
    max_speed: float
    mean_abs_divergence: float
    max_abs_divergence: float
    fluid_fraction: float
    finite: bool

    def as_dict(self) -> dict:
        return asdict(self)


def has_non_finite(sim: FlipFluidSim) -> bool:
    """True if any particle coordinate or velocity is NaN or infinite."""
    return not sim.is_finite()


def kinetic_energy(sim: FlipFluidSim) -> float:
    """Sum of 0.5 * |v|^2 over particles (unit mass)."""
    vel = sim.get_velocities().astype(np.float64)
    return float(0.5 * np.sum(vel * vel))


def max_speed(sim: FlipFluidSim) -> float:
    vel = sim.get_velocities().astype(np.float64)
    if len(vel) == 0:
        return 0.0
    return float(np.max(np.linalg.norm(vel, axis=1)))


def divergence_stats(sim: FlipFluidSim) -> tuple[float, float]:
    """(mean, max) absolute divergence over non-solid cells."""
    fluid = ~sim.grid.solid_mask
    div = np.abs(compute_divergence(sim.grid)[fluid])
    if div.size == 0:
        return 0.0, 0.0
    return float(np.mean(div)), float(np.max(div))


def fluid_volume_fraction(sim: FlipFluidSim, threshold: float = 0.5) -> float:
    """Share of non-solid cells whose particle density exceeds ``threshold``."""
    fluid = ~sim.grid.solid_mask
    if not np.any(fluid):
        return 0.0
    return float(np.mean(sim.grid.density[fluid] > threshold))


def collect_stats(sim: FlipFluidSim) -> SimulationStats:
    """Gather every diagnostic into one record."""
    mean_div, max_div = divergence_stats(sim)
    finite = sim.is_finite()
    return SimulationStats(
        time=sim.time,
        step=sim.step_count,
        n_particles=sim.n_particles,
        kinetic_energy=kinetic_energy(sim) if finite else float('nan'),
        max_speed=max_speed(sim) if finite else float('nan'),
        mean_abs_divergence=mean_div,
        max_abs_divergence=max_div,
        fluid_fraction=fluid_volume_fraction(sim),
        finite=finite,
    )
