"""
Vectorized particle advection and wall handling.

Includes:
- Explicit gravity + position update (symplectic Euler)
- Clamping boundary conditions that kill the normal velocity on contact
"""

import numpy as np
from typing import Tuple
from .particles import ParticleArrays


def advect_particles(particles: ParticleArrays, dt: float, gravity: float):
    """Apply gravity, then move particles with their updated velocity.

    Gravity acts along +y (screen space, y grows downward).

    Args:
        particles: Particle arrays
        dt: Time step
        gravity: Vertical acceleration
    """
    n = particles.n_active
    particles.velocity_y[:n] += gravity * dt
    particles.position_x[:n] += particles.velocity_x[:n] * dt
    particles.position_y[:n] += particles.velocity_y[:n] * dt


def clamp_to_walls(particles: ParticleArrays, bounds: Tuple[float, float, float, float]):
    """Clamp particles into the domain, zeroing velocity into the wall.

    Unlike a reflective boundary there is no bounce: a particle that
    crosses a wall is placed on it and loses the velocity component
    normal to that wall.

    Args:
        particles: Particle arrays
        bounds: (xmin, xmax, ymin, ymax)
    """
    xmin, xmax, ymin, ymax = bounds
    n = particles.n_active
    px = particles.position_x[:n]
    py = particles.position_y[:n]
    vx = particles.velocity_x[:n]
    vy = particles.velocity_y[:n]

    # Left wall
    mask = px < xmin
    px[mask] = xmin
    vx[mask] = 0.0

    # Right wall
    mask = px > xmax
    px[mask] = xmax
    vx[mask] = 0.0

    # Floor (largest y)
    mask = py > ymax
    py[mask] = ymax
    vy[mask] = 0.0

    # Ceiling
    mask = py < ymin
    py[mask] = ymin
    vy[mask] = 0.0


def wall_bounds(domain_size: Tuple[float, float], buffer: float) -> Tuple[float, float, float, float]:
    """Clamp bounds for a domain with a ``buffer`` margin on every side."""
    width, height = domain_size
    return (buffer, width - buffer, buffer, height - buffer)
