"""Hybrid FLIP/PIC fluid simulation.

``FlipFluidSim`` couples a fixed-capacity particle arena to a staggered
grid. One call to :meth:`FlipFluidSim.integrate` advances one sub-step:

1. gravity and advection
2. particle separation (spatial hash)
3. wall clamping
4. particle -> grid splat (velocity and density)
5. wave paddle forcing
6. pre-solve snapshot
7. incompressibility relaxation
8. grid -> particle FLIP/PIC blend

Step boundary contract
----------------------
The simulation is single threaded and not re-entrant. Read particle or
grid state only between completed ``integrate()`` calls, and call
:meth:`add_external_force` only between sub-steps. The read-only views
returned by the properties below cannot be written, so a renderer cannot
corrupt the state mid-frame.

Divergence is not handled internally: callers check :meth:`is_finite`
after stepping and call :meth:`reset` when it fails.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .config import FluidConfig
from .core.grid import MACGrid
from .core.particles import ParticleArrays, count_block, seed_block
from .core.spatial_hash import SpatialHash
from .core.integrator import advect_particles, clamp_to_walls, wall_bounds
from .core.transfer import particles_to_grid, compute_particle_density, grid_to_particles
from .physics.pressure import solve_incompressibility
from .physics.forcing import WavePaddle, apply_external_force


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class FlipFluidSim:
    """2-D FLIP/PIC fluid in a walled box."""

    def __init__(
        self,
        width: float,
        height: float,
        spacing: float,
        config: Optional[FluidConfig] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        log_level: str | int = "INFO",
    ) -> None:
        if not (width > 0 and height > 0 and spacing > 0):
            raise ValueError(
                f"FlipFluidSim needs positive dimensions, got width={width}, "
                f"height={height}, spacing={spacing}"
            )

        self.config = (config or FluidConfig()).validate()
        self.width = float(width)
        self.height = float(height)

        # ---------- logger -------------------------------------------------
        self.logger = logging.getLogger(f"FlipFluidSim_{id(self)}")
        self.logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

        # ---------- random source -----------------------------------------
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        # ---------- grid (fixed for the lifetime of the simulation) -------
        self.grid = MACGrid.for_domain(width, height, spacing)

        # ---------- particle arena ----------------------------------------
        cfg = self.config
        capacity = count_block(self.grid.h, self.grid.nx, self.grid.ny,
                               cfg.fill_fraction, cfg.particle_spacing_ratio)
        self._particles = ParticleArrays.allocate(capacity)
        self.hash = SpatialHash(self.grid.nx, self.grid.ny, self.grid.h, capacity)

        # ---------- forcing -----------------------------------------------
        self.gravity = cfg.gravity
        self.paddle = WavePaddle(
            amplitude=cfg.wave_amplitude,
            frequency=cfg.wave_frequency,
            height_fraction=cfg.paddle_height_fraction,
            enabled=cfg.wave_enabled,
        )

        self.time = 0.0
        self.step_count = 0
        self._seed_particles()

        self.logger.info(
            f"FLIP grid {self.grid.nx}x{self.grid.ny} (h={self.grid.h:g}), "
            f"{self.n_particles} particles"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _seed_particles(self):
        cfg = self.config
        seed_block(self._particles, self.grid.h, self.grid.nx, self.grid.ny, self.rng,
                   fill_fraction=cfg.fill_fraction,
                   spacing_ratio=cfg.particle_spacing_ratio,
                   jitter_ratio=cfg.jitter_ratio)

    def reset(self):
        """Re-seed the particle block and zero every grid field.

        Classification is left alone since the walls never move.
        """
        self.grid.clear()
        self._seed_particles()
        self.time = 0.0
        self.step_count = 0
        self.logger.info(f"Simulation reset ({self.n_particles} particles)")

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    @property
    def wall_buffer(self) -> float:
        return self.config.wall_buffer_ratio * self.grid.h

    def integrate(self, dt: float) -> None:
        """Advance one sub-step of length ``dt``."""
        cfg = self.config
        grid = self.grid
        particles = self._particles

        self.time += dt

        # 1. gravity + advection
        advect_particles(particles, dt, self.gravity)

        # 2. separation, before clamping so particles are not pushed into walls
        if cfg.separation_passes > 0:
            self.hash.build(particles)
            order = None
            if cfg.shuffle_separation:
                order = self.rng.permutation(particles.n_active).astype(np.int32)
            self.hash.separate(particles,
                               radius=cfg.separation_radius_ratio * grid.h,
                               strength=cfg.separation_strength,
                               passes=cfg.separation_passes,
                               order=order)

        # 3. walls
        clamp_to_walls(particles, wall_bounds(grid.domain_size, self.wall_buffer))

        # 4. particles -> grid
        particles_to_grid(particles, grid)
        compute_particle_density(particles, grid)

        # 5. wave paddle
        self.paddle.apply(grid, self.time)

        # 6. snapshot for FLIP
        grid.snapshot()

        # 7. incompressibility
        solve_incompressibility(grid,
                                iterations=cfg.pressure_iterations,
                                over_relaxation=cfg.over_relaxation,
                                rest_density=cfg.rest_density,
                                density_gain=cfg.density_gain,
                                epsilon=cfg.divergence_epsilon)

        # 8. grid -> particles
        grid_to_particles(particles, grid, cfg.flip_ratio)

        self.step_count += 1
        self.logger.debug(f"step {self.step_count}: t={self.time:.4f}")

    def step_frame(self, frame_dt: float = 1.0 / 40.0, substeps: int = 5) -> None:
        """Advance one visual frame as ``substeps`` equal sub-steps."""
        if substeps < 1:
            raise ValueError(f"substeps must be >= 1, got {substeps}")
        sub_dt = frame_dt / substeps
        for _ in range(substeps):
            self.integrate(sub_dt)

    def add_external_force(self, x: float, y: float, vx: float, vy: float,
                           radius: float) -> int:
        """Splash: add ``(vx, vy)`` with linear falloff to particles near (x, y).

        Returns:
            Number of particles affected
        """
        return apply_external_force(self._particles, x, y, vx, vy, radius)

    # ------------------------------------------------------------------
    # Read-only state for renderers
    # ------------------------------------------------------------------
    @property
    def particles(self) -> ParticleArrays:
        """Particle arena. Treat as read-only outside of ``integrate``."""
        return self._particles

    @property
    def n_particles(self) -> int:
        return self._particles.n_active

    def get_positions(self) -> np.ndarray:
        return self._particles.get_positions()

    def get_velocities(self) -> np.ndarray:
        return self._particles.get_velocities()

    @property
    def nx(self) -> int:
        return self.grid.nx

    @property
    def ny(self) -> int:
        return self.grid.ny

    @property
    def h(self) -> float:
        return self.grid.h

    @property
    def cell_type(self) -> np.ndarray:
        return _readonly(self.grid.cell_type)

    @property
    def density(self) -> np.ndarray:
        return _readonly(self.grid.density)

    @property
    def u(self) -> np.ndarray:
        return _readonly(self.grid.u)

    @property
    def v(self) -> np.ndarray:
        return _readonly(self.grid.v)

    def is_finite(self) -> bool:
        """True when every particle coordinate and velocity is finite."""
        n = self._particles.n_active
        p = self._particles
        return bool(
            np.all(np.isfinite(p.position_x[:n])) and np.all(np.isfinite(p.position_y[:n]))
            and np.all(np.isfinite(p.velocity_x[:n])) and np.all(np.isfinite(p.velocity_y[:n]))
        )
