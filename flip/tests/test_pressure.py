"""
Incompressibility relaxation tests.

Checks convergence of the divergence, the density-based free-surface
correction and that the solver never writes into solid faces.
"""

import numpy as np
import pytest

from flip.core.grid import MACGrid
from flip.core.transfer import particles_to_grid, compute_particle_density
from flip.physics.pressure import (
    solve_incompressibility,
    compute_divergence,
    mean_abs_divergence,
)


def divergence_history(grid, sweeps=30, **kwargs):
    """Mean absolute divergence before and after each single sweep."""
    history = [mean_abs_divergence(grid)]
    for _ in range(sweeps):
        solve_incompressibility(grid, iterations=1, **kwargs)
        history.append(mean_abs_divergence(grid))
    return history


class TestDivergence:
    """Test the divergence operator."""

    def test_uniform_flow_is_divergence_free(self):
        grid = MACGrid(6, 6, 1.0)
        grid.u[:] = 5.0
        grid.v[:] = -1.0
        div = compute_divergence(grid)
        assert np.allclose(div, 0.0)

    def test_source_cell(self):
        grid = MACGrid(6, 6, 1.0)
        grid.u[3, 2] = -1.0
        grid.u[4, 2] = 1.0
        div = compute_divergence(grid)
        assert div[3, 2] == pytest.approx(2.0)
        assert div[2, 2] == pytest.approx(-1.0)
        assert div[4, 2] == pytest.approx(-1.0)

    def test_solid_cells_report_zero(self):
        grid = MACGrid(6, 6, 1.0)
        grid.u[1, 3] = 10.0  # left face of cell (1, 3), right face of solid cell (0, 3)
        div = compute_divergence(grid)
        assert div[0, 3] == 0.0
        assert div[1, 3] == pytest.approx(-10.0)


class TestConvergence:
    """Test that relaxation drives divergence to zero."""

    def test_two_cell_channel_decays_monotonically(self):
        """Two fluid cells sharing one face: each sweep scales the error by (1 - omega)^2."""
        grid = MACGrid(4, 3, 1.0)
        grid.u[2, 1] = 0.1

        history = divergence_history(grid, sweeps=30)

        assert history[0] == pytest.approx(0.1)
        for before, after in zip(history, history[1:]):
            assert after < before, f"Divergence increased: {before} -> {after}"
        assert history[-1] < 1e-3
        assert history[1] == pytest.approx(0.1 * 0.81, rel=1e-4)

    def test_stirred_tank_divergence_is_reduced(self, small_sim, rng):
        """Seeded block with a non-uniform velocity: the solve removes most divergence."""
        particles = small_sim.particles
        n = particles.n_active
        particles.velocity_x[:n] = 50.0 * np.sin(particles.position_y[:n] / small_sim.h)
        particles.velocity_y[:n] = rng.normal(0.0, 20.0, n)

        grid = small_sim.grid
        particles_to_grid(particles, grid)
        compute_particle_density(particles, grid)
        initial = mean_abs_divergence(grid)
        assert initial > 0.0, "Stirred block should start with non-zero divergence"

        solve_incompressibility(grid, iterations=30,
                                rest_density=small_sim.config.rest_density)

        assert mean_abs_divergence(grid) < 0.5 * initial

    def test_random_field_is_reduced(self, rng):
        grid = MACGrid(10, 10, 1.0)
        grid.u[:] = rng.normal(size=grid.u.shape)
        grid.v[:] = rng.normal(size=grid.v.shape)
        grid.enforce_boundaries()
        initial = mean_abs_divergence(grid)

        solve_incompressibility(grid, iterations=30)

        assert mean_abs_divergence(grid) < 0.5 * initial

    def test_zero_iterations_is_a_no_op(self, rng):
        grid = MACGrid(6, 6, 1.0)
        grid.u[:] = rng.normal(size=grid.u.shape)
        before = grid.u.copy()
        solve_incompressibility(grid, iterations=0)
        np.testing.assert_array_equal(grid.u, before)


class TestBoundaryHandling:
    """Test interaction between the solver and the solid ring."""

    def test_solid_faces_are_never_written(self, rng):
        grid = MACGrid(9, 7, 1.0)
        grid.u[:] = rng.normal(size=grid.u.shape)
        grid.v[:] = rng.normal(size=grid.v.shape)
        grid.enforce_boundaries()

        solve_incompressibility(grid, iterations=30)

        solid = grid.solid_mask
        assert not np.any(grid.u[:-1, :][solid])
        assert not np.any(grid.u[1:, :][solid])
        assert not np.any(grid.v[:, :-1][solid])
        assert not np.any(grid.v[:, 1:][solid])

    def test_paddle_face_is_left_alone(self):
        """Faces next to the left wall act as a fixed source for the solve."""
        grid = MACGrid(6, 6, 1.0)
        grid.u[1, 2] = 3.0
        solve_incompressibility(grid, iterations=30)
        assert grid.u[1, 2] == pytest.approx(3.0)


class TestDensityCorrection:
    """Test the free-surface density heuristic."""

    def test_over_dense_cell_expands(self):
        grid = MACGrid(5, 5, 1.0)
        grid.density[2, 2] = 4.5  # excess of 2 over the rest density

        solve_incompressibility(grid, iterations=1, over_relaxation=1.0,
                                rest_density=2.5, density_gain=1.0)

        # Faces of cell (2, 2) point outward
        assert grid.u[2, 2] == pytest.approx(-0.5)
        assert grid.v[2, 2] == pytest.approx(-0.5)
        assert grid.u[3, 2] > 0.0
        assert grid.v[2, 3] > 0.0

    def test_under_dense_cell_is_ignored(self):
        grid = MACGrid(5, 5, 1.0)
        grid.density[2, 2] = 2.0
        solve_incompressibility(grid, iterations=5, rest_density=2.5)
        assert not np.any(grid.u) and not np.any(grid.v)

    def test_gain_scales_correction(self):
        weak = MACGrid(5, 5, 1.0)
        strong = MACGrid(5, 5, 1.0)
        for grid in (weak, strong):
            grid.density[2, 2] = 3.5

        solve_incompressibility(weak, iterations=1, over_relaxation=1.0, density_gain=0.5)
        solve_incompressibility(strong, iterations=1, over_relaxation=1.0, density_gain=1.0)

        assert strong.u[2, 2] == pytest.approx(2.0 * weak.u[2, 2])
