"""
Tests for the wave paddle and external point forces.
"""

import numpy as np
import pytest

from flip.core.grid import MACGrid
from flip.core.particles import ParticleArrays
from flip.physics.forcing import WavePaddle, apply_external_force


class TestWavePaddle:
    """Test the left-wall piston."""

    def test_value_follows_sine(self):
        paddle = WavePaddle(amplitude=400.0, frequency=1.0)
        assert paddle.value_at(0.0) == pytest.approx(0.0)
        assert paddle.value_at(np.pi / 2) == pytest.approx(400.0)
        assert paddle.value_at(3 * np.pi / 2) == pytest.approx(-400.0)

    def test_rows_cover_lower_seventy_percent(self):
        paddle = WavePaddle(height_fraction=0.7)
        assert paddle.rows(16) == range(1, 12)    # ceil(11.2) = 12
        assert paddle.rows(34) == range(1, 24)    # ceil(23.8) = 24

    def test_rows_never_reach_the_top_ring(self):
        paddle = WavePaddle(height_fraction=1.0)
        assert paddle.rows(10) == range(1, 9)

    def test_rows_empty_for_tiny_fraction(self):
        paddle = WavePaddle(height_fraction=0.0)
        assert len(paddle.rows(10)) == 0

    def test_apply_writes_first_interior_face_column(self):
        grid = MACGrid(10, 16, 1.0)
        paddle = WavePaddle()
        t = 0.3
        paddle.apply(grid, t)

        expected = 400.0 * np.sin(t)
        np.testing.assert_allclose(grid.u[1, 1:12], expected, rtol=1e-6)
        assert grid.u[1, 0] == 0.0
        assert not np.any(grid.u[1, 12:])
        assert not np.any(grid.u[0, :]) and not np.any(grid.u[2:, :])

    def test_disabled_paddle_is_inert(self):
        grid = MACGrid(10, 16, 1.0)
        WavePaddle(enabled=False).apply(grid, 1.0)
        assert not np.any(grid.u)


class TestExternalForce:
    """Test the radial splash force."""

    def test_linear_falloff(self):
        particles = ParticleArrays.from_positions([0.0, 25.0, 40.0], [0.0, 0.0, 0.0])
        n = apply_external_force(particles, 0.0, 0.0, 100.0, -200.0, 50.0)

        assert n == 3
        np.testing.assert_allclose(particles.velocity_x[:3], [100.0, 50.0, 20.0], rtol=1e-5)
        np.testing.assert_allclose(particles.velocity_y[:3], [-200.0, -100.0, -40.0], rtol=1e-5)

    def test_particles_at_or_beyond_radius_are_untouched(self):
        particles = ParticleArrays.from_positions([50.0, 80.0], [0.0, 0.0], [1.0, 2.0], [3.0, 4.0])
        n = apply_external_force(particles, 0.0, 0.0, 100.0, 100.0, 50.0)

        assert n == 0
        np.testing.assert_array_equal(particles.velocity_x[:2], [1.0, 2.0])
        np.testing.assert_array_equal(particles.velocity_y[:2], [3.0, 4.0])

    def test_force_adds_to_existing_velocity(self):
        particles = ParticleArrays.from_positions([0.0], [0.0], [10.0], [-10.0])
        apply_external_force(particles, 0.0, 0.0, 5.0, 5.0, 1.0)
        assert particles.velocity_x[0] == pytest.approx(15.0)
        assert particles.velocity_y[0] == pytest.approx(-5.0)

    @pytest.mark.parametrize("radius", [0.0, -5.0])
    def test_non_positive_radius_is_a_no_op(self, radius):
        particles = ParticleArrays.from_positions([0.0], [0.0])
        assert apply_external_force(particles, 0.0, 0.0, 1.0, 1.0, radius) == 0
        assert particles.velocity_x[0] == 0.0

    def test_only_active_slots_are_considered(self):
        particles = ParticleArrays.allocate(4)
        particles.n_active = 1
        assert apply_external_force(particles, 0.0, 0.0, 1.0, 1.0, 10.0) == 1
        assert not np.any(particles.velocity_x[1:])
