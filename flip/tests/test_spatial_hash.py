"""
Tests for the linked-cell spatial hash and particle separation.
"""

import numpy as np
import pytest

from flip.core.particles import ParticleArrays
from flip.core.spatial_hash import SpatialHash


class TestBuild:
    """Test bucket construction."""

    def test_particles_land_in_their_cells(self):
        particles = ParticleArrays.from_positions([0.5, 1.5, 0.7, 3.2], [0.5, 0.5, 0.2, 2.9])
        hash_grid = SpatialHash(4, 4, 1.0, particles.n_active)
        hash_grid.build(particles)

        assert sorted(hash_grid.bucket(0, 0)) == [0, 2]
        assert hash_grid.bucket(1, 0) == [1]
        assert hash_grid.bucket(3, 2) == [3]
        assert hash_grid.bucket(2, 2) == []

    def test_out_of_range_particles_are_clipped(self):
        particles = ParticleArrays.from_positions([-5.0, 50.0], [-1.0, 50.0])
        hash_grid = SpatialHash(4, 3, 1.0, 2)
        hash_grid.build(particles)

        assert hash_grid.bucket(0, 0) == [0]
        assert hash_grid.bucket(3, 2) == [1]

    def test_rebuild_discards_previous_contents(self):
        particles = ParticleArrays.from_positions([0.5], [0.5])
        hash_grid = SpatialHash(4, 4, 1.0, 1)
        hash_grid.build(particles)

        particles.position_x[0] = 2.5
        particles.position_y[0] = 2.5
        hash_grid.build(particles)

        assert hash_grid.bucket(0, 0) == []
        assert hash_grid.bucket(2, 2) == [0]

    def test_statistics(self):
        particles = ParticleArrays.from_positions([0.5, 0.6, 2.5], [0.5, 0.6, 2.5])
        hash_grid = SpatialHash(4, 4, 1.0, 3)
        hash_grid.build(particles)
        stats = hash_grid.get_statistics()

        assert stats['total_cells'] == 16
        assert stats['occupied_cells'] == 2
        assert stats['max_particles_per_cell'] == 2
        assert stats['mean_particles_per_occupied_cell'] == pytest.approx(1.5)


class TestSeparation:
    """Test overlap resolution between particle pairs."""

    def separate(self, xs, ys, cell_size=1.0, **kwargs):
        particles = ParticleArrays.from_positions(xs, ys)
        hash_grid = SpatialHash(4, 4, cell_size, particles.n_active)
        hash_grid.build(particles)
        n = hash_grid.separate(particles, radius=cell_size, **kwargs)
        return particles, n

    def test_pair_moves_apart_symmetrically(self):
        """Particles at (0, 0) and (0, r/2) end at (0, -r/4) and (0, 3r/4)."""
        r = 1.0
        particles, n = self.separate([0.0, 0.0], [0.0, r / 2], cell_size=r)

        assert n == 1, "Only the first visit should correct the pair"
        assert particles.position_x[0] == pytest.approx(0.0)
        assert particles.position_x[1] == pytest.approx(0.0)
        assert particles.position_y[0] == pytest.approx(-r / 4)
        assert particles.position_y[1] == pytest.approx(3 * r / 4)

    def test_each_particle_moves_half_the_softened_overlap(self):
        r = 2.0
        particles, _ = self.separate([1.0, 1.6], [1.0, 1.0], cell_size=r)
        overlap = r - 0.6
        shift = overlap * 0.5
        assert particles.position_x[0] == pytest.approx(1.0 - shift, rel=1e-5)
        assert particles.position_x[1] == pytest.approx(1.6 + shift, rel=1e-5)

    def test_centroid_is_preserved(self, rng):
        xs = rng.uniform(1.0, 3.0, 40)
        ys = rng.uniform(1.0, 3.0, 40)
        particles, n = self.separate(xs, ys)

        assert n > 0
        assert np.mean(particles.position_x[:40]) == pytest.approx(np.mean(xs), abs=1e-4)
        assert np.mean(particles.position_y[:40]) == pytest.approx(np.mean(ys), abs=1e-4)

    def test_coincident_particles_are_skipped(self):
        particles, n = self.separate([1.5, 1.5], [1.5, 1.5])
        assert n == 0
        assert np.all(np.isfinite(particles.position_x[:2]))
        assert particles.position_x[0] == particles.position_x[1] == pytest.approx(1.5)

    def test_distant_particles_untouched(self):
        particles, n = self.separate([0.5, 2.5], [0.5, 2.5])
        assert n == 0
        assert particles.position_x[0] == pytest.approx(0.5)
        assert particles.position_y[1] == pytest.approx(2.5)

    def test_more_passes_spread_a_cluster_further(self, rng):
        xs = rng.uniform(1.8, 2.2, 10)
        ys = rng.uniform(1.8, 2.2, 10)

        one, _ = self.separate(xs, ys, passes=1)
        three, _ = self.separate(xs, ys, passes=3)

        def spread(p):
            return np.std(p.position_x[:10]) + np.std(p.position_y[:10])

        assert spread(three) > spread(one)

    def test_visiting_order_is_configurable(self):
        """Reversing the order lets the second particle resolve the pair."""
        particles, n = self.separate([0.0, 0.0], [0.0, 0.5],
                                     order=np.array([1, 0]))
        assert n == 1
        assert particles.position_y[0] == pytest.approx(-0.25)
        assert particles.position_y[1] == pytest.approx(0.75)
