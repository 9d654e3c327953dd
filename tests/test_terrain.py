"""Tests for the noise field and the terrain grid."""

import numpy as np
import pytest

from tornado_sim.config import MapOptions
from tornado_sim.noise_field import NoiseField
from tornado_sim.terrain import LAND, MOUNTAIN, TERRAIN_COLORS, WATER, TerrainMap


class TestNoiseField:
    """Test the seeded noise sampler."""

    def test_range(self):
        field = NoiseField(seed=3)
        for i in range(200):
            assert 0.0 <= field.noise(i * 0.137, i * 0.071) <= 1.0
            assert 0.0 <= field.noise1d(i * 0.31) <= 1.0

    def test_deterministic(self):
        a, b = NoiseField(seed=11), NoiseField(seed=11)
        samples = [(x * 0.13, x * 0.29) for x in range(50)]
        assert [a.noise(x, y) for x, y in samples] == [b.noise(x, y) for x, y in samples]
        assert [a.noise1d(t) for t, _ in samples] == [b.noise1d(t) for t, _ in samples]

    def test_reseed_changes_field(self):
        field = NoiseField(seed=1)
        before = [field.noise(x * 0.37, 0.5) for x in range(40)]
        field.reseed(2)
        after = [field.noise(x * 0.37, 0.5) for x in range(40)]
        assert before != after
        assert field.seed == 2

    def test_seeds_sharing_a_base_differ(self):
        a, b = NoiseField(seed=5), NoiseField(seed=5 + 256)
        assert a.base == b.base
        assert not np.array_equal(a.grid(40, 40, 0.05, 2), b.grid(40, 40, 0.05, 2))
        assert [a.noise1d(t * 0.1) for t in range(20)] != [b.noise1d(t * 0.1) for t in range(20)]

    def test_smooth(self):
        field = NoiseField(seed=5)
        for i in range(100):
            t = i * 0.05
            assert abs(field.noise1d(t + 0.001) - field.noise1d(t)) < 0.05

    def test_grid_shape(self):
        grid = NoiseField(seed=5).grid(21, 10, 0.015, resolution=2)
        assert grid.shape == (5, 11)
        assert grid.dtype == np.float32


class TestTerrainMap:
    """Test terrain classification and editing."""

    @pytest.fixture
    def terrain(self):
        return TerrainMap.generate(NoiseField(seed=8), 120, 80, MapOptions(grid_resolution=2))

    def test_classes_follow_thresholds(self, terrain):
        options = MapOptions()
        samples = NoiseField(seed=8).grid(120, 80, options.noise_scale, 2)
        assert set(np.unique(terrain.cells)) <= {WATER, LAND, MOUNTAIN}
        assert np.array_equal(terrain.cells == WATER, samples <= options.land_threshold)
        assert np.array_equal(terrain.cells == MOUNTAIN, samples > options.mountain_threshold)

    def test_buildable_only_on_land(self, terrain):
        for y in range(0, 80, 7):
            for x in range(0, 120, 7):
                assert terrain.is_buildable(x, y) == (terrain.kind_at(x, y) == LAND)

    def test_out_of_bounds_is_water(self, terrain):
        assert terrain.kind_at(-1, 10) == WATER
        assert terrain.kind_at(10, 80) == WATER
        assert not terrain.is_buildable(500, 500)

    def test_paint(self, terrain):
        terrain.paint(60, 40, MOUNTAIN, radius=10)
        assert terrain.kind_at(60, 40) == MOUNTAIN
        assert terrain.kind_at(66, 44) == MOUNTAIN
        terrain.paint(60, 40, WATER, radius=10)
        assert terrain.kind_at(60, 40) == WATER

    def test_blank_is_buildable(self):
        blank = TerrainMap.blank(50, 40)
        assert blank.is_buildable(10, 10)
        assert blank.is_buildable(49, 39)

    def test_rgb_layout(self, terrain):
        rgb = terrain.to_rgb()
        assert rgb.shape == (120, 80, 3)
        assert tuple(rgb[5, 7]) == TERRAIN_COLORS[terrain.kind_at(5, 7)]

    def test_odd_size_rgb(self):
        blank = TerrainMap.blank(51, 41, resolution=2)
        assert blank.to_rgb().shape == (51, 41, 3)
