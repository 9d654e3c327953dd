"""
Tests for the tornado entity.

Tests cover:
- Initial heading from spawn position
- Spawn-time wind ceiling and width randomization
- Manual spawns and path assignment
- Per-tick motion, wind fade and dissipation
- Waypoint following
"""

import math
import random

import pytest
from pygame.math import Vector2

from tornado_sim.config import PRESETS, TickParams, TornadoOptions
from tornado_sim.ef_scale import DISSIPATED
from tornado_sim.noise_field import NoiseField
from tornado_sim.tornado import (
    draw_potential_wind,
    initial_heading,
    leave_bounds,
    manual_width,
    record_width,
    spawn_autonomous,
    spawn_manual,
    step,
    with_path,
)

BOUNDS = (800, 600)


class TestInitialHeading:
    """Test that tornadoes spawned near edges head inward."""

    @pytest.mark.parametrize(
        "position,angle",
        [
            ((50, 50), math.pi / 4),
            ((750, 50), 3 * math.pi / 4),
            ((50, 550), -math.pi / 4),
            ((750, 550), -3 * math.pi / 4),
            ((400, 50), math.pi / 2),
            ((400, 550), -math.pi / 2),
            ((50, 300), 0.0),
            ((750, 300), math.pi),
            ((400, 300), -math.pi / 4),
        ],
    )
    def test_heading(self, position, angle):
        assert initial_heading(position, BOUNDS) == pytest.approx(angle)


class TestSpawn:
    """Test spawn randomization."""

    def test_potential_respects_spawn_ceiling(self):
        rng = random.Random(5)
        options = TornadoOptions(ef6_chance=0.0)
        for _ in range(200):
            potential, extreme = draw_potential_wind(rng, options)
            assert 80 <= potential <= 200
            assert extreme is False

    def test_potential_respects_cap(self):
        rng = random.Random(5)
        options = TornadoOptions(ef6_chance=0.0)
        for _ in range(200):
            potential, _ = draw_potential_wind(rng, options, cap=2)
            assert potential <= 136

    def test_extreme_event(self):
        rng = random.Random(5)
        potential, extreme = draw_potential_wind(rng, TornadoOptions(ef6_chance=1.0), cap=6)
        assert extreme is True
        assert 320 <= potential <= 1000

    def test_no_extreme_event_below_ef6_cap(self):
        rng = random.Random(5)
        for _ in range(50):
            potential, extreme = draw_potential_wind(rng, TornadoOptions(ef6_chance=1.0), cap=5)
            assert extreme is False
            assert potential <= 200

    def test_autonomous(self):
        rng = random.Random(9)
        for _ in range(100):
            tornado = spawn_autonomous(rng, BOUNDS)
            assert 0 <= tornado.position.x <= 800
            assert 0 <= tornado.position.y <= 600
            assert 800 <= tornado.lifespan_remaining <= 1500
            assert 2 <= tornado.render_width <= 27
            assert tornado.is_alive
            assert tornado.wind_speed == 0
            assert tornado.follow_path is False
            assert tornado.position == tornado.previous_position

    def test_wide_preset_width(self):
        rng = random.Random(9)
        widths = [spawn_autonomous(rng, BOUNDS, preset=PRESETS["wide"]).render_width for _ in range(200)]
        assert max(widths) > 27
        assert max(widths) <= 50

    def test_manual(self, rng):
        tornado = spawn_manual(rng, (400, 300), BOUNDS, wind=120, width_miles=0.8)
        assert tornado.position == Vector2(400, 300)
        assert tornado.render_width == 8
        assert tornado.wind_speed == 120
        assert tornado.max_wind_seen == 120
        assert tornado.lifespan_remaining == 2000
        assert tornado.follow_path is False

    @pytest.mark.parametrize("miles,pixels", [(0.8, 8), (0.1, 2), (10, 27), (2.7, 27)])
    def test_manual_width(self, miles, pixels):
        assert manual_width(miles) == pytest.approx(pixels)

    def test_manual_with_path(self, rng):
        tornado = spawn_manual(rng, (100, 100), BOUNDS, 120, 1.0, path=[(200, 200), (300, 100)])
        assert tornado.follow_path is True
        assert tornado.waypoints == ((200.0, 200.0), (300.0, 100.0))
        assert tornado.base_angle == pytest.approx(math.pi / 4)


class TestPath:
    def test_empty_path_ignored(self, make_tornado):
        tornado = make_tornado()
        assert with_path(tornado, []) is tornado
        assert with_path(tornado, None) is tornado

    def test_malformed_path_ignored(self, make_tornado):
        tornado = make_tornado()
        assert with_path(tornado, [(1, 2), (float("nan"), 3)]) is tornado
        assert with_path(tornado, [(1,)]) is tornado

    def test_path_is_copied(self, make_tornado):
        points = [[150, 100]]
        tornado = with_path(make_tornado(), points)
        points[0][0] = 999
        assert tornado.waypoints == ((150.0, 100.0),)
        assert tornado.waypoint_index == 0
        assert tornado.base_angle == pytest.approx(0.0)


class TestStep:
    """Test the per-tick transition."""

    def test_does_not_mutate_input(self, make_tornado, flat_noise):
        tornado = make_tornado(lifespan=500)
        step(tornado, TickParams(), flat_noise)
        assert tornado.position == Vector2(100, 100)
        assert tornado.lifespan_remaining == 500
        assert tornado.wind_speed == 0

    def test_flat_noise_moves_straight(self, make_tornado, flat_noise):
        # noise 0.5 -> no wobble, speed map(0.5) = 2, halved = 1
        tornado = make_tornado(angle=0.0)
        moved = step(tornado, TickParams(wobble=2.0), flat_noise)
        assert moved.position.x == pytest.approx(101)
        assert moved.position.y == pytest.approx(100)
        assert moved.previous_position == Vector2(100, 100)

    def test_wobble(self, make_tornado, constant_noise):
        # noise 1.0 -> wobble +pi/2 at factor 1, speed 3 * 0.5
        moved = step(make_tornado(angle=0.0), TickParams(wobble=1.0), constant_noise(1.0))
        assert moved.position.x == pytest.approx(100)
        assert moved.position.y == pytest.approx(101.5)

    def test_no_wobble_at_zero(self, make_tornado, constant_noise):
        moved = step(make_tornado(angle=0.0), TickParams(wobble=0.0), constant_noise(1.0))
        assert moved.position.x == pytest.approx(101.5)
        assert moved.position.y == pytest.approx(100)

    def test_clocks_advance(self, make_tornado, flat_noise):
        moved = step(make_tornado(), TickParams(), flat_noise)
        assert moved.age_clock == pytest.approx(10.008)
        assert moved.wind_clock == pytest.approx(20.02)

    def test_wind_maps_onto_potential(self, make_tornado, constant_noise):
        moved = step(make_tornado(potential=180, lifespan=1000), TickParams(), constant_noise(1.0))
        assert moved.wind_speed == pytest.approx(180)
        assert moved.max_wind_seen == pytest.approx(180)

    def test_wind_bias(self, make_tornado, constant_noise):
        # sqrt(0.25) = 0.5 -> halfway between 40 and 140
        moved = step(make_tornado(potential=140), TickParams(), constant_noise(0.25))
        assert moved.wind_speed == pytest.approx(90)

    def test_wind_fades_near_end_of_life(self, make_tornado, constant_noise):
        moved = step(make_tornado(potential=180, lifespan=101), TickParams(), constant_noise(1.0))
        assert moved.lifespan_remaining == 100
        assert moved.wind_speed == pytest.approx(90)

    def test_lifespan_death(self, make_tornado, flat_noise):
        tornado = make_tornado(wind=150, lifespan=1)
        dead = step(tornado, TickParams(), flat_noise)
        assert dead.is_alive is False
        assert dead.wind_speed == 0
        assert dead.death_reason == "lifespan"
        assert dead.position == tornado.position
        assert dead.max_wind_seen == 150
        assert dead.ef_rating() is DISSIPATED

    def test_dead_is_frozen(self, make_tornado, flat_noise):
        dead = step(make_tornado(lifespan=1), TickParams(), flat_noise)
        assert step(dead, TickParams(), flat_noise) is dead

    def test_max_wind_is_high_water_mark(self):
        noise = NoiseField(seed=42)
        tornado = spawn_autonomous(random.Random(42), BOUNDS)
        tornado.position = Vector2(400, 300)
        tornado.base_angle = 0.0
        winds = []
        previous_max = 0.0
        while tornado.is_alive:
            tornado = step(tornado, TickParams(wobble=0.0), noise)
            assert tornado.max_wind_seen >= previous_max
            previous_max = tornado.max_wind_seen
            winds.append(tornado.wind_speed)
        assert tornado.wind_speed == 0
        assert tornado.max_wind_seen == pytest.approx(max(winds))

    def test_wind_tapers_before_lifespan_death(self, constant_noise, make_tornado):
        tornado = make_tornado(potential=200, lifespan=300)
        winds = []
        while tornado.is_alive:
            tornado = step(tornado, TickParams(wobble=0.0), constant_noise(0.9))
            winds.append(tornado.wind_speed)
        assert winds[-2] < 2.0
        assert winds[-1] == 0


class TestWaypoints:
    """Test path following."""

    def test_two_waypoints(self, make_tornado, flat_noise):
        tornado = with_path(make_tornado(100, 100, lifespan=2000), [(105, 100), (120, 100)])
        tornado = step(tornado, TickParams(), flat_noise)
        assert tornado.is_alive
        assert tornado.waypoint_index == 1

        ticks = 1
        while tornado.is_alive:
            tornado = step(tornado, TickParams(), flat_noise)
            ticks += 1
            assert ticks < 100
        assert tornado.death_reason == "path_end"
        assert tornado.wind_speed == 0
        assert tornado.follow_path is True
        # dies on the tick that starts within 8 px of the final waypoint
        assert ticks == 14
        assert tornado.position.x == pytest.approx(114)

    def test_constant_path_speed(self, make_tornado, flat_noise):
        tornado = with_path(make_tornado(100, 100), [(300, 100)])
        moved = step(tornado, TickParams(), flat_noise, preset=PRESETS["wide"])
        assert moved.position.x == pytest.approx(101.5)

    def test_path_ignores_base_angle(self, make_tornado, flat_noise):
        tornado = with_path(make_tornado(100, 100, angle=math.pi), [(100, 200)])
        moved = step(tornado, TickParams(), flat_noise)
        assert moved.position.x == pytest.approx(100)
        assert moved.position.y == pytest.approx(101)


class TestBoundsAndWidth:
    def test_leave_bounds(self, make_tornado):
        tornado = make_tornado(-0.5, 300, wind=120)
        gone = leave_bounds(tornado, BOUNDS)
        assert gone.is_alive is False
        assert gone.wind_speed == 0
        assert gone.death_reason == "left_map"
        assert tornado.is_alive is True

    def test_inside_bounds_unchanged(self, make_tornado):
        tornado = make_tornado(800, 600, wind=120)
        assert leave_bounds(tornado, BOUNDS) is tornado

    def test_record_width(self, make_tornado):
        tornado = make_tornado(width=12.0)
        recorded = record_width(tornado)
        assert recorded.max_width == 12.0
        assert recorded.max_width_miles == pytest.approx(1.2)
        assert record_width(recorded) is recorded
