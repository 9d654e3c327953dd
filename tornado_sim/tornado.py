"""Tornado entity: spawn randomization, motion and wind evolution.

``step`` is a pure transition: it never mutates its input and never draws or
touches cities. The orchestrator feeds the returned tornado to the render
sink and the casualty model, then applies ``leave_bounds``.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from pygame.math import Vector2

from .config import PIXELS_PER_MILE, PRESETS, MotionPreset, TickParams, TornadoOptions
from .ef_scale import DISSIPATED, MAX_CAP, EFRating, cap_to_wind, classify
from .geometry import constrain, map_range

Point = Tuple[float, float]
Bounds = Tuple[float, float]

DEFAULT_OPTIONS = TornadoOptions()
DEFAULT_PRESET = PRESETS["classic"]


class NoiseSource(Protocol):
    def noise1d(self, t: float) -> float: ...


@dataclass
class Tornado:
    position: Vector2
    previous_position: Vector2
    age_clock: float
    wind_clock: float
    lifespan_remaining: int
    potential_max_wind: float
    render_width: float
    base_angle: float
    wind_speed: float = 0.0
    max_wind_seen: float = 0.0
    max_width: float = 0.0
    follow_path: bool = False
    waypoints: Tuple[Point, ...] = ()
    waypoint_index: int = 0
    is_alive: bool = True
    is_extreme: bool = False
    death_reason: Optional[str] = field(default=None, compare=False)

    def ef_rating(self, cap: int = MAX_CAP) -> EFRating:
        if not self.is_alive:
            return DISSIPATED
        return classify(self.wind_speed, cap)

    @property
    def max_width_miles(self) -> float:
        return self.max_width / PIXELS_PER_MILE

    @property
    def current_waypoint(self) -> Optional[Point]:
        if not self.follow_path or self.waypoint_index >= len(self.waypoints):
            return None
        return self.waypoints[self.waypoint_index]


# --- Spawning ----------------------------------------------------------------------
def initial_heading(position: Sequence[float], bounds: Bounds, edge_buffer: float = 150.0) -> float:
    """Heading in radians; tornadoes spawned near an edge or corner point inward."""
    x, y = position[0], position[1]
    width, height = bounds
    near_top = y < edge_buffer
    near_bottom = y > height - edge_buffer
    near_left = x < edge_buffer
    near_right = x > width - edge_buffer

    if near_top and near_left:
        return math.pi / 4
    if near_top and near_right:
        return 3 * math.pi / 4
    if near_bottom and near_left:
        return -math.pi / 4
    if near_bottom and near_right:
        return -3 * math.pi / 4
    if near_top:
        return math.pi / 2
    if near_bottom:
        return -math.pi / 2
    if near_left:
        return 0.0
    if near_right:
        return math.pi
    return -math.pi / 4


def draw_potential_wind(rng: random.Random, options: TornadoOptions = DEFAULT_OPTIONS, cap: int = MAX_CAP) -> Tuple[float, bool]:
    """Per-tornado wind ceiling and whether it was forced into the extreme range."""
    # Max of two draws biases toward higher ceilings.
    potential = max(
        rng.uniform(options.potential_floor, options.max_speed),
        rng.uniform(options.potential_floor, options.max_speed),
    )
    potential = min(potential, options.max_spawn_wind, cap_to_wind(cap))

    if rng.random() < options.ef6_chance and cap >= MAX_CAP:
        return rng.uniform(options.extreme_floor, options.max_speed), True
    return potential, False


def spawn_autonomous(
    rng: random.Random,
    bounds: Bounds,
    options: TornadoOptions = DEFAULT_OPTIONS,
    preset: MotionPreset = DEFAULT_PRESET,
    cap: int = MAX_CAP,
    position: Optional[Point] = None,
) -> Tornado:
    if position is None:
        position = (rng.uniform(0, bounds[0]), rng.uniform(0, bounds[1]))
    start = Vector2(position)
    potential, extreme = draw_potential_wind(rng, options, cap)
    return Tornado(
        position=start,
        previous_position=Vector2(start),
        age_clock=rng.uniform(*options.age_clock_range),
        wind_clock=rng.uniform(*options.wind_clock_range),
        lifespan_remaining=rng.randint(*options.lifespan_range),
        potential_max_wind=potential,
        render_width=rng.uniform(*preset.width_range),
        base_angle=initial_heading(start, bounds, options.edge_buffer),
        is_extreme=extreme,
    )


def manual_width(width_miles: float, preset: MotionPreset = DEFAULT_PRESET) -> float:
    """Track width in pixels for a user-entered width in miles."""
    return constrain(width_miles * PIXELS_PER_MILE, *preset.width_range)


def spawn_manual(
    rng: random.Random,
    position: Point,
    bounds: Bounds,
    wind: float,
    width_miles: float,
    path: Optional[Iterable[Point]] = None,
    options: TornadoOptions = DEFAULT_OPTIONS,
    preset: MotionPreset = DEFAULT_PRESET,
    cap: int = MAX_CAP,
) -> Tornado:
    tornado = spawn_autonomous(rng, bounds, options, preset, cap, position=position)
    tornado.wind_speed = wind
    tornado.max_wind_seen = wind
    tornado.render_width = manual_width(width_miles, preset)
    tornado.lifespan_remaining = options.manual_lifespan
    return with_path(tornado, path)


def _valid_point(point) -> bool:
    try:
        x, y = point[0], point[1]
        return math.isfinite(float(x)) and math.isfinite(float(y))
    except (TypeError, IndexError, ValueError):
        return False


def with_path(tornado: Tornado, points: Optional[Iterable[Point]]) -> Tornado:
    """Copy of ``tornado`` steering through ``points``; unchanged if the path is empty or malformed."""
    if points is None:
        return tornado
    points = list(points)
    if not points or not all(_valid_point(p) for p in points):
        return tornado
    waypoints = tuple((float(p[0]), float(p[1])) for p in points)
    target = waypoints[0]
    heading = math.atan2(target[1] - tornado.position.y, target[0] - tornado.position.x)
    return replace(tornado, follow_path=True, waypoints=waypoints, waypoint_index=0, base_angle=heading)


# --- Per-tick transition -----------------------------------------------------------
def _dissipate(tornado: Tornado, reason: str) -> None:
    tornado.is_alive = False
    tornado.wind_speed = 0.0
    tornado.death_reason = reason


def step(
    tornado: Tornado,
    params: TickParams,
    noise: NoiseSource,
    options: TornadoOptions = DEFAULT_OPTIONS,
    preset: MotionPreset = DEFAULT_PRESET,
) -> Tornado:
    """Advance one tick of motion and wind. Bounds are checked separately by ``leave_bounds``."""
    if not tornado.is_alive:
        return tornado

    nxt = replace(tornado, position=Vector2(tornado.position), previous_position=Vector2(tornado.previous_position))
    nxt.lifespan_remaining -= 1
    if nxt.lifespan_remaining <= 0:
        _dissipate(nxt, "lifespan")
        return nxt

    nxt.previous_position = Vector2(nxt.position)

    target = nxt.current_waypoint
    if target is not None:
        dx = target[0] - nxt.position.x
        dy = target[1] - nxt.position.y
        distance_to_target = math.hypot(dx, dy)
        heading = math.atan2(dy, dx)
        wobbles = preset.wobble_on_path
    else:
        heading = nxt.base_angle
        wobbles = True

    if wobbles:
        heading += (noise.noise1d(nxt.age_clock) - 0.5) * math.pi * params.wobble

    if target is not None and preset.path_speed is not None:
        speed = preset.path_speed
    else:
        speed_noise = noise.noise1d(nxt.age_clock + options.speed_noise_offset)
        speed = map_range(speed_noise, 0.0, 1.0, *preset.speed_range) * preset.speed_scale
    nxt.position += Vector2(math.cos(heading), math.sin(heading)) * speed

    if target is not None and distance_to_target < options.waypoint_threshold:
        nxt.waypoint_index += 1
        if nxt.waypoint_index >= len(nxt.waypoints):
            _dissipate(nxt, "path_end")
            return nxt

    nxt.age_clock += options.age_rate
    nxt.wind_clock += options.wind_rate

    life_factor = constrain(nxt.lifespan_remaining / options.fade_ticks, 0.0, 1.0)
    # Sub-unit power pushes samples toward 1 so strong winds are more common.
    wind_noise = noise.noise1d(nxt.wind_clock) ** options.wind_bias
    ceiling = map_range(wind_noise, 0.0, 1.0, options.min_speed, nxt.potential_max_wind)
    nxt.wind_speed = ceiling * life_factor
    nxt.max_wind_seen = max(nxt.max_wind_seen, nxt.wind_speed)
    return nxt


def leave_bounds(tornado: Tornado, bounds: Bounds) -> Tornado:
    """Dissipate a tornado that has left the map."""
    if not tornado.is_alive:
        return tornado
    x, y = tornado.position
    if 0 <= x <= bounds[0] and 0 <= y <= bounds[1]:
        return tornado
    gone = replace(tornado)
    _dissipate(gone, "left_map")
    return gone


def record_width(tornado: Tornado) -> Tornado:
    if tornado.render_width <= tornado.max_width:
        return tornado
    return replace(tornado, max_width=tornado.render_width)
