"""Simulation orchestrator: owns the map, the tornado list and the casualty ledger.

All mutation happens inside ``tick``. Input arrives as command objects queued
with ``submit`` and is applied at the start of the next tick; clock and
outbreak timers are advanced in the same tick, so nothing races with the
tornado updates.
"""
from __future__ import annotations

import math
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from . import commands
from .casualties import CasualtyLedger, CasualtyModel, HitRecord
from .cities import City, RoadNetwork, add_custom_city, nearest_city, place_cities
from .config import (
    DEFAULT_PRESET,
    FPS,
    HEIGHT,
    PRESETS,
    WIDTH,
    CasualtyOptions,
    MapMode,
    MapOptions,
    OutbreakOptions,
    TickParams,
    TornadoOptions,
)
from .ef_scale import EFRating, classify
from .noise_field import NoiseField
from .render import NullSink, RenderSink
from .terrain import TERRAIN_KINDS, TerrainMap
from .timers import MINUTES_PER_DAY, PeriodicTimer, SimulationClock
from .tornado import Tornado, leave_bounds, record_width, spawn_autonomous, spawn_manual, step

logger = structlog.get_logger()

FRAME_MS = 1000.0 / FPS


@dataclass(frozen=True)
class TornadoStats:
    """What the info panel shows for one tornado."""

    tornado_id: int
    alive: bool
    wind_speed: float
    rating: EFRating
    max_wind_speed: float
    max_width_miles: float


class Simulation:
    def __init__(
        self,
        seed: Optional[int] = None,
        preset: str = DEFAULT_PRESET,
        map_mode: MapMode = MapMode.PROCEDURAL,
        sink: Optional[RenderSink] = None,
        bounds: Tuple[int, int] = (WIDTH, HEIGHT),
        params: Optional[TickParams] = None,
        map_options: MapOptions = MapOptions(),
        tornado_options: TornadoOptions = TornadoOptions(),
        outbreak_options: OutbreakOptions = OutbreakOptions(),
        casualty_options: CasualtyOptions = CasualtyOptions(),
    ) -> None:
        self.bounds = bounds
        self.preset = PRESETS[preset]
        self.map_mode = MapMode(map_mode)
        self.sink = sink if sink is not None else NullSink()
        self.params = params if params is not None else TickParams()
        self.map_options = map_options
        self.tornado_options = tornado_options
        self.outbreak_options = outbreak_options

        self.seed = seed if seed is not None else random.randrange(2**31)
        self.rng = random.Random(self.seed)
        self.noise = NoiseField(self.seed)
        self.ledger = CasualtyLedger()
        self.casualties = CasualtyModel(self.ledger, self.rng, casualty_options)

        self.terrain: TerrainMap = TerrainMap.blank(*bounds)
        self.cities: List[City] = []
        self.roads = RoadNetwork()
        self.tornadoes: List[Tornado] = []
        self.path_points: List[Tuple[float, float]] = []
        self.map_version = 0

        self.tick_count = 0
        self.running = False
        self.clock = SimulationClock()
        self.outbreak_timer: Optional[PeriodicTimer] = None
        self.outbreak_remaining = 0

        self._queue: Deque[object] = deque()
        self._handlers = {
            commands.SpawnTornado: self._on_spawn,
            commands.AddWaypoint: self._on_add_waypoint,
            commands.ClearPath: self._on_clear_path,
            commands.SetConfig: self._on_set_config,
            commands.Reset: lambda _: self.reset(),
            commands.NewMap: lambda cmd: self.new_map(cmd.seed),
            commands.ClearTornadoes: self._on_clear_tornadoes,
            commands.AddCity: self._on_add_city,
            commands.ConnectCities: self._on_connect_cities,
            commands.PaintTerrain: self._on_paint,
            commands.ClearEditor: self._on_clear_editor,
        }

        self.new_map(self.seed)

    # --- Map & reset -----------------------------------------------------------
    def _build_map(self) -> None:
        width, height = self.bounds
        if self.map_mode is MapMode.PROCEDURAL:
            self.terrain = TerrainMap.generate(self.noise, width, height, self.map_options)
        else:
            self.terrain = TerrainMap.blank(width, height, self.map_options.grid_resolution)

        if self.map_mode is MapMode.NONE:
            self.cities = []
        else:
            self.cities = place_cities(self.terrain, self.bounds, self.rng, self.map_options)
        self.roads = RoadNetwork.connect_all(self.cities)
        self.map_version += 1

    def new_map(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = self.rng.randrange(2**31)
        self.seed = seed
        self.rng.seed(seed)
        self.noise.reseed(seed)
        logger.info("Generating map", seed=seed, mode=self.map_mode.value, preset=self.preset.name)
        self._build_map()
        self.reset()

    def reset(self) -> None:
        self._stop_outbreak()
        self.tornadoes = []
        self.sink.clear_tracks()

        if not self.params.manual_mode:
            self._spawn_autonomous()
            if self.rng.random() < self.tornado_options.dual_tornado_chance:
                self._spawn_autonomous()

        if self.rng.random() < self.outbreak_options.chance_per_sim:
            self.outbreak_remaining = self.rng.randint(self.outbreak_options.min_count, self.outbreak_options.max_count)
            self.outbreak_timer = PeriodicTimer(self.outbreak_options.spawn_interval_ms, self._outbreak_spawn)
            logger.info("Outbreak scheduled", tornadoes=self.outbreak_remaining)

        for city in self.cities:
            city.reset_hits()

        self.clock = SimulationClock(self.rng.randrange(MINUTES_PER_DAY))
        self.ledger.clear()
        self.running = True

    def _stop_outbreak(self) -> None:
        if self.outbreak_timer is not None:
            self.outbreak_timer.cancel()
            self.outbreak_timer = None
        self.outbreak_remaining = 0

    def _outbreak_spawn(self) -> None:
        if self.outbreak_remaining <= 0:
            self._stop_outbreak()
            logger.info("Outbreak exhausted")
            return
        self._spawn_autonomous()
        self.running = True
        self.outbreak_remaining -= 1

    # --- Spawning --------------------------------------------------------------
    def _add(self, tornado: Tornado, source: str) -> Tornado:
        self.tornadoes.append(tornado)
        logger.info(
            "Tornado spawned",
            id=len(self.tornadoes),
            source=source,
            x=round(tornado.position.x, 1),
            y=round(tornado.position.y, 1),
            potential_max_wind=round(tornado.potential_max_wind, 1),
            width=round(tornado.render_width, 1),
            extreme=tornado.is_extreme,
            waypoints=len(tornado.waypoints),
        )
        return tornado

    def _spawn_autonomous(self) -> Tornado:
        tornado = spawn_autonomous(self.rng, self.bounds, self.tornado_options, self.preset, self.params.max_ef)
        return self._add(tornado, "autonomous")

    def spawn_manual(self, x: Optional[float] = None, y: Optional[float] = None) -> Tornado:
        if x is None or y is None:
            x, y = self.bounds[0] / 2, self.bounds[1] / 2
        tornado = spawn_manual(
            self.rng,
            (x, y),
            self.bounds,
            wind=self.params.custom_wind,
            width_miles=self.params.custom_width_miles,
            path=self.path_points or None,
            options=self.tornado_options,
            preset=self.preset,
            cap=self.params.max_ef,
        )
        self.running = True
        return self._add(tornado, "manual")

    # --- Commands --------------------------------------------------------------
    def submit(self, command: object) -> None:
        if type(command) not in self._handlers:
            raise TypeError(f"unsupported command {command!r}")
        self._queue.append(command)

    def _drain(self) -> None:
        while self._queue:
            command = self._queue.popleft()
            self._handlers[type(command)](command)

    def _on_spawn(self, command: commands.SpawnTornado) -> None:
        self.spawn_manual(command.x, command.y)

    def _on_add_waypoint(self, command: commands.AddWaypoint) -> None:
        if not (math.isfinite(command.x) and math.isfinite(command.y)):
            logger.warning("Waypoint rejected", x=command.x, y=command.y)
            return
        self.path_points.append((float(command.x), float(command.y)))
        self.running = True

    def _on_clear_path(self, command: commands.ClearPath) -> None:
        self.path_points = []

    def _on_set_config(self, command: commands.SetConfig) -> None:
        unknown = set(command.changes) - set(TickParams.model_fields)
        if unknown:
            logger.warning("Ignoring unknown settings", keys=sorted(unknown))
        merged = {**self.params.model_dump(), **{k: v for k, v in command.changes.items() if k not in unknown}}
        try:
            self.params = TickParams.model_validate(merged)
        except ValidationError as exc:
            logger.warning("Settings rejected", errors=exc.error_count())

    def _on_clear_tornadoes(self, command: commands.ClearTornadoes) -> None:
        # Dead tornadoes stay so display ids keep matching the hit ledger.
        self.tornadoes = [t for t in self.tornadoes if not t.is_alive]
        self.sink.clear_tracks()

    def _on_add_city(self, command: commands.AddCity) -> None:
        city = add_custom_city(self.cities, (command.x, command.y), self.rng, command.name, self.map_options)
        if city is None:
            logger.warning("City too close to another city", x=command.x, y=command.y)
        else:
            logger.info("City added", name=city.name, population=city.population)

    def _on_connect_cities(self, command: commands.ConnectCities) -> None:
        index = nearest_city(self.cities, (command.x, command.y), self.map_options.road_pick_distance)
        if index is None:
            return
        edge = self.roads.select(index)
        if edge is not None:
            logger.info("Road added", start=self.cities[edge[0]].name, end=self.cities[edge[1]].name)

    def _on_paint(self, command: commands.PaintTerrain) -> None:
        kind = TERRAIN_KINDS.get(command.kind)
        if kind is None:
            logger.warning("Unknown terrain brush", kind=command.kind)
            return
        self.terrain.paint(command.x, command.y, kind, self.map_options.paint_radius)
        self.map_version += 1

    def _on_clear_editor(self, command: commands.ClearEditor) -> None:
        self.map_mode = MapMode.PROCEDURAL
        self.noise.reseed(self.seed)
        self._build_map()

    # --- Frame -----------------------------------------------------------------
    def _advance(self, index: int, tornado: Tornado) -> Tornado:
        moved = step(tornado, self.params, self.noise, self.tornado_options, self.preset)
        if moved.is_alive:
            rating = classify(moved.wind_speed, self.params.max_ef)
            if moved.wind_speed >= self.tornado_options.track_min_wind:
                self.sink.draw_segment(moved.previous_position, moved.position, moved.render_width, rating.color)
                moved = record_width(moved)
            self.casualties.strike(index + 1, moved, rating, self.cities, self.tick_count)
            moved = leave_bounds(moved, self.bounds)
        if not moved.is_alive:
            logger.info(
                "Tornado dissipated",
                id=index + 1,
                reason=moved.death_reason,
                max_wind=round(moved.max_wind_seen, 1),
            )
        return moved

    def tick(self, elapsed_ms: float = FRAME_MS) -> None:
        self._drain()
        self.clock.advance(elapsed_ms)
        if self.outbreak_timer is not None:
            self.outbreak_timer.advance(elapsed_ms)

        if self.running:
            for index, tornado in enumerate(self.tornadoes):
                if tornado.is_alive:
                    self.tornadoes[index] = self._advance(index, tornado)
            self.running = any(t.is_alive for t in self.tornadoes)
            if not self.running:
                self.clock.stop()
                self._stop_outbreak()
            if not self.running and self.tornadoes:
                logger.info("Simulation ended", total_casualties=self.ledger.total, tornadoes=len(self.tornadoes))

        self.tick_count += 1

    # --- Telemetry -------------------------------------------------------------
    @property
    def total_casualties(self) -> int:
        return self.ledger.total

    def hits(self) -> List[HitRecord]:
        return self.ledger.entries()

    def tornado_stats(self) -> List[TornadoStats]:
        return [
            TornadoStats(
                tornado_id=index + 1,
                alive=tornado.is_alive,
                wind_speed=tornado.wind_speed,
                rating=tornado.ef_rating(self.params.max_ef),
                max_wind_speed=tornado.max_wind_seen,
                max_width_miles=tornado.max_width_miles,
            )
            for index, tornado in enumerate(self.tornadoes)
        ]
