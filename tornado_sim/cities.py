"""Cities and the road network connecting them."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import structlog
from pygame.math import Vector2

from .config import MapOptions
from .geometry import distance

logger = structlog.get_logger()

Point = Tuple[float, float]


class BuildableMap(Protocol):
    def is_buildable(self, x: float, y: float) -> bool: ...


@dataclass
class City:
    position: Vector2
    name: str
    population: int
    display_radius: float = 8.0
    area_ratio: float = 3.0
    hit: bool = False
    last_hit_tick: Optional[int] = None
    casualties: int = 0

    @property
    def area_radius(self) -> float:
        """Radius used for casualty detection."""
        return self.display_radius * self.area_ratio

    def reset_hits(self) -> None:
        self.hit = False
        self.last_hit_tick = None
        self.casualties = 0


def _spaced(position: Point, area_radius: float, cities: Sequence[City], buffer: float) -> bool:
    for other in cities:
        if distance(position, other.position) < area_radius + other.area_radius + buffer:
            return False
    return True


def place_cities(terrain: BuildableMap, bounds: Tuple[float, float], rng: random.Random, options: MapOptions = MapOptions()) -> List[City]:
    """Scatter cities over buildable land so that no two detection areas overlap.

    Placement gives up after ``options.placement_attempts`` tries, so a crowded
    map simply ends up with fewer cities.
    """
    cities: List[City] = []
    names = list(options.city_names)
    area_radius = options.display_radius * options.area_ratio
    margin = options.city_margin
    attempts = 0

    while len(cities) < options.num_cities and attempts < options.placement_attempts:
        attempts += 1
        x = rng.uniform(margin, bounds[0] - margin)
        y = rng.uniform(margin, bounds[1] - margin)
        if not terrain.is_buildable(x, y):
            continue
        name = names.pop(rng.randrange(len(names))) if names else f"City {len(cities) + 1}"
        population = rng.randint(*options.population_range)
        if _spaced((x, y), area_radius, cities, options.spacing_buffer):
            cities.append(
                City(Vector2(x, y), name, population, display_radius=options.display_radius, area_ratio=options.area_ratio)
            )

    if len(cities) < options.num_cities:
        logger.warning("City placement ran out of attempts", placed=len(cities), wanted=options.num_cities, attempts=attempts)
    else:
        logger.info("Cities placed", count=len(cities), attempts=attempts)
    return cities


def add_custom_city(
    cities: List[City],
    position: Point,
    rng: random.Random,
    name: Optional[str] = None,
    options: MapOptions = MapOptions(),
) -> Optional[City]:
    """Editor placement; ignores terrain but keeps the spacing rule."""
    area_radius = options.display_radius * options.area_ratio
    if not _spaced(position, area_radius, cities, options.spacing_buffer):
        return None
    name = name.strip() if name and name.strip() else f"Custom {len(cities) + 1}"
    low, high = options.custom_population_range
    city = City(
        Vector2(position),
        name,
        rng.randrange(low, high),
        display_radius=options.display_radius,
        area_ratio=options.area_ratio,
    )
    cities.append(city)
    return city


def build_roads(cities: Sequence[City]) -> List[Tuple[int, int]]:
    """Minimum spanning tree over city positions (Prim), as index pairs."""
    if len(cities) < 2:
        return []

    connected = [0]
    unconnected = list(range(1, len(cities)))
    edges: List[Tuple[int, int]] = []
    while unconnected:
        best: Optional[Tuple[float, int, int]] = None
        for i in connected:
            for j in unconnected:
                d = distance(cities[i].position, cities[j].position)
                if best is None or d < best[0]:
                    best = (d, i, j)
        _, i, j = best
        edges.append((i, j))
        connected.append(j)
        unconnected.remove(j)
    return edges


def nearest_city(cities: Sequence[City], position: Point, max_distance: float = 80.0) -> Optional[int]:
    best_index = None
    best_distance = max_distance
    for index, city in enumerate(cities):
        d = distance(position, city.position)
        if d < best_distance:
            best_distance = d
            best_index = index
    return best_index


@dataclass
class RoadNetwork:
    """MST roads plus any drawn in the editor."""

    edges: List[Tuple[int, int]] = field(default_factory=list)
    pending: Optional[int] = None

    @classmethod
    def connect_all(cls, cities: Sequence[City]) -> "RoadNetwork":
        roads = cls(build_roads(cities))
        logger.info("Roads built", edges=len(roads.edges))
        return roads

    def select(self, index: int) -> Optional[Tuple[int, int]]:
        """Two-click road drawing: first call selects, second adds the edge."""
        if self.pending is None:
            self.pending = index
            return None
        edge = (self.pending, index)
        self.pending = None
        if edge[0] != edge[1]:
            self.edges.append(edge)
            return edge
        return None
