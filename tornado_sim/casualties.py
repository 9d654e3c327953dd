"""Casualty model: circle overlap between a tornado and city areas, gated by cooldown."""
from __future__ import annotations

import math
import random
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import structlog

from .cities import City
from .config import CasualtyOptions
from .ef_scale import EFRating
from .geometry import circle_overlap_area, constrain, distance, map_range
from .tornado import Tornado

logger = structlog.get_logger()


@dataclass(frozen=True)
class HitRecord:
    tornado_id: int
    city_name: str
    rating_name: str
    color: Tuple[int, int, int]
    casualties: int
    cumulative: int
    tick: int

    @property
    def text(self) -> str:
        return f"T{self.tornado_id}: {self.city_name} ({self.rating_name}) - {self.cumulative:,} cas."


def coverage_factor(area_radius: float, tornado_width: float, d: float) -> float:
    """Fraction of the city's detection circle covered by the tornado circle."""
    r1 = area_radius
    r2 = max(1.0, tornado_width)
    overlap = circle_overlap_area(r1, r2, d)
    return constrain(overlap / (math.pi * r1 * r1), 0.0, 1.0)


def casualty_count(
    wind: float,
    rating: EFRating,
    population: int,
    coverage: float,
    rng: random.Random,
    options: CasualtyOptions = CasualtyOptions(),
) -> int:
    """Casualties for a single strike; at least 1 and at most the jittered soft clamp."""
    low_wind, high_wind = options.impact_wind_range
    wind_impact = constrain(map_range(wind, low_wind, high_wind, *options.impact_range), 0.0, 1.0)
    population_factor = math.sqrt(population) * options.population_scale

    casualties = wind_impact * rating.severity * population_factor * rng.uniform(*options.jitter_range)
    # Growth with coverage is super-linear: full coverage is about 3.5x.
    coverage_multiplier = 1 + 4 * coverage
    casualties *= 1 + coverage_multiplier * coverage * 0.5

    clamped = min(casualties, options.soft_clamp + rng.uniform(0, options.soft_clamp_jitter))
    return int(math.floor(max(1.0, clamped)))


class CasualtyLedger:
    """Running total plus one entry per struck city, in first-hit order."""

    def __init__(self) -> None:
        self.total = 0
        self._entries: "OrderedDict[str, HitRecord]" = OrderedDict()

    def record(self, hit: HitRecord) -> None:
        self.total += hit.casualties
        self._entries[hit.city_name] = hit

    def entries(self) -> List[HitRecord]:
        return list(self._entries.values())

    def clear(self) -> None:
        self.total = 0
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CasualtyModel:
    def __init__(self, ledger: CasualtyLedger, rng: random.Random, options: CasualtyOptions = CasualtyOptions()) -> None:
        self.ledger = ledger
        self.rng = rng
        self.options = options

    def cooling_down(self, city: City, tick: int) -> bool:
        return city.last_hit_tick is not None and tick - city.last_hit_tick < self.options.cooldown_ticks

    def strike(self, tornado_id: int, tornado: Tornado, rating: EFRating, cities: Iterable[City], tick: int) -> List[HitRecord]:
        """Apply damage from ``tornado`` to every city whose area contains its center."""
        if tornado.wind_speed < self.options.damage_threshold:
            return []

        hits = []
        for city in cities:
            d = distance(tornado.position, city.position)
            if d >= city.area_radius:
                continue
            city.hit = True
            if self.cooling_down(city, tick):
                continue

            coverage = coverage_factor(city.area_radius, tornado.render_width, d)
            casualties = casualty_count(tornado.wind_speed, rating, city.population, coverage, self.rng, self.options)
            city.casualties += casualties
            city.last_hit_tick = tick
            hit = HitRecord(
                tornado_id=tornado_id,
                city_name=city.name,
                rating_name=rating.name,
                color=rating.color,
                casualties=casualties,
                cumulative=city.casualties,
                tick=tick,
            )
            self.ledger.record(hit)
            hits.append(hit)
            logger.debug("City hit", tornado=tornado_id, city=city.name, rating=rating.name, casualties=casualties, coverage=round(coverage, 3))
        return hits
