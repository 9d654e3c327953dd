"""Rendering: track sinks fed by the simulation and the pygame scene/panel drawing."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, Tuple

import pygame

from .config import (
    CITY_AREA_COLOR,
    CITY_COLOR,
    CITY_HIT_COLOR,
    FONT_NAME,
    MUTED_TEXT_COLOR,
    PANEL_COLOR,
    PANEL_WIDTH,
    PATH_COLOR,
    ROAD_COLOR,
    TEXT_COLOR,
    TRACK_ALPHA,
    MapMode,
)
from .geometry import constrain, map_range

if TYPE_CHECKING:
    from .simulation import Simulation

Color = Tuple[int, int, int]
Point = Sequence[float]

PANEL_TORNADO_ROWS = 4
PANEL_HIT_ROWS = 12


class RenderSink(Protocol):
    def draw_segment(self, start: Point, end: Point, width: float, color: Color) -> None: ...

    def clear_tracks(self) -> None: ...


class NullSink:
    """Discards track segments; for headless runs."""

    def draw_segment(self, start: Point, end: Point, width: float, color: Color) -> None:
        pass

    def clear_tracks(self) -> None:
        pass


class RecordingSink:
    """Keeps every segment in memory."""

    def __init__(self) -> None:
        self.segments: List[Tuple[Tuple[float, float], Tuple[float, float], float, Color]] = []
        self.clears = 0

    def draw_segment(self, start: Point, end: Point, width: float, color: Color) -> None:
        self.segments.append(((start[0], start[1]), (end[0], end[1]), width, color))

    def clear_tracks(self) -> None:
        self.segments.clear()
        self.clears += 1


class PygameSink:
    """Persistent, semi-transparent track layer."""

    def __init__(self, size: Tuple[int, int]) -> None:
        self.surface = pygame.Surface(size, pygame.SRCALPHA)

    def draw_segment(self, start: Point, end: Point, width: float, color: Color) -> None:
        start_pos = (round(start[0]), round(start[1]))
        end_pos = (round(end[0]), round(end[1]))
        stroke = max(1, round(width))
        pygame.draw.line(self.surface, (*color, TRACK_ALPHA), start_pos, end_pos, stroke)
        # Round caps so consecutive short segments join without gaps.
        pygame.draw.circle(self.surface, (*color, TRACK_ALPHA), end_pos, stroke // 2)

    def clear_tracks(self) -> None:
        self.surface.fill((0, 0, 0, 0))


# --- Utility functions -------------------------------------------------------------
def lerp(color_a: Color, color_b: Color, t: float) -> Color:
    return (
        int(color_a[0] + (color_b[0] - color_a[0]) * t),
        int(color_a[1] + (color_b[1] - color_a[1]) * t),
        int(color_a[2] + (color_b[2] - color_a[2]) * t),
    )


def draw_radial_glow(surface: pygame.Surface, center: Tuple[int, int], radius: int, color: Color, alpha: int) -> None:
    glow = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
    for r in range(radius, 0, -1):
        glow_alpha = int(alpha * (1 - r / radius) ** 2)
        pygame.draw.circle(glow, (*color, glow_alpha), (radius, radius), r)
    surface.blit(glow, (center[0] - radius, center[1] - radius))


def terrain_surface(sim: "Simulation", background: Optional[pygame.Surface] = None) -> pygame.Surface:
    """Static map layer: uploaded background if any, else the terrain grid."""
    if background is not None:
        return pygame.transform.smoothscale(background, sim.bounds)
    return pygame.surfarray.make_surface(sim.terrain.to_rgb())


# --- Scene -------------------------------------------------------------------------
class SceneRenderer:
    def __init__(self, screen: pygame.Surface, sim: "Simulation", sink: PygameSink) -> None:
        self.screen = screen
        self.sim = sim
        self.sink = sink
        self.font_large = pygame.font.Font(FONT_NAME, 22)
        self.font_small = pygame.font.Font(FONT_NAME, 14)
        self.font_tiny = pygame.font.Font(FONT_NAME, 11)
        self.background: Optional[pygame.Surface] = None
        self._map_layer: Optional[pygame.Surface] = None
        self._map_version = -1

    def set_background(self, image: Optional[pygame.Surface]) -> None:
        self.background = image
        self._map_version = -1

    def map_layer(self) -> pygame.Surface:
        if self._map_layer is None or self._map_version != self.sim.map_version:
            background = self.background if self.sim.map_mode is MapMode.STATIC_BACKGROUND else None
            self._map_layer = terrain_surface(self.sim, background)
            self._map_version = self.sim.map_version
        return self._map_layer

    def draw(self, status: str = "") -> None:
        self.screen.fill(PANEL_COLOR)
        self.screen.blit(self.map_layer(), (0, 0))
        self.draw_roads()
        self.screen.blit(self.sink.surface, (0, 0))
        self.draw_path()
        self.draw_cities()
        self.draw_tornadoes()
        self.draw_panel(status)
        pygame.display.flip()

    def draw_roads(self) -> None:
        overlay = pygame.Surface(self.sim.bounds, pygame.SRCALPHA)
        cities = self.sim.cities
        for i, j in self.sim.roads.edges:
            if i < len(cities) and j < len(cities):
                pygame.draw.line(overlay, ROAD_COLOR, cities[i].position, cities[j].position, 2)
        if self.sim.roads.pending is not None and self.sim.roads.pending < len(cities):
            city = cities[self.sim.roads.pending]
            pygame.draw.circle(overlay, (255, 0, 0, 255), city.position, int(city.area_radius) + 3, 2)
        self.screen.blit(overlay, (0, 0))

    def draw_path(self) -> None:
        points = self.sim.path_points
        if not points:
            return
        if len(points) > 1:
            pygame.draw.lines(self.screen, PATH_COLOR, False, points, 2)
        for point in points:
            pygame.draw.circle(self.screen, PATH_COLOR, (round(point[0]), round(point[1])), 4)

    def draw_cities(self) -> None:
        areas = pygame.Surface(self.sim.bounds, pygame.SRCALPHA)
        for city in self.sim.cities:
            pygame.draw.circle(areas, CITY_AREA_COLOR, city.position, city.area_radius)
        self.screen.blit(areas, (0, 0))

        for city in self.sim.cities:
            center = (round(city.position.x), round(city.position.y))
            radius = max(2, int(city.display_radius // 2))
            pygame.draw.circle(self.screen, CITY_HIT_COLOR if city.hit else CITY_COLOR, center, radius)
            pygame.draw.circle(self.screen, (0, 0, 0), center, radius, 1)
            label = self.font_tiny.render(f"{city.name} ({city.population:,})", True, (0, 0, 0))
            self.screen.blit(label, label.get_rect(midbottom=(center[0], center[1] - 5)))

    def draw_tornadoes(self) -> None:
        options = self.sim.tornado_options
        for tornado in self.sim.tornadoes:
            if not tornado.is_alive:
                continue
            size = constrain(map_range(tornado.wind_speed, options.min_speed, options.max_speed, 10, 25), 4, 40)
            center = (round(tornado.position.x), round(tornado.position.y))
            rating = tornado.ef_rating(self.sim.params.max_ef)
            draw_radial_glow(self.screen, center, int(size * 1.5), rating.color, 70)
            funnel = pygame.Surface((int(size) * 2 + 2, int(size) * 2 + 2), pygame.SRCALPHA)
            middle = (int(size) + 1, int(size) + 1)
            pygame.draw.circle(funnel, (100, 100, 100, 100), middle, size / 2)
            pygame.draw.circle(funnel, (50, 50, 50, 200), middle, size / 4)
            self.screen.blit(funnel, (center[0] - middle[0], center[1] - middle[1]))

    def draw_panel(self, status: str) -> None:
        sim = self.sim
        x = sim.bounds[0] + 16
        y = 16

        def line(text: str, font: pygame.font.Font = self.font_small, color: Color = TEXT_COLOR, step: int = 20) -> None:
            nonlocal y
            self.screen.blit(font.render(text, True, color), (x, y))
            y += step

        line(f"Time {sim.clock.display()}", self.font_large, step=30)
        line(f"Total casualties: {sim.total_casualties:,}")
        if sim.outbreak_remaining:
            line(f"OUTBREAK - {sim.outbreak_remaining} to come", color=(255, 120, 120))
        y += 8

        stats = sim.tornado_stats()
        for stat in stats[:PANEL_TORNADO_ROWS]:
            color = stat.rating.color if stat.alive else lerp(stat.rating.color, PANEL_COLOR, 0.3)
            line(f"Tornado {stat.tornado_id}", color=TEXT_COLOR, step=18)
            wind = f"{stat.wind_speed:.0f} mph" if stat.alive else "0 mph"
            line(f"  {wind}  {stat.rating.label}", color=color, step=18)
            line(
                f"  max {stat.max_wind_speed:.0f} mph  width {stat.max_width_miles:.2f} mi",
                self.font_tiny,
                MUTED_TEXT_COLOR,
                step=20,
            )
        if len(stats) > PANEL_TORNADO_ROWS:
            alive = sum(1 for s in stats if s.alive)
            line(f"+{len(stats) - PANEL_TORNADO_ROWS} more ({alive} active)", color=MUTED_TEXT_COLOR)
        y += 8

        line("Cities hit", step=22)
        hits = sim.hits()
        if not hits:
            line("None", color=MUTED_TEXT_COLOR)
        for hit in hits[-PANEL_HIT_ROWS:]:
            pygame.draw.rect(self.screen, hit.color, (x, y + 2, 5, 12))
            self.screen.blit(self.font_tiny.render(hit.text, True, TEXT_COLOR), (x + 10, y))
            y += 16

        params = sim.params
        footer = [
            f"wobble {params.wobble:.2f}  cap EF{params.max_ef}  preset {sim.preset.name}",
            f"manual wind {params.custom_wind:.0f} mph  width {params.custom_width_miles:.1f} mi",
            status,
        ]
        y = self.screen.get_height() - 16 * len(footer) - 10
        for text in footer:
            line(text, self.font_tiny, MUTED_TEXT_COLOR, step=16)
