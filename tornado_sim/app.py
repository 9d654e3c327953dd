"""Interactive tornado outbreak simulator: pygame window, keyboard and mouse controls."""
from __future__ import annotations

from typing import Optional

import pygame
import structlog

from . import commands
from .config import HEIGHT, PANEL_WIDTH, WIDTH, MapMode, SimulatorSettings
from .logging_config import configure_logging
from .render import PygameSink, SceneRenderer
from .simulation import Simulation

logger = structlog.get_logger()

WIND_STEP = 10.0
WIDTH_STEP = 0.1
WOBBLE_STEP = 0.1
BRUSHES = {pygame.K_1: "lake", pygame.K_2: "grass", pygame.K_3: "mountain"}

HELP = "N new sim  M new map  T manual  P path  E editor  A city  R road  Esc quit"


def load_background(path: Optional[str]) -> Optional[pygame.Surface]:
    if not path:
        return None
    try:
        return pygame.image.load(path).convert()
    except (pygame.error, FileNotFoundError) as exc:
        logger.warning("Background image unavailable, using procedural map", path=path, error=str(exc))
        return None


class TornadoSimulator:
    def __init__(self, settings: Optional[SimulatorSettings] = None) -> None:
        self.settings = settings or SimulatorSettings()
        pygame.init()
        pygame.display.set_caption("Tornado Simulator")
        self.screen = pygame.display.set_mode((WIDTH + PANEL_WIDTH, HEIGHT))
        self.clock = pygame.time.Clock()

        map_mode = self.settings.map_mode
        background = None
        if map_mode is MapMode.STATIC_BACKGROUND:
            background = load_background(self.settings.background_image)
            if background is None:
                map_mode = MapMode.PROCEDURAL

        self.sink = PygameSink((WIDTH, HEIGHT))
        self.sim = Simulation(
            seed=self.settings.seed,
            preset=self.settings.preset,
            map_mode=map_mode,
            sink=self.sink,
            bounds=(WIDTH, HEIGHT),
        )
        self.renderer = SceneRenderer(self.screen, self.sim, self.sink)
        self.renderer.set_background(background)

        self.path_edit = False
        self.editor = False
        self.brush = "grass"
        self.city_mode = False
        self.road_mode = False

    @property
    def status(self) -> str:
        modes = []
        if self.sim.params.manual_mode:
            modes.append("manual")
        if self.path_edit:
            modes.append(f"path ({len(self.sim.path_points)})")
        if self.editor:
            modes.append(f"paint {self.brush}")
        if self.city_mode:
            modes.append("add city")
        if self.road_mode:
            modes.append("road")
        return "mode: " + ", ".join(modes) if modes else HELP

    def set(self, **changes) -> None:
        self.sim.submit(commands.SetConfig(changes))

    def run(self) -> None:
        running = True
        while running:
            dt_ms = self.clock.tick(self.settings.fps)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    running = self.handle_key(event.key)
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.handle_click(*event.pos)

            self.sim.tick(dt_ms)
            self.renderer.draw(self.status)

        pygame.quit()

    # --- Input -----------------------------------------------------------------
    def handle_key(self, key: int) -> bool:
        params = self.sim.params
        if key == pygame.K_ESCAPE:
            return False
        if key == pygame.K_n:
            self.sim.submit(commands.Reset())
        elif key == pygame.K_m:
            self.sim.submit(commands.NewMap())
        elif key == pygame.K_t:
            self.set(manual_mode=not params.manual_mode)
        elif key == pygame.K_p:
            self.path_edit = not self.path_edit
        elif key == pygame.K_c:
            self.sim.submit(commands.ClearPath())
        elif key == pygame.K_e:
            self.editor = not self.editor
        elif key in BRUSHES and self.editor:
            self.brush = BRUSHES[key]
        elif key == pygame.K_a:
            self.city_mode = not self.city_mode
            if self.city_mode:
                self.road_mode = False
        elif key == pygame.K_r:
            self.road_mode = not self.road_mode
            if self.road_mode:
                self.city_mode = False
        elif key == pygame.K_x:
            self.renderer.set_background(None)
            self.sim.submit(commands.ClearEditor())
        elif key == pygame.K_k:
            self.sim.submit(commands.ClearTornadoes())
        elif key == pygame.K_SPACE:
            self.sim.submit(commands.SpawnTornado())
        elif key == pygame.K_LEFTBRACKET:
            self.set(wobble=params.wobble - WOBBLE_STEP)
        elif key == pygame.K_RIGHTBRACKET:
            self.set(wobble=params.wobble + WOBBLE_STEP)
        elif key == pygame.K_UP:
            self.set(custom_wind=params.custom_wind + WIND_STEP)
        elif key == pygame.K_DOWN:
            self.set(custom_wind=max(WIND_STEP, params.custom_wind - WIND_STEP))
        elif key == pygame.K_RIGHT:
            self.set(custom_width_miles=params.custom_width_miles + WIDTH_STEP)
        elif key == pygame.K_LEFT:
            self.set(custom_width_miles=max(WIDTH_STEP, params.custom_width_miles - WIDTH_STEP))
        elif pygame.K_0 <= key <= pygame.K_6 and not self.editor:
            self.set(max_ef=key - pygame.K_0)
        return True

    def handle_click(self, x: int, y: int) -> None:
        if x >= WIDTH:
            return
        if self.path_edit:
            self.sim.submit(commands.AddWaypoint(x, y))
        elif self.editor:
            self.sim.submit(commands.PaintTerrain(x, y, self.brush))
        elif self.city_mode:
            self.sim.submit(commands.AddCity(x, y))
        elif self.road_mode:
            self.sim.submit(commands.ConnectCities(x, y))
        elif self.sim.params.manual_mode:
            self.sim.submit(commands.SpawnTornado(x, y))


def main() -> None:
    settings = SimulatorSettings()
    configure_logging(settings.log_level, settings.log_json)
    TornadoSimulator(settings).run()


if __name__ == "__main__":
    main()
