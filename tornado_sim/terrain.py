"""Terrain grid classified from noise thresholds, with map-editor painting."""
from __future__ import annotations

from typing import Dict, Tuple

import numpy as np
import structlog

from .config import LAND_COLOR, MOUNTAIN_COLOR, WATER_COLOR, MapOptions
from .noise_field import NoiseField

logger = structlog.get_logger()

WATER, LAND, MOUNTAIN = 0, 1, 2

TERRAIN_COLORS: Dict[int, Tuple[int, int, int]] = {
    WATER: WATER_COLOR,
    LAND: LAND_COLOR,
    MOUNTAIN: MOUNTAIN_COLOR,
}

# Editor brush names.
TERRAIN_KINDS: Dict[str, int] = {"lake": WATER, "grass": LAND, "mountain": MOUNTAIN}


class TerrainMap:
    """Terrain classes on a coarse grid of ``resolution``-pixel cells."""

    def __init__(self, cells: np.ndarray, width: int, height: int, resolution: int = 1) -> None:
        self.cells = cells
        self.width = width
        self.height = height
        self.resolution = resolution

    @classmethod
    def generate(cls, noise: NoiseField, width: int, height: int, options: MapOptions = MapOptions()) -> "TerrainMap":
        samples = noise.grid(width, height, options.noise_scale, options.grid_resolution)
        cells = np.full(samples.shape, WATER, dtype=np.uint8)
        cells[samples > options.land_threshold] = LAND
        cells[samples > options.mountain_threshold] = MOUNTAIN
        logger.info(
            "Terrain generated",
            seed=noise.seed,
            land=float(np.mean(cells == LAND)),
            mountain=float(np.mean(cells == MOUNTAIN)),
        )
        return cls(cells, width, height, options.grid_resolution)

    @classmethod
    def blank(cls, width: int, height: int, resolution: int = 2) -> "TerrainMap":
        """All-land grid for maps whose background is not generated."""
        rows = -(-height // resolution)
        cols = -(-width // resolution)
        return cls(np.full((rows, cols), LAND, dtype=np.uint8), width, height, resolution)

    def _cell(self, x: float, y: float) -> Tuple[int, int]:
        return int(y) // self.resolution, int(x) // self.resolution

    def in_bounds(self, x: float, y: float) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def kind_at(self, x: float, y: float) -> int:
        if not self.in_bounds(x, y):
            return WATER
        row, col = self._cell(x, y)
        return int(self.cells[row, col])

    def is_buildable(self, x: float, y: float) -> bool:
        return self.kind_at(x, y) == LAND

    def paint(self, x: float, y: float, kind: int, radius: float = 30.0) -> None:
        rows, cols = self.cells.shape
        centers_y = (np.arange(rows) + 0.5) * self.resolution
        centers_x = (np.arange(cols) + 0.5) * self.resolution
        mask = (centers_x[None, :] - x) ** 2 + (centers_y[:, None] - y) ** 2 <= radius * radius
        self.cells[mask] = kind

    def to_rgb(self) -> np.ndarray:
        """Pixel colors as a (width, height, 3) array, the layout pygame.surfarray expects."""
        palette = np.array([TERRAIN_COLORS[WATER], TERRAIN_COLORS[LAND], TERRAIN_COLORS[MOUNTAIN]], dtype=np.uint8)
        pixels = np.repeat(np.repeat(self.cells, self.resolution, axis=0), self.resolution, axis=1)
        pixels = pixels[: self.height, : self.width]
        return palette[pixels].transpose(1, 0, 2)
