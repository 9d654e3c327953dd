"""Seeded Perlin noise sampler used by terrain generation and tornado motion."""
from __future__ import annotations

import random

import numpy as np
from noise import pnoise1, pnoise2

# pnoise permutation tables repeat every 256 bases.
_BASE_PERIOD = 256
# Default pnoise repeat period; offsets are drawn within one period.
_REPEAT = 1024.0


def _to_unit(value: float) -> float:
    return min(1.0, max(0.0, (value + 1.0) * 0.5))


class NoiseField:
    """Deterministic, smooth scalar noise over 2D points and over a single axis.

    Samples are remapped from Perlin's [-1, 1] into [0, 1]. The same seed
    always yields the same field; ``reseed`` switches to a new one.
    """

    def __init__(self, seed: int = 0, octaves: int = 4, persistence: float = 0.5) -> None:
        self.octaves = octaves
        self.persistence = persistence
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        self.seed = int(seed)
        self.base = self.seed % _BASE_PERIOD
        # Seeds sharing a base still land on different parts of the field.
        rng = random.Random(self.seed)
        self.offset_x = rng.uniform(0, _REPEAT)
        self.offset_y = rng.uniform(0, _REPEAT)
        self.offset_t = rng.uniform(0, _REPEAT)

    def noise(self, x: float, y: float) -> float:
        return _to_unit(pnoise2(x + self.offset_x, y + self.offset_y, octaves=self.octaves, persistence=self.persistence, base=self.base))

    def noise1d(self, t: float) -> float:
        return _to_unit(pnoise1(t + self.offset_t, octaves=self.octaves, persistence=self.persistence, base=self.base))

    def grid(self, width: int, height: int, scale: float, resolution: int = 1) -> np.ndarray:
        """Sample every ``resolution``-th pixel; returns a (rows, cols) array."""
        cols = -(-width // resolution)
        rows = -(-height // resolution)
        samples = np.empty((rows, cols), dtype=np.float32)
        for row in range(rows):
            y = row * resolution * scale
            for col in range(cols):
                samples[row, col] = self.noise(col * resolution * scale, y)
        return samples
