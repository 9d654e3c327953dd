"""Shared fixtures; everything runs headless."""

import os
import random

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest
from pygame.math import Vector2

from tornado_sim.tornado import Tornado


class ConstantNoise:
    """Noise stub returning the same sample everywhere."""

    def __init__(self, value=0.5):
        self.value = value
        self.seed = 0

    def noise(self, x, y):
        return self.value

    def noise1d(self, t):
        return self.value


class AllLand:
    def is_buildable(self, x, y):
        return True


class AllWater:
    def is_buildable(self, x, y):
        return False


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def flat_noise():
    return ConstantNoise(0.5)


@pytest.fixture
def constant_noise():
    return ConstantNoise


@pytest.fixture
def all_land():
    return AllLand()


@pytest.fixture
def all_water():
    return AllWater()


@pytest.fixture
def make_tornado():
    def factory(x=100.0, y=100.0, wind=0.0, width=8.0, lifespan=1000, potential=150.0, angle=0.0):
        return Tornado(
            position=Vector2(x, y),
            previous_position=Vector2(x, y),
            age_clock=10.0,
            wind_clock=20.0,
            lifespan_remaining=lifespan,
            potential_max_wind=potential,
            render_width=width,
            base_angle=angle,
            wind_speed=wind,
            max_wind_seen=wind,
        )

    return factory
