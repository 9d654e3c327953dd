"""Simulator configuration: display constants, option models and env settings."""
from __future__ import annotations

import math
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ef_scale import sanitize_cap


# --- Display -----------------------------------------------------------------------
WIDTH, HEIGHT = 800, 600
PANEL_WIDTH = 300
FPS = 60

WATER_COLOR = (100, 150, 255)
LAND_COLOR = (100, 200, 50)
MOUNTAIN_COLOR = (139, 137, 137)
ROAD_COLOR = (60, 60, 60, 200)
CITY_AREA_COLOR = (255, 200, 200, 90)
CITY_COLOR = (255, 255, 0)
CITY_HIT_COLOR = (255, 0, 0)
PATH_COLOR = (0, 150, 200)
PANEL_COLOR = (10, 12, 18)
TEXT_COLOR = (230, 240, 255)
MUTED_TEXT_COLOR = (180, 190, 200)

TRACK_ALPHA = 180
PIXELS_PER_MILE = 10

FONT_NAME = "freesansbold.ttf"

CITY_NAMES: Tuple[str, ...] = (
    "Springfield", "Shelbyville", "Greenville", "Pleasantville", "Centerville",
    "Riverside", "Oakdale", "Maple Creek", "Fairview", "Liberty", "New Hope",
    "Old Town", "Westwood", "Eastwood", "Northwood",
    "Phoenix", "Denver", "Jacksonville", "Chicago", "Indianapolis", "Wichita",
    "Louisville", "New Orleans", "Baltimore", "Boston", "Detroit", "Minneapolis",
    "Kansas City", "St. Louis", "Omaha", "Albuquerque", "Charlotte", "Columbus",
    "Oklahoma City", "Portland", "Philadelphia", "Memphis", "Nashville", "Austin",
    "Dallas", "Houston", "San Antonio", "Salt Lake City", "Richmond", "Seattle",
    "Milwaukee", "Atlanta", "Boise", "Des Moines", "Little Rock", "Cheyenne",
    "Fargo", "Sioux Falls", "Billings", "Casper",
)


def parse_float(value, default: float) -> float:
    """Parse a user-entered number, falling back to ``default`` when unusable."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed) or parsed == 0:
        return default
    return parsed


class MapMode(str, Enum):
    """Where the map background and city data come from."""

    PROCEDURAL = "procedural"
    STATIC_BACKGROUND = "static_background"
    NONE = "none"


# --- Option models -----------------------------------------------------------------
class MapOptions(BaseModel):
    """Terrain thresholds and city placement parameters."""

    model_config = ConfigDict(frozen=True)

    noise_scale: float = Field(default=0.015, description="Noise frequency per pixel")
    land_threshold: float = Field(default=0.35, description="Noise value above which is land")
    mountain_threshold: float = Field(default=0.65, description="Noise value above which is mountain")
    grid_resolution: int = Field(default=2, ge=1, description="Pixels per terrain cell")

    num_cities: int = Field(default=15, ge=0)
    city_names: Tuple[str, ...] = CITY_NAMES
    placement_attempts: int = Field(default=2000, ge=0)
    city_margin: float = 20.0
    display_radius: float = 8.0
    area_ratio: float = 3.0
    spacing_buffer: float = 2.0
    population_range: Tuple[int, int] = (1000, 1_000_000)
    custom_population_range: Tuple[int, int] = (1000, 500_000)
    road_pick_distance: float = 80.0
    paint_radius: float = 30.0


class TornadoOptions(BaseModel):
    """Spawn and lifecycle constants for tornadoes."""

    model_config = ConfigDict(frozen=True)

    min_speed: float = Field(default=40.0, description="Wind floor in mph")
    max_speed: float = Field(default=1000.0, description="Baseline max for spawn draws")
    potential_floor: float = 80.0
    extreme_floor: float = 320.0
    dual_tornado_chance: float = 0.05
    ef6_chance: float = 0.01
    max_spawn_wind: float = 200.0

    lifespan_range: Tuple[int, int] = (800, 1500)
    manual_lifespan: int = 2000
    age_clock_range: Tuple[float, float] = (0.0, 1000.0)
    wind_clock_range: Tuple[float, float] = (0.0, 2000.0)
    age_rate: float = 0.008
    wind_rate: float = 0.02
    speed_noise_offset: float = 1000.0
    wind_bias: float = 0.5
    fade_ticks: int = 200

    edge_buffer: float = 150.0
    waypoint_threshold: float = 8.0
    track_min_wind: float = 10.0
    default_manual_wind: float = 120.0
    default_manual_width_miles: float = 0.8


class MotionPreset(BaseModel):
    """Motion speed and width parameters; one per historical map variant."""

    model_config = ConfigDict(frozen=True)

    name: str
    speed_range: Tuple[float, float] = (1.0, 3.0)
    speed_scale: float = 0.5
    path_speed: Optional[float] = None
    width_range: Tuple[float, float] = (2.0, 27.0)
    wobble_on_path: bool = True


PRESETS: Dict[str, MotionPreset] = {
    "classic": MotionPreset(name="classic"),
    "wide": MotionPreset(name="wide", speed_scale=1.0, path_speed=1.5, width_range=(2.0, 50.0)),
}
DEFAULT_PRESET = "classic"


class OutbreakOptions(BaseModel):
    """Rare multi-tornado outbreak scheduling."""

    model_config = ConfigDict(frozen=True)

    chance_per_sim: float = 0.01
    spawn_interval_ms: int = 1000
    min_count: int = 30
    max_count: int = 100


class CasualtyOptions(BaseModel):
    """Constants of the casualty model."""

    model_config = ConfigDict(frozen=True)

    damage_threshold: float = Field(default=40.0, description="Minimum wind in mph that damages a city")
    cooldown_ticks: int = 30
    soft_clamp: float = 80.0
    soft_clamp_jitter: float = 20.0
    population_scale: float = 0.0007
    jitter_range: Tuple[float, float] = (0.8, 1.6)
    impact_wind_range: Tuple[float, float] = (40.0, 300.0)
    impact_range: Tuple[float, float] = (0.05, 1.0)


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


class TickParams(BaseModel):
    """User-adjustable knobs read by the core on every tick and at spawn time.

    Bad input never raises: each field falls back to its default.
    """

    model_config = ConfigDict(validate_assignment=True)

    wobble: float = 0.5
    max_ef: int = 6
    custom_wind: float = 120.0
    custom_width_miles: float = 0.8
    manual_mode: bool = False

    @field_validator("wobble", mode="before")
    @classmethod
    def _wobble(cls, value):
        try:
            wobble = float(value)
        except (TypeError, ValueError):
            return 0.5
        if not math.isfinite(wobble):
            return 0.5
        return max(0.0, wobble)

    @field_validator("max_ef", mode="before")
    @classmethod
    def _max_ef(cls, value):
        return sanitize_cap(value)

    @field_validator("custom_wind", mode="before")
    @classmethod
    def _custom_wind(cls, value):
        return parse_float(value, 120.0)

    @field_validator("custom_width_miles", mode="before")
    @classmethod
    def _custom_width(cls, value):
        return parse_float(value, 0.8)

    @field_validator("manual_mode", mode="before")
    @classmethod
    def _manual_mode(cls, value):
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        return False


class SimulatorSettings(BaseSettings):
    """Startup settings, read from ``TORNADO_SIM_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="TORNADO_SIM_", env_file=".env", extra="ignore")

    seed: Optional[int] = Field(default=None, description="Seed for noise and randomness")
    preset: str = Field(default=DEFAULT_PRESET, description="Motion preset name")
    map_mode: MapMode = Field(default=MapMode.PROCEDURAL)
    background_image: Optional[str] = Field(default=None, description="Image for static_background mode")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    fps: int = Field(default=FPS, ge=1)

    @field_validator("preset")
    @classmethod
    def _known_preset(cls, value: str) -> str:
        if value not in PRESETS:
            raise ValueError(f"unknown preset {value!r}; expected one of {sorted(PRESETS)}")
        return value
