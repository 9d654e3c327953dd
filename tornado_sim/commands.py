"""Input events consumed by the simulation once per tick."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class SpawnTornado:
    """Manual spawn; no coordinates means the map center."""

    x: Optional[float] = None
    y: Optional[float] = None


@dataclass(frozen=True)
class AddWaypoint:
    x: float
    y: float


@dataclass(frozen=True)
class ClearPath:
    pass


@dataclass(frozen=True)
class SetConfig:
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class NewMap:
    seed: Optional[int] = None


@dataclass(frozen=True)
class ClearTornadoes:
    pass


@dataclass(frozen=True)
class AddCity:
    x: float
    y: float
    name: Optional[str] = None


@dataclass(frozen=True)
class ConnectCities:
    """Click near a city; two clicks draw a road between them."""

    x: float
    y: float


@dataclass(frozen=True)
class PaintTerrain:
    x: float
    y: float
    kind: str = "grass"


@dataclass(frozen=True)
class ClearEditor:
    pass

