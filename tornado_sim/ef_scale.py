"""Enhanced Fujita classification with a user-selectable cap."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

MAX_CAP = 6


@dataclass(frozen=True)
class EFRating:
    level: int
    name: str
    description: str
    color: Tuple[int, int, int]
    severity: float
    min_wind: float

    @property
    def hex_color(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(*self.color)

    @property
    def label(self) -> str:
        return f"{self.name} ({self.description})"


SUB_EF0 = EFRating(-1, "Sub-EF0", "Weak", (204, 204, 204), 0.2, 0.0)

# Ordered weakest to strongest.
EF_TABLE: Tuple[EFRating, ...] = (
    EFRating(0, "EF0", "Light", (0, 255, 255), 0.3, 65.0),
    EFRating(1, "EF1", "Moderate", (0, 128, 0), 0.6, 86.0),
    EFRating(2, "EF2", "Significant", (255, 255, 0), 1.0, 111.0),
    EFRating(3, "EF3", "Severe", (255, 165, 0), 1.6, 136.0),
    EFRating(4, "EF4", "Devastating", (255, 0, 0), 2.6, 166.0),
    EFRating(5, "EF5", "Incredible", (128, 0, 128), 4.5, 201.0),
    EFRating(6, "EF6", "Cataclysmic", (75, 0, 130), 6.0, 320.0),
)

# Display state for a tornado that is no longer alive.
DISSIPATED = EFRating(-1, "Dissipated", "Dissipated", (136, 136, 136), 0.0, 0.0)

# Spawn-time wind ceiling implied by each cap.
CAP_WIND: Dict[int, float] = {6: 1000.0, 5: 450.0, 4: 200.0, 3: 166.0, 2: 136.0, 1: 111.0, 0: 86.0}


def sanitize_cap(value) -> int:
    """Coerce a cap from user input; anything unusable means no cap (EF6)."""
    try:
        cap = int(value)
    except (TypeError, ValueError):
        return MAX_CAP
    if cap < 0 or cap > MAX_CAP:
        return MAX_CAP
    return cap


def classify(wind: float, cap: int = MAX_CAP) -> EFRating:
    """Highest tier whose threshold ``wind`` meets and whose level is within ``cap``."""
    cap = sanitize_cap(cap)
    for rating in reversed(EF_TABLE):
        if rating.level <= cap and wind >= rating.min_wind:
            return rating
    return SUB_EF0


def cap_to_wind(cap: int) -> float:
    return CAP_WIND[sanitize_cap(cap)]


def rating_by_name(name: str) -> EFRating:
    for rating in EF_TABLE:
        if rating.name == name:
            return rating
    return SUB_EF0
