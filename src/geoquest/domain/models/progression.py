from __future__ import annotations

from dataclasses import dataclass

from geoquest.domain.errors import ValidationError


@dataclass(frozen=True)
class ExperiencePoints:
    value: int

    def __post_init__(self) -> None:
        if int(self.value) < 0:
            raise ValidationError("Experience points cannot be negative")


@dataclass(frozen=True)
class LevelUpOutcome:
    leveled_up: bool
    old_level: int
    new_level: int
    levels_gained: int
    stat_points_gained: int
    max_health: int
    max_mana: int


@dataclass(frozen=True)
class XpProgress:
    current: int
    required: int
    percentage: int
