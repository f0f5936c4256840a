from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from geoquest.domain.errors import ValidationError


ATTRIBUTE_NAMES = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
)

_ATTRIBUTE_ALIASES = {
    "str": "strength",
    "dex": "dexterity",
    "con": "constitution",
    "int": "intelligence",
    "wis": "wisdom",
    "cha": "charisma",
}


def ability_modifier(score: int) -> int:
    return (int(score) - 10) // 2


def normalize_attribute(name: str | None) -> str:
    raw = str(name or "").strip().lower()
    resolved = _ATTRIBUTE_ALIASES.get(raw, raw)
    if resolved not in ATTRIBUTE_NAMES:
        raise ValidationError(f"Unknown attribute: {name!r}")
    return resolved


@dataclass(frozen=True)
class AbilityScores:
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    @property
    def strength_mod(self) -> int:
        return ability_modifier(self.strength)

    @property
    def dexterity_mod(self) -> int:
        return ability_modifier(self.dexterity)

    @property
    def constitution_mod(self) -> int:
        return ability_modifier(self.constitution)

    @property
    def intelligence_mod(self) -> int:
        return ability_modifier(self.intelligence)

    @property
    def wisdom_mod(self) -> int:
        return ability_modifier(self.wisdom)

    @property
    def charisma_mod(self) -> int:
        return ability_modifier(self.charisma)

    def as_dict(self) -> Dict[str, int]:
        return {name: int(getattr(self, name)) for name in ATTRIBUTE_NAMES}


def calculate_max_health(health_per_level: int, constitution: int, level: int) -> int:
    con_mod = ability_modifier(constitution)
    return max(1, health_per_level * 2 + (health_per_level + con_mod) * (max(1, int(level)) - 1))


def calculate_max_mana(mana_per_level: int, intelligence: int, level: int) -> int:
    int_mod = ability_modifier(intelligence)
    return max(0, mana_per_level * 2 + (mana_per_level + int_mod) * (max(1, int(level)) - 1))


def calculate_armor_class(dexterity: int, armor_bonus: int = 0) -> int:
    return 10 + ability_modifier(dexterity) + max(0, int(armor_bonus))
