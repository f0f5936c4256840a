from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from geoquest.domain.errors import ValidationError
from geoquest.domain.models.stats import AbilityScores


class CharacterClass(str, Enum):
    WARRIOR = "warrior"
    MAGE = "mage"
    ROGUE = "rogue"
    CLERIC = "cleric"
    RANGER = "ranger"
    PALADIN = "paladin"
    BARBARIAN = "barbarian"
    BARD = "bard"

    @classmethod
    def normalize(cls, value: "str | CharacterClass | None") -> "CharacterClass":
        if isinstance(value, CharacterClass):
            return value
        raw = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {
            "fighter": cls.WARRIOR.value,
            "wizard": cls.MAGE.value,
            "sorcerer": cls.MAGE.value,
            "thief": cls.ROGUE.value,
            "priest": cls.CLERIC.value,
            "archer": cls.RANGER.value,
            "berserker": cls.BARBARIAN.value,
            "minstrel": cls.BARD.value,
        }
        resolved = aliases.get(raw, raw)
        try:
            return cls(resolved)
        except ValueError:
            raise ValidationError(f"Unknown character class: {value!r}") from None


@dataclass(frozen=True)
class ClassProfile:
    name: str
    base_attributes: AbilityScores
    health_per_level: int
    mana_per_level: int
    description: str = ""


CLASS_PROFILES: Dict[CharacterClass, ClassProfile] = {
    CharacterClass.WARRIOR: ClassProfile(
        name="Warrior",
        base_attributes=AbilityScores(14, 10, 14, 8, 10, 10),
        health_per_level=12,
        mana_per_level=4,
        description="Front-line fighter, strong and resilient.",
    ),
    CharacterClass.MAGE: ClassProfile(
        name="Mage",
        base_attributes=AbilityScores(8, 10, 10, 16, 12, 10),
        health_per_level=6,
        mana_per_level=12,
        description="Arcane caster with a deep mana pool.",
    ),
    CharacterClass.ROGUE: ClassProfile(
        name="Rogue",
        base_attributes=AbilityScores(10, 16, 10, 12, 10, 10),
        health_per_level=8,
        mana_per_level=6,
        description="Agile and precise.",
    ),
    CharacterClass.CLERIC: ClassProfile(
        name="Cleric",
        base_attributes=AbilityScores(12, 8, 12, 10, 16, 10),
        health_per_level=8,
        mana_per_level=10,
        description="Divine healer and protector.",
    ),
    CharacterClass.RANGER: ClassProfile(
        name="Ranger",
        base_attributes=AbilityScores(12, 14, 12, 10, 12, 8),
        health_per_level=10,
        mana_per_level=6,
        description="Hunter of the wilds.",
    ),
    CharacterClass.PALADIN: ClassProfile(
        name="Paladin",
        base_attributes=AbilityScores(14, 8, 12, 10, 12, 14),
        health_per_level=10,
        mana_per_level=8,
        description="Holy warrior.",
    ),
    CharacterClass.BARBARIAN: ClassProfile(
        name="Barbarian",
        base_attributes=AbilityScores(16, 12, 16, 8, 10, 8),
        health_per_level=14,
        mana_per_level=2,
        description="Relentless brute force.",
    ),
    CharacterClass.BARD: ClassProfile(
        name="Bard",
        base_attributes=AbilityScores(8, 12, 10, 12, 10, 16),
        health_per_level=8,
        mana_per_level=8,
        description="Charismatic performer with a little of everything.",
    ),
}


def class_profile(value: "str | CharacterClass") -> ClassProfile:
    return CLASS_PROFILES[CharacterClass.normalize(value)]
