from __future__ import annotations

import logging
from typing import Optional

from geoquest.application.services.balance_tables import (
    LEVEL_CAP,
    STARTING_GOLD,
    STAT_POINTS_PER_LEVEL,
    XP_TABLE,
    experience_to_next_level,
    xp_for_level,
)
from geoquest.domain.errors import InsufficientResourceError, ValidationError
from geoquest.domain.models.character import Character
from geoquest.domain.models.character_class import CharacterClass, class_profile
from geoquest.domain.models.progression import ExperiencePoints, LevelUpOutcome, XpProgress
from geoquest.domain.models.stats import (
    calculate_armor_class,
    calculate_max_health,
    calculate_max_mana,
    normalize_attribute,
)

logger = logging.getLogger(__name__)


class ProgressionService:
    def create_character(self, name: str, character_class: "str | CharacterClass", character_id: Optional[int] = None) -> Character:
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("Character name cannot be empty")
        resolved = CharacterClass.normalize(character_class)
        profile = class_profile(resolved)
        attributes = profile.base_attributes.as_dict()
        max_health = calculate_max_health(profile.health_per_level, attributes["constitution"], 1)
        max_mana = calculate_max_mana(profile.mana_per_level, attributes["intelligence"], 1)
        return Character(
            id=character_id,
            name=clean_name,
            character_class=resolved.value,
            level=1,
            experience=0,
            experience_to_next_level=experience_to_next_level(1),
            attributes=attributes,
            current_health=max_health,
            max_health=max_health,
            current_mana=max_mana,
            max_mana=max_mana,
            armor_class=calculate_armor_class(attributes["dexterity"]),
            gold=STARTING_GOLD,
            available_stat_points=0,
        )

    @staticmethod
    def recalculate_health(character: Character) -> None:
        profile = class_profile(character.character_class)
        character.max_health = calculate_max_health(
            profile.health_per_level, character.attributes["constitution"], character.level
        )
        character.current_health = min(character.current_health, character.max_health)

    @staticmethod
    def recalculate_mana(character: Character) -> None:
        profile = class_profile(character.character_class)
        character.max_mana = calculate_max_mana(
            profile.mana_per_level, character.attributes["intelligence"], character.level
        )
        character.current_mana = min(character.current_mana, character.max_mana)

    @staticmethod
    def recalculate_armor_class(character: Character, armor_bonus: int = 0) -> None:
        character.armor_class = calculate_armor_class(character.attributes["dexterity"], armor_bonus)

    def add_experience(self, character: Character, amount: int) -> LevelUpOutcome:
        gained = ExperiencePoints(int(amount)).value
        old_level = character.level
        character.experience += gained

        while character.level < LEVEL_CAP and character.experience >= XP_TABLE[character.level]:
            character.level += 1
            character.available_stat_points += STAT_POINTS_PER_LEVEL

        levels_gained = character.level - old_level
        character.experience_to_next_level = experience_to_next_level(character.level)
        if levels_gained:
            self.recalculate_health(character)
            self.recalculate_mana(character)
            character.current_health = character.max_health
            character.current_mana = character.max_mana
            logger.info(
                "Character leveled up",
                extra={"character_id": character.id, "from_level": old_level, "to_level": character.level},
            )

        return LevelUpOutcome(
            leveled_up=levels_gained > 0,
            old_level=old_level,
            new_level=character.level,
            levels_gained=levels_gained,
            stat_points_gained=levels_gained * STAT_POINTS_PER_LEVEL,
            max_health=character.max_health,
            max_mana=character.max_mana,
        )

    def allocate_stat_point(self, character: Character, attribute: str, armor_bonus: int = 0) -> str:
        resolved = normalize_attribute(attribute)
        if character.available_stat_points <= 0:
            raise InsufficientResourceError("stat points", 1, character.available_stat_points)

        character.available_stat_points -= 1
        character.attributes[resolved] += 1
        if resolved == "constitution":
            self.recalculate_health(character)
        elif resolved == "intelligence":
            self.recalculate_mana(character)
        elif resolved == "dexterity":
            self.recalculate_armor_class(character, armor_bonus)
        return resolved

    @staticmethod
    def xp_progress(character: Character) -> XpProgress:
        floor_xp = xp_for_level(character.level)
        if character.level >= LEVEL_CAP:
            return XpProgress(current=character.experience - floor_xp, required=0, percentage=100)
        required = xp_for_level(character.level + 1) - floor_xp
        current = character.experience - floor_xp
        return XpProgress(current=current, required=required, percentage=min(100, (current * 100) // required))

    @staticmethod
    def add_gold(character: Character, amount: int) -> int:
        if int(amount) < 0:
            raise ValidationError("Gold amount cannot be negative")
        character.gold += int(amount)
        return character.gold

    @staticmethod
    def spend_gold(character: Character, amount: int) -> int:
        if int(amount) < 0:
            raise ValidationError("Gold amount cannot be negative")
        if character.gold < int(amount):
            raise InsufficientResourceError("gold", int(amount), character.gold)
        character.gold -= int(amount)
        return character.gold

    @staticmethod
    def heal(character: Character, amount: int) -> int:
        if int(amount) < 0:
            raise ValidationError("Heal amount cannot be negative")
        before = character.current_health
        character.current_health = min(character.max_health, character.current_health + int(amount))
        return character.current_health - before

    @staticmethod
    def restore_mana(character: Character, amount: int) -> int:
        if int(amount) < 0:
            raise ValidationError("Mana amount cannot be negative")
        before = character.current_mana
        character.current_mana = min(character.max_mana, character.current_mana + int(amount))
        return character.current_mana - before

    @staticmethod
    def apply_damage(character: Character, amount: int) -> int:
        if int(amount) < 0:
            raise ValidationError("Damage amount cannot be negative")
        character.current_health = max(0, character.current_health - int(amount))
        return character.current_health

    @staticmethod
    def kill(character: Character, cause: str) -> None:
        character.current_health = 0
        character.is_dead = True
        character.death_cause = cause
