import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.domain.errors import InvariantViolation, ValidationError
from geoquest.domain.models.character import Character
from geoquest.domain.models.character_class import CharacterClass, class_profile
from geoquest.domain.models.stats import (
    ability_modifier,
    calculate_armor_class,
    calculate_max_health,
    calculate_max_mana,
    normalize_attribute,
)


class AbilityModifierTests(unittest.TestCase):
    def test_modifier_table(self) -> None:
        expected = {1: -5, 8: -1, 9: -1, 10: 0, 11: 0, 12: 1, 13: 1, 16: 3, 20: 5}
        for score, modifier in expected.items():
            with self.subTest(score=score):
                self.assertEqual(modifier, ability_modifier(score))

    def test_attribute_aliases_normalize(self) -> None:
        self.assertEqual("strength", normalize_attribute("STR"))
        self.assertEqual("dexterity", normalize_attribute(" dex "))
        self.assertEqual("wisdom", normalize_attribute("Wisdom"))

    def test_unknown_attribute_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            normalize_attribute("luck")


class DerivedStatTests(unittest.TestCase):
    def test_level_one_health_is_twice_hit_points_per_level(self) -> None:
        self.assertEqual(24, calculate_max_health(12, 14, 1))

    def test_health_grows_with_constitution_modifier(self) -> None:
        self.assertEqual(24 + (12 + 2) * 2, calculate_max_health(12, 14, 3))

    def test_health_never_drops_below_one(self) -> None:
        self.assertEqual(1, calculate_max_health(0, 1, 5))

    def test_mana_never_negative(self) -> None:
        self.assertEqual(0, calculate_max_mana(0, 1, 5))

    def test_armor_class_uses_dexterity_modifier(self) -> None:
        self.assertEqual(13, calculate_armor_class(16))

    def test_armor_bonus_adds_to_armor_class(self) -> None:
        self.assertEqual(17, calculate_armor_class(16, 4))
        self.assertEqual(10, calculate_armor_class(10, 0))


class CharacterClassTests(unittest.TestCase):
    def test_aliases_resolve_to_canonical_classes(self) -> None:
        self.assertIs(CharacterClass.WARRIOR, CharacterClass.normalize("Fighter"))
        self.assertIs(CharacterClass.MAGE, CharacterClass.normalize("wizard"))
        self.assertIs(CharacterClass.ROGUE, CharacterClass.normalize("thief"))

    def test_unknown_class_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            CharacterClass.normalize("necromancer")

    def test_every_class_has_a_profile(self) -> None:
        for member in CharacterClass:
            self.assertGreater(class_profile(member).health_per_level, 0)


class CharacterInvariantTests(unittest.TestCase):
    def test_attributes_accept_short_names(self) -> None:
        character = Character(id=1, name="Ari", attributes={"STR": 16, "dex": 13})
        self.assertEqual(16, character.attributes["strength"])
        self.assertEqual(13, character.attributes["dexterity"])
        self.assertEqual(10, character.attributes["charisma"])

    def test_health_above_max_violates_invariants(self) -> None:
        character = Character(id=1, name="Ari", current_health=30, max_health=24)
        with self.assertRaises(InvariantViolation):
            character.check_invariants()

    def test_negative_gold_violates_invariants(self) -> None:
        character = Character(id=1, name="Ari", gold=-1)
        with self.assertRaises(InvariantViolation):
            character.check_invariants()

    def test_default_character_is_consistent(self) -> None:
        Character(id=1, name="Ari").check_invariants()


if __name__ == "__main__":
    unittest.main()
