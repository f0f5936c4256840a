import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.application.services.combat_service import (
    CombatService,
    calculate_damage,
    calculate_flee_chance,
    calculate_hit_chance,
    roll_dice,
    roll_die,
    roll_with_advantage,
    roll_with_disadvantage,
)
from geoquest.application.services.monster_scaling import instantiate
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.character import Character
from geoquest.domain.models.combat import CombatOutcome
from geoquest.domain.models.loot import ItemTemplate, ItemType
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.services.random_source import SeededRandom


class _ScriptedRandom(SeededRandom):
    def __init__(self, values) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


# randint(1, 20) draws: 0.999 -> 20, 0.45 -> 10, 0.0 -> 1
NAT_20 = 0.999
ROLL_10 = 0.45
NAT_1 = 0.0

BRUTE = MonsterTemplate(id="brute", name="Brute", base_level=1, health=20, damage=5, armor=2)


def _fighter(**overrides) -> Character:
    values = dict(
        id=1,
        name="Kara",
        character_class="fighter",
        attributes={"strength": 16, "dexterity": 13},
        current_health=24,
        max_health=24,
    )
    values.update(overrides)
    return Character(**values)


class FormulaTests(unittest.TestCase):
    def test_damage_formula(self) -> None:
        self.assertEqual(12, calculate_damage(10, 2, False))
        self.assertEqual(24, calculate_damage(10, 2, True))

    def test_damage_is_at_least_one(self) -> None:
        self.assertEqual(1, calculate_damage(1, -5, False))
        self.assertEqual(1, calculate_damage(0, -3, True))

    def test_hit_chance_formula(self) -> None:
        self.assertAlmostEqual(0.83, calculate_hit_chance(13, 2))
        self.assertAlmostEqual(0.65, calculate_hit_chance(10, 10))

    def test_hit_chance_is_clamped(self) -> None:
        self.assertEqual(0.95, calculate_hit_chance(30, 0))
        self.assertEqual(0.05, calculate_hit_chance(1, 40))

    def test_flee_chance_formula(self) -> None:
        self.assertAlmostEqual(0.46, calculate_flee_chance(13, 1, 1))
        self.assertAlmostEqual(0.35, calculate_flee_chance(10, 2, 1))

    def test_flee_chance_is_clamped(self) -> None:
        self.assertEqual(0.8, calculate_flee_chance(40, 1, 1))
        self.assertEqual(0.1, calculate_flee_chance(10, 20, 1))


class DiceTests(unittest.TestCase):
    def test_die_needs_two_sides(self) -> None:
        with self.assertRaises(ValidationError):
            roll_die(1, SeededRandom(1))

    def test_every_die_size_is_bounded_and_uniform(self) -> None:
        for sides in (4, 6, 8, 10, 12, 20, 100):
            with self.subTest(sides=sides):
                rng = SeededRandom(42 + sides)
                samples = sides * 1000
                counts = [0] * (sides + 1)
                for _ in range(samples):
                    roll = roll_die(sides, rng)
                    self.assertGreaterEqual(roll, 1)
                    self.assertLessEqual(roll, sides)
                    counts[roll] += 1
                expected = samples / sides
                for face in range(1, sides + 1):
                    self.assertGreater(counts[face], expected * 0.85)
                    self.assertLess(counts[face], expected * 1.15)

    def test_dice_pool_sums_within_bounds(self) -> None:
        rng = SeededRandom(8)
        totals = {roll_dice(6, 3, rng) for _ in range(3000)}
        self.assertEqual(3, min(totals))
        self.assertEqual(18, max(totals))

    def test_dice_pool_sums_each_die(self) -> None:
        # randint(1, 6) draws: 0.0 -> 1, 0.5 -> 4, 0.99 -> 6
        self.assertEqual(11, roll_dice(6, 3, _ScriptedRandom([0.0, 0.5, 0.99])))

    def test_dice_pool_needs_one_die(self) -> None:
        with self.assertRaises(ValidationError):
            roll_dice(6, 0, SeededRandom(1))

    def test_advantage_keeps_higher_and_disadvantage_lower(self) -> None:
        self.assertEqual(20, roll_with_advantage(_ScriptedRandom([NAT_1, NAT_20])))
        self.assertEqual(1, roll_with_disadvantage(_ScriptedRandom([NAT_1, NAT_20])))


class ExchangeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.combat = CombatService()
        self.monster = instantiate(BRUTE, player_level=1)

    def test_level_parity_keeps_base_stats(self) -> None:
        self.assertEqual((20, 5, 2, 1), (self.monster.max_health, self.monster.damage, self.monster.armor, self.monster.level))

    def test_natural_twenty_always_hits_for_double_damage(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="scenario")
        # The monster answers with a natural 1.
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_20, NAT_1]))

        self.assertEqual(20, result.player_attack.roll)
        self.assertTrue(result.player_attack.hit)
        self.assertTrue(result.player_attack.critical)
        self.assertEqual(16, result.damage_dealt)
        self.assertEqual(4, result.monster_health)
        self.assertTrue(result.monster_attack.fumble)
        self.assertEqual(0, result.damage_taken)
        self.assertEqual(24, result.player_health)
        self.assertIs(CombatOutcome.ONGOING, result.outcome)

    def test_natural_twenty_lands_even_when_hit_chance_is_minimal(self) -> None:
        armored = instantiate(MonsterTemplate(id="wall", name="Wall", health=50, armor=60), player_level=1)
        state = self.combat.start(_fighter(), armored, encounter_id="wall")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_20, NAT_1]))
        self.assertTrue(result.player_attack.hit)
        self.assertEqual(16, result.damage_dealt)

    def test_natural_one_always_misses(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="fumble")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_1, NAT_1]))
        self.assertTrue(result.player_attack.fumble)
        self.assertFalse(result.player_attack.hit)
        self.assertEqual(0, result.damage_dealt)

    def test_regular_roll_hits_when_check_is_under_hit_chance(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="hit")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([ROLL_10, 0.0, NAT_1]))
        self.assertTrue(result.player_attack.hit)
        self.assertFalse(result.player_attack.critical)
        self.assertEqual(8, result.damage_dealt)
        self.assertAlmostEqual(0.83, result.player_attack.hit_chance)

    def test_regular_roll_misses_when_check_exceeds_hit_chance(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="miss")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([ROLL_10, 0.99, NAT_1]))
        self.assertFalse(result.player_attack.hit)
        self.assertEqual(20, result.monster_health)

    def test_weapon_damage_range_replaces_unarmed_damage(self) -> None:
        sword = ItemTemplate("short_sword", "Short Sword", ItemType.WEAPON.value, damage_min=4, damage_max=8)
        state = self.combat.start(_fighter(), self.monster, encounter_id="sword", weapon=sword)
        result = self.combat.resolve_exchange(state, _ScriptedRandom([ROLL_10, 0.0, 0.0, NAT_1]))
        self.assertEqual(7, result.damage_dealt)

    def test_killing_blow_ends_combat_without_counter_attack(self) -> None:
        weak = instantiate(MonsterTemplate(id="rat", name="Rat", health=3, damage=1, armor=0), player_level=1)
        state = self.combat.start(_fighter(), weak, encounter_id="rat")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_20]))
        self.assertIs(CombatOutcome.VICTORY, result.outcome)
        self.assertIsNone(result.monster_attack)
        self.assertEqual(0, result.monster_health)

    def test_counter_attack_can_defeat_the_player(self) -> None:
        state = self.combat.start(_fighter(current_health=2), self.monster, encounter_id="defeat")
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_1, NAT_20]))
        self.assertIs(CombatOutcome.DEFEAT, result.outcome)
        self.assertEqual(0, result.player_health)

    def test_finished_combat_rejects_further_exchanges(self) -> None:
        weak = instantiate(MonsterTemplate(id="rat", name="Rat", health=3, damage=1, armor=0), player_level=1)
        state = self.combat.start(_fighter(), weak, encounter_id="done")
        self.combat.resolve_exchange(state, _ScriptedRandom([NAT_20]))
        with self.assertRaises(ValidationError):
            self.combat.resolve_exchange(state, _ScriptedRandom([NAT_20]))
        with self.assertRaises(ValidationError):
            self.combat.attempt_flee(state, _ScriptedRandom([0.0]))

    def test_dead_character_cannot_start_combat(self) -> None:
        with self.assertRaises(ValidationError):
            self.combat.start(_fighter(is_dead=True, current_health=0), self.monster, encounter_id="ghost")

    def test_sync_picks_up_changes_made_between_exchanges(self) -> None:
        state = self.combat.start(_fighter(current_health=6), self.monster, encounter_id="potion")
        sword = ItemTemplate("short_sword", "Short Sword", ItemType.WEAPON.value, damage_min=4, damage_max=8)

        attacker = self.combat.sync_attacker(
            state, _fighter(current_health=20, attributes={"strength": 16, "dexterity": 15}), sword
        )

        self.assertIs(attacker, state.attacker)
        self.assertEqual(20, attacker.current_health)
        self.assertEqual(15, attacker.dexterity)
        self.assertEqual((4, 8), attacker.damage_range)
        result = self.combat.resolve_exchange(state, _ScriptedRandom([NAT_1, NAT_1]))
        self.assertEqual(20, result.player_health)

    def test_sync_rejects_a_dead_character(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="grave")
        with self.assertRaises(ValidationError):
            self.combat.sync_attacker(state, _fighter(is_dead=True, current_health=0))

    def test_seeded_exchanges_replay_identically(self) -> None:
        state_a = self.combat.start(_fighter(), instantiate(BRUTE, 1), encounter_id="replay")
        state_b = self.combat.start(_fighter(), instantiate(BRUTE, 1), encounter_id="replay")
        for _ in range(3):
            if state_a.outcome.is_terminal:
                break
            self.assertEqual(self.combat.resolve_exchange(state_a), self.combat.resolve_exchange(state_b))

    def test_each_turn_draws_a_fresh_seed(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="turns")
        first = self.combat.rng_for(state, "exchange").seed
        state.turns += 1
        self.assertNotEqual(first, self.combat.rng_for(state, "exchange").seed)


class FleeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.combat = CombatService()
        self.monster = instantiate(BRUTE, player_level=1)

    def test_successful_flee(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="run")
        result = self.combat.attempt_flee(state, _ScriptedRandom([0.0]))
        self.assertTrue(result.success)
        self.assertIs(CombatOutcome.FLED, state.outcome)
        self.assertEqual(0, result.damage_taken)

    def test_failed_flee_costs_half_monster_damage(self) -> None:
        state = self.combat.start(_fighter(), self.monster, encounter_id="stumble")
        result = self.combat.attempt_flee(state, _ScriptedRandom([0.99]))
        self.assertFalse(result.success)
        self.assertEqual(2, result.damage_taken)
        self.assertEqual(22, result.player_health)
        self.assertIs(CombatOutcome.ONGOING, state.outcome)

    def test_failed_flee_can_be_fatal(self) -> None:
        state = self.combat.start(_fighter(current_health=1), self.monster, encounter_id="fatal")
        result = self.combat.attempt_flee(state, _ScriptedRandom([0.99]))
        self.assertIs(CombatOutcome.DEFEAT, result.outcome)
        self.assertEqual(0, result.player_health)


if __name__ == "__main__":
    unittest.main()
