from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable, Optional

from geoquest.application.services.balance_tables import (
    BASE_HIT_CHANCE,
    CRITICAL_MULTIPLIER,
    CRITICAL_ROLL,
    FLEE_BASE_CHANCE,
    FLEE_CHANCE_MAX,
    FLEE_CHANCE_MIN,
    FLEE_DEXTERITY_BONUS,
    FLEE_FAILURE_DAMAGE_RATIO,
    FLEE_LEVEL_PENALTY,
    FUMBLE_ROLL,
    HIT_CHANCE_MAX,
    HIT_CHANCE_MIN,
    HIT_CHANCE_PER_POINT,
    UNARMED_DAMAGE,
    clamp,
)
from geoquest.application.services.seed_policy import derive_seed
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.character import Character
from geoquest.domain.models.combat import (
    AttackResult,
    CombatOutcome,
    CombatState,
    Combatant,
    ExchangeResult,
    FleeResult,
)
from geoquest.domain.models.loot import ItemTemplate
from geoquest.domain.models.monster import MonsterInstance
from geoquest.domain.models.stats import ability_modifier
from geoquest.domain.services.random_source import RandomSource, SeededRandom

logger = logging.getLogger(__name__)


def roll_die(sides: int, rng: RandomSource) -> int:
    if int(sides) < 2:
        raise ValidationError(f"A die needs at least 2 sides, got {sides}")
    return rng.randint(1, int(sides))


def roll_dice(sides: int, count: int, rng: RandomSource) -> int:
    if int(count) < 1:
        raise ValidationError(f"Dice count must be at least 1, got {count}")
    return sum(roll_die(sides, rng) for _ in range(int(count)))


def roll_with_advantage(rng: RandomSource, sides: int = 20) -> int:
    return max(roll_die(sides, rng), roll_die(sides, rng))


def roll_with_disadvantage(rng: RandomSource, sides: int = 20) -> int:
    return min(roll_die(sides, rng), roll_die(sides, rng))


def calculate_hit_chance(attacker_dexterity: int, defender_armor_class: int) -> float:
    chance = (
        BASE_HIT_CHANCE
        + ability_modifier(attacker_dexterity) * HIT_CHANCE_PER_POINT
        - (defender_armor_class - 10) * HIT_CHANCE_PER_POINT
    )
    return clamp(HIT_CHANCE_MIN, HIT_CHANCE_MAX, chance)


def calculate_damage(base_damage: int, modifier: int, critical: bool = False) -> int:
    multiplier = CRITICAL_MULTIPLIER if critical else 1
    return max(1, math.floor((base_damage + modifier) * multiplier))


def calculate_flee_chance(dexterity: int, opponent_level: int, player_level: int) -> float:
    chance = (
        FLEE_BASE_CHANCE
        + max(0, dexterity - 10) * FLEE_DEXTERITY_BONUS
        - max(0, opponent_level - player_level) * FLEE_LEVEL_PENALTY
    )
    return clamp(FLEE_CHANCE_MIN, FLEE_CHANCE_MAX, chance)


def combatant_from_character(character: Character, weapon: Optional[ItemTemplate] = None) -> Combatant:
    damage_range = None
    if weapon is not None and weapon.is_weapon:
        damage_range = (int(weapon.damage_min), int(weapon.damage_max))
    return Combatant(
        name=character.name,
        level=character.level,
        strength=character.attributes["strength"],
        dexterity=character.attributes["dexterity"],
        armor_class=character.armor_class,
        current_health=character.current_health,
        max_health=character.max_health,
        base_damage=UNARMED_DAMAGE,
        damage_range=damage_range,
    )


def combatant_from_monster(monster: MonsterInstance) -> Combatant:
    # Monsters carry no attribute block: dexterity tracks level and half the level feeds damage.
    return Combatant(
        name=monster.name,
        level=monster.level,
        strength=10,
        dexterity=10 + monster.level,
        armor_class=monster.armor,
        current_health=monster.current_health,
        max_health=monster.max_health,
        base_damage=monster.damage,
        damage_modifier=monster.level // 2,
    )


class CombatService:
    """Resolves attack exchanges between a character and a scaled monster."""

    def __init__(self, rng_factory: Callable[[int], RandomSource] | None = None) -> None:
        self._rng_factory = rng_factory or SeededRandom

    def start(
        self,
        character: Character,
        monster: MonsterInstance,
        encounter_id: str,
        weapon: Optional[ItemTemplate] = None,
        source_poi_id: Optional[str] = None,
    ) -> CombatState:
        if character.is_dead or character.current_health <= 0:
            raise ValidationError(f"{character.name} cannot fight while dead")
        return CombatState(
            encounter_id=str(encounter_id),
            character_id=character.id,
            attacker=combatant_from_character(character, weapon),
            defender=replace(monster),
            source_poi_id=source_poi_id,
        )

    @staticmethod
    def sync_attacker(state: CombatState, character: Character, weapon: Optional[ItemTemplate] = None) -> Combatant:
        """Refresh the player side of a fight from the stored character.

        Potions, stat points and equipment changes made between exchanges
        apply to the next exchange.
        """
        if character.is_dead or character.current_health <= 0:
            raise ValidationError(f"{character.name} cannot fight while dead")
        state.attacker = combatant_from_character(character, weapon)
        return state.attacker

    def rng_for(self, state: CombatState, action: str) -> RandomSource:
        seed = derive_seed(
            f"combat.{action}",
            {
                "character_id": state.character_id,
                "encounter_id": state.encounter_id,
                "turn": state.turns + 1,
            },
        )
        return self._rng_factory(seed)

    def perform_attack_roll(self, rng: RandomSource) -> int:
        return roll_die(20, rng)

    def resolve_attack(self, attacker: Combatant, defender_armor_class: int, rng: RandomSource) -> AttackResult:
        roll = self.perform_attack_roll(rng)
        if roll >= CRITICAL_ROLL:
            return AttackResult(roll=roll, hit=True, critical=True, fumble=False, damage=self._roll_damage(attacker, True, rng))
        if roll <= FUMBLE_ROLL:
            return AttackResult(roll=roll, hit=False, critical=False, fumble=True, damage=0)
        chance = calculate_hit_chance(attacker.dexterity, defender_armor_class)
        if rng.random() >= chance:
            return AttackResult(roll=roll, hit=False, critical=False, fumble=False, damage=0, hit_chance=chance)
        return AttackResult(
            roll=roll,
            hit=True,
            critical=False,
            fumble=False,
            damage=self._roll_damage(attacker, False, rng),
            hit_chance=chance,
        )

    @staticmethod
    def _roll_damage(attacker: Combatant, critical: bool, rng: RandomSource) -> int:
        if attacker.damage_range is not None:
            low, high = attacker.damage_range
            base = rng.randint(low, high)
        else:
            base = attacker.base_damage
        modifier = attacker.damage_modifier if attacker.damage_modifier is not None else ability_modifier(attacker.strength)
        return calculate_damage(base, modifier, critical)

    @staticmethod
    def _ensure_ongoing(state: CombatState) -> None:
        if state.outcome.is_terminal:
            raise ValidationError(f"Encounter {state.encounter_id} already ended in {state.outcome.value}")

    def resolve_exchange(self, state: CombatState, rng: RandomSource | None = None) -> ExchangeResult:
        self._ensure_ongoing(state)
        rng = rng or self.rng_for(state, "exchange")
        player_attack = self.resolve_attack(state.attacker, state.defender.armor, rng)
        state.defender.current_health = max(0, state.defender.current_health - player_attack.damage)

        monster_attack: Optional[AttackResult] = None
        damage_taken = 0
        if state.defender.current_health <= 0:
            outcome = CombatOutcome.VICTORY
        else:
            monster_attack = self.resolve_attack(combatant_from_monster(state.defender), state.attacker.armor_class, rng)
            damage_taken = monster_attack.damage
            remaining = max(0, state.attacker.current_health - damage_taken)
            state.attacker = replace(state.attacker, current_health=remaining)
            outcome = CombatOutcome.DEFEAT if remaining <= 0 else CombatOutcome.ONGOING

        result = ExchangeResult(
            exchange_no=state.exchange_count + 1,
            player_attack=player_attack,
            monster_attack=monster_attack,
            damage_dealt=player_attack.damage,
            damage_taken=damage_taken,
            player_health=state.attacker.current_health,
            monster_health=state.defender.current_health,
            outcome=outcome,
        )
        state.log.append(result)
        state.outcome = outcome
        state.turns += 1
        logger.debug(
            "Combat exchange resolved",
            extra={
                "encounter_id": state.encounter_id,
                "exchange_no": result.exchange_no,
                "outcome": outcome.value,
                "damage_dealt": result.damage_dealt,
                "damage_taken": result.damage_taken,
            },
        )
        return result

    def attempt_flee(self, state: CombatState, rng: RandomSource | None = None) -> FleeResult:
        self._ensure_ongoing(state)
        rng = rng or self.rng_for(state, "flee")
        chance = calculate_flee_chance(state.attacker.dexterity, state.defender.level, state.attacker.level)
        roll = rng.random()
        state.turns += 1
        if roll < chance:
            state.outcome = CombatOutcome.FLED
            return FleeResult(
                success=True,
                chance=chance,
                roll=roll,
                damage_taken=0,
                player_health=state.attacker.current_health,
                outcome=CombatOutcome.FLED,
            )
        damage = math.floor(state.defender.damage * FLEE_FAILURE_DAMAGE_RATIO)
        remaining = max(0, state.attacker.current_health - damage)
        state.attacker = replace(state.attacker, current_health=remaining)
        state.outcome = CombatOutcome.DEFEAT if remaining <= 0 else CombatOutcome.ONGOING
        return FleeResult(
            success=False,
            chance=chance,
            roll=roll,
            damage_taken=damage,
            player_health=remaining,
            outcome=state.outcome,
        )
