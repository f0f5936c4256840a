from __future__ import annotations

import math
from typing import Callable, Optional, Sequence

from geoquest.application.services.balance_tables import (
    MERCHANT_DISCOUNT_MAX,
    MERCHANT_DISCOUNT_MIN,
    TRAP_TABLE,
    TRAVEL_ENCOUNTER_CHANCE,
    TRAVEL_ENCOUNTER_WEIGHTS,
)
from geoquest.application.services.seed_policy import derive_seed
from geoquest.application.services.world_generation_service import roll_tier
from geoquest.domain.models.encounter import TravelEncounter, TravelEncounterKind
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.services.random_source import SeededRandom

TRAVEL_EVENT_MESSAGES = (
    "A mysterious traveler offers a trade...",
    "You find an ancient altar...",
    "A fairy appears and offers a wish...",
    "You find the tracks of a rare creature...",
    "A specter appears with a message...",
)


def pick_weighted(roll: float, weights: Sequence[tuple[str, int]]) -> str:
    total = sum(weight for _, weight in weights)
    target = roll * total
    for name, weight in weights:
        if target < weight:
            return name
        target -= weight
    return weights[-1][0]


class EncounterService:
    """Random events that can interrupt a character moving across the map."""

    def __init__(
        self,
        encounter_chance: float = TRAVEL_ENCOUNTER_CHANCE,
        rng_factory: Callable[[int], SeededRandom] | None = None,
    ) -> None:
        self.encounter_chance = float(encounter_chance)
        self._rng_factory = rng_factory or SeededRandom

    def rng_for_step(self, character_id: Optional[int], lat_index: int, lng_index: int, travel_steps: int) -> SeededRandom:
        seed = derive_seed(
            "encounter.travel",
            {"character_id": character_id, "lat": lat_index, "lng": lng_index, "step": int(travel_steps)},
        )
        return self._rng_factory(seed)

    def roll_travel_encounter(
        self,
        rng,
        player_level: int,
        monsters: Sequence[MonsterTemplate] = (),
    ) -> Optional[TravelEncounter]:
        if rng.random() >= self.encounter_chance:
            return None
        level = max(1, int(player_level))
        kind = pick_weighted(rng.random(), TRAVEL_ENCOUNTER_WEIGHTS)

        if kind == TravelEncounterKind.BATTLE.value:
            # Only monsters at or below the player's level can ambush them.
            eligible = sorted((m for m in monsters if m.base_level <= level), key=lambda m: m.id)
            if not eligible:
                return TravelEncounter(kind=TravelEncounterKind.EVENT.value, message=rng.choice(TRAVEL_EVENT_MESSAGES))
            monster = rng.choice(eligible)
            tier = roll_tier(rng.random())
            return TravelEncounter(
                kind=kind,
                message=f"A wild {monster.name} blocks your path!",
                monster_id=monster.id,
                tier=tier,
            )
        if kind == TravelEncounterKind.TREASURE.value:
            gold = math.floor(rng.random() * 50 * level) + 10
            experience = math.floor(rng.random() * 20 * level) + 5
            return TravelEncounter(
                kind=kind,
                message=f"You found a hidden cache with {gold} gold!",
                gold=gold,
                experience=experience,
            )
        if kind == TravelEncounterKind.TRAP.value:
            name, base, per_level = rng.choice(TRAP_TABLE)
            damage = base + per_level * level
            return TravelEncounter(kind=kind, message=f"{name}! You take {damage} damage.", trap_name=name, damage=damage)
        if kind == TravelEncounterKind.MERCHANT.value:
            discount = rng.randint(MERCHANT_DISCOUNT_MIN, MERCHANT_DISCOUNT_MAX)
            return TravelEncounter(
                kind=kind,
                message=f"A travelling merchant offers a {discount}% discount.",
                discount_percent=discount,
            )
        return TravelEncounter(kind=TravelEncounterKind.EVENT.value, message=rng.choice(TRAVEL_EVENT_MESSAGES))
