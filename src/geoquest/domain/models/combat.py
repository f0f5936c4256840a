from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from geoquest.domain.models.monster import MonsterInstance


class CombatOutcome(str, Enum):
    ONGOING = "ongoing"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"

    @property
    def is_terminal(self) -> bool:
        return self is not CombatOutcome.ONGOING


@dataclass(frozen=True)
class Combatant:
    """Flat stat view of either side of an exchange."""

    name: str
    level: int
    strength: int
    dexterity: int
    armor_class: int
    current_health: int
    max_health: int
    base_damage: int = 5
    damage_range: Optional[Tuple[int, int]] = None
    damage_modifier: Optional[int] = None


@dataclass(frozen=True)
class AttackResult:
    roll: int
    hit: bool
    critical: bool
    fumble: bool
    damage: int
    hit_chance: Optional[float] = None


@dataclass(frozen=True)
class ExchangeResult:
    exchange_no: int
    player_attack: AttackResult
    monster_attack: Optional[AttackResult]
    damage_dealt: int
    damage_taken: int
    player_health: int
    monster_health: int
    outcome: CombatOutcome


@dataclass(frozen=True)
class FleeResult:
    success: bool
    chance: float
    roll: float
    damage_taken: int
    player_health: int
    outcome: CombatOutcome


@dataclass
class CombatState:
    encounter_id: str
    character_id: Optional[int]
    attacker: Combatant
    defender: MonsterInstance
    log: List[ExchangeResult] = field(default_factory=list)
    outcome: CombatOutcome = CombatOutcome.ONGOING
    source_poi_id: Optional[str] = None
    turns: int = 0

    @property
    def exchange_count(self) -> int:
        return len(self.log)
