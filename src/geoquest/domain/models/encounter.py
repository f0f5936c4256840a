from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TravelEncounterKind(str, Enum):
    BATTLE = "battle"
    TREASURE = "treasure"
    TRAP = "trap"
    MERCHANT = "merchant"
    EVENT = "event"


@dataclass(frozen=True)
class TravelEncounter:
    kind: str
    message: str
    monster_id: Optional[str] = None
    tier: Optional[str] = None
    gold: int = 0
    experience: int = 0
    trap_name: Optional[str] = None
    damage: int = 0
    discount_percent: int = 0
