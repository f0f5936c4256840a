from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from geoquest.domain.errors import ValidationError


class PoiType(str, Enum):
    MONSTER = "monster"
    TREASURE = "treasure"
    SHOP = "shop"
    NPC = "npc"
    DUNGEON = "dungeon"
    GUILD = "guild"
    CASTLE = "castle"
    CITY = "city"
    TAVERN = "tavern"
    TEMPLE = "temple"
    BLACKSMITH = "blacksmith"
    MAGIC_SHOP = "magic_shop"
    QUEST = "quest"


TIERED_POI_TYPES = frozenset({PoiType.MONSTER, PoiType.DUNGEON, PoiType.CASTLE})


class InteractionType(str, Enum):
    DEFEATED = "defeated"
    COLLECTED = "collected"
    VISITED = "visited"
    COMPLETED = "completed"
    PURCHASED = "purchased"

    @classmethod
    def normalize(cls, value: "str | InteractionType") -> "InteractionType":
        if isinstance(value, InteractionType):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown interaction type: {value!r}") from None


@dataclass(frozen=True)
class PointOfInterest:
    id: str
    poi_type: str
    name: str
    latitude: float
    longitude: float
    tier: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PoiInteraction:
    character_id: int
    poi_id: str
    poi_type: str
    interaction_type: str
    latitude: float = 0.0
    longitude: float = 0.0
    can_respawn: bool = False
    respawn_at: Optional[datetime] = None
    interacted_at: Optional[datetime] = None

    def allows_interaction(self, now: datetime) -> bool:
        if not self.can_respawn:
            return False
        if self.respawn_at is None:
            return True
        return now >= self.respawn_at
