from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from geoquest.domain.errors import ValidationError
from geoquest.domain.models.loot import LootEntry


class Tier(str, Enum):
    COMMON = "common"
    ELITE = "elite"
    BOSS = "boss"
    LEGENDARY = "legendary"

    @classmethod
    def normalize(cls, value: "str | Tier | None") -> "Tier":
        if isinstance(value, Tier):
            return value
        raw = str(value or cls.COMMON.value).strip().lower()
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Unknown tier: {value!r}") from None


@dataclass(frozen=True)
class TierProfile:
    health_multiplier: float
    damage_multiplier: float
    reward_multiplier: float
    loot_bonus: float


TIER_PROFILES: Dict[Tier, TierProfile] = {
    Tier.COMMON: TierProfile(1.0, 1.0, 1.0, 0.0),
    Tier.ELITE: TierProfile(2.0, 1.5, 2.0, 0.1),
    Tier.BOSS: TierProfile(5.0, 2.0, 5.0, 0.2),
    Tier.LEGENDARY: TierProfile(10.0, 3.0, 10.0, 0.3),
}


def tier_profile(tier: "str | Tier") -> TierProfile:
    return TIER_PROFILES[Tier.normalize(tier)]


@dataclass(frozen=True)
class MonsterTemplate:
    id: str
    name: str
    monster_type: str = "beast"
    tier: str = Tier.COMMON.value
    base_level: int = 1
    health: int = 10
    damage: int = 3
    armor: int = 0
    loot_table: Tuple[LootEntry, ...] = ()
    experience_reward: int = 10
    gold_reward: int = 5
    biome: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class ScaledStats:
    health: int
    damage: int
    armor: int
    level: int


@dataclass
class MonsterInstance:
    template_id: str
    name: str
    tier: str
    level: int
    max_health: int
    current_health: int
    damage: int
    armor: int
    experience_reward: int = 0
    gold_reward: int = 0
    loot_table: Tuple[LootEntry, ...] = field(default_factory=tuple)

    @property
    def is_defeated(self) -> bool:
        return self.current_health <= 0
