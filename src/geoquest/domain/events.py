from dataclasses import dataclass
from typing import Optional


@dataclass
class MonsterSlain:
    monster_id: str
    by_character_id: int
    monster_level: int
    tier: str
    poi_id: Optional[str] = None


@dataclass
class LevelUpAppliedEvent:
    character_id: int
    from_level: int
    to_level: int
    stat_points_gained: int


@dataclass
class LootAwardedEvent:
    character_id: int
    item_id: str
    quantity: int


@dataclass
class CharacterDiedEvent:
    character_id: int
    cause: str


@dataclass
class DungeonClearedEvent:
    character_id: int
    seed: int
    total_floors: int
    gold_reward: int
    experience_reward: int
