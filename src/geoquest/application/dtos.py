from dataclasses import dataclass, field
from typing import List, Optional

from geoquest.domain.models.combat import ExchangeResult, FleeResult
from geoquest.domain.models.dungeon import DungeonFloor, RoomEntry
from geoquest.domain.models.encounter import TravelEncounter
from geoquest.domain.models.loot import LootAward
from geoquest.domain.models.monster import MonsterInstance
from geoquest.domain.models.progression import LevelUpOutcome
from geoquest.domain.models.world import PointOfInterest


@dataclass
class CharacterSummaryView:
    id: int
    name: str
    character_class: str
    level: int
    alive: bool


@dataclass
class ExploreResult:
    latitude: float
    longitude: float
    pois: List[PointOfInterest] = field(default_factory=list)
    encounter: Optional[TravelEncounter] = None
    messages: List[str] = field(default_factory=list)


@dataclass
class EncounterView:
    encounter_id: str
    monster: MonsterInstance
    hit_chance: float
    flee_chance: float


@dataclass
class RewardSummary:
    experience: int = 0
    gold: int = 0
    loot: List[LootAward] = field(default_factory=list)
    level_up: Optional[LevelUpOutcome] = None


@dataclass
class AttackView:
    exchange: ExchangeResult
    rewards: Optional[RewardSummary] = None
    messages: List[str] = field(default_factory=list)


@dataclass
class FleeView:
    result: FleeResult
    messages: List[str] = field(default_factory=list)


@dataclass
class DungeonView:
    name: str
    difficulty: str
    current_floor: int
    total_floors: int
    floor: DungeonFloor
    health: int
    gold_collected: int
    kills: int
    cleared: bool
    last_entry: Optional[RoomEntry] = None
    messages: List[str] = field(default_factory=list)


@dataclass
class PurchaseReceipt:
    item_id: str
    item_name: str
    quantity: int
    total_price: int
    gold_remaining: int
    stock_remaining: int
