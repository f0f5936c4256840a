from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from geoquest.domain.models.character import Character
from geoquest.domain.models.loot import ItemTemplate
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.models.world import PoiInteraction


class CharacterRepository(ABC):
    @abstractmethod
    def get(self, character_id: int) -> Optional[Character]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[Character]:
        raise NotImplementedError

    @abstractmethod
    def save(self, character: Character) -> None:
        raise NotImplementedError

    @abstractmethod
    def create(self, character: Character) -> Character:
        raise NotImplementedError


class MonsterRepository(ABC):
    @abstractmethod
    def get(self, monster_id: str) -> Optional[MonsterTemplate]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[MonsterTemplate]:
        raise NotImplementedError


class ItemRepository(ABC):
    @abstractmethod
    def get(self, item_id: str) -> Optional[ItemTemplate]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[ItemTemplate]:
        raise NotImplementedError


class PoiInteractionRepository(ABC):
    @abstractmethod
    def record(self, interaction: PoiInteraction) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, character_id: int, poi_id: str) -> Optional[PoiInteraction]:
        raise NotImplementedError

    @abstractmethod
    def list_for_character(self, character_id: int) -> List[PoiInteraction]:
        raise NotImplementedError

    def can_interact(self, character_id: int, poi_id: str, now: datetime) -> bool:
        existing = self.get(character_id, poi_id)
        if existing is None:
            return True
        return existing.allows_interaction(now)
