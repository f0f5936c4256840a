from __future__ import annotations

import copy
from typing import Dict, Iterable, List, Optional, Tuple

from geoquest.domain.models.character import Character
from geoquest.domain.models.loot import ItemTemplate
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.models.world import PoiInteraction
from geoquest.domain.repositories import (
    CharacterRepository,
    ItemRepository,
    MonsterRepository,
    PoiInteractionRepository,
)
from geoquest.infrastructure.catalog_data import DEFAULT_ITEMS, DEFAULT_MONSTERS


class InMemoryCharacterRepository(CharacterRepository):
    def __init__(self, characters: Optional[Dict[int, Character]] = None) -> None:
        self._characters: Dict[int, Character] = dict(characters or {})
        self._next_id = max(self._characters, default=0) + 1

    def get(self, character_id: int) -> Optional[Character]:
        stored = self._characters.get(int(character_id))
        return copy.deepcopy(stored) if stored is not None else None

    def list_all(self) -> List[Character]:
        return [copy.deepcopy(self._characters[key]) for key in sorted(self._characters)]

    def save(self, character: Character) -> None:
        if character.id is None:
            raise ValueError("Cannot save a character without an id; use create()")
        self._characters[int(character.id)] = copy.deepcopy(character)
        self._next_id = max(self._next_id, int(character.id) + 1)

    def create(self, character: Character) -> Character:
        created = copy.deepcopy(character)
        created.id = self._next_id
        self._next_id += 1
        self._characters[created.id] = created
        return copy.deepcopy(created)


class InMemoryMonsterRepository(MonsterRepository):
    def __init__(self, monsters: Optional[Iterable[MonsterTemplate]] = None) -> None:
        source = DEFAULT_MONSTERS if monsters is None else monsters
        self._monsters: Dict[str, MonsterTemplate] = {monster.id: monster for monster in source}

    def get(self, monster_id: str) -> Optional[MonsterTemplate]:
        return self._monsters.get(str(monster_id))

    def list_all(self) -> List[MonsterTemplate]:
        return [self._monsters[key] for key in sorted(self._monsters)]


class InMemoryItemRepository(ItemRepository):
    def __init__(self, items: Optional[Iterable[ItemTemplate]] = None) -> None:
        source = DEFAULT_ITEMS if items is None else items
        self._items: Dict[str, ItemTemplate] = {item.id: item for item in source}

    def get(self, item_id: str) -> Optional[ItemTemplate]:
        return self._items.get(str(item_id))

    def list_all(self) -> List[ItemTemplate]:
        return [self._items[key] for key in sorted(self._items)]


class InMemoryPoiInteractionRepository(PoiInteractionRepository):
    def __init__(self) -> None:
        self._records: Dict[Tuple[int, str], PoiInteraction] = {}

    def record(self, interaction: PoiInteraction) -> None:
        # One row per (character, poi); a later interaction replaces the earlier one.
        self._records[(int(interaction.character_id), str(interaction.poi_id))] = copy.deepcopy(interaction)

    def get(self, character_id: int, poi_id: str) -> Optional[PoiInteraction]:
        stored = self._records.get((int(character_id), str(poi_id)))
        return copy.deepcopy(stored) if stored is not None else None

    def list_for_character(self, character_id: int) -> List[PoiInteraction]:
        return [
            copy.deepcopy(record)
            for (owner, _poi_id), record in sorted(self._records.items())
            if owner == int(character_id)
        ]
