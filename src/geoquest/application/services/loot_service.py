from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from geoquest.domain.errors import InsufficientResourceError, ValidationError
from geoquest.domain.models.loot import ItemTemplate, LootAward, LootEntry
from geoquest.domain.models.monster import Tier, tier_profile

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "Unknown Item"


class LootService:
    def __init__(self, item_lookup: Optional[Callable[[str], Optional[ItemTemplate]]] = None) -> None:
        self._item_lookup = item_lookup

    def drop_probability(self, entry: LootEntry, tier: "str | Tier") -> float:
        return min(1.0, float(entry.drop_chance) + tier_profile(tier).loot_bonus)

    def resolve(
        self,
        loot_table: Iterable[LootEntry],
        tier: "str | Tier",
        rng,
        item_lookup: Optional[Callable[[str], Optional[ItemTemplate]]] = None,
    ) -> List[LootAward]:
        lookup = item_lookup or self._item_lookup
        awards: List[LootAward] = []
        for entry in loot_table:
            if rng.random() >= self.drop_probability(entry, tier):
                continue
            awards.append(LootAward(item_id=entry.item_id, quantity=1, item_name=self._item_name(entry.item_id, lookup)))
        return awards

    @staticmethod
    def _item_name(item_id: str, lookup) -> str:
        template = lookup(item_id) if lookup is not None else None
        if template is None:
            logger.warning("Loot table references an item missing from the catalog", extra={"item_id": item_id})
            return UNKNOWN_ITEM_NAME
        return template.name

    @staticmethod
    def add_items(inventory: Dict[str, int], item_id: str, quantity: int = 1) -> int:
        if int(quantity) < 1:
            raise ValidationError(f"Quantity must be at least 1, got {quantity}")
        inventory[item_id] = inventory.get(item_id, 0) + int(quantity)
        return inventory[item_id]

    @staticmethod
    def remove_item(inventory: Dict[str, int], item_id: str, quantity: int = 1) -> int:
        if int(quantity) < 1:
            raise ValidationError(f"Quantity must be at least 1, got {quantity}")
        held = inventory.get(item_id, 0)
        if held < int(quantity):
            raise InsufficientResourceError(f"'{item_id}'", int(quantity), held)
        remaining = held - int(quantity)
        if remaining:
            inventory[item_id] = remaining
        else:
            inventory.pop(item_id, None)
        return remaining
