from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from geoquest.domain.errors import ValidationError


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    SCROLL = "scroll"
    ACCESSORY = "accessory"
    MATERIAL = "material"
    QUEST = "quest"


@dataclass(frozen=True)
class LootEntry:
    item_id: str
    drop_chance: float

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.drop_chance) <= 1.0:
            raise ValidationError(f"Drop chance for {self.item_id!r} must be within [0, 1]")


@dataclass(frozen=True)
class LootAward:
    item_id: str
    quantity: int
    item_name: str


@dataclass(frozen=True)
class ItemTemplate:
    id: str
    name: str
    item_type: str = ItemType.MATERIAL.value
    rarity: str = "common"
    damage_min: Optional[int] = None
    damage_max: Optional[int] = None
    armor_bonus: Optional[int] = None
    heal_amount: Optional[int] = None
    mana_amount: Optional[int] = None
    value: int = 0
    description: str = ""

    @property
    def is_weapon(self) -> bool:
        return self.item_type == ItemType.WEAPON.value and self.damage_min is not None and self.damage_max is not None

    @property
    def is_armor(self) -> bool:
        return self.item_type == ItemType.ARMOR.value and self.armor_bonus is not None

    @property
    def is_consumable(self) -> bool:
        return self.item_type == ItemType.POTION.value


@dataclass(frozen=True)
class ShopOffer:
    item_id: str
    item_name: str
    price: int
    stock: int
