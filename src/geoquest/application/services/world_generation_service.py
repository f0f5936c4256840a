from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from geoquest.application.services.balance_tables import (
    DEFAULT_TIER,
    DUNGEON_MAX_FLOORS,
    POI_EXISTENCE_CHANCE,
    POI_FALLBACK_TYPE,
    POI_TILE_SIZE,
    POI_TYPE_THRESHOLDS,
    POI_VISIBLE_TILES,
    TIER_BANDS,
    TIER_DUNGEON_DIFFICULTY,
    TREASURE_GOLD_MIN,
    TREASURE_GOLD_SPREAD,
)
from geoquest.application.services.seed_policy import tile_index, tile_seed, validate_coordinates
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.world import PointOfInterest, PoiType, TIERED_POI_TYPES
from geoquest.domain.services.random_source import SeededRandom

logger = logging.getLogger(__name__)


POI_NAME_POOLS: Dict[str, tuple[str, ...]] = {
    "monster": ("Goblin", "Orc", "Skeleton", "Wild Wolf", "Bandit", "Kobold", "Giant Rat", "Zombie", "Giant Spider"),
    "npc": ("Traveler", "Guard", "Peasant", "Adventurer", "Sage", "Wandering Bard", "Travelling Merchant"),
    "shop": ("Smith's Shop", "Magic Emporium", "Apothecary", "Armorer", "Jeweler"),
    "treasure": ("Mysterious Chest", "Hidden Treasure", "Ancient Relic", "Abandoned Strongbox"),
    "dungeon": ("Dark Cave", "Ancient Crypt", "Abandoned Tower", "Ancient Ruins", "Lost Mine"),
    "quest": ("Call for Help", "Urgent Mission", "Hunting Contract", "Investigation"),
    "guild": ("Adventurers' Guild", "Order of Knights", "Mercenary League"),
    "castle": ("Baron's Castle", "Ancient Fortress", "Lord's Tower", "Citadel", "Haunted Castle", "Dragon's Lair"),
    "city": ("Waterdeep", "Baldur's Gate", "Neverwinter", "Silverymoon", "Luskan", "Athkatla", "Suzail"),
    "tavern": ("Golden Dragon Tavern", "Traveler's Inn", "The Lazy Pig", "The Full Tankard", "Moon Tavern"),
    "temple": ("Temple of Pelor", "Sanctuary of Tyr", "Chapel of Lathander", "Temple of Mystra", "Altar of Helm"),
    "blacksmith": ("Master's Forge", "Dwarven Smith", "Royal Armorer", "Forge of Legends"),
    "magic_shop": ("Arcane Emporium", "Wizard's Shop", "Scrolls & Potions", "Mystic Artifacts"),
}


def roll_poi_type(roll: float) -> str:
    for threshold, poi_type in POI_TYPE_THRESHOLDS:
        if roll < threshold:
            return poi_type
    return POI_FALLBACK_TYPE


def roll_tier(roll: float) -> str:
    for threshold, tier in TIER_BANDS:
        if roll > threshold:
            return tier
    return DEFAULT_TIER


def poi_id_for(tile_latitude: float, tile_longitude: float, poi_type: str) -> str:
    return f"poi-{tile_latitude:.6f}-{tile_longitude:.6f}-{poi_type}"


class WorldGenerationService:
    def __init__(
        self,
        tile_size: float = POI_TILE_SIZE,
        existence_probability: float = POI_EXISTENCE_CHANCE,
        visible_tiles: int = POI_VISIBLE_TILES,
        world_seed: int = 0,
        rng_factory: Callable[[int], SeededRandom] | None = None,
    ) -> None:
        if tile_size <= 0 or not math.isfinite(tile_size):
            raise ValidationError("Tile size must be a positive number")
        if not 0.0 <= existence_probability <= 1.0:
            raise ValidationError("Existence probability must be within [0, 1]")
        if visible_tiles < 0:
            raise ValidationError("Visibility radius cannot be negative")
        self.tile_size = float(tile_size)
        self.existence_probability = float(existence_probability)
        self.visible_tiles = int(visible_tiles)
        self.world_seed = int(world_seed)
        self._rng_factory = rng_factory or SeededRandom

    def tile_of(self, latitude: float, longitude: float) -> tuple[int, int]:
        validate_coordinates(latitude, longitude)
        return tile_index(latitude, self.tile_size), tile_index(longitude, self.tile_size)

    def generate_tile(
        self,
        lat_index: int,
        lng_index: int,
        monster_ids: Sequence[str] = (),
    ) -> Optional[PointOfInterest]:
        rng = self._rng_factory(tile_seed(lat_index, lng_index, self.world_seed))
        if rng.random() >= self.existence_probability:
            return None

        poi_type = roll_poi_type(rng.random())
        name = rng.choice(POI_NAME_POOLS[poi_type])
        tier: Optional[str] = None
        if PoiType(poi_type) in TIERED_POI_TYPES:
            tier = roll_tier(rng.random())

        payload: Dict[str, object] = {}
        if poi_type == PoiType.MONSTER.value and monster_ids:
            payload["monster_id"] = rng.choice(sorted(monster_ids))
        elif poi_type == PoiType.TREASURE.value:
            payload["gold"] = math.floor(rng.random() * TREASURE_GOLD_SPREAD) + TREASURE_GOLD_MIN
        elif poi_type in (PoiType.DUNGEON.value, PoiType.CASTLE.value):
            payload["difficulty"] = TIER_DUNGEON_DIFFICULTY[tier or DEFAULT_TIER]
            payload["total_floors"] = rng.randint(1, DUNGEON_MAX_FLOORS)

        tile_latitude = lat_index * self.tile_size
        tile_longitude = lng_index * self.tile_size
        return PointOfInterest(
            id=poi_id_for(tile_latitude, tile_longitude, poi_type),
            poi_type=poi_type,
            name=name,
            latitude=tile_latitude + self.tile_size / 2,
            longitude=tile_longitude + self.tile_size / 2,
            tier=tier,
            payload=payload,
        )

    def generate_pois(
        self,
        latitude: float,
        longitude: float,
        radius: Optional[int] = None,
        monster_ids: Sequence[str] = (),
    ) -> List[PointOfInterest]:
        """All POIs in the (2R+1)^2 window around the tile holding the given position.

        Each tile is seeded from its absolute grid indices, so a POI keeps its
        id, name and payload no matter where the window is centred.
        """
        window = self.visible_tiles if radius is None else int(radius)
        if window < 0:
            raise ValidationError("Visibility radius cannot be negative")
        center_lat, center_lng = self.tile_of(latitude, longitude)
        pois: List[PointOfInterest] = []
        for i in range(-window, window + 1):
            for j in range(-window, window + 1):
                poi = self.generate_tile(center_lat + i, center_lng + j, monster_ids)
                if poi is not None:
                    pois.append(poi)
        logger.debug(
            "Generated POI window",
            extra={"center_lat_index": center_lat, "center_lng_index": center_lng, "radius": window, "count": len(pois)},
        )
        return pois


def filter_interactable(
    pois: Iterable[PointOfInterest],
    can_interact: Callable[[PointOfInterest], bool],
) -> List[PointOfInterest]:
    return [poi for poi in pois if can_interact(poi)]
