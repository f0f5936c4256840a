from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional

from geoquest.application.services.balance_tables import SHOP_CATALOGS, SHOP_POI_CATALOGS
from geoquest.application.services.seed_policy import derive_seed
from geoquest.domain.errors import InsufficientResourceError, ValidationError
from geoquest.domain.models.loot import ItemTemplate, ShopOffer
from geoquest.domain.models.world import PointOfInterest

logger = logging.getLogger(__name__)


def is_shop(poi: PointOfInterest) -> bool:
    return poi.poi_type in SHOP_POI_CATALOGS


class ShopService:
    """Stock lists and sales for shop, blacksmith and magic shop POIs.

    ``sold`` maps item id -> units already bought at one POI; remaining stock
    is the listed stock minus that count.
    """

    @staticmethod
    def catalog_for(poi: PointOfInterest) -> str:
        options = SHOP_POI_CATALOGS.get(poi.poi_type)
        if not options:
            raise ValidationError(f"{poi.name} sells nothing")
        if len(options) == 1:
            return options[0]
        return options[derive_seed("shop.catalog", {"poi_id": poi.id}) % len(options)]

    def stock_for(self, poi: PointOfInterest) -> Dict[str, int]:
        return dict(SHOP_CATALOGS[self.catalog_for(poi)])

    def offers(
        self,
        poi: PointOfInterest,
        item_lookup: Callable[[str], Optional[ItemTemplate]],
        sold: Mapping[str, int],
    ) -> List[ShopOffer]:
        offers: List[ShopOffer] = []
        for item_id, listed in self.stock_for(poi).items():
            item = item_lookup(item_id)
            if item is None:
                logger.warning("Shop lists an item missing from the catalog", extra={"item_id": item_id, "poi_id": poi.id})
                continue
            offers.append(
                ShopOffer(
                    item_id=item.id,
                    item_name=item.name,
                    price=int(item.value),
                    stock=max(0, listed - int(sold.get(item_id, 0))),
                )
            )
        return offers

    def sell(self, poi: PointOfInterest, item: ItemTemplate, quantity: int, sold: Dict[str, int]) -> int:
        """Record a sale in ``sold`` and return its total price."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(f"Quantity must be a whole number of at least 1, got {quantity!r}")
        stock = self.stock_for(poi)
        if item.id not in stock:
            raise ValidationError(f"{poi.name} does not sell {item.name}")
        remaining = stock[item.id] - int(sold.get(item.id, 0))
        if remaining < quantity:
            raise InsufficientResourceError(f"{item.name} stock", quantity, max(0, remaining))
        sold[item.id] = int(sold.get(item.id, 0)) + quantity
        return int(item.value) * quantity
