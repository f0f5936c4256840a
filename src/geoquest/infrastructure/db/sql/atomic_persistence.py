from __future__ import annotations

from collections.abc import Sequence

from geoquest.domain.models.character import Character
from geoquest.domain.models.world import PoiInteraction
from .connection import SessionLocal
from .repos import upsert_character, upsert_interaction


def save_character_and_interactions_atomic(
    character: Character,
    interactions: Sequence[PoiInteraction] | None = None,
) -> None:
    """Persist a character and its POI interactions in one DB transaction."""
    with SessionLocal.begin() as session:
        upsert_character(session, character)
        for interaction in interactions or ():
            upsert_interaction(session, interaction)
