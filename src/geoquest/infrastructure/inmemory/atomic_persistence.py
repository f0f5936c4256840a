from __future__ import annotations

import copy
from collections.abc import Callable, Sequence

from geoquest.domain.models.character import Character
from geoquest.domain.models.world import PoiInteraction


def create_inmemory_atomic_persistor(character_repo, interaction_repo) -> Callable[..., None]:
    def _persist(
        character: Character,
        interactions: Sequence[PoiInteraction] | None = None,
    ) -> None:
        snapshot = {
            "characters": copy.deepcopy(getattr(character_repo, "_characters", {})),
            "records": copy.deepcopy(getattr(interaction_repo, "_records", {})),
        }
        try:
            character_repo.save(character)
            for interaction in interactions or ():
                interaction_repo.record(interaction)
        except Exception:
            if hasattr(character_repo, "_characters"):
                character_repo._characters = snapshot["characters"]
            if hasattr(interaction_repo, "_records"):
                interaction_repo._records = snapshot["records"]
            raise

    return _persist
