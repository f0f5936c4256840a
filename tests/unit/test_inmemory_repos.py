import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.domain.models.character import Character
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.models.world import PoiInteraction
from geoquest.infrastructure.catalog_data import DEFAULT_ITEMS, DEFAULT_MONSTERS
from geoquest.infrastructure.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryItemRepository,
    InMemoryMonsterRepository,
    InMemoryPoiInteractionRepository,
)


class InMemoryCharacterRepositoryTests(unittest.TestCase):
    def test_create_assigns_increasing_ids(self) -> None:
        repo = InMemoryCharacterRepository()
        first = repo.create(Character(id=None, name="Ari"))
        second = repo.create(Character(id=None, name="Bo"))
        self.assertEqual((1, 2), (first.id, second.id))
        self.assertEqual(["Ari", "Bo"], [c.name for c in repo.list_all()])

    def test_ids_continue_after_seeded_characters(self) -> None:
        repo = InMemoryCharacterRepository({7: Character(id=7, name="Seven")})
        self.assertEqual(8, repo.create(Character(id=None, name="Eight")).id)

    def test_reads_return_copies(self) -> None:
        repo = InMemoryCharacterRepository()
        created = repo.create(Character(id=None, name="Ari"))
        loaded = repo.get(created.id)
        loaded.gold = 0
        loaded.inventory["wolf_pelt"] = 3
        self.assertEqual(100, repo.get(created.id).gold)
        self.assertEqual({}, repo.get(created.id).inventory)

    def test_missing_character_is_none(self) -> None:
        self.assertIsNone(InMemoryCharacterRepository().get(404))

    def test_save_requires_an_id(self) -> None:
        with self.assertRaises(ValueError):
            InMemoryCharacterRepository().save(Character(id=None, name="Ari"))


class InMemoryCatalogRepositoryTests(unittest.TestCase):
    def test_defaults_to_bundled_catalog(self) -> None:
        self.assertEqual(len(DEFAULT_MONSTERS), len(InMemoryMonsterRepository().list_all()))
        self.assertEqual(len(DEFAULT_ITEMS), len(InMemoryItemRepository().list_all()))
        self.assertEqual("Goblin", InMemoryMonsterRepository().get("goblin").name)

    def test_listing_is_sorted_by_id(self) -> None:
        ids = [monster.id for monster in InMemoryMonsterRepository().list_all()]
        self.assertEqual(sorted(ids), ids)

    def test_custom_roster(self) -> None:
        repo = InMemoryMonsterRepository([MonsterTemplate(id="dummy", name="Dummy")])
        self.assertEqual(["dummy"], [m.id for m in repo.list_all()])
        self.assertIsNone(repo.get("goblin"))

    def test_empty_roster_is_respected(self) -> None:
        self.assertEqual([], InMemoryItemRepository([]).list_all())


class InMemoryPoiInteractionRepositoryTests(unittest.TestCase):
    def test_later_interaction_replaces_earlier(self) -> None:
        repo = InMemoryPoiInteractionRepository()
        repo.record(PoiInteraction(1, "poi-a", "monster", "defeated", can_respawn=True))
        repo.record(PoiInteraction(1, "poi-a", "monster", "defeated", can_respawn=False))
        self.assertFalse(repo.get(1, "poi-a").can_respawn)
        self.assertEqual(1, len(repo.list_for_character(1)))

    def test_interactions_are_scoped_per_character(self) -> None:
        repo = InMemoryPoiInteractionRepository()
        repo.record(PoiInteraction(1, "poi-a", "treasure", "collected"))
        repo.record(PoiInteraction(2, "poi-a", "treasure", "collected"))
        repo.record(PoiInteraction(1, "poi-b", "shop", "visited"))
        self.assertEqual(["poi-a", "poi-b"], [r.poi_id for r in repo.list_for_character(1)])
        self.assertIsNone(repo.get(3, "poi-a"))


if __name__ == "__main__":
    unittest.main()
