import sys
from datetime import datetime, timedelta
from pathlib import Path
import unittest
from unittest import mock

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.application.services.encounter_service import EncounterService
from geoquest.application.services.game_service import GameService
from geoquest.application.services.world_generation_service import WorldGenerationService
from geoquest.domain.errors import ValidationError
from geoquest.infrastructure.db.sql import atomic_persistence as sql_atomic
from geoquest.infrastructure.db.sql import repos as sql_repos
from geoquest.infrastructure.db.sql.schema import create_schema, seed_catalog


class SqlBackedGameServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite:///:memory:", future=True)
        with self.engine.begin() as conn:
            create_schema(conn)
            seed_catalog(conn)
        SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self.patchers = [
            mock.patch.object(sql_repos, "SessionLocal", SessionLocal),
            mock.patch.object(sql_atomic, "SessionLocal", SessionLocal),
        ]
        for patcher in self.patchers:
            patcher.start()
        self.now = [datetime(2026, 3, 1, 12, 0)]
        self.service = GameService(
            sql_repos.SqlCharacterRepository(),
            sql_repos.SqlMonsterRepository(),
            sql_repos.SqlItemRepository(),
            sql_repos.SqlPoiInteractionRepository(),
            world_service=WorldGenerationService(existence_probability=1.0, visible_tiles=6),
            atomic_state_persistor=sql_atomic.save_character_and_interactions_atomic,
            clock=lambda: self.now[0],
        )
        self.service.encounter_service = EncounterService(encounter_chance=0.0)

    def tearDown(self) -> None:
        for patcher in reversed(self.patchers):
            patcher.stop()
        self.engine.dispose()

    def test_treasure_collection_is_persisted(self) -> None:
        hero = self.service.create_character("Rin", "rogue")
        pois = self.service.explore(hero.id, 51.50075, -0.12475).pois
        chest = next(poi for poi in pois if poi.poi_type == "treasure")

        gold = self.service.collect_treasure(hero.id, chest.id)

        stored = self.service.character_repo.get(hero.id)
        self.assertEqual(100 + gold, stored.gold)
        self.assertEqual((51.50075, -0.12475), stored.position)
        self.assertEqual(1, stored.travel_steps)
        interaction = self.service.interaction_repo.get(hero.id, chest.id)
        self.assertEqual("collected", interaction.interaction_type)
        self.assertFalse(interaction.can_respawn)
        self.now[0] += timedelta(days=7)
        with self.assertRaises(ValidationError):
            self.service.collect_treasure(hero.id, chest.id)

    def test_monster_pois_reference_the_stored_catalog(self) -> None:
        hero = self.service.create_character("Rin", "warrior")
        self.service.explore(hero.id, 51.50075, -0.12475)
        known = {monster.id for monster in self.service.monster_repo.list_all()}
        lairs = [poi for poi in self.service.visible_pois(hero.id) if poi.poi_type == "monster"]
        self.assertTrue(lairs)
        for lair in lairs:
            self.assertIn(lair.payload["monster_id"], known)


if __name__ == "__main__":
    unittest.main()
