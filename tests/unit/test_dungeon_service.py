import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.application.services.dungeon_service import DungeonService, floor_size
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.dungeon import (
    DungeonFloor,
    DungeonRoom,
    DungeonRun,
    RoomContent,
    RoomType,
)


def _hand_built_run() -> DungeonRun:
    """3x3 floor: entrance top-middle, treasure left, trap right, monster below, boss bottom-middle."""
    layout = {
        (1, 0): DungeonRoom(1, 0, RoomType.ENTRANCE.value, explored=True),
        (0, 0): DungeonRoom(0, 0, RoomType.TREASURE.value, content=RoomContent(name="Treasure Chest", gold=40)),
        (2, 0): DungeonRoom(2, 0, RoomType.TRAP.value, content=RoomContent(name="Trap", trap_damage=9)),
        (1, 1): DungeonRoom(
            1, 1, RoomType.MONSTER.value, content=RoomContent(name="Slime", level=2, health=30, damage=8, armor=9)
        ),
        (1, 2): DungeonRoom(
            1,
            2,
            RoomType.BOSS.value,
            content=RoomContent(name="Stone Golem", level=8, health=150, damage=20, armor=11, level_requirement=1),
        ),
    }
    rooms = [[layout.get((x, y), DungeonRoom(x, y, RoomType.EMPTY.value)) for x in range(3)] for y in range(3)]
    floor = DungeonFloor(level=1, size=3, rooms=rooms, player_x=1, player_y=0, seed=5)
    return DungeonRun(seed=5, difficulty="normal", total_floors=1, floors={1: floor})


class FloorGenerationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = DungeonService()

    def test_floor_size_grows_every_other_level(self) -> None:
        self.assertEqual([5, 6, 6, 7, 7], [floor_size(level) for level in range(1, 6)])

    def test_first_floor_layout(self) -> None:
        floor = self.service.generate_floor(1, 3, "normal", 42)
        self.assertEqual(5, floor.size)
        self.assertEqual((2, 0), (floor.player_x, floor.player_y))
        self.assertEqual(RoomType.ENTRANCE.value, floor.room_at(2, 0).room_type)
        self.assertTrue(floor.room_at(2, 0).explored)
        self.assertEqual(RoomType.STAIRS_DOWN.value, floor.room_at(2, 4).room_type)
        self.assertIsNone(floor.find_room(RoomType.BOSS))

    def test_last_floor_holds_the_boss(self) -> None:
        floor = self.service.generate_floor(4, 4, "hard", 42)
        self.assertEqual(7, floor.size)
        self.assertEqual(RoomType.STAIRS_UP.value, floor.room_at(3, 0).room_type)
        boss = floor.room_at(3, 6)
        self.assertEqual(RoomType.BOSS.value, boss.room_type)
        self.assertEqual(17, boss.content.level)
        self.assertEqual(450, boss.content.health)
        self.assertEqual(52, boss.content.damage)
        self.assertEqual(14, boss.content.armor)
        self.assertEqual(4, boss.content.level_requirement)

    def test_single_floor_dungeon_starts_beside_its_boss(self) -> None:
        floor = self.service.generate_floor(1, 1, "easy", 7)
        self.assertEqual(RoomType.ENTRANCE.value, floor.room_at(2, 0).room_type)
        self.assertEqual(RoomType.BOSS.value, floor.room_at(2, 4).room_type)

    def test_floors_are_reproducible(self) -> None:
        self.assertEqual(
            self.service.generate_floor(2, 3, "normal", 1234),
            DungeonService().generate_floor(2, 3, "normal", 1234),
        )

    def test_different_seeds_differ(self) -> None:
        layouts = set()
        for seed in range(5):
            floor = self.service.generate_floor(3, 3, "normal", seed)
            layouts.add(tuple(room.room_type for row in floor.rooms for room in row))
        self.assertGreater(len(layouts), 1)

    def test_room_contents_scale_with_difficulty(self) -> None:
        floor = self.service.generate_floor(2, 3, "nightmare", 99)
        for row in floor.rooms:
            for room in row:
                if room.room_type == RoomType.MONSTER.value:
                    self.assertEqual(80, room.content.health)
                    self.assertEqual(22, room.content.damage)
                    self.assertEqual(10, room.content.armor)
                    self.assertTrue(2 <= room.content.level <= 4)
                elif room.room_type == RoomType.TREASURE.value:
                    self.assertEqual(80, room.content.gold)
                elif room.room_type == RoomType.TRAP.value:
                    self.assertEqual(30, room.content.trap_damage)

    def test_floor_outside_dungeon_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.generate_floor(4, 3, "normal", 1)
        with self.assertRaises(ValidationError):
            self.service.generate_floor(1, 0, "normal", 1)
        with self.assertRaises(ValidationError):
            self.service.generate_floor(1, 1, "impossible", 1)

    def test_view_masks_unexplored_rooms(self) -> None:
        floor = self.service.generate_floor(1, 2, "normal", 3)
        view = floor.view()
        self.assertEqual(RoomType.ENTRANCE.value, view.room_at(2, 0).room_type)
        for row in view.rooms:
            for room in row:
                if (room.x, room.y) != (2, 0):
                    self.assertEqual(RoomType.UNKNOWN.value, room.room_type)
                    self.assertIsNone(room.content)
        self.assertEqual(RoomType.STAIRS_DOWN.value, floor.room_at(2, 4).room_type)


class MovementTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = DungeonService()
        self.run = _hand_built_run()

    def test_only_orthogonal_single_steps(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.move(self.run, 1, 1)
        with self.assertRaises(ValidationError):
            self.service.move(self.run, 0, 2)

    def test_walls_stop_movement(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.move(self.run, 0, -1)
        self.assertEqual((1, 0), (self.run.floor.player_x, self.run.floor.player_y))

    def test_treasure_is_collected_once(self) -> None:
        entry = self.service.move(self.run, -1, 0)
        self.assertEqual(("treasure", 40), (entry.event, entry.gold))
        self.assertEqual(40, self.run.gold_collected)
        self.assertTrue(self.run.floor.room_at(0, 0).explored)
        self.service.move(self.run, 1, 0)
        again = self.service.move(self.run, -1, 0)
        self.assertEqual("none", again.event)
        self.assertEqual(40, self.run.gold_collected)

    def test_trap_springs_once(self) -> None:
        entry = self.service.move(self.run, 1, 0)
        self.assertEqual(("trap", 9), (entry.event, entry.trap_damage))
        self.assertEqual(RoomType.EMPTY.value, self.run.floor.room_at(2, 0).room_type)

    def test_occupied_room_blocks_until_defeated(self) -> None:
        entry = self.service.move(self.run, 0, 1)
        self.assertEqual("encounter", entry.event)
        self.assertEqual("Slime", entry.occupant.name)
        with self.assertRaises(ValidationError):
            self.service.move(self.run, 0, -1)

        monster = self.service.occupant_instance(self.run)
        self.assertEqual(("Slime", "common", 2, 30, 8, 9), (
            monster.name, monster.tier, monster.level, monster.max_health, monster.damage, monster.armor
        ))
        self.service.defeat_occupant(self.run)
        self.assertEqual(1, self.run.kills)
        self.assertFalse(self.run.cleared)
        self.assertEqual("stairs", self.service.move(self.run, 0, -1).event)

    def test_nothing_to_fight_in_an_empty_room(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.occupant_instance(self.run)
        with self.assertRaises(ValidationError):
            self.service.defeat_occupant(self.run)

    def test_boss_defeat_clears_the_run(self) -> None:
        self.service.move(self.run, 0, 1)
        self.service.defeat_occupant(self.run)
        self.service.move(self.run, 0, 1)
        self.assertEqual("boss", self.service.occupant_instance(self.run).tier)
        self.service.defeat_occupant(self.run)
        self.assertTrue(self.run.cleared)
        self.assertEqual(8, self.run.boss_level)

    def test_boss_defeat_clears_regardless_of_tagged_requirement(self) -> None:
        self.run.floor.room_at(1, 2).content.level_requirement = 5
        self.service.move(self.run, 0, 1)
        self.service.defeat_occupant(self.run)
        self.service.move(self.run, 0, 1)
        self.service.defeat_occupant(self.run)
        self.assertTrue(self.run.cleared)

    def test_completion_rewards(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.completion_rewards(self.run)
        self.run.boss_defeated = True
        self.run.boss_level = 11
        self.run.gold_collected = 30
        self.run.kills = 3
        self.run.total_floors = 2
        self.assertEqual((580, 275), self.service.completion_rewards(self.run))


class FloorChangeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = DungeonService()
        self.run = self.service.start_run(77, "Normal", 2, character_id=1, name="Lost Mine")

    def test_run_starts_on_first_floor(self) -> None:
        self.assertEqual("normal", self.run.difficulty)
        self.assertEqual(1, self.run.current_floor)
        self.assertEqual([1], list(self.run.floors))

    def test_entrance_is_not_a_staircase(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.change_floor(self.run)

    def test_descend_and_climb_back(self) -> None:
        first = self.run.floor
        first.player_x, first.player_y = 2, 4
        lower = self.service.change_floor(self.run)
        self.assertEqual(2, self.run.current_floor)
        self.assertEqual((3, 0), (lower.player_x, lower.player_y))
        self.assertEqual(RoomType.STAIRS_UP.value, lower.current_room.room_type)
        self.assertEqual(RoomType.BOSS.value, lower.room_at(3, 5).room_type)

        upper = self.service.change_floor(self.run)
        self.assertIs(first, upper)
        self.assertEqual(1, self.run.current_floor)
        self.assertEqual((2, 4), (upper.player_x, upper.player_y))


if __name__ == "__main__":
    unittest.main()
