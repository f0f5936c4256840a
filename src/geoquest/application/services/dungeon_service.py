from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional

from geoquest.application.services.balance_tables import (
    DUNGEON_BASE_SIZE,
    DUNGEON_BOSS_GOLD_PER_LEVEL,
    DUNGEON_MONSTER_THRESHOLD,
    DUNGEON_TRAP_THRESHOLD,
    DUNGEON_TREASURE_THRESHOLD,
    DUNGEON_XP_PER_FLOOR,
    DUNGEON_XP_PER_KILL,
)
from geoquest.application.services.seed_policy import derive_seed
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.dungeon import (
    Difficulty,
    DungeonFloor,
    DungeonRoom,
    DungeonRun,
    RoomContent,
    RoomEntry,
    RoomType,
)
from geoquest.domain.models.monster import MonsterInstance, Tier
from geoquest.domain.services.random_source import SeededRandom

logger = logging.getLogger(__name__)

DUNGEON_MONSTER_NAMES = ("Goblin", "Skeleton", "Orc", "Slime", "Shadow Wolf", "Zombie", "Giant Spider", "Kobold")
DUNGEON_BOSS_NAMES = ("Lesser Dragon", "Ancient Lich", "Stone Golem", "Shadow Demon", "Venomous Hydra")

_STEPS = {(0, -1), (0, 1), (-1, 0), (1, 0)}


def floor_size(level: int) -> int:
    return DUNGEON_BASE_SIZE + int(level) // 2


class DungeonService:
    def __init__(self, rng_factory: Callable[[int], SeededRandom] | None = None) -> None:
        self._rng_factory = rng_factory or SeededRandom

    def generate_floor(self, level: int, total_floors: int, difficulty: "str | Difficulty", seed: int) -> DungeonFloor:
        if total_floors < 1:
            raise ValidationError("A dungeon needs at least one floor")
        if not 1 <= level <= total_floors:
            raise ValidationError(f"Floor {level} is outside 1..{total_floors}")
        mult = Difficulty.normalize(difficulty).multiplier
        rng = self._rng_factory(derive_seed("dungeon.floor", {"seed": int(seed), "level": int(level)}))
        size = floor_size(level)
        mid = size // 2

        rooms: List[List[DungeonRoom]] = []
        for y in range(size):
            row: List[DungeonRoom] = []
            for x in range(size):
                if y == 0 and x == mid:
                    room_type = RoomType.ENTRANCE if level == 1 else RoomType.STAIRS_UP
                    room = DungeonRoom(x=x, y=y, room_type=room_type.value, explored=True)
                elif y == size - 1 and x == mid:
                    if level < total_floors:
                        room = DungeonRoom(x=x, y=y, room_type=RoomType.STAIRS_DOWN.value)
                    else:
                        room = DungeonRoom(x=x, y=y, room_type=RoomType.BOSS.value, content=self._boss(level, mult, rng))
                else:
                    room = self._roll_room(x, y, level, mult, rng)
                row.append(room)
            rooms.append(row)

        return DungeonFloor(level=level, size=size, rooms=rooms, player_x=mid, player_y=0, seed=int(seed))

    @staticmethod
    def _boss(level: int, mult: float, rng) -> RoomContent:
        return RoomContent(
            name=rng.choice(DUNGEON_BOSS_NAMES),
            level=level * 3 + 5,
            health=math.floor((100 + level * 50) * mult),
            damage=math.floor((15 + level * 5) * mult),
            armor=10 + level,
            level_requirement=level,
        )

    @staticmethod
    def _roll_room(x: int, y: int, level: int, mult: float, rng) -> DungeonRoom:
        roll = rng.random()
        if roll < DUNGEON_MONSTER_THRESHOLD:
            content = RoomContent(
                name=rng.choice(DUNGEON_MONSTER_NAMES),
                level=level + rng.randint(0, 2),
                health=math.floor((20 + level * 10) * mult),
                damage=math.floor((5 + level * 3) * mult),
                armor=8 + level,
            )
            return DungeonRoom(x=x, y=y, room_type=RoomType.MONSTER.value, content=content)
        if roll < DUNGEON_TREASURE_THRESHOLD:
            content = RoomContent(name="Treasure Chest", gold=math.floor((10 + level * 15) * mult))
            return DungeonRoom(x=x, y=y, room_type=RoomType.TREASURE.value, content=content)
        if roll < DUNGEON_TRAP_THRESHOLD:
            content = RoomContent(name="Trap", trap_damage=math.floor((5 + level * 5) * mult))
            return DungeonRoom(x=x, y=y, room_type=RoomType.TRAP.value, content=content)
        return DungeonRoom(x=x, y=y, room_type=RoomType.EMPTY.value)

    def start_run(
        self,
        seed: int,
        difficulty: "str | Difficulty",
        total_floors: int,
        character_id: Optional[int] = None,
        name: str = "Dungeon",
        poi_id: Optional[str] = None,
    ) -> DungeonRun:
        resolved = Difficulty.normalize(difficulty)
        run = DungeonRun(
            seed=int(seed),
            difficulty=resolved.value,
            total_floors=int(total_floors),
            character_id=character_id,
            name=name,
            poi_id=poi_id,
        )
        run.floors[1] = self.generate_floor(1, run.total_floors, resolved, run.seed)
        return run

    @staticmethod
    def live_occupant(room: DungeonRoom) -> Optional[RoomContent]:
        if room.room_type not in (RoomType.MONSTER.value, RoomType.BOSS.value):
            return None
        if room.content is None or room.content.cleared:
            return None
        return room.content

    def move(self, run: DungeonRun, dx: int, dy: int) -> RoomEntry:
        if (int(dx), int(dy)) not in _STEPS:
            raise ValidationError("Dungeon movement is limited to one step north, south, east or west")
        floor = run.floor
        if self.live_occupant(floor.current_room) is not None:
            raise ValidationError("Cannot leave a room while its occupant is still standing")
        new_x = floor.player_x + int(dx)
        new_y = floor.player_y + int(dy)
        room = floor.room_at(new_x, new_y)
        room.explored = True
        floor.player_x, floor.player_y = new_x, new_y
        return self._enter(run, room)

    def _enter(self, run: DungeonRun, room: DungeonRoom) -> RoomEntry:
        occupant = self.live_occupant(room)
        if occupant is not None:
            return RoomEntry(x=room.x, y=room.y, room_type=room.room_type, event="encounter", occupant=occupant)

        if room.room_type == RoomType.TREASURE.value and room.content is not None and not room.content.cleared:
            gold = int(room.content.gold or 0)
            room.content.cleared = True
            room.room_type = RoomType.EMPTY.value
            run.gold_collected += gold
            return RoomEntry(x=room.x, y=room.y, room_type=RoomType.TREASURE.value, event="treasure", gold=gold)

        if room.room_type == RoomType.TRAP.value and room.content is not None and not room.content.cleared:
            damage = int(room.content.trap_damage or 0)
            room.content.cleared = True
            room.room_type = RoomType.EMPTY.value
            return RoomEntry(x=room.x, y=room.y, room_type=RoomType.TRAP.value, event="trap", trap_damage=damage)

        if room.room_type in (RoomType.STAIRS_DOWN.value, RoomType.STAIRS_UP.value, RoomType.ENTRANCE.value):
            return RoomEntry(x=room.x, y=room.y, room_type=room.room_type, event="stairs")
        return RoomEntry(x=room.x, y=room.y, room_type=room.room_type, event="none")

    def occupant_instance(self, run: DungeonRun) -> MonsterInstance:
        room = run.floor.current_room
        occupant = self.live_occupant(room)
        if occupant is None:
            raise ValidationError("There is nothing to fight in this room")
        tier = Tier.BOSS if room.room_type == RoomType.BOSS.value else Tier.COMMON
        return MonsterInstance(
            template_id=f"dungeon-{run.seed}-{run.current_floor}-{room.x}-{room.y}",
            name=str(occupant.name),
            tier=tier.value,
            level=int(occupant.level or 1),
            max_health=int(occupant.health or 1),
            current_health=int(occupant.health or 1),
            damage=int(occupant.damage or 1),
            armor=int(occupant.armor or 0),
        )

    def defeat_occupant(self, run: DungeonRun) -> RoomContent:
        room = run.floor.current_room
        occupant = self.live_occupant(room)
        if occupant is None:
            raise ValidationError("There is nothing to defeat in this room")
        occupant.cleared = True
        occupant.health = 0
        run.kills += 1
        if room.room_type == RoomType.BOSS.value:
            run.boss_defeated = True
            run.boss_level = int(occupant.level or 0)
            logger.info("Dungeon boss defeated", extra={"seed": run.seed, "boss_level": run.boss_level})
        return occupant

    def change_floor(self, run: DungeonRun) -> DungeonFloor:
        room = run.floor.current_room
        if room.room_type == RoomType.STAIRS_DOWN.value:
            target = run.current_floor + 1
        elif room.room_type == RoomType.STAIRS_UP.value:
            target = run.current_floor - 1
        else:
            raise ValidationError("There are no stairs in this room")

        floor = run.floors.get(target)
        if floor is None:
            floor = self.generate_floor(target, run.total_floors, run.difficulty, run.seed)
            run.floors[target] = floor
        mid = floor.size // 2
        # Arrive on the matching staircase of the destination floor.
        floor.player_x = mid
        floor.player_y = 0 if target > run.current_floor else floor.size - 1
        floor.current_room.explored = True
        run.current_floor = target
        return floor

    @staticmethod
    def completion_rewards(run: DungeonRun) -> tuple[int, int]:
        if not run.cleared:
            raise ValidationError("The dungeon is not cleared until its boss is defeated")
        gold = run.boss_level * DUNGEON_BOSS_GOLD_PER_LEVEL + run.gold_collected
        experience = DUNGEON_XP_PER_FLOOR * run.total_floors + run.kills * DUNGEON_XP_PER_KILL
        return gold, experience
