from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from geoquest.domain.errors import ValidationError


class RoomType(str, Enum):
    ENTRANCE = "entrance"
    STAIRS_UP = "stairs_up"
    STAIRS_DOWN = "stairs_down"
    BOSS = "boss"
    MONSTER = "monster"
    TREASURE = "treasure"
    TRAP = "trap"
    EMPTY = "empty"
    UNKNOWN = "unknown"


class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    NIGHTMARE = "nightmare"

    @classmethod
    def normalize(cls, value: "str | Difficulty | None") -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        raw = str(value or cls.NORMAL.value).strip().lower()
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Unknown dungeon difficulty: {value!r}") from None

    @property
    def multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self]


DIFFICULTY_MULTIPLIERS: Dict[Difficulty, float] = {
    Difficulty.EASY: 0.75,
    Difficulty.NORMAL: 1.0,
    Difficulty.HARD: 1.5,
    Difficulty.NIGHTMARE: 2.0,
}


@dataclass
class RoomContent:
    name: Optional[str] = None
    level: Optional[int] = None
    health: Optional[int] = None
    damage: Optional[int] = None
    armor: Optional[int] = None
    gold: Optional[int] = None
    trap_damage: Optional[int] = None
    level_requirement: Optional[int] = None
    cleared: bool = False


@dataclass
class DungeonRoom:
    x: int
    y: int
    room_type: str
    explored: bool = False
    content: Optional[RoomContent] = None


@dataclass
class DungeonFloor:
    level: int
    size: int
    rooms: List[List[DungeonRoom]]
    player_x: int
    player_y: int
    seed: int = 0

    def room_at(self, x: int, y: int) -> DungeonRoom:
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise ValidationError(f"Room ({x}, {y}) is outside a {self.size}x{self.size} floor")
        return self.rooms[y][x]

    @property
    def current_room(self) -> DungeonRoom:
        return self.room_at(self.player_x, self.player_y)

    def find_room(self, room_type: "str | RoomType") -> Optional[DungeonRoom]:
        wanted = RoomType(room_type).value
        for row in self.rooms:
            for room in row:
                if room.room_type == wanted:
                    return room
        return None

    def view(self) -> "DungeonFloor":
        """Copy of the floor safe to hand to a player: unexplored rooms are masked."""
        masked: List[List[DungeonRoom]] = []
        for row in self.rooms:
            masked_row = []
            for room in row:
                if room.explored:
                    masked_row.append(copy.deepcopy(room))
                else:
                    masked_row.append(DungeonRoom(x=room.x, y=room.y, room_type=RoomType.UNKNOWN.value))
            masked.append(masked_row)
        return DungeonFloor(
            level=self.level,
            size=self.size,
            rooms=masked,
            player_x=self.player_x,
            player_y=self.player_y,
            seed=self.seed,
        )


@dataclass(frozen=True)
class RoomEntry:
    x: int
    y: int
    room_type: str
    event: str
    gold: int = 0
    trap_damage: int = 0
    occupant: Optional[RoomContent] = None


@dataclass
class DungeonRun:
    seed: int
    difficulty: str
    total_floors: int
    current_floor: int = 1
    floors: Dict[int, DungeonFloor] = field(default_factory=dict)
    kills: int = 0
    gold_collected: int = 0
    boss_defeated: bool = False
    boss_level: int = 0
    character_id: Optional[int] = None
    name: str = "Dungeon"
    poi_id: Optional[str] = None

    @property
    def floor(self) -> DungeonFloor:
        return self.floors[self.current_floor]

    @property
    def cleared(self) -> bool:
        return self.boss_defeated
