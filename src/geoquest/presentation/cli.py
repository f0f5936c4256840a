from __future__ import annotations

from typing import Iterable, List, Optional

from geoquest.application.services.balance_tables import xp_for_level
from geoquest.application.services.combat_service import CombatService
from geoquest.application.services.dungeon_service import DungeonService
from geoquest.application.services.monster_scaling import instantiate
from geoquest.application.services.progression_service import ProgressionService
from geoquest.application.services.world_generation_service import WorldGenerationService
from geoquest.domain.errors import NotFoundError
from geoquest.domain.models.combat import CombatState, ExchangeResult
from geoquest.domain.models.dungeon import DungeonFloor, RoomType
from geoquest.domain.models.world import PointOfInterest
from geoquest.infrastructure.catalog_data import monsters_by_id

ROOM_GLYPHS = {
    RoomType.ENTRANCE.value: "E",
    RoomType.STAIRS_UP.value: "<",
    RoomType.STAIRS_DOWN.value: ">",
    RoomType.BOSS.value: "B",
    RoomType.MONSTER.value: "M",
    RoomType.TREASURE.value: "$",
    RoomType.TRAP.value: "^",
    RoomType.EMPTY.value: ".",
    RoomType.UNKNOWN.value: "?",
}

MAX_DUEL_EXCHANGES = 200


def format_poi(poi: PointOfInterest) -> str:
    tier = f" [{poi.tier}]" if poi.tier else ""
    extras = ", ".join(f"{key}={value}" for key, value in sorted(poi.payload.items()))
    suffix = f" ({extras})" if extras else ""
    return f"{poi.latitude:.6f},{poi.longitude:.6f}  {poi.poi_type:<10} {poi.name}{tier}{suffix}"


def render_floor(floor: DungeonFloor, show_player: bool = True) -> List[str]:
    lines = []
    for row in floor.rooms:
        cells = []
        for room in row:
            if show_player and (room.x, room.y) == (floor.player_x, floor.player_y):
                cells.append("@")
            else:
                cells.append(ROOM_GLYPHS.get(room.room_type, "?"))
        lines.append(" ".join(cells))
    return lines


def format_exchange(result: ExchangeResult) -> str:
    attack = result.player_attack
    if attack.critical:
        opening = f"Critical hit for {attack.damage}"
    elif attack.fumble:
        opening = "Fumble"
    elif attack.hit:
        opening = f"Hit for {attack.damage}"
    else:
        opening = "Miss"
    counter = ""
    if result.monster_attack is not None:
        counter = f"; monster deals {result.damage_taken}" if result.monster_attack.hit else "; monster misses"
    return (
        f"#{result.exchange_no:>3} roll {attack.roll:>2}: {opening}{counter} "
        f"(you {result.player_health}, foe {result.monster_health})"
    )


def run_pois(world: WorldGenerationService, latitude: float, longitude: float, radius: Optional[int] = None) -> int:
    pois = world.generate_pois(latitude, longitude, radius=radius, monster_ids=sorted(monsters_by_id()))
    print(f"{len(pois)} point(s) of interest near {latitude:.6f},{longitude:.6f}")
    for poi in pois:
        print(f"  {format_poi(poi)}")
    return len(pois)


def run_dungeon(seed: int, floors: int, difficulty: str) -> DungeonFloor:
    service = DungeonService()
    run = service.start_run(seed, difficulty, floors)
    last_floor = run.floor
    for level in range(1, run.total_floors + 1):
        last_floor = run.floors.get(level) or service.generate_floor(level, run.total_floors, run.difficulty, run.seed)
        print(f"Floor {level}/{run.total_floors} ({last_floor.size}x{last_floor.size}, {run.difficulty})")
        for line in render_floor(last_floor, show_player=False):
            print(f"  {line}")
    return last_floor


def _duel_exchanges(combat: CombatService, state: CombatState) -> Iterable[ExchangeResult]:
    for _ in range(MAX_DUEL_EXCHANGES):
        if state.outcome.is_terminal:
            return
        yield combat.resolve_exchange(state)


def run_duel(seed: int, monster_id: str, character_class: str, level: int = 1) -> CombatState:
    catalog = monsters_by_id()
    template = catalog.get(monster_id)
    if template is None:
        raise NotFoundError("monster", monster_id)

    progression = ProgressionService()
    hero = progression.create_character("Challenger", character_class, character_id=0)
    if level > 1:
        progression.add_experience(hero, xp_for_level(level))

    monster = instantiate(template, hero.level)
    combat = CombatService()
    state = combat.start(hero, monster, encounter_id=f"duel:{seed}")
    print(f"{hero.name} the {hero.character_class} (L{hero.level}, {hero.current_health} HP) "
          f"vs {monster.name} (L{monster.level} {monster.tier}, {monster.current_health} HP)")
    for result in _duel_exchanges(combat, state):
        print(format_exchange(result))
    print(f"Outcome: {state.outcome.value}")
    return state
