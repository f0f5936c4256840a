import logging
import os
import socket
from dataclasses import dataclass
from urllib.parse import urlparse

from geoquest.application.services.balance_tables import (
    POI_EXISTENCE_CHANCE,
    POI_TILE_SIZE,
    POI_VISIBLE_TILES,
)
from geoquest.application.services.event_bus import EventBus
from geoquest.application.services.game_service import GameService
from geoquest.application.services.world_generation_service import WorldGenerationService
from geoquest.domain.events import (
    CharacterDiedEvent,
    DungeonClearedEvent,
    LevelUpAppliedEvent,
    LootAwardedEvent,
    MonsterSlain,
)
from geoquest.infrastructure.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from geoquest.infrastructure.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryItemRepository,
    InMemoryMonsterRepository,
    InMemoryPoiInteractionRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    database_url: str = ""
    tile_size: float = POI_TILE_SIZE
    visible_tiles: int = POI_VISIBLE_TILES
    poi_chance: float = POI_EXISTENCE_CHANCE
    world_seed: int = 0
    log_level: str = "WARNING"
    db_probe_timeout_s: float = 0.35

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            database_url=os.getenv("GEOQUEST_DATABASE_URL", "").strip(),
            tile_size=float(os.getenv("GEOQUEST_TILE_SIZE", str(POI_TILE_SIZE))),
            visible_tiles=int(os.getenv("GEOQUEST_VISIBLE_TILES", str(POI_VISIBLE_TILES))),
            poi_chance=float(os.getenv("GEOQUEST_POI_CHANCE", str(POI_EXISTENCE_CHANCE))),
            world_seed=int(os.getenv("GEOQUEST_WORLD_SEED", "0")),
            log_level=os.getenv("GEOQUEST_LOG_LEVEL", "WARNING").strip().upper() or "WARNING",
            db_probe_timeout_s=float(os.getenv("GEOQUEST_DB_CONNECT_PROBE_TIMEOUT_S", "0.35")),
        )


def _looks_like_local_mysql_unreachable(database_url: str, timeout: float = 0.35) -> bool:
    if not database_url:
        return False

    parsed = urlparse(database_url)
    if not parsed.scheme.startswith("mysql"):
        return False

    host = (parsed.hostname or "").strip().lower()
    if host not in {"localhost", "127.0.0.1", "::1"}:
        return False

    port = parsed.port or 3306
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return False
    except OSError:
        return True


def register_activity_log_handlers(event_bus: EventBus) -> None:
    def _on_level_up(event: LevelUpAppliedEvent) -> None:
        logger.info(
            "Level up",
            extra={"character_id": event.character_id, "from_level": event.from_level, "to_level": event.to_level},
        )

    def _on_death(event: CharacterDiedEvent) -> None:
        logger.info("Character died", extra={"character_id": event.character_id, "cause": event.cause})

    def _on_slain(event: MonsterSlain) -> None:
        logger.debug(
            "Monster slain",
            extra={"character_id": event.by_character_id, "monster_id": event.monster_id, "tier": event.tier},
        )

    def _on_loot(event: LootAwardedEvent) -> None:
        logger.debug(
            "Loot awarded",
            extra={"character_id": event.character_id, "item_id": event.item_id, "quantity": event.quantity},
        )

    def _on_dungeon_cleared(event: DungeonClearedEvent) -> None:
        logger.info(
            "Dungeon cleared",
            extra={"character_id": event.character_id, "seed": event.seed, "gold": event.gold_reward},
        )

    event_bus.subscribe(LevelUpAppliedEvent, _on_level_up, priority=900)
    event_bus.subscribe(CharacterDiedEvent, _on_death, priority=900)
    event_bus.subscribe(MonsterSlain, _on_slain, priority=900)
    event_bus.subscribe(LootAwardedEvent, _on_loot, priority=900)
    event_bus.subscribe(DungeonClearedEvent, _on_dungeon_cleared, priority=900)


def build_world_service(settings: EngineSettings) -> WorldGenerationService:
    return WorldGenerationService(
        tile_size=settings.tile_size,
        existence_probability=settings.poi_chance,
        visible_tiles=settings.visible_tiles,
        world_seed=settings.world_seed,
    )


def _build_inmemory_game_service(settings: EngineSettings) -> GameService:
    char_repo = InMemoryCharacterRepository()
    monster_repo = InMemoryMonsterRepository()
    item_repo = InMemoryItemRepository()
    interaction_repo = InMemoryPoiInteractionRepository()
    event_bus = EventBus()
    register_activity_log_handlers(event_bus)

    return GameService(
        char_repo,
        monster_repo,
        item_repo,
        interaction_repo,
        world_service=build_world_service(settings),
        event_bus=event_bus,
        atomic_state_persistor=create_inmemory_atomic_persistor(char_repo, interaction_repo),
    )


def _build_sql_game_service(settings: EngineSettings) -> GameService:
    from geoquest.infrastructure.db.sql.atomic_persistence import save_character_and_interactions_atomic
    from geoquest.infrastructure.db.sql.repos import (
        SqlCharacterRepository,
        SqlItemRepository,
        SqlMonsterRepository,
        SqlPoiInteractionRepository,
    )

    monster_repo = SqlMonsterRepository()
    event_bus = EventBus()
    register_activity_log_handlers(event_bus)

    # Force an early connectivity check so fallback happens before any command runs.
    try:
        monster_repo.list_all()
    except Exception as exc:
        raise RuntimeError(f"Database bootstrap probe failed: {exc}") from exc

    return GameService(
        SqlCharacterRepository(),
        monster_repo,
        SqlItemRepository(),
        SqlPoiInteractionRepository(),
        world_service=build_world_service(settings),
        event_bus=event_bus,
        atomic_state_persistor=save_character_and_interactions_atomic,
    )


def create_game_service(settings: EngineSettings | None = None) -> GameService:
    settings = settings or EngineSettings.from_env()
    if settings.database_url:
        if _looks_like_local_mysql_unreachable(settings.database_url, settings.db_probe_timeout_s):
            logger.warning("MySQL appears unreachable, falling back to in-memory.")
            return _build_inmemory_game_service(settings)
        try:
            return _build_sql_game_service(settings)
        except Exception as exc:  # pragma: no cover - best-effort fallback
            logger.warning("Database unavailable, falling back to in-memory. Reason: %s", exc)

    return _build_inmemory_game_service(settings)
