import copy
import json
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import text

from geoquest.domain.models.character import Character
from geoquest.domain.models.loot import ItemTemplate, LootEntry
from geoquest.domain.models.monster import MonsterTemplate
from geoquest.domain.models.world import PoiInteraction
from geoquest.domain.repositories import (
    CharacterRepository,
    ItemRepository,
    MonsterRepository,
    PoiInteractionRepository,
)
from .connection import SessionLocal


CHARACTER_COLUMNS = (
    "name",
    "character_class",
    "level",
    "experience",
    "experience_to_next_level",
    "attributes_json",
    "current_health",
    "max_health",
    "current_mana",
    "max_mana",
    "armor_class",
    "gold",
    "available_stat_points",
    "latitude",
    "longitude",
    "travel_steps",
    "inventory_json",
    "equipped_weapon_id",
    "equipped_armor_id",
    "is_dead",
    "death_cause",
)

MONSTER_COLUMNS = (
    "monster_id",
    "name",
    "monster_type",
    "tier",
    "base_level",
    "health",
    "damage",
    "armor",
    "loot_table_json",
    "experience_reward",
    "gold_reward",
    "biome",
    "description",
)

ITEM_COLUMNS = (
    "item_id",
    "name",
    "item_type",
    "rarity",
    "damage_min",
    "damage_max",
    "armor_bonus",
    "heal_amount",
    "mana_amount",
    "value",
    "description",
)

INTERACTION_COLUMNS = (
    "character_id",
    "poi_id",
    "poi_type",
    "interaction_type",
    "latitude",
    "longitude",
    "can_respawn",
    "respawn_at",
    "interacted_at",
)


def session_dialect(session) -> str:
    return session.bind.dialect.name if session.bind is not None else "mysql"


def upsert_sql(dialect: str, table: str, columns: Sequence[str], key_columns: Sequence[str]) -> str:
    column_list = ", ".join(columns)
    values = ", ".join(f":{column}" for column in columns)
    updatable = [column for column in columns if column not in key_columns]
    if dialect == "sqlite":
        assignments = ", ".join(f"{column} = excluded.{column}" for column in updatable)
        conflict = ", ".join(key_columns)
        return f"INSERT INTO {table} ({column_list}) VALUES ({values}) ON CONFLICT({conflict}) DO UPDATE SET {assignments}"
    assignments = ", ".join(f"{column} = VALUES({column})" for column in updatable)
    return f"INSERT INTO {table} ({column_list}) VALUES ({values}) ON DUPLICATE KEY UPDATE {assignments}"


def _load_json(raw_value, default):
    if raw_value is None:
        return default
    if isinstance(raw_value, (dict, list)):
        return raw_value
    text_value = str(raw_value).strip()
    if not text_value:
        return default
    return json.loads(text_value)


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="microseconds") if value is not None else None


def _parse_timestamp(raw_value) -> Optional[datetime]:
    if raw_value is None or raw_value == "":
        return None
    if isinstance(raw_value, datetime):
        return raw_value
    return datetime.fromisoformat(str(raw_value))


def _character_params(character: Character) -> dict:
    return {
        "name": character.name,
        "character_class": character.character_class,
        "level": int(character.level),
        "experience": int(character.experience),
        "experience_to_next_level": int(character.experience_to_next_level),
        "attributes_json": json.dumps(character.attributes, sort_keys=True),
        "current_health": int(character.current_health),
        "max_health": int(character.max_health),
        "current_mana": int(character.current_mana),
        "max_mana": int(character.max_mana),
        "armor_class": int(character.armor_class),
        "gold": int(character.gold),
        "available_stat_points": int(character.available_stat_points),
        "latitude": character.latitude,
        "longitude": character.longitude,
        "travel_steps": int(character.travel_steps),
        "inventory_json": json.dumps(character.inventory, sort_keys=True),
        "equipped_weapon_id": character.equipped_weapon_id,
        "equipped_armor_id": character.equipped_armor_id,
        "is_dead": 1 if character.is_dead else 0,
        "death_cause": character.death_cause,
    }


def _row_to_character(row) -> Character:
    return Character(
        id=int(row.character_id),
        name=row.name,
        character_class=row.character_class,
        level=int(row.level),
        experience=int(row.experience),
        experience_to_next_level=int(row.experience_to_next_level),
        attributes=_load_json(row.attributes_json, {}),
        current_health=int(row.current_health),
        max_health=int(row.max_health),
        current_mana=int(row.current_mana),
        max_mana=int(row.max_mana),
        armor_class=int(row.armor_class),
        gold=int(row.gold),
        available_stat_points=int(row.available_stat_points),
        latitude=float(row.latitude) if row.latitude is not None else None,
        longitude=float(row.longitude) if row.longitude is not None else None,
        travel_steps=int(row.travel_steps),
        inventory=_load_json(row.inventory_json, {}),
        equipped_weapon_id=row.equipped_weapon_id,
        equipped_armor_id=row.equipped_armor_id,
        is_dead=bool(row.is_dead),
        death_cause=row.death_cause,
    )


def upsert_character(session, character: Character) -> None:
    if character.id is None:
        raise ValueError("Cannot save a character without an id; use create()")
    columns = ("character_id",) + CHARACTER_COLUMNS
    params = {"character_id": int(character.id), **_character_params(character)}
    session.execute(text(upsert_sql(session_dialect(session), "game_character", columns, ("character_id",))), params)


def upsert_interaction(session, interaction: PoiInteraction) -> None:
    params = {
        "character_id": int(interaction.character_id),
        "poi_id": str(interaction.poi_id),
        "poi_type": str(interaction.poi_type),
        "interaction_type": str(interaction.interaction_type),
        "latitude": float(interaction.latitude),
        "longitude": float(interaction.longitude),
        "can_respawn": 1 if interaction.can_respawn else 0,
        "respawn_at": _format_timestamp(interaction.respawn_at),
        "interacted_at": _format_timestamp(interaction.interacted_at),
    }
    statement = upsert_sql(session_dialect(session), "poi_interaction", INTERACTION_COLUMNS, ("character_id", "poi_id"))
    session.execute(text(statement), params)


def monster_params(monster: MonsterTemplate) -> dict:
    return {
        "monster_id": monster.id,
        "name": monster.name,
        "monster_type": monster.monster_type,
        "tier": monster.tier,
        "base_level": int(monster.base_level),
        "health": int(monster.health),
        "damage": int(monster.damage),
        "armor": int(monster.armor),
        "loot_table_json": json.dumps(
            [{"item_id": entry.item_id, "drop_chance": entry.drop_chance} for entry in monster.loot_table]
        ),
        "experience_reward": int(monster.experience_reward),
        "gold_reward": int(monster.gold_reward),
        "biome": monster.biome,
        "description": monster.description,
    }


def item_params(item: ItemTemplate) -> dict:
    return {
        "item_id": item.id,
        "name": item.name,
        "item_type": item.item_type,
        "rarity": item.rarity,
        "damage_min": item.damage_min,
        "damage_max": item.damage_max,
        "armor_bonus": item.armor_bonus,
        "heal_amount": item.heal_amount,
        "mana_amount": item.mana_amount,
        "value": int(item.value),
        "description": item.description,
    }


def _optional_int(raw_value) -> Optional[int]:
    return int(raw_value) if raw_value is not None else None


def _row_to_monster(row) -> MonsterTemplate:
    loot = tuple(
        LootEntry(item_id=str(entry["item_id"]), drop_chance=float(entry["drop_chance"]))
        for entry in _load_json(row.loot_table_json, [])
    )
    return MonsterTemplate(
        id=row.monster_id,
        name=row.name,
        monster_type=row.monster_type,
        tier=row.tier,
        base_level=int(row.base_level),
        health=int(row.health),
        damage=int(row.damage),
        armor=int(row.armor),
        loot_table=loot,
        experience_reward=int(row.experience_reward),
        gold_reward=int(row.gold_reward),
        biome=row.biome,
        description=row.description or "",
    )


def _row_to_item(row) -> ItemTemplate:
    return ItemTemplate(
        id=row.item_id,
        name=row.name,
        item_type=row.item_type,
        rarity=row.rarity,
        damage_min=_optional_int(row.damage_min),
        damage_max=_optional_int(row.damage_max),
        armor_bonus=_optional_int(row.armor_bonus),
        heal_amount=_optional_int(row.heal_amount),
        mana_amount=_optional_int(row.mana_amount),
        value=int(row.value or 0),
        description=row.description or "",
    )


def _row_to_interaction(row) -> PoiInteraction:
    return PoiInteraction(
        character_id=int(row.character_id),
        poi_id=row.poi_id,
        poi_type=row.poi_type,
        interaction_type=row.interaction_type,
        latitude=float(row.latitude),
        longitude=float(row.longitude),
        can_respawn=bool(row.can_respawn),
        respawn_at=_parse_timestamp(row.respawn_at),
        interacted_at=_parse_timestamp(row.interacted_at),
    )


_SELECT_CHARACTER = f"SELECT character_id, {', '.join(CHARACTER_COLUMNS)} FROM game_character"


class SqlCharacterRepository(CharacterRepository):
    def get(self, character_id: int) -> Optional[Character]:
        with SessionLocal() as session:
            row = session.execute(
                text(f"{_SELECT_CHARACTER} WHERE character_id = :cid"),
                {"cid": int(character_id)},
            ).first()
        return _row_to_character(row) if row is not None else None

    def list_all(self) -> List[Character]:
        with SessionLocal() as session:
            rows = session.execute(text(f"{_SELECT_CHARACTER} ORDER BY character_id")).all()
        return [_row_to_character(row) for row in rows]

    def save(self, character: Character) -> None:
        with SessionLocal.begin() as session:
            upsert_character(session, character)

    def create(self, character: Character) -> Character:
        columns = ", ".join(CHARACTER_COLUMNS)
        values = ", ".join(f":{column}" for column in CHARACTER_COLUMNS)
        with SessionLocal.begin() as session:
            result = session.execute(
                text(f"INSERT INTO game_character ({columns}) VALUES ({values})"),
                _character_params(character),
            )
            new_id = int(result.lastrowid)
        created = copy.deepcopy(character)
        created.id = new_id
        return created


class SqlMonsterRepository(MonsterRepository):
    _SELECT = f"SELECT {', '.join(MONSTER_COLUMNS)} FROM monster"

    def get(self, monster_id: str) -> Optional[MonsterTemplate]:
        with SessionLocal() as session:
            row = session.execute(text(f"{self._SELECT} WHERE monster_id = :mid"), {"mid": str(monster_id)}).first()
        return _row_to_monster(row) if row is not None else None

    def list_all(self) -> List[MonsterTemplate]:
        with SessionLocal() as session:
            rows = session.execute(text(f"{self._SELECT} ORDER BY monster_id")).all()
        return [_row_to_monster(row) for row in rows]


class SqlItemRepository(ItemRepository):
    _SELECT = f"SELECT {', '.join(ITEM_COLUMNS)} FROM item"

    def get(self, item_id: str) -> Optional[ItemTemplate]:
        with SessionLocal() as session:
            row = session.execute(text(f"{self._SELECT} WHERE item_id = :iid"), {"iid": str(item_id)}).first()
        return _row_to_item(row) if row is not None else None

    def list_all(self) -> List[ItemTemplate]:
        with SessionLocal() as session:
            rows = session.execute(text(f"{self._SELECT} ORDER BY item_id")).all()
        return [_row_to_item(row) for row in rows]


class SqlPoiInteractionRepository(PoiInteractionRepository):
    _SELECT = f"SELECT {', '.join(INTERACTION_COLUMNS)} FROM poi_interaction"

    def record(self, interaction: PoiInteraction) -> None:
        with SessionLocal.begin() as session:
            upsert_interaction(session, interaction)

    def get(self, character_id: int, poi_id: str) -> Optional[PoiInteraction]:
        with SessionLocal() as session:
            row = session.execute(
                text(f"{self._SELECT} WHERE character_id = :cid AND poi_id = :pid"),
                {"cid": int(character_id), "pid": str(poi_id)},
            ).first()
        return _row_to_interaction(row) if row is not None else None

    def list_for_character(self, character_id: int) -> List[PoiInteraction]:
        with SessionLocal() as session:
            rows = session.execute(
                text(f"{self._SELECT} WHERE character_id = :cid ORDER BY poi_id"),
                {"cid": int(character_id)},
            ).all()
        return [_row_to_interaction(row) for row in rows]
