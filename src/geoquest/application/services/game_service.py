import copy
import logging
import re
import threading
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional

from geoquest.application.dtos import (
    AttackView,
    CharacterSummaryView,
    DungeonView,
    EncounterView,
    ExploreResult,
    FleeView,
    PurchaseReceipt,
    RewardSummary,
)
from geoquest.application.services.balance_tables import POI_RESPAWN_MINUTES
from geoquest.application.services.combat_service import (
    CombatService,
    calculate_flee_chance,
    calculate_hit_chance,
)
from geoquest.application.services.dungeon_service import DungeonService
from geoquest.application.services.encounter_service import EncounterService
from geoquest.application.services.event_bus import EventBus
from geoquest.application.services.loot_service import LootService
from geoquest.application.services.monster_scaling import instantiate
from geoquest.application.services.progression_service import ProgressionService
from geoquest.application.services.seed_policy import derive_rng, derive_seed, tile_index
from geoquest.application.services.shop_service import ShopService
from geoquest.application.services.world_generation_service import WorldGenerationService, filter_interactable
from geoquest.domain.errors import NotFoundError, ValidationError
from geoquest.domain.events import (
    CharacterDiedEvent,
    DungeonClearedEvent,
    LevelUpAppliedEvent,
    LootAwardedEvent,
    MonsterSlain,
)
from geoquest.domain.models.character import Character
from geoquest.domain.models.combat import CombatOutcome, CombatState
from geoquest.domain.models.dungeon import DungeonRun
from geoquest.domain.models.encounter import TravelEncounterKind
from geoquest.domain.models.loot import ItemTemplate, ShopOffer
from geoquest.domain.models.monster import MonsterInstance
from geoquest.domain.models.world import InteractionType, PoiInteraction, PointOfInterest, PoiType
from geoquest.domain.repositories import (
    CharacterRepository,
    ItemRepository,
    MonsterRepository,
    PoiInteractionRepository,
)

logger = logging.getLogger(__name__)

_POI_ID_PATTERN = re.compile(r"^poi-(-?\d+\.\d+)-(-?\d+\.\d+)-([a-z_]+)$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class _ActiveCombat:
    state: CombatState
    poi: Optional[PointOfInterest] = None
    in_dungeon: bool = False


_KEEP = object()


@dataclass
class _Pending:
    interactions: List[PoiInteraction] = field(default_factory=list)
    events: List[object] = field(default_factory=list)
    # In-flight combat and dungeon state to install once the write succeeds; None clears it.
    combat: object = _KEEP
    dungeon: object = _KEEP
    shop_sales: Dict[str, Dict[str, int]] = field(default_factory=dict)


class GameService:
    """Command surface of the engine.

    Every public command reads the stored character, works on a private copy,
    validates invariants and persists once. A command that raises leaves the
    stored character, the interaction log and any in-flight combat or dungeon
    run exactly as they were.
    """

    def __init__(
        self,
        character_repo: CharacterRepository,
        monster_repo: MonsterRepository,
        item_repo: ItemRepository,
        interaction_repo: PoiInteractionRepository,
        world_service: WorldGenerationService | None = None,
        event_bus: EventBus | None = None,
        atomic_state_persistor: Callable[..., None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.character_repo = character_repo
        self.monster_repo = monster_repo
        self.item_repo = item_repo
        self.interaction_repo = interaction_repo
        self.world_service = world_service or WorldGenerationService()
        self.event_bus = event_bus
        self.atomic_state_persistor = atomic_state_persistor
        self.clock = clock or _utcnow
        self.progression_service = ProgressionService()
        self.combat_service = CombatService()
        self.loot_service = LootService(item_lookup=item_repo.get)
        self.dungeon_service = DungeonService()
        self.encounter_service = EncounterService()
        self.shop_service = ShopService()
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._combats: Dict[int, _ActiveCombat] = {}
        self._dungeons: Dict[int, DungeonRun] = {}
        # (character id, poi id) -> item id -> units bought; shops restock when the engine restarts.
        self._shop_sales: Dict[tuple[int, str], Dict[str, int]] = {}

    # -- plumbing -----------------------------------------------------------------

    def _lock_for(self, character_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(character_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[character_id] = lock
            return lock

    def _require_character(self, character_id: int) -> Character:
        character = self.character_repo.get(character_id)
        if character is None:
            raise NotFoundError("character", character_id)
        return character

    @contextmanager
    def _character_transaction(self, character_id: int, *, allow_dead: bool = False) -> Iterator[tuple[Character, _Pending]]:
        with self._lock_for(character_id):
            working = copy.deepcopy(self._require_character(character_id))
            if working.is_dead and not allow_dead:
                raise ValidationError(f"{working.name} is dead ({working.death_cause or 'unknown cause'})")
            pending = _Pending()
            yield working, pending
            self._commit(working, pending)

    def _commit(self, character: Character, pending: _Pending) -> None:
        character.check_invariants()
        if self.atomic_state_persistor is not None:
            self.atomic_state_persistor(character, pending.interactions)
        else:
            self.character_repo.save(character)
            for interaction in pending.interactions:
                self.interaction_repo.record(interaction)
        self._apply_session_state(int(character.id), pending)
        if self.event_bus is not None:
            for event in pending.events:
                self.event_bus.publish(event)

    def _apply_session_state(self, character_id: int, pending: _Pending) -> None:
        for store, value in ((self._combats, pending.combat), (self._dungeons, pending.dungeon)):
            if value is _KEEP:
                continue
            if value is None:
                store.pop(character_id, None)
            else:
                store[character_id] = value
        for poi_id, sold in pending.shop_sales.items():
            self._shop_sales[(character_id, poi_id)] = sold

    def _monster_ids(self) -> list[str]:
        return [monster.id for monster in self.monster_repo.list_all()]

    def _require_item(self, item_id: str) -> ItemTemplate:
        item = self.item_repo.get(item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        return item

    def _weapon_for(self, character: Character) -> Optional[ItemTemplate]:
        if character.equipped_weapon_id is None:
            return None
        return self.item_repo.get(character.equipped_weapon_id)

    def _armor_bonus_for(self, character: Character) -> int:
        if character.equipped_armor_id is None:
            return 0
        armor = self.item_repo.get(character.equipped_armor_id)
        return int(armor.armor_bonus or 0) if armor is not None and armor.is_armor else 0

    def _interaction_for(self, character: Character, poi: PointOfInterest, interaction_type: "str | InteractionType") -> PoiInteraction:
        now = self.clock()
        resolved = InteractionType.normalize(interaction_type)
        minutes = POI_RESPAWN_MINUTES.get(poi.poi_type, 0)
        return PoiInteraction(
            character_id=int(character.id),
            poi_id=poi.id,
            poi_type=poi.poi_type,
            interaction_type=resolved.value,
            latitude=poi.latitude,
            longitude=poi.longitude,
            can_respawn=minutes is not None,
            respawn_at=(now + timedelta(minutes=minutes)) if minutes else None,
            interacted_at=now,
        )

    def _locate_poi(self, character: Character, poi_id: str) -> PointOfInterest:
        match = _POI_ID_PATTERN.match(str(poi_id or ""))
        if match is None or character.position is None:
            raise NotFoundError("poi", poi_id)
        size = self.world_service.tile_size
        lat_index = tile_index(float(match.group(1)) + size / 2, size)
        lng_index = tile_index(float(match.group(2)) + size / 2, size)
        center_lat, center_lng = self.world_service.tile_of(*character.position)
        radius = self.world_service.visible_tiles
        if abs(lat_index - center_lat) > radius or abs(lng_index - center_lng) > radius:
            raise NotFoundError("poi", poi_id)
        poi = self.world_service.generate_tile(lat_index, lng_index, self._monster_ids())
        if poi is None or poi.id != poi_id:
            raise NotFoundError("poi", poi_id)
        return poi

    def _require_interactable(self, character: Character, poi: PointOfInterest) -> None:
        if not self.interaction_repo.can_interact(int(character.id), poi.id, self.clock()):
            raise ValidationError(f"{poi.name} cannot be interacted with yet")

    def _kill(self, character: Character, pending: _Pending, cause: str) -> None:
        self.progression_service.kill(character, cause)
        pending.combat = None
        pending.dungeon = None
        pending.events.append(CharacterDiedEvent(character_id=int(character.id), cause=cause))
        logger.info("Character died", extra={"character_id": character.id, "cause": cause})

    def _grant_experience(self, character: Character, pending: _Pending, amount: int):
        outcome = self.progression_service.add_experience(character, amount)
        if outcome.leveled_up:
            pending.events.append(
                LevelUpAppliedEvent(
                    character_id=int(character.id),
                    from_level=outcome.old_level,
                    to_level=outcome.new_level,
                    stat_points_gained=outcome.stat_points_gained,
                )
            )
        return outcome

    # -- characters ---------------------------------------------------------------

    def create_character(self, name: str, character_class: str) -> Character:
        draft = self.progression_service.create_character(name, character_class)
        created = self.character_repo.create(draft)
        logger.info("Character created", extra={"character_id": created.id, "character_class": created.character_class})
        return created

    def get_character(self, character_id: int) -> Character:
        return copy.deepcopy(self._require_character(character_id))

    def list_character_summaries(self) -> list[CharacterSummaryView]:
        return [
            CharacterSummaryView(
                id=int(character.id),
                name=character.name,
                character_class=character.character_class,
                level=character.level,
                alive=not character.is_dead,
            )
            for character in self.character_repo.list_all()
        ]

    def allocate_stat_point(self, character_id: int, attribute: str) -> Character:
        with self._character_transaction(character_id) as (character, _pending):
            self.progression_service.allocate_stat_point(character, attribute, self._armor_bonus_for(character))
        return copy.deepcopy(character)

    def add_gold(self, character_id: int, amount: int) -> int:
        with self._character_transaction(character_id) as (character, _pending):
            self.progression_service.add_gold(character, amount)
        return character.gold

    def spend_gold(self, character_id: int, amount: int) -> int:
        with self._character_transaction(character_id) as (character, _pending):
            self.progression_service.spend_gold(character, amount)
        return character.gold

    def add_item(self, character_id: int, item_id: str, quantity: int = 1) -> int:
        self._require_item(item_id)
        with self._character_transaction(character_id) as (character, _pending):
            held = self.loot_service.add_items(character.inventory, item_id, quantity)
        return held

    def use_item(self, character_id: int, item_id: str) -> Character:
        item = self._require_item(item_id)
        if not item.is_consumable:
            raise ValidationError(f"{item.name} cannot be used")
        with self._character_transaction(character_id) as (character, _pending):
            self.loot_service.remove_item(character.inventory, item_id, 1)
            if item.heal_amount:
                self.progression_service.heal(character, item.heal_amount)
            if item.mana_amount:
                self.progression_service.restore_mana(character, item.mana_amount)
        return copy.deepcopy(character)

    def equip_weapon(self, character_id: int, item_id: Optional[str]) -> Character:
        with self._character_transaction(character_id) as (character, _pending):
            if item_id is None:
                character.equipped_weapon_id = None
            else:
                item = self._require_item(item_id)
                if not item.is_weapon:
                    raise ValidationError(f"{item.name} is not a weapon")
                if character.inventory.get(item_id, 0) < 1:
                    raise ValidationError(f"{character.name} does not carry {item.name}")
                character.equipped_weapon_id = item_id
        return copy.deepcopy(character)

    def equip_armor(self, character_id: int, item_id: Optional[str]) -> Character:
        with self._character_transaction(character_id) as (character, _pending):
            if item_id is None:
                character.equipped_armor_id = None
            else:
                item = self._require_item(item_id)
                if not item.is_armor:
                    raise ValidationError(f"{item.name} is not armor")
                if character.inventory.get(item_id, 0) < 1:
                    raise ValidationError(f"{character.name} does not carry {item.name}")
                character.equipped_armor_id = item_id
            self.progression_service.recalculate_armor_class(character, self._armor_bonus_for(character))
        return copy.deepcopy(character)

    # -- world --------------------------------------------------------------------

    def visible_pois(self, character_id: int) -> list[PointOfInterest]:
        character = self._require_character(character_id)
        if character.position is None:
            return []
        now = self.clock()
        pois = self.world_service.generate_pois(*character.position, monster_ids=self._monster_ids())
        return filter_interactable(pois, lambda poi: self.interaction_repo.can_interact(int(character.id), poi.id, now))

    def explore(self, character_id: int, latitude: float, longitude: float) -> ExploreResult:
        lat_index, lng_index = self.world_service.tile_of(latitude, longitude)
        with self._character_transaction(character_id) as (character, pending):
            if character_id in self._combats:
                raise ValidationError("Finish the current fight before moving on")
            if character_id in self._dungeons:
                raise ValidationError("Leave the dungeon before travelling")
            character.latitude = float(latitude)
            character.longitude = float(longitude)
            character.travel_steps += 1
            result = ExploreResult(latitude=character.latitude, longitude=character.longitude)

            rng = self.encounter_service.rng_for_step(character.id, lat_index, lng_index, character.travel_steps)
            encounter = self.encounter_service.roll_travel_encounter(rng, character.level, self.monster_repo.list_all())
            result.encounter = encounter
            if encounter is not None:
                result.messages.append(encounter.message)
                self._apply_travel_encounter(character, pending, encounter, result)

        now = self.clock()
        pois = self.world_service.generate_pois(latitude, longitude, monster_ids=self._monster_ids())
        result.pois = filter_interactable(pois, lambda poi: self.interaction_repo.can_interact(int(character_id), poi.id, now))
        return result

    def _apply_travel_encounter(self, character: Character, pending: _Pending, encounter, result: ExploreResult) -> None:
        if encounter.kind == TravelEncounterKind.TREASURE.value:
            self.progression_service.add_gold(character, encounter.gold)
            self._grant_experience(character, pending, encounter.experience)
        elif encounter.kind == TravelEncounterKind.TRAP.value:
            self.progression_service.apply_damage(character, encounter.damage)
            if character.current_health <= 0:
                self._kill(character, pending, f"Killed by a {encounter.trap_name}")
                result.messages.append(f"{character.name} has fallen.")
        elif encounter.kind == TravelEncounterKind.BATTLE.value:
            template = self.monster_repo.get(str(encounter.monster_id))
            if template is None:
                raise NotFoundError("monster", encounter.monster_id)
            monster = instantiate(template, character.level, encounter.tier)
            state = self.combat_service.start(
                character,
                monster,
                encounter_id=f"travel:{character.id}:{character.travel_steps}",
                weapon=self._weapon_for(character),
            )
            pending.combat = _ActiveCombat(state=state)

    def collect_treasure(self, character_id: int, poi_id: str) -> int:
        with self._character_transaction(character_id) as (character, pending):
            poi = self._locate_poi(character, poi_id)
            if poi.poi_type != PoiType.TREASURE.value:
                raise ValidationError(f"{poi.name} holds no treasure")
            self._require_interactable(character, poi)
            gold = int(poi.payload.get("gold", 0))
            self.progression_service.add_gold(character, gold)
            pending.interactions.append(self._interaction_for(character, poi, InteractionType.COLLECTED))
        return gold

    def record_poi_interaction(self, character_id: int, poi_id: str, interaction_type: str) -> PoiInteraction:
        with self._character_transaction(character_id) as (character, pending):
            poi = self._locate_poi(character, poi_id)
            interaction = self._interaction_for(character, poi, interaction_type)
            pending.interactions.append(interaction)
        return interaction

    # -- shops --------------------------------------------------------------------

    def shop_inventory(self, character_id: int, poi_id: str) -> list[ShopOffer]:
        character = self._require_character(character_id)
        poi = self._locate_poi(character, poi_id)
        sold = self._shop_sales.get((character_id, poi.id), {})
        return self.shop_service.offers(poi, self.item_repo.get, sold)

    def purchase(self, character_id: int, poi_id: str, item_id: str, quantity: int = 1) -> PurchaseReceipt:
        with self._character_transaction(character_id) as (character, pending):
            poi = self._locate_poi(character, poi_id)
            item = self._require_item(item_id)
            sold = dict(self._shop_sales.get((character_id, poi.id), {}))
            total = self.shop_service.sell(poi, item, quantity, sold)
            self.progression_service.spend_gold(character, total)
            self.loot_service.add_items(character.inventory, item.id, quantity)
            pending.interactions.append(self._interaction_for(character, poi, InteractionType.PURCHASED))
            pending.shop_sales[poi.id] = sold
            remaining = self.shop_service.stock_for(poi)[item.id] - sold[item.id]
        logger.info(
            "Item purchased",
            extra={"character_id": character_id, "poi_id": poi.id, "item_id": item.id, "quantity": quantity, "total_price": total},
        )
        return PurchaseReceipt(
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            total_price=total,
            gold_remaining=character.gold,
            stock_remaining=remaining,
        )

    # -- combat -------------------------------------------------------------------

    def _encounter_view(self, state: CombatState, character: Character) -> EncounterView:
        dexterity = character.attributes["dexterity"]
        return EncounterView(
            encounter_id=state.encounter_id,
            monster=copy.deepcopy(state.defender),
            hit_chance=calculate_hit_chance(dexterity, state.defender.armor),
            flee_chance=calculate_flee_chance(dexterity, state.defender.level, character.level),
        )

    def active_encounter(self, character_id: int) -> Optional[EncounterView]:
        active = self._combats.get(character_id)
        if active is None:
            return None
        return self._encounter_view(active.state, self._require_character(character_id))

    def start_encounter(self, character_id: int, poi_id: str) -> EncounterView:
        with self._lock_for(character_id):
            if character_id in self._combats:
                raise ValidationError("Already in combat")
            character = self._require_character(character_id)
            if character.is_dead:
                raise ValidationError(f"{character.name} is dead")
            poi = self._locate_poi(character, poi_id)
            if poi.poi_type != PoiType.MONSTER.value:
                raise ValidationError(f"{poi.name} is not hostile")
            self._require_interactable(character, poi)
            monster_id = poi.payload.get("monster_id")
            template = self.monster_repo.get(str(monster_id)) if monster_id is not None else None
            if template is None:
                raise NotFoundError("monster", monster_id)
            monster = instantiate(template, character.level, poi.tier)
            state = self.combat_service.start(
                character,
                monster,
                encounter_id=f"{poi.id}:{character.travel_steps}",
                weapon=self._weapon_for(character),
                source_poi_id=poi.id,
            )
            self._combats[character_id] = _ActiveCombat(state=state, poi=poi)
        return self._encounter_view(state, character)

    def _require_combat(self, character_id: int) -> _ActiveCombat:
        active = self._combats.get(character_id)
        if active is None:
            raise NotFoundError("encounter", character_id)
        return active

    def attack(self, character_id: int) -> AttackView:
        with self._character_transaction(character_id) as (character, pending):
            active = copy.deepcopy(self._require_combat(character_id))
            self.combat_service.sync_attacker(active.state, character, self._weapon_for(character))
            exchange = self.combat_service.resolve_exchange(active.state)
            self.progression_service.apply_damage(character, exchange.damage_taken)
            view = AttackView(exchange=exchange)

            if exchange.outcome is CombatOutcome.VICTORY:
                view.messages.append(f"{active.state.defender.name} was defeated!")
                view.rewards = self._resolve_victory(character, pending, active)
                pending.combat = None
            elif exchange.outcome is CombatOutcome.DEFEAT:
                view.messages.append(f"{character.name} was slain by {active.state.defender.name}.")
                self._kill(character, pending, f"Slain by {active.state.defender.name}")
            else:
                pending.combat = active
        return view

    def _resolve_victory(self, character: Character, pending: _Pending, active: _ActiveCombat) -> RewardSummary:
        monster: MonsterInstance = active.state.defender
        pending.events.append(
            MonsterSlain(
                monster_id=monster.template_id,
                by_character_id=int(character.id),
                monster_level=monster.level,
                tier=monster.tier,
                poi_id=active.poi.id if active.poi is not None else None,
            )
        )
        if active.in_dungeon:
            run = copy.deepcopy(self._require_dungeon(int(character.id)))
            self.dungeon_service.defeat_occupant(run)
            pending.dungeon = run
            return RewardSummary()

        rng = derive_rng(
            "loot.drop",
            {"character_id": character.id, "encounter_id": active.state.encounter_id},
        )
        awards = self.loot_service.resolve(monster.loot_table, monster.tier, rng)
        for award in awards:
            self.loot_service.add_items(character.inventory, award.item_id, award.quantity)
            pending.events.append(LootAwardedEvent(int(character.id), award.item_id, award.quantity))
        self.progression_service.add_gold(character, monster.gold_reward)
        level_up = self._grant_experience(character, pending, monster.experience_reward)
        if active.poi is not None:
            pending.interactions.append(self._interaction_for(character, active.poi, InteractionType.DEFEATED))
        return RewardSummary(
            experience=monster.experience_reward,
            gold=monster.gold_reward,
            loot=awards,
            level_up=level_up,
        )

    def flee(self, character_id: int) -> FleeView:
        with self._character_transaction(character_id) as (character, pending):
            active = copy.deepcopy(self._require_combat(character_id))
            self.combat_service.sync_attacker(active.state, character, self._weapon_for(character))
            result = self.combat_service.attempt_flee(active.state)
            self.progression_service.apply_damage(character, result.damage_taken)
            view = FleeView(result=result)
            if result.outcome is CombatOutcome.FLED:
                view.messages.append(f"{character.name} escaped.")
                pending.combat = None
                if active.in_dungeon:
                    # Escaping a dungeon fight means leaving the dungeon.
                    pending.dungeon = None
            elif result.outcome is CombatOutcome.DEFEAT:
                self._kill(character, pending, f"Slain by {active.state.defender.name} while fleeing")
            else:
                view.messages.append(f"Failed to escape and took {result.damage_taken} damage.")
                pending.combat = active
        return view

    # -- dungeons -----------------------------------------------------------------

    def _dungeon_view(self, run: DungeonRun, character: Character, entry=None, messages=None) -> DungeonView:
        return DungeonView(
            name=run.name,
            difficulty=run.difficulty,
            current_floor=run.current_floor,
            total_floors=run.total_floors,
            floor=run.floor.view(),
            health=character.current_health,
            gold_collected=run.gold_collected,
            kills=run.kills,
            cleared=run.cleared,
            last_entry=entry,
            messages=list(messages or []),
        )

    def _require_dungeon(self, character_id: int) -> DungeonRun:
        run = self._dungeons.get(character_id)
        if run is None:
            raise NotFoundError("dungeon run", character_id)
        return run

    def start_dungeon(self, character_id: int, poi_id: str) -> DungeonView:
        with self._lock_for(character_id):
            if character_id in self._dungeons:
                raise ValidationError("Already inside a dungeon")
            character = self._require_character(character_id)
            if character.is_dead:
                raise ValidationError(f"{character.name} is dead")
            poi = self._locate_poi(character, poi_id)
            if poi.poi_type not in (PoiType.DUNGEON.value, PoiType.CASTLE.value):
                raise ValidationError(f"{poi.name} has no dungeon")
            self._require_interactable(character, poi)
            run = self.dungeon_service.start_run(
                seed=derive_seed("dungeon.run", {"poi_id": poi.id}),
                difficulty=str(poi.payload.get("difficulty", "normal")),
                total_floors=int(poi.payload.get("total_floors", 1)),
                character_id=character_id,
                name=poi.name,
                poi_id=poi.id,
            )
            self._dungeons[character_id] = run
        return self._dungeon_view(run, character, messages=[f"You enter {poi.name}."])

    def dungeon_view(self, character_id: int) -> DungeonView:
        character = self._require_character(character_id)
        return self._dungeon_view(self._require_dungeon(character_id), character)

    def move_in_dungeon(self, character_id: int, dx: int, dy: int) -> DungeonView:
        with self._character_transaction(character_id) as (character, pending):
            if character_id in self._combats:
                raise ValidationError("Finish the current fight before moving on")
            run = copy.deepcopy(self._require_dungeon(character_id))
            entry = self.dungeon_service.move(run, dx, dy)
            pending.dungeon = run
            messages: list[str] = []
            if entry.event == "trap":
                self.progression_service.apply_damage(character, entry.trap_damage)
                messages.append(f"A trap deals {entry.trap_damage} damage!")
                if character.current_health <= 0:
                    self._kill(character, pending, f"Killed by a trap in {run.name}")
            elif entry.event == "treasure":
                messages.append(f"You found {entry.gold} gold!")
            elif entry.event == "encounter":
                monster = self.dungeon_service.occupant_instance(run)
                state = self.combat_service.start(
                    character,
                    monster,
                    encounter_id=monster.template_id,
                    weapon=self._weapon_for(character),
                )
                pending.combat = _ActiveCombat(state=state, in_dungeon=True)
                messages.append(f"You encounter {monster.name}!")
        return self._dungeon_view(run, character, entry, messages)

    def change_floor(self, character_id: int) -> DungeonView:
        with self._lock_for(character_id):
            character = self._require_character(character_id)
            run = copy.deepcopy(self._require_dungeon(character_id))
            self.dungeon_service.change_floor(run)
            self._dungeons[character_id] = run
        return self._dungeon_view(run, character, messages=[f"Floor {run.current_floor} of {run.total_floors}."])

    def leave_dungeon(self, character_id: int) -> None:
        with self._lock_for(character_id):
            active = self._combats.get(character_id)
            if active is not None and active.in_dungeon:
                raise ValidationError("Cannot leave while fighting")
            self._dungeons.pop(character_id, None)

    def complete_dungeon(self, character_id: int) -> RewardSummary:
        with self._character_transaction(character_id) as (character, pending):
            run = self._require_dungeon(character_id)
            gold, experience = self.dungeon_service.completion_rewards(run)
            self.progression_service.add_gold(character, gold)
            level_up = self._grant_experience(character, pending, experience)
            if run.poi_id is not None:
                poi = self._locate_poi(character, run.poi_id)
                pending.interactions.append(self._interaction_for(character, poi, InteractionType.COMPLETED))
            pending.events.append(
                DungeonClearedEvent(
                    character_id=int(character.id),
                    seed=run.seed,
                    total_floors=run.total_floors,
                    gold_reward=gold,
                    experience_reward=experience,
                )
            )
            pending.dungeon = None
        logger.info("Dungeon cleared", extra={"character_id": character_id, "seed": run.seed})
        return RewardSummary(experience=experience, gold=gold, level_up=level_up)
