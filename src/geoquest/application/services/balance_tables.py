from __future__ import annotations


XP_TABLE: tuple[int, ...] = (
    0,
    300,
    900,
    2700,
    6500,
    14000,
    23000,
    34000,
    48000,
    64000,
    85000,
    100000,
    120000,
    140000,
    165000,
    195000,
    225000,
    265000,
    305000,
    355000,
)
LEVEL_CAP = 20
STAT_POINTS_PER_LEVEL = 2
STARTING_GOLD = 100

BASE_HIT_CHANCE = 0.65
HIT_CHANCE_PER_POINT = 0.02
HIT_CHANCE_MIN = 0.05
HIT_CHANCE_MAX = 0.95
CRITICAL_ROLL = 20
FUMBLE_ROLL = 1
CRITICAL_MULTIPLIER = 2
UNARMED_DAMAGE = 5

FLEE_BASE_CHANCE = 0.4
FLEE_DEXTERITY_BONUS = 0.02
FLEE_LEVEL_PENALTY = 0.05
FLEE_CHANCE_MIN = 0.1
FLEE_CHANCE_MAX = 0.8
FLEE_FAILURE_DAMAGE_RATIO = 0.5

MONSTER_LEVEL_SCALE = 0.1
MONSTER_ARMOR_PER_LEVEL = 0.5
REWARD_LEVEL_SCALE = 0.1

POI_TILE_SIZE = 0.0001
POI_VISIBLE_TILES = 30
POI_EXISTENCE_CHANCE = 0.15

# Upper bounds of the cumulative type roll; the last type is the fallback.
POI_TYPE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.25, "monster"),
    (0.35, "treasure"),
    (0.42, "shop"),
    (0.50, "npc"),
    (0.57, "dungeon"),
    (0.62, "guild"),
    (0.68, "castle"),
    (0.73, "city"),
    (0.80, "tavern"),
    (0.85, "temple"),
    (0.90, "blacksmith"),
    (0.95, "magic_shop"),
)
POI_FALLBACK_TYPE = "quest"

# Lower bounds (exclusive) of the tier roll, highest first.
TIER_BANDS: tuple[tuple[float, str], ...] = (
    (0.95, "legendary"),
    (0.85, "boss"),
    (0.65, "elite"),
)
DEFAULT_TIER = "common"

TIER_DUNGEON_DIFFICULTY = {
    "common": "easy",
    "elite": "normal",
    "boss": "hard",
    "legendary": "nightmare",
}
TREASURE_GOLD_MIN = 10
TREASURE_GOLD_SPREAD = 50
DUNGEON_MAX_FLOORS = 5

TRAVEL_ENCOUNTER_CHANCE = 0.15
TRAVEL_ENCOUNTER_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("battle", 50),
    ("treasure", 20),
    ("trap", 15),
    ("merchant", 10),
    ("event", 5),
)
# name -> (base damage, damage per character level)
TRAP_TABLE: tuple[tuple[str, int, int], ...] = (
    ("Spike Trap", 5, 2),
    ("Fire Trap", 8, 2),
    ("Poison Trap", 4, 1),
    ("Pit Trap", 10, 3),
)
MERCHANT_DISCOUNT_MIN = 5
MERCHANT_DISCOUNT_MAX = 24

DUNGEON_BASE_SIZE = 5
DUNGEON_MONSTER_THRESHOLD = 0.25
DUNGEON_TREASURE_THRESHOLD = 0.35
DUNGEON_TRAP_THRESHOLD = 0.45
DUNGEON_BOSS_GOLD_PER_LEVEL = 50
DUNGEON_XP_PER_FLOOR = 100
DUNGEON_XP_PER_KILL = 25


def xp_for_level(level: int) -> int:
    if level < 1:
        return 0
    if level > len(XP_TABLE):
        return XP_TABLE[-1]
    return XP_TABLE[level - 1]


def level_from_xp(experience: int) -> int:
    level = 1
    for index, threshold in enumerate(XP_TABLE):
        if experience >= threshold:
            level = index + 1
        else:
            break
    return level


def experience_to_next_level(level: int) -> int:
    if level >= LEVEL_CAP:
        return XP_TABLE[-1]
    return XP_TABLE[level]


def clamp(lower: float, upper: float, value: float) -> float:
    return max(lower, min(upper, value))

# Minutes before a POI can be interacted with again; None means it never returns.
POI_RESPAWN_MINUTES = {
    "monster": 60,
    "dungeon": 1440,
    "castle": 1440,
    "treasure": None,
}

# Shop stock lists: catalog name -> ((item id, stock), ...). Prices come from the item value.
SHOP_CATALOGS: dict[str, tuple[tuple[str, int], ...]] = {
    "merchant": (
        ("short_sword", 5),
        ("keen_dagger", 5),
        ("leather_armor", 3),
        ("minor_healing_potion", 10),
        ("minor_mana_potion", 10),
    ),
    "blacksmith": (
        ("longsword", 3),
        ("war_hammer", 2),
        ("longbow", 3),
        ("flame_blade", 1),
        ("chain_mail", 2),
        ("plate_armor", 1),
    ),
    "alchemist": (
        ("minor_healing_potion", 15),
        ("healing_potion", 10),
        ("greater_healing_potion", 5),
        ("minor_mana_potion", 15),
        ("mana_potion", 10),
        ("arcane_staff", 2),
    ),
}

# POI type -> catalogs it may carry; a general shop picks one from its POI seed.
SHOP_POI_CATALOGS: dict[str, tuple[str, ...]] = {
    "shop": ("merchant", "blacksmith", "alchemist"),
    "blacksmith": ("blacksmith",),
    "magic_shop": ("alchemist",),
}
