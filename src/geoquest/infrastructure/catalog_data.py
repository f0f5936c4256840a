"""Default monster and item content used by the in-memory repositories and the schema seeder."""

from __future__ import annotations

from typing import Dict, Tuple

from geoquest.domain.models.loot import ItemTemplate, ItemType, LootEntry
from geoquest.domain.models.monster import MonsterTemplate, Tier


DEFAULT_ITEMS: Tuple[ItemTemplate, ...] = (
    ItemTemplate("short_sword", "Short Sword", ItemType.WEAPON.value, "common", damage_min=4, damage_max=8, value=50,
                 description="A simple but reliable blade."),
    ItemTemplate("arcane_staff", "Arcane Staff", ItemType.WEAPON.value, "common", damage_min=3, damage_max=6, value=60,
                 description="A staff humming with magical energy."),
    ItemTemplate("keen_dagger", "Keen Dagger", ItemType.WEAPON.value, "common", damage_min=2, damage_max=6, value=40,
                 description="Made for quick strikes."),
    ItemTemplate("longbow", "Longbow", ItemType.WEAPON.value, "common", damage_min=4, damage_max=10, value=80,
                 description="For attacks at range."),
    ItemTemplate("longsword", "Longsword", ItemType.WEAPON.value, "uncommon", damage_min=5, damage_max=10, value=120,
                 description="A well balanced knightly sword."),
    ItemTemplate("war_hammer", "War Hammer", ItemType.WEAPON.value, "uncommon", damage_min=6, damage_max=12, value=150,
                 description="Heavy and devastating."),
    ItemTemplate("flame_blade", "Flame Blade", ItemType.WEAPON.value, "rare", damage_min=8, damage_max=16, value=500,
                 description="A sword wrapped in undying fire."),
    ItemTemplate("leather_armor", "Leather Armor", ItemType.ARMOR.value, "common", armor_bonus=2, value=40),
    ItemTemplate("chain_mail", "Chain Mail", ItemType.ARMOR.value, "uncommon", armor_bonus=4, value=200),
    ItemTemplate("plate_armor", "Plate Armor", ItemType.ARMOR.value, "rare", armor_bonus=6, value=600),
    ItemTemplate("minor_healing_potion", "Minor Healing Potion", ItemType.POTION.value, "common", heal_amount=25,
                 value=15, description="Restores 25 health."),
    ItemTemplate("healing_potion", "Healing Potion", ItemType.POTION.value, "uncommon", heal_amount=50, value=35,
                 description="Restores 50 health."),
    ItemTemplate("greater_healing_potion", "Greater Healing Potion", ItemType.POTION.value, "rare", heal_amount=100,
                 value=80, description="Restores 100 health."),
    ItemTemplate("minor_mana_potion", "Minor Mana Potion", ItemType.POTION.value, "common", mana_amount=20, value=20,
                 description="Restores 20 mana."),
    ItemTemplate("mana_potion", "Mana Potion", ItemType.POTION.value, "uncommon", mana_amount=40, value=45,
                 description="Restores 40 mana."),
    ItemTemplate("wolf_pelt", "Wolf Pelt", ItemType.MATERIAL.value, "common", value=6),
    ItemTemplate("bone_fragment", "Bone Fragment", ItemType.MATERIAL.value, "common", value=2),
    ItemTemplate("spider_silk", "Spider Silk", ItemType.MATERIAL.value, "common", value=8),
    ItemTemplate("troll_hide", "Troll Hide", ItemType.MATERIAL.value, "uncommon", value=40),
    ItemTemplate("elemental_core", "Elemental Core", ItemType.MATERIAL.value, "rare", value=120),
    ItemTemplate("dragon_scale", "Dragon Scale", ItemType.MATERIAL.value, "epic", value=600),
)

_HUMANOID_LOOT = (LootEntry("minor_healing_potion", 0.25), LootEntry("keen_dagger", 0.05))
_UNDEAD_LOOT = (LootEntry("bone_fragment", 0.6), LootEntry("minor_mana_potion", 0.1))
_BEAST_LOOT = (LootEntry("wolf_pelt", 0.4),)
_ELEMENTAL_LOOT = (LootEntry("elemental_core", 0.35), LootEntry("mana_potion", 0.2))


def _monster(
    monster_id: str,
    name: str,
    monster_type: str,
    tier: Tier,
    base_level: int,
    health: int,
    damage: int,
    armor: int,
    experience: int,
    gold: int,
    biome: str,
    loot: Tuple[LootEntry, ...] = (),
) -> MonsterTemplate:
    return MonsterTemplate(
        id=monster_id,
        name=name,
        monster_type=monster_type,
        tier=tier.value,
        base_level=base_level,
        health=health,
        damage=damage,
        armor=armor,
        loot_table=loot,
        experience_reward=experience,
        gold_reward=gold,
        biome=biome,
    )


DEFAULT_MONSTERS: Tuple[MonsterTemplate, ...] = (
    _monster("rat", "Rat", "beast", Tier.COMMON, 1, 1, 1, 10, 10, 1, "urban"),
    _monster("kobold", "Kobold", "humanoid", Tier.COMMON, 1, 5, 4, 12, 25, 5, "mountain", _HUMANOID_LOOT),
    _monster("bandit", "Bandit", "humanoid", Tier.COMMON, 1, 11, 4, 12, 25, 10, "forest", _HUMANOID_LOOT),
    _monster("goblin", "Goblin", "humanoid", Tier.COMMON, 1, 7, 5, 15, 50, 8, "forest", _HUMANOID_LOOT),
    _monster("skeleton", "Skeleton", "undead", Tier.COMMON, 1, 13, 5, 13, 50, 5, "urban", _UNDEAD_LOOT),
    _monster("zombie", "Zombie", "undead", Tier.COMMON, 1, 22, 4, 8, 50, 3, "urban", _UNDEAD_LOOT),
    _monster("wolf", "Wolf", "beast", Tier.COMMON, 1, 11, 7, 13, 50, 5, "forest", _BEAST_LOOT),
    _monster("giant_spider", "Giant Spider", "beast", Tier.COMMON, 2, 26, 7, 14, 50, 10, "forest",
             (LootEntry("spider_silk", 0.5),)),
    _monster("orc", "Orc", "humanoid", Tier.COMMON, 2, 15, 9, 13, 100, 15, "mountain", _HUMANOID_LOOT),
    _monster("gnoll", "Gnoll", "humanoid", Tier.COMMON, 2, 22, 8, 15, 100, 12, "plains", _HUMANOID_LOOT),
    _monster("dire_wolf", "Dire Wolf", "beast", Tier.COMMON, 2, 37, 10, 14, 100, 15, "forest",
             (LootEntry("wolf_pelt", 0.7),)),
    _monster("ghoul", "Ghoul", "undead", Tier.COMMON, 3, 22, 9, 12, 200, 20, "urban", _UNDEAD_LOOT),
    _monster("bugbear", "Bugbear", "humanoid", Tier.ELITE, 3, 27, 11, 16, 200, 25, "forest",
             (LootEntry("healing_potion", 0.2), LootEntry("short_sword", 0.1))),
    _monster("ogre", "Ogre", "humanoid", Tier.ELITE, 4, 59, 13, 11, 450, 40, "mountain",
             (LootEntry("war_hammer", 0.08), LootEntry("healing_potion", 0.2))),
    _monster("mimic", "Mimic", "aberration", Tier.COMMON, 4, 58, 7, 12, 450, 150, "urban",
             (LootEntry("healing_potion", 0.3),)),
    _monster("werewolf", "Werewolf", "humanoid", Tier.ELITE, 5, 58, 11, 12, 700, 80, "forest", _BEAST_LOOT),
    _monster("troll", "Troll", "humanoid", Tier.ELITE, 6, 84, 14, 15, 1100, 100, "forest",
             (LootEntry("troll_hide", 0.5), LootEntry("healing_potion", 0.25))),
    _monster("fire_elemental", "Fire Elemental", "elemental", Tier.ELITE, 7, 102, 14, 13, 1800, 150, "desert",
             _ELEMENTAL_LOOT),
    _monster("earth_elemental", "Earth Elemental", "elemental", Tier.ELITE, 7, 126, 14, 17, 1800, 150, "mountain",
             _ELEMENTAL_LOOT),
    _monster("wyvern", "Wyvern", "dragon", Tier.BOSS, 8, 110, 13, 13, 2300, 300, "mountain",
             (LootEntry("dragon_scale", 0.15), LootEntry("greater_healing_potion", 0.2))),
    _monster("hill_giant", "Hill Giant", "humanoid", Tier.BOSS, 9, 105, 18, 13, 2900, 400, "mountain",
             (LootEntry("plate_armor", 0.05), LootEntry("greater_healing_potion", 0.2))),
    _monster("hydra", "Hydra", "beast", Tier.BOSS, 10, 172, 10, 15, 3900, 700, "water",
             (LootEntry("greater_healing_potion", 0.3),)),
    _monster("young_red_dragon", "Young Red Dragon", "dragon", Tier.LEGENDARY, 12, 178, 22, 18, 5900, 2000,
             "mountain", (LootEntry("dragon_scale", 0.6), LootEntry("flame_blade", 0.1))),
)


def items_by_id() -> Dict[str, ItemTemplate]:
    return {item.id: item for item in DEFAULT_ITEMS}


def monsters_by_id() -> Dict[str, MonsterTemplate]:
    return {monster.id: monster for monster in DEFAULT_MONSTERS}
