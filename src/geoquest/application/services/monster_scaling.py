from __future__ import annotations

import math
from typing import Optional

from geoquest.application.services.balance_tables import (
    MONSTER_ARMOR_PER_LEVEL,
    MONSTER_LEVEL_SCALE,
    REWARD_LEVEL_SCALE,
)
from geoquest.domain.errors import ValidationError
from geoquest.domain.models.monster import MonsterInstance, MonsterTemplate, ScaledStats, Tier, tier_profile


def scale_monster_stats(
    base_health: int,
    base_damage: int,
    base_armor: int,
    base_level: int,
    player_level: int,
    tier: "str | Tier" = Tier.COMMON,
) -> ScaledStats:
    if base_level < 1 or player_level < 1:
        raise ValidationError("Levels must be at least 1")
    profile = tier_profile(tier)
    level_diff = max(0, int(player_level) - int(base_level))
    factor = 1 + MONSTER_LEVEL_SCALE * level_diff
    # Armor grows with level only; tiers never touch it.
    return ScaledStats(
        health=math.floor(base_health * factor * profile.health_multiplier),
        damage=math.floor(base_damage * factor * profile.damage_multiplier),
        armor=math.floor(base_armor + level_diff * MONSTER_ARMOR_PER_LEVEL),
        level=int(base_level) + level_diff,
    )


def scale_rewards(base_xp: int, base_gold: int, monster_level: int, tier: "str | Tier" = Tier.COMMON) -> tuple[int, int]:
    multiplier = (1 + monster_level * REWARD_LEVEL_SCALE) * tier_profile(tier).reward_multiplier
    return math.floor(base_xp * multiplier), math.floor(base_gold * multiplier)


def instantiate(template: MonsterTemplate, player_level: int, tier: "Optional[str | Tier]" = None) -> MonsterInstance:
    resolved = Tier.normalize(tier if tier is not None else template.tier)
    stats = scale_monster_stats(
        template.health,
        template.damage,
        template.armor,
        template.base_level,
        player_level,
        resolved,
    )
    xp, gold = scale_rewards(template.experience_reward, template.gold_reward, stats.level, resolved)
    return MonsterInstance(
        template_id=template.id,
        name=template.name,
        tier=resolved.value,
        level=stats.level,
        max_health=stats.health,
        current_health=stats.health,
        damage=stats.damage,
        armor=stats.armor,
        experience_reward=xp,
        gold_reward=gold,
        loot_table=tuple(template.loot_table),
    )
