from dataclasses import dataclass, field
from typing import Dict, Optional

from geoquest.domain.errors import InvariantViolation
from geoquest.domain.models.character_class import CharacterClass
from geoquest.domain.models.stats import ATTRIBUTE_NAMES, AbilityScores, normalize_attribute


DEFAULT_ATTRIBUTES: Dict[str, int] = {name: 10 for name in ATTRIBUTE_NAMES}


@dataclass
class Character:
    id: Optional[int]
    name: str
    character_class: str = CharacterClass.WARRIOR.value
    level: int = 1
    experience: int = 0
    experience_to_next_level: int = 300
    attributes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ATTRIBUTES))
    current_health: int = 24
    max_health: int = 24
    current_mana: int = 8
    max_mana: int = 8
    armor_class: int = 10
    gold: int = 100
    available_stat_points: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    travel_steps: int = 0
    inventory: Dict[str, int] = field(default_factory=dict)
    equipped_weapon_id: Optional[str] = None
    equipped_armor_id: Optional[str] = None
    is_dead: bool = False
    death_cause: Optional[str] = None

    def __post_init__(self) -> None:
        self.character_class = CharacterClass.normalize(self.character_class).value
        normalized = dict(DEFAULT_ATTRIBUTES)
        for raw_key, raw_value in (self.attributes or {}).items():
            normalized[normalize_attribute(raw_key)] = int(raw_value)
        self.attributes = normalized
        self.inventory = {str(key): int(qty) for key, qty in (self.inventory or {}).items() if int(qty) > 0}

    @property
    def scores(self) -> AbilityScores:
        return AbilityScores(**self.attributes)

    @property
    def position(self) -> Optional[tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def check_invariants(self) -> None:
        if not 0 <= self.current_health <= self.max_health:
            raise InvariantViolation(
                f"Character {self.id} health {self.current_health} outside [0, {self.max_health}]"
            )
        if not 0 <= self.current_mana <= self.max_mana:
            raise InvariantViolation(
                f"Character {self.id} mana {self.current_mana} outside [0, {self.max_mana}]"
            )
        if self.gold < 0:
            raise InvariantViolation(f"Character {self.id} has negative gold {self.gold}")
        if self.available_stat_points < 0:
            raise InvariantViolation(f"Character {self.id} has negative stat points")
        if any(value < 1 for value in self.attributes.values()):
            raise InvariantViolation(f"Character {self.id} has an attribute below 1")
