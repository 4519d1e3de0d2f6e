"""Abilities, attributes and the data carried by attack, damage and heal messages."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


@dataclass
class Ability:
    """A counted ability: enabled while its effective value is positive."""

    original: int = 0
    effective: int = 0

    def set_original(self, value: int) -> None:
        """Change the original value, shifting the effective one by the same amount."""
        self.effective += value - self.original
        self.original = value

    def is_abled(self) -> bool:
        return self.effective > 0

    @property
    def value(self) -> int:
        return self.effective


@dataclass
class Attribute:
    """A numeric attribute with its original value, bounds and effective value."""

    original: float = 0.0
    minimum: float = 0.0
    maximum: float = 4294967296.0
    effective: float = 0.0


class DamageType(IntEnum):
    NORMAL = 0  # Physical damage, reduced by defence.
    MAGICAL = 1  # Magical damage, reduced by resistance.
    DIRECT = 2  # True damage.


@dataclass
class DamageData:
    """Damage dealt to an entity; ``min_value`` is the minimum ratio applied."""

    type: DamageType = DamageType.NORMAL
    dmg_value: float = 0.0
    min_value: float = 0.05


class DistanceType(IntEnum):
    NEAR = 0
    REMOTE = 1


@dataclass
class AttackData:
    """An attack: its range, its damage and a weak reference to its source."""

    dist_type: DistanceType = DistanceType.NEAR
    damage: DamageData = field(default_factory=DamageData)
    source: Optional[weakref.ReferenceType] = None

    @property
    def source_entity(self):
        """The attacking entity, or None if it is gone or unknown."""
        return self.source() if self.source is not None else None


@dataclass
class HealData:
    heal_value: float = 0.0