from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Value types used by the sample records."""

__all__ = [
    "GuildType",
    "ItemRarity",
    "ItemStats",
]


class GuildType(Enum):
    Casual = "casual"
    Competitive = "competitive"
    Roleplay = "roleplay"
    Social = "social"


class ItemRarity(Enum):
    Common = 1
    Uncommon = 2
    Rare = 3
    Epic = 4
    Legendary = 5


@dataclass(frozen=True)
class ItemStats:
    attack: int = 0
    defense: int = 0
    speed: int = 0
    crit_chance: float = 0.0

    def __str__(self) -> str:
        return (
            f"ATK:{self.attack} DEF:{self.defense} SPD:{self.speed} "
            f"CRIT:{self.crit_chance:.1%}"
        )
