from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..models.composites import Color, Vector3
from ..models.field_mapping import ValidationRule
from ..schema.fields import column, ignore, relation
from ..schema.record import Record
from .converters import ItemStatsConverter
from .definitions import GuildType, ItemRarity, ItemStats

"""Sample records for the bundled game data in samples/data/.

    guilds.csv      id,name,leader_id,member_count,guild_type
    items.csv       item_id,name,rarity,stats,color,owner_id,tags
    characters.csv  character_id,name,level,guild_id,position,equipment_ids

Characters resolve their guild eagerly and their inventory lazily
(``character.related("inventory")``).
"""

__all__ = [
    "DATA_DIRECTORY",
    "CharacterRecord",
    "GuildRecord",
    "ItemRecord",
]

logger = logging.getLogger(__name__)

DATA_DIRECTORY = Path(__file__).with_name("data")


@dataclass
class GuildRecord(Record):
    table_name = "guilds.csv"

    id: int = column("id")
    name: str = column("name", validation=ValidationRule(required=True))
    leader_id: int = column("leader_id")
    member_count: int = column("member_count", validation=ValidationRule(minimum=0))
    guild_type: GuildType = column("guild_type")

    def validate_data(self) -> bool:
        return self.id > 0 and bool(self.name)


@dataclass
class ItemRecord(Record):
    table_name = "items.csv"

    id: int = column("item_id")
    name: str = column("name", validation=ValidationRule(required=True))
    rarity: ItemRarity = column("rarity")
    color: Color = column("color", auto_convert=True)
    stats: ItemStats | None = column("stats", optional=True, converter=ItemStatsConverter, default=None)
    owner_id: int = column("owner_id", optional=True, default=0)
    tags: list[str] = column("tags", optional=True, auto_convert=True, default_factory=list)

    def on_data_loaded(self) -> None:
        if not self.tags:
            self.tags = ["misc"]
        logger.debug("item %s loaded (%s) %s", self.name, self.rarity.name, self.stats or "")

    def validate_data(self) -> bool:
        return self.id > 0 and bool(self.name)


@dataclass
class CharacterRecord(Record):
    table_name = "characters.csv"

    id: int = column("character_id")
    name: str = column("name", validation=ValidationRule(required=True))
    level: int = column("level", validation=ValidationRule(minimum=1, maximum=100))
    guild_id: int = column("guild_id")
    position: Vector3 = column("position", auto_convert=True)
    equipment_ids: list[int] = column(
        "equipment_ids", optional=True, auto_convert=True, default_factory=list
    )
    guild: GuildRecord | None = relation(GuildRecord, foreign_key="id", primary_key="guild_id")
    inventory: list[ItemRecord] = relation(
        ItemRecord, foreign_key="owner_id", primary_key="id", many=True, lazy=True
    )
    notes: str = ignore(default="")

    def validate_data(self) -> bool:
        return self.id > 0 and bool(self.name) and 1 <= self.level <= 100
