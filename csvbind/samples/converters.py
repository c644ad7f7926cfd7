from __future__ import annotations

from typing import Any

from .definitions import ItemStats


class ItemStatsConverter:
    """Converts "attack,defense,speed,crit" cells, e.g. "100,50,75,0.15"."""

    def can_convert(self, target_type: Any) -> bool:
        return target_type is ItemStats

    def convert(self, raw: str, target_type: Any) -> ItemStats:
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) < 4:
            raise ValueError(f"expected 4 stats, got {len(parts)}")
        return ItemStats(
            attack=int(parts[0]),
            defense=int(parts[1]),
            speed=int(parts[2]),
            crit_chance=float(parts[3]),
        )
