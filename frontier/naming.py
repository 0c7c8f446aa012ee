"""Procedural place names for wilderness areas."""

from __future__ import annotations

from typing import Sequence

from .constants import HUB_AREA_ID
from .models.world import Area, LocationType
from .rng import RollStream

HUB_NAME = "Town"

_MINING_WORDS = ("Cinder", "Flint", "Slate", "Copper", "Quarry", "Ironvein")
_WOOD_WORDS = ("Alder", "Thorn", "Bramble", "Oakshade", "Willow", "Pine")
_MOB_WORDS = ("Grim", "Fang", "Scarred", "Howling", "Wretched", "Bleak")
_QUIET_WORDS = ("Mist", "Still", "Amber", "Hollow", "Quiet", "Dew")
_NEAR_PLACES = ("Meadow", "Glade", "Rest", "Field", "Crossing")
_MID_PLACES = ("Reach", "Basin", "Ridge", "Fen", "Hollow")
_FAR_PLACES = ("Wastes", "Expanse", "Depths", "Barrens", "Wilds")


def _pick(stream: RollStream, options: Sequence[str], label: str) -> str:
    index = int(stream.draw(0, len(options), label))
    return options[min(index, len(options) - 1)]


def name_area(area: Area, stream: RollStream) -> str:
    """Return a stable name for ``area`` drawn from ``stream``."""

    if area.id == HUB_AREA_ID:
        return HUB_NAME

    types = {location.type for location in area.locations}
    skills = {location.gathering_skill for location in area.locations}
    if LocationType.MOB_CAMP in types:
        words = _MOB_WORDS
    elif "Mining" in skills:
        words = _MINING_WORDS
    elif "Woodcutting" in skills:
        words = _WOOD_WORDS
    else:
        words = _QUIET_WORDS

    if area.distance <= 1:
        places = _NEAR_PLACES
    elif area.distance == 2:
        places = _MID_PLACES
    else:
        places = _FAR_PLACES

    prefix = _pick(stream, words, f"name_prefix_{area.id}")
    place = _pick(stream, places, f"name_place_{area.id}")
    if stream.draw(0, 1, f"name_form_{area.id}") < 0.3:
        return f"{prefix}{place.lower()}"
    return f"The {prefix} {place}"


__all__ = ["HUB_NAME", "name_area"]
