"""Per-roll success chance and the pacing of discovery rolls."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..constants import (
    BASE_SUCCESS_CHANCE,
    CONNECTED_KNOWLEDGE_BONUS,
    DISTANCE_PENALTY_PER_BAND,
    LEVEL_BONUS_PER_LEVEL,
    NON_CONNECTED_KNOWLEDGE_BONUS,
    ROLL_INTERVAL_MAX,
    ROLL_INTERVAL_MIN,
    ROLL_INTERVAL_STEP,
    UNQUALIFIED_SUCCESS_CHANCE,
)
from ..models.knowledge import PlayerKnowledge
from ..models.world import Area
from ..worldgen import WorldGraph, area_count


@dataclass(frozen=True, slots=True)
class KnowledgeParams:
    connected_known: int
    non_connected_known: int
    total_at_distance: int


def roll_interval(level: int) -> float:
    """Ticks between discovery rolls for an explorer of ``level``."""

    steps = max(0, level) // 10
    interval = max(ROLL_INTERVAL_MIN, ROLL_INTERVAL_MAX - steps * ROLL_INTERVAL_STEP)
    return round(interval, 1)


def success_chance(
    level: int,
    distance: int,
    connected_known: int,
    non_connected_known: int,
    total_at_distance: int,
) -> float:
    if level <= 0:
        return UNQUALIFIED_SUCCESS_CHANCE
    knowledge_ratio = (
        non_connected_known / total_at_distance if total_at_distance > 0 else 0.0
    )
    chance = (
        BASE_SUCCESS_CHANCE
        + LEVEL_BONUS_PER_LEVEL * (level - 1)
        - DISTANCE_PENALTY_PER_BAND * (distance - 1)
        + CONNECTED_KNOWLEDGE_BONUS * connected_known
        + NON_CONNECTED_KNOWLEDGE_BONUS * knowledge_ratio
    )
    return min(1.0, max(0.0, chance))


def expected_ticks(chance: float, interval: float) -> float:
    """Mean wait before a success; infinite when the chance is zero."""

    if chance <= 0:
        return math.inf
    return interval / chance


def knowledge_params(
    world: WorldGraph, knowledge: PlayerKnowledge, area: Area
) -> KnowledgeParams:
    """Count what the player already knows around ``area``.

    Connected areas are known neighbours reached through a known connection.
    Non-connected areas are other known areas in the same distance band with
    no known connection to ``area``.
    """

    connected = set()
    for connection in world.connections_for(area.id):
        other = connection.other_end(area.id)
        if knowledge.is_area_known(other) and knowledge.is_connection_known(
            area.id, other
        ):
            connected.add(other)

    non_connected = 0
    for area_id in knowledge.known_area_ids:
        if area_id == area.id or area_id in connected:
            continue
        other = world.get_area(area_id)
        if other is not None and other.distance == area.distance:
            non_connected += 1

    return KnowledgeParams(
        connected_known=len(connected),
        non_connected_known=non_connected,
        total_at_distance=area_count(area.distance),
    )


def chance_for(
    level: int, world: WorldGraph, knowledge: PlayerKnowledge, area: Area
) -> float:
    params = knowledge_params(world, knowledge, area)
    return success_chance(
        level,
        area.distance,
        params.connected_known,
        params.non_connected_known,
        params.total_at_distance,
    )


__all__ = [
    "KnowledgeParams",
    "chance_for",
    "expected_ticks",
    "knowledge_params",
    "roll_interval",
    "success_chance",
]
