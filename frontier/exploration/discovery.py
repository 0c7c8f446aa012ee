"""Candidate discoveries for Explore and Survey and the weighted pick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional, Sequence

from ..constants import (
    WEIGHT_CONNECTION_TO_KNOWN_AREA,
    WEIGHT_CONNECTION_TO_UNKNOWN_AREA,
    WEIGHT_GATHERING_NODE_SKILLED,
    WEIGHT_GATHERING_NODE_UNSKILLED,
    WEIGHT_MOB_CAMP,
    WEIGHT_OTHER_LOCATION,
)
from ..models.knowledge import PlayerKnowledge
from ..models.player import SkillState
from ..models.world import Area, Connection, Location, LocationType, WorldIntegrityError
from ..rng import RollRecord, RollStream
from ..worldgen import WorldGraph

log = logging.getLogger(__name__)


class DiscoverableKind(str, Enum):
    LOCATION = "location"
    CONNECTION = "connection"
    AREA = "area"


@dataclass(frozen=True, slots=True)
class Discoverable:
    """Something the player could find next; rebuilt on every query."""

    kind: DiscoverableKind
    id: str
    weight: float
    connection: Optional[Connection] = None


def location_weight(location: Location, skills: Mapping[str, SkillState]) -> float:
    if location.type is LocationType.GATHERING_NODE:
        skill = skills.get(location.gathering_skill or "")
        if skill is not None and skill.level > 0:
            return WEIGHT_GATHERING_NODE_SKILLED
        return WEIGHT_GATHERING_NODE_UNSKILLED
    if location.type is LocationType.MOB_CAMP:
        return WEIGHT_MOB_CAMP
    return WEIGHT_OTHER_LOCATION


def _far_end(world: WorldGraph, connection: Connection, area_id: str) -> Area:
    other = world.get_area(connection.other_end(area_id))
    if other is None or not other.generated:
        log.error(
            "Connection %s points at an area that was never generated", connection.id
        )
        raise WorldIntegrityError(
            f"Connection {connection.id} references ungenerated area "
            f"{connection.other_end(area_id)}"
        )
    return other


def explore_candidates(
    world: WorldGraph,
    knowledge: PlayerKnowledge,
    area: Area,
    skills: Mapping[str, SkillState] | None = None,
) -> List[Discoverable]:
    """Undiscovered locations in ``area`` and undiscovered links out of it."""

    skills = skills or {}
    candidates: List[Discoverable] = [
        Discoverable(
            DiscoverableKind.LOCATION, location.id, location_weight(location, skills)
        )
        for location in area.locations
        if not knowledge.is_location_known(location.id)
    ]
    for connection in world.connections_for(area.id):
        other = _far_end(world, connection, area.id)
        if knowledge.is_connection_known(area.id, other.id):
            continue
        weight = (
            WEIGHT_CONNECTION_TO_KNOWN_AREA
            if knowledge.is_area_known(other.id)
            else WEIGHT_CONNECTION_TO_UNKNOWN_AREA
        )
        candidates.append(
            Discoverable(DiscoverableKind.CONNECTION, connection.id, weight, connection)
        )
    return candidates


def survey_candidates(
    world: WorldGraph, knowledge: PlayerKnowledge, area: Area
) -> List[Discoverable]:
    """One equally weighted candidate per link leading to an unknown area."""

    candidates: List[Discoverable] = []
    for connection in world.connections_for(area.id):
        other = _far_end(world, connection, area.id)
        if knowledge.is_area_known(other.id):
            continue
        candidates.append(
            Discoverable(
                DiscoverableKind.AREA,
                other.id,
                WEIGHT_CONNECTION_TO_KNOWN_AREA,
                connection,
            )
        )
    return candidates


def weighted_pick(
    candidates: Sequence[Discoverable],
    stream: RollStream,
    label: str = "discovery_pick",
    *,
    audit: Optional[List[RollRecord]] = None,
) -> Optional[Discoverable]:
    """Cumulative-weight selection; draws nothing when there is no candidate."""

    if not candidates:
        return None
    total = sum(candidate.weight for candidate in candidates)
    threshold = stream.draw(0, total, label, audit=audit)
    cumulative = 0.0
    for candidate in candidates:
        cumulative += candidate.weight
        if threshold < cumulative:
            return candidate
    return candidates[-1]


__all__ = [
    "Discoverable",
    "DiscoverableKind",
    "explore_candidates",
    "location_weight",
    "survey_candidates",
    "weighted_pick",
]
