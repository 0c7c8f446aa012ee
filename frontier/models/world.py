"""World graph domain models: areas, their locations, and connections."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from ..constants import HUB_AREA_ID
from ._validation import (
    AREA_ID_PATTERN,
    FieldSpec,
    ModelValidator,
    SequenceSpec,
    is_area_id,
    is_non_empty_str,
    is_non_negative_int,
    is_travel_multiplier,
    validate_payload,
)


class WorldIntegrityError(RuntimeError):
    """Raised when generator or knowledge state breaks a structural invariant."""


def area_id_for(distance: int, index: int) -> str:
    """Return the stable id of the ``index``-th area at ``distance``."""

    if distance < 0 or index < 0:
        raise ValueError(f"Invalid area coordinates: distance={distance} index={index}")
    if distance == 0:
        if index != 0:
            raise ValueError("The hub is the only area at distance 0")
        return HUB_AREA_ID
    return f"area-d{distance}-i{index}"


def parse_area_id(area_id: str) -> Tuple[int, int]:
    """Return ``(distance, index)`` for ``area_id``."""

    if area_id == HUB_AREA_ID:
        return 0, 0
    match = AREA_ID_PATTERN.match(area_id)
    if match is None:
        raise ValueError(f"Invalid area id: {area_id}")
    return int(match.group(1)), int(match.group(2))


def connection_id(from_area_id: str, to_area_id: str) -> str:
    return f"{from_area_id}->{to_area_id}"


class LocationType(str, Enum):
    GATHERING_NODE = "gathering_node"
    MOB_CAMP = "mob_camp"
    GUILD_HALL = "guild_hall"
    WAREHOUSE = "warehouse"

    @classmethod
    def from_value(cls, value: "LocationType | str") -> "LocationType":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if normalized in {member.value, member.name.lower()}:
                return member
        raise ValueError(f"Unknown location type: {value}")


@dataclass(slots=True)
class Location:
    """A discoverable point of interest inside exactly one area."""

    id: str
    area_id: str
    type: LocationType
    gathering_skill: Optional[str] = None
    creature_type: Optional[str] = None
    difficulty: Optional[int] = None
    guild: Optional[str] = None

    def __post_init__(self) -> None:
        self.type = LocationType.from_value(self.type)
        if self.type is LocationType.GATHERING_NODE and not self.gathering_skill:
            raise ValueError(f"Gathering node {self.id} requires a gathering skill")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "area_id": self.area_id,
            "type": self.type.value,
        }
        for name in ("gathering_skill", "creature_type", "difficulty", "guild"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Location":
        return cls(**validate_payload(cls, data))


class LocationValidator(ModelValidator):
    model = Location
    fields = {
        "id": FieldSpec(is_non_empty_str, "a non-empty location id"),
        "area_id": FieldSpec(is_area_id, "the owning area id"),
        "type": FieldSpec(str, "a location type"),
        "gathering_skill": FieldSpec(str, "a gathering skill", required=False, allow_none=True),
        "creature_type": FieldSpec(str, "a creature type", required=False, allow_none=True),
        "difficulty": FieldSpec(int, "an integer difficulty", required=False, allow_none=True),
        "guild": FieldSpec(str, "a guild name", required=False, allow_none=True),
    }


Location.validator = LocationValidator


@dataclass(slots=True)
class Area:
    """Node of the world graph at an integer distance band from the hub.

    ``id`` depends only on ``(distance, index_in_distance)`` so connections may
    reference an area before it is materialized.  ``generated`` flips to
    ``True`` exactly once, when its locations are populated.
    """

    id: str
    distance: int
    index_in_distance: int
    name: Optional[str] = None
    generated: bool = False
    locations: List[Location] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "distance": self.distance,
            "index_in_distance": self.index_in_distance,
            "generated": self.generated,
            "locations": [location.to_dict() for location in self.locations],
        }
        if self.name is not None:
            payload["name"] = self.name
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Area":
        payload = validate_payload(cls, data)
        payload["locations"] = [
            Location.from_dict(entry) for entry in payload.get("locations", [])
        ]
        return cls(**payload)


class AreaValidator(ModelValidator):
    model = Area
    fields = {
        "id": FieldSpec(is_area_id, "an area id"),
        "distance": FieldSpec(is_non_negative_int, "a non-negative distance"),
        "index_in_distance": FieldSpec(is_non_negative_int, "a non-negative index"),
        "name": FieldSpec(str, "an area name", required=False, allow_none=True),
        "generated": FieldSpec(bool, "a generated flag", required=False),
        "locations": FieldSpec(
            SequenceSpec(Mapping), "a list of location payloads", required=False
        ),
    }

    @classmethod
    def cross_checks(cls, payload: Dict[str, Any]) -> List[str]:
        coordinates = parse_area_id(payload["id"])
        if coordinates != (payload["distance"], payload["index_in_distance"]):
            return [f"area {payload['id']} does not sit at {coordinates}"]
        return []


Area.validator = AreaValidator


@dataclass(frozen=True, slots=True)
class Connection:
    """Undirected edge between two areas."""

    from_area_id: str
    to_area_id: str
    travel_time_multiplier: int

    @property
    def id(self) -> str:
        return connection_id(self.from_area_id, self.to_area_id)

    @property
    def reverse_id(self) -> str:
        return connection_id(self.to_area_id, self.from_area_id)

    def other_end(self, area_id: str) -> str:
        if area_id == self.from_area_id:
            return self.to_area_id
        if area_id == self.to_area_id:
            return self.from_area_id
        raise ValueError(f"Connection {self.id} does not touch {area_id}")

    def joins(self, first: str, second: str) -> bool:
        return {first, second} == {self.from_area_id, self.to_area_id}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_area_id": self.from_area_id,
            "to_area_id": self.to_area_id,
            "travel_time_multiplier": self.travel_time_multiplier,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Connection":
        return cls(**validate_payload(cls, data))


class ConnectionValidator(ModelValidator):
    model = Connection
    fields = {
        "from_area_id": FieldSpec(is_area_id, "an area id"),
        "to_area_id": FieldSpec(is_area_id, "an area id"),
        "travel_time_multiplier": FieldSpec(
            is_travel_multiplier, "a travel multiplier between 1 and 4"
        ),
    }

    @classmethod
    def cross_checks(cls, payload: Dict[str, Any]) -> List[str]:
        if payload["from_area_id"] == payload["to_area_id"]:
            return [f"connection loops back to {payload['from_area_id']}"]
        return []


Connection.validator = ConnectionValidator


__all__ = [
    "Area",
    "Connection",
    "Location",
    "LocationType",
    "WorldIntegrityError",
    "area_id_for",
    "connection_id",
    "parse_area_id",
]
