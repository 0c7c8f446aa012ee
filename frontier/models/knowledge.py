"""Player specific record of which parts of the world have been revealed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Set

from ..constants import HUB_AREA_ID
from ._validation import (
    FieldSpec,
    ModelValidator,
    SequenceSpec,
    is_area_id,
    is_connection_id,
    validate_payload,
)
from .world import WorldIntegrityError, connection_id


@dataclass(slots=True)
class PlayerKnowledge:
    """Discoveries made by the player, independent of world truth.

    The known sets only ever grow; there is deliberately no removal API.
    """

    current_area_id: str = HUB_AREA_ID
    current_location_id: Optional[str] = None
    known_area_ids: Set[str] = field(default_factory=lambda: {HUB_AREA_ID})
    known_location_ids: Set[str] = field(default_factory=set)
    known_connection_ids: Set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.known_area_ids = set(self.known_area_ids)
        self.known_location_ids = set(self.known_location_ids)
        self.known_connection_ids = set(self.known_connection_ids)
        self.known_area_ids.add(HUB_AREA_ID)
        if self.current_area_id not in self.known_area_ids:
            raise WorldIntegrityError(
                f"Current area {self.current_area_id} is not a known area"
            )

    def mark_area_known(self, area_id: str) -> bool:
        """Record ``area_id`` as known; returns ``True`` if it was new."""

        if area_id in self.known_area_ids:
            return False
        self.known_area_ids.add(area_id)
        return True

    def mark_location_known(self, location_id: str) -> bool:
        if location_id in self.known_location_ids:
            return False
        self.known_location_ids.add(location_id)
        return True

    def mark_connection_known(self, from_area_id: str, to_area_id: str) -> bool:
        if self.is_connection_known(from_area_id, to_area_id):
            return False
        self.known_connection_ids.add(connection_id(from_area_id, to_area_id))
        return True

    def is_area_known(self, area_id: str) -> bool:
        return area_id in self.known_area_ids

    def is_location_known(self, location_id: str) -> bool:
        return location_id in self.known_location_ids

    def is_connection_known(self, first_area_id: str, second_area_id: str) -> bool:
        return (
            connection_id(first_area_id, second_area_id) in self.known_connection_ids
            or connection_id(second_area_id, first_area_id) in self.known_connection_ids
        )

    def move_to(self, area_id: str) -> None:
        self.known_area_ids.add(area_id)
        self.current_area_id = area_id
        self.current_location_id = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_area_id": self.current_area_id,
            "current_location_id": self.current_location_id,
            "known_area_ids": sorted(self.known_area_ids),
            "known_location_ids": sorted(self.known_location_ids),
            "known_connection_ids": sorted(self.known_connection_ids),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerKnowledge":
        payload = validate_payload(cls, data)
        for name in ("known_area_ids", "known_location_ids", "known_connection_ids"):
            payload[name] = set(payload.get(name, ()))
        return cls(**payload)


class PlayerKnowledgeValidator(ModelValidator):
    model = PlayerKnowledge
    fields = {
        "current_area_id": FieldSpec(is_area_id, "the current area id"),
        "current_location_id": FieldSpec(
            str, "the current location id", required=False, allow_none=True
        ),
        "known_area_ids": FieldSpec(SequenceSpec(is_area_id), "a list of area ids"),
        "known_location_ids": FieldSpec(
            SequenceSpec(str), "a list of location ids", required=False
        ),
        "known_connection_ids": FieldSpec(
            SequenceSpec(is_connection_id), "a list of connection ids", required=False
        ),
    }


PlayerKnowledge.validator = PlayerKnowledgeValidator


class ExplorationCache:
    """Memo of areas the player has fully explored.

    A ``True`` answer is permanent because knowledge never shrinks and an
    area's content is fixed once generated.  ``False`` is never stored and is
    recomputed on every query.
    """

    __slots__ = ("_fully_explored",)

    def __init__(self) -> None:
        self._fully_explored: Set[str] = set()

    def is_fully_explored(self, area_id: str, compute: Callable[[str], bool]) -> bool:
        if area_id in self._fully_explored:
            return True
        if compute(area_id):
            self._fully_explored.add(area_id)
            return True
        return False

    def __contains__(self, area_id: object) -> bool:
        return area_id in self._fully_explored

    def __len__(self) -> int:
        return len(self._fully_explored)


__all__ = ["ExplorationCache", "PlayerKnowledge"]
