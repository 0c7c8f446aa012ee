"""Exploration action requests, failure taxonomy, and result payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..rng import RollRecord
from .player import LevelUp


# ---------------------------------------------------------------------------
# Action requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SurveyAction:
    """Search for a new area one connection away from the current area."""


@dataclass(frozen=True, slots=True)
class ExploreAction:
    """Search the current area for locations and connections."""


@dataclass(frozen=True, slots=True)
class ExplorationTravelAction:
    """Cross a single known connection out of the current area."""

    destination_area_id: str
    scavenge: bool = False


@dataclass(frozen=True, slots=True)
class FarTravelAction:
    """Travel to a known area along the cheapest route of known connections."""

    destination_area_id: str
    scavenge: bool = False


ExplorationAction = Union[
    SurveyAction, ExploreAction, ExplorationTravelAction, FarTravelAction
]


def action_name(action: ExplorationAction) -> str:
    match action:
        case SurveyAction():
            return "Survey"
        case ExploreAction():
            return "Explore"
        case ExplorationTravelAction():
            return "ExplorationTravel"
        case FarTravelAction():
            return "FarTravel"
    raise TypeError(f"Unsupported exploration action: {action!r}")


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class FailureKind(str, Enum):
    NOT_QUALIFIED = "NOT_QUALIFIED"
    SESSION_ENDED = "SESSION_ENDED"
    AREA_FULLY_EXPLORED = "AREA_FULLY_EXPLORED"
    NO_UNDISCOVERED_AREAS = "NO_UNDISCOVERED_AREAS"
    AREA_NOT_KNOWN = "AREA_NOT_KNOWN"
    NO_PATH_TO_DESTINATION = "NO_PATH_TO_DESTINATION"
    ALREADY_IN_AREA = "ALREADY_IN_AREA"


@dataclass(frozen=True, slots=True)
class TickProgress:
    """Observable state after one simulated tick of a running action."""

    action: str
    tick: int
    ticks_elapsed: int
    rolls_made: int
    total_ticks: Optional[int] = None


@dataclass(frozen=True, slots=True)
class CostPreview:
    expected_ticks: float
    is_variable: bool
    success_chance: Optional[float] = None
    roll_interval: Optional[float] = None


@dataclass(frozen=True, slots=True)
class RollResult:
    """Outcome of one sequence of discovery rolls."""

    ticks_consumed: int
    success: bool
    discovered_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LuckSummary:
    actual_ticks: int
    expected_ticks: float
    roll_interval: float
    z_score: float
    percentile: float
    label: str
    luck_delta: int
    total_luck_delta: int = 0
    current_streak: int = 0

    def describe(self) -> str:
        if self.percentile <= 50:
            position = f"Top {max(1, round(self.percentile))}%"
        else:
            position = f"Bottom {max(1, round(100 - self.percentile))}%"
        return f"{position} ({self.label})"


@dataclass(slots=True)
class ActionResult:
    action: str
    success: bool
    ticks_consumed: int = 0
    failure_kind: Optional[FailureKind] = None
    cancelled: bool = False
    discovered_area_id: Optional[str] = None
    discovered_location_id: Optional[str] = None
    discovered_connection_id: Optional[str] = None
    destination_area_id: Optional[str] = None
    path: List[str] = field(default_factory=list)
    area_fully_explored: bool = False
    xp_gained: int = 0
    level_ups: List[LevelUp] = field(default_factory=list)
    luck: Optional[LuckSummary] = None
    rolls: List[RollRecord] = field(default_factory=list)
    summary: str = ""

    @property
    def roll_result(self) -> RollResult:
        discovered = (
            self.discovered_location_id
            or self.discovered_area_id
            or self.discovered_connection_id
        )
        return RollResult(
            ticks_consumed=self.ticks_consumed,
            success=self.success,
            discovered_id=discovered,
        )

    @classmethod
    def failure(
        cls,
        action: str,
        kind: FailureKind,
        *,
        ticks_consumed: int = 0,
        rolls: Sequence[RollRecord] = (),
        cancelled: bool = False,
        area_fully_explored: bool = False,
        summary: str | None = None,
    ) -> "ActionResult":
        return cls(
            action=action,
            success=False,
            ticks_consumed=ticks_consumed,
            failure_kind=kind,
            cancelled=cancelled,
            area_fully_explored=area_fully_explored,
            rolls=list(rolls),
            summary=summary or f"Failed: {kind.value}",
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "action": self.action,
            "success": self.success,
            "ticks_consumed": self.ticks_consumed,
            "summary": self.summary,
        }
        if self.failure_kind is not None:
            payload["failure_kind"] = self.failure_kind.value
        if self.cancelled:
            payload["cancelled"] = True
        for name in (
            "discovered_area_id",
            "discovered_location_id",
            "discovered_connection_id",
            "destination_area_id",
        ):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.path:
            payload["path"] = list(self.path)
        if self.xp_gained:
            payload["xp_gained"] = self.xp_gained
        if self.luck is not None:
            payload["luck"] = {
                "actual_ticks": self.luck.actual_ticks,
                "expected_ticks": self.luck.expected_ticks,
                "percentile": self.luck.percentile,
                "label": self.luck.label,
                "luck_delta": self.luck.luck_delta,
            }
        payload["rolls"] = [record.to_dict() for record in self.rolls]
        return payload


__all__ = [
    "ActionResult",
    "CostPreview",
    "ExplorationAction",
    "ExplorationTravelAction",
    "ExploreAction",
    "FailureKind",
    "FarTravelAction",
    "LuckSummary",
    "RollResult",
    "SurveyAction",
    "TickProgress",
    "action_name",
]
