"""Player progression, session time, and luck bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..constants import LUCK_HISTORY_LIMIT
from ._validation import FieldSpec, ModelValidator, is_non_negative_int, validate_payload


def xp_threshold_for_next_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""

    return (level + 1) * (level + 1)


@dataclass(frozen=True, slots=True)
class LevelUp:
    skill: str
    from_level: int
    to_level: int


@dataclass(slots=True)
class SkillState:
    level: int = 0
    xp: int = 0

    def add_xp(self, skill: str, amount: int) -> List[LevelUp]:
        """Apply ``amount`` XP and return every level gained."""

        if amount <= 0 or self.level <= 0:
            return []
        level_ups: List[LevelUp] = []
        self.xp += amount
        threshold = xp_threshold_for_next_level(self.level)
        while self.xp >= threshold:
            self.xp -= threshold
            level_ups.append(LevelUp(skill, self.level, self.level + 1))
            self.level += 1
            threshold = xp_threshold_for_next_level(self.level)
        return level_ups

    def to_dict(self) -> Dict[str, int]:
        return {"level": self.level, "xp": self.xp}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkillState":
        return cls(**validate_payload(cls, data))


class SkillStateValidator(ModelValidator):
    model = SkillState
    fields = {
        "level": FieldSpec(is_non_negative_int, "a non-negative level"),
        "xp": FieldSpec(is_non_negative_int, "a non-negative xp total", required=False),
    }


SkillState.validator = SkillStateValidator


@dataclass(slots=True)
class SessionClock:
    """Absolute tick counter and the remaining session budget."""

    current_tick: int = 0
    session_remaining_ticks: int = 0

    @property
    def exhausted(self) -> bool:
        return self.session_remaining_ticks <= 0

    def consume(self, ticks: int = 1) -> None:
        if ticks > self.session_remaining_ticks:
            raise ValueError(
                f"Cannot consume {ticks} ticks with {self.session_remaining_ticks} remaining"
            )
        self.current_tick += ticks
        self.session_remaining_ticks -= ticks

    def to_dict(self) -> Dict[str, int]:
        return {
            "current_tick": self.current_tick,
            "session_remaining_ticks": self.session_remaining_ticks,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionClock":
        return cls(**validate_payload(cls, data))


class SessionClockValidator(ModelValidator):
    model = SessionClock
    fields = {
        "current_tick": FieldSpec(is_non_negative_int, "a non-negative tick"),
        "session_remaining_ticks": FieldSpec(int, "the remaining tick budget"),
    }


SessionClock.validator = SessionClockValidator


@dataclass(slots=True)
class LuckLedger:
    """Running tally of how discoveries compared to their expectation.

    ``current_streak`` is positive for consecutive lucky results and negative
    for consecutive unlucky ones.  ``history`` holds only the most recent
    deltas.
    """

    total_luck_delta: int = 0
    current_streak: int = 0
    history: List[int] = field(default_factory=list)

    def record(self, luck_delta: int) -> None:
        self.total_luck_delta += luck_delta
        self.history.append(luck_delta)
        del self.history[:-LUCK_HISTORY_LIMIT]
        if luck_delta > 0:
            self.current_streak = self.current_streak + 1 if self.current_streak > 0 else 1
        elif luck_delta < 0:
            self.current_streak = self.current_streak - 1 if self.current_streak < 0 else -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_luck_delta": self.total_luck_delta,
            "current_streak": self.current_streak,
            "history": list(self.history),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LuckLedger":
        return cls(
            total_luck_delta=int(data.get("total_luck_delta", 0)),
            current_streak=int(data.get("current_streak", 0)),
            history=[int(value) for value in data.get("history", [])][-LUCK_HISTORY_LIMIT:],
        )


__all__ = [
    "LevelUp",
    "LuckLedger",
    "SessionClock",
    "SkillState",
    "xp_threshold_for_next_level",
]
