"""Deterministic counter based roll stream.

Every value drawn from a :class:`RollStream` is a pure function of the stream
seed and its counter, so replaying the same seed from counter zero reproduces
the exact same sequence.  Labels are carried only for the audit trail and
never influence the value that is produced.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from hashlib import sha256
from typing import Any, Dict, List, Mapping, Optional, Tuple

_UNIT_DENOMINATOR = float(1 << 64)


def unit_value(seed: str, counter: int) -> float:
    """Return the float in ``[0, 1)`` assigned to ``(seed, counter)``."""

    digest = sha256(f"{seed}:{counter}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False) / _UNIT_DENOMINATOR


@dataclass(frozen=True, slots=True)
class RollRecord:
    """Audit entry describing one draw."""

    label: str
    counter: int
    value: float
    probability: Optional[float] = None
    result: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "label": self.label,
            "counter": self.counter,
            "value": self.value,
        }
        if self.probability is not None:
            payload["probability"] = self.probability
        if self.result is not None:
            payload["result"] = self.result
        return payload


@dataclass(slots=True)
class RollStream:
    seed: str
    counter: int = 0

    def __post_init__(self) -> None:
        self.seed = str(self.seed)
        self.counter = int(self.counter)
        if self.counter < 0:
            raise ValueError("Roll stream counter cannot be negative")

    def peek(self) -> float:
        return unit_value(self.seed, self.counter)

    def draw(
        self,
        minimum: float = 0.0,
        maximum: float = 1.0,
        label: str = "",
        *,
        audit: Optional[List[RollRecord]] = None,
    ) -> float:
        """Draw a float in ``[minimum, maximum)`` and advance the counter."""

        counter = self.counter
        value = minimum + unit_value(self.seed, counter) * (maximum - minimum)
        self.counter = counter + 1
        if audit is not None:
            audit.append(RollRecord(label=label, counter=counter, value=value))
        return value

    def roll(
        self,
        probability: float,
        label: str = "",
        *,
        audit: Optional[List[RollRecord]] = None,
    ) -> bool:
        """Return ``True`` with ``probability``; always consumes one draw."""

        counter = self.counter
        value = unit_value(self.seed, counter)
        self.counter = counter + 1
        result = value < probability
        if audit is not None:
            audit.append(
                RollRecord(
                    label=label,
                    counter=counter,
                    value=value,
                    probability=probability,
                    result=result,
                )
            )
        return result

    def derive(self, scope: str) -> "RollStream":
        """Return an independent child stream that leaves this one untouched."""

        return RollStream(seed=f"{self.seed}/{scope}", counter=0)

    def to_dict(self) -> Dict[str, Any]:
        return {"seed": self.seed, "counter": self.counter}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RollStream":
        return cls(seed=str(data["seed"]), counter=int(data.get("counter", 0)))


def draw(
    stream: RollStream, minimum: float, maximum: float, label: str = ""
) -> Tuple[float, RollStream]:
    """Pure form of :meth:`RollStream.draw` returning the advanced stream."""

    value = minimum + unit_value(stream.seed, stream.counter) * (maximum - minimum)
    return value, replace(stream, counter=stream.counter + 1)


__all__ = ["RollRecord", "RollStream", "draw", "unit_value"]
