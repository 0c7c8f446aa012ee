"""Payload checks run before persisted exploration models are rebuilt.

Each model registers a :class:`ModelValidator` subclass as ``Model.validator``.
Field problems are collected together so a corrupt save reports everything
wrong with it at once; cross-field rules only run once every field passes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence

from ..constants import HUB_AREA_ID, TRAVEL_MULTIPLIERS

AREA_ID_PATTERN = re.compile(r"^area-d(\d+)-i(\d+)$")


class ModelValidationError(ValueError):
    """A stored payload could not rebuild ``model``."""

    def __init__(self, model: type[Any], errors: Sequence[str]) -> None:
        self.model = model
        self.errors = list(errors)
        detail = "; ".join(self.errors) or "invalid payload"
        super().__init__(f"Cannot load {model.__name__}: {detail}")


# ---------------------------------------------------------------------------
# Value predicates
# ---------------------------------------------------------------------------


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_travel_multiplier(value: Any) -> bool:
    return is_non_negative_int(value) and value in TRAVEL_MULTIPLIERS


def is_area_id(value: Any) -> bool:
    if value == HUB_AREA_ID:
        return True
    return isinstance(value, str) and AREA_ID_PATTERN.match(value) is not None


def is_connection_id(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    ends = value.split("->")
    return len(ends) == 2 and ends[0] != ends[1] and all(is_area_id(end) for end in ends)


# ---------------------------------------------------------------------------
# Field descriptions
# ---------------------------------------------------------------------------


def _accepts(expected: Any, value: Any) -> bool:
    if isinstance(expected, SequenceSpec):
        return expected.accepts(value)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if isinstance(expected, type):
        return isinstance(value, expected)
    return bool(expected(value))


@dataclass(frozen=True)
class SequenceSpec:
    """A stored list whose entries all pass ``item``."""

    item: Any

    def accepts(self, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            return False
        return all(_accepts(self.item, entry) for entry in value)


@dataclass(frozen=True)
class FieldSpec:
    expected: Any
    description: str
    required: bool = True
    allow_none: bool = False

    def problem(self, name: str, data: Mapping[str, Any]) -> Optional[str]:
        if name not in data:
            if self.required:
                return f"missing '{name}' ({self.description})"
            return None
        value = data[name]
        if value is None:
            return None if self.allow_none else f"'{name}' cannot be null"
        if not _accepts(self.expected, value):
            return f"'{name}' should be {self.description}, got {value!r:.40}"
        return None


class ModelValidator:
    """Base class for the validators registered on persisted models."""

    model: ClassVar[type[Any]]
    fields: ClassVar[Mapping[str, FieldSpec]]

    @classmethod
    def cross_checks(cls, payload: Dict[str, Any]) -> Iterable[str]:
        return ()

    @classmethod
    def validate(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ModelValidationError(
                cls.model, [f"expected a mapping, got {type(data).__name__}"]
            )

        errors: List[str] = []
        for name, spec in cls.fields.items():
            problem = spec.problem(name, data)
            if problem is not None:
                errors.append(problem)
        payload = {name: data[name] for name in cls.fields if name in data}
        if not errors:
            errors.extend(cls.cross_checks(payload))
        if errors:
            raise ModelValidationError(cls.model, errors)
        return payload


def validate_payload(cls: type[Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Run the validator registered on ``cls`` and return the accepted fields."""

    validator: type[ModelValidator] | None = getattr(cls, "validator", None)
    if validator is None:
        return dict(data)
    return validator.validate(data)


__all__ = [
    "AREA_ID_PATTERN",
    "FieldSpec",
    "ModelValidationError",
    "ModelValidator",
    "SequenceSpec",
    "is_area_id",
    "is_connection_id",
    "is_non_empty_str",
    "is_non_negative_int",
    "is_travel_multiplier",
    "validate_payload",
]
