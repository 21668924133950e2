"""Reusable validation constraints for request models."""
from __future__ import annotations

import enum
from typing import Any, Callable, ClassVar, Optional, Tuple, Type

from pydantic import BaseModel, model_validator


def fields_match(instance: object, first: str, second: str) -> bool:
    """Return ``True`` when both attributes are ``None`` or equal."""

    first_value = getattr(instance, first)
    second_value = getattr(instance, second)
    if first_value is None and second_value is None:
        return True
    return first_value is not None and first_value == second_value


def is_enum_member(value: Optional[str], enum_cls: Type[enum.Enum], *, ignore_case: bool = False) -> bool:
    """Return ``True`` when ``value`` names a member of ``enum_cls``."""

    if value is None:
        return False
    for member in enum_cls:
        if value == member.name:
            return True
        if ignore_case and value.lower() == member.name.lower():
            return True
    return False


def enum_member(enum_cls: Type[enum.Enum], *, ignore_case: bool = False) -> Callable[[Optional[str]], Optional[str]]:
    """Build a pydantic ``AfterValidator`` callable restricting a string to member names.

    ``None`` is passed through so optional fields stay optional.
    """

    allowed = ", ".join(member.name for member in enum_cls)

    def _validate(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not is_enum_member(value, enum_cls, ignore_case=ignore_case):
            raise ValueError(f"must be one of: {allowed}")
        if ignore_case:
            return next(member.name for member in enum_cls if member.name.lower() == value.lower())
        return value

    return _validate


class FieldMatchModel(BaseModel):
    """Base model that requires listed field pairs to hold equal values.

    Subclasses declare ``field_matches`` as ``(first, second, message)`` tuples.
    """

    field_matches: ClassVar[Tuple[Tuple[str, str, str], ...]] = ()

    @model_validator(mode="after")
    def _check_field_matches(self) -> Any:
        for first, second, message in type(self).field_matches:
            if not fields_match(self, first, second):
                raise ValueError(message)
        return self


__all__ = ["FieldMatchModel", "enum_member", "fields_match", "is_enum_member"]
