"""Query criteria containers and binding of request parameters onto them."""
from __future__ import annotations

import enum
import logging
import typing
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, TypeVar

from .errors import ServiceError

logger = logging.getLogger("salesmanager.criteria")


class CriteriaBindingError(ServiceError):
    """Raised when a request parameter cannot be assigned to a criteria field."""

    def __init__(self, message: str, *, field_name: str | None = None) -> None:
        super().__init__(message)
        self.field_name = field_name


class CriteriaOrderBy(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass
class Criteria:
    """Generic filter and paging options for list queries."""

    start_index: int = 0
    max_count: int = 0
    code: Optional[str] = None
    name: Optional[str] = None
    language: Optional[str] = None
    user: Optional[str] = None
    store_code: Optional[str] = None
    legacy_pagination: bool = True
    criteria_order_by: CriteriaOrderBy = CriteriaOrderBy.ASC
    criteria_order_by_field: str = "id"
    search: Optional[str] = None


@dataclass
class MerchantStoreCriteria(Criteria):
    retailers: bool = False
    stores: bool = False


@dataclass
class ProductCriteria(Criteria):
    category_id: Optional[int] = None
    product_name: Optional[str] = None
    available: Optional[bool] = None
    sku: Optional[str] = None


CriteriaT = TypeVar("CriteriaT", bound=Criteria)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) is typing.Union:
        candidates = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(candidates) == 1:
            return candidates[0]
    return annotation


def _convert(value: str, annotation: Any, field_name: str) -> Any:
    target = _unwrap_optional(annotation)
    text = value.strip()
    if target is bool:
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise CriteriaBindingError(
            f"Value {value!r} is not a valid boolean for '{field_name}'", field_name=field_name
        )
    if target is int:
        try:
            return int(text)
        except ValueError as exc:
            raise CriteriaBindingError(
                f"Value {value!r} is not a valid integer for '{field_name}'", field_name=field_name
            ) from exc
    if isinstance(target, type) and issubclass(target, enum.Enum):
        try:
            return target[text.upper()]
        except KeyError as exc:
            allowed = ", ".join(member.name for member in target)
            raise CriteriaBindingError(
                f"Value {value!r} for '{field_name}' must be one of: {allowed}", field_name=field_name
            ) from exc
    return value


def _field_types(criteria: Criteria) -> Dict[str, Any]:
    hints = typing.get_type_hints(type(criteria))
    return {item.name: hints[item.name] for item in fields(criteria)}


def build_criteria(
    mapping: Mapping[str, str],
    params: Mapping[str, str],
    criteria: Optional[CriteriaT] = None,
) -> CriteriaT | Criteria:
    """Copy request parameters onto a criteria object.

    ``mapping`` associates request parameter names with criteria field names.
    Only parameters that are both mapped and present in ``params`` are
    assigned; the value is converted to the declared type of the field.
    """

    target: Criteria = criteria if criteria is not None else Criteria()
    field_types = _field_types(target)

    for param_name, field_name in mapping.items():
        if field_name not in field_types:
            raise CriteriaBindingError(
                f"{type(target).__name__} has no field named '{field_name}'", field_name=field_name
            )
        raw = params.get(param_name)
        if raw is None:
            continue
        setattr(target, field_name, _convert(raw, field_types[field_name], field_name))
        logger.debug("Bound request parameter %s to %s.%s", param_name, type(target).__name__, field_name)

    return target


def apply_paging(criteria: CriteriaT, page: int, count: int) -> CriteriaT:
    """Translate a zero-based page number and page size into start/max values."""

    if page < 0 or count < 0:
        raise CriteriaBindingError("Page and count must not be negative")
    criteria.start_index = page * count
    criteria.max_count = count
    criteria.legacy_pagination = False
    return criteria


__all__ = [
    "Criteria",
    "CriteriaBindingError",
    "CriteriaOrderBy",
    "MerchantStoreCriteria",
    "ProductCriteria",
    "apply_paging",
    "build_criteria",
]
