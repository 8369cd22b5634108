"""Ordering of per-project and per-phase results.

Sort keys look like ``"duration-asc"`` or ``"alpha-desc"``. Any other field
name (``"type-asc"``) sorts that field lexically. Items lacking the data for
the chosen field always come last, in their original order.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from ..utils.datetime import ensure_aware, parse_timestamp


T = TypeVar("T")

_MISSING = object()


class SortField(Enum):
    """Well-known sort fields."""
    DURATION = "duration"
    CREATED = "created"
    COMPLETED = "completed"
    ALPHA = "alpha"
    CATEGORY = "category"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


FIELD_ALIASES: Dict[SortField, Tuple[str, ...]] = {
    SortField.DURATION: ("duration", "overall_duration_days", "total_days"),
    SortField.CREATED: ("created", "first_activity_at"),
    SortField.COMPLETED: ("completed", "last_activity_at"),
    SortField.ALPHA: ("name", "project_name", "phase"),
}

KEY_NAME_ALIASES = {
    "alphabetical": SortField.ALPHA,
    "name": SortField.ALPHA,
    "creation": SortField.CREATED,
    "completion": SortField.COMPLETED,
}


@dataclass(frozen=True)
class SortKey:
    """A sort field plus direction; ``category`` names the field for CATEGORY."""
    field: SortField
    direction: SortDirection = SortDirection.ASC
    category: Optional[str] = None

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @classmethod
    def parse(cls, text: str) -> "SortKey":
        """Parse ``"<field>-<asc|desc>"``; the direction defaults to ascending.

        Raises:
            ValueError: for an empty key or an unknown direction.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Sort key must be a non-empty string")

        name, _, direction = text.strip().lower().rpartition("-")
        if not name:
            name, direction = direction, "asc"
        try:
            sort_direction = SortDirection(direction)
        except ValueError:
            raise ValueError(f"Unknown sort direction in {text!r}") from None

        if name in KEY_NAME_ALIASES:
            return cls(KEY_NAME_ALIASES[name], sort_direction)
        try:
            sort_field = SortField(name)
        except ValueError:
            return cls(SortField.CATEGORY, sort_direction, category=name)
        if sort_field is SortField.CATEGORY:
            raise ValueError("Categorical sort keys must name a field, e.g. 'type-asc'")
        return cls(sort_field, sort_direction)

    def __str__(self) -> str:
        name = self.category if self.field is SortField.CATEGORY else self.field.value
        return f"{name}-{self.direction.value}"


def _lookup(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, _MISSING)
    return getattr(item, name, _MISSING)


def _field_value(item: Any, key: SortKey) -> Any:
    names = (key.category,) if key.field is SortField.CATEGORY else FIELD_ALIASES[key.field]
    for name in names:
        value = _lookup(item, name)
        if value is not _MISSING:
            return value
    return None


def _comparable(value: Any, key: SortKey) -> Any:
    """Normalize a field value for comparison, or None when there is no data."""
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value

    if key.field is SortField.DURATION:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value
    if key.field in (SortField.CREATED, SortField.COMPLETED):
        if isinstance(value, datetime):
            return ensure_aware(value).timestamp()
        parsed = parse_timestamp(value)
        return parsed.timestamp() if parsed else None

    text = str(value)
    return text.casefold() if text else None


def sort_items(items: Iterable[T], key) -> List[T]:
    """Return a new list of ``items`` ordered by ``key`` (a SortKey or string).

    The sort is stable: items that compare equal keep their relative order,
    in both directions. Items without data for the field are placed last.
    """
    if items is None:
        raise TypeError("items must be an iterable, not None")
    if not isinstance(key, SortKey):
        key = SortKey.parse(key)

    with_data = []
    without_data = []
    for item in items:
        value = _comparable(_field_value(item, key), key)
        if value is None:
            without_data.append(item)
        else:
            with_data.append((value, item))

    with_data.sort(key=lambda pair: pair[0], reverse=key.descending)
    return [item for _, item in with_data] + without_data
