from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
import math
from typing import Any, Union

from mediascope_data.records import Record, resolve_field


DEFAULT_RANGE_FIELDS = frozenset({"age"})


@dataclass(frozen=True)
class RangeBounds:
    low: float
    high: float

    def __post_init__(self) -> None:
        if math.isnan(self.low) or math.isnan(self.high):
            raise ValueError("range bounds must be numbers")
        if self.low > self.high:
            raise ValueError("range low must be <= high")

    def contains(self, value: object) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if math.isnan(value):
            return False
        return self.low <= value <= self.high


Constraint = Union[frozenset, RangeBounds]


class FilterCriteria(Mapping[str, Constraint]):
    """Immutable field -> constraint mapping.

    A missing key means no constraint. Empty accepted sets are never stored;
    every "modifying" method returns a new instance.
    """

    __slots__ = ("_items", "_range_fields")

    def __init__(
        self,
        items: Mapping[str, Constraint] | None = None,
        *,
        range_fields: Iterable[str] = DEFAULT_RANGE_FIELDS,
    ) -> None:
        self._range_fields = frozenset(resolve_field(f) for f in range_fields)
        cleaned: dict[str, Constraint] = {}
        for key, constraint in (items or {}).items():
            attr = resolve_field(key)
            if isinstance(constraint, RangeBounds):
                cleaned[attr] = constraint
                continue
            if attr in self._range_fields and _is_range_pair(constraint):
                cleaned[attr] = RangeBounds(float(constraint[0]), float(constraint[1]))
                continue
            accepted = frozenset(constraint)
            if accepted:
                cleaned[attr] = accepted
        self._items = cleaned

    def __getitem__(self, key: str) -> Constraint:
        return self._items[resolve_field(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        try:
            return resolve_field(key) in self._items
        except KeyError:
            return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FilterCriteria):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"FilterCriteria({self._items!r})"

    @property
    def range_fields(self) -> frozenset[str]:
        return self._range_fields

    def _replace(self, items: Mapping[str, Constraint]) -> "FilterCriteria":
        return FilterCriteria(items, range_fields=self._range_fields)

    def with_values(self, field: str, values: Iterable[object]) -> "FilterCriteria":
        attr = resolve_field(field)
        items = dict(self._items)
        accepted = frozenset(values)
        if accepted:
            items[attr] = accepted
        else:
            items.pop(attr, None)
        return self._replace(items)

    def toggle_value(self, field: str, value: object) -> "FilterCriteria":
        current = self._items.get(resolve_field(field))
        accepted = set(current) if isinstance(current, frozenset) else set()
        if value in accepted:
            accepted.discard(value)
        else:
            accepted.add(value)
        return self.with_values(field, accepted)

    def remove_value(self, field: str, value: object) -> "FilterCriteria":
        current = self._items.get(resolve_field(field))
        if not isinstance(current, frozenset):
            return self
        return self.with_values(field, current - {value})

    def with_range(
        self,
        field: str,
        low: float,
        high: float,
        *,
        full_bounds: tuple[float, float] | None = None,
    ) -> "FilterCriteria":
        """Constrain a range field; a range equal to `full_bounds` clears it."""

        attr = resolve_field(field)
        items = dict(self._items)
        if full_bounds is not None and (low, high) == tuple(full_bounds):
            items.pop(attr, None)
        else:
            items[attr] = RangeBounds(float(low), float(high))
        return self._replace(items)

    def without(self, field: str) -> "FilterCriteria":
        items = dict(self._items)
        items.pop(resolve_field(field), None)
        return self._replace(items)

    def cleared(self) -> "FilterCriteria":
        return self._replace({})

    def accepts(self, record: Record) -> bool:
        for attr, constraint in self._items.items():
            value = getattr(record, attr)
            if isinstance(constraint, RangeBounds):
                if not constraint.contains(value):
                    return False
            elif value not in constraint:
                return False
        return True


def criteria_from_raw(
    raw: Mapping[str, Any],
    *,
    range_fields: Iterable[str] = DEFAULT_RANGE_FIELDS,
) -> FilterCriteria:
    """Build criteria from loosely typed UI state.

    A `[min, max]` pair on a range field becomes a RangeBounds; any other
    sequence is an accepted set; a scalar is a one-value set; None is skipped.
    """

    range_attrs = frozenset(resolve_field(f) for f in range_fields)
    items: dict[str, Constraint] = {}
    for key, value in raw.items():
        if value is None:
            continue
        attr = resolve_field(key)
        if isinstance(value, RangeBounds):
            items[attr] = value
            continue
        if isinstance(value, (set, frozenset)):
            items[attr] = frozenset(value)
            continue
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if attr in range_attrs and _is_range_pair(value):
                items[attr] = RangeBounds(float(value[0]), float(value[1]))
            else:
                items[attr] = frozenset(value)
            continue
        items[attr] = frozenset({value})
    return FilterCriteria(items, range_fields=range_attrs)


def filter_records(records: Sequence[Record], criteria: Mapping[str, Constraint]) -> tuple[Record, ...]:
    if not isinstance(criteria, FilterCriteria):
        criteria = criteria_from_raw(criteria)
    if not criteria:
        return tuple(records)
    return tuple(record for record in records if criteria.accepts(record))


def unique_values(records: Sequence[Record], field: str) -> tuple[object, ...]:
    attr = resolve_field(field)
    seen: dict[object, None] = {}
    for record in records:
        seen.setdefault(getattr(record, attr), None)
    return tuple(seen)


def range_bounds(records: Sequence[Record], field: str, default: tuple[float, float] = (16.0, 30.0)) -> tuple[float, float]:
    attr = resolve_field(field)
    values = [float(getattr(r, attr)) for r in records if not math.isnan(float(getattr(r, attr)))]
    if not values:
        return default
    return (min(values), max(values))


def selection_ratio(selected: Sequence[Record], total: Sequence[Record]) -> float:
    if not total:
        return 0.0
    return len(selected) / len(total)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_range_pair(value: object) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(_is_number(v) for v in value)
    )
