"""
Filter criteria chosen by the user and the predicate that applies them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from .catalog import Item
from .config import DEFAULT_MIN_YEAR


def _current_year_range() -> tuple[int, int]:
    return (DEFAULT_MIN_YEAR, datetime.now().year)


def _as_set(values) -> frozenset[str]:
    # A lone string is one value, not a sequence of characters
    if isinstance(values, str):
        return frozenset({values})
    return frozenset(values)


@dataclass(frozen=True)
class FilterCriteria:
    """
    Immutable set of constraints on recommendable items.

    Empty genre/language sets and a missing max_duration mean "no
    constraint". Year range and min_rating bounds are inclusive.
    """
    genres: frozenset[str] = frozenset()
    year_range: tuple[int, int] = field(default_factory=_current_year_range)
    min_rating: float = 0.0
    languages: frozenset[str] = frozenset()
    max_duration: int | None = None

    def __post_init__(self) -> None:
        # Accept any iterable from callers but store hashable, immutable values
        object.__setattr__(self, "genres", _as_set(self.genres))
        object.__setattr__(self, "languages", _as_set(self.languages))
        object.__setattr__(self, "year_range", tuple(self.year_range))

    @classmethod
    def default(cls) -> "FilterCriteria":
        """Reset state of the filter panel."""
        return cls()

    def with_overrides(self, **changes) -> "FilterCriteria":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    @property
    def active_count(self) -> int:
        """Number of set-valued or rating constraints in use (shown as a badge)."""
        return len(self.genres) + len(self.languages) + (1 if self.min_rating > 0 else 0)


def passes_filter(item: Item, filters: FilterCriteria | None) -> bool:
    """True if the item satisfies every supplied constraint."""
    if filters is None:
        return True

    if filters.genres and not any(g in filters.genres for g in item.genres):
        return False

    min_year, max_year = filters.year_range
    if item.year < min_year or item.year > max_year:
        return False

    if item.rating < filters.min_rating:
        return False

    if filters.languages and item.language not in filters.languages:
        return False

    if filters.max_duration is not None and item.duration > filters.max_duration:
        return False

    return True


def apply_filters(items: Iterable[Item], filters: FilterCriteria | None) -> list[Item]:
    if filters is None:
        return list(items)
    return [item for item in items if passes_filter(item, filters)]
