"""
Read-only movie catalog.

The catalog is loaded once at startup from a JSON file (a list of item
records) and never mutated afterwards.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .config import CATALOG_PATH

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "genres", "year", "language", "duration", "rating")


class CatalogError(ValueError):
    """Raised when a catalog record is malformed."""


@dataclass(frozen=True)
class Item:
    id: int
    genres: tuple[str, ...]
    year: int
    language: str
    duration: int          # minutes
    rating: float          # catalog quality, 0-10
    title: str = ""
    director: str = ""
    cast: tuple[str, ...] = ()

    @property
    def primary_genre(self) -> str:
        return self.genres[0]

    @classmethod
    def from_dict(cls, record: dict) -> "Item":
        missing = [f for f in REQUIRED_FIELDS if f not in record]
        if missing:
            raise CatalogError(f"Catalog record {record.get('id')!r} is missing {', '.join(missing)}")

        if not isinstance(record["genres"], list):
            raise CatalogError(f"Catalog record {record['id']!r} genres must be a list")
        genres = tuple(record["genres"])
        if not genres:
            raise CatalogError(f"Catalog record {record['id']!r} has no genres")

        cast = record.get("cast", [])
        if not isinstance(cast, list):
            raise CatalogError(f"Catalog record {record['id']!r} cast must be a list")

        return cls(
            id=int(record["id"]),
            genres=genres,
            year=int(record["year"]),
            language=record["language"],
            duration=int(record["duration"]),
            rating=float(record["rating"]),
            title=record.get("title", ""),
            director=record.get("director", ""),
            cast=tuple(cast),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "genres": list(self.genres),
            "year": self.year,
            "language": self.language,
            "duration": self.duration,
            "rating": self.rating,
            "director": self.director,
            "cast": list(self.cast),
        }


class Catalog:
    """Ordered, id-indexed collection of items."""

    def __init__(self, items: Iterable[Item] = ()):
        self._items: list[Item] = []
        self._by_id: dict[int, Item] = {}
        for item in items:
            if item.id in self._by_id:
                raise CatalogError(f"Duplicate catalog id {item.id}")
            self._items.append(item)
            self._by_id[item.id] = item

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    def get(self, item_id: int) -> Item | None:
        return self._by_id.get(item_id)

    @property
    def items(self) -> list[Item]:
        return list(self._items)

    def genres(self) -> list[str]:
        """Distinct genre tags across the catalog, sorted."""
        return sorted({g for item in self._items for g in item.genres})

    def languages(self) -> list[str]:
        """Distinct languages across the catalog, sorted."""
        return sorted({item.language for item in self._items})

    def search(self, query: str) -> list[Item]:
        """
        Items whose title, director, cast or genres contain the query,
        case-insensitively. A blank query matches nothing.
        """
        if not query.strip():
            return []
        needle = query.lower()
        return [
            item for item in self._items
            if needle in item.title.lower()
            or needle in item.director.lower()
            or any(needle in actor.lower() for actor in item.cast)
            or any(needle in genre.lower() for genre in item.genres)
        ]


def load_catalog(path: str | Path | None = None) -> Catalog:
    """Load the catalog from a JSON list of item records."""
    catalog_path = Path(path) if path else CATALOG_PATH
    records = json.loads(catalog_path.read_text(encoding="utf-8"))
    catalog = Catalog(Item.from_dict(r) for r in records)
    logger.debug(f"Loaded {len(catalog)} catalog items from {catalog_path}")
    return catalog
