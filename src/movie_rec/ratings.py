"""
In-memory rating repository.

Holds every known (user, item, rating, timestamp) fact. The (user, item)
pair is the natural key: a newer fact for the same pair replaces the old
one instead of adding a second entry.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .config import RATING_MAX, RATING_MIN, SEED_RATINGS_PATH

logger = logging.getLogger(__name__)


class InvalidRatingValue(ValueError):
    """Raised when a rating falls outside the star scale."""

    def __init__(self, value):
        super().__init__(f"Rating must be a number between {RATING_MIN} and {RATING_MAX}, got {value!r}")
        self.value = value


def parse_timestamp_naive(timestamp_str: str) -> datetime:
    """
    Parse ISO format timestamp string to naive datetime.

    Always returns a naive datetime so seed facts and facts created at
    runtime compare cleanly.
    """
    dt = datetime.fromisoformat(timestamp_str)
    return dt.replace(tzinfo=None) if dt.tzinfo else dt


def validate_rating(rating) -> float:
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise InvalidRatingValue(rating)
    if math.isnan(rating) or not RATING_MIN <= rating <= RATING_MAX:
        raise InvalidRatingValue(rating)
    return rating


@dataclass(frozen=True)
class RatingFact:
    user_id: str
    item_id: int
    rating: float
    timestamp: datetime

    @classmethod
    def from_dict(cls, record: dict) -> "RatingFact":
        timestamp = record.get("timestamp")
        return cls(
            user_id=str(record["user_id"]),
            item_id=int(record["item_id"]),
            rating=record["rating"],
            timestamp=parse_timestamp_naive(timestamp) if timestamp else datetime.now(),
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "item_id": self.item_id,
            "rating": self.rating,
            "timestamp": self.timestamp.isoformat(),
        }


def rating_vector(facts: Iterable[RatingFact]) -> dict[int, float]:
    """Project facts onto an item_id -> rating mapping."""
    return {f.item_id: f.rating for f in facts}


class RatingRepository:
    """
    Store of rating facts keyed by (user_id, item_id).

    Users and their items keep first-insertion order, which makes neighbor
    tie-breaks deterministic. Replacing a fact keeps its original position.
    """

    def __init__(self, facts: Iterable[RatingFact] = ()):
        self._lock = threading.Lock()
        self._facts: dict[str, dict[int, RatingFact]] = {}
        for fact in facts:
            self.upsert(fact.user_id, fact.item_id, fact.rating, fact.timestamp)

    def upsert(
        self,
        user_id: str,
        item_id: int,
        rating: float,
        timestamp: datetime | None = None,
    ) -> RatingFact:
        """Insert a fact, replacing any existing fact for the same user and item."""
        validate_rating(rating)
        timestamp = timestamp or datetime.now()
        if timestamp.tzinfo:
            timestamp = timestamp.replace(tzinfo=None)
        fact = RatingFact(user_id, item_id, rating, timestamp)
        with self._lock:
            user_facts = self._facts.setdefault(user_id, {})
            replaced = item_id in user_facts
            user_facts[item_id] = fact
        logger.debug(
            f"{'Replaced' if replaced else 'Added'} rating {rating} for user {user_id} on item {item_id}"
        )
        return fact

    def ratings_of(self, user_id: str) -> list[RatingFact]:
        with self._lock:
            return list(self._facts.get(user_id, {}).values())

    def vector_of(self, user_id: str) -> dict[int, float]:
        return rating_vector(self.ratings_of(user_id))

    def all_users(self) -> list[str]:
        """Distinct users with at least one fact, in first-seen order."""
        with self._lock:
            return [user for user, facts in self._facts.items() if facts]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(facts) for facts in self._facts.values())


def load_seed_ratings(path: str | Path | None = None) -> list[RatingFact]:
    """Load community rating facts from a JSON list of records."""
    seed_path = Path(path) if path else SEED_RATINGS_PATH
    records = json.loads(seed_path.read_text(encoding="utf-8"))
    facts = [RatingFact.from_dict(r) for r in records]
    for fact in facts:
        validate_rating(fact.rating)
    logger.debug(f"Loaded {len(facts)} seed ratings from {seed_path}")
    return facts
