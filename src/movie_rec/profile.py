import logging
from collections import defaultdict
from typing import Iterable

from .catalog import Catalog
from .config import TOP_GENRES_FOR_REASON
from .ratings import RatingFact

logger = logging.getLogger(__name__)


def build_genre_preferences(user_ratings: Iterable[RatingFact], catalog: Catalog) -> dict[str, float]:
    """
    Average rating the user gave to items carrying each genre.

    An item with several genres contributes its rating to every one of
    them. Ratings for items missing from the catalog are skipped.
    """
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)

    for fact in user_ratings:
        item = catalog.get(fact.item_id)
        if item is None:
            logger.debug(f"Skipping rating for unknown item {fact.item_id}")
            continue
        for genre in item.genres:
            totals[genre] += fact.rating
            counts[genre] += 1

    return {genre: totals[genre] / counts[genre] for genre in totals}


def top_genres(preferences: dict[str, float], n: int = TOP_GENRES_FOR_REASON) -> list[str]:
    """Highest-preference genres; ties keep first-seen order."""
    ranked = sorted(preferences.items(), key=lambda x: -x[1])
    return [genre for genre, _ in ranked[:n]]
