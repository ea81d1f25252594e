from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable
import logging

from .catalog import Catalog, Item, load_catalog
from .filters import FilterCriteria, apply_filters, passes_filter
from .profile import build_genre_preferences, top_genres
from .ratings import RatingFact, RatingRepository, load_seed_ratings, rating_vector
from .similarity import find_neighbors
from .config import (
    CONTENT_SCORE_MAX,
    DEFAULT_LIMIT,
    HYBRID_COLLAB_WEIGHT,
    HYBRID_CONTENT_WEIGHT,
    HYBRID_REASON_SEPARATOR,
    MAX_NEIGHBORS,
    OVERFETCH_FACTOR,
    QUALITY_BOOST,
    QUALITY_SCALE,
    RECENCY_DIVISOR,
    RECENCY_OFFSET,
    SIMILARITY_NOISE_FLOOR,
)

logger = logging.getLogger(__name__)


class Strategy(Enum):
    CONTENT_BASED = "content-based"
    COLLABORATIVE = "collaborative"
    HYBRID = "hybrid"


# Badge text shown next to each recommendation; must cover every Strategy
STRATEGY_LABELS = {
    Strategy.CONTENT_BASED: "Based on your taste",
    Strategy.COLLABORATIVE: "Liked by similar users",
    Strategy.HYBRID: "Best match",
}


@dataclass
class Recommendation:
    item: Item
    score: float
    reason: str
    strategy: Strategy

    def to_dict(self) -> dict:
        return {
            **self.item.to_dict(),
            "score": round(self.score, 4),
            "reason": self.reason,
            "strategy": self.strategy.value,
        }


def _rank(recs: list[Recommendation], limit: int) -> list[Recommendation]:
    """Sort by score descending (stable) and cut to limit."""
    if limit <= 0:
        return []
    return sorted(recs, key=lambda r: -r.score)[:limit]


class ContentScorer:
    """
    Score unseen items by the user's genre preferences plus catalog
    quality and a recency term.
    """

    def __init__(self, catalog: Catalog, current_year: int | None = None):
        self.catalog = catalog
        self.current_year = current_year

    def _year(self) -> int:
        return self.current_year or datetime.now().year

    def score(self, item: Item, preferences: dict[str, float]) -> float:
        matched = [preferences[g] for g in item.genres if g in preferences]
        genre_affinity = sum(matched) / len(matched) if matched else 0.0

        quality_boost = item.rating / QUALITY_SCALE * QUALITY_BOOST
        recency_bonus = max(0.0, (self._year() - item.year + RECENCY_OFFSET) / RECENCY_DIVISOR)

        return min(CONTENT_SCORE_MAX, max(0.0, genre_affinity + quality_boost + recency_bonus))

    def reason(self, item: Item, preferences: dict[str, float]) -> str:
        favorites = top_genres(preferences)
        shared = [g for g in item.genres if g in favorites]
        if shared:
            return f"You enjoy {' and '.join(shared)} movies"
        return f"Highly rated {item.primary_genre} movie ({item.rating:g}/10)"

    def recommend(
        self,
        user_ratings: list[RatingFact],
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Recommendation]:
        """Rank every unrated, filter-passing catalog item."""
        preferences = build_genre_preferences(user_ratings, self.catalog)
        rated = {f.item_id for f in user_ratings}
        candidates = apply_filters((i for i in self.catalog if i.id not in rated), filters)

        recs = [
            Recommendation(
                item=item,
                score=self.score(item, preferences),
                reason=self.reason(item, preferences),
                strategy=Strategy.CONTENT_BASED,
            )
            for item in candidates
        ]
        logger.debug(f"Content scoring: {len(recs)} candidates, {len(preferences)} preferred genres")
        return _rank(recs, limit)


class CollaborativeScorer:
    """
    Predict scores for unrated items from the ratings of the most similar
    users, as a similarity-weighted mean per item.
    """

    def __init__(
        self,
        catalog: Catalog,
        repository: RatingRepository,
        noise_floor: float = SIMILARITY_NOISE_FLOOR,
        max_neighbors: int = MAX_NEIGHBORS,
    ):
        self.catalog = catalog
        self.repository = repository
        self.noise_floor = noise_floor
        self.max_neighbors = max_neighbors

    def neighbors(self, user_id: str, user_ratings: list[RatingFact]) -> list[tuple[str, float]]:
        target = rating_vector(user_ratings)
        others = (
            (other, self.repository.vector_of(other))
            for other in self.repository.all_users()
            if other != user_id
        )
        return find_neighbors(target, others, noise_floor=self.noise_floor, k=self.max_neighbors)

    def recommend(
        self,
        user_id: str,
        user_ratings: list[RatingFact],
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
        neighbors: list[tuple[str, float]] | None = None,
    ) -> list[Recommendation]:
        """Neighbor-based recommendations; empty when no neighbors exist."""
        if neighbors is None:
            neighbors = self.neighbors(user_id, user_ratings)
        if not neighbors:
            return []

        rated = {f.item_id for f in user_ratings}
        weighted_sums: dict[int, float] = {}
        counts: dict[int, int] = {}

        for neighbor_id, similarity in neighbors:
            for fact in self.repository.ratings_of(neighbor_id):
                if fact.item_id in rated:
                    continue
                weighted_sums[fact.item_id] = weighted_sums.get(fact.item_id, 0.0) + fact.rating * similarity
                counts[fact.item_id] = counts.get(fact.item_id, 0) + 1

        recs = []
        for item_id, total in weighted_sums.items():
            item = self.catalog.get(item_id)
            if item is None:
                logger.debug(f"Skipping neighbor rating for unknown item {item_id}")
                continue
            if not passes_filter(item, filters):
                continue
            count = counts[item_id]
            recs.append(Recommendation(
                item=item,
                score=total / count,
                reason=f"Recommended by users with similar taste ({count} similar users)",
                strategy=Strategy.COLLABORATIVE,
            ))

        logger.debug(f"Collaborative scoring: {len(neighbors)} neighbors, {len(recs)} candidates")
        return _rank(recs, limit)


def blend_hybrid(
    content_recs: list[Recommendation],
    collab_recs: list[Recommendation],
    limit: int,
    content_weight: float = HYBRID_CONTENT_WEIGHT,
    collab_weight: float = HYBRID_COLLAB_WEIGHT,
) -> list[Recommendation]:
    """
    Merge two scored sets by item id into a weighted hybrid ranking.

    An item missing from one set scores 0 in that dimension. Items keep
    first-seen order (content first) when final scores tie.
    """
    merged: dict[int, dict] = {}

    for rec in content_recs:
        merged[rec.item.id] = {"item": rec.item, "content": rec.score, "collab": 0.0, "reasons": [rec.reason]}

    for rec in collab_recs:
        entry = merged.get(rec.item.id)
        if entry:
            entry["collab"] = rec.score
            entry["reasons"].append(rec.reason)
        else:
            merged[rec.item.id] = {"item": rec.item, "content": 0.0, "collab": rec.score, "reasons": [rec.reason]}

    recs = [
        Recommendation(
            item=entry["item"],
            score=content_weight * entry["content"] + collab_weight * entry["collab"],
            reason=HYBRID_REASON_SEPARATOR.join(entry["reasons"]),
            strategy=Strategy.HYBRID,
        )
        for entry in merged.values()
    ]
    return _rank(recs, limit)


class RecommendationEngine:
    """
    Public entry point: popular, content-based, collaborative and hybrid
    recommendations over a fixed catalog and a shared rating repository.

    Every query recomputes from the current rating facts; nothing is
    cached between calls.
    """

    def __init__(
        self,
        catalog: Catalog,
        repository: RatingRepository | None = None,
        noise_floor: float = SIMILARITY_NOISE_FLOOR,
        max_neighbors: int = MAX_NEIGHBORS,
        content_weight: float = HYBRID_CONTENT_WEIGHT,
        collab_weight: float = HYBRID_COLLAB_WEIGHT,
        current_year: int | None = None,
    ):
        self.catalog = catalog
        self.repository = repository if repository is not None else RatingRepository()
        self.content_weight = content_weight
        self.collab_weight = collab_weight
        self.content = ContentScorer(catalog, current_year=current_year)
        self.collaborative = CollaborativeScorer(
            catalog, self.repository, noise_floor=noise_floor, max_neighbors=max_neighbors
        )

    @classmethod
    def from_files(
        cls,
        catalog_path: str | Path | None = None,
        seed_path: str | Path | None = None,
        **kwargs,
    ) -> "RecommendationEngine":
        """Build an engine from the catalog and seed rating JSON files."""
        catalog = load_catalog(catalog_path)
        repository = RatingRepository(load_seed_ratings(seed_path))
        logger.debug(f"Engine ready: {len(catalog)} items, {len(repository)} ratings")
        return cls(catalog, repository, **kwargs)

    def get_popular(
        self,
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Recommendation]:
        """Highest catalog quality first, ignoring any ratings."""
        if limit <= 0:
            return []
        items = sorted(apply_filters(self.catalog, filters), key=lambda i: -i.rating)
        return [
            Recommendation(
                item=item,
                score=item.rating / 2,
                reason=f"Popular {item.primary_genre} movie with {item.rating:g}/10 rating",
                strategy=Strategy.CONTENT_BASED,
            )
            for item in items[:limit]
        ]

    def get_content_based(
        self,
        user_ratings: Iterable[RatingFact],
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Recommendation]:
        user_ratings = list(user_ratings)
        if not user_ratings:
            logger.debug("No ratings; falling back to popular items")
            return self.get_popular(filters, limit)
        return self.content.recommend(user_ratings, filters, limit)

    def get_collaborative(
        self,
        user_id: str,
        user_ratings: Iterable[RatingFact],
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Recommendation]:
        user_ratings = list(user_ratings)
        if not user_ratings:
            logger.debug("No ratings; falling back to popular items")
            return self.get_popular(filters, limit)

        neighbors = self.collaborative.neighbors(user_id, user_ratings)
        if not neighbors:
            logger.debug(f"No similar users for {user_id}; falling back to content-based")
            return self.content.recommend(user_ratings, filters, limit)

        return self.collaborative.recommend(user_id, user_ratings, filters, limit, neighbors=neighbors)

    def get_hybrid(
        self,
        user_id: str,
        user_ratings: Iterable[RatingFact],
        filters: FilterCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Recommendation]:
        user_ratings = list(user_ratings)
        if not user_ratings:
            logger.debug("No ratings; falling back to popular items")
            return self.get_popular(filters, limit)
        if limit <= 0:
            return []

        fetch = limit * OVERFETCH_FACTOR
        content_recs = self.content.recommend(user_ratings, filters, fetch)
        collab_recs = self.collaborative.recommend(user_id, user_ratings, filters, fetch)
        return blend_hybrid(
            content_recs,
            collab_recs,
            limit,
            content_weight=self.content_weight,
            collab_weight=self.collab_weight,
        )

    def similar_users(self, user_id: str, user_ratings: Iterable[RatingFact]) -> list[tuple[str, float]]:
        return self.collaborative.neighbors(user_id, list(user_ratings))

    def add_rating(
        self,
        user_id: str,
        item_id: int,
        rating: float,
        timestamp: datetime | None = None,
    ) -> None:
        """Record a rating; raises InvalidRatingValue outside the star scale."""
        self.repository.upsert(user_id, item_id, rating, timestamp)

    def ratings_for(self, user_id: str) -> list[RatingFact]:
        return self.repository.ratings_of(user_id)
