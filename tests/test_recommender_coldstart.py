from datetime import datetime

import pytest

from movie_rec.catalog import Catalog, Item
from movie_rec.filters import FilterCriteria
from movie_rec.ratings import RatingFact
from movie_rec.recommender import RecommendationEngine, Strategy


@pytest.mark.parametrize("filters", [
    None,
    FilterCriteria.default().with_overrides(genres={"Drama"}),
    FilterCriteria.default().with_overrides(languages={"French", "Japanese"}),
])
def test_new_user_gets_popular_items_in_every_mode(sample_engine, filters):
    popular = sample_engine.get_popular(filters, limit=5)

    assert popular
    assert sample_engine.get_hybrid("newbie", [], filters, limit=5) == popular
    assert sample_engine.get_content_based([], filters, limit=5) == popular
    assert sample_engine.get_collaborative("newbie", [], filters, limit=5) == popular


def test_popular_fallback_is_tagged_content_based(sample_engine):
    recs = sample_engine.get_hybrid("newbie", [], limit=3)

    assert all(r.strategy is Strategy.CONTENT_BASED for r in recs)
    assert recs[0].reason.startswith("Popular ")


def test_empty_catalog_never_raises():
    engine = RecommendationEngine(Catalog([]))
    ratings = [RatingFact("me", 1, 5, datetime(2024, 1, 1))]

    assert engine.get_popular() == []
    assert engine.get_content_based(ratings) == []
    assert engine.get_collaborative("me", ratings) == []
    assert engine.get_hybrid("me", ratings) == []
    assert engine.get_hybrid("me", []) == []


def test_empty_repository_falls_back_to_content():
    catalog = Catalog([
        Item(id=1, genres=("Drama",), year=2000, language="English", duration=100, rating=8.0),
        Item(id=2, genres=("Drama",), year=2005, language="English", duration=100, rating=7.0),
    ])
    engine = RecommendationEngine(catalog, current_year=2026)
    ratings = [RatingFact("me", 1, 5, datetime(2024, 1, 1))]

    recs = engine.get_collaborative("me", ratings)

    assert [r.item.id for r in recs] == [2]
    assert recs[0].strategy is Strategy.CONTENT_BASED
    assert engine.similar_users("me", ratings) == []


def test_ratings_for_unknown_items_do_not_break_scoring(sample_engine):
    ratings = [RatingFact("me", 999, 5, datetime(2024, 1, 1))]

    recs = sample_engine.get_content_based(ratings, limit=3)

    assert len(recs) == 3
    assert [r.item.id for r in recs] == [r.item.id for r in sample_engine.content.recommend(ratings, None, 3)]
