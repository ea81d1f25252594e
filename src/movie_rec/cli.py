import argparse
import json
import logging
import re
import sys

from .config import DEFAULT_LIMIT
from .filters import FilterCriteria
from .ratings import RatingFact
from .recommender import Recommendation, RecommendationEngine, STRATEGY_LABELS

logger = logging.getLogger(__name__)


def _validate_username(user_id: str) -> str:
    """
    Normalize a user id typed on the command line so it matches the ids in
    the seed ratings (lowercase letters, digits, underscores and hyphens).
    """
    sanitized = re.sub(r'[^a-z0-9_-]', '', user_id.lower())
    if sanitized != user_id.lower():
        logger.warning(f"User id '{user_id}' sanitized to '{sanitized}'")
    return sanitized


def _parse_ratings(entries: list[str] | None) -> list[tuple[int, float]]:
    """
    Parse CLI rating arguments in the form item_id=rating.
    Raises ValueError on malformed entries.
    """
    if not entries:
        return []

    parsed = []
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid rating '{entry}' (expected ITEM=RATING)")
        item_part, rating_part = entry.split("=", 1)
        try:
            parsed.append((int(item_part), float(rating_part)))
        except ValueError:
            raise ValueError(f"Invalid rating '{entry}' (expected integer item id and numeric rating)")
    return parsed


def _build_filters(args: argparse.Namespace) -> FilterCriteria | None:
    """Build filter criteria from CLI flags; None when no flag is set."""
    flags = ('genres', 'languages', 'min_year', 'max_year', 'min_rating', 'max_duration')
    if all(getattr(args, flag, None) is None for flag in flags):
        return None

    filters = FilterCriteria.default()
    min_year, max_year = filters.year_range
    return filters.with_overrides(
        genres=args.genres or (),
        languages=args.languages or (),
        year_range=(
            args.min_year if args.min_year is not None else min_year,
            args.max_year if args.max_year is not None else max_year,
        ),
        min_rating=args.min_rating if args.min_rating is not None else 0.0,
        max_duration=args.max_duration,
    )


def _load_engine(args: argparse.Namespace) -> RecommendationEngine:
    return RecommendationEngine.from_files(
        catalog_path=getattr(args, 'catalog', None),
        seed_path=getattr(args, 'seed_ratings', None),
    )


def _output_recommendations(recs: list[Recommendation], args: argparse.Namespace, heading: str) -> None:
    """Format and log recommendations in the requested format."""
    if getattr(args, 'format', 'text') == 'json':
        logger.info(json.dumps([r.to_dict() for r in recs], indent=2, ensure_ascii=False))
        return

    if not recs:
        logger.info("No items match.")
        return

    logger.info(f"\n{heading}:")
    for i, r in enumerate(recs, 1):
        item = r.item
        logger.info(f"{i}. {item.title or item.id} ({item.year}) - Score: {r.score:.2f} [{STRATEGY_LABELS[r.strategy]}]")
        logger.info(f"   Why: {r.reason}")


def cmd_popular(args: argparse.Namespace) -> None:
    """Show the highest-rated catalog items."""
    engine = _load_engine(args)
    recs = engine.get_popular(_build_filters(args), args.limit)
    _output_recommendations(recs, args, f"Top {len(recs)} popular movies")


def cmd_recommend(args: argparse.Namespace) -> None:
    """Generate recommendations for a user."""
    user_id = _validate_username(args.user)
    engine = _load_engine(args)

    try:
        for item_id, rating in _parse_ratings(args.rate):
            if item_id not in engine.catalog:
                logger.warning(f"Item {item_id} is not in the catalog")
            engine.add_rating(user_id, item_id, rating)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    user_ratings = engine.ratings_for(user_id)
    filters = _build_filters(args)

    strategy_handlers = {
        'content': lambda: engine.get_content_based(user_ratings, filters, args.limit),
        'collaborative': lambda: engine.get_collaborative(user_id, user_ratings, filters, args.limit),
        'hybrid': lambda: engine.get_hybrid(user_id, user_ratings, filters, args.limit),
    }
    recs = strategy_handlers[args.strategy]()

    _output_recommendations(recs, args, f"Top {len(recs)} recommendations for {user_id} ({args.strategy})")


def cmd_ratings(args: argparse.Namespace) -> None:
    """List a user's ratings."""
    user_id = _validate_username(args.user)
    engine = _load_engine(args)
    facts: list[RatingFact] = engine.ratings_for(user_id)

    if not facts:
        logger.info(f"No ratings for '{user_id}'.")
        return

    logger.info(f"\nRatings for {user_id}:")
    for fact in sorted(facts, key=lambda f: f.timestamp):
        item = engine.catalog.get(fact.item_id)
        title = item.title if item else f"item {fact.item_id}"
        logger.info(f"  {title}: {fact.rating:g}★ ({fact.timestamp:%Y-%m-%d})")


def cmd_similar_users(args: argparse.Namespace) -> None:
    """Find users with similar taste."""
    user_id = _validate_username(args.user)
    engine = _load_engine(args)
    user_ratings = engine.ratings_for(user_id)

    if not user_ratings:
        logger.error(f"No ratings for '{user_id}'.")
        sys.exit(1)

    neighbors = engine.similar_users(user_id, user_ratings)
    if not neighbors:
        logger.info("\nNo similar users found with sufficient overlap.")
        return

    logger.info(f"\nUsers with similar taste to {user_id}:")
    logger.info("-" * 50)
    for other, similarity in neighbors:
        rated = len(engine.ratings_for(other))
        logger.info(f"  {other}: {similarity:.3f} similarity ({rated} ratings)")


def cmd_catalog(args: argparse.Namespace) -> None:
    """List catalog items plus the genre and language vocabularies."""
    engine = _load_engine(args)
    catalog = engine.catalog
    items = catalog.search(args.search) if args.search is not None else catalog.items

    if args.format == 'json':
        logger.info(json.dumps({
            "items": [item.to_dict() for item in items],
            "genres": catalog.genres(),
            "languages": catalog.languages(),
        }, indent=2, ensure_ascii=False))
        return

    if args.search is not None:
        logger.info(f"\n{len(items)} items matching '{args.search}':")
    else:
        logger.info(f"\nCatalog ({len(catalog)} items):")
    for item in items:
        logger.info(
            f"  [{item.id}] {item.title} ({item.year}) - {', '.join(item.genres)} | "
            f"{item.language} | {item.duration} min | {item.rating:g}/10"
        )
    logger.info(f"\nGenres: {', '.join(catalog.genres())}")
    logger.info(f"Languages: {', '.join(catalog.languages())}")


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--genres", nargs="+", help="Include items with any of these genres")
    parser.add_argument("--languages", nargs="+", help="Include items in any of these languages")
    parser.add_argument("--min-year", type=int, help="Minimum release year")
    parser.add_argument("--max-year", type=int, help="Maximum release year")
    parser.add_argument("--min-rating", type=float, help="Minimum catalog rating (0-10)")
    parser.add_argument("--max-duration", type=int, help="Maximum duration in minutes")
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Number of recommendations")
    parser.add_argument("--format", choices=['text', 'json'], default='text', help="Output format")


def main():
    parser = argparse.ArgumentParser(description="Movie Recommender")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--catalog", help="Catalog JSON file (overrides MOVIE_REC_CATALOG)")
    parser.add_argument("--seed-ratings", help="Seed ratings JSON file (overrides MOVIE_REC_SEED_RATINGS)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    popular_parser = subparsers.add_parser("popular", help="Highest-rated movies")
    _add_filter_arguments(popular_parser)
    popular_parser.set_defaults(func=cmd_popular)

    rec_parser = subparsers.add_parser("recommend", help="Get recommendations for a user")
    rec_parser.add_argument("user", help="User id")
    rec_parser.add_argument("--strategy", choices=['content', 'collaborative', 'hybrid'], default='hybrid',
                            help="Recommendation strategy")
    rec_parser.add_argument("--rate", action="append", metavar="ITEM=RATING",
                            help="Add a rating (1-5) before recommending; repeatable")
    _add_filter_arguments(rec_parser)
    rec_parser.set_defaults(func=cmd_recommend)

    ratings_parser = subparsers.add_parser("ratings", help="Show a user's ratings")
    ratings_parser.add_argument("user", help="User id")
    ratings_parser.set_defaults(func=cmd_ratings)

    similar_parser = subparsers.add_parser("similar-users", help="Find users with similar taste")
    similar_parser.add_argument("user", help="User id")
    similar_parser.set_defaults(func=cmd_similar_users)

    catalog_parser = subparsers.add_parser("catalog", help="List catalog items, genres and languages")
    catalog_parser.add_argument("--format", choices=['text', 'json'], default='text', help="Output format")
    catalog_parser.add_argument("--search", metavar="TEXT",
                                help="Only items whose title, director, cast or genres contain TEXT")
    catalog_parser.set_defaults(func=cmd_catalog)

    args = parser.parse_args()

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(message)s' if not args.verbose else '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    args.func(args)
