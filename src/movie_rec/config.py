"""
Configuration constants for the movie recommender.

This module centralizes all magic numbers and configurable parameters.
Values can be overridden via environment variables.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Read a MOVIE_REC_* float setting (noise floor, hybrid weights).

    Unparseable values fall back to the default; values below min_val are
    clamped to min_val. Both cases log a warning.
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Read a MOVIE_REC_* integer setting (neighbor cap, result limits).

    Same fallback and clamping rules as _get_float_env.
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


# Data files
DATA_DIR = Path(__file__).resolve().parent / "data"
CATALOG_PATH = Path(os.environ.get("MOVIE_REC_CATALOG", DATA_DIR / "catalog.json"))
SEED_RATINGS_PATH = Path(os.environ.get("MOVIE_REC_SEED_RATINGS", DATA_DIR / "seed_ratings.json"))

# Rating scale (stars)
RATING_MIN = 1
RATING_MAX = 5

# Result sizing
DEFAULT_LIMIT = _get_int_env("MOVIE_REC_DEFAULT_LIMIT", 10, min_val=1)
OVERFETCH_FACTOR = _get_int_env("MOVIE_REC_OVERFETCH_FACTOR", 2, min_val=1)  # hybrid pulls limit * factor per source

# Collaborative filtering
SIMILARITY_NOISE_FLOOR = _get_float_env("MOVIE_REC_NOISE_FLOOR", 0.1, min_val=0.0)
MAX_NEIGHBORS = _get_int_env("MOVIE_REC_MAX_NEIGHBORS", 5, min_val=1)

# Hybrid blending (fixed regardless of how many ratings the user has)
HYBRID_CONTENT_WEIGHT = _get_float_env("MOVIE_REC_CONTENT_WEIGHT", 0.6, min_val=0.0)
HYBRID_COLLAB_WEIGHT = _get_float_env("MOVIE_REC_COLLAB_WEIGHT", 0.4, min_val=0.0)
HYBRID_REASON_SEPARATOR = " • "

# Content scoring
CONTENT_SCORE_MAX = 5.0
QUALITY_SCALE = 10.0       # catalog quality is 0-10
QUALITY_BOOST = 2.0        # quality contributes up to 2 points
RECENCY_OFFSET = 10
RECENCY_DIVISOR = 50
TOP_GENRES_FOR_REASON = 2

# Filter panel reset state
DEFAULT_MIN_YEAR = 1970
