import importlib
import sys
from pathlib import Path

import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def fresh_config(monkeypatch):
    """
    Yield a reload function for config; restores env-free config afterwards.
    """
    import movie_rec.config as config

    def _reload():
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


@pytest.fixture
def sample_engine():
    """Engine over the bundled catalog and seed ratings."""
    from movie_rec.recommender import RecommendationEngine

    return RecommendationEngine.from_files(current_year=2026)
