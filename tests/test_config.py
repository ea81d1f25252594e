def test_env_overrides_and_validation(monkeypatch, fresh_config):
    monkeypatch.setenv("MOVIE_REC_NOISE_FLOOR", "0.25")
    monkeypatch.setenv("MOVIE_REC_MAX_NEIGHBORS", "0")  # should clamp to min
    monkeypatch.setenv("MOVIE_REC_CONTENT_WEIGHT", "-1")  # should clamp to min

    cfg = fresh_config()

    assert cfg.SIMILARITY_NOISE_FLOOR == 0.25
    assert cfg.MAX_NEIGHBORS == 1
    assert cfg.HYBRID_CONTENT_WEIGHT == 0.0


def test_data_paths_respect_env(monkeypatch, tmp_path, fresh_config):
    monkeypatch.setenv("MOVIE_REC_CATALOG", str(tmp_path / "catalog.json"))
    monkeypatch.setenv("MOVIE_REC_SEED_RATINGS", str(tmp_path / "seed.json"))

    cfg = fresh_config()

    assert cfg.CATALOG_PATH == tmp_path / "catalog.json"
    assert cfg.SEED_RATINGS_PATH == tmp_path / "seed.json"


def test_invalid_env_values_fall_back_to_defaults(monkeypatch, fresh_config):
    monkeypatch.setenv("MOVIE_REC_NOISE_FLOOR", "not-a-float")
    monkeypatch.setenv("MOVIE_REC_MAX_NEIGHBORS", "bad-int")
    monkeypatch.setenv("MOVIE_REC_DEFAULT_LIMIT", "oops")

    cfg = fresh_config()

    assert cfg.SIMILARITY_NOISE_FLOOR == 0.1
    assert cfg.MAX_NEIGHBORS == 5
    assert cfg.DEFAULT_LIMIT == 10


def test_default_hybrid_weights(fresh_config):
    cfg = fresh_config()

    assert cfg.HYBRID_CONTENT_WEIGHT == 0.6
    assert cfg.HYBRID_COLLAB_WEIGHT == 0.4
