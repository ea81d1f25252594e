import json
import logging
import sys

import pytest

from movie_rec import cli


def test_validate_username():
    assert cli._validate_username("user1") == "user1"
    assert cli._validate_username("Bad Name!") == "badname"


def test_parse_ratings():
    assert cli._parse_ratings(None) == []
    assert cli._parse_ratings(["1=5", "12=3.5"]) == [(1, 5.0), (12, 3.5)]

    with pytest.raises(ValueError):
        cli._parse_ratings(["15"])
    with pytest.raises(ValueError):
        cli._parse_ratings(["x=4"])


def _capture():
    """Stand-in command that records the parsed args instead of running."""
    captured = {}

    def fake(args):
        captured["args"] = args

    return captured, fake


def test_main_dispatches_to_subcommand(monkeypatch):
    captured, fake = _capture()
    monkeypatch.setattr(cli, "cmd_popular", fake)
    monkeypatch.setattr(sys, "argv", ["prog", "popular", "--limit", "3"])

    cli.main()

    assert captured["args"].command == "popular"
    assert captured["args"].limit == 3


def test_build_filters_without_flags_is_none(monkeypatch):
    captured, fake = _capture()
    monkeypatch.setattr(cli, "cmd_popular", fake)
    monkeypatch.setattr(sys, "argv", ["prog", "popular"])

    cli.main()

    assert cli._build_filters(captured["args"]) is None


def test_build_filters_from_flags(monkeypatch):
    captured, fake = _capture()
    monkeypatch.setattr(cli, "cmd_popular", fake)
    monkeypatch.setattr(sys, "argv", [
        "prog", "popular", "--genres", "Drama", "Crime", "--min-year", "1990",
        "--min-rating", "8.5", "--max-duration", "150",
    ])

    cli.main()
    filters = cli._build_filters(captured["args"])

    assert filters.genres == frozenset({"Drama", "Crime"})
    assert filters.year_range[0] == 1990
    assert filters.min_rating == 8.5
    assert filters.max_duration == 150
    assert filters.languages == frozenset()


def test_recommend_outputs_json(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(sys, "argv", [
        "prog", "recommend", "newbie", "--strategy", "content",
        "--rate", "1=5", "--rate", "2=4", "--limit", "3", "--format", "json",
    ])

    cli.main()

    payload = json.loads(caplog.records[-1].getMessage())
    assert len(payload) == 3
    assert all(r["strategy"] == "content-based" for r in payload)
    assert not {1, 2} & {r["id"] for r in payload}


def test_recommend_rejects_out_of_scale_rating(monkeypatch, caplog):
    monkeypatch.setattr(sys, "argv", ["prog", "recommend", "newbie", "--rate", "1=9"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "between 1 and 5" in caplog.text


def test_popular_text_output(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(sys, "argv", ["prog", "popular", "--limit", "2"])

    cli.main()

    assert "1. The Shawshank Redemption (1994) - Score: 4.65" in caplog.text
    assert "2. The Godfather (1972)" in caplog.text


def test_similar_users_lists_neighbors(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(sys, "argv", ["prog", "similar-users", "user2"])

    cli.main()

    assert "user1:" in caplog.text


def test_catalog_json_lists_vocabularies(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(sys, "argv", ["prog", "catalog", "--format", "json"])

    cli.main()

    payload = json.loads(caplog.records[-1].getMessage())
    assert len(payload["items"]) == 15
    assert "Japanese" in payload["languages"]
    assert "Sci-Fi" in payload["genres"]


def test_similar_users_without_ratings_exits_nonzero(monkeypatch, caplog):
    monkeypatch.setattr(sys, "argv", ["prog", "similar-users", "nobody"])

    with pytest.raises(SystemExit) as exc:
        cli.main()

    assert exc.value.code == 1
    assert "No ratings for 'nobody'" in caplog.text


def test_catalog_search(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(sys, "argv", ["prog", "catalog", "--search", "Nolan", "--format", "json"])

    cli.main()

    payload = json.loads(caplog.records[-1].getMessage())
    assert [item["title"] for item in payload["items"]] == ["The Dark Knight", "Inception"]
    assert payload["items"][0]["director"] == "Christopher Nolan"
