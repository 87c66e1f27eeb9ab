"""
Tests for Chess.com game normalization and the API client.
"""

import json
from datetime import datetime, timezone

import pytest
import requests

from src.ingestion.chesscom import (
    ChessComClient,
    FetchError,
    ValidationError,
    load_games_json,
    normalize_game,
    normalize_games,
    normalize_result,
    parse_pgn_tags,
)

SAMPLE_PGN = """[Event "Live Chess"]
[Site "Chess.com"]
[Date "2024.03.05"]
[White "Hero"]
[Black "villain"]
[WhiteElo "1234"]
[BlackElo "1250"]

1. e4 e5 2. Nf3 Nc6 1-0"""


def raw_game(**overrides):
    game = {
        'url': "https://www.chess.com/game/live/100",
        'end_time': 1_709_640_000,
        'time_class': 'blitz',
        'white': {'username': 'Hero', 'rating': 1234, 'result': 'win'},
        'black': {'username': 'villain', 'rating': 1250, 'result': 'resigned'},
    }
    game.update(overrides)
    return game


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} Client Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Serves canned responses by URL and records every request."""

    def __init__(self, routes):
        self.routes = routes
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if url not in self.routes:
            return FakeResponse(status=404)
        route = self.routes[url]
        if isinstance(route, requests.RequestException):
            raise route
        return FakeResponse(route)


PLAYER = "https://api.chess.com/pub/player/hero"


class TestParsePgnTags:
    """Tests for parse_pgn_tags function."""

    def test_headers(self):
        tags = parse_pgn_tags(SAMPLE_PGN)
        assert tags['Event'] == "Live Chess"
        assert tags['WhiteElo'] == "1234"

    def test_empty(self):
        assert parse_pgn_tags(None) == {}


class TestNormalizeResult:
    """Tests for normalize_result function."""

    @pytest.mark.parametrize("ours, theirs, expected", [
        ('win', 'resigned', 'win'),
        ('checkmated', 'win', 'loss'),
        ('agreed', 'agreed', 'draw'),
        ('repetition', 'repetition', 'draw'),
        ('stalemate', 'stalemate', 'draw'),
        ('timevsinsufficient', 'timeout', 'draw'),
        ('timeout', 'timevsinsufficient', 'draw'),
        ('timeout', 'win', 'loss'),
        ('', '', 'unknown'),
    ])
    def test_outcomes(self, ours, theirs, expected):
        white = {'username': 'Hero', 'result': ours}
        black = {'username': 'villain', 'result': theirs}
        assert normalize_result('hero', white, black) == expected

    def test_playing_black(self):
        white = {'username': 'villain', 'result': 'win'}
        black = {'username': 'hero', 'result': 'checkmated'}
        assert normalize_result('hero', white, black) == 'loss'


class TestNormalizeGame:
    """Tests for normalize_game function."""

    def test_white_side(self):
        record = normalize_game(raw_game(), "HERO")
        assert record.date == datetime.fromtimestamp(1_709_640_000, tz=timezone.utc)
        assert record.rating == 1234
        assert record.control == 'blitz'
        assert record.color == 'white'
        assert record.result == 'win'
        assert record.opponent == 'villain'
        assert record.opponent_rating == 1250

    def test_black_side(self):
        record = normalize_game(raw_game(), "villain")
        assert record.color == 'black'
        assert record.rating == 1250
        assert record.result == 'loss'
        assert record.opponent == 'Hero'

    def test_pgn_fallbacks(self):
        game = raw_game(end_time=None, time_class=None, pgn=SAMPLE_PGN)
        game['white'] = {'username': 'Hero', 'result': 'win'}
        record = normalize_game(game, "hero")
        assert record.date == datetime(2024, 3, 5, tzinfo=timezone.utc)
        assert record.rating == 1234
        assert record.control == 'live chess'

    def test_missing_rating_is_none(self):
        game = raw_game()
        game['white'] = {'username': 'Hero', 'result': 'win'}
        assert normalize_game(game, "hero").rating is None

    def test_no_end_time(self):
        with pytest.raises(ValidationError):
            normalize_game(raw_game(end_time=None), "hero")

    def test_bad_pgn_date(self):
        with pytest.raises(ValidationError, match="PGN date"):
            normalize_game(raw_game(end_time=None, pgn='[Date "2024.??.??"]'), "hero")


class TestNormalizeGames:
    """Tests for normalize_games function."""

    def test_skips_bad_games(self):
        records, skipped = normalize_games([raw_game(), raw_game(end_time=None), raw_game(end_time="x")], "hero")
        assert len(records) == 1
        assert skipped == 2


class TestLoadGamesJson:
    """Tests for load_games_json function."""

    def test_archive_payload(self, tmp_path):
        path = tmp_path / "archive.json"
        path.write_text(json.dumps({'games': [raw_game(), raw_game()]}))
        assert len(load_games_json(path)) == 2

    def test_bare_list(self, tmp_path):
        path = tmp_path / "games.json"
        path.write_text(json.dumps([raw_game()]))
        assert load_games_json(path) == [raw_game()]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            load_games_json(path)

    def test_unexpected_shape(self, tmp_path):
        path = tmp_path / "scalar.json"
        path.write_text("42")
        with pytest.raises(ValidationError, match="Unexpected archive format"):
            load_games_json(path)


class TestChessComClient:
    """Tests for ChessComClient with a fake session."""

    def make_client(self, routes):
        session = FakeSession(routes)
        return ChessComClient(" Hero ", session=session, min_gap=0), session

    def test_invalid_username(self):
        with pytest.raises(ValidationError):
            ChessComClient("bad name!", session=FakeSession({}))

    def test_sets_headers(self):
        client, session = self.make_client({})
        assert client.username == "hero"
        assert "User-Agent" in session.headers

    def test_profile_and_cache(self):
        client, session = self.make_client({PLAYER: {'username': 'hero'}})
        assert client.get_profile() == {'username': 'hero'}
        client.get_profile()
        assert session.calls == [PLAYER]

    def test_profile_failure_raises(self):
        client, _ = self.make_client({})
        with pytest.raises(FetchError):
            client.get_profile()
        assert len(client.errors) == 1

    def test_stats_failure_degrades(self):
        client, _ = self.make_client({f"{PLAYER}/stats": requests.ConnectionError("boom")})
        assert client.get_stats() is None
        assert "boom" in client.errors[0]

    def test_invalid_json(self):
        client, _ = self.make_client({f"{PLAYER}/stats": ValueError("bad json")})
        assert client.get_stats() is None
        assert "Invalid JSON" in client.errors[0]

    def test_all_games(self):
        months = [f"{PLAYER}/games/2024/01", f"{PLAYER}/games/2024/02", f"{PLAYER}/games/2024/03"]
        routes = {
            f"{PLAYER}/games/archives": {'archives': months},
            months[0]: {'games': [raw_game(time_class='blitz'), raw_game(time_class='bullet')]},
            months[1]: {'games': [raw_game(time_class='rapid'), raw_game(time_class=None)]},
            # third month is missing and degrades to no games
        }
        client, _ = self.make_client(routes)
        progress = []
        games = client.get_all_games({'blitz', 'rapid'}, on_progress=lambda done, total: progress.append((done, total)))
        assert [g['time_class'] for g in games] == ['blitz', 'rapid']
        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert len(client.errors) == 1

    def test_all_games_without_filter(self):
        month = f"{PLAYER}/games/2024/01"
        routes = {
            f"{PLAYER}/games/archives": {'archives': [month]},
            month: {'games': [raw_game(time_class='blitz'), raw_game(time_class='daily')]},
        }
        client, _ = self.make_client(routes)
        assert len(client.get_all_games()) == 2


class TestPackageExports:
    """Tests for the lazy subpackage attributes."""

    def test_ingestion_attributes(self):
        import src.ingestion as ingestion
        assert ingestion.ChessComClient is ChessComClient
        assert ingestion.normalize_games is normalize_games
        assert ingestion.load_games_json is load_games_json
