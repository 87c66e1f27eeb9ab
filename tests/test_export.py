"""
Tests for DataFrame and TSV export.
"""

import pandas as pd

from conftest import day
from src.timeline.engine import compute_timeline
from src.timeline.export import GAME_COLUMNS, games_to_frame, games_to_tsv, timeline_to_frames
from src.timeline.models import GameRecord


def game(d, rating=1200, opponent_rating=1180, url=None):
    return GameRecord(
        date=day(d), rating=rating, control="blitz", color="white", result="win",
        opponent="villain", opponent_rating=opponent_rating, url=url,
    )


class TestGamesToFrame:
    """Tests for games_to_frame function."""

    def test_columns_and_order(self):
        df = games_to_frame([game(2, rating=1220), game(0, rating=1200)])
        assert list(df.columns) == GAME_COLUMNS
        assert df['Rating'].tolist() == [1200, 1220]
        assert df['Date'].iloc[0] == "2024-01-01 12:00:00"

    def test_missing_ratings_are_nullable(self):
        df = games_to_frame([game(0, opponent_rating=None)])
        assert str(df['Opponent Rating'].dtype) == "Int64"
        assert pd.isna(df['Opponent Rating'].iloc[0])

    def test_empty(self):
        df = games_to_frame([])
        assert df.empty
        assert list(df.columns) == GAME_COLUMNS


class TestGamesToTsv:
    """Tests for games_to_tsv function."""

    def test_empty(self):
        assert games_to_tsv([]) == ""

    def test_header_and_rows(self):
        text = games_to_tsv([game(0, url="https://www.chess.com/game/live/1"), game(1, opponent_rating=None)])
        lines = text.split('\n')
        assert lines[0] == '\t'.join(GAME_COLUMNS)
        assert len(lines) == 3
        assert lines[1].split('\t') == [
            "2024-01-01 12:00:00", "blitz", "1200", "win", "villain", "1180",
            "https://www.chess.com/game/live/1",
        ]
        # Missing opponent rating and URL are blank cells
        assert lines[2].split('\t')[5:] == ["", ""]


class TestTimelineToFrames:
    """Tests for timeline_to_frames function."""

    def test_frames(self, make_records):
        ratings = [950, 1010, 990, 1040, 1105, 1090]
        result = compute_timeline({'blitz': make_records(ratings)})
        frames = timeline_to_frames(result)

        assert len(frames['points']) == len(ratings)
        assert frames['points']['moving_average'].iloc[1] == 980.0
        assert len(frames['forecast']) == len(result.series['blitz'].forecast)
        assert frames['forecast']['step'].iloc[0] == 0

        observed = frames['milestones'][frames['milestones']['kind'] == 'observed']
        assert observed['rating'].tolist() == [1000, 1100]

    def test_empty_result(self):
        frames = timeline_to_frames(compute_timeline({'blitz': []}))
        assert all(df.empty for df in frames.values())
        assert list(frames['milestones'].columns) == ['kind', 'rating', 'date']
