"""
Tabular Export

Flattens games and timeline results into pandas DataFrames so the dashboard
and the command line can download or write them.

Usage:
    from src.timeline.export import games_to_tsv, timeline_to_frames
"""

import pandas as pd

from src.timeline.models import TimelineResult
from src.utils import format_timestamp

GAME_COLUMNS = ['Date', 'Time Control', 'Rating', 'Result', 'Opponent', 'Opponent Rating', 'URL']


def games_to_frame(games) -> pd.DataFrame:
    """
    Date-sorted table of games for spreadsheet pasting.

    Dates are formatted as YYYY-MM-DD HH:MM:SS; missing ratings are left blank.
    """
    rows = [
        {
            'Date': format_timestamp(g.date),
            'Time Control': g.control,
            'Rating': g.rating,
            'Result': g.result,
            'Opponent': g.opponent,
            'Opponent Rating': g.opponent_rating,
            'URL': g.url,
        }
        for g in sorted(games, key=lambda g: g.date)
    ]
    df = pd.DataFrame(rows, columns=GAME_COLUMNS)
    df['Rating'] = df['Rating'].astype('Int64')
    df['Opponent Rating'] = df['Opponent Rating'].astype('Int64')
    return df


def games_to_tsv(games) -> str:
    """Tab-separated text with a header row, or '' when there are no games."""
    games = list(games)
    if not games:
        return ""
    return games_to_frame(games).to_csv(sep='\t', index=False, lineterminator='\n').rstrip('\n')


def timeline_to_frames(result: TimelineResult) -> dict[str, pd.DataFrame]:
    """
    Flatten a TimelineResult into DataFrames.

    Returns:
        dict with keys:
        - 'points': control, date, rating, moving_average
        - 'forecast': control, step, date, value, lo, hi
        - 'milestones': kind ('observed' or 'predicted'), rating, date
    """
    points = []
    forecast = []
    for control, s in result.series.items():
        for p in s.points:
            points.append({'control': control, 'date': p.date, 'rating': p.rating,
                           'moving_average': round(p.moving_average, 2)})
        for step, f in enumerate(s.forecast):
            forecast.append({'control': control, 'step': step, 'date': f.date,
                             'value': round(f.value, 2), 'lo': round(f.lo, 2), 'hi': round(f.hi, 2)})

    milestones = (
        [{'kind': 'observed', 'rating': m.rating, 'date': m.date} for m in result.milestones]
        + [{'kind': 'predicted', 'rating': m.rating, 'date': m.date} for m in result.forecast_milestones]
    )

    return {
        'points': pd.DataFrame(points, columns=['control', 'date', 'rating', 'moving_average']),
        'forecast': pd.DataFrame(forecast, columns=['control', 'step', 'date', 'value', 'lo', 'hi']),
        'milestones': pd.DataFrame(milestones, columns=['kind', 'rating', 'date']),
    }
