"""
Game filters and headline statistics used alongside the rating timeline.
"""

import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from src.config import ALLOWED_COLORS, DATE_RANGE_DAYS


def filter_games(games, color: str = "all"):
    """Keep games played with the given color that have an end time."""
    if color not in ALLOWED_COLORS:
        raise ValueError(f"Invalid color: '{color}'. Allowed values: {', '.join(sorted(ALLOWED_COLORS))}")
    return [g for g in games if g.date is not None and (color == "all" or g.color == color)]


def restrict_by_date_range(games, date_range: str = "all", now: datetime | None = None):
    """
    Keep games ending within a trailing range ('1y', '6m', '3m') of now.

    'all' and unknown ranges return every game.
    """
    if date_range == "all" or date_range not in DATE_RANGE_DAYS:
        return list(games)
    if now is None:
        now = datetime.now(timezone.utc)
    limit = now - timedelta(days=DATE_RANGE_DAYS[date_range])
    return [g for g in games if g.date >= limit]


def group_by_control(games) -> dict:
    """Group games by time control, preserving input order within each group."""
    grouped = defaultdict(list)
    for g in games:
        grouped[g.control].append(g)
    return dict(grouped)


def _counts(games):
    total = len(games)
    wins = sum(1 for g in games if g.result == "win")
    draws = sum(1 for g in games if g.result == "draw")
    losses = sum(1 for g in games if g.result == "loss")
    return {
        'total': total,
        'wins': wins,
        'draws': draws,
        'losses': losses,
        'rate': wins / total if total else 0.0,
    }


def outcome_breakdown(games) -> dict:
    """
    Win/draw/loss counts and win rate, overall and per color.

    Returns:
        dict with total, wins, draws, losses, rate and by_color
        ({'white': {...}, 'black': {...}})
    """
    games = list(games)
    breakdown = _counts(games)
    breakdown['by_color'] = {
        'white': _counts([g for g in games if g.color == "white"]),
        'black': _counts([g for g in games if g.color == "black"]),
    }
    return breakdown


def derive_ratings_from_stats(stats: dict | None, controls) -> dict:
    """
    Current and peak rating from a Chess.com stats payload.

    Current is the mean of the last rating of each control, rounded half up;
    peak is the best rating across controls. Either is None when unavailable.
    """
    if not stats:
        return {'current': None, 'peak': None}

    current = []
    peak = []
    for tc in controls:
        entry = stats.get(f"chess_{tc}") or {}
        last = (entry.get('last') or {}).get('rating')
        best = (entry.get('best') or {}).get('rating')
        if last:
            current.append(last)
        if best:
            peak.append(best)

    return {
        'current': math.floor(sum(current) / len(current) + 0.5) if current else None,
        'peak': max(peak) if peak else None,
    }
