"""
Shared fixtures for timeline tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.timeline.models import GameRecord

BASE_DATE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def day(n: float) -> datetime:
    """BASE_DATE shifted by n days."""
    return BASE_DATE + timedelta(days=n)


@pytest.fixture
def make_records():
    """Build GameRecords for one control from ratings on consecutive (or given) days."""
    def _make(ratings, control="blitz", days=None):
        days = days if days is not None else range(len(ratings))
        return [GameRecord(date=day(d), rating=r, control=control) for d, r in zip(days, ratings)]
    return _make
