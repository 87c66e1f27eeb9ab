"""
Trailing time-windowed moving average.
"""

from datetime import timedelta

from src.config import MA_WINDOW_DAYS


def moving_average(points, window_days: float = MA_WINDOW_DAYS) -> list[float]:
    """
    Trailing moving average over a time window, one value per point.

    For the point at time t the average covers every earlier-or-equal point
    dated on or after t - window_days. Points must be sorted by date; the
    window start only moves forward, so a two-pointer sweep keeps this linear.

    Args:
        points: Date-sorted sequence of objects with date and rating
        window_days: Window length in days (inclusive)

    Returns:
        List of averages aligned with points
    """
    if not points:
        return []

    window = timedelta(days=window_days)
    out = []
    start = 0
    total = 0.0
    count = 0

    for i, point in enumerate(points):
        total += point.rating
        count += 1
        cutoff = point.date - window
        while start < i and points[start].date < cutoff:
            total -= points[start].rating
            count -= 1
            start += 1
        out.append(total / count if count else float(point.rating))

    return out
