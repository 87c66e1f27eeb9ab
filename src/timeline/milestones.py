"""
Rating Milestones

Observed milestones are the round-number thresholds (multiples of the
milestone step) a player's running peak has reached, dated by the game that
first reached them. Predicted milestones are the thresholds above the
current peak that a forecast curve is expected to cross.

Usage:
    from src.timeline.milestones import milestone_marks, predict_milestones
"""

import math
from datetime import timedelta

from src.config import MILESTONE_STEP
from src.timeline.models import Milestone

FLAT_SEGMENT_EPS = 1e-6
FLAT_SLOPE_PER_SECOND = 1e-6


def milestone_marks(points, step: int = MILESTONE_STEP) -> list[Milestone]:
    """
    Thresholds reached by the running maximum rating.

    The first threshold is the next multiple of step above the first rating
    (never below step). A single point may claim several thresholds when it
    jumps across them; the running maximum never decreases, so a dip and
    recovery does not re-trigger a threshold.

    Args:
        points: Objects with date and rating, in any order
        step: Threshold spacing

    Returns:
        Milestones in ascending rating (and date) order
    """
    if not points:
        return []

    ordered = sorted(points, key=lambda p: p.date)
    max_so_far = ordered[0].rating
    next_threshold = max(step, math.floor(ordered[0].rating / step) * step + step)
    marks = []

    for pt in ordered:
        if pt.rating > max_so_far:
            max_so_far = pt.rating
        while max_so_far >= next_threshold:
            marks.append(Milestone(rating=next_threshold, date=pt.date))
            next_threshold += step

    return marks


def _bracketed_crossing(curve, threshold):
    """Interpolated date of the first segment whose values bracket threshold."""
    for a, b in zip(curve, curve[1:]):
        if min(a.value, b.value) <= threshold <= max(a.value, b.value):
            if abs(b.value - a.value) < FLAT_SEGMENT_EPS:
                continue
            ratio = (threshold - a.value) / (b.value - a.value)
            return a.date + (b.date - a.date) * ratio
    return None


def _extrapolated_crossing(curve, threshold):
    """Date the last segment's slope reaches threshold, if strictly after the curve ends."""
    a, b = curve[-2], curve[-1]
    span = max(1.0, (b.date - a.date).total_seconds())
    slope = (b.value - a.value) / span
    if abs(slope) <= FLAT_SLOPE_PER_SECOND:
        return None
    seconds = (threshold - b.value) / slope
    if seconds <= 0:
        return None
    try:
        return b.date + timedelta(seconds=seconds)
    except OverflowError:
        return None


def forecast_milestones(curves, start_threshold: int, max_forecast: float | None,
                        step: int = MILESTONE_STEP) -> list[Milestone]:
    """
    Earliest predicted crossing date for each threshold.

    Thresholds run from start_threshold up to max_forecast rounded up to a
    multiple of step. Each curve contributes its first bracketing segment.
    A curve is extrapolated past its end only while no crossing has been
    found for the threshold among the curves examined so far.

    Args:
        curves: Sequences of ForecastPoint (curves shorter than 2 are ignored)
        start_threshold: First threshold to look for
        max_forecast: Highest value to search up to (None: start_threshold)
        step: Threshold spacing

    Returns:
        Milestones for reachable thresholds, ascending
    """
    if not curves:
        return []

    upper = math.ceil((max_forecast or start_threshold) / step) * step
    out = []

    for threshold in range(start_threshold, upper + 1, step):
        best = None
        for curve in curves:
            if not curve or len(curve) < 2:
                continue
            crossing = _bracketed_crossing(curve, threshold)
            if crossing is not None and (best is None or crossing < best):
                best = crossing
            if best is None:
                best = _extrapolated_crossing(curve, threshold)
        if best is not None:
            out.append(Milestone(rating=threshold, date=best))

    return out


def predict_milestones(curves, max_observed: int | None, step: int = MILESTONE_STEP) -> list[Milestone]:
    """
    Predicted milestones above the highest observed rating.

    Args:
        curves: Forecast curves of every control
        max_observed: Highest observed rating across all controls
        step: Threshold spacing

    Returns:
        Predicted milestones, or [] when nothing has been observed
    """
    if max_observed is None:
        return []
    start = math.floor(max_observed / step) * step + step
    max_value = max([max_observed] + [p.value for curve in curves for p in curve])
    return forecast_milestones(curves, start, max_value, step)
