"""
Series Builder

Groups raw game records per time control into date-sorted rating samples
and optionally truncates every control at the global rating minimum, so
that all controls can share a "start at lowest" chart.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from src.timeline.models import RatingSample
from src.utils import coerce_timestamp


@dataclass
class SeriesBuild:
    """Output of the Series Builder."""

    raw: dict[str, list[RatingSample]] = field(default_factory=dict)
    points: dict[str, list[RatingSample]] = field(default_factory=dict)
    min_rating: int | None = None
    min_date: datetime | None = None


def _record_value(record, key):
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def clean_records(records) -> list[RatingSample]:
    """
    Drop records without a positive rating and sort the rest by date.

    The sort is stable, so records sharing a timestamp keep their input order.
    """
    samples = []
    for record in records:
        rating = _record_value(record, 'rating')
        if rating is None or isinstance(rating, bool) or rating <= 0:
            continue
        samples.append(RatingSample(coerce_timestamp(_record_value(record, 'date')), rating))
    return sorted(samples, key=lambda s: s.date)


def find_global_minimum(raw: Mapping[str, list[RatingSample]]) -> RatingSample | None:
    """Lowest rating across all controls; ties go to the earliest date."""
    lowest = None
    for samples in raw.values():
        for sample in samples:
            if (lowest is None or sample.rating < lowest.rating
                    or (sample.rating == lowest.rating and sample.date < lowest.date)):
                lowest = sample
    return lowest


def build_rating_series(records_by_control: Mapping[str, list], start_at_lowest: bool = False) -> SeriesBuild:
    """
    Build per-control rating samples.

    Args:
        records_by_control: control name -> iterable of GameRecord-like objects
        start_at_lowest: Keep only samples dated on or after the global minimum

    Returns:
        SeriesBuild with untruncated samples (raw), displayed samples (points)
        and the global minimum rating/date
    """
    raw = {control: clean_records(records) for control, records in records_by_control.items()}
    lowest = find_global_minimum(raw)

    if start_at_lowest and lowest is not None:
        points = {
            control: [s for s in samples if s.date >= lowest.date]
            for control, samples in raw.items()
        }
    else:
        points = {control: list(samples) for control, samples in raw.items()}

    return SeriesBuild(
        raw=raw,
        points=points,
        min_rating=lowest.rating if lowest else None,
        min_date=lowest.date if lowest else None,
    )
