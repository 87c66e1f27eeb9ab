"""
Data structures shared by the timeline analytics stages.

Every structure is created fresh per call; nothing here is cached or shared
between invocations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple


@dataclass(frozen=True)
class GameRecord:
    """One normalized game as supplied by the ingestion layer."""

    date: datetime
    rating: int | None
    control: str
    color: str | None = None
    result: str = "unknown"
    opponent: str = ""
    opponent_rating: int | None = None
    url: str | None = None
    game_id: str | None = None


class RatingSample(NamedTuple):
    date: datetime
    rating: int


@dataclass(frozen=True)
class SeriesPoint:
    date: datetime
    rating: int
    moving_average: float


@dataclass(frozen=True)
class TrendPoint:
    date: datetime
    value: float


@dataclass(frozen=True)
class ForecastPoint:
    date: datetime
    value: float
    lo: float
    hi: float


@dataclass(frozen=True)
class Milestone:
    rating: int
    date: datetime


@dataclass(frozen=True)
class BestRating:
    rating: int
    date: datetime


@dataclass
class Series:
    """Derived analytics for a single time control."""

    label: str
    points: list[SeriesPoint] = field(default_factory=list)
    moving_average: list[float] = field(default_factory=list)
    trend: tuple[TrendPoint, TrendPoint] | None = None
    forecast: list[ForecastPoint] = field(default_factory=list)
    best: BestRating | None = None
    milestones: list[Milestone] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.points


@dataclass
class TimelineResult:
    series: dict[str, Series] = field(default_factory=dict)
    rating_extent: tuple[int, int] | None = None
    milestones: list[Milestone] = field(default_factory=list)
    forecast_milestones: list[Milestone] = field(default_factory=list)


@dataclass
class TimelineBoth:
    """Normal and start-at-lowest timelines computed from the same records."""

    normal: TimelineResult
    lowest: TimelineResult
