"""
Rating Timeline Engine

This module turns per-control game records into the rating timeline shown on
the dashboard. For every time control it derives:
- The date-sorted rating points with a trailing 7-day moving average
- A clamped linear trend line over the last ~4 months
- A weighted ridge-regression forecast with a confidence band
- The peak rating and the 100-point milestones reached

Across controls it merges observed milestones and predicts the next ones from
the forecast curves. The engine is invoked twice per request, once on the
full history and once starting at the lowest rating, so the chart can toggle
between the two views.

Usage:
    python -m src.timeline.engine USERNAME [--controls blitz,rapid] [--export games.tsv]
    OR
    from src.timeline import compute_timeline, rating_timeline_both
"""

import sys
from pathlib import Path

# Enable both `python src/timeline/engine.py` and `python -m src.timeline.engine` execution.
# Required for src.config/src.utils imports to resolve correctly.
_project_root = str(Path(__file__).parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import argparse
from itertools import chain

from src.config import DEFAULT_CONFIG, DEFAULT_CONTROLS, OUTPUT_FOLDER, TimelineConfig
from src.timeline.milestones import milestone_marks, predict_milestones
from src.timeline.models import BestRating, Series, SeriesPoint, TimelineBoth, TimelineResult
from src.timeline.regression import linear_trend, poly_ridge_forecast
from src.timeline.series import build_rating_series
from src.timeline.smoothing import moving_average
from src.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def build_series(label, samples, raw_samples, config: TimelineConfig = DEFAULT_CONFIG) -> Series:
    """
    Derive the analytics of one control.

    Args:
        label: Control name
        samples: Displayed (possibly truncated) date-sorted RatingSamples
        raw_samples: Untruncated samples, used for milestones
        config: Engine configuration

    Returns:
        Series; empty when samples is empty
    """
    if not samples:
        return Series(label=label)

    ma = moving_average(samples, config.ma_window_days)
    points = [SeriesPoint(date=s.date, rating=s.rating, moving_average=m) for s, m in zip(samples, ma)]

    # First occurrence of the peak
    best_idx = max(range(len(samples)), key=lambda i: (samples[i].rating, -i))
    best = BestRating(rating=samples[best_idx].rating, date=samples[best_idx].date)

    trend = linear_trend(samples, config)
    forecast = poly_ridge_forecast(samples, config)
    if trend is None:
        logger.debug(f"{label}: not enough recent points for a trend line")
    if not forecast:
        logger.debug(f"{label}: forecast skipped")

    return Series(
        label=label,
        points=points,
        moving_average=ma,
        trend=trend,
        forecast=forecast,
        best=best,
        milestones=milestone_marks(raw_samples, config.milestone_step),
    )


def compute_timeline(records_by_control, start_at_lowest: bool = False,
                     config: TimelineConfig = DEFAULT_CONFIG) -> TimelineResult:
    """
    Run the full analytics pipeline once.

    Args:
        records_by_control: control name -> iterable of GameRecord-like objects
            (anything exposing date and rating)
        start_at_lowest: Truncate every control at the global rating minimum
        config: Engine configuration

    Returns:
        TimelineResult with per-control series, the displayed rating extent,
        observed milestones merged across controls and predicted milestones
    """
    build = build_rating_series(records_by_control, start_at_lowest)

    series = {
        control: build_series(control, samples, build.raw[control], config)
        for control, samples in build.points.items()
    }

    displayed = [s.rating for samples in build.points.values() for s in samples]
    extent = (min(displayed), max(displayed)) if displayed else None

    raw_combined = list(chain.from_iterable(build.raw.values()))
    milestones = milestone_marks(raw_combined, config.milestone_step)

    max_observed = max((s.rating for s in raw_combined), default=None)
    curves = [s.forecast for s in series.values() if s.forecast]
    forecast_ms = predict_milestones(curves, max_observed, config.milestone_step)

    return TimelineResult(
        series=series,
        rating_extent=extent,
        milestones=milestones,
        forecast_milestones=forecast_ms,
    )


def rating_timeline_both(records_by_control, config: TimelineConfig = DEFAULT_CONFIG) -> TimelineBoth:
    """Compute the normal and the start-at-lowest timelines together."""
    normal = compute_timeline(records_by_control, start_at_lowest=False, config=config)
    lowest = compute_timeline(records_by_control, start_at_lowest=True, config=config)

    counts = ", ".join(f"{c}={len(s.points)}" for c, s in normal.series.items())
    logger.info(f"Computed rating timeline for {len(normal.series)} controls ({counts or 'none'})")
    logger.info(f"  Observed milestones: {len(normal.milestones)}, predicted: {len(normal.forecast_milestones)}")

    return TimelineBoth(normal=normal, lowest=lowest)


def log_timeline_summary(result: TimelineResult) -> None:
    """Log per-control peaks, trends, forecasts and milestones."""
    for control, s in result.series.items():
        if s.is_empty:
            logger.info(f"{control}: no rated games")
            continue
        logger.info(f"{control}: {len(s.points)} games, last {s.points[-1].rating}, "
                    f"peak {s.best.rating} on {s.best.date:%Y-%m-%d}")
        if s.trend is not None:
            start, end = s.trend
            logger.info(f"  Trend: {start.value:.0f} -> {end.value:.0f} "
                        f"({start.date:%Y-%m-%d} to {end.date:%Y-%m-%d})")
        if s.forecast:
            last = s.forecast[-1]
            logger.info(f"  Forecast {last.date:%Y-%m-%d}: {last.value:.0f} "
                        f"[{last.lo:.0f}, {last.hi:.0f}]")

    for m in result.milestones:
        logger.info(f"Reached {m.rating} on {m.date:%Y-%m-%d}")
    for m in result.forecast_milestones:
        logger.info(f"Projected {m.rating} around {m.date:%Y-%m-%d}")


def main(argv=None):
    from src.ingestion.chesscom import ChessComClient, load_games_json, normalize_games
    from src.timeline.export import games_to_frame
    from src.timeline.summary import filter_games, group_by_control, restrict_by_date_range
    from src.utils import atomic_write_csv, sanitize_username, validate_username

    parser = argparse.ArgumentParser(description="Rating timeline for a Chess.com player")
    parser.add_argument("username")
    parser.add_argument("--controls", default=",".join(DEFAULT_CONTROLS),
                        help="Comma-separated time controls (default: blitz,rapid)")
    parser.add_argument("--color", default="all", choices=["all", "white", "black"])
    parser.add_argument("--range", dest="date_range", default="all", choices=["all", "1y", "6m", "3m"])
    parser.add_argument("--start-at-lowest", action="store_true")
    parser.add_argument("--input", type=Path, help="Read games from a saved archive JSON instead of the API")
    parser.add_argument("--export", nargs="?", const=True,
                        help="Write the filtered games as TSV (default: data/exports/USERNAME_games.tsv)")
    args = parser.parse_args(argv)

    username = sanitize_username(args.username)
    try:
        validate_username(username)
    except ValueError as e:
        parser.error(str(e))
    controls = {c for c in args.controls.split(",") if c}

    if args.input:
        raw_games = [g for g in load_games_json(args.input) if not controls or g.get("time_class") in controls]
    else:
        raw_games = ChessComClient(username).get_all_games(controls)
    games, skipped = normalize_games(raw_games, username)
    logger.info(f"Analyzed {len(games)} games" + (f", skipped {skipped}" if skipped else ""))

    base = restrict_by_date_range(filter_games(games, args.color), args.date_range)
    both = rating_timeline_both(group_by_control(base))
    log_timeline_summary(both.lowest if args.start_at_lowest else both.normal)

    if args.export:
        out_path = OUTPUT_FOLDER / f"{username}_games.tsv" if args.export is True else Path(args.export)
        atomic_write_csv(games_to_frame(base), out_path, sep="\t", index=False)
        logger.info(f"Exported {len(base)} games to {out_path}")

    return both


if __name__ == "__main__":
    results = main()
