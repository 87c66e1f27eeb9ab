"""
Rating Timeline Analytics

Modules:
- series: Per-control cleaning, sorting and start-at-lowest truncation
- smoothing: Trailing 7-day moving average
- regression: Clamped trend line and weighted ridge forecast
- milestones: Observed and predicted 100-point milestones
- engine: Pipeline entry points and command line
- summary: Game filters and outcome statistics
- export: DataFrame/TSV export
- chart: Plotly rating history figure
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "compute_timeline":
        from src.timeline.engine import compute_timeline
        return compute_timeline
    if name == "rating_timeline_both":
        from src.timeline.engine import rating_timeline_both
        return rating_timeline_both
    if name == "run_timeline":
        from src.timeline.engine import main
        return main
    if name == "build_rating_figure":
        from src.timeline.chart import build_rating_figure
        return build_rating_figure
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
