"""
Rating Timeline Chart

Builds the plotly figure for the rating history: one colour per control,
with optional moving average, trend line, forecast band and milestone
markers.
"""

import plotly.graph_objects as go

from src.config import CHART_PALETTE
from src.timeline.models import TimelineBoth

DEFAULT_OPTIONS = {
    'rating': True,
    'ma': True,
    'trend': False,
    'forecast': False,
    'milestones': True,
    'start_at_lowest': True,
}


def series_color(i: int) -> str:
    return CHART_PALETTE[i % len(CHART_PALETTE)]


def hex_to_rgba(color: str, alpha: float) -> str:
    """'#0ea5e9' -> 'rgba(14, 165, 233, 0.15)'"""
    color = color.lstrip('#')
    r, g, b = (int(color[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


def apply_chart_style(fig):
    """Transparent background, light grid, unified hover."""
    grid_color = "rgba(128, 128, 128, 0.4)"
    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        hovermode="x unified",
        xaxis=dict(gridcolor=grid_color, showgrid=True, zeroline=False, title_text="Date"),
        yaxis=dict(gridcolor=grid_color, showgrid=True, zeroline=False, title_text="Rating"),
        legend=dict(title_text="", bgcolor="rgba(0,0,0,0)", borderwidth=0),
        margin=dict(l=20, r=20, t=30, b=20),
        height=500,
    )
    return fig


def build_rating_figure(timeline: TimelineBoth, options: dict | None = None):
    """
    Build the rating history figure.

    Args:
        timeline: Both timeline variants from rating_timeline_both
        options: Toggles overriding DEFAULT_OPTIONS

    Returns:
        plotly Figure, or None when no control has any points
    """
    opts = {**DEFAULT_OPTIONS, **(options or {})}
    result = timeline.lowest if opts['start_at_lowest'] else timeline.normal
    entries = [(c, s) for c, s in result.series.items() if not s.is_empty]
    if not entries:
        return None

    fig = go.Figure()

    for i, (control, s) in enumerate(entries):
        color = series_color(i)
        dates = [p.date for p in s.points]

        if opts['rating']:
            fig.add_trace(go.Scatter(
                x=dates, y=[p.rating for p in s.points], mode='lines', name=control,
                line=dict(color=color, width=2),
            ))

        if opts['ma']:
            fig.add_trace(go.Scatter(
                x=dates, y=s.moving_average, mode='lines', name=f"{control} (7d avg)",
                line=dict(color=color, width=1.5, dash='dot'),
            ))

        if opts['trend'] and s.trend is not None:
            fig.add_trace(go.Scatter(
                x=[p.date for p in s.trend], y=[p.value for p in s.trend], mode='lines',
                name=f"{control} trend", line=dict(color=color, width=2, dash='dash'),
            ))

        if opts['forecast'] and s.forecast:
            f_dates = [f.date for f in s.forecast]
            fig.add_trace(go.Scatter(
                x=f_dates + f_dates[::-1],
                y=[f.hi for f in s.forecast] + [f.lo for f in s.forecast][::-1],
                fill='toself', fillcolor=hex_to_rgba(color, 0.15), line=dict(width=0),
                hoverinfo='skip', showlegend=False, name=f"{control} band",
            ))
            fig.add_trace(go.Scatter(
                x=f_dates, y=[f.value for f in s.forecast], mode='lines',
                name=f"{control} forecast", line=dict(color=color, width=2, dash='dash'),
            ))

    if opts['milestones']:
        if result.milestones:
            fig.add_trace(go.Scatter(
                x=[m.date for m in result.milestones], y=[m.rating for m in result.milestones],
                mode='markers', name='Milestones',
                marker=dict(size=10, symbol='star', color='#F59E0B', line=dict(width=1, color='#FFD700')),
                hovertemplate="<b>%{y}</b> reached<br>%{x|%Y-%m-%d}<extra></extra>",
            ))
        if opts['forecast'] and result.forecast_milestones:
            fig.add_trace(go.Scatter(
                x=[m.date for m in result.forecast_milestones],
                y=[m.rating for m in result.forecast_milestones],
                mode='markers', name='Projected milestones',
                marker=dict(size=10, symbol='star-open', color='#F59E0B'),
                hovertemplate="<b>%{y}</b> projected<br>%{x|%Y-%m-%d}<extra></extra>",
            ))

    return apply_chart_style(fig)
