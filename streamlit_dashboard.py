import streamlit as st

from src.config import DEFAULT_CONTROLS
from src.ingestion.chesscom import ChessComClient, FetchError, ValidationError, normalize_games
from src.timeline.chart import DEFAULT_OPTIONS, build_rating_figure
from src.timeline.engine import rating_timeline_both
from src.timeline.export import games_to_tsv, timeline_to_frames
from src.timeline.summary import (
    derive_ratings_from_stats,
    filter_games,
    group_by_control,
    outcome_breakdown,
    restrict_by_date_range,
)
from src.utils import sanitize_username

# --- Page Configuration ---
st.set_page_config(
    page_title="Rating Timeline",
    page_icon="♟️",
    layout="wide",
    initial_sidebar_state="collapsed"
)

CONTROL_OPTIONS = ["bullet", "blitz", "rapid", "daily"]
COLOR_OPTIONS = {"All": "all", "White": "white", "Black": "black"}
RANGE_OPTIONS = {"All time": "all", "1 year": "1y", "6 months": "6m", "3 months": "3m"}
OPTION_LABELS = {
    'rating': "Rating",
    'ma': "Moving Average",
    'trend': "Linear Trend",
    'milestones': "Milestones",
    'start_at_lowest': "Start at Lowest",
    'forecast': "Forecast",
}


# --- Data Loading Functions ---
@st.cache_data(ttl=3600, show_spinner=False)
def load_player(username, controls):
    """Fetch stats and games for a player; returns (stats, raw_games, errors)."""
    client = ChessComClient(username)
    client.get_profile()
    stats = client.get_stats()
    games = client.get_all_games(set(controls))
    return stats, games, client.errors


def render_kpis(stats, games, controls):
    ratings = derive_ratings_from_stats(stats, controls)
    overall = outcome_breakdown(games)
    cols = st.columns(4)
    cols[0].metric("Current Rating", ratings['current'] if ratings['current'] is not None else "—")
    cols[1].metric("Peak Rating", ratings['peak'] if ratings['peak'] is not None else "—")
    cols[2].metric("Games", f"{overall['total']:,}")
    cols[3].metric("Win Rate", f"{overall['rate']:.1%}")


def render_timeline(games):
    both = rating_timeline_both(group_by_control(games))

    option_cols = st.columns(len(OPTION_LABELS))
    options = {
        key: col.checkbox(label, value=DEFAULT_OPTIONS[key], key=f"opt_{key}")
        for col, (key, label) in zip(option_cols, OPTION_LABELS.items())
    }

    fig = build_rating_figure(both, options)
    if fig is None:
        st.info("No rating data available for selected filters.")
        return
    st.plotly_chart(fig, use_container_width=True, config={'displayModeBar': False, 'scrollZoom': False})

    result = both.lowest if options['start_at_lowest'] else both.normal
    frames = timeline_to_frames(result)
    if not frames['milestones'].empty:
        with st.expander("Milestones"):
            df = frames['milestones'].copy()
            df['date'] = df['date'].map(lambda d: d.strftime('%Y-%m-%d'))
            st.dataframe(df, hide_index=True, use_container_width=True)


# --- Main App ---
def main():
    st.title("Rating Timeline")

    with st.form("search-form"):
        username = st.text_input("Chess.com username", value=st.query_params.get("user", ""))
        url_controls = [c.strip().lower() for c in st.query_params.get("controls", "").split(",")]
        default_controls = [c for c in dict.fromkeys(url_controls) if c in CONTROL_OPTIONS] or list(DEFAULT_CONTROLS)
        controls = st.multiselect("Time controls", CONTROL_OPTIONS, default=default_controls)
        submitted = st.form_submit_button("Analyze")

    username = sanitize_username(username)
    if not username:
        st.caption("Enter a username to load rating history.")
        return
    if not controls:
        st.warning("Select at least one time control.")
        return
    if submitted:
        st.query_params.update({"user": username, "controls": ",".join(controls)})

    try:
        with st.spinner("Fetching archives…"):
            stats, raw_games, errors = load_player(username, tuple(controls))
    except ValidationError:
        st.error("Please enter a valid Chess.com username.")
        return
    except FetchError as e:
        st.error(f"Could not load player: {e}")
        return

    for err in errors:
        st.warning(err)

    games, skipped = normalize_games(raw_games, username)
    st.caption(f"Analyzed {len(games)} games" + (f", skipped {skipped}." if skipped else "."))

    filter_cols = st.columns(2)
    color = COLOR_OPTIONS[filter_cols[0].radio("Color", list(COLOR_OPTIONS), horizontal=True)]
    date_range = RANGE_OPTIONS[filter_cols[1].radio("Range", list(RANGE_OPTIONS), horizontal=True)]
    base = restrict_by_date_range(filter_games(games, color), date_range)

    render_kpis(stats, base, controls)
    render_timeline(base)

    tsv = games_to_tsv(base)
    st.download_button(
        "Export games (TSV)",
        data=tsv,
        file_name=f"{username}_games.tsv",
        mime="text/tab-separated-values",
        disabled=not tsv,
    )


if __name__ == "__main__":
    main()
