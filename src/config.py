"""
Central configuration for the Rating Timeline system.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

from dataclasses import dataclass
from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_FOLDER = PROJECT_ROOT / "data" / "exports"

# --- Chess.com API ---
API_ROOT = "https://api.chess.com/pub"
USER_AGENT = "rating-timeline/1.0"
REQUEST_TIMEOUT = 30  # seconds
MIN_REQUEST_GAP = 0.25  # seconds between consecutive requests
DEFAULT_CONTROLS = ("blitz", "rapid")

# --- Input Validation ---
MAX_INPUT_SIZE = 50_000_000  # Maximum JSON export size in bytes (~50MB)
USERNAME_RE_PATTERN = r"^[a-z0-9_-]+$"

# --- Game Filters ---
ALLOWED_COLORS = frozenset({"all", "white", "black"})
DATE_RANGE_DAYS = {"1y": 365, "6m": 182, "3m": 91}

# --- Smoothing ---
MA_WINDOW_DAYS = 7

# --- Trend Line ---
TREND_WINDOW_DAYS = 120  # last ~4 months
TREND_MIN_POINTS = 5
TREND_MAX_DAILY_SLOPE = 8.0  # rating points per day

# --- Forecast ---
FORECAST_WINDOW_DAYS = 180  # last ~6 months
FORECAST_DEGREE = 1
RIDGE_LAMBDA = 1e-2
SINGULAR_TOLERANCE = 1e-9
WEIGHT_FLOOR = 0.1  # oldest point weight; newest is 1.0
FORECAST_STEP_DAYS = 2
FORECAST_HORIZON_STEPS = 60  # 60 * 2 = 120 days
SLOPE_DAMPING = 0.993  # 0.95 ** (1 / 7.5): ~5% per 15 days
FORECAST_MAX_DAILY_SLOPE = 8.0
CI_Z = 1.64  # ~90% two-sided
CI_GROWTH_PER_STEP = 0.02

# --- Milestones ---
MILESTONE_STEP = 100

# --- Chart ---
CHART_PALETTE = ["#0ea5e9", "#6366f1", "#10b981", "#f97316", "#ec4899"]


@dataclass(frozen=True)
class TimelineConfig:
    """
    Tunable parameters of the analytics engine.

    Defaults mirror the module constants above.
    """

    ma_window_days: float = MA_WINDOW_DAYS

    trend_window_days: float = TREND_WINDOW_DAYS
    trend_min_points: int = TREND_MIN_POINTS
    trend_max_daily_slope: float = TREND_MAX_DAILY_SLOPE

    forecast_window_days: float = FORECAST_WINDOW_DAYS
    forecast_degree: int = FORECAST_DEGREE
    ridge_lambda: float = RIDGE_LAMBDA
    singular_tolerance: float = SINGULAR_TOLERANCE
    weight_floor: float = WEIGHT_FLOOR
    forecast_step_days: float = FORECAST_STEP_DAYS
    forecast_horizon_steps: int = FORECAST_HORIZON_STEPS
    slope_damping: float = SLOPE_DAMPING
    forecast_max_daily_slope: float | None = FORECAST_MAX_DAILY_SLOPE
    ci_z: float = CI_Z
    ci_growth_per_step: float = CI_GROWTH_PER_STEP

    milestone_step: int = MILESTONE_STEP


DEFAULT_CONFIG = TimelineConfig()
