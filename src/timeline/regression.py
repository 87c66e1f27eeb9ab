"""
Trend and Forecast Regression

This module fits the two regression models used on a rating series:
- linear_trend: ordinary least squares over the last ~4 months, with the
  slope clamped, returned as a two-point line for display
- poly_ridge_forecast: recency-weighted polynomial ridge regression over the
  last ~6 months, projected forward with a damped slope and a widening
  confidence band

The linear systems involved are tiny (degree + 1 unknowns), so they are
solved directly with Gaussian elimination and partial pivoting. A pivot below
the singular tolerance abandons the fit instead of returning unstable
coefficients.
"""

import math
from datetime import timedelta

from src.config import DEFAULT_CONFIG, TimelineConfig
from src.timeline.models import ForecastPoint, TrendPoint
from src.utils import clamp, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

SECONDS_PER_DAY = 86400.0


def _recent_sample(points, window_days):
    """Points dated within window_days of the last point (inclusive)."""
    cutoff = points[-1].date - timedelta(days=window_days)
    return [p for p in points if p.date >= cutoff]


def solve_linear_system(matrix, rhs, tolerance=DEFAULT_CONFIG.singular_tolerance):
    """
    Solve matrix @ x = rhs by Gauss-Jordan elimination with partial pivoting.

    Inputs are not modified.

    Args:
        matrix: Square matrix as a list of rows
        rhs: Right-hand side vector
        tolerance: Smallest acceptable pivot magnitude

    Returns:
        Solution vector, or None if the matrix is numerically singular
    """
    k = len(matrix)
    aug = [list(map(float, row)) + [float(rhs[i])] for i, row in enumerate(matrix)]

    for col in range(k):
        pivot = max(range(col, k), key=lambda r: abs(aug[r][col]))
        if abs(aug[pivot][col]) < tolerance:
            return None
        if pivot != col:
            aug[col], aug[pivot] = aug[pivot], aug[col]

        div = aug[col][col]
        for c in range(col, k + 1):
            aug[col][c] /= div

        for r in range(k):
            if r == col:
                continue
            factor = aug[r][col]
            if factor == 0:
                continue
            for c in range(col, k + 1):
                aug[r][c] -= factor * aug[col][c]

    return [row[k] for row in aug]


def linear_trend(points, config: TimelineConfig = DEFAULT_CONFIG):
    """
    Fit a clamped least-squares line over the recent part of a series.

    Args:
        points: Date-sorted sequence of objects with date and rating
        config: Engine configuration (window, minimum points, slope cap)

    Returns:
        (start, end) TrendPoints at the first and last date of the fitting
        window, or None when there are too few points
    """
    if len(points) < config.trend_min_points:
        return None

    sample = _recent_sample(points, config.trend_window_days)
    if len(sample) < config.trend_min_points:
        return None

    t0 = sample[0].date
    xs = [(p.date - t0).total_seconds() for p in sample]
    ys = [p.rating for p in sample]
    n = len(sample)
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    sxx = sum((x - mean_x) ** 2 for x in xs)
    sxy = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    slope = sxy / max(1e-9, sxx)

    # Cap runaway slopes from short, noisy windows
    max_slope = config.trend_max_daily_slope / SECONDS_PER_DAY
    slope = clamp(slope, -max_slope, max_slope)
    intercept = mean_y - slope * mean_x

    return (
        TrendPoint(date=sample[0].date, value=intercept),
        TrendPoint(date=sample[-1].date, value=slope * xs[-1] + intercept),
    )


def recency_weights(n, floor=DEFAULT_CONFIG.weight_floor):
    """Weights ramping linearly from floor (oldest) to 1.0 (newest)."""
    if n == 1:
        return [1.0]
    return [floor + (1.0 - floor) * (i / (n - 1)) for i in range(n)]


def polynomial_value(coeffs, x):
    """Evaluate sum(coeffs[d] * x**d)."""
    value = 0.0
    power = 1.0
    for c in coeffs:
        value += c * power
        power *= x
    return value


def fit_weighted_ridge(xs, ys, weights, degree, ridge_lambda, tolerance=DEFAULT_CONFIG.singular_tolerance):
    """
    Weighted ridge regression on the polynomial basis [1, x, ..., x^degree].

    Returns:
        Coefficients ordered by power, or None if the system is singular
    """
    k = degree + 1
    gram = [[0.0] * k for _ in range(k)]
    target = [0.0] * k

    for x, y, w in zip(xs, ys, weights):
        basis = [x ** d for d in range(k)]
        for r in range(k):
            target[r] += w * basis[r] * y
            for c in range(k):
                gram[r][c] += w * basis[r] * basis[c]

    for d in range(k):
        gram[d][d] += ridge_lambda

    return solve_linear_system(gram, target, tolerance)


def weighted_rmse(xs, ys, weights, coeffs):
    """
    Weighted RMSE with a degrees-of-freedom correction.

    The denominator is sum(weights) - len(coeffs), floored at 1e-9.
    """
    ss = 0.0
    for x, y, w in zip(xs, ys, weights):
        err = y - polynomial_value(coeffs, x)
        ss += w * err * err
    return math.sqrt(ss / max(1e-9, sum(weights) - len(coeffs)))


def poly_ridge_forecast(points, config: TimelineConfig = DEFAULT_CONFIG) -> list[ForecastPoint]:
    """
    Forecast a rating series with weighted polynomial ridge regression.

    Steps:
    1. Keep the last forecast_window_days of points and map their dates onto
       [0, 1] (scale = last - first in seconds, 1 if degenerate)
    2. Weight sample i by weight_floor + (1 - weight_floor) * i / (n - 1)
    3. Solve the ridge-penalised weighted normal equations
    4. Anchor at the last observed rating and step forward, driving each step
       with the linear coefficient (converted to rating per day, capped,
       then damped by slope_damping every step)
    5. Band half-width is ci_z * rmse * (1 + ci_growth_per_step * step)

    Args:
        points: Date-sorted sequence of objects with date and rating
        config: Engine configuration

    Returns:
        List of ForecastPoint (anchor first), or [] when the fit is skipped
        or the system is singular
    """
    degree = config.forecast_degree
    min_points = degree + 2
    if len(points) < min_points:
        return []

    sample = _recent_sample(points, config.forecast_window_days)
    if len(sample) < min_points:
        return []

    t0 = sample[0].date
    scale = (sample[-1].date - t0).total_seconds() or 1.0
    xs = [(p.date - t0).total_seconds() / scale for p in sample]
    ys = [p.rating for p in sample]
    weights = recency_weights(len(sample), config.weight_floor)

    coeffs = fit_weighted_ridge(xs, ys, weights, degree, config.ridge_lambda, config.singular_tolerance)
    if coeffs is None:
        logger.debug(f"Forecast abandoned: singular system for {len(sample)} points")
        return []

    rmse = weighted_rmse(xs, ys, weights, coeffs)

    # Only the linear term drives the projection
    slope_per_day = coeffs[1] * (SECONDS_PER_DAY / scale) if degree >= 1 else 0.0
    if config.forecast_max_daily_slope is not None:
        cap = config.forecast_max_daily_slope
        slope_per_day = clamp(slope_per_day, -cap, cap)

    last_date = points[-1].date
    last_obs = points[-1].rating
    step = timedelta(days=config.forecast_step_days)

    out = [ForecastPoint(date=last_date, value=last_obs, lo=last_obs, hi=last_obs)]

    damped_slope = slope_per_day
    value = float(last_obs)
    for i in range(1, config.forecast_horizon_steps + 1):
        damped_slope *= config.slope_damping
        value += damped_slope * config.forecast_step_days
        width = config.ci_z * rmse * (1 + config.ci_growth_per_step * i)
        out.append(ForecastPoint(date=last_date + step * i, value=value, lo=value - width, hi=value + width))

    return out
