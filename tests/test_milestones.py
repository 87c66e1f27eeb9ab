"""
Tests for observed and predicted milestones.
"""

from datetime import timedelta

from conftest import day
from src.timeline.milestones import forecast_milestones, milestone_marks, predict_milestones
from src.timeline.models import ForecastPoint, Milestone, RatingSample


def curve(values, start=0, spacing=2):
    return [ForecastPoint(day(start + i * spacing), v, v, v) for i, v in enumerate(values)]


class TestMilestoneMarks:
    """Tests for milestone_marks function."""

    def test_empty(self):
        assert milestone_marks([]) == []

    def test_blitz_example(self):
        ratings = [800, 850, 900, 780, 950, 1000, 1020, 1100, 1080, 1150]
        # day N in the example is index N - 1
        pts = [RatingSample(day(i), r) for i, r in enumerate(ratings)]
        assert milestone_marks(pts) == [
            Milestone(900, day(2)),
            Milestone(1000, day(5)),
            Milestone(1100, day(7)),
        ]

    def test_jump_claims_several_thresholds(self):
        pts = [RatingSample(day(0), 1010), RatingSample(day(1), 1350)]
        marks = milestone_marks(pts)
        assert [m.rating for m in marks] == [1100, 1200, 1300]
        assert all(m.date == day(1) for m in marks)

    def test_first_rating_on_threshold_not_counted(self):
        pts = [RatingSample(day(0), 1200), RatingSample(day(1), 1250)]
        assert milestone_marks(pts) == []

    def test_minimum_first_threshold(self):
        pts = [RatingSample(day(0), 40), RatingSample(day(1), 120)]
        assert milestone_marks(pts) == [Milestone(100, day(1))]

    def test_unsorted_input(self):
        pts = [RatingSample(day(3), 1120), RatingSample(day(0), 1000), RatingSample(day(1), 1105)]
        assert milestone_marks(pts) == [Milestone(1100, day(1))]

    def test_custom_step(self):
        pts = [RatingSample(day(0), 1000), RatingSample(day(1), 1120)]
        assert [m.rating for m in milestone_marks(pts, step=50)] == [1050, 1100]

    def test_arithmetic_sequence_and_ordered_dates(self):
        ratings = [1000, 1080, 1120, 990, 1230, 1210, 1480, 1400, 1390, 1520, 1610]
        marks = milestone_marks([RatingSample(day(i), r) for i, r in enumerate(ratings)])
        for a, b in zip(marks, marks[1:]):
            assert b.rating - a.rating == 100
            assert a.date <= b.date


class TestForecastMilestones:
    """Tests for forecast_milestones function."""

    def test_no_curves(self):
        assert forecast_milestones([], 1500, 1700) == []

    def test_interpolates_bracketing_segment(self):
        result = forecast_milestones([curve([1450, 1550])], 1500, 1500)
        assert result == [Milestone(1500, day(1))]

    def test_first_bracketing_segment_wins(self):
        # Curve rises through 1500, falls back and rises again
        result = forecast_milestones([curve([1450, 1550, 1450, 1550])], 1500, 1500)
        assert result == [Milestone(1500, day(1))]

    def test_earliest_across_curves(self):
        slow = curve([1400, 1450, 1500])
        fast = curve([1480, 1520])
        result = forecast_milestones([slow, fast], 1500, 1500)
        assert result == [Milestone(1500, day(1))]

    def test_extrapolates_beyond_curve(self):
        result = forecast_milestones([curve([1400, 1450])], 1500, 1500)
        assert result == [Milestone(1500, day(4))]

    def test_rejects_extrapolation_moving_away(self):
        assert forecast_milestones([curve([1450, 1400])], 1500, 1500) == []

    def test_flat_curve_never_crosses(self):
        assert forecast_milestones([curve([1450, 1450, 1450])], 1500, 1500) == []

    def test_bracketing_curve_blocks_later_extrapolation(self):
        bracketing = curve([1450, 1480, 1510], spacing=5)
        steep = curve([1400, 1490], spacing=1)
        result = forecast_milestones([bracketing, steep], 1500, 1500)
        crossing = day(5) + timedelta(days=5) * (20 / 30)
        assert result == [Milestone(1500, crossing)]

    def test_unreachable_thresholds_omitted(self):
        result = forecast_milestones([curve([1450, 1520, 1560, 1540])], 1500, 1700)
        assert [m.rating for m in result] == [1500]

    def test_threshold_range(self):
        result = forecast_milestones([curve([1250, 1330, 1410, 1490])], 1300, 1490)
        assert [m.rating for m in result] == [1300, 1400, 1500]
        assert result[-1].date > day(6)

    def test_short_curves_ignored(self):
        assert forecast_milestones([curve([1600])], 1500, 1600) == []


class TestPredictMilestones:
    """Tests for predict_milestones function."""

    def test_nothing_observed(self):
        assert predict_milestones([curve([1450, 1550])], None) == []

    def test_starts_above_observed_peak(self):
        result = predict_milestones([curve([1480, 1520, 1610])], max_observed=1480)
        assert [m.rating for m in result] == [1500, 1600, 1700]

    def test_no_curves(self):
        assert predict_milestones([], max_observed=1480) == []

    def test_dates_follow_ratings(self):
        result = predict_milestones([curve([1420, 1490, 1560, 1630, 1700])], max_observed=1450)
        assert [m.rating for m in result] == [1500, 1600, 1700]
        dates = [m.date for m in result]
        assert dates == sorted(dates)
        assert result[-1].date == day(8)
