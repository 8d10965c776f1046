"""Dashboard metrics tests.

Scenario "now" is Wednesday 2026-03-04 12:00, so the current week runs
Monday 2026-03-02 through Sunday 2026-03-08.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from axishair.models.consultation import Consultation, ConsultationStatus
from axishair.services.dashboard import (
    compute_dashboard_metrics,
    month_bounds,
    week_bounds,
)

NOW = datetime(2026, 3, 4, 12, 0)
STYLIST = uuid4()


def consultation(status, price=None, appointment=None):
    return Consultation(
        stylist_id=STYLIST,
        client_id=uuid4(),
        status=status,
        estimated_price=Decimal(price) if price is not None else None,
        appointment_date=appointment,
    )


def sample_book():
    return [
        consultation(ConsultationStatus.APPROVED, "100.00", datetime(2026, 3, 3, 10, 0)),
        consultation(ConsultationStatus.APPROVED, "50.50", datetime(2026, 2, 10, 9, 30)),
        consultation(ConsultationStatus.APPROVED, "200.00", datetime(2025, 12, 15, 14, 0)),
        consultation(ConsultationStatus.AWAITING_APPROVAL, "80.00", datetime(2026, 3, 5, 11, 0)),
        consultation(ConsultationStatus.CANCELLED, "999.00", datetime(2026, 3, 3, 15, 0)),
        consultation(ConsultationStatus.APPROVED, None, datetime(2026, 3, 6, 16, 0)),
        consultation(ConsultationStatus.REVISION_REQUESTED),
    ]


def test_week_starts_on_monday():
    start, end = week_bounds(NOW)

    assert start == datetime(2026, 3, 2)
    assert end.date() == datetime(2026, 3, 8).date()
    assert end.hour == 23 and end.minute == 59


def test_month_bounds_cover_whole_month():
    start, end = month_bounds(2024, 2)

    assert start == datetime(2024, 2, 1)
    assert end.day == 29


def test_counts_exclude_cancelled():
    metrics = compute_dashboard_metrics(sample_book(), NOW)

    assert metrics.total == 6
    assert metrics.approved_count == 4
    assert metrics.this_week_count == 3
    # 4 / 6 = 66.67%
    assert metrics.approval_rate == 67


def test_revenue_counts_only_approved_with_price_and_date():
    metrics = compute_dashboard_metrics(sample_book(), NOW)

    assert metrics.approved_with_price_count == 3
    assert metrics.weekly_revenue == Decimal("100.00")
    assert metrics.monthly_revenue == Decimal("100.00")
    assert metrics.yearly_revenue == Decimal("150.50")
    assert metrics.lifetime_revenue == Decimal("350.50")


def test_monthly_trend_covers_last_twelve_months():
    trend = compute_dashboard_metrics(sample_book(), NOW).monthly_trend

    assert len(trend) == 12
    assert [p.name for p in trend[:2]] == ["Apr", "May"]
    assert trend[-1].name == "Mar"
    assert trend[-1].revenue == Decimal("100.00")
    assert trend[-2].revenue == Decimal("50.50")
    assert trend[-4].name == "Dec"
    assert trend[-4].revenue == Decimal("200.00")
    assert sum(p.revenue for p in trend) == Decimal("350.50")


def test_weekly_trend_covers_last_twelve_weeks():
    trend = compute_dashboard_metrics(sample_book(), NOW).weekly_trend

    assert len(trend) == 12
    assert trend[-1].name == "Mar 2"
    assert trend[-1].revenue == Decimal("100.00")
    assert trend[-4].name == "Feb 9"
    assert trend[-4].revenue == Decimal("50.50")
    assert all(p.start.weekday() == 0 for p in trend)


def test_approval_rate_rounds_half_up():
    book = [consultation(ConsultationStatus.APPROVED)] + [
        consultation(ConsultationStatus.AWAITING_APPROVAL) for _ in range(7)
    ]

    # 1 / 8 = 12.5%
    assert compute_dashboard_metrics(book, NOW).approval_rate == 13


def test_empty_book():
    metrics = compute_dashboard_metrics([], NOW)

    assert metrics.total == 0
    assert metrics.approval_rate == 0
    assert metrics.lifetime_revenue == Decimal("0")
    assert all(p.revenue == 0 for p in metrics.monthly_trend)
