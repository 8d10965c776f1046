"""Dashboard metrics: consultation counts, approval rate and revenue trends.

All functions are pure over a list of consultations and an explicit `now`,
so the API route and tests share the same arithmetic. Weeks start on Monday.
Revenue only counts approved consultations that have both an estimated price
and an appointment date; cancelled consultations are left out entirely.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from axishair.models.consultation import Consultation, ConsultationStatus

TREND_PERIODS = 12


@dataclass(frozen=True)
class RevenuePoint:
    """One bar of a revenue trend chart."""

    name: str
    start: datetime
    end: datetime
    revenue: Decimal


@dataclass(frozen=True)
class DashboardMetrics:
    """Performance overview for one stylist."""

    total: int
    this_week_count: int
    approved_count: int
    approval_rate: int
    weekly_revenue: Decimal
    monthly_revenue: Decimal
    yearly_revenue: Decimal
    lifetime_revenue: Decimal
    approved_with_price_count: int
    monthly_trend: list[RevenuePoint] = field(default_factory=list)
    weekly_trend: list[RevenuePoint] = field(default_factory=list)


def week_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Monday 00:00 through Sunday 23:59:59.999999 of the week containing `moment`."""
    start = (moment - timedelta(days=moment.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return start, start + timedelta(days=7) - timedelta(microseconds=1)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First instant through last instant of a calendar month."""
    start = datetime(year, month, 1)
    next_year, next_month = _shift_month(year, month, 1)
    return start, datetime(next_year, next_month, 1) - timedelta(microseconds=1)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime(year + 1, 1, 1) - timedelta(microseconds=1)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _in_range(moment: datetime | None, start: datetime, end: datetime) -> bool:
    return moment is not None and start <= moment <= end


def revenue_in(
    consultations: Iterable[Consultation], start: datetime, end: datetime
) -> Decimal:
    """Sum estimated prices of consultations with appointments in [start, end]."""
    return sum(
        (
            c.estimated_price
            for c in consultations
            if c.estimated_price is not None and _in_range(c.appointment_date, start, end)
        ),
        Decimal("0"),
    )


def revenue_bearing(consultations: Iterable[Consultation]) -> list[Consultation]:
    """Approved consultations with both a price and an appointment date."""
    return [
        c
        for c in consultations
        if c.status == ConsultationStatus.APPROVED
        and c.estimated_price is not None
        and c.appointment_date is not None
    ]


def monthly_trend(
    consultations: Sequence[Consultation], now: datetime, periods: int = TREND_PERIODS
) -> list[RevenuePoint]:
    """Revenue per calendar month for the last `periods` months, oldest first ("Jan")."""
    points = []
    for offset in range(periods - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        start, end = month_bounds(year, month)
        points.append(
            RevenuePoint(
                name=start.strftime("%b"),
                start=start,
                end=end,
                revenue=revenue_in(consultations, start, end),
            )
        )
    return points


def weekly_trend(
    consultations: Sequence[Consultation], now: datetime, periods: int = TREND_PERIODS
) -> list[RevenuePoint]:
    """Revenue per Monday-start week for the last `periods` weeks, oldest first ("Mar 3")."""
    points = []
    for offset in range(periods - 1, -1, -1):
        start, end = week_bounds(now - timedelta(weeks=offset))
        points.append(
            RevenuePoint(
                name=f"{start:%b} {start.day}",
                start=start,
                end=end,
                revenue=revenue_in(consultations, start, end),
            )
        )
    return points


def compute_dashboard_metrics(
    consultations: Sequence[Consultation], now: datetime
) -> DashboardMetrics:
    """Aggregate the dashboard's performance overview.

    Args:
        consultations: All of a stylist's consultations
        now: Reference time (naive UTC, same convention as stored timestamps)

    Returns:
        DashboardMetrics with counts, approval rate, revenue totals and both trends
    """
    active = [c for c in consultations if not c.is_cancelled]
    billable = revenue_bearing(active)

    week_start, week_end = week_bounds(now)
    month_start, month_end = month_bounds(now.year, now.month)
    year_start, year_end = year_bounds(now.year)

    total = len(active)
    approved_count = sum(1 for c in active if c.status == ConsultationStatus.APPROVED)
    # Half-up rounding (12.5% shows as 13%)
    approval_rate = int(approved_count * 100 / total + 0.5) if total > 0 else 0

    return DashboardMetrics(
        total=total,
        this_week_count=sum(
            1 for c in active if _in_range(c.appointment_date, week_start, week_end)
        ),
        approved_count=approved_count,
        approval_rate=approval_rate,
        weekly_revenue=revenue_in(billable, week_start, week_end),
        monthly_revenue=revenue_in(billable, month_start, month_end),
        yearly_revenue=revenue_in(billable, year_start, year_end),
        lifetime_revenue=sum((c.estimated_price for c in billable), Decimal("0")),  # type: ignore[misc]
        approved_with_price_count=len(billable),
        monthly_trend=monthly_trend(billable, now),
        weekly_trend=weekly_trend(billable, now),
    )
