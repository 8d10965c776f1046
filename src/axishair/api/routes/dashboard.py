"""Dashboard API endpoint.

- GET /api/dashboard/metrics?stylist_id=... - Performance overview and revenue trends
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from axishair.api.dependencies import get_now
from axishair.core.dependencies import get_uow
from axishair.services.dashboard import RevenuePoint, compute_dashboard_metrics
from axishair.uow import UnitOfWork

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class RevenuePointDTO(BaseModel):
    """One bar of a revenue trend chart."""

    name: str = Field(..., description='Period label ("Jan" or "Mar 3")')
    start: datetime
    end: datetime
    revenue: Decimal

    @classmethod
    def from_point(cls, point: RevenuePoint) -> "RevenuePointDTO":
        return cls(name=point.name, start=point.start, end=point.end, revenue=point.revenue)


class DashboardMetricsResponse(BaseModel):
    """Response model for the dashboard performance overview."""

    total: int = Field(..., description="Consultations excluding cancelled ones")
    this_week_count: int = Field(..., description="Appointments in the current Monday-start week")
    approved_count: int
    approval_rate: int = Field(..., description="Approved share of total, rounded percent")
    weekly_revenue: Decimal
    monthly_revenue: Decimal
    yearly_revenue: Decimal
    lifetime_revenue: Decimal
    approved_with_price_count: int
    monthly_trend: list[RevenuePointDTO]
    weekly_trend: list[RevenuePointDTO]


@router.get("/metrics", response_model=DashboardMetricsResponse)
async def get_dashboard_metrics(
    stylist_id: UUID = Query(..., description="Stylist whose consultations are aggregated"),
    uow: UnitOfWork = Depends(get_uow),
    now: datetime = Depends(get_now),
) -> DashboardMetricsResponse:
    """Aggregate a stylist's consultations into dashboard metrics."""
    consultations = await uow.consultations.get_by_stylist(stylist_id)
    metrics = compute_dashboard_metrics(consultations, now)

    return DashboardMetricsResponse(
        total=metrics.total,
        this_week_count=metrics.this_week_count,
        approved_count=metrics.approved_count,
        approval_rate=metrics.approval_rate,
        weekly_revenue=metrics.weekly_revenue,
        monthly_revenue=metrics.monthly_revenue,
        yearly_revenue=metrics.yearly_revenue,
        lifetime_revenue=metrics.lifetime_revenue,
        approved_with_price_count=metrics.approved_with_price_count,
        monthly_trend=[RevenuePointDTO.from_point(p) for p in metrics.monthly_trend],
        weekly_trend=[RevenuePointDTO.from_point(p) for p in metrics.weekly_trend],
    )
