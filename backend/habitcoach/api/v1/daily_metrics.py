from datetime import date, datetime, timedelta

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from habitcoach.api.deps import CurrentUser, DbSession
from habitcoach.models import DailyMetrics
from habitcoach.schemas.daily_metrics import (
    DailyMetricsListResponse,
    DailyMetricsResponse,
    DailyMetricsUpsert,
)

router = APIRouter()


@router.put("", response_model=DailyMetricsResponse)
async def upsert_daily_metrics(
    metrics_in: DailyMetricsUpsert,
    current_user: CurrentUser,
    db: DbSession,
) -> DailyMetrics:
    """Create or replace the metrics row for one calendar day."""
    result = await db.execute(
        select(DailyMetrics).where(
            DailyMetrics.user_id == current_user.id,
            DailyMetrics.date == metrics_in.date,
        )
    )
    metrics = result.scalar_one_or_none()

    if metrics is None:
        metrics = DailyMetrics(user_id=current_user.id, date=metrics_in.date)
        db.add(metrics)

    for field, value in metrics_in.model_dump(exclude={"date"}).items():
        setattr(metrics, field, value)
    metrics.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(metrics)
    return metrics


@router.get("", response_model=DailyMetricsListResponse)
async def list_daily_metrics(
    current_user: CurrentUser,
    db: DbSession,
    start: date | None = Query(None, description="First day (inclusive), defaults to 7 days ago"),
    end: date | None = Query(None, description="Last day (inclusive), defaults to today"),
) -> DailyMetricsListResponse:
    """List daily metrics in a date range, oldest first."""
    end = end or date.today()
    start = start or end - timedelta(days=6)

    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must be on or before end",
        )

    result = await db.execute(
        select(DailyMetrics)
        .where(
            DailyMetrics.user_id == current_user.id,
            DailyMetrics.date >= start,
            DailyMetrics.date <= end,
        )
        .order_by(DailyMetrics.date.asc())
    )
    metrics = list(result.scalars().all())

    return DailyMetricsListResponse(metrics=metrics, total=len(metrics))
