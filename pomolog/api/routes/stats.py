from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..deps import get_service
from ..schemas import DailyStatsOut
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["stats"])


@router.get("/stats/daily", response_model=DailyStatsOut)
def daily_stats(
    user_id: int = 1,
    day: date | None = Query(default=None, alias="date"),
    service: TimerService = Depends(get_service),
) -> DailyStatsOut:
    return DailyStatsOut(**service.stats.get_daily_stats(user_id, day).to_dict())


@router.get("/stats/history", response_model=list[DailyStatsOut])
def stats_history(
    user_id: int = 1,
    days: int = Query(default=7, ge=1, le=366),
    service: TimerService = Depends(get_service),
) -> list[DailyStatsOut]:
    return [DailyStatsOut(**item.to_dict()) for item in service.stats.history(user_id, days=days)]
