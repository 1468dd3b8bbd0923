from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from ..clock import day_key
from ..dependencies import get_planner
from ..models.time_settings import (
    CustomLimitRequest,
    DailyTimeSetting,
    ResolvedLimitResponse,
    TimeLimits,
    TimeSettingsResponse,
)
from ..planner import ReviewPlanner

router = APIRouter(tags=["time-settings"])


@router.get("", response_model=TimeSettingsResponse, summary="学習時間設定の取得")
async def get_time_settings(planner: ReviewPlanner = Depends(get_planner)) -> TimeSettingsResponse:
    return TimeSettingsResponse(limits=planner.time_limits, custom=planner.custom_time_settings)


@router.put("/limits", response_model=TimeLimits, summary="平日/休日の既定上限を保存")
async def put_time_limits(
    limits: TimeLimits, planner: ReviewPlanner = Depends(get_planner)
) -> TimeLimits:
    return planner.set_time_limits(limits)


@router.get("/limit/{day}", response_model=ResolvedLimitResponse, summary="指定日の上限を解決")
async def get_daily_limit(
    day: date, planner: ReviewPlanner = Depends(get_planner)
) -> ResolvedLimitResponse:
    """Resolve the budget of a day: per-day override first, then weekday/weekend default."""
    limit, source = planner.daily_limit(day)
    return ResolvedLimitResponse(date=day_key(day), time_limit=limit, source=source)


@router.put("/custom/{day}", response_model=DailyTimeSetting, summary="日別の上限を保存（上書き）")
async def put_custom_limit(
    day: date, req: CustomLimitRequest, planner: ReviewPlanner = Depends(get_planner)
) -> DailyTimeSetting:
    return planner.set_custom_limit(day, req.time_limit)


@router.delete("/custom/{day}", status_code=204, summary="日別の上限を削除")
async def delete_custom_limit(day: date, planner: ReviewPlanner = Depends(get_planner)) -> None:
    if not planner.delete_custom_limit(day):
        raise HTTPException(status_code=404, detail="no custom limit for this day")
