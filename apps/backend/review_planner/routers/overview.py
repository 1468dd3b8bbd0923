from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_planner
from ..models.overview import (
    CalendarMonth,
    CategoryTaskGroup,
    DaySchedule,
    MonthlyAnalysis,
    WeekSummary,
)
from ..planner import ReviewPlanner
from ..views import (
    WindowOutOfRangeError,
    calendar_month,
    day_schedule,
    monthly_analysis,
    tasks_by_category,
    week_summaries,
)

router = APIRouter(tags=["overview"])


@router.get("/day/{day}", response_model=DaySchedule, summary="指定日のタスクと必要時間")
async def get_day(day: date, planner: ReviewPlanner = Depends(get_planner)) -> DaySchedule:
    return day_schedule(planner.state, day)


@router.get(
    "/calendar/{year}/{month}", response_model=CalendarMonth, summary="月間カレンダー"
)
async def get_calendar(
    year: int, month: int, planner: ReviewPlanner = Depends(get_planner)
) -> CalendarMonth:
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise HTTPException(status_code=422, detail="invalid year/month")
    return calendar_month(planner.state, year, month)


@router.get("/weeks", response_model=list[WeekSummary], summary="週別の復習時間")
async def get_weeks(
    start: date | None = Query(default=None, description="基準日（省略時は今日）"),
    count: int | None = Query(default=None, ge=1, le=52),
    planner: ReviewPlanner = Depends(get_planner),
) -> list[WeekSummary]:
    anchor = start if start is not None else planner.now().date()
    try:
        return week_summaries(planner.state, anchor, count)
    except WindowOutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get(
    "/categories", response_model=list[CategoryTaskGroup], summary="カテゴリ別タスク"
)
async def get_tasks_by_category(
    planner: ReviewPlanner = Depends(get_planner),
) -> list[CategoryTaskGroup]:
    return tasks_by_category(planner.state, planner.now())


@router.get("/analysis", response_model=MonthlyAnalysis, summary="月別タスク分析")
async def get_analysis(
    anchor: date | None = Query(default=None, description="期間末の月に含まれる日（省略時は今日）"),
    months: int | None = Query(default=None, ge=1, le=24),
    planner: ReviewPlanner = Depends(get_planner),
) -> MonthlyAnalysis:
    end = anchor if anchor is not None else planner.now().date()
    try:
        return monthly_analysis(planner.state, end, months)
    except WindowOutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
