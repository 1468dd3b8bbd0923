"""Read-side projections over the planner state.

日・週・月・カテゴリ単位の集計。どれも読み出しのたびに状態から再計算し、
キャッシュは持たない。
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta

from .clock import day_of
from .config import settings
from .models.category import Category
from .models.overview import (
    CalendarDay,
    CalendarEntry,
    CalendarMonth,
    CategoryShare,
    CategoryTaskGroup,
    CategoryTime,
    DaySchedule,
    DayTaskEntry,
    MonthHours,
    MonthlyAnalysis,
    WeekSummary,
)
from .models.task import Task
from .scheduler import (
    completed_review_on,
    has_review_on,
    is_weekend,
    required_time_for_review,
    resolve_daily_limit,
    round_half_up,
)
from .store import PlannerState

Y_AXIS_STEP_HOURS = 4


class WindowOutOfRangeError(ValueError):
    """The requested week/month window leaves the supported calendar range."""


def _category_index(categories: list[Category]) -> dict[str, Category]:
    return {category.id: category for category in categories}


def tasks_for_day(state: PlannerState, day: date | datetime) -> list[tuple[Task, int]]:
    """Tasks with a review on `day`, each paired with its required minutes."""

    return [
        (task, required_time_for_review(task, day))
        for task in state.tasks
        if has_review_on(task, day)
    ]


def total_time_for_day(state: PlannerState, day: date | datetime) -> int:
    return sum(minutes for _task, minutes in tasks_for_day(state, day))


def day_schedule(state: PlannerState, day: date | datetime) -> DaySchedule:
    categories = _category_index(state.categories)
    entries: list[DayTaskEntry] = []
    for task, minutes in tasks_for_day(state, day):
        review = completed_review_on(task, day)
        entries.append(
            DayTaskEntry(
                task=task,
                category=categories.get(task.category_id),
                required_time=minutes,
                completed=review is not None,
                actual_time=review.actual_time if review is not None else None,
            )
        )
    total = sum(entry.required_time for entry in entries)
    remaining = sum(entry.required_time for entry in entries if not entry.completed)
    limit = resolve_daily_limit(day, state.time_limits, state.custom_time_settings)
    return DaySchedule(
        date=day_of(day),
        tasks=entries,
        total_required_time=total,
        remaining_time=remaining,
        time_limit=limit,
        over_limit=total > limit,
    )


def _weekday_index(day: date, week_starts_on: int) -> int:
    """Position of `day` inside its week (0-based) for a given first weekday (0=Sunday)."""

    return (day.isoweekday() % 7 - week_starts_on) % 7


def start_of_week(day: date, week_starts_on: int | None = None) -> date:
    first = settings.week_starts_on if week_starts_on is None else week_starts_on
    return day - timedelta(days=_weekday_index(day, first))


def calendar_month(
    state: PlannerState, year: int, month: int, week_starts_on: int | None = None
) -> CalendarMonth:
    first = settings.week_starts_on if week_starts_on is None else week_starts_on
    _, days_in_month = calendar.monthrange(year, month)
    categories = _category_index(state.categories)
    days: list[CalendarDay] = []
    for offset in range(days_in_month):
        current = date(year, month, 1) + timedelta(days=offset)
        entries: list[CalendarEntry] = []
        for task, minutes in tasks_for_day(state, current):
            category = categories.get(task.category_id)
            entries.append(
                CalendarEntry(
                    task_id=task.id,
                    title=task.title,
                    color=category.color if category is not None else None,
                    required_time=minutes,
                    completed=completed_review_on(task, current) is not None,
                )
            )
        total = sum(entry.required_time for entry in entries)
        limit = resolve_daily_limit(current, state.time_limits, state.custom_time_settings)
        days.append(
            CalendarDay(
                date=current,
                entries=entries,
                total_time=total,
                time_limit=limit,
                over_limit=total > limit,
                is_weekend=is_weekend(current),
            )
        )
    leading = _weekday_index(date(year, month, 1), first)
    trailing = (7 - (leading + days_in_month) % 7) % 7
    return CalendarMonth(
        year=year,
        month=month,
        leading_blank_days=leading,
        trailing_blank_days=trailing,
        days=days,
    )


def week_summary(state: PlannerState, start: date, end: date) -> WeekSummary:
    """Per-category review minutes between `start` and `end` (inclusive).

    A task contributes its required time for every day it has a review on,
    but is listed only once per category. Tasks whose category no longer
    exists are left out, as are categories with no time.
    """

    times = [CategoryTime(category=c, time=0, tasks=[]) for c in state.categories]
    by_id = {entry.category.id: entry for entry in times}
    for offset in range((end - start).days + 1):
        current = start + timedelta(days=offset)
        for task in state.tasks:
            if not has_review_on(task, current):
                continue
            entry = by_id.get(task.category_id)
            if entry is None:
                continue
            entry.time += required_time_for_review(task, current)
            if all(listed.id != task.id for listed in entry.tasks):
                entry.tasks.append(task)
    return WeekSummary(
        start=start,
        end=end,
        total_time=sum(entry.time for entry in times),
        category_times=[entry for entry in times if entry.time > 0],
    )


def week_summaries(
    state: PlannerState,
    anchor: date,
    count: int | None = None,
    week_starts_on: int | None = None,
) -> list[WeekSummary]:
    """Consecutive weeks starting with the week that contains `anchor`.

    Raises WindowOutOfRangeError when the weeks do not fit between
    `date.min` and `date.max`.
    """

    weeks = settings.overview_weeks if count is None else count
    message = f"{weeks} week(s) around {anchor.isoformat()} leave the calendar range"
    try:
        first = start_of_week(anchor, week_starts_on)
    except OverflowError as exc:
        raise WindowOutOfRangeError(message) from exc
    if (date.max - first).days < 7 * weeks - 1:
        raise WindowOutOfRangeError(message)
    summaries: list[WeekSummary] = []
    for index in range(weeks):
        week_start = first + timedelta(weeks=index)
        summaries.append(week_summary(state, week_start, week_start + timedelta(days=6)))
    return summaries


def tasks_by_category(state: PlannerState, at: date | datetime) -> list[CategoryTaskGroup]:
    """Group tasks by existing category with the time each needs at `at`."""

    categories = _category_index(state.categories)
    groups: dict[str, CategoryTaskGroup] = {}
    for task in state.tasks:
        category = categories.get(task.category_id)
        if category is None:
            continue
        group = groups.get(category.id)
        if group is None:
            group = CategoryTaskGroup(category=category, tasks=[], task_count=0, total_time=0)
            groups[category.id] = group
        group.tasks.append(task)
        group.task_count += 1
        group.total_time += required_time_for_review(task, at)
    return list(groups.values())


def minutes_to_hours(minutes: int) -> float:
    """Minutes as hours with one decimal, halves rounded up."""

    return round_half_up(minutes / 6) / 10


def _round_tenths(value: float) -> float:
    return round_half_up(value * 10) / 10


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly_analysis(
    state: PlannerState, anchor: date, months: int | None = None
) -> MonthlyAnalysis:
    """Review hours per category for the trailing months ending with `anchor`'s month.

    Raises WindowOutOfRangeError when the first month would precede year 1.
    """

    span = settings.analysis_months if months is None else months
    first_year, _ = _shift_month(anchor.year, anchor.month, -(span - 1))
    if first_year < date.min.year:
        raise WindowOutOfRangeError(
            f"{span} month(s) ending {anchor.isoformat()} start before year {date.min.year}"
        )
    rows: list[MonthHours] = []
    for back in range(span - 1, -1, -1):
        year, month = _shift_month(anchor.year, anchor.month, -back)
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        hours: dict[str, float] = {}
        for category in state.categories:
            minutes = 0
            for task in state.tasks:
                if task.category_id != category.id:
                    continue
                for when in task.review_dates:
                    if first_day <= day_of(when) <= last_day:
                        minutes += required_time_for_review(task, when)
            hours[category.id] = minutes_to_hours(minutes)
        rows.append(
            MonthHours(
                month=f"{year:04d}-{month:02d}",
                label=f"{year}年{month}月",
                hours=hours,
                total=_round_tenths(sum(hours.values())),
            )
        )

    max_total = max((row.total for row in rows), default=0.0)
    y_axis_max = int(math.ceil(max_total / Y_AXIS_STEP_HOURS)) * Y_AXIS_STEP_HOURS
    ticks = list(range(0, y_axis_max + 1, Y_AXIS_STEP_HOURS))

    total_hours = _round_tenths(sum(row.total for row in rows))
    average = _round_tenths(total_hours / len(rows)) if rows else 0.0
    shares: list[CategoryShare] = []
    for category in state.categories:
        category_total = _round_tenths(sum(row.hours.get(category.id, 0.0) for row in rows))
        share = _round_tenths(category_total / total_hours * 100) if total_hours > 0 else 0.0
        shares.append(CategoryShare(category=category, total=category_total, share=share))
    shares.sort(key=lambda item: item.total, reverse=True)

    return MonthlyAnalysis(
        months=rows,
        y_axis_max=y_axis_max,
        y_axis_ticks=ticks,
        total_hours=total_hours,
        average_hours_per_month=average,
        category_totals=shares,
    )
