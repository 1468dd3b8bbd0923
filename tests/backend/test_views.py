"""日・週・月・カテゴリ単位の集計ビューのテスト。"""

from datetime import date, datetime

import pytest

from review_planner.models.category import Category
from review_planner.models.task import CompletedReview, Task
from review_planner.models.time_settings import DailyTimeSetting
from review_planner.scheduler import generate_review_dates
from review_planner.store import PlannerState
from review_planner.views import (
    WindowOutOfRangeError,
    calendar_month,
    day_schedule,
    minutes_to_hours,
    monthly_analysis,
    start_of_week,
    tasks_by_category,
    total_time_for_day,
    week_summaries,
    week_summary,
)

CREATED_AT = datetime(2024, 5, 15, 9, 30)


def _task(task_id: str, category_id: str = "1", initial: int = 300, reviews=()) -> Task:
    return Task(
        id=task_id,
        title=f"task {task_id}",
        initial_time_required=initial,
        created_at=CREATED_AT,
        category_id=category_id,
        review_dates=generate_review_dates(CREATED_AT),
        completed_reviews=[
            CompletedReview(date=when, time_spent=75, actual_time=60) for when in reviews
        ],
    )


def test_day_schedule_lists_tasks_with_totals():
    state = PlannerState(
        tasks=[
            _task("a", reviews=(datetime(2024, 5, 15, 0, 0),)),
            _task("b", category_id="2", initial=120),
            _task("orphan", category_id="gone", initial=60),
        ]
    )

    schedule = day_schedule(state, date(2024, 5, 15))

    assert [entry.task.id for entry in schedule.tasks] == ["a", "b", "orphan"]
    assert [entry.required_time for entry in schedule.tasks] == [75, 30, 15]
    assert schedule.tasks[0].completed is True
    assert schedule.tasks[0].actual_time == 60
    assert schedule.tasks[1].completed is False
    assert schedule.tasks[2].category is None
    assert schedule.total_required_time == 120
    assert schedule.remaining_time == 45
    assert schedule.time_limit == 120
    assert schedule.over_limit is False


def test_day_schedule_over_limit_uses_custom_override():
    state = PlannerState(
        tasks=[_task("a")],
        custom_time_settings=[DailyTimeSetting(date="2024-05-16", time_limit=60)],
    )

    schedule = day_schedule(state, date(2024, 5, 16))

    assert schedule.total_required_time == 75
    assert schedule.time_limit == 60
    assert schedule.over_limit is True
    assert total_time_for_day(state, date(2024, 5, 17)) == 0


def test_start_of_week():
    assert start_of_week(date(2024, 5, 15), 0) == date(2024, 5, 12)
    assert start_of_week(date(2024, 5, 12), 0) == date(2024, 5, 12)
    assert start_of_week(date(2024, 5, 15), 1) == date(2024, 5, 13)
    assert start_of_week(date(2024, 5, 12), 1) == date(2024, 5, 6)


def test_week_summary_counts_time_per_review_but_lists_task_once():
    state = PlannerState(tasks=[_task("a"), _task("orphan", category_id="gone")])

    summary = week_summary(state, date(2024, 5, 12), date(2024, 5, 18))

    # 5/15, 5/16, 5/18 の3回分（各 75 分）
    [category_time] = summary.category_times
    assert category_time.category.id == "1"
    assert category_time.time == 225
    assert [t.id for t in category_time.tasks] == ["a"]
    assert summary.total_time == 225


def test_week_summaries_default_to_four_weeks_from_sunday():
    state = PlannerState(tasks=[_task("a")])

    weeks = week_summaries(state, date(2024, 5, 15))

    assert len(weeks) == 4
    assert [w.start for w in weeks] == [
        date(2024, 5, 12),
        date(2024, 5, 19),
        date(2024, 5, 26),
        date(2024, 6, 2),
    ]
    assert weeks[0].end == date(2024, 5, 18)
    assert [w.total_time for w in weeks] == [225, 75, 75, 0]


def test_calendar_month_pads_leading_and_trailing_days():
    state = PlannerState(tasks=[_task("a")])

    grid = calendar_month(state, 2024, 5, week_starts_on=0)

    # 2024-05-01 は水曜日
    assert grid.leading_blank_days == 3
    assert len(grid.days) == 31
    assert grid.trailing_blank_days == 1
    assert (grid.leading_blank_days + len(grid.days) + grid.trailing_blank_days) % 7 == 0

    may_15 = grid.days[14]
    assert may_15.date == date(2024, 5, 15)
    assert [entry.task_id for entry in may_15.entries] == ["a"]
    assert may_15.entries[0].color == "#4F46E5"
    assert may_15.total_time == 75
    assert grid.days[17].is_weekend is True
    assert grid.days[17].time_limit == 240


def test_tasks_by_category_groups_existing_categories():
    state = PlannerState(
        tasks=[
            _task("a"),
            _task("b", initial=120),
            _task("c", category_id="2", initial=60),
            _task("orphan", category_id="gone"),
        ]
    )

    groups = tasks_by_category(state, date(2024, 5, 20))

    assert [(g.category.id, g.task_count, g.total_time) for g in groups] == [
        ("1", 2, 105),
        ("2", 1, 15),
    ]


def test_minutes_to_hours_rounds_to_one_decimal():
    assert minutes_to_hours(0) == 0.0
    assert minutes_to_hours(15) == 0.3
    assert minutes_to_hours(90) == 1.5
    assert minutes_to_hours(300) == 5.0


def test_monthly_analysis_hours_and_axis():
    state = PlannerState(
        categories=[
            Category(id="1", name="語学", color="#4F46E5"),
            Category(id="2", name="プログラミング", color="#059669"),
        ],
        tasks=[_task("a", initial=240)],
    )

    analysis = monthly_analysis(state, date(2024, 5, 20), months=6)

    assert [row.month for row in analysis.months] == [
        "2023-12",
        "2024-01",
        "2024-02",
        "2024-03",
        "2024-04",
        "2024-05",
    ]
    assert analysis.months[0].label == "2023年12月"
    # 5月の復習日は 5/15, 5/16, 5/18, 5/22, 5/29 の5回（各 60 分）
    may = analysis.months[-1]
    assert may.hours == {"1": 5.0, "2": 0.0}
    assert may.total == 5.0
    assert analysis.months[0].total == 0.0
    assert analysis.y_axis_max == 8
    assert analysis.y_axis_ticks == [0, 4, 8]
    assert analysis.total_hours == 5.0
    assert analysis.average_hours_per_month == 0.8
    assert [(s.category.id, s.total, s.share) for s in analysis.category_totals] == [
        ("1", 5.0, 100.0),
        ("2", 0.0, 0.0),
    ]


def test_monthly_analysis_empty_state():
    analysis = monthly_analysis(PlannerState(tasks=[]), date(2024, 1, 10), months=3)

    assert [row.month for row in analysis.months] == ["2023-11", "2023-12", "2024-01"]
    assert analysis.y_axis_max == 0
    assert analysis.y_axis_ticks == [0]
    assert analysis.total_hours == 0.0


def test_week_summaries_reject_windows_past_the_calendar_end():
    state = PlannerState(tasks=[])

    with pytest.raises(WindowOutOfRangeError):
        week_summaries(state, date(9999, 12, 20), 4, week_starts_on=0)
    # 0001-01-01 は月曜日。日曜始まりの週は暦の範囲より前から始まる
    with pytest.raises(WindowOutOfRangeError):
        week_summaries(state, date(1, 1, 1), 1, week_starts_on=0)


def test_week_summaries_can_end_on_the_last_calendar_day():
    # 9999-12-31 は金曜日。土曜始まりなら最終週がちょうど収まる
    [last] = week_summaries(PlannerState(tasks=[]), date(9999, 12, 31), 1, week_starts_on=6)

    assert last.start == date(9999, 12, 25)
    assert last.end == date.max
    assert last.total_time == 0


def test_monthly_analysis_rejects_months_before_year_one():
    state = PlannerState(tasks=[])

    with pytest.raises(WindowOutOfRangeError):
        monthly_analysis(state, date(1, 3, 1), months=6)

    analysis = monthly_analysis(state, date(1, 6, 15), months=6)
    assert [row.month for row in analysis.months][0] == "0001-01"
