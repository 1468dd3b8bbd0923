from datetime import date as Day

from pydantic import BaseModel

from .category import Category
from .task import Task


class DayTaskEntry(BaseModel):
    """A task scheduled for review on the selected day."""

    task: Task
    category: Category | None = None
    required_time: int
    completed: bool = False
    actual_time: int | None = None


class DaySchedule(BaseModel):
    """Response model for one calendar day.

    - total_required_time: その日に必要な復習時間の合計
    - remaining_time: 未完了タスクの復習時間の合計
    - over_limit: 合計が1日の上限を超えているか
    """

    date: Day
    tasks: list[DayTaskEntry]
    total_required_time: int
    remaining_time: int
    time_limit: int
    over_limit: bool


class CalendarEntry(BaseModel):
    task_id: str
    title: str
    color: str | None = None
    required_time: int
    completed: bool


class CalendarDay(BaseModel):
    date: Day
    entries: list[CalendarEntry]
    total_time: int
    time_limit: int
    over_limit: bool
    is_weekend: bool


class CalendarMonth(BaseModel):
    """A month grid. Blank counts pad the first/last week of a 7-column grid."""

    year: int
    month: int
    leading_blank_days: int
    trailing_blank_days: int
    days: list[CalendarDay]


class CategoryTime(BaseModel):
    category: Category
    time: int
    tasks: list[Task]


class WeekSummary(BaseModel):
    start: Day
    end: Day
    total_time: int
    category_times: list[CategoryTime]


class CategoryTaskGroup(BaseModel):
    category: Category
    tasks: list[Task]
    task_count: int
    total_time: int


class MonthHours(BaseModel):
    """Review hours of one month, per category id."""

    month: str
    label: str
    hours: dict[str, float]
    total: float


class CategoryShare(BaseModel):
    category: Category
    total: float
    share: float


class MonthlyAnalysis(BaseModel):
    """月別タスク分析のレスポンス（時間単位、小数1桁）。"""

    months: list[MonthHours]
    y_axis_max: int
    y_axis_ticks: list[int]
    total_hours: float
    average_hours_per_month: float
    category_totals: list[CategoryShare]
