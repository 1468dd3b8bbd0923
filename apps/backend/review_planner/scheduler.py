"""Spaced-repetition scheduling and daily time budgeting.

This module holds the planner's core arithmetic and nothing else:

- the fixed review offsets applied once when a task is created
- the decaying time multiplier used to estimate each review's effort
- resolution of the daily study budget (per-day override, else weekday/weekend default)

すべて純粋関数で、永続化やログには依存しない。日付の比較はローカル時刻の
暦日で統一している（`clock.day_of`）。
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Literal, Mapping, Sequence

from .clock import as_datetime, day_key, day_of

if TYPE_CHECKING:  # pragma: no cover
    from .models.task import Task
    from .models.time_settings import DailyTimeSetting, TimeLimits


REVIEW_INTERVALS: tuple[timedelta, ...] = (
    timedelta(minutes=20),
    timedelta(days=1),
    timedelta(days=3),
    timedelta(days=7),
    timedelta(days=14),
    timedelta(days=30),
    timedelta(days=60),
    timedelta(days=90),
    timedelta(days=180),
)

# index = 完了済み復習回数（対象日より前の暦日のもの）
TIME_MULTIPLIERS: tuple[float, ...] = (
    0.25,
    0.17,
    0.13,
    0.10,
    0.08,
    0.05,
    0.03,
    0.02,
    0.02,
)

REVIEW_COUNT = len(REVIEW_INTERVALS)

LimitSource = Literal["custom", "weekday", "weekend"]


def generate_review_dates(created_at: datetime) -> list[datetime]:
    """Return the nine review instants for a task created at `created_at`."""

    return [created_at + offset for offset in REVIEW_INTERVALS]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (JavaScript `Math.round`)."""

    return int(math.floor(value + 0.5))


def completed_before(task: "Task", target: date | datetime) -> int:
    """Number of completed reviews on calendar days strictly before `target`'s day."""

    target_day = day_of(target)
    return sum(1 for review in task.completed_reviews if day_of(review.date) < target_day)


def multiplier_for(completed_count: int) -> float:
    index = min(max(completed_count, 0), len(TIME_MULTIPLIERS) - 1)
    return TIME_MULTIPLIERS[index]


def required_time_for_review(task: "Task", target: date | datetime) -> int:
    """Estimate the minutes the review of `task` on `target` needs.

    The estimate is `initial_time_required` scaled by the multiplier indexed by
    the number of reviews completed before the target day, clamped to the
    last multiplier once every scheduled review has been done. Any date works,
    including days that are not scheduled review dates.
    """

    multiplier = multiplier_for(completed_before(task, target))
    return max(0, round_half_up(task.initial_time_required * multiplier))


def is_weekend(value: date | datetime) -> bool:
    return day_of(value).weekday() >= 5


def resolve_daily_limit_with_source(
    target: date | datetime,
    limits: "TimeLimits",
    custom_settings: Iterable["DailyTimeSetting"],
) -> tuple[int, LimitSource]:
    """Resolve the study budget for a day and report where it came from."""

    key = day_key(target)
    for setting in custom_settings:
        if setting.date == key:
            return setting.time_limit, "custom"
    if is_weekend(target):
        return limits.weekend, "weekend"
    return limits.weekday, "weekday"


def resolve_daily_limit(
    target: date | datetime,
    limits: "TimeLimits",
    custom_settings: Iterable["DailyTimeSetting"],
) -> int:
    limit, _source = resolve_daily_limit_with_source(target, limits, custom_settings)
    return limit


def upsert_daily_setting(
    custom_settings: Sequence["DailyTimeSetting"],
    setting: "DailyTimeSetting",
) -> list["DailyTimeSetting"]:
    """Return a new override list with `setting` replacing any override for the same day.

    既存の日付があればその位置で置き換え、無ければ末尾へ追加する。
    """

    updated = list(custom_settings)
    for index, existing in enumerate(updated):
        if existing.date == setting.date:
            updated[index] = setting
            return updated
    updated.append(setting)
    return updated


def remove_daily_setting(
    custom_settings: Sequence["DailyTimeSetting"], target: date | datetime
) -> list["DailyTimeSetting"]:
    key = day_key(target)
    return [setting for setting in custom_settings if setting.date != key]


def review_dates_on(task: "Task", target: date | datetime) -> list[datetime]:
    """Scheduled review instants of `task` that fall on `target`'s calendar day."""

    target_day = day_of(target)
    return [when for when in task.review_dates if day_of(when) == target_day]


def has_review_on(task: "Task", target: date | datetime) -> bool:
    return bool(review_dates_on(task, target))


def completed_review_on(task: "Task", target: date | datetime):
    """The completed-review record of `target`'s day, or None."""

    target_day = day_of(target)
    for review in task.completed_reviews:
        if day_of(review.date) == target_day:
            return review
    return None


def build_completed_review(
    task: "Task", target: date | datetime, actual_time: int | None = None
) -> Mapping[str, object]:
    """Field values for a completed-review record of `target`'s day."""

    estimate = required_time_for_review(task, target)
    return {
        "date": as_datetime(target),
        "time_spent": estimate,
        "actual_time": estimate if actual_time is None else actual_time,
        "retention": 100,
    }
