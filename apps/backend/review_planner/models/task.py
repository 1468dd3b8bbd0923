from datetime import date as Day
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..scheduler import REVIEW_COUNT
from .common import normalize_instant


class CompletedReview(BaseModel):
    """One finished review of a task.

    1日につき1件。`time_spent` は記録時点の見積もり、`actual_time` は
    実際に要した時間（未入力なら見積もりと同じ）。
    """

    model_config = ConfigDict(extra="ignore")

    date: datetime
    time_spent: int = Field(ge=0, validation_alias=AliasChoices("time_spent", "timeSpent"))
    actual_time: int = Field(ge=0, validation_alias=AliasChoices("actual_time", "actualTime"))
    retention: int = 100

    @field_validator("date", mode="after")
    @classmethod
    def _local_date(cls, value: datetime) -> datetime:
        return normalize_instant(value)


class Task(BaseModel):
    """A learning task with its fixed review schedule.

    保存済みデータ（旧フロントエンドの camelCase キー）もそのまま読み込める。
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    title: str
    description: str = ""
    initial_time_required: int = Field(
        gt=0, validation_alias=AliasChoices("initial_time_required", "initialTimeRequired")
    )
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    review_dates: list[datetime] = Field(
        validation_alias=AliasChoices("review_dates", "reviewDates")
    )
    completed_reviews: list[CompletedReview] = Field(
        default_factory=list,
        validation_alias=AliasChoices("completed_reviews", "completedReviews"),
    )

    @field_validator("created_at", mode="after")
    @classmethod
    def _local_created_at(cls, value: datetime) -> datetime:
        return normalize_instant(value)

    @field_validator("review_dates", mode="after")
    @classmethod
    def _check_review_dates(cls, value: list[datetime]) -> list[datetime]:
        dates = [normalize_instant(item) for item in value]
        if len(dates) != REVIEW_COUNT:
            raise ValueError(f"review_dates must contain exactly {REVIEW_COUNT} entries")
        if any(later < earlier for earlier, later in zip(dates, dates[1:])):
            raise ValueError("review_dates must be non-decreasing")
        return dates


class TaskCreateRequest(BaseModel):
    """Request model for registering a new learning task.

    - started_on: 実施日（省略時は今日）。未来日は ReviewPlanner.add_task が拒否する。
    """

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    initial_time_required: int = Field(gt=0, le=24 * 60, description="所要時間（分）")
    category_id: str = Field(min_length=1)
    started_on: Day | None = None


class TaskUpdateRequest(BaseModel):
    """Editable task fields. The review schedule is never recomputed."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    initial_time_required: int | None = Field(default=None, gt=0, le=24 * 60)
    category_id: str | None = Field(default=None, min_length=1)


class ReviewCompletionRequest(BaseModel):
    actual_time: int | None = Field(
        default=None, ge=0, description="実際にかかった時間（分）。省略時は見積もり値"
    )


class RequiredTimeResponse(BaseModel):
    task_id: str
    at: datetime
    completed_before: int
    multiplier: float
    required_time: int
