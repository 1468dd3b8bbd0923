from datetime import date as Day
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .common import DAY_KEY_PATTERN


class TimeLimits(BaseModel):
    """Default daily study budget in minutes.

    平日/休日それぞれの1日あたりの学習時間上限。
    """

    weekday: int = Field(default=120, ge=0, le=24 * 60)
    weekend: int = Field(default=240, ge=0, le=24 * 60)


class DailyTimeSetting(BaseModel):
    """Per-day override of the study budget, keyed by `YYYY-MM-DD`."""

    model_config = ConfigDict(extra="ignore")

    date: str = Field(pattern=DAY_KEY_PATTERN)
    time_limit: int = Field(
        ge=0, le=24 * 60, validation_alias=AliasChoices("time_limit", "timeLimit")
    )

    @field_validator("date", mode="after")
    @classmethod
    def _valid_calendar_day(cls, value: str) -> str:
        # 形式だけでなく実在する日付か（2024-02-30 等を拒否）
        Day.fromisoformat(value)
        return value


class CustomLimitRequest(BaseModel):
    time_limit: int = Field(ge=0, le=24 * 60, description="その日の学習時間上限（分）")


class TimeSettingsResponse(BaseModel):
    limits: TimeLimits
    custom: list[DailyTimeSetting]


class ResolvedLimitResponse(BaseModel):
    date: str
    time_limit: int
    source: Literal["custom", "weekday", "weekend"]
