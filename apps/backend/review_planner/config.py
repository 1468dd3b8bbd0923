from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_DB_PATH = ".data/review_planner.sqlite3"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - review_planner_db_path: フラットなキーバリューストアの SQLite パス
    - default_weekday_limit / default_weekend_limit: 1日の学習時間の既定値（分）
    - store_load_policy: 壊れた保存データの扱い（drop/reject）
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )
    review_planner_db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to SQLite key-value store / 保存用SQLite DBパス",
        validation_alias=AliasChoices("review_planner_db_path", "db_path"),
    )

    # --- 学習時間の既定値 ---
    default_weekday_limit: int = Field(
        default=120,
        ge=0,
        description="Default daily limit on weekdays (minutes) / 平日の学習時間上限(分)",
    )
    default_weekend_limit: int = Field(
        default=240,
        ge=0,
        description="Default daily limit on weekends (minutes) / 休日の学習時間上限(分)",
    )

    # --- 集計ビュー ---
    week_starts_on: int = Field(
        default=0,
        ge=0,
        le=6,
        description="First day of week, 0=Sunday..6=Saturday / 週の開始曜日（0=日曜）",
    )
    overview_weeks: int = Field(
        default=4,
        ge=1,
        le=52,
        description="Number of weeks shown in the weekly overview / 週別サマリーの週数",
    )
    analysis_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Number of trailing months in the analysis view / 月別分析の月数",
    )
    timezone: str | None = Field(
        default=None,
        description=(
            "IANA timezone used for calendar-day comparisons (host local when unset) / "
            "暦日判定に用いるタイムゾーン（未指定ならホストのローカル時刻）"
        ),
    )

    # --- 保存データ読込ポリシー ---
    store_load_policy: Literal["drop", "reject"] = Field(
        default="drop",
        description=(
            "How to treat malformed persisted records: drop them or refuse to start / "
            "不正な保存レコードを破棄するか起動を拒否するか"
        ),
    )

    allowed_cors_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(),
        description="Allowed CORS origins (comma separated) / 許可するCORSオリジン",
        validation_alias=AliasChoices("allowed_cors_origins", "cors_allowed_origins"),
    )
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN (enable if set)")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("timezone", mode="after")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str | None:
        """Reject unknown IANA zone names at load time.

        空文字は未指定として扱い、存在しないタイムゾーン名は起動時に拒否する。
        """

        name = (value or "").strip()
        if not name:
            return None
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {name!r}") from exc
        return name

    @field_validator("allowed_cors_origins", mode="before")
    @classmethod
    def _normalise_allowed_cors_origins(
        cls, raw_origins: object
    ) -> tuple[str, ...] | object:  # pragma: no cover - pydantic handles typing
        """Convert environment input into a deduplicated tuple of origins.

        `.env` のカンマ区切り文字列・シーケンスのどちらでも受け取り、
        トリムと重複排除を行ったタプルへ正規化する。
        """

        if raw_origins is None:
            candidates: list[str] = []
        elif isinstance(raw_origins, str):
            candidates = raw_origins.split(",")
        else:
            try:
                candidates = list(raw_origins)
            except TypeError:
                return raw_origins

        normalised: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            if not isinstance(candidate, str):
                continue
            trimmed = candidate.strip()
            if not trimmed or trimmed in seen:
                continue
            seen.add(trimmed)
            normalised.append(trimmed)

        return tuple(normalised)


settings = Settings()
