from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterator, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from .clock import day_of
from .config import settings
from .logging import logger
from .models.category import DEFAULT_CATEGORIES, Category
from .models.task import Task
from .models.time_settings import DailyTimeSetting, TimeLimits


TASKS_KEY = "learning-management-tasks"
CATEGORIES_KEY = "learning-management-categories"
TIME_LIMITS_KEY = "learning-management-time-limits"
CUSTOM_TIME_SETTINGS_KEY = "learning-management-custom-time-settings"

LoadPolicy = Literal["drop", "reject"]
_ModelT = TypeVar("_ModelT", bound=BaseModel)


class StoreCorruptedError(RuntimeError):
    """Persisted data could not be read under the `reject` load policy."""

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"{key}: {detail}")
        self.key = key
        self.detail = detail


class KeyValueStore:
    """SQLite-backed flat key-value store holding one JSON document per key."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        with conn:  # autocommit on pragma
            conn.execute("pragma journal_mode=WAL;")
        return conn

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        with self._conn() as conn:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS records (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )

    # --- public API ---
    def get_raw(self, key: str) -> str | None:
        """Return the stored JSON text for `key`, or None when absent."""

        with self._conn() as conn:
            cur = conn.execute("SELECT value FROM records WHERE key = ?;", (key,))
            row = cur.fetchone()
        if row is None:
            return None
        return str(row["value"])

    def put_many(self, values: dict[str, Any]) -> None:
        """Upsert several keys in one transaction, serialising values to JSON."""

        now = datetime.now(UTC).replace(microsecond=0).isoformat()
        rows = [
            (key, json.dumps(value, ensure_ascii=False), now)
            for key, value in values.items()
        ]
        with self._conn() as conn:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO records (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at;
                    """,
                    rows,
                )

    def put(self, key: str, value: Any) -> None:
        self.put_many({key: value})

    def delete(self, key: str) -> bool:
        with self._conn() as conn:
            with conn:
                cur = conn.execute("DELETE FROM records WHERE key = ?;", (key,))
                return cur.rowcount > 0

    def keys(self) -> list[str]:
        with self._conn() as conn:
            cur = conn.execute("SELECT key FROM records ORDER BY key ASC;")
            return [str(row["key"]) for row in cur.fetchall()]


@dataclass
class PlannerState:
    """Everything the planner keeps: the four persisted records."""

    tasks: list[Task] = field(default_factory=list)
    categories: list[Category] = field(
        default_factory=lambda: [c.model_copy() for c in DEFAULT_CATEGORIES]
    )
    time_limits: TimeLimits = field(default_factory=TimeLimits)
    custom_time_settings: list[DailyTimeSetting] = field(default_factory=list)


def default_time_limits() -> TimeLimits:
    return TimeLimits(
        weekday=settings.default_weekday_limit,
        weekend=settings.default_weekend_limit,
    )


class PlannerRepository:
    """Load-all-at-startup / write-all-on-change persistence for `PlannerState`.

    読み込み時に壊れたレコードを見つけた場合:
    - policy="drop": 該当レコードだけ捨てて警告ログを出す（値全体が読めなければ既定値）
    - policy="reject": StoreCorruptedError を送出する
    """

    def __init__(self, store: KeyValueStore, policy: LoadPolicy | None = None) -> None:
        self.store = store
        self.policy: LoadPolicy = policy or settings.store_load_policy

    def _reject_or_log(self, key: str, detail: str, **fields: Any) -> None:
        if self.policy == "reject":
            raise StoreCorruptedError(key, detail)
        logger.warning("store_record_dropped", key=key, error=detail, **fields)

    def _read_json(self, key: str) -> Any | None:
        raw = self.store.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            self._reject_or_log(key, f"invalid json: {exc.msg}")
            return None

    def _load_list(self, key: str, model: type[_ModelT]) -> list[_ModelT] | None:
        payload = self._read_json(key)
        if payload is None:
            return None
        if not isinstance(payload, list):
            self._reject_or_log(key, "expected a list")
            return None
        items: list[_ModelT] = []
        for index, raw_item in enumerate(payload):
            try:
                items.append(model.model_validate(raw_item))
            except ValidationError as exc:
                self._reject_or_log(
                    key, f"invalid record: {exc.error_count()} error(s)", index=index
                )
        return items

    def _load_time_limits(self) -> TimeLimits | None:
        payload = self._read_json(TIME_LIMITS_KEY)
        if payload is None:
            return None
        try:
            return TimeLimits.model_validate(payload)
        except ValidationError as exc:
            self._reject_or_log(TIME_LIMITS_KEY, f"invalid record: {exc.error_count()} error(s)")
            return None

    @staticmethod
    def _collapse_same_day_reviews(task: Task) -> Task:
        """Keep the last completed review of each calendar day."""

        by_day: dict[Any, Any] = {}
        for review in task.completed_reviews:
            by_day[day_of(review.date)] = review
        if len(by_day) == len(task.completed_reviews):
            return task
        logger.warning(
            "completed_reviews_collapsed",
            task_id=task.id,
            before=len(task.completed_reviews),
            after=len(by_day),
        )
        kept = sorted(by_day.values(), key=lambda review: review.date)
        return task.model_copy(update={"completed_reviews": kept})

    def load(self) -> PlannerState:
        state = PlannerState(time_limits=default_time_limits())

        tasks = self._load_list(TASKS_KEY, Task)
        if tasks is not None:
            state.tasks = [self._collapse_same_day_reviews(task) for task in tasks]

        categories = self._load_list(CATEGORIES_KEY, Category)
        if categories is not None:
            state.categories = categories

        limits = self._load_time_limits()
        if limits is not None:
            state.time_limits = limits

        custom = self._load_list(CUSTOM_TIME_SETTINGS_KEY, DailyTimeSetting)
        if custom is not None:
            deduped: dict[str, DailyTimeSetting] = {}
            for setting in custom:
                deduped[setting.date] = setting
            state.custom_time_settings = list(deduped.values())

        logger.info(
            "planner_state_loaded",
            tasks=len(state.tasks),
            categories=len(state.categories),
            custom_time_settings=len(state.custom_time_settings),
        )
        return state

    def save(self, state: PlannerState) -> None:
        self.store.put_many(
            {
                TASKS_KEY: [task.model_dump(mode="json") for task in state.tasks],
                CATEGORIES_KEY: [c.model_dump(mode="json") for c in state.categories],
                TIME_LIMITS_KEY: state.time_limits.model_dump(mode="json"),
                CUSTOM_TIME_SETTINGS_KEY: [
                    s.model_dump(mode="json") for s in state.custom_time_settings
                ],
            }
        )


def create_repository(db_path: str | None = None) -> PlannerRepository:
    """Build the repository wired to settings (or an explicit DB path)."""

    return PlannerRepository(KeyValueStore(db_path or settings.review_planner_db_path))
