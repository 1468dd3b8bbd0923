from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime

from .clock import day_key, day_of, local_now
from .logging import logger
from .models.category import Category, CategoryCreateRequest, CategoryUpdateRequest
from .models.task import CompletedReview, Task, TaskCreateRequest, TaskUpdateRequest
from .models.time_settings import DailyTimeSetting, TimeLimits
from .scheduler import (
    LimitSource,
    build_completed_review,
    generate_review_dates,
    remove_daily_setting,
    required_time_for_review,
    resolve_daily_limit_with_source,
    upsert_daily_setting,
)
from .store import PlannerRepository, PlannerState


Confirmer = Callable[[str], bool]

DELETE_TASK_PROMPT = "このタスクを削除してもよろしいですか？"
DELETE_CATEGORY_PROMPT = "このカテゴリを削除してもよろしいですか？"


def deny_all(_prompt: str) -> bool:
    """Default confirmer: destructive operations need an explicit confirmer."""

    return False


def generate_id() -> str:
    return str(uuid.uuid4())


class FutureStartError(ValueError):
    """A task cannot start after the planner's current day."""


class ReviewPlanner:
    """Mutable planner state with explicit update operations.

    すべての更新はメモリ上で完結させた後、リポジトリへ4レコードまとめて
    書き出す（write-all-on-change）。削除系は注入された confirm で確認を取る。
    """

    def __init__(
        self,
        repository: PlannerRepository,
        state: PlannerState | None = None,
        *,
        clock: Callable[[], datetime] = local_now,
        confirm: Confirmer = deny_all,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self.repository = repository
        self.state = state if state is not None else PlannerState()
        self._clock = clock
        self._confirm = confirm
        self._id_factory = id_factory

    @classmethod
    def load(cls, repository: PlannerRepository, **kwargs) -> "ReviewPlanner":
        return cls(repository, repository.load(), **kwargs)

    def now(self) -> datetime:
        return self._clock()

    def _commit(self) -> None:
        self.repository.save(self.state)

    def _confirmed(self, prompt: str, confirm: Confirmer | None) -> bool:
        confirmer = confirm if confirm is not None else self._confirm
        return bool(confirmer(prompt))

    # --- tasks ---
    @property
    def tasks(self) -> list[Task]:
        return list(self.state.tasks)

    def get_task(self, task_id: str) -> Task | None:
        for task in self.state.tasks:
            if task.id == task_id:
                return task
        return None

    def _replace_task(self, updated: Task) -> None:
        self.state.tasks = [updated if t.id == updated.id else t for t in self.state.tasks]

    def add_task(self, req: TaskCreateRequest) -> Task:
        """Register a task. Raises FutureStartError when `started_on` is after today."""

        now = self.now()
        if req.started_on is not None and req.started_on > now.date():
            raise FutureStartError(
                f"started_on {req.started_on.isoformat()} is after {now.date().isoformat()}"
            )
        created_at = datetime.combine(req.started_on, now.time()) if req.started_on else now
        task = Task(
            id=self._id_factory(),
            title=req.title,
            description=req.description,
            initial_time_required=req.initial_time_required,
            created_at=created_at,
            category_id=req.category_id,
            review_dates=generate_review_dates(created_at),
            completed_reviews=[],
        )
        self.state.tasks = [*self.state.tasks, task]
        self._commit()
        logger.info(
            "task_created",
            task_id=task.id,
            category_id=task.category_id,
            initial_time_required=task.initial_time_required,
        )
        return task

    def update_task(self, task_id: str, req: TaskUpdateRequest) -> Task | None:
        """Apply edited fields. `review_dates` and `completed_reviews` stay as they are."""

        task = self.get_task(task_id)
        if task is None:
            return None
        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        updated = task.model_copy(update=changes)
        self._replace_task(updated)
        self._commit()
        logger.info("task_updated", task_id=task_id, fields=sorted(changes))
        return updated

    def delete_task(self, task_id: str, confirm: Confirmer | None = None) -> bool:
        """Delete a task after confirmation. False when missing or not confirmed."""

        if self.get_task(task_id) is None:
            return False
        if not self._confirmed(DELETE_TASK_PROMPT, confirm):
            logger.info("task_delete_declined", task_id=task_id)
            return False
        self.state.tasks = [t for t in self.state.tasks if t.id != task_id]
        self._commit()
        logger.info("task_deleted", task_id=task_id)
        return True

    def set_review_completed(
        self,
        task_id: str,
        day: date | datetime,
        completed: bool,
        actual_time: int | None = None,
    ) -> Task | None:
        """Mark the review of `day` complete or incomplete.

        完了時は同じ暦日の既存レコードを置き換える（1日1件）。未完了時は
        その暦日のレコードをすべて取り除く。
        """

        task = self.get_task(task_id)
        if task is None:
            return None
        target_day = day_of(day)
        kept = [r for r in task.completed_reviews if day_of(r.date) != target_day]
        if completed:
            record = CompletedReview.model_validate(
                build_completed_review(task, day, actual_time)
            )
            kept.append(record)
            kept.sort(key=lambda review: review.date)
        updated = task.model_copy(update={"completed_reviews": kept})
        self._replace_task(updated)
        self._commit()
        if completed:
            logger.info(
                "review_completed",
                task_id=task_id,
                day=target_day.isoformat(),
                time_spent=record.time_spent,
                actual_time=record.actual_time,
            )
        else:
            logger.info(
                "review_uncompleted",
                task_id=task_id,
                day=target_day.isoformat(),
                removed=len(task.completed_reviews) - len(kept),
            )
        return updated

    def required_time(self, task: Task, at: date | datetime) -> int:
        return required_time_for_review(task, at)

    # --- categories ---
    @property
    def categories(self) -> list[Category]:
        return list(self.state.categories)

    def get_category(self, category_id: str) -> Category | None:
        for category in self.state.categories:
            if category.id == category_id:
                return category
        return None

    def add_category(self, req: CategoryCreateRequest) -> Category:
        category = Category(id=self._id_factory(), name=req.name, color=req.color)
        self.state.categories = [*self.state.categories, category]
        self._commit()
        logger.info("category_created", category_id=category.id, name=category.name)
        return category

    def update_category(self, category_id: str, req: CategoryUpdateRequest) -> Category | None:
        category = self.get_category(category_id)
        if category is None:
            return None
        updated = category.model_copy(update=req.model_dump(exclude_unset=True, exclude_none=True))
        self.state.categories = [
            updated if c.id == category_id else c for c in self.state.categories
        ]
        self._commit()
        logger.info("category_updated", category_id=category_id)
        return updated

    def delete_category(self, category_id: str, confirm: Confirmer | None = None) -> bool:
        """Delete a category. Tasks keep their (now dangling) category_id."""

        if self.get_category(category_id) is None:
            return False
        if not self._confirmed(DELETE_CATEGORY_PROMPT, confirm):
            logger.info("category_delete_declined", category_id=category_id)
            return False
        self.state.categories = [c for c in self.state.categories if c.id != category_id]
        self._commit()
        orphaned = sum(1 for t in self.state.tasks if t.category_id == category_id)
        logger.info("category_deleted", category_id=category_id, orphaned_tasks=orphaned)
        return True

    # --- daily time limits ---
    @property
    def time_limits(self) -> TimeLimits:
        return self.state.time_limits

    @property
    def custom_time_settings(self) -> list[DailyTimeSetting]:
        return list(self.state.custom_time_settings)

    def set_time_limits(self, limits: TimeLimits) -> TimeLimits:
        self.state.time_limits = limits
        self._commit()
        logger.info("time_limits_updated", weekday=limits.weekday, weekend=limits.weekend)
        return limits

    def set_custom_limit(self, day: date | datetime, time_limit: int) -> DailyTimeSetting:
        setting = DailyTimeSetting(date=day_key(day), time_limit=time_limit)
        self.state.custom_time_settings = upsert_daily_setting(
            self.state.custom_time_settings, setting
        )
        self._commit()
        logger.info("custom_limit_saved", day=setting.date, time_limit=time_limit)
        return setting

    def delete_custom_limit(self, day: date | datetime) -> bool:
        before = len(self.state.custom_time_settings)
        remaining = remove_daily_setting(self.state.custom_time_settings, day)
        if len(remaining) == before:
            return False
        self.state.custom_time_settings = remaining
        self._commit()
        logger.info("custom_limit_deleted", day=day_key(day))
        return True

    def daily_limit(self, day: date | datetime) -> tuple[int, LimitSource]:
        """Resolved budget of `day` and whether it came from an override or a default."""

        return resolve_daily_limit_with_source(
            day, self.state.time_limits, self.state.custom_time_settings
        )
