from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_planner
from ..models.task import (
    RequiredTimeResponse,
    ReviewCompletionRequest,
    Task,
    TaskCreateRequest,
    TaskUpdateRequest,
)
from ..planner import FutureStartError, ReviewPlanner
from ..scheduler import completed_before, multiplier_for, required_time_for_review

router = APIRouter(tags=["tasks"])


def _task_or_404(planner: ReviewPlanner, task_id: str) -> Task:
    task = planner.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="task not found")
    return task


@router.get("", response_model=list[Task], summary="タスク一覧")
async def list_tasks(planner: ReviewPlanner = Depends(get_planner)) -> list[Task]:
    return planner.tasks


@router.post("", response_model=Task, status_code=201, summary="新規タスクの追加")
async def create_task(
    req: TaskCreateRequest, planner: ReviewPlanner = Depends(get_planner)
) -> Task:
    """Create a task and fix its nine review dates from the creation time."""
    try:
        return planner.add_task(req)
    except FutureStartError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/{task_id}", response_model=Task, summary="タスク取得")
async def get_task(task_id: str, planner: ReviewPlanner = Depends(get_planner)) -> Task:
    return _task_or_404(planner, task_id)


@router.patch("/{task_id}", response_model=Task, summary="タスクの編集（復習日は再計算しない）")
async def update_task(
    task_id: str, req: TaskUpdateRequest, planner: ReviewPlanner = Depends(get_planner)
) -> Task:
    updated = planner.update_task(task_id, req)
    if updated is None:
        raise HTTPException(status_code=404, detail="task not found")
    return updated


@router.delete("/{task_id}", status_code=204, summary="タスクの削除（要確認）")
async def delete_task(
    task_id: str,
    confirm: bool = Query(default=False, description="削除を確定する場合 true"),
    planner: ReviewPlanner = Depends(get_planner),
) -> None:
    _task_or_404(planner, task_id)
    if not planner.delete_task(task_id, confirm=lambda _prompt: confirm):
        raise HTTPException(status_code=409, detail="deletion requires confirm=true")


@router.put("/{task_id}/reviews/{day}", response_model=Task, summary="復習を完了にする")
async def complete_review(
    task_id: str,
    day: date,
    req: ReviewCompletionRequest | None = None,
    planner: ReviewPlanner = Depends(get_planner),
) -> Task:
    """Mark the review of `day` complete, replacing any record of that day."""
    actual_time = req.actual_time if req is not None else None
    updated = planner.set_review_completed(task_id, day, True, actual_time)
    if updated is None:
        raise HTTPException(status_code=404, detail="task not found")
    return updated


@router.delete("/{task_id}/reviews/{day}", response_model=Task, summary="復習を未完了に戻す")
async def uncomplete_review(
    task_id: str, day: date, planner: ReviewPlanner = Depends(get_planner)
) -> Task:
    updated = planner.set_review_completed(task_id, day, False)
    if updated is None:
        raise HTTPException(status_code=404, detail="task not found")
    return updated


@router.get(
    "/{task_id}/required-time",
    response_model=RequiredTimeResponse,
    summary="指定日時の必要復習時間",
)
async def get_required_time(
    task_id: str,
    at: datetime | None = Query(default=None, description="省略時は現在時刻"),
    planner: ReviewPlanner = Depends(get_planner),
) -> RequiredTimeResponse:
    task = _task_or_404(planner, task_id)
    when = at if at is not None else planner.now()
    count = completed_before(task, when)
    return RequiredTimeResponse(
        task_id=task.id,
        at=when,
        completed_before=count,
        multiplier=multiplier_for(count),
        required_time=required_time_for_review(task, when),
    )
