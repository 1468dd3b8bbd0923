from fastapi import APIRouter, Depends

from ..dependencies import get_planner
from ..planner import ReviewPlanner

router = APIRouter(tags=["health"])


@router.get("/healthz")
def health_check() -> dict[str, str]:
    """Liveness probe. / プロセスが応答できるかだけを返す。"""
    return {"status": "ok"}


@router.get("/readyz")
def readiness_check(planner: ReviewPlanner = Depends(get_planner)) -> dict[str, object]:
    """Readiness probe: the key-value store answers and the planner state is loaded.

    保存済みレコードのキー一覧と、読み込み済みのタスク数を返す。
    """
    return {
        "status": "ok",
        "records": planner.repository.store.keys(),
        "tasks": len(planner.state.tasks),
    }
