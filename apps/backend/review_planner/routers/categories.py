from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_planner
from ..models.category import Category, CategoryCreateRequest, CategoryUpdateRequest
from ..planner import ReviewPlanner

router = APIRouter(tags=["categories"])


@router.get("", response_model=list[Category], summary="カテゴリ一覧")
async def list_categories(planner: ReviewPlanner = Depends(get_planner)) -> list[Category]:
    return planner.categories


@router.post("", response_model=Category, status_code=201, summary="カテゴリの追加")
async def create_category(
    req: CategoryCreateRequest, planner: ReviewPlanner = Depends(get_planner)
) -> Category:
    return planner.add_category(req)


@router.patch("/{category_id}", response_model=Category, summary="カテゴリの編集")
async def update_category(
    category_id: str,
    req: CategoryUpdateRequest,
    planner: ReviewPlanner = Depends(get_planner),
) -> Category:
    updated = planner.update_category(category_id, req)
    if updated is None:
        raise HTTPException(status_code=404, detail="category not found")
    return updated


@router.delete("/{category_id}", status_code=204, summary="カテゴリの削除（要確認）")
async def delete_category(
    category_id: str,
    confirm: bool = Query(default=False, description="削除を確定する場合 true"),
    planner: ReviewPlanner = Depends(get_planner),
) -> None:
    """Delete a category. Tasks that referenced it are kept as they are."""
    if planner.get_category(category_id) is None:
        raise HTTPException(status_code=404, detail="category not found")
    if not planner.delete_category(category_id, confirm=lambda _prompt: confirm):
        raise HTTPException(status_code=409, detail="deletion requires confirm=true")
