from pydantic import BaseModel, ConfigDict, Field

from .common import HEX_COLOR_PATTERN


class Category(BaseModel):
    """A task category shown with its color in the calendar and charts."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str
    color: str


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="語学", color="#4F46E5"),
    Category(id="2", name="プログラミング", color="#059669"),
    Category(id="3", name="資格", color="#DC2626"),
    Category(id="4", name="趣味", color="#D97706"),
    Category(id="5", name="その他", color="#6B7280"),
)


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64, description="カテゴリ名（1..64文字）")
    color: str = Field(pattern=HEX_COLOR_PATTERN, description="表示色（#RRGGBB）")


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
