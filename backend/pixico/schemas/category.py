from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional
from pixico.schemas.common import RowId


class CategoryRef(BaseModel):
    """Category embedded in a prompt or blog row."""

    id: Optional[RowId] = None
    name: Optional[str] = None
    slug: Optional[str] = None


class Category(BaseModel):
    id: Optional[RowId] = None
    name: str = ""
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    show_in_header: bool = False
    show_in_footer: bool = False
    show_in_showcase: bool = False
    is_active: bool = True
    prompt_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("sort_order", mode="before")
    @classmethod
    def null_sort_order(cls, v):
        return 0 if v is None else v

    @classmethod
    def from_showcase_row(cls, row: dict) -> "Category":
        """Flatten the embedded ``prompts(count)`` aggregate into prompt_count."""
        data = dict(row)
        counts: List[dict] = data.pop("prompts", None) or []
        data["prompt_count"] = counts[0].get("count", 0) if counts else 0
        return cls.model_validate(data)
