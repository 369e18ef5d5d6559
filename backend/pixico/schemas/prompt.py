from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from pixico.schemas.common import RowId, CountsMixin
from pixico.schemas.category import CategoryRef


class AiModel(BaseModel):
    id: Optional[RowId] = None
    name: str
    version: Optional[str] = None
    is_active: bool = True


class ModelRef(BaseModel):
    id: Optional[RowId] = None
    name: Optional[str] = None


class TagRef(BaseModel):
    id: Optional[RowId] = None
    name: str


class TagLink(BaseModel):
    tag: Optional[TagRef] = None


class Prompt(CountsMixin):
    id: Optional[RowId] = None
    slug: str
    title: str = ""
    prompt_code: Optional[str] = None
    prompt_text: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_alt: Optional[str] = None
    aspect_ratio: Optional[str] = None
    style: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    save_count: int = 0
    status: Optional[str] = None
    category_id: Optional[RowId] = None
    model_id: Optional[RowId] = None
    category: Optional[CategoryRef] = None
    ai_model: Optional[ModelRef] = None
    prompt_tags: List[TagLink] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def tags(self) -> List[TagRef]:
        return [link.tag for link in self.prompt_tags if link.tag is not None]

    @property
    def is_published(self) -> bool:
        return self.status == "published"
