from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from pixico.schemas.common import RowId, CountsMixin
from pixico.schemas.category import CategoryRef
from pixico.schemas.prompt import TagLink, TagRef


class Blog(CountsMixin):
    id: Optional[RowId] = None
    slug: str
    title: str = ""
    excerpt: Optional[str] = None
    content: Optional[str] = None
    featured_image: Optional[str] = None
    image_alt: Optional[str] = None
    view_count: int = 0
    status: Optional[str] = None
    category_id: Optional[RowId] = None
    category: Optional[CategoryRef] = None
    blog_tags: List[TagLink] = []
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def tags(self) -> List[TagRef]:
        return [link.tag for link in self.blog_tags if link.tag is not None]

    @property
    def is_published(self) -> bool:
        return self.status == "published"
