"""
View-models handed from page loaders to templates.

Each data-bearing section is a ``Section`` whose ``state`` is one of
``loading`` (no data yet), ``empty`` (loaded, zero rows) or ``populated``.
Detail pages carry a ``LookupState`` so a missing slug is rendered as a
not-found view rather than an error.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar
from pixico.schemas.common import RowId
from pixico.schemas.category import Category
from pixico.schemas.prompt import Prompt
from pixico.schemas.blog import Blog
from pixico.schemas.site_page import SitePage

T = TypeVar("T")

SectionState = Literal["loading", "empty", "populated"]
LookupState = Literal["found", "not_found", "error"]

NOT_FOUND_TITLE = "Page Not Found"

PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;utf8,"
    "<svg xmlns='http://www.w3.org/2000/svg' width='400' height='500' viewBox='0 0 400 500'>"
    "<rect width='400' height='500' fill='%231a1a24'/>"
    "<path d='M150 300l50-60 40 45 30-35 50 50H130z' fill='%23a855f7' fill-opacity='0.5'/>"
    "</svg>"
)


def image_or_placeholder(url: Optional[str]) -> str:
    return url if url else PLACEHOLDER_IMAGE


class Section(BaseModel, Generic[T]):
    title: str = ""
    items: Optional[List[T]] = None
    view_all_href: Optional[str] = None

    @property
    def state(self) -> SectionState:
        if self.items is None:
            return "loading"
        if not self.items:
            return "empty"
        return "populated"


class PageMeta(BaseModel):
    title: str
    description: Optional[str] = None
    image: Optional[str] = None


class NavLink(BaseModel):
    id: Optional[RowId] = None
    name: str
    slug: str

    @property
    def href(self) -> str:
        return f"/category/{self.slug}"


class LayoutNav(BaseModel):
    header: List[NavLink] = []
    footer: List[NavLink] = []


class PromptCard(BaseModel):
    id: Optional[RowId] = None
    title: str
    slug: str
    category: str
    model: str
    image: str
    likes: int = 0
    views: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_prompt(cls, prompt: Prompt) -> "PromptCard":
        return cls(
            id=prompt.id,
            title=prompt.title,
            slug=prompt.slug,
            category=(prompt.category.name if prompt.category else None)
            or "Uncategorized",
            model=(prompt.ai_model.name if prompt.ai_model else None) or "AI Model",
            image=image_or_placeholder(prompt.image_url),
            likes=prompt.like_count,
            views=prompt.view_count,
            created_at=prompt.created_at,
        )


class BlogCard(BaseModel):
    id: Optional[RowId] = None
    title: str
    slug: str
    excerpt: str = ""
    image: str
    views: int = 0
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_blog(cls, blog: Blog) -> "BlogCard":
        return cls(
            id=blog.id,
            title=blog.title,
            slug=blog.slug,
            excerpt=blog.excerpt or "",
            image=image_or_placeholder(blog.featured_image),
            views=blog.view_count,
            category_name=blog.category.name if blog.category else None,
            category_slug=blog.category.slug if blog.category else None,
            created_at=blog.created_at,
        )


class HomePage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    hero: Section[PromptCard]
    featured: Section[PromptCard]
    trending: Section[PromptCard]
    showcase: Section[Category]
    blogs: Section[BlogCard]


class PromptListPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    prompts: Section[PromptCard]
    category_tabs: List[str] = ["All"]
    model_tabs: List[str] = ["All Models"]
    sort: str = "trending"


class PromptDetailPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    state: LookupState
    prompt: Optional[Prompt] = None
    related: Section[PromptCard] = Field(default_factory=Section[PromptCard])


class CategoryPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    state: LookupState
    category: Optional[Category] = None
    prompts: Section[PromptCard] = Field(default_factory=Section[PromptCard])


class BlogListPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    blogs: Section[BlogCard]
    categories: List[NavLink] = []


class BlogDetailPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    state: LookupState
    blog: Optional[Blog] = None
    related_prompts: Section[PromptCard] = Field(default_factory=Section[PromptCard])
    related_blogs: Section[BlogCard] = Field(default_factory=Section[BlogCard])


class SearchPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    query: str = ""
    code_lookup: bool = False
    prompts: Section[PromptCard] = Field(default_factory=Section[PromptCard])
    blogs: Section[BlogCard] = Field(default_factory=Section[BlogCard])

    @property
    def total_results(self) -> int:
        return len(self.prompts.items or []) + len(self.blogs.items or [])


class SitePageView(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    state: LookupState
    page: Optional[SitePage] = None


class ContactPage(BaseModel):
    nav: LayoutNav
    meta: PageMeta
    submit_status: Literal["idle", "success", "error"] = "idle"
    errors: List[str] = []
