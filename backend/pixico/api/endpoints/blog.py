from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from typing import Optional
from pixico.api.validation import SlugParam, TabParam, clean_search_term
from pixico.core.gateway import Gateway, get_gateway
from pixico.core.templating import templates
from pixico.services.filtering import filter_by_text
from pixico.services.page_loaders import load_blog_detail, load_blog_list
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

BLOG_SEARCH_FIELDS = ("title", "excerpt")


@router.get("", response_class=HTMLResponse)
async def blog_list(
    request: Request,
    category: Optional[str] = TabParam,
    q: Optional[str] = None,
    gateway: Gateway = Depends(get_gateway),
):
    """
    Published articles, optionally narrowed to one category slug and a
    title/excerpt search. Both filters apply to the rows already loaded.
    """
    term = clean_search_term(q)
    page = await load_blog_list(gateway)
    if page.blogs.items is not None:
        items = page.blogs.items
        if category and category != "all":
            items = [b for b in items if b.category_slug == category]
        page.blogs.items = filter_by_text(items, term, BLOG_SEARCH_FIELDS)
    return templates.TemplateResponse(
        request,
        "blog_list.html",
        {"page": page, "active_category": category or "all", "query": term or ""},
    )


@router.get("/{slug}", response_class=HTMLResponse)
async def blog_detail(
    request: Request, slug: str = SlugParam, gateway: Gateway = Depends(get_gateway)
):
    page = await load_blog_detail(gateway, slug)
    return templates.TemplateResponse(request, "blog_detail.html", {"page": page})
