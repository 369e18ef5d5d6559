from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from typing import Optional
from pixico.api.validation import SlugParam, SortParam, TabParam, clean_search_term
from pixico.core.gateway import Gateway, get_gateway
from pixico.core.templating import templates
from pixico.services.filtering import ALL_CATEGORIES, ALL_MODELS, select_tab
from pixico.services.page_loaders import (
    load_category,
    load_home,
    load_prompt_detail,
    load_prompt_list,
    load_search,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, gateway: Gateway = Depends(get_gateway)):
    page = await load_home(gateway)
    return templates.TemplateResponse(request, "home.html", {"page": page})


@router.get("/prompts", response_class=HTMLResponse)
async def prompt_list(
    request: Request,
    sort: str = SortParam,
    category: Optional[str] = TabParam,
    model: Optional[str] = TabParam,
    gateway: Gateway = Depends(get_gateway),
):
    """Prompt grid; the category and model tabs narrow the loaded rows."""
    page = await load_prompt_list(gateway, sort=sort)
    if page.prompts.items is not None:
        items = select_tab(page.prompts.items, category, "category", ALL_CATEGORIES)
        page.prompts.items = select_tab(items, model, "model", ALL_MODELS)
    return templates.TemplateResponse(
        request,
        "prompts.html",
        {
            "page": page,
            "active_category": category or ALL_CATEGORIES,
            "active_model": model or ALL_MODELS,
        },
    )


@router.get("/prompt/{slug}", response_class=HTMLResponse)
async def prompt_detail(
    request: Request, slug: str = SlugParam, gateway: Gateway = Depends(get_gateway)
):
    page = await load_prompt_detail(gateway, slug)
    return templates.TemplateResponse(request, "prompt_detail.html", {"page": page})


@router.get("/category/{slug}", response_class=HTMLResponse)
async def category_detail(
    request: Request,
    slug: str = SlugParam,
    model: Optional[str] = TabParam,
    gateway: Gateway = Depends(get_gateway),
):
    page = await load_category(gateway, slug)
    if page.prompts.items is not None:
        page.prompts.items = select_tab(page.prompts.items, model, "model", ALL_MODELS)
    return templates.TemplateResponse(
        request,
        "category.html",
        {"page": page, "active_model": model or ALL_MODELS},
    )


@router.get("/search", response_class=HTMLResponse)
async def search(
    request: Request,
    q: Optional[str] = None,
    gateway: Gateway = Depends(get_gateway),
):
    page = await load_search(gateway, clean_search_term(q))
    return templates.TemplateResponse(request, "search.html", {"page": page})
