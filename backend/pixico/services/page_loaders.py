"""
Per-route page loaders.

Each loader takes a gateway and returns a flat view-model. Queries with no
data dependency on each other are issued together with ``asyncio.gather`` so
a page costs roughly its slowest query. Every section goes through
``_rows``/``_one``, which log upstream failures and substitute an empty
result, so a backend outage renders empty sections instead of an error page.
"""

import asyncio
import logging
import re
from typing import Any, List, Optional, Tuple, Type

from pixico.core.gateway import Gateway, GatewayError, TableQuery
from pixico.schemas.blog import Blog
from pixico.schemas.category import Category
from pixico.schemas.contact import ContactCreate
from pixico.schemas.prompt import AiModel, Prompt
from pixico.schemas.site_page import SitePage
from pixico.schemas.views import (
    NOT_FOUND_TITLE,
    BlogCard,
    BlogDetailPage,
    BlogListPage,
    CategoryPage,
    HomePage,
    LayoutNav,
    LookupState,
    NavLink,
    PageMeta,
    PromptCard,
    PromptDetailPage,
    PromptListPage,
    SearchPage,
    Section,
    SitePageView,
)
from pixico.services.filtering import ALL_CATEGORIES, ALL_MODELS, tab_labels

logger = logging.getLogger(__name__)

PUBLISHED = "published"

PROMPT_CARD_COLUMNS = """
    id, title, slug, image_url, like_count, view_count, created_at, status,
    category:categories!category_id(name),
    ai_model:ai_models!model_id(name)
"""

PROMPT_DETAIL_COLUMNS = """
    id, slug, prompt_code, title, prompt_text, description,
    image_url, image_alt, like_count, view_count, save_count,
    aspect_ratio, style, meta_title, meta_description, status, created_at,
    category:categories!category_id(id, name, slug),
    ai_model:ai_models!model_id(id, name),
    prompt_tags(tag:tags(id, name))
"""

BLOG_CARD_COLUMNS = """
    id, title, slug, excerpt, featured_image, view_count, created_at, status,
    category:categories!category_id(id, name, slug)
"""

BLOG_DETAIL_COLUMNS = """
    id, title, slug, excerpt, content, featured_image, image_alt,
    view_count, status, created_at, published_at,
    meta_title, meta_description, meta_keywords,
    category:categories!category_id(id, name, slug),
    blog_tags(tag:tags(id, name))
"""

PROMPT_SORTS = {
    "newest": "created_at",
    "popular": "like_count",
    "trending": "view_count",
}
DEFAULT_PROMPT_LIMIT = 50

# A four digit term, optionally "#"-prefixed, is a prompt code lookup
PROMPT_CODE_PATTERN = re.compile(r"^#?(\d{4})$")

# Characters with meaning in the or=(...) filter grammar
_FILTER_RESERVED = re.compile(r'[,()"\\]')

SITE_DESCRIPTION = (
    "Free AI prompt library with trending prompts for image and video generation."
)


async def _rows(label: str, query: TableQuery, model: Type) -> List[Any]:
    try:
        return await query.execute(model=model)
    except GatewayError as e:
        logger.warning(f"Section '{label}' unavailable, rendering empty: {e.message}")
        return []


async def _one(label: str, query: TableQuery, model: Type) -> Tuple[LookupState, Any]:
    try:
        row = await query.single(model=model)
    except GatewayError as e:
        logger.error(f"Lookup '{label}' failed: {e.message}")
        return "error", None
    if row is None:
        return "not_found", None
    return "found", row


async def _bump(gateway: Gateway, function: str, params: dict) -> None:
    """Best-effort counter increment; failures never affect the page."""
    try:
        await gateway.rpc(function, params)
    except GatewayError as e:
        logger.info(f"RPC {function} skipped: {e.message}")


def published_only(rows: List[Any]) -> List[Any]:
    """Drafts never reach public renderers, even if a filter is misapplied."""
    return [row for row in rows if row.status == PUBLISHED]


def _prompt_cards(rows: List[Prompt]) -> List[PromptCard]:
    return [PromptCard.from_prompt(p) for p in published_only(rows)]


def _blog_cards(rows: List[Blog]) -> List[BlogCard]:
    return [BlogCard.from_blog(b) for b in published_only(rows)]


def _published_prompts(gateway: Gateway, columns: str = PROMPT_CARD_COLUMNS) -> TableQuery:
    return gateway.table("prompts").select(columns).eq("status", PUBLISHED)


def _published_blogs(gateway: Gateway, columns: str = BLOG_CARD_COLUMNS) -> TableQuery:
    return gateway.table("blogs").select(columns).eq("status", PUBLISHED)


def _not_found_meta() -> PageMeta:
    return PageMeta(title=NOT_FOUND_TITLE)


def search_pattern(term: str) -> str:
    return f"%{_FILTER_RESERVED.sub(' ', term.strip())}%"


# Layout ---------------------------------------------------------------------


async def load_navigation(gateway: Gateway) -> LayoutNav:
    """Header and footer category links, fetched in parallel."""
    header, footer = await asyncio.gather(
        _rows(
            "header categories",
            gateway.table("categories")
            .select("id, name, slug")
            .eq("show_in_header", True)
            .order("sort_order"),
            NavLink,
        ),
        _rows(
            "footer categories",
            gateway.table("categories")
            .select("id, name, slug")
            .eq("show_in_footer", True)
            .order("sort_order")
            .limit(6),
            NavLink,
        ),
    )
    return LayoutNav(header=header, footer=footer)


# Home -----------------------------------------------------------------------


async def _load_showcase(gateway: Gateway) -> List[Category]:
    try:
        rows = await (
            gateway.table("categories")
            .select(
                "id, name, slug, description, image_url, prompts:prompts!category_id(count)"
            )
            .eq("show_in_showcase", True)
            .order("sort_order")
            .limit(6)
            .execute()
        )
        return [Category.from_showcase_row(row) for row in rows]
    except (GatewayError, ValueError) as e:
        logger.warning(f"Section 'showcase categories' unavailable: {e}")
        return []


async def load_home(gateway: Gateway) -> HomePage:
    nav, hero, featured, trending, showcase, blogs = await asyncio.gather(
        load_navigation(gateway),
        _rows(
            "hero prompts",
            _published_prompts(gateway).order("view_count", desc=True).limit(20),
            Prompt,
        ),
        _rows(
            "featured prompts",
            _published_prompts(gateway).order("like_count", desc=True).limit(15),
            Prompt,
        ),
        _rows(
            "trending prompts",
            _published_prompts(gateway).order("view_count", desc=True).limit(10),
            Prompt,
        ),
        _load_showcase(gateway),
        _rows(
            "popular blogs",
            _published_blogs(gateway).order("view_count", desc=True).limit(6),
            Blog,
        ),
    )
    return HomePage(
        nav=nav,
        meta=PageMeta(title="Pixico - AI Prompt Library", description=SITE_DESCRIPTION),
        hero=Section(title="Trending Now", items=_prompt_cards(hero)),
        featured=Section(
            title="Featured Prompts",
            items=_prompt_cards(featured),
            view_all_href="/prompts",
        ),
        trending=Section(title="Trending This Week", items=_prompt_cards(trending)),
        showcase=Section(title="Browse Categories", items=showcase),
        blogs=Section(
            title="From the Blog", items=_blog_cards(blogs), view_all_href="/blog"
        ),
    )


# Prompts --------------------------------------------------------------------


async def load_prompt_list(
    gateway: Gateway,
    sort: str = "trending",
    limit: int = DEFAULT_PROMPT_LIMIT,
    category_id: Optional[Any] = None,
) -> PromptListPage:
    """
    Prompt grid with its category and model tabs.

    Tab selection happens in the view over the loaded rows, so switching tabs
    never changes the queries issued here.
    """
    if sort not in PROMPT_SORTS:
        sort = "trending"

    prompts_query = _published_prompts(gateway)
    if category_id is not None:
        prompts_query = prompts_query.eq("category_id", category_id)
    prompts_query = prompts_query.order(PROMPT_SORTS[sort], desc=True).limit(limit)

    nav, categories, models, prompts = await asyncio.gather(
        load_navigation(gateway),
        _rows(
            "category tabs",
            gateway.table("categories")
            .select("name, slug")
            .eq("is_active", True)
            .order("sort_order"),
            Category,
        ),
        _rows(
            "model tabs",
            gateway.table("ai_models").select("name").eq("is_active", True).order("name"),
            AiModel,
        ),
        _rows("prompts", prompts_query, Prompt),
    )
    return PromptListPage(
        nav=nav,
        meta=PageMeta(title="All Prompts | Pixico", description=SITE_DESCRIPTION),
        prompts=Section(title="All Prompts", items=_prompt_cards(prompts)),
        category_tabs=tab_labels((c.name for c in categories), ALL_CATEGORIES),
        model_tabs=tab_labels((m.name for m in models), ALL_MODELS),
        sort=sort,
    )


async def load_prompt_detail(gateway: Gateway, slug: str) -> PromptDetailPage:
    nav, (state, prompt) = await asyncio.gather(
        load_navigation(gateway),
        _one(
            f"prompt '{slug}'",
            _published_prompts(gateway, PROMPT_DETAIL_COLUMNS).eq("slug", slug),
            Prompt,
        ),
    )
    if state == "found" and not prompt.is_published:
        state, prompt = "not_found", None
    if state != "found":
        return PromptDetailPage(nav=nav, meta=_not_found_meta(), state=state)

    related: List[Prompt] = []
    if prompt.category and prompt.category.id is not None:
        related, _ = await asyncio.gather(
            _rows(
                "related prompts",
                _published_prompts(gateway)
                .eq("category_id", prompt.category.id)
                .neq("id", prompt.id)
                .limit(4),
                Prompt,
            ),
            _bump(gateway, "increment_view_count", {"prompt_id": prompt.id}),
        )
    else:
        await _bump(gateway, "increment_view_count", {"prompt_id": prompt.id})

    return PromptDetailPage(
        nav=nav,
        meta=PageMeta(
            title=prompt.meta_title or f"{prompt.title} | Pixico",
            description=prompt.meta_description or prompt.description,
            image=prompt.image_url,
        ),
        state="found",
        prompt=prompt,
        related=Section(title="Related Prompts", items=_prompt_cards(related)),
    )


# Categories -----------------------------------------------------------------


async def load_category(gateway: Gateway, slug: str) -> CategoryPage:
    nav, (state, category) = await asyncio.gather(
        load_navigation(gateway),
        _one(
            f"category '{slug}'",
            gateway.table("categories")
            .select("id, name, slug, description, image_url")
            .eq("slug", slug),
            Category,
        ),
    )
    if state != "found":
        return CategoryPage(nav=nav, meta=_not_found_meta(), state=state)

    prompts = await _rows(
        "category prompts",
        _published_prompts(gateway)
        .eq("category_id", category.id)
        .order("view_count", desc=True)
        .limit(DEFAULT_PROMPT_LIMIT),
        Prompt,
    )
    description = category.description or (
        f"Explore the largest collection of {category.name} AI prompts. Find "
        f"high-quality, copy-paste prompts for image and video generation on Pixico."
    )
    return CategoryPage(
        nav=nav,
        meta=PageMeta(
            title=f"Best {category.name} AI Prompts | Pixico Library",
            description=description,
        ),
        state="found",
        category=category,
        prompts=Section(title=category.name, items=_prompt_cards(prompts)),
    )


# Blog -----------------------------------------------------------------------


async def load_blog_list(gateway: Gateway) -> BlogListPage:
    nav, blogs, categories = await asyncio.gather(
        load_navigation(gateway),
        _rows(
            "blogs",
            _published_blogs(gateway).order("created_at", desc=True),
            Blog,
        ),
        _rows(
            "blog category tabs",
            gateway.table("categories").select("id, name, slug").order("sort_order"),
            NavLink,
        ),
    )
    return BlogListPage(
        nav=nav,
        meta=PageMeta(title="Blog | Pixico", description=SITE_DESCRIPTION),
        blogs=Section(title="Latest Articles", items=_blog_cards(blogs)),
        categories=[c for c in categories if c.slug != "all"],
    )


async def load_blog_detail(gateway: Gateway, slug: str) -> BlogDetailPage:
    nav, (state, blog) = await asyncio.gather(
        load_navigation(gateway),
        _one(
            f"blog '{slug}'",
            _published_blogs(gateway, BLOG_DETAIL_COLUMNS).eq("slug", slug),
            Blog,
        ),
    )
    if state == "found" and not blog.is_published:
        state, blog = "not_found", None
    if state != "found":
        return BlogDetailPage(nav=nav, meta=_not_found_meta(), state=state)

    related_prompts: List[Prompt] = []
    related_blogs: List[Blog] = []
    if blog.category and blog.category.id is not None:
        related_prompts, related_blogs, _ = await asyncio.gather(
            _rows(
                "related prompts",
                _published_prompts(gateway)
                .eq("category_id", blog.category.id)
                .order("view_count", desc=True)
                .limit(6),
                Prompt,
            ),
            _rows(
                "related blogs",
                _published_blogs(gateway)
                .eq("category_id", blog.category.id)
                .neq("id", blog.id)
                .order("view_count", desc=True)
                .limit(6),
                Blog,
            ),
            _bump(gateway, "increment_blog_view_count", {"blog_id": blog.id}),
        )
    else:
        await _bump(gateway, "increment_blog_view_count", {"blog_id": blog.id})

    return BlogDetailPage(
        nav=nav,
        meta=PageMeta(
            title=blog.meta_title or f"{blog.title} | Pixico Blog",
            description=blog.meta_description or blog.excerpt,
            image=blog.featured_image,
        ),
        state="found",
        blog=blog,
        related_prompts=Section(
            title="Prompts in this category", items=_prompt_cards(related_prompts)
        ),
        related_blogs=Section(title="More Articles", items=_blog_cards(related_blogs)),
    )


# Search ---------------------------------------------------------------------


async def load_search(gateway: Gateway, query: Optional[str]) -> SearchPage:
    """
    Search prompts and blogs.

    Without a query the result sections stay in the loading state, which the
    template shows as "nothing searched yet".
    """
    term = (query or "").strip()
    if not term:
        nav = await load_navigation(gateway)
        return SearchPage(nav=nav, meta=PageMeta(title="Search | Pixico"))

    code_match = PROMPT_CODE_PATTERN.match(term)
    search_columns = (
        "id, title, slug, image_url, view_count, like_count, prompt_code, status, "
        "ai_model:ai_models!model_id(name)"
    )
    if code_match:
        prompts_query = (
            _published_prompts(gateway, search_columns)
            .eq("prompt_code", code_match.group(1))
            .limit(30)
        )
    else:
        pattern = search_pattern(term)
        prompts_query = (
            _published_prompts(gateway, search_columns)
            .or_(
                f"title.ilike.{pattern},slug.ilike.{pattern},"
                f"description.ilike.{pattern},prompt_text.ilike.{pattern}"
            )
            .order("view_count", desc=True)
            .limit(30)
        )

    pattern = search_pattern(term)
    nav, prompts, blogs = await asyncio.gather(
        load_navigation(gateway),
        _rows("search prompts", prompts_query, Prompt),
        _rows(
            "search blogs",
            _published_blogs(
                gateway, "id, title, slug, excerpt, featured_image, view_count, status"
            )
            .or_(
                f"title.ilike.{pattern},slug.ilike.{pattern},"
                f"excerpt.ilike.{pattern},content.ilike.{pattern}"
            )
            .order("view_count", desc=True)
            .limit(12),
            Blog,
        ),
    )
    return SearchPage(
        nav=nav,
        meta=PageMeta(title=f"Search results for \"{term}\" | Pixico"),
        query=term,
        code_lookup=code_match is not None,
        prompts=Section(title="Prompts", items=_prompt_cards(prompts)),
        blogs=Section(title="Blogs", items=_blog_cards(blogs)),
    )


# Site pages and contact -----------------------------------------------------


async def load_site_page(gateway: Gateway, slug: str) -> SitePageView:
    nav, (state, page) = await asyncio.gather(
        load_navigation(gateway),
        _one(f"site page '{slug}'", gateway.table("site_pages").eq("slug", slug), SitePage),
    )
    if state != "found":
        return SitePageView(nav=nav, meta=_not_found_meta(), state=state)
    return SitePageView(
        nav=nav,
        meta=PageMeta(
            title=page.meta_title or page.title, description=page.meta_description
        ),
        state="found",
        page=page,
    )


async def submit_contact(gateway: Gateway, contact: ContactCreate) -> bool:
    """Store a contact message as a new query for the admin inbox."""
    payload = contact.model_dump(exclude_none=True)
    payload["status"] = "new"
    try:
        await gateway.table("contact_queries").insert(payload).execute()
    except GatewayError as e:
        logger.error(f"Contact submission failed: {e.message}")
        return False
    logger.info("Contact query stored")
    return True
