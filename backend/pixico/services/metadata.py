import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from pixico.core.gateway import Gateway, GatewayError
from pixico.schemas.metadata import (
    ManifestIcon,
    ManifestScreenshot,
    SitemapEntry,
    WebManifest,
)

logger = logging.getLogger(__name__)

# (path, change frequency, priority)
STATIC_ROUTES = [
    ("", "daily", 1.0),
    ("/generate", "daily", 0.95),
    ("/prompts", "daily", 0.95),
    ("/blog", "daily", 0.9),
    ("/faq", "weekly", 0.85),
    ("/about", "monthly", 0.8),
    ("/contact", "monthly", 0.8),
]


class _SlugRow(BaseModel):
    slug: str
    updated_at: Optional[datetime] = None


async def _slug_rows(gateway: Gateway, table: str, published: bool) -> List[_SlugRow]:
    query = gateway.table(table).select("slug, updated_at")
    if published:
        query = query.eq("status", "published")
    try:
        return await query.execute(model=_SlugRow)
    except GatewayError as e:
        logger.warning(f"Sitemap skipped '{table}': {e.message}")
        return []


async def generate_sitemap(
    gateway: Gateway, base_url: str, now: Optional[datetime] = None
) -> List[SitemapEntry]:
    """
    Static routes plus one entry per published prompt, published blog and
    category. Dynamic entries are stamped with the row's own ``updated_at``.
    """
    now = now or datetime.now(timezone.utc)
    base_url = base_url.rstrip("/")

    prompts, blogs, categories = await asyncio.gather(
        _slug_rows(gateway, "prompts", published=True),
        _slug_rows(gateway, "blogs", published=True),
        _slug_rows(gateway, "categories", published=False),
    )

    entries = [
        SitemapEntry(
            url=f"{base_url}{path}",
            last_modified=now,
            change_frequency=frequency,
            priority=priority,
        )
        for path, frequency, priority in STATIC_ROUTES
    ]

    for rows, prefix, frequency, priority in (
        (prompts, "prompt", "weekly", 0.8),
        (blogs, "blog", "weekly", 0.7),
        (categories, "category", "monthly", 0.6),
    ):
        for row in rows:
            entries.append(
                SitemapEntry(
                    url=f"{base_url}/{prefix}/{row.slug}",
                    # Rows without a stored update time fall back to generation time
                    last_modified=row.updated_at or now,
                    change_frequency=frequency,
                    priority=priority,
                )
            )

    logger.info(f"Sitemap generated with {len(entries)} entries")
    return entries


def build_manifest() -> WebManifest:
    return WebManifest(
        name="Pixico - AI Prompt Library",
        short_name="Pixico",
        description=(
            "Free Gemini prompt copy paste library with 1000+ trending AI photo "
            "prompts for image and video generation."
        ),
        start_url="/",
        display="standalone",
        background_color="#0a0a0f",
        theme_color="#a855f7",
        orientation="portrait-primary",
        categories=["productivity", "utilities", "entertainment"],
        icons=[
            ManifestIcon(src="/icon.svg", sizes="any", type="image/svg+xml"),
            ManifestIcon(src="/icon-192.png", sizes="192x192", type="image/png"),
            ManifestIcon(src="/icon-512.png", sizes="512x512", type="image/png"),
            ManifestIcon(
                src="/apple-touch-icon.png", sizes="180x180", type="image/png"
            ),
        ],
        screenshots=[
            ManifestScreenshot(src="/og-image.png", sizes="1200x630", type="image/png")
        ],
    )
