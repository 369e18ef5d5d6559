"""Jinja2 environment shared by every HTML endpoint."""

from datetime import datetime
from pathlib import Path
from typing import Optional
from fastapi.templating import Jinja2Templates
from pixico.core.config import settings
from pixico.schemas.views import image_or_placeholder

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def format_date(value: Optional[datetime], fmt: str = "%b %d, %Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def compact_number(value: Optional[int]) -> str:
    """1234 -> 1.2K, 2500000 -> 2.5M"""
    value = value or 0
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["placeholder"] = image_or_placeholder
templates.env.filters["date"] = format_date
templates.env.filters["compact"] = compact_number
templates.env.globals["site_name"] = settings.SITE_NAME
templates.env.globals["app_url"] = settings.APP_URL
