"""Presentation-side filtering over rows that are already loaded."""

from typing import Any, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

ALL_CATEGORIES = "All"
ALL_MODELS = "All Models"


def _field_text(item: Any, field: str) -> str:
    value = item.get(field) if isinstance(item, dict) else getattr(item, field, None)
    return value if isinstance(value, str) else ""


def filter_by_text(items: Iterable[T], query: Optional[str], fields: Sequence[str]) -> List[T]:
    """Case-insensitive substring match of ``query`` against any of ``fields``."""
    items = list(items)
    needle = (query or "").strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if any(needle in _field_text(item, field).lower() for field in fields)
    ]


def select_tab(
    items: Iterable[T], active: Optional[str], field: str, all_label: str
) -> List[T]:
    """Keep items whose ``field`` equals the active tab; the "all" tab keeps everything."""
    items = list(items)
    if not active or active == all_label:
        return items
    return [item for item in items if _field_text(item, field) == active]


def tab_labels(names: Iterable[str], all_label: str) -> List[str]:
    """Tab strip with the "all" tab first and no duplicates."""
    labels = [all_label]
    for name in names:
        if name and name not in labels:
            labels.append(name)
    return labels
