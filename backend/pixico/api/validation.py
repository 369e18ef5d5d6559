"""
Request parameter declarations and cleaners shared by the routers.

Malformed input is rejected here, before any gateway call is made.
"""

from typing import Optional
from fastapi import HTTPException, Path, Query

MAX_SEARCH_LENGTH = 100
MAX_SLUG_LENGTH = 200


def clean_search_term(term: Optional[str], param_name: str = "q") -> Optional[str]:
    """
    Trim a free-text search term.

    Returns:
        The trimmed term, or None when nothing is left to search for

    Raises:
        HTTPException: 400 when the term is longer than MAX_SEARCH_LENGTH
    """
    if term is None or not term.strip():
        return None

    term = term.strip()
    if len(term) > MAX_SEARCH_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {param_name}: maximum length is {MAX_SEARCH_LENGTH}",
        )
    return term


# Unknown sort keys fall back to trending in the loader rather than failing here
SlugParam = Path(..., min_length=1, max_length=MAX_SLUG_LENGTH)
SortParam = Query("trending", max_length=20, description="newest, popular or trending")
TabParam = Query(None, max_length=100, description="Active filter tab")
PageParam = Query(1, ge=1, le=10000, description="1-based page number")
