"""Search query parameter assembly."""

from typing import List, Optional, Tuple
from urllib.parse import urlencode

from .models import SearchFilters

SEARCH_ENDPOINT = "/api/v1/search"


def build_search_params(
    query: str = "", filters: Optional[SearchFilters] = None
) -> List[Tuple[str, str]]:
    """Build ordered query-string parameters for a search request.

    The text query comes first when non-empty. Unset filters are skipped,
    ``type="all"`` is the server default and is never sent, and ``exact`` is
    only sent when true.

    Args:
        query: Free text query; empty means "browse"
        filters: Optional search filters

    Returns:
        List of (name, value) pairs in a stable order
    """
    params: List[Tuple[str, str]] = []

    if query and query.strip():
        params.append(("q", query))

    if filters is None:
        return params

    if filters.subject_id:
        params.append(("subject_id", filters.subject_id))
    if filters.type and filters.type != "all":
        params.append(("type", filters.type))
    if filters.mime_type:
        params.append(("mime_type", filters.mime_type))
    if filters.exact:
        params.append(("exact", "true"))
    if filters.category:
        params.append(("category", filters.category))

    return params


def build_search_path(query: str = "", filters: Optional[SearchFilters] = None) -> str:
    """Return the search endpoint with its encoded query string."""
    params = build_search_params(query, filters)
    if not params:
        return SEARCH_ENDPOINT
    return f"{SEARCH_ENDPOINT}?{urlencode(params)}"
