"""Mapping of raw search hits onto ``SearchResult`` values."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .models import SearchResult, unwrap_envelope

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 200


def extract_highlight(hit: Dict[str, Any]) -> Optional[str]:
    formatted = hit.get("_formatted") or {}
    content = formatted.get("content_text")
    if content:
        return content[:DESCRIPTION_LIMIT]
    return None


def transform_search_hit(hit: Dict[str, Any]) -> SearchResult:
    """Convert one Meilisearch hit into a SearchResult.

    Hits carrying ``mime_type`` are documents, everything else is a subject.
    """
    hit_id = hit.get("id")
    is_document = hit.get("mime_type") is not None

    if is_document:
        title = hit.get("original_name") or "Unnamed Document"
        description = (hit.get("content_text") or "")[:DESCRIPTION_LIMIT]
        description = description or "No description"
    else:
        title = hit.get("name_en") or hit.get("name_cs") or "Unnamed Subject"
        description = hit.get("description_en") or hit.get("description_cs") or ""

    return SearchResult(
        type="document" if is_document else "subject",
        id=str(hit_id) if hit_id is not None else None,
        title=title,
        description=description,
        score=0.0,
        subject_id=hit.get("subject_id"),
        mime_type=hit.get("mime_type"),
        file_size=hit.get("file_size"),
        created_at=hit.get("created_at"),
        code=hit.get("code"),
        credits=hit.get("credits"),
        highlight=extract_highlight(hit),
    )


def parse_search_hits(data: Any) -> List[SearchResult]:
    """Extract results from a search response body.

    Accepts a bare list of hits, ``{"hits": [...]}``, ``{"results": [...]}``
    and any of those wrapped in the ``{"success", "data"}`` envelope.
    Hits that fail validation are skipped.
    """
    payload = unwrap_envelope(data)
    if isinstance(payload, dict):
        payload = payload.get("hits", payload.get("results", []))
    if not isinstance(payload, list):
        return []
    results = []
    for hit in payload:
        if not isinstance(hit, dict):
            continue
        try:
            results.append(transform_search_hit(hit))
        except ValidationError as e:
            logger.debug(f"Skipping malformed search hit: {e}")
    return results


def format_file_size(size: Optional[int]) -> str:
    """Render a byte count as B/KB/MB/GB with one decimal."""
    if not size or size < 0:
        return ""
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 1):g} {units[index]}"
