from typing import Optional, List, Any, Dict
from math import ceil


def build_pagination(
    items: List[Any],
    total: int,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    base_url: str = ""
) -> Dict[str, Any]:
    """
    Wraps one page of already sliced items in pagination metadata.

    Args:
        items: The items of the current page.
        total: The total number of items across all pages.
        page: The current page number (defaults to 1).
        per_page: The number of items per page (defaults to 50).
        base_url: Prefix for the generated page links.

    Returns:
        Dict with the page items, page links and counters.
    """
    try:
        page = 1 if page is None else max(1, int(page))
        per_page = 50 if per_page is None else max(1, int(per_page))
    except (TypeError, ValueError):
        page = 1
        per_page = 50

    total_pages = max(1, ceil(total / per_page))
    start_idx = (page - 1) * per_page

    prev_url = f"{base_url}?page={page-1}" if page > 1 else None
    next_url = f"{base_url}?page={page+1}" if page < total_pages else None
    links = [
        {"url": prev_url, "label": "« Previous", "active": False},
        {"url": f"{base_url}?page={page}", "label": str(page), "active": True},
        {"url": next_url, "label": "Next »", "active": False},
    ]

    return {
        "current_page": page,
        "data": items,
        "first_page_url": f"{base_url}?page=1",
        "from": start_idx + 1 if items else 0,
        "last_page": total_pages,
        "last_page_url": f"{base_url}?page={total_pages}",
        "links": links,
        "next_page_url": next_url,
        "path": base_url,
        "per_page": per_page,
        "prev_page_url": prev_url,
        "to": start_idx + len(items) if items else 0,
        "total": total
    }
