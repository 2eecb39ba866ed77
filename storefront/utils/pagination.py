from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import select

MAX_PAGE_SIZE = 100


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
    serialize: Optional[Callable] = None,
) -> dict:
    """Run ``query`` one page at a time.

    ``serialize`` is applied to every row of the page; rows of multi-entity
    selects arrive as tuples.
    """
    page = max(page, 1)
    limit = min(limit, MAX_PAGE_SIZE) if limit >= 1 else 10

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    rows = session.exec(
        query.offset((page - 1) * limit).limit(limit)
    ).all()

    total_pages = (total + limit - 1) // limit

    return {
        "total_items": total,
        "total_pages": total_pages,
        "current_page": page,
        "limit": limit,
        "has_next": page < total_pages,
        "results": [serialize(row) for row in rows] if serialize else list(rows),
    }
