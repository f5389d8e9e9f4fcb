# Overview: Page/limit parsing and the {data, totalPages, totalRecords, currentPage} list envelope.

from __future__ import annotations

from flask import request

DEFAULT_LIMIT = 10
MAX_LIMIT = 500


def page_args(default_limit: int = DEFAULT_LIMIT) -> tuple[int, int]:
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", default_limit, type=int) or default_limit
    return max(page, 1), max(1, min(limit, MAX_LIMIT))


def paginate(query, *, page: int, limit: int, serialize=None) -> dict:
    """
    Run a query page and wrap it in the list envelope.

    serialize defaults to each row's to_dict().
    """
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    serialize = serialize or (lambda row: row.to_dict())
    return {
        "data": [serialize(row) for row in rows],
        "totalPages": (total + limit - 1) // limit if total else 0,
        "totalRecords": total,
        "currentPage": page,
    }
