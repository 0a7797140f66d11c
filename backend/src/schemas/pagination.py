"""Shared pagination for list endpoints.

List endpoints accept ``sortBy`` (``field:asc|desc``, comma-separated for
multiple keys), ``limit`` and ``page`` and answer with
``{results, page, limit, totalPages, totalResults}``.
"""

import math
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.orm import Query

from errors import BadRequestError

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Page(BaseModel, Generic[T]):
    results: List[T]
    page: int
    limit: int
    totalPages: int
    totalResults: int


class PageParams(BaseModel):
    sortBy: Optional[str] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    page: int = Field(1, ge=1)


def apply_sort(query: Query, sort_by: Optional[str], columns: Mapping[str, Any], default) -> Query:
    """Apply a ``field:asc,other:desc`` sort expression to a query.

    Only names present in ``columns`` are accepted.

    Raises:
        BadRequestError: For unknown fields or directions
    """
    if not sort_by:
        return query.order_by(default)

    clauses = []
    for part in sort_by.split(","):
        field, _, direction = part.strip().partition(":")
        column = columns.get(field)
        if column is None:
            raise BadRequestError(f"Cannot sort by '{field}'")
        direction = direction or "asc"
        if direction not in ("asc", "desc"):
            raise BadRequestError(f"Invalid sort direction '{direction}'")
        clauses.append(column.desc() if direction == "desc" else column.asc())

    return query.order_by(*clauses)


def paginate(query: Query, params: PageParams) -> dict:
    """Run a sorted query for one page and return the page envelope."""
    total = query.count()
    rows = query.limit(params.limit).offset((params.page - 1) * params.limit).all()
    return {
        "results": rows,
        "page": params.page,
        "limit": params.limit,
        "totalPages": math.ceil(total / params.limit) if total else 0,
        "totalResults": total,
    }
