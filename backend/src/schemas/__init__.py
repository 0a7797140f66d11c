"""Pydantic Schemas shared across NotaryFlow routers"""

from .pagination import Page, PageParams, apply_sort, paginate

__all__ = [
    "Page",
    "PageParams",
    "apply_sort",
    "paginate",
]
