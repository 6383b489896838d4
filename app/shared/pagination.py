"""Offset pagination for list endpoints."""

from __future__ import annotations

from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

T = TypeVar("T")


class PaginationParams(BaseModel):
    limit: int
    offset: int


def get_pagination_params(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> PaginationParams:
    """FastAPI dependency for pagination params."""
    return PaginationParams(limit=limit, offset=offset)


class Page(BaseModel, Generic[T]):
    """One page of a listing plus where the next page starts."""

    items: list[T]
    total: int
    limit: int
    offset: int
    next_offset: int | None = None


def build_page(items: list[T], total: int, params: PaginationParams) -> Page[T]:
    """Wrap query results; ``next_offset`` is None on the last page."""
    consumed = params.offset + len(items)
    return Page(
        items=items,
        total=total,
        limit=params.limit,
        offset=params.offset,
        next_offset=consumed if items and consumed < total else None,
    )
