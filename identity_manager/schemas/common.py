"""Pagination and error body schemas."""

import math
from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

USER_SORT_FIELDS = ("id", "email", "first_name", "last_name", "created_at")


class PageRequest(BaseModel):
    """Page number (zero based), size and ordering for list queries."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=0, ge=0, description="Zero-based page index")
    size: int = Field(default=10, ge=1, le=100, description="Items per page")
    sort_by: Literal["id", "email", "first_name", "last_name", "created_at"] = Field(
        default="id", description="Field to order by"
    )
    direction: Literal["asc", "desc"] = Field(default="asc", description="Sort direction")

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(BaseModel, Generic[T]):
    """One page of results with totals."""

    model_config = ConfigDict(frozen=True)

    items: list[T]
    page: int
    size: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, items: list[T], page_request: PageRequest, total_items: int) -> "Page[T]":
        total_pages = math.ceil(total_items / page_request.size) if total_items else 0
        return cls(
            items=items,
            page=page_request.page,
            size=page_request.size,
            total_items=total_items,
            total_pages=total_pages,
        )


class ErrorResponse(BaseModel):
    """Body returned for every failed API request."""

    timestamp: datetime
    status: int
    error: str
    message: str
    path: str
    errors: dict[str, str] | None = None
