"""
Pagination, sorting, and paged-result models shared by every repository.

Sort field and direction are kept as raw strings here on purpose: they are
caller input and are only trusted after the entity's FieldValidator has
matched them against its allow-list.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from ledger.config import settings

T = TypeVar("T")


class SortOptions(BaseModel):
    """Requested ordering, unvalidated until it reaches the query builder."""
    field: str
    direction: str | None = "desc"


class QueryOptions(BaseModel):
    """Pagination and sorting for list queries."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE, ge=1)
    sort: SortOptions | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class QueryResult(BaseModel, Generic[T]):
    """
    One page of records.

    `total` is the number of rows matching the same WHERE predicate with no
    LIMIT/OFFSET applied.
    """
    data: list[T]
    total: int
    page: int
    limit: int
