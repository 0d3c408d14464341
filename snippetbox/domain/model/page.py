"""Paged query result."""

from typing import Generic, TypeVar

from pydantic import Field

from snippetbox.domain.model.common import DomainModel

T = TypeVar("T")


class PageRequest(DomainModel):
    """Page window requested by a caller.

    Pages are 1-based. Out-of-range values are rejected at construction
    time rather than clamped.
    """

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Page(DomainModel, Generic[T]):
    """One window of a filtered query plus the total match count."""

    items: list[T]
    total_count: int = Field(ge=0)
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
