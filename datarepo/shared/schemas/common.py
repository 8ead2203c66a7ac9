"""
Common Schemas

Result containers returned by repositories.

Usage:
======
    from datarepo.shared.schemas.common import PaginatedResponse, PaginationMeta

    page = PaginatedResponse(
        data=articles,
        pagination=PaginationMeta.create(page=1, per_page=20, total=100),
    )
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


# Generic type for paginated responses
DataT = TypeVar("DataT")


class PaginationMeta(BaseModel):
    """
    Pagination metadata for one page of results.

    Provides all pagination info for clients to navigate results.
    """

    page: int = Field(description="Current page number (1-indexed)")
    per_page: int = Field(description="Items per page")
    total: int = Field(description="Total number of matching items")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def create(cls, page: int, per_page: int, total: int) -> "PaginationMeta":
        """
        Create pagination meta from parameters.

        Automatically calculates total_pages.

        Args:
            page: Current page number
            per_page: Items per page
            total: Total number of items

        Returns:
            PaginationMeta instance
        """
        total_pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
        )

    @property
    def has_more(self) -> bool:
        """True if pages follow the current one."""
        return self.page < self.total_pages


class PaginatedResponse(BaseModel, Generic[DataT]):
    """
    One page of entities plus the total-count metadata.

    ``data`` holds ORM instances as returned by the session.

    Example:
        page = await repo.list_paginated({"order": "id", "sort": "desc"})
        for article in page.data:
            ...
        print(page.pagination.total)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: list[DataT]
    pagination: PaginationMeta
