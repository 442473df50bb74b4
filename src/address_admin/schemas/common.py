"""Common Pydantic v2 schemas shared across the API."""

import math

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """Pagination metadata included in paginated responses."""

    total: int = Field(description="Total number of items matching the filter")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def build(cls, *, total: int, page: int, page_size: int) -> "PaginationMeta":
        """Compute page count as ``ceil(total / page_size)``."""
        return cls(total=total, page=page, page_size=page_size, total_pages=math.ceil(total / page_size))
