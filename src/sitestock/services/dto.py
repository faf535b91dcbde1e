"""Data Transfer Objects for the service layer.

This module provides type-safe request structures for movement lines and
the pagination containers shared by list operations.
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")

MAX_PER_PAGE = 100


# =============================================================================
# Movement line requests
# =============================================================================


@dataclass
class InwardLineRequest:
    """One requested receipt line.

    Negative quantities are treated as zero; a line where both are zero
    is ignored.
    """

    material_id: int
    ordered_qty: float = 0.0
    received_qty: float = 0.0


@dataclass
class OutwardLineRequest:
    """One requested issue line. Non-positive quantities are ignored."""

    material_id: int
    issue_qty: float = 0.0


@dataclass
class OutwardUpdateLine:
    """One line of a replacement line set for an existing outward record.

    line_id refers to an existing line of the record when the caller is
    editing it; omit it for new lines.
    """

    material_id: int
    issue_qty: float = 0.0
    line_id: Optional[int] = None


@dataclass
class TransferLineRequest:
    """One requested transfer line. Non-positive quantities are ignored."""

    material_id: int
    transfer_qty: float = 0.0


# =============================================================================
# Pagination
# =============================================================================


@dataclass
class PaginationParams:
    """Pagination parameters for list operations.

    Attributes:
        page: Page number (1-indexed, default 1)
        per_page: Items per page (default 20, max 100)

    Raises:
        ValueError: If page < 1, per_page < 1, or per_page > 100
    """

    page: int = 1
    per_page: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.per_page < 1:
            raise ValueError("per_page must be >= 1")
        if self.per_page > MAX_PER_PAGE:
            raise ValueError(f"per_page must be <= {MAX_PER_PAGE}")

    def offset(self) -> int:
        """Calculate SQL OFFSET value.

        Examples:
            >>> PaginationParams(page=3, per_page=25).offset()
            50
        """
        return (self.page - 1) * self.per_page


@dataclass
class PaginatedResult(Generic[T]):
    """Generic paginated result container.

    Attributes:
        items: List of items for this page
        total: Total number of items across all pages
        page: Current page number (1-indexed)
        per_page: Items per page
    """

    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Total number of pages (minimum 1, even for empty results)."""
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def paginate(items: Sequence[T], pagination: Optional[PaginationParams]) -> PaginatedResult[T]:
    """Slice an in-memory list into a PaginatedResult.

    With pagination=None every item is returned as a single page.
    """
    items = list(items)
    if pagination is None:
        return PaginatedResult(items=items, total=len(items), page=1, per_page=len(items) or 1)
    start = pagination.offset()
    return PaginatedResult(
        items=items[start:start + pagination.per_page],
        total=len(items),
        page=pagination.page,
        per_page=pagination.per_page,
    )
