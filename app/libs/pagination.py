from typing import Any, Dict, List, Optional, TypeVar
from sqlalchemy.orm import Query
from math import ceil

# Type variable for SQLAlchemy models
T = TypeVar("T")


def clamp(value: Optional[int], low: int, high: int, default: int) -> int:
    """Clamp an optional integer into [low, high], using default when missing"""
    if value is None:
        return default
    return max(low, min(high, value))


def page_offset(page: int, per_page: int) -> int:
    """Number of rows to skip for a 1-based page"""
    return (page - 1) * per_page


def page_count(total: int, per_page: int) -> int:
    """Number of pages needed for `total` rows, zero when there are none"""
    return ceil(total / per_page) if total else 0


class Paginator:
    def __init__(self, query: Query, page: int = 1, per_page: int = 20) -> None:
        """
        Initialize paginator with SQLAlchemy query

        Args:
            query: SQLAlchemy query object, already filtered and ordered
            page: Current page number (default: 1)
            per_page: Items per page (default: 20)
        """
        self.query: Query = query
        self.page: int = page
        self.per_page: int = per_page

    def paginate(self) -> Dict[str, Any]:
        """
        Apply pagination to the query

        Returns:
            Dictionary containing:
            - items: List of paginated items
            - page: Current page number
            - per_page: Items per page
            - total_items: Total number of items
            - total_pages: Total number of pages
        """
        items: List[T] = (
            self.query.limit(self.per_page)
            .offset(page_offset(self.page, self.per_page))
            .all()
        )

        total: int = self.query.order_by(None).count()

        return {
            "items": items,
            "page": self.page,
            "per_page": self.per_page,
            "total_items": total,
            "total_pages": page_count(total, self.per_page),
        }
