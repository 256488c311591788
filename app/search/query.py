from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    DEFAULT_PAGE_SIZE,
    MIN_QUERY_LENGTH,
    SearchType,
    SortMode,
)


@dataclass(frozen=True)
class SearchFilters:
    """Structured item filters. A filter is applied only when it is not None."""

    category_id: Optional[int] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    promo_only: Optional[bool] = None

    def __post_init__(self):
        # promo_only=False means "no promo filter", store it as absent
        if not self.promo_only:
            object.__setattr__(self, "promo_only", None)

    def to_dict(self):
        return {
            "category_id": self.category_id,
            "price_min": self.price_min,
            "price_max": self.price_max,
            "promo_only": self.promo_only,
        }


@dataclass(frozen=True)
class SearchQuery:
    text: str
    search_type: SearchType = SearchType.ALL
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort: SortMode = SortMode.RELEVANCE
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def term(self):
        """The search text with surrounding whitespace removed"""
        return (self.text or "").strip()

    @property
    def is_too_short(self):
        return len(self.term) < MIN_QUERY_LENGTH

    @property
    def offset(self):
        return (self.page - 1) * self.limit

    @property
    def wants_items(self):
        return self.search_type in (SearchType.ALL, SearchType.ITEMS)

    @property
    def wants_vendors(self):
        return self.search_type in (SearchType.ALL, SearchType.VENDORS)


@dataclass(frozen=True)
class ClientInfo:
    """Optional request metadata stored alongside a history entry"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
