from enum import Enum


class SearchType(Enum):
    ALL = "all"
    ITEMS = "items"
    VENDORS = "vendors"


class SortMode(Enum):
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RECENT = "recent"


class SuggestionSource(Enum):
    HISTORY = "history"
    ITEM = "item"
    VENDOR = "vendor"


MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200
DESCRIPTION_PREVIEW_LENGTH = 100

# Search page size
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50

# Suggestions
DEFAULT_SUGGESTION_LIMIT = 10
MAX_SUGGESTION_LIMIT = 20
HISTORY_SUGGESTION_CAP = 5
ITEM_SUGGESTION_CAP = 5
VENDOR_SUGGESTION_CAP = 3

# Trending
DEFAULT_TRENDING_LIMIT = 10
MAX_TRENDING_LIMIT = 20
DEFAULT_TRENDING_DAYS = 7
MAX_TRENDING_DAYS = 30
TRENDING_CACHE_KEY = "search:trending:{limit}:{days}"

# History
DEFAULT_HISTORY_PAGE_SIZE = 20
MAX_HISTORY_PAGE_SIZE = 100
DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 20
