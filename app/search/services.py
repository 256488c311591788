# python imports
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

# package imports
from flask import current_app
from gevent.pool import Group
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

# project imports
from external.redis import redis_client
from app.libs.concurrency import fan_out, run_branch
from app.libs.errors import APIError, QueryTooShortError, SearchFailedError
from app.libs.helper import build_media_url, media_base_url, truncate_text
from app.libs.pagination import Paginator, clamp, page_count
from app.libs.session import session_scope
from app.libs.text import normalize_query
from app.products.services import ProductLookupService
from app.users.services import ShopLookupService

# app imports
from .constants import (
    DEFAULT_HISTORY_PAGE_SIZE,
    DEFAULT_RECENT_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    DEFAULT_TRENDING_DAYS,
    DEFAULT_TRENDING_LIMIT,
    DESCRIPTION_PREVIEW_LENGTH,
    HISTORY_SUGGESTION_CAP,
    ITEM_SUGGESTION_CAP,
    MAX_HISTORY_PAGE_SIZE,
    MAX_RECENT_LIMIT,
    MAX_SUGGESTION_LIMIT,
    MAX_TRENDING_DAYS,
    MAX_TRENDING_LIMIT,
    MIN_QUERY_LENGTH,
    TRENDING_CACHE_KEY,
    VENDOR_SUGGESTION_CAP,
    SearchType,
    SuggestionSource,
)
from .models import DeleteOutcome, SearchHistory
from .query import ClientInfo, SearchQuery
from .tasks import record_search

logger = logging.getLogger(__name__)

# Background publishes of history entries, joinable on shutdown and in tests
history_publishers = Group()


def search_page_count(search_type: SearchType, items_total: int, vendors_total: int, limit: int) -> int:
    """
    Total pages of a search response.

    Single-kind searches page over their own count. For `all` the two lists
    page side by side, so the longer one decides.
    """
    if search_type == SearchType.ITEMS:
        total = items_total
    elif search_type == SearchType.VENDORS:
        total = vendors_total
    else:
        total = max(items_total, vendors_total)
    return page_count(total, limit)


class SearchService:
    """Unified product + shop search"""

    @staticmethod
    def execute(
        query: SearchQuery,
        actor_id: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> Dict[str, Any]:
        if query.is_too_short:
            raise QueryTooShortError()

        term = query.term
        base_url = media_base_url()
        eligible_ids = ShopLookupService.get_eligible_seller_ids()

        branches = {}
        if query.wants_items:
            branches["items"] = run_branch(
                SearchService._find_items, eligible_ids, query, base_url
            )
        if query.wants_vendors:
            branches["vendors"] = run_branch(
                SearchService._find_vendors, eligible_ids, query, base_url
            )

        try:
            results = fan_out(**branches)
        except APIError:
            raise
        except Exception:
            logger.exception(f"Search fan-out failed for {term!r}")
            raise SearchFailedError("Search failed")

        items, items_total = results.get("items", ([], 0))
        vendors, vendors_total = results.get("vendors", ([], 0))

        SearchService._record_history(
            query, actor_id, client, items_total, vendors_total
        )

        shaped_results = {}
        if query.wants_items:
            shaped_results["items"] = items
        if query.wants_vendors:
            shaped_results["vendors"] = vendors

        return {
            "query": term,
            "type": query.search_type.value,
            "results": shaped_results,
            "totals": {
                "items": items_total,
                "vendors": vendors_total,
                "total": items_total + vendors_total,
            },
            "pagination": {
                "page": query.page,
                "limit": query.limit,
                "total_pages": search_page_count(
                    query.search_type, items_total, vendors_total, query.limit
                ),
            },
            "filters": {**query.filters.to_dict(), "sort": query.sort.value},
        }

    @staticmethod
    def _find_items(eligible_ids, query: SearchQuery, base_url: str):
        products, total = ProductLookupService.lookup_items(
            eligible_ids,
            query.term,
            query.filters,
            query.sort,
            skip=query.offset,
            limit=query.limit,
        )
        return [SearchService._shape_item(p, base_url) for p in products], total

    @staticmethod
    def _find_vendors(eligible_ids, query: SearchQuery, base_url: str):
        shops, total = ShopLookupService.lookup_vendors(
            eligible_ids, query.term, skip=query.offset, limit=query.limit
        )
        product_counts = ProductLookupService.count_active_by_seller(
            shop.id for shop in shops
        )
        return (
            [
                SearchService._shape_vendor(shop, product_counts.get(shop.id, 0), base_url)
                for shop in shops
            ],
            total,
        )

    @staticmethod
    def _shape_item(product, base_url=""):
        category = product.primary_category
        seller = product.seller
        return {
            "id": product.id,
            "type": SuggestionSource.ITEM.value,
            "name": product.name,
            "slug": product.slug,
            "description": truncate_text(product.description, DESCRIPTION_PREVIEW_LENGTH),
            "price": product.price,
            "promo_price": product.promo_price,
            "on_promo": bool(product.on_promo),
            "stock": product.stock,
            "image": build_media_url(product.image, base_url),
            "category": {"id": category.id, "name": category.name} if category else None,
            "seller": {
                "id": seller.id,
                "name": seller.shop_name,
                "logo": build_media_url(_shop_logo(seller), base_url),
            }
            if seller
            else None,
        }

    @staticmethod
    def _shape_vendor(shop, product_count, base_url=""):
        return {
            "id": shop.id,
            "type": SuggestionSource.VENDOR.value,
            "name": shop.shop_name,
            "slug": shop.shop_slug,
            "description": truncate_text(shop.description, DESCRIPTION_PREVIEW_LENGTH),
            "category": shop.category,
            "logo": build_media_url(_shop_logo(shop), base_url),
            "rating": shop.average_rating,
            "review_count": shop.total_raters or 0,
            "product_count": product_count,
        }

    @staticmethod
    def _record_history(query, actor_id, client, items_total, vendors_total):
        """Hand the history entry to a worker without waiting. Never fails the search."""
        client = client or ClientInfo()
        entry_data = {
            "user_id": actor_id,
            "query_text": query.term,
            "search_type": query.search_type.value,
            "filter_category_id": query.filters.category_id,
            "filter_price_min": query.filters.price_min,
            "filter_price_max": query.filters.price_max,
            "filter_promo_only": query.filters.promo_only,
            "items_found": items_total,
            "vendors_found": vendors_total,
            "ip_address": client.ip_address,
            "user_agent": client.user_agent,
            "created_at": datetime.utcnow().isoformat(),
        }
        return history_publishers.spawn(_publish_history, entry_data)


def _publish_history(entry_data):
    try:
        record_search.delay(entry_data)
    except Exception as e:
        logger.warning(
            f"Could not enqueue search history for {entry_data['query_text']!r}: {e}"
        )


def _shop_logo(shop):
    if shop.logo:
        return shop.logo
    return shop.user.profile_picture if shop.user else None


def merge_suggestions(history, items, vendors, limit):
    """
    Merge suggestion candidates in fixed priority: history, then items, then
    vendors. A candidate whose normalized text was already taken is skipped.
    Truncation happens after the full merge.
    """
    merged = []
    seen = set()

    for candidate in [*history, *items, *vendors]:
        text = candidate.get("text")
        if not text:
            continue
        key = normalize_query(text)
        if key in seen:
            continue
        seen.add(key)
        merged.append(candidate)

    return merged[:limit]


class SuggestionService:
    """Prefix autocomplete over history, product names and shop names"""

    @staticmethod
    def suggest(prefix: Optional[str], limit: Optional[int] = None) -> List[Dict[str, Any]]:
        term = (prefix or "").strip()
        if len(term) < MIN_QUERY_LENGTH:
            return []

        limit = clamp(limit, 1, MAX_SUGGESTION_LIMIT, DEFAULT_SUGGESTION_LIMIT)
        base_url = media_base_url()
        eligible_ids = ShopLookupService.get_eligible_seller_ids()

        try:
            results = fan_out(
                history=run_branch(SuggestionService._from_history, term),
                items=run_branch(SuggestionService._from_items, eligible_ids, term, base_url),
                vendors=run_branch(
                    SuggestionService._from_vendors, eligible_ids, term, base_url
                ),
            )
        except APIError:
            raise
        except Exception:
            logger.exception(f"Suggestion fan-out failed for {term!r}")
            raise SearchFailedError("Failed to fetch suggestions")

        return merge_suggestions(
            results["history"], results["items"], results["vendors"], limit
        )

    @staticmethod
    def _from_history(term):
        try:
            with session_scope() as session:
                popular = SearchHistory.popular_with_prefix(
                    session, term, HISTORY_SUGGESTION_CAP
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching popular searches: {str(e)}")
            raise SearchFailedError("Failed to fetch suggestions")

        return [
            {
                "type": SuggestionSource.HISTORY.value,
                "text": row["query"],
                "count": row["count"],
            }
            for row in popular
        ]

    @staticmethod
    def _from_items(eligible_ids, term, base_url):
        products = ProductLookupService.items_with_name_prefix(
            eligible_ids, term, ITEM_SUGGESTION_CAP
        )
        return [
            {
                "type": SuggestionSource.ITEM.value,
                "text": product.name,
                "image": build_media_url(product.image, base_url),
            }
            for product in products
        ]

    @staticmethod
    def _from_vendors(eligible_ids, term, base_url):
        shops = ShopLookupService.vendors_with_name_prefix(
            eligible_ids, term, VENDOR_SUGGESTION_CAP
        )
        return [
            {
                "type": SuggestionSource.VENDOR.value,
                "text": shop.shop_name,
                "image": build_media_url(_shop_logo(shop), base_url),
            }
            for shop in shops
        ]


class TrendingService:
    """Most searched terms over a trailing window of days"""

    @staticmethod
    def trending(limit: Optional[int] = None, days: Optional[int] = None) -> List[Dict[str, Any]]:
        limit = clamp(limit, 1, MAX_TRENDING_LIMIT, DEFAULT_TRENDING_LIMIT)
        days = clamp(days, 1, MAX_TRENDING_DAYS, DEFAULT_TRENDING_DAYS)

        cache_ttl = current_app.config.get("TRENDING_CACHE_TTL", 0)
        cache_key = TRENDING_CACHE_KEY.format(limit=limit, days=days)

        if cache_ttl:
            try:
                cached = redis_client.get_json(cache_key)
                if cached is not None:
                    return cached
            except (RedisError, ValueError) as e:
                logger.warning(f"Trending cache read failed: {e}")

        since = datetime.utcnow() - timedelta(days=days)
        try:
            with session_scope() as session:
                rows = SearchHistory.trending(session, since, limit)
        except SQLAlchemyError as e:
            logger.error(f"Database error computing trending searches: {str(e)}")
            raise APIError("Failed to fetch trending searches", 500)

        trending = [{"query": row["query"], "count": row["count"]} for row in rows]

        if cache_ttl:
            try:
                redis_client.set_json(cache_key, trending, cache_ttl)
            except RedisError as e:
                logger.warning(f"Trending cache write failed: {e}")

        return trending


class SearchHistoryService:
    """Per-user search history"""

    @staticmethod
    def list_paged(user_id, page=1, limit=None):
        page = max(1, page or 1)
        limit = clamp(limit, 1, MAX_HISTORY_PAGE_SIZE, DEFAULT_HISTORY_PAGE_SIZE)
        try:
            with session_scope() as session:
                result = Paginator(
                    SearchHistory.for_user(session, user_id), page=page, per_page=limit
                ).paginate()
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching history for {user_id}: {str(e)}")
            raise APIError("Failed to fetch search history", 500)

        return {
            "items": result["items"],
            "pagination": {
                "page": result["page"],
                "per_page": result["per_page"],
                "total_items": result["total_items"],
                "total_pages": result["total_pages"],
            },
        }

    @staticmethod
    def list_unique_recent(user_id, limit=None):
        limit = clamp(limit, 1, MAX_RECENT_LIMIT, DEFAULT_RECENT_LIMIT)
        try:
            with session_scope() as session:
                return SearchHistory.recent_unique(session, user_id, limit)
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching recent searches for {user_id}: {str(e)}")
            raise APIError("Failed to fetch recent searches", 500)

    @staticmethod
    def clear_all(user_id) -> int:
        try:
            with session_scope() as session:
                deleted = SearchHistory.delete_for_user(session, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error clearing history for {user_id}: {str(e)}")
            raise APIError("Failed to clear search history", 500)

        logger.info(f"Cleared {deleted} search history entries for user {user_id}")
        return deleted

    @staticmethod
    def delete_one(user_id, entry_id) -> bool:
        """
        Delete one of the user's entries.

        Returns False both when the entry does not exist and when it belongs
        to someone else, so callers cannot probe other users' history.
        """
        try:
            with session_scope() as session:
                outcome = SearchHistory.delete_entry(session, entry_id, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error deleting history entry {entry_id}: {str(e)}")
            raise APIError("Failed to delete search", 500)

        if outcome == DeleteOutcome.NOT_OWNER:
            logger.info(f"User {user_id} tried to delete history entry {entry_id} they do not own")
        return outcome == DeleteOutcome.DELETED
