import logging

from flask import request
from flask.views import MethodView
from flask_login import current_user, login_required
from flask_smorest import Blueprint

from app.libs.errors import NotFoundError
from app.libs.pagination import clamp
from app.libs.schemas import envelope

from .constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TRENDING_DAYS,
    MAX_PAGE_SIZE,
    MAX_TRENDING_DAYS,
)
from .query import ClientInfo, SearchFilters, SearchQuery
from .schemas import (
    ClearHistoryEnvelopeSchema,
    DeleteEnvelopeSchema,
    HistoryEnvelopeSchema,
    HistoryQueryArgs,
    RecentQueryArgs,
    RecentSearchEnvelopeSchema,
    SearchEnvelopeSchema,
    SearchQueryArgs,
    SuggestionEnvelopeSchema,
    SuggestionQueryArgs,
    TrendingEnvelopeSchema,
    TrendingQueryArgs,
)
from .services import (
    SearchHistoryService,
    SearchService,
    SuggestionService,
    TrendingService,
)

logger = logging.getLogger(__name__)


bp = Blueprint(
    "search",
    __name__,
    description="Unified search across products and shops, suggestions, trending and history",
    url_prefix="/search",
)


def _current_user_id():
    return current_user.id if current_user.is_authenticated else None


@bp.route("/")
class UnifiedSearch(MethodView):
    @bp.arguments(SearchQueryArgs, location="query")
    @bp.response(200, SearchEnvelopeSchema)
    def get(self, args):
        """
        Unified search endpoint.

        Searches products and/or shops (`type`), with optional product filters,
        and records the search in the caller's history (anonymous when not
        logged in).
        """
        query = SearchQuery(
            text=args.get("q", ""),
            search_type=args["type"],
            filters=SearchFilters(
                category_id=args.get("category_id"),
                price_min=args.get("price_min"),
                price_max=args.get("price_max"),
                promo_only=args.get("promo_only"),
            ),
            sort=args["sort"],
            page=max(1, args.get("page", 1)),
            limit=clamp(args.get("limit"), 1, MAX_PAGE_SIZE, DEFAULT_PAGE_SIZE),
        )
        client = ClientInfo(
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        result = SearchService.execute(query, actor_id=_current_user_id(), client=client)
        return envelope(result, "Search completed successfully.")


@bp.route("/suggestions")
class Suggestions(MethodView):
    @bp.arguments(SuggestionQueryArgs, location="query")
    @bp.response(200, SuggestionEnvelopeSchema)
    def get(self, args):
        """Autocomplete suggestions for a prefix of at least 2 characters"""
        term = (args.get("q") or "").strip()
        suggestions = SuggestionService.suggest(term, args.get("limit"))
        return envelope({"query": term, "suggestions": suggestions})


@bp.route("/trending")
class Trending(MethodView):
    @bp.arguments(TrendingQueryArgs, location="query")
    @bp.response(200, TrendingEnvelopeSchema)
    def get(self, args):
        """Most searched terms over the last `days` days"""
        trending = TrendingService.trending(args.get("limit"), args.get("days"))
        days = clamp(args.get("days"), 1, MAX_TRENDING_DAYS, DEFAULT_TRENDING_DAYS)
        return envelope({"period_days": days, "trending": trending})


@bp.route("/history")
class SearchHistoryList(MethodView):
    @login_required
    @bp.arguments(HistoryQueryArgs, location="query")
    @bp.response(200, HistoryEnvelopeSchema)
    def get(self, args):
        """Full search history of the current user, newest first"""
        return envelope(
            SearchHistoryService.list_paged(
                current_user.id, page=args.get("page", 1), limit=args.get("limit")
            )
        )

    @login_required
    @bp.response(200, ClearHistoryEnvelopeSchema)
    def delete(self):
        """Delete the current user's whole search history"""
        deleted_count = SearchHistoryService.clear_all(current_user.id)
        return envelope(
            {"deleted_count": deleted_count}, f"{deleted_count} search(es) deleted."
        )


@bp.route("/history/<int:entry_id>")
class SearchHistoryItem(MethodView):
    @login_required
    @bp.response(200, DeleteEnvelopeSchema)
    def delete(self, entry_id):
        """Delete one search from the current user's history"""
        if not SearchHistoryService.delete_one(current_user.id, entry_id):
            raise NotFoundError("Search not found.", error_code="SEARCH_NOT_FOUND")
        return envelope(None, "Search deleted.")


@bp.route("/recent")
class RecentSearches(MethodView):
    @login_required
    @bp.arguments(RecentQueryArgs, location="query")
    @bp.response(200, RecentSearchEnvelopeSchema)
    def get(self, args):
        """Distinct recent searches of the current user"""
        searches = SearchHistoryService.list_unique_recent(
            current_user.id, args.get("limit")
        )
        return envelope({"searches": searches})
