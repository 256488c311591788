from marshmallow import Schema, fields, validate

from app.libs.schemas import EnvelopeSchema, PaginationSchema

from .constants import (
    DEFAULT_PAGE_SIZE,
    SearchType,
    SortMode,
    SuggestionSource,
)


# ----------------------------------------------------------------------
# Query arguments
# ----------------------------------------------------------------------


class SearchQueryArgs(Schema):
    q = fields.Str(load_default="")
    type = fields.Enum(SearchType, by_value=True, load_default=SearchType.ALL)
    category_id = fields.Int(data_key="categoryId")
    price_min = fields.Float(data_key="priceMin", validate=validate.Range(min=0))
    price_max = fields.Float(data_key="priceMax", validate=validate.Range(min=0))
    promo_only = fields.Bool(data_key="promoOnly", load_default=False)
    sort = fields.Enum(SortMode, by_value=True, load_default=SortMode.RELEVANCE)
    page = fields.Int(load_default=1)
    limit = fields.Int(load_default=DEFAULT_PAGE_SIZE)


class SuggestionQueryArgs(Schema):
    q = fields.Str(load_default="")
    limit = fields.Int()


class TrendingQueryArgs(Schema):
    limit = fields.Int()
    days = fields.Int()


class HistoryQueryArgs(Schema):
    page = fields.Int(load_default=1)
    limit = fields.Int()


class RecentQueryArgs(Schema):
    limit = fields.Int()


# ----------------------------------------------------------------------
# Payloads
# ----------------------------------------------------------------------


class CategoryRefSchema(Schema):
    id = fields.Int()
    name = fields.Str()


class SellerRefSchema(Schema):
    # Seller.id is an integer key, unlike the prefixed string ids of users and products
    id = fields.Int()
    name = fields.Str(allow_none=True)
    logo = fields.Str(allow_none=True)


class ItemResultSchema(Schema):
    id = fields.Str()
    type = fields.Str()
    name = fields.Str()
    slug = fields.Str(allow_none=True)
    description = fields.Str(allow_none=True)
    price = fields.Float()
    promo_price = fields.Float(allow_none=True)
    on_promo = fields.Bool()
    stock = fields.Int(allow_none=True)
    image = fields.Str(allow_none=True)
    category = fields.Nested(CategoryRefSchema, allow_none=True)
    seller = fields.Nested(SellerRefSchema, allow_none=True)


class VendorResultSchema(Schema):
    id = fields.Int()  # Seller.id
    type = fields.Str()
    name = fields.Str(allow_none=True)
    slug = fields.Str(allow_none=True)
    description = fields.Str(allow_none=True)
    category = fields.Str(allow_none=True)
    logo = fields.Str(allow_none=True)
    rating = fields.Float()
    review_count = fields.Int()
    product_count = fields.Int()


class SearchResultsSchema(Schema):
    items = fields.List(fields.Nested(ItemResultSchema))
    vendors = fields.List(fields.Nested(VendorResultSchema))


class SearchTotalsSchema(Schema):
    items = fields.Int()
    vendors = fields.Int()
    total = fields.Int()


class SearchPaginationSchema(Schema):
    page = fields.Int()
    limit = fields.Int()
    total_pages = fields.Int()


class AppliedFiltersSchema(Schema):
    category_id = fields.Int(allow_none=True)
    price_min = fields.Float(allow_none=True)
    price_max = fields.Float(allow_none=True)
    promo_only = fields.Bool(allow_none=True)
    sort = fields.Str()


class SearchResponseSchema(Schema):
    query = fields.Str()
    type = fields.Str()
    results = fields.Nested(SearchResultsSchema)
    totals = fields.Nested(SearchTotalsSchema)
    pagination = fields.Nested(SearchPaginationSchema)
    filters = fields.Nested(AppliedFiltersSchema)


class SuggestionSchema(Schema):
    type = fields.Str(validate=validate.OneOf([s.value for s in SuggestionSource]))
    text = fields.Str()
    count = fields.Int()
    image = fields.Str(allow_none=True)


class SuggestionListSchema(Schema):
    query = fields.Str()
    suggestions = fields.List(fields.Nested(SuggestionSchema))


class TrendingEntrySchema(Schema):
    query = fields.Str()
    count = fields.Int()


class TrendingListSchema(Schema):
    period_days = fields.Int()
    trending = fields.List(fields.Nested(TrendingEntrySchema))


class HistoryEntrySchema(Schema):
    id = fields.Int(dump_only=True)
    query = fields.Str(attribute="query_text", dump_only=True)
    type = fields.Enum(SearchType, by_value=True, attribute="search_type", dump_only=True)
    filters = fields.Dict(dump_only=True)
    results = fields.Method("get_results", dump_only=True)
    created_at = fields.DateTime(dump_only=True)

    def get_results(self, obj):
        return {"items": obj.items_found, "vendors": obj.vendors_found}


class HistoryPageSchema(Schema):
    items = fields.List(fields.Nested(HistoryEntrySchema))
    pagination = fields.Nested(PaginationSchema)


class RecentSearchSchema(Schema):
    query = fields.Str(attribute="query_text", dump_only=True)
    type = fields.Enum(SearchType, by_value=True, attribute="search_type", dump_only=True)
    last_searched = fields.DateTime(attribute="created_at", dump_only=True)


class RecentSearchListSchema(Schema):
    searches = fields.List(fields.Nested(RecentSearchSchema))


class DeletedCountSchema(Schema):
    deleted_count = fields.Int()


# ----------------------------------------------------------------------
# Envelopes
# ----------------------------------------------------------------------


class SearchEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(SearchResponseSchema)


class SuggestionEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(SuggestionListSchema)


class TrendingEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(TrendingListSchema)


class HistoryEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(HistoryPageSchema)


class RecentSearchEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(RecentSearchListSchema)


class ClearHistoryEnvelopeSchema(EnvelopeSchema):
    data = fields.Nested(DeletedCountSchema)


class DeleteEnvelopeSchema(EnvelopeSchema):
    data = fields.Raw(allow_none=True)
