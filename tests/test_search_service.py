import time
from datetime import datetime, timedelta

import gevent
import pytest

from app.libs.errors import QueryTooShortError, SearchFailedError
from app.products.models import Product
from app.products.services import ProductLookupService
from app.search.constants import SearchType, SortMode
from app.search.models import SearchHistory
from app.search.query import ClientInfo, SearchFilters, SearchQuery
from app.search.services import SearchService, search_page_count
from app.users.services import ShopLookupService


@pytest.mark.parametrize("text", ["", " ", "a", "  a  "])
def test_short_query_is_rejected_before_any_lookup(app, mocker, text):
    eligible = mocker.patch.object(ShopLookupService, "get_eligible_seller_ids")
    items = mocker.patch.object(ProductLookupService, "lookup_items")
    vendors = mocker.patch.object(ShopLookupService, "lookup_vendors")

    with pytest.raises(QueryTooShortError):
        SearchService.execute(SearchQuery(text=text))

    eligible.assert_not_called()
    items.assert_not_called()
    vendors.assert_not_called()
    assert SearchHistory.query.count() == 0


def test_items_of_ineligible_sellers_are_hidden(app, factory):
    shop = factory.seller("Tech Corner")
    pending = factory.seller("Pending Shop", verified=False)
    closed = factory.seller("Closed Shop", active=False)
    factory.product(shop, "Laptop HP ProBook 450 G8", price=450000)
    factory.product(pending, "Laptop HP ProBook 450 G8", price=400000)
    factory.product(closed, "Laptop HP ProBook 450 G8", price=300000)

    result = SearchService.execute(SearchQuery(text="lap", search_type=SearchType.ITEMS))

    items = result["results"]["items"]
    assert [i["seller"]["id"] for i in items] == [shop.id]
    assert items[0]["name"] == "Laptop HP ProBook 450 G8"
    assert "vendors" not in result["results"]
    assert result["totals"] == {"items": 1, "vendors": 0, "total": 1}


def test_seller_with_disabled_account_is_not_eligible(app, factory):
    owner = factory.user(active=False)
    shop = factory.seller("Ghost Shop", user=owner)
    factory.product(shop, "Ghost Lamp")

    result = SearchService.execute(SearchQuery(text="ghost"))

    assert result["results"] == {"items": [], "vendors": []}


def test_inactive_products_are_hidden(app, factory):
    shop = factory.seller("Tech Corner")
    factory.product(shop, "Draft Phone", status=Product.Status.DRAFT)
    factory.product(shop, "Live Phone")

    result = SearchService.execute(SearchQuery(text="phone", search_type=SearchType.ITEMS))

    assert [i["name"] for i in result["results"]["items"]] == ["Live Phone"]


def test_search_matches_description_and_tags(app, factory):
    shop = factory.seller("Tech Corner")
    factory.product(shop, "ProBook", description="A sturdy laptop for work")
    factory.product(shop, "ThinkPad", tags=["laptop"])
    factory.product(shop, "Kettle")

    result = SearchService.execute(SearchQuery(text="LAPTOP", search_type=SearchType.ITEMS))

    assert sorted(i["name"] for i in result["results"]["items"]) == ["ProBook", "ThinkPad"]


def test_like_wildcards_in_text_match_literally(app, factory):
    shop = factory.seller("Tech Corner")
    factory.product(shop, "Phone 50% off")
    factory.product(shop, "Phone 500 edition")

    result = SearchService.execute(SearchQuery(text="50%", search_type=SearchType.ITEMS))

    assert [i["name"] for i in result["results"]["items"]] == ["Phone 50% off"]


def test_item_filters(app, factory):
    shop = factory.seller("Tech Corner")
    phones = factory.category("Phones")
    factory.product(shop, "Phone Basic", price=50, category=phones)
    factory.product(shop, "Phone Pro", price=500, category=phones, on_promo=True, promo_price=450)
    factory.product(shop, "Phone Case", price=5)

    def names(filters):
        result = SearchService.execute(
            SearchQuery(text="phone", search_type=SearchType.ITEMS, filters=filters)
        )
        return sorted(i["name"] for i in result["results"]["items"])

    assert names(SearchFilters(category_id=phones.id)) == ["Phone Basic", "Phone Pro"]
    assert names(SearchFilters(price_min=10, price_max=100)) == ["Phone Basic"]
    assert names(SearchFilters(promo_only=True)) == ["Phone Pro"]
    assert names(SearchFilters(promo_only=False)) == ["Phone Basic", "Phone Case", "Phone Pro"]


def test_sort_modes(app, factory):
    shop = factory.seller("Tech Corner")
    now = datetime.utcnow()
    factory.product(shop, "Phone A", price=300, created_at=now - timedelta(days=2))
    factory.product(shop, "Phone B", price=100, created_at=now)
    factory.product(shop, "Phone C", price=200, created_at=now - timedelta(days=1))

    def names(sort):
        result = SearchService.execute(
            SearchQuery(text="phone", search_type=SearchType.ITEMS, sort=sort)
        )
        return [i["name"] for i in result["results"]["items"]]

    assert names(SortMode.PRICE_ASC) == ["Phone B", "Phone C", "Phone A"]
    assert names(SortMode.PRICE_DESC) == ["Phone A", "Phone C", "Phone B"]
    assert names(SortMode.RECENT) == ["Phone B", "Phone C", "Phone A"]
    assert names(SortMode.RELEVANCE) == names(SortMode.RECENT)


def test_vendor_results_are_shaped_and_ranked_by_rating(app, factory):
    media = app.config["MEDIA_BASE_URL"]
    owner = factory.user(profile_picture="avatars/owner.png")
    top = factory.seller(
        "Tech Hub", rating=(45, 10), category="Electronics", logo="logos/hub.png"
    )
    plain = factory.seller(
        "Tech Corner", user=owner, rating=(6, 2), description="x" * 150
    )
    factory.product(top, "Speaker")
    factory.product(top, "Radio")
    factory.product(plain, "Cable")

    result = SearchService.execute(SearchQuery(text="tech", search_type=SearchType.VENDORS))

    vendors = result["results"]["vendors"]
    assert [v["id"] for v in vendors] == [top.id, plain.id]
    assert vendors[0]["rating"] == 4.5
    assert vendors[0]["review_count"] == 10
    assert vendors[0]["product_count"] == 2
    assert vendors[0]["logo"] == f"{media}/logos/hub.png"
    assert vendors[0]["type"] == "vendor"
    # falls back to the owner's picture when the shop has no logo
    assert vendors[1]["logo"] == f"{media}/avatars/owner.png"
    assert vendors[1]["description"] == "x" * 100 + "..."
    assert "items" not in result["results"]


def test_all_pages_by_the_longer_list(app, factory):
    shop = factory.seller("Gadget World")
    for n in range(5):
        factory.product(shop, f"Gadget {n}")

    result = SearchService.execute(SearchQuery(text="gadget", limit=2))

    assert result["totals"] == {"items": 5, "vendors": 1, "total": 6}
    assert result["pagination"] == {"page": 1, "limit": 2, "total_pages": 3}
    assert len(result["results"]["items"]) == 2
    assert len(result["results"]["vendors"]) == 1

    last = SearchService.execute(SearchQuery(text="gadget", limit=2, page=3))
    assert len(last["results"]["items"]) == 1
    assert last["results"]["vendors"] == []


@pytest.mark.parametrize(
    "search_type, items, vendors, limit, expected",
    [
        (SearchType.ALL, 25, 3, 12, 3),
        (SearchType.ALL, 3, 25, 12, 3),
        (SearchType.ITEMS, 25, 3, 12, 3),
        (SearchType.VENDORS, 25, 3, 12, 1),
        (SearchType.ALL, 0, 0, 12, 0),
    ],
)
def test_search_page_count(search_type, items, vendors, limit, expected):
    assert search_page_count(search_type, items, vendors, limit) == expected


def test_search_records_history(app, factory, wait_for_history):
    user = factory.user()
    shop = factory.seller("Tech Corner")
    factory.product(shop, "Café Grinder", price=40)

    result = SearchService.execute(
        SearchQuery(
            text="  Café  ",
            search_type=SearchType.ITEMS,
            filters=SearchFilters(price_max=100),
        ),
        actor_id=user.id,
        client=ClientInfo(ip_address="10.0.0.1", user_agent="pytest"),
    )
    wait_for_history()

    assert result["query"] == "Café"
    entry = SearchHistory.query.one()
    assert entry.user_id == user.id
    assert entry.query_text == "Café"
    assert entry.query_normalized == "cafe"
    assert entry.search_type == SearchType.ITEMS
    assert entry.filter_price_max == 100
    assert entry.items_found == 1
    assert entry.vendors_found == 0
    assert entry.ip_address == "10.0.0.1"


def test_history_failure_does_not_fail_the_search(app, factory, mocker, wait_for_history):
    task = mocker.patch("app.search.services.record_search")
    task.delay.side_effect = ConnectionError("broker unreachable")
    shop = factory.seller("Tech Corner")
    factory.product(shop, "Laptop")

    result = SearchService.execute(SearchQuery(text="laptop"))
    wait_for_history()

    assert result["totals"]["items"] == 1
    task.delay.assert_called_once()


def test_history_write_error_is_swallowed(app, factory, mocker, wait_for_history):
    mocker.patch.object(SearchHistory, "record", side_effect=RuntimeError("disk full"))

    result = SearchService.execute(SearchQuery(text="laptop"))
    wait_for_history()

    assert result["totals"]["total"] == 0
    assert SearchHistory.query.count() == 0


def test_lookup_failure_fails_the_search_without_history(app, factory, mocker):
    mocker.patch.object(
        ProductLookupService, "lookup_items", side_effect=RuntimeError("db down")
    )
    factory.seller("Tech Corner")

    with pytest.raises(SearchFailedError):
        SearchService.execute(SearchQuery(text="tech"))

    assert SearchHistory.query.count() == 0


def test_item_and_vendor_lookups_overlap(app, mocker):
    def slow_lookup(*args, **kwargs):
        gevent.sleep(0.3)
        return [], 0

    mocker.patch.object(ProductLookupService, "lookup_items", side_effect=slow_lookup)
    mocker.patch.object(ShopLookupService, "lookup_vendors", side_effect=slow_lookup)

    started = time.monotonic()
    SearchService.execute(SearchQuery(text="laptop"))
    elapsed = time.monotonic() - started

    assert elapsed < 0.5


def test_slow_history_publish_does_not_delay_the_search(app, mocker, wait_for_history):
    task = mocker.patch("app.search.services.record_search")
    task.delay.side_effect = lambda entry_data: gevent.sleep(1.0)

    started = time.monotonic()
    result = SearchService.execute(SearchQuery(text="laptop"))
    elapsed = time.monotonic() - started

    assert elapsed < 0.5
    assert result["query"] == "laptop"

    wait_for_history()
    task.delay.assert_called_once()
    assert task.delay.call_args.args[0]["query_text"] == "laptop"
