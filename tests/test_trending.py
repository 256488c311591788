from datetime import datetime, timedelta

from redis.exceptions import RedisError

from app.search.query import ClientInfo, SearchQuery
from app.search.services import SearchService, TrendingService
from external.redis import redis_client


def test_same_term_from_different_clients_is_counted_together(app, factory):
    now = datetime.utcnow()
    factory.history("iphone", ip_address="10.0.0.1", created_at=now - timedelta(hours=2))
    factory.history("iPhone ", ip_address="10.0.0.2", created_at=now - timedelta(hours=1))

    trending = TrendingService.trending(limit=5, days=7)

    assert trending == [{"query": "iPhone", "count": 2}]


def test_entries_outside_the_window_are_excluded(app, factory):
    old = datetime.utcnow() - timedelta(days=10)
    for _ in range(5):
        factory.history("old news", created_at=old)
    factory.history("fresh")

    assert [t["query"] for t in TrendingService.trending(days=7)] == ["fresh"]
    assert [t["query"] for t in TrendingService.trending(days=30)] == ["old news", "fresh"]


def test_searches_without_item_results_are_excluded(app, factory):
    factory.history("vendors only", items_found=0, vendors_found=4)
    factory.history("nothing at all", items_found=0)

    assert TrendingService.trending() == []


def test_trending_orders_by_count_and_truncates(app, factory):
    for n in range(3):
        for _ in range(n + 1):
            factory.history(f"term {n}")

    trending = TrendingService.trending(limit=2)

    assert trending == [{"query": "term 2", "count": 3}, {"query": "term 1", "count": 2}]


def test_trending_clamps_its_arguments(app, factory):
    for n in range(25):
        factory.history(f"term {n}")

    assert len(TrendingService.trending(limit=500)) == 20
    assert len(TrendingService.trending(limit=0)) == 1


def test_trending_uses_cached_value(app, mocker):
    app.config["TRENDING_CACHE_TTL"] = 60
    cached = [{"query": "cached", "count": 7}]
    get_json = mocker.patch.object(redis_client, "get_json", return_value=cached)

    assert TrendingService.trending(limit=3, days=2) == cached
    get_json.assert_called_once_with("search:trending:3:2")


def test_trending_cache_errors_fall_back_to_history(app, factory, mocker):
    app.config["TRENDING_CACHE_TTL"] = 60
    mocker.patch.object(redis_client, "get_json", side_effect=RedisError("down"))
    set_json = mocker.patch.object(redis_client, "set_json", side_effect=RedisError("down"))
    factory.history("laptop")

    assert TrendingService.trending() == [{"query": "laptop", "count": 1}]
    set_json.assert_called_once()


def test_new_searches_show_up_in_trending_immediately(app, factory, mocker, wait_for_history):
    get_json = mocker.spy(redis_client, "get_json")
    shop = factory.seller("Phone Shop")
    factory.product(shop, "iPhone 15")

    SearchService.execute(SearchQuery(text="iphone"), client=ClientInfo(ip_address="10.0.0.1"))
    wait_for_history()
    assert TrendingService.trending(limit=5, days=7) == [{"query": "iphone", "count": 1}]

    SearchService.execute(SearchQuery(text="iphone"), client=ClientInfo(ip_address="10.0.0.2"))
    wait_for_history()
    assert TrendingService.trending(limit=5, days=7) == [{"query": "iphone", "count": 2}]

    get_json.assert_not_called()
