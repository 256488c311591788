from main.config import Config


def test_trending_cache_is_off_by_default(monkeypatch):
    monkeypatch.delenv("TRENDING_CACHE_TTL", raising=False)

    assert Config().TRENDING_CACHE_TTL == 0


def test_database_url_overrides_postgres_settings(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///discovery.db")

    assert Config().SQLALCHEMY_DATABASE_URI == "sqlite:///discovery.db"
