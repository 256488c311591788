from decouple import AutoConfig
from pathlib import Path

config = AutoConfig()


class Config:
    def __init__(self):
        # Environment
        self.ENV = config("ENV", default="development")
        self.TESTING = config("TESTING", default=False, cast=bool)

        # Database
        self.DB_HOST = config("DB_HOST", default="localhost")
        self.DB_PORT = config("DB_PORT", default=5432, cast=int)
        self.DB_USER = config("DB_USER", default="markt")
        self.DB_PASSWORD = config("DB_PASSWORD", default="markt123")
        self.DB_NAME = config("DB_NAME", default="markt_db")
        self.DATABASE_URL = config("DATABASE_URL", default="")

        # Redis
        self.REDIS_HOST = config("REDIS_HOST", default="localhost")
        self.REDIS_PORT = config("REDIS_PORT", default=6379, cast=int)

        # Auth
        self.SECRET_KEY = config("SECRET_KEY", default="dev-secret-key")
        self.SESSION_COOKIE_NAME = "markt_session"

        # App
        self.BIND = config("BIND", default="127.0.0.1:8000")
        self.DEBUG = config("DEBUG", default=True, cast=bool)
        self.MEDIA_BASE_URL = config("MEDIA_BASE_URL", default="")

        # API docs (flask-smorest)
        self.API_TITLE = "Markt Discovery API"
        self.API_VERSION = "v1"
        self.OPENAPI_VERSION = "3.0.3"

        # Logging
        self.LOG_DIR = Path(config("LOG_DIR", default="logs"))
        self.LOG_LEVEL = config("LOG_LEVEL", default="INFO")

        # Celery
        self.CELERY_BROKER_URL = config(
            "CELERY_BROKER_URL",
            default=f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/1",
        )
        self.CELERY_RESULT_BACKEND = config(
            "CELERY_RESULT_BACKEND",
            default=f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/2",
        )
        self.CELERY_ALWAYS_EAGER = config(
            "CELERY_ALWAYS_EAGER", default=False, cast=bool
        )

        # Search
        self.SEARCH_HISTORY_RETENTION_DAYS = config(
            "SEARCH_HISTORY_RETENTION_DAYS", default=30, cast=int
        )
        # seconds, 0 disables the trending cache
        self.TRENDING_CACHE_TTL = config("TRENDING_CACHE_TTL", default=0, cast=int)

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


settings = Config()
