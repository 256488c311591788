# package imports
import logging
import time

from flask import current_app
from flask.views import MethodView
from flask_smorest import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from redis.exceptions import RedisError

# project imports
from external.database import db
from external.redis import redis_client

logger = logging.getLogger(__name__)

bp = Blueprint(
    "health", __name__, description="Health check endpoints", url_prefix="/health"
)


def _timed(probe):
    """Run `probe` and return its duration in milliseconds"""
    start_time = time.time()
    probe()
    return round((time.time() - start_time) * 1000, 2)


def _check_database():
    try:
        return {
            "status": "healthy",
            "response_time": _timed(lambda: db.session.execute(text("SELECT 1"))),
        }
    except SQLAlchemyError as e:
        logger.warning(f"Database health probe failed: {str(e)}")
        return {"status": "unhealthy", "error": str(e)}


def _check_redis():
    try:
        return {"status": "healthy", "response_time": _timed(redis_client.ping)}
    except RedisError as e:
        logger.warning(f"Redis health probe failed: {str(e)}")
        return {"status": "unhealthy", "error": str(e)}


@bp.route("/")
class HealthCheck(MethodView):
    def get(self):
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": current_app.config.get("ENV", "development"),
        }


@bp.route("/detailed")
class DetailedHealthCheck(MethodView):
    def get(self):
        """Database and Redis reachability, with probe latency"""
        components = {"database": _check_database(), "redis": _check_redis()}
        healthy = all(c["status"] == "healthy" for c in components.values())
        return {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": time.time(),
            "environment": current_app.config.get("ENV", "development"),
            "components": components,
        }
