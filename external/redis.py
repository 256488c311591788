import json
import logging

import redis

from main.config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    def __init__(self):
        self.client = redis.Redis(
            host=settings.REDIS_HOST, port=settings.REDIS_PORT, decode_responses=True
        )
        logger.info("Redis client initialized")

    # JSON cache helpers
    def get_json(self, name):
        """Return the decoded JSON value stored at `name`, or None"""
        raw = self.client.get(name)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, name, value, ttl):
        """Store `value` as JSON with an expiry in seconds"""
        return self.client.setex(name, ttl, json.dumps(value, default=str))

    # Ping operation
    def ping(self):
        """Wrapper for Redis ping command"""
        return self.client.ping()


redis_client = RedisClient()
