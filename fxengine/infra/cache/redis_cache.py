# fxengine/infra/cache/redis_cache.py
import logging
from datetime import timedelta

import redis

from fxengine.core.config import Settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Cache clave/valor sobre Redis; "" significa que la clave no existe."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            username=settings.REDIS_USERNAME or None,
            password=settings.REDIS_PASSWORD or None,
            decode_responses=True,
            socket_timeout=5,
        )
        return cls(client)

    def get(self, key: str) -> str:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"❌ Error leyendo Redis: {e}")
            raise
        if value is None:
            logger.debug(f"Cache miss: {key}")
            return ""
        logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        try:
            self.client.set(key, value, ex=ttl)
        except redis.RedisError as e:
            logger.error(f"❌ Error escribiendo en Redis: {e}")
            raise
        logger.debug(f"Cache set: {key}")

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis no responde al ping: {e}")
            return False
