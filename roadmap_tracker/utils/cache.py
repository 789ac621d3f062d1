"""
Redis cache utility for leaderboard responses
"""
import redis
from fastapi import Request
import json
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-backed JSON cache; every operation is a no-op when Redis is unavailable"""

    def __init__(self, url: Optional[str] = None):
        self.redis_client = None
        if not url:
            logger.info("REDIS_URL not set. Caching disabled.")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    @staticmethod
    def leaderboard_key(board_type: str, limit: int) -> str:
        return f"leaderboard:{board_type}:{limit}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            self.redis_client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def clear_leaderboards(self) -> bool:
        """Drop every cached leaderboard after stats change"""
        if not self.redis_client:
            return False

        try:
            keys = list(self.redis_client.scan_iter(match="leaderboard:*"))
            if keys:
                self.redis_client.delete(*keys)
                logger.debug(f"Cleared {len(keys)} leaderboard cache entries")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache clear error: {str(e)}")
            return False


def get_cache(request: Request) -> CacheService:
    """FastAPI dependency returning the app's cache"""
    return request.app.state.cache
