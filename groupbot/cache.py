import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from groupbot.load_secrets import redis_url


def create_redis() -> Redis:
    return Redis.from_url(redis_url, decode_responses=True, health_check_interval=30)


class KVCache:
    """String cache with per-entry expiration, namespaced by a key prefix."""

    def __init__(self, redis: Redis, prefix: str):
        self.redis = redis
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(key))
        except RedisError as e:
            logging.warning(f"[Redis] GET {self._key(key)} err: {e}")
            return None

    async def put(self, key: str, value: str, expiration_ttl: int) -> None:
        try:
            await self.redis.set(self._key(key), value, ex=expiration_ttl)
        except RedisError as e:
            logging.warning(f"[Redis] SET {self._key(key)} err: {e}")
