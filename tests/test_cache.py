from redis.exceptions import ConnectionError as RedisConnectionError

from groupbot.cache import KVCache


class FakeRedis:
    def __init__(self, down=False):
        self.down = down
        self.store = {}
        self.expirations = {}

    async def get(self, key):
        if self.down:
            raise RedisConnectionError("redis is down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.down:
            raise RedisConnectionError("redis is down")
        self.store[key] = value
        self.expirations[key] = ex


async def test_keys_are_prefixed_and_expire():
    redis = FakeRedis()
    cache = KVCache(redis, "horoscope")

    await cache.put("2024-03-02_獅子", "{}", expiration_ttl=90)

    assert redis.store == {"horoscope:2024-03-02_獅子": "{}"}
    assert redis.expirations == {"horoscope:2024-03-02_獅子": 90}
    assert await cache.get("2024-03-02_獅子") == "{}"
    assert await KVCache(redis, "copywriting").get("2024-03-02_獅子") is None


async def test_unreachable_redis_behaves_like_a_miss():
    cache = KVCache(FakeRedis(down=True), "copywriting")

    await cache.put("love_copywriting", "{}", expiration_ttl=60)

    assert await cache.get("love_copywriting") is None
