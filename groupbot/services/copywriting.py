import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from groupbot.cache import KVCache
from groupbot.constants import COPYWRITING_CACHE_EXPIRATION, COPYWRITING_FEEDS
from groupbot.converter import text_converter
from groupbot.models.dc_models import CachedCopywritingModel, CopywritingResponseModel
from groupbot.services.line_api import fetch_json


def is_cache_valid(cached_at: str, now: Optional[datetime] = None) -> bool:
    try:
        cached_time = datetime.fromisoformat(cached_at)
    except ValueError:
        return False
    now = now or datetime.now()
    return now - cached_time < timedelta(seconds=COPYWRITING_CACHE_EXPIRATION)


async def get_cached_copywriting(
    cache: KVCache, cache_key: str, now: Optional[datetime] = None
) -> Optional[CachedCopywritingModel]:
    cached = await cache.get(cache_key)
    if not cached:
        return None
    try:
        parsed = CachedCopywritingModel.model_validate_json(cached)
    except ValidationError as e:
        logging.warning(f"Dropping unreadable cached copywriting {cache_key}: {e}")
        return None
    if not is_cache_valid(parsed.cached_at, now):
        return None
    return parsed


async def cache_copywriting(cache: KVCache, cache_key: str, data: CopywritingResponseModel) -> CachedCopywritingModel:
    cached = CachedCopywritingModel(data=data, cached_at=datetime.now().isoformat())
    await cache.put(
        cache_key,
        cached.model_dump_json(by_alias=True),
        expiration_ttl=COPYWRITING_CACHE_EXPIRATION,
    )
    return cached


async def fetch_copywriting_data(api_url: str) -> Optional[CopywritingResponseModel]:
    raw = await fetch_json(api_url)
    if raw is None:
        return None
    try:
        response = CopywritingResponseModel.model_validate(raw)
    except ValidationError as e:
        logging.error(f"Unexpected copywriting payload from {api_url}: {e}")
        return None
    if not response.converted_to_traditional:
        response = text_converter.convert_copywritings(response)
    return response


async def get_random_copywriting_text(
    api_url: str, cache_key: str, cache: KVCache, rng: Optional[random.Random] = None
) -> Optional[str]:
    """Pick one random snippet of a feed, refreshing the cache on a miss

    Args:
        api_url (str): Feed URL
        cache_key (str): Cache entry of the feed
        cache (KVCache): Copywriting cache

    Returns:
        Optional[str]: A snippet, None if the feed is unavailable or empty
    """
    cached = await get_cached_copywriting(cache, cache_key)
    if cached is None:
        fresh = await fetch_copywriting_data(api_url)
        if fresh is None or not fresh.copywritings:
            return None
        cached = await cache_copywriting(cache, cache_key, fresh)

    copywritings = cached.data.copywritings
    if not copywritings:
        return None
    return (rng or random).choice(copywritings).content


async def preload_all_copywritings(cache: KVCache) -> None:
    """Refresh every copywriting feed in parallel; a failing feed does not stop the others."""

    async def preload(api_url: str, cache_key: str) -> None:
        data = await fetch_copywriting_data(api_url)
        if data is not None and data.copywritings:
            await cache_copywriting(cache, cache_key, data)
        else:
            logging.warning(f"Copywriting preload skipped for {cache_key}")

    logging.info("Starting copywriting preload")
    results = await asyncio.gather(
        *(preload(api_url, cache_key) for api_url, cache_key in COPYWRITING_FEEDS),
        return_exceptions=True,
    )
    for (_, cache_key), result in zip(COPYWRITING_FEEDS, results):
        if isinstance(result, Exception):
            logging.error(f"Copywriting preload failed for {cache_key}: {result}")
