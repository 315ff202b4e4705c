"""Daily horoscope replies backed by the aggregated horoscope feed.

Cached per sign per UTC+8 day; the scheduler warms all signs shortly after midnight.
"""

import logging
import unicodedata
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from groupbot.cache import KVCache
from groupbot.constants import HOROSCOPE, HOROSCOPE_CACHE_EXPIRATION, ZODIAC_MAP
from groupbot.converter import text_converter
from groupbot.models.dc_models import (
    CachedHoroscopeModel,
    HoroscopeDataModel,
    HoroscopeResponseModel,
)
from groupbot.services.line_api import fetch_json
from groupbot.utils import get_today_date, get_today_key, truncate_to_first_period


async def fetch_all_horoscopes_data() -> Optional[HoroscopeResponseModel]:
    raw = await fetch_json(HOROSCOPE)
    if raw is None:
        return None
    try:
        response = HoroscopeResponseModel.model_validate(raw)
    except ValidationError as e:
        logging.error(f"Unexpected horoscope payload: {e}")
        return None
    logging.debug(
        f"Fetched horoscopes: {response.success_count}/{response.total_constellations}"
    )
    if not response.converted_to_traditional:
        response.horoscopes = {
            sign: text_converter.convert_horoscope(horoscope)
            for sign, horoscope in response.horoscopes.items()
        }
        response.converted_to_traditional = True
    return response


async def fetch_horoscope_data(zodiac_en: str) -> Optional[HoroscopeDataModel]:
    all_data = await fetch_all_horoscopes_data()
    if all_data is None or zodiac_en not in all_data.horoscopes:
        logging.warning(f"No horoscope data for {zodiac_en}")
        return None
    return all_data.horoscopes[zodiac_en]


def _cache_key(zodiac_key: str, now: Optional[datetime] = None) -> str:
    return f"{get_today_key(now)}_{zodiac_key}"


async def get_cached_horoscope(
    cache: KVCache, zodiac_key: str, now: Optional[datetime] = None
) -> Optional[CachedHoroscopeModel]:
    cached = await cache.get(_cache_key(zodiac_key, now))
    if not cached:
        logging.debug(f"Cache miss for horoscope {zodiac_key}")
        return None
    try:
        return CachedHoroscopeModel.model_validate_json(cached)
    except ValidationError as e:
        logging.warning(f"Dropping unreadable cached horoscope {zodiac_key}: {e}")
        return None


async def cache_horoscope(
    cache: KVCache, zodiac_key: str, data: HoroscopeDataModel, now: Optional[datetime] = None
) -> None:
    cached = CachedHoroscopeModel(data=data, cached_at=(now or datetime.now()).isoformat())
    await cache.put(
        _cache_key(zodiac_key, now),
        cached.model_dump_json(by_alias=True),
        expiration_ttl=HOROSCOPE_CACHE_EXPIRATION,
    )


async def preload_all_horoscopes(cache: KVCache) -> None:
    """Fetch the feed once and cache every sign that was published successfully.

    Every spelling in ZODIAC_MAP gets its own entry so lookups never miss on
    simplified or traditional input.
    """
    logging.info("Starting horoscope preload")
    all_data = await fetch_all_horoscopes_data()
    if all_data is None:
        logging.error("Horoscope preload skipped: feed unavailable")
        return

    cached_count = 0
    for zodiac_key, zodiac_en in ZODIAC_MAP.items():
        horoscope = all_data.horoscopes.get(zodiac_en)
        if horoscope is not None and horoscope.success:
            await cache_horoscope(cache, zodiac_key, horoscope)
            cached_count += 1
        else:
            logging.warning(f"No data available for zodiac {zodiac_key} ({zodiac_en})")
    logging.info(f"Completed horoscope preload: {cached_count}/{len(ZODIAC_MAP)} cached")


def find_zodiac_match(text: str) -> Optional[str]:
    """Find the zodiac sign a short message refers to

    Only 2 or 3 character messages are considered, e.g. "獅子", "獅子座", "双鱼".

    Args:
        text (str): Raw message text

    Returns:
        Optional[str]: A key of ZODIAC_MAP, or None
    """
    normalized = unicodedata.normalize("NFKC", text)
    if len(normalized) < 2 or len(normalized) > 3:
        return None

    for zodiac_key in ZODIAC_MAP:
        if normalized == zodiac_key or normalized == zodiac_key + "座":
            return zodiac_key

    for zodiac_key in ZODIAC_MAP:
        if zodiac_key in normalized:
            return zodiac_key
    return None


def format_horoscope_reply(horoscope: HoroscopeDataModel, zodiac_key: str, now: Optional[datetime] = None) -> str:
    data = horoscope.data
    return "\n".join(
        [
            f"今日運勢 ( {get_today_date(now)} ) {zodiac_key}座",
            f"📝 今日提醒：{data.notice}",
            f"✅ 宜：{data.yi}",
            f"❌ 忌：{data.ji}",
            f"💕 愛情運 ({data.love})",
            data.love_text,
            f"💼 事業運 ({data.work})",
            truncate_to_first_period(data.work_text),
            f"💰 金錢運 ({data.money})",
            truncate_to_first_period(data.money_text),
            f"🏥 健康運 ({data.health})",
            truncate_to_first_period(data.health_text),
            f"🍀 幸運數字：{data.lucky_number}",
            f"🎨 幸運顏色：{data.lucky_color}",
            f"🌟 幸運星座：{data.lucky_star}",
        ]
    )
