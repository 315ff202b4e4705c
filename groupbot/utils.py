from datetime import datetime
from typing import Optional

from groupbot.constants import BOT_TIMEZONE


def _local_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = datetime.now(BOT_TIMEZONE)
    return now.astimezone(BOT_TIMEZONE)


def get_today_key(now: Optional[datetime] = None) -> str:
    """Today in UTC+8 as YYYY-MM-DD, used in daily cache keys."""
    return _local_now(now).strftime("%Y-%m-%d")


def get_today_date(now: Optional[datetime] = None) -> str:
    """Today in UTC+8 as MM/DD, used in replies."""
    return _local_now(now).strftime("%m/%d")


def truncate_to_first_period(text: str) -> str:
    index = text.find("。")
    return text[: index + 1] if index != -1 else text
