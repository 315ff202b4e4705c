"""Bot-wide constants: game limits, cache lifetimes, remote endpoints and reply tables."""

from datetime import timedelta, timezone

# ==== Dice game ===============================================================
ROLL_MIN_PLAYERS = 2
ROLL_MAX_PLAYERS = 10
ROLL_TIMEOUT_MS = 30 * 60 * 1000
ROLL_MIN_POINT = 1
ROLL_MAX_POINT = 100

# ==== Cache ===================================================================
HOROSCOPE_CACHE_EXPIRATION = 25 * 60 * 60
COPYWRITING_CACHE_EXPIRATION = 2 * 60 * 60

# All user-facing dates are in UTC+8.
BOT_TIMEZONE = timezone(timedelta(hours=8))
BOT_TIMEZONE_NAME = "Asia/Taipei"

# ==== Remote APIs =============================================================
RANDOM_GIRL_IMAGE = "https://v2.api-m.com/api/meinvpic?return=302"
RANDOM_BLACK_SILK_IMAGE = "https://v2.api-m.com/api/heisi?return=302"
RANDOM_WHITE_SILK_IMAGE = "https://v2.api-m.com/api/baisi?return=302"
CAT_RANDOM_IMAGE = "https://cataas.com/cat"
HOROSCOPE = "https://garylin0969.github.io/json-gather/data/horoscope.json"
LOVE_COPYWRITING_TEXT = "https://garylin0969.github.io/json-gather/data/love-copywriting.json"
FUNNY_COPYWRITING_TEXT = "https://garylin0969.github.io/json-gather/data/funny-copywriting.json"
ROMANTIC_COPYWRITING_TEXT = "https://garylin0969.github.io/json-gather/data/romantic-copywriting.json"
LINE_REPLY = "https://api.line.me/v2/bot/message/reply"
LINE_GROUP_MEMBER_PROFILE = "https://api.line.me/v2/bot/group/{group_id}/member/{user_id}"

# (feed url, cache key)
COPYWRITING_FEEDS = [
    (LOVE_COPYWRITING_TEXT, "love_copywriting"),
    (FUNNY_COPYWRITING_TEXT, "funny_copywriting"),
    (ROMANTIC_COPYWRITING_TEXT, "romantic_copywriting"),
]

# ==== Keyword auto reply ======================================================
KEY_WORDS_REPLY = {
    "笑死": "啊是死了沒辣",
    "勝利": "那ㄋ很失敗囉？",
    "花式炫": "炫你嘴裡",
    "又在炫": "炫你嘴裡",
    "靠北": "順便靠母了嗎 恭喜",
    "這我": "又你了",
    "早安": "沒人想跟你打招呼",
    "？": "？你媽",
    "?": "？你媽",
}

# ==== Zodiac ==================================================================
# Traditional and simplified spellings both map to the feed's English key.
ZODIAC_MAP = {
    "牡羊": "aries",
    "白羊": "aries",
    "金牛": "taurus",
    "雙子": "gemini",
    "双子": "gemini",
    "巨蟹": "cancer",
    "巨蠍": "cancer",
    "獅子": "leo",
    "狮子": "leo",
    "處女": "virgo",
    "处女": "virgo",
    "天秤": "libra",
    "天蠍": "scorpio",
    "天蝎": "scorpio",
    "射手": "sagittarius",
    "魔羯": "capricorn",
    "摩羯": "capricorn",
    "水瓶": "aquarius",
    "雙魚": "pisces",
    "双鱼": "pisces",
}
