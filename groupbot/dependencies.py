"""Process-wide singletons shared by the routers and the scheduler.

Routers reach them through the get_* functions so tests can swap them with
``app.dependency_overrides``.
"""

from groupbot.cache import KVCache, create_redis
from groupbot.db import Session
from groupbot.game_state_object import GameStateNamespace
from groupbot.handlers.message_handler import MessageHandler
from groupbot.load_secrets import line_channel_access_token
from groupbot.services.game import RollGameService
from groupbot.services.line_api import LineClient

redis = create_redis()
horoscope_cache = KVCache(redis, "horoscope")
copywriting_cache = KVCache(redis, "copywriting")
line_client = LineClient(line_channel_access_token)
game_namespace = GameStateNamespace(Session)
roll_game_service = RollGameService(game_namespace, line_client)
message_handler = MessageHandler(line_client, roll_game_service, horoscope_cache, copywriting_cache)


def get_message_handler() -> MessageHandler:
    return message_handler


def get_horoscope_cache() -> KVCache:
    return horoscope_cache


def get_copywriting_cache() -> KVCache:
    return copywriting_cache
