"""Classify inbound LINE text messages and dispatch them to a reply strategy."""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from groupbot.cache import KVCache
from groupbot.constants import (
    CAT_RANDOM_IMAGE,
    COPYWRITING_FEEDS,
    KEY_WORDS_REPLY,
    RANDOM_BLACK_SILK_IMAGE,
    RANDOM_GIRL_IMAGE,
    RANDOM_WHITE_SILK_IMAGE,
    ZODIAC_MAP,
)
from groupbot.models.dc_models import LineEventModel
from groupbot.services.copywriting import get_random_copywriting_text
from groupbot.services.game import COMMAND_FAILED, RollGameService, normalize_command
from groupbot.services.horoscope import (
    cache_horoscope,
    fetch_horoscope_data,
    find_zodiac_match,
    format_horoscope_reply,
    get_cached_horoscope,
    preload_all_horoscopes,
)
from groupbot.services.line_api import LineClient

GROUP_ONLY = "此命令只能在群組中使用"

# Schedules work after the webhook response, e.g. BackgroundTasks.add_task.
Scheduler = Callable[..., Any]


class CommandType(str, Enum):
    ROLL = "roll"
    ROLL_NUM = "rollnum"
    DRAW = "draw"
    BLACK_SILK = "black_silk"
    WHITE_SILK = "white_silk"
    LOVE_COPYWRITING = "love_copywriting"
    FUNNY_COPYWRITING = "funny_copywriting"
    ROMANTIC_COPYWRITING = "romantic_copywriting"
    CAT = "cat"
    KEYWORDS = "keywords"


@dataclass
class CommandDetection:
    type: CommandType
    text: str
    normalized_text: str


EXACT_COMMANDS = {
    "!roll": CommandType.ROLL,
    "!黑絲": CommandType.BLACK_SILK,
    "!白絲": CommandType.WHITE_SILK,
    "!情話": CommandType.LOVE_COPYWRITING,
    "!幹話": CommandType.FUNNY_COPYWRITING,
    "!騷話": CommandType.ROMANTIC_COPYWRITING,
    "!骚话": CommandType.ROMANTIC_COPYWRITING,
    "!貓": CommandType.CAT,
}

IMAGE_COMMANDS = {
    CommandType.DRAW: RANDOM_GIRL_IMAGE,
    CommandType.BLACK_SILK: RANDOM_BLACK_SILK_IMAGE,
    CommandType.WHITE_SILK: RANDOM_WHITE_SILK_IMAGE,
}

COPYWRITING_COMMANDS = {
    CommandType(cache_key): (api_url, cache_key) for api_url, cache_key in COPYWRITING_FEEDS
}


def detect_command(text: str) -> Optional[CommandDetection]:
    """Classify a message

    Args:
        text (str): Trimmed message text

    Returns:
        Optional[CommandDetection]: The command, or None for plain chat
    """
    normalized_text = normalize_command(text).lower()

    if normalized_text in EXACT_COMMANDS:
        return CommandDetection(EXACT_COMMANDS[normalized_text], text, normalized_text)
    if normalized_text.startswith("!rollnum"):
        return CommandDetection(CommandType.ROLL_NUM, text, normalized_text)
    if text == "抽":
        return CommandDetection(CommandType.DRAW, text, normalized_text)
    if any(key in text for key in KEY_WORDS_REPLY):
        return CommandDetection(CommandType.KEYWORDS, text, normalized_text)
    return None


class MessageHandler:
    def __init__(
        self,
        line_client: LineClient,
        roll_game_service: RollGameService,
        horoscope_cache: KVCache,
        copywriting_cache: KVCache,
        rng: Optional[random.Random] = None,
    ):
        self.line_client = line_client
        self.roll_game_service = roll_game_service
        self.horoscope_cache = horoscope_cache
        self.copywriting_cache = copywriting_cache
        self.rng = rng or random.Random()

    async def handle_message(self, event: LineEventModel, schedule: Optional[Scheduler] = None) -> None:
        if event.type != "message" or event.message is None or event.message.type != "text":
            return
        if not event.reply_token or event.message.text is None:
            return

        text = event.message.text.strip()
        user_id = event.source.user_id if event.source else None
        logging.info(f"userId: {user_id} text: {text}")

        command = detect_command(text)
        if command is not None:
            await self.handle_command(event, command)
            return

        zodiac_key = find_zodiac_match(text)
        if zodiac_key is not None:
            await self.handle_horoscope(zodiac_key, event.reply_token, schedule)

    async def handle_command(self, event: LineEventModel, command: CommandDetection) -> None:
        reply_token = event.reply_token
        try:
            if command.type in (CommandType.ROLL, CommandType.ROLL_NUM):
                await self.handle_game_command(event)
            elif command.type in IMAGE_COMMANDS:
                await self.line_client.send_image_reply(reply_token, IMAGE_COMMANDS[command.type])
            elif command.type is CommandType.CAT:
                # Bust LINE's image cache so every request shows a new cat.
                await self.line_client.send_image_reply(reply_token, f"{CAT_RANDOM_IMAGE}?random={self.rng.random()}")
            elif command.type in COPYWRITING_COMMANDS:
                api_url, cache_key = COPYWRITING_COMMANDS[command.type]
                await self.handle_copywriting_command(reply_token, api_url, cache_key)
            elif command.type is CommandType.KEYWORDS:
                await self.handle_keywords_command(reply_token, command.text)
        except Exception as e:
            logging.error(f"Command {command.type.value} failed: {e}")
            await self.line_client.send_reply(reply_token, COMMAND_FAILED)

    async def handle_game_command(self, event: LineEventModel) -> None:
        source = event.source
        if source is None or not source.group_id or not source.user_id:
            await self.line_client.send_reply(event.reply_token, GROUP_ONLY)
            return
        await self.roll_game_service.handle_roll_command(
            source.group_id, source.user_id, event.reply_token, event.message.text.strip()
        )

    async def handle_copywriting_command(self, reply_token: str, api_url: str, cache_key: str) -> None:
        text = await get_random_copywriting_text(api_url, cache_key, self.copywriting_cache, self.rng)
        if text:
            await self.line_client.send_reply(reply_token, text)

    async def handle_keywords_command(self, reply_token: str, text: str) -> None:
        # Detection matches on containment; only an exact keyword gets a reply.
        reply = KEY_WORDS_REPLY.get(text)
        if reply is not None:
            await self.line_client.send_reply(reply_token, reply)

    async def handle_horoscope(self, zodiac_key: str, reply_token: str, schedule: Optional[Scheduler] = None) -> None:
        cached = await get_cached_horoscope(self.horoscope_cache, zodiac_key)
        if cached is not None:
            data = cached.data
        else:
            data = await fetch_horoscope_data(ZODIAC_MAP[zodiac_key])
            if data is not None:
                await cache_horoscope(self.horoscope_cache, zodiac_key, data)
                if schedule is not None:
                    schedule(preload_all_horoscopes, self.horoscope_cache)

        if data is None:
            return
        await self.line_client.send_reply(reply_token, format_horoscope_reply(data, zodiac_key))
