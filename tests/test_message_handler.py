import random

import pytest

from groupbot.constants import CAT_RANDOM_IMAGE, RANDOM_BLACK_SILK_IMAGE, RANDOM_GIRL_IMAGE
from groupbot.handlers.message_handler import (
    GROUP_ONLY,
    CommandType,
    MessageHandler,
    detect_command,
)
from groupbot.models.dc_models import HoroscopeDataModel, LineEventModel
from groupbot.services import copywriting, horoscope
from groupbot.services.game import COMMAND_FAILED, GAME_CREATED, UNKNOWN_COMMAND
from groupbot.services.horoscope import cache_horoscope, preload_all_horoscopes

LEO = {
    "constellation": "leo",
    "chineseName": "獅子座",
    "success": True,
    "data": {
        "ji": "熬夜",
        "yi": "運動",
        "love": "80%",
        "work": "70%",
        "money": "60%",
        "health": "90%",
        "notice": "保持耐心",
        "love_text": "感情穩定。",
        "work_text": "工作順利。會有貴人。",
        "money_text": "小有收穫。",
        "health_text": "精神很好。",
        "lucky_star": "射手座",
        "lucky_color": "金色",
        "lucky_number": 7,
    },
}


def text_event(text, group_id="g1", user_id="u1", reply_token="token"):
    source = {"type": "group" if group_id else "user", "userId": user_id}
    if group_id:
        source["groupId"] = group_id
    return LineEventModel.model_validate(
        {
            "type": "message",
            "replyToken": reply_token,
            "source": source,
            "message": {"type": "text", "id": "1", "text": text},
        }
    )


@pytest.fixture
def handler(line_client, roll_game_service, fake_cache):
    return MessageHandler(line_client, roll_game_service, fake_cache, fake_cache, rng=random.Random(3))


@pytest.mark.parametrize(
    "text, command_type",
    [
        ("!roll", CommandType.ROLL),
        ("！ROLL", CommandType.ROLL),
        ("!rollnum 3", CommandType.ROLL_NUM),
        ("抽", CommandType.DRAW),
        ("!黑絲", CommandType.BLACK_SILK),
        ("!白絲", CommandType.WHITE_SILK),
        ("!情話", CommandType.LOVE_COPYWRITING),
        ("！幹話", CommandType.FUNNY_COPYWRITING),
        ("!骚话", CommandType.ROMANTIC_COPYWRITING),
        ("!貓", CommandType.CAT),
        ("我笑死了", CommandType.KEYWORDS),
    ],
)
def test_detect_command(text, command_type):
    assert detect_command(text).type is command_type


@pytest.mark.parametrize("text", ["hello", "抽卡", "獅子座", "!help"])
def test_plain_chat_is_not_a_command(text):
    assert detect_command(text) is None


async def test_rollnum_in_group_reaches_the_game(handler, games, line_recorder):
    await handler.handle_message(text_event(" !rollnum 3 "))

    assert line_recorder.texts == [[GAME_CREATED]]
    assert (await games.get_game("g1")).data.max_players == 3


async def test_game_commands_need_a_group(handler, line_recorder):
    await handler.handle_message(text_event("!roll", group_id=None))

    assert line_recorder.texts == [[GROUP_ONLY]]


async def test_uppercase_game_command_is_not_understood(handler, games, line_recorder):
    await handler.handle_message(text_event("！ROLLNUM 3"))

    assert line_recorder.texts == [[UNKNOWN_COMMAND]]
    assert (await games.get_game("g1")).data is None


@pytest.mark.parametrize("text, url", [("抽", RANDOM_GIRL_IMAGE), ("!黑絲", RANDOM_BLACK_SILK_IMAGE)])
async def test_image_commands(handler, line_recorder, text, url):
    await handler.handle_message(text_event(text))

    [message] = line_recorder.replies[0]["messages"]
    assert message["type"] == "image"
    assert message["originalContentUrl"] == url


async def test_cat_url_changes_every_time(handler, line_recorder):
    await handler.handle_message(text_event("!貓"))
    await handler.handle_message(text_event("!貓"))

    urls = [reply["messages"][0]["originalContentUrl"] for reply in line_recorder.replies]
    assert all(url.startswith(f"{CAT_RANDOM_IMAGE}?random=") for url in urls)
    assert urls[0] != urls[1]


async def test_exact_keyword_gets_a_reply(handler, line_recorder):
    await handler.handle_message(text_event("笑死"))

    assert line_recorder.texts == [["啊是死了沒辣"]]


async def test_keyword_inside_a_sentence_is_ignored(handler, line_recorder):
    await handler.handle_message(text_event("真的笑死"))

    assert line_recorder.replies == []


async def test_copywriting_command(handler, line_recorder, fake_cache, monkeypatch):
    payload = {
        "type": "funny",
        "convertedToTraditional": True,
        "copywritings": [{"id": 1, "content": "第一句"}, {"id": 2, "content": "第二句"}],
    }

    async def fake_fetch_json(url, transport=None):
        return payload

    monkeypatch.setattr(copywriting, "fetch_json", fake_fetch_json)

    await handler.handle_message(text_event("!幹話"))

    [[text]] = line_recorder.texts
    assert text in ("第一句", "第二句")
    assert "funny_copywriting" in fake_cache.values


async def test_unavailable_copywriting_feed_stays_silent(handler, line_recorder, monkeypatch):
    async def fake_fetch_json(url, transport=None):
        return None

    monkeypatch.setattr(copywriting, "fetch_json", fake_fetch_json)

    await handler.handle_message(text_event("!情話"))

    assert line_recorder.replies == []


async def test_cached_horoscope_reply(handler, line_recorder, fake_cache, monkeypatch):
    await cache_horoscope(fake_cache, "獅子", HoroscopeDataModel.model_validate(LEO))

    async def fail_fetch(url, transport=None):
        raise AssertionError("cache hit must not fetch")

    monkeypatch.setattr(horoscope, "fetch_json", fail_fetch)
    scheduled = []

    await handler.handle_message(text_event("獅子座"), scheduled.append)

    [[text]] = line_recorder.texts
    assert "獅子座" in text.split("\n")[0]
    assert "✅ 宜：運動" in text
    assert scheduled == []


async def test_horoscope_cache_miss_fetches_and_schedules_preload(handler, line_recorder, fake_cache, monkeypatch):
    async def fake_fetch_json(url, transport=None):
        return {"convertedToTraditional": True, "horoscopes": {"leo": LEO}}

    monkeypatch.setattr(horoscope, "fetch_json", fake_fetch_json)
    scheduled = []

    await handler.handle_message(text_event("狮子"), lambda *args: scheduled.append(args))

    [[text]] = line_recorder.texts
    assert "🍀 幸運數字：7" in text
    assert any(key.endswith("_狮子") for key in fake_cache.values)
    assert scheduled == [(preload_all_horoscopes, fake_cache)]


async def test_horoscope_feed_down_stays_silent(handler, line_recorder, monkeypatch):
    async def fake_fetch_json(url, transport=None):
        return None

    monkeypatch.setattr(horoscope, "fetch_json", fake_fetch_json)

    await handler.handle_message(text_event("水瓶"))

    assert line_recorder.replies == []


async def test_non_text_events_are_ignored(handler, line_recorder):
    sticker = LineEventModel.model_validate(
        {
            "type": "message",
            "replyToken": "token",
            "source": {"type": "group", "groupId": "g1", "userId": "u1"},
            "message": {"type": "sticker", "id": "2"},
        }
    )
    join = LineEventModel.model_validate({"type": "join", "replyToken": "token"})

    await handler.handle_message(sticker)
    await handler.handle_message(join)

    assert line_recorder.replies == []


async def test_failing_command_replies_with_generic_error(line_client, line_recorder, fake_cache, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("feed exploded")

    monkeypatch.setattr("groupbot.handlers.message_handler.get_random_copywriting_text", broken)
    handler = MessageHandler(line_client, None, fake_cache, fake_cache)

    await handler.handle_message(text_event("!騷話"))

    assert line_recorder.texts == [[COMMAND_FAILED]]
