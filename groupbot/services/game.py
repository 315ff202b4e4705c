"""`!rollnum` / `!roll` commands: talks to the group's game actor and replies on LINE."""

import asyncio
import logging

from groupbot.constants import ROLL_MAX_PLAYERS, ROLL_MIN_PLAYERS
from groupbot.domain.dice_rules import is_valid_max_players, pick_winner, validate_player_count
from groupbot.game_state_object import GameError, GameStateNamespace
from groupbot.models.dc_models import LineMessageModel, RollResultModel
from groupbot.services.line_api import LineClient

UNKNOWN_COMMAND = "未知的指令格式"
GAME_IN_PROGRESS = "還有正在進行中的比大小，先比完好嗎 親 ~~"
ROLLNUM_FORMAT_HINT = f"請輸入正確格式，例如 !rollnum 3 ({ROLL_MIN_PLAYERS}~{ROLL_MAX_PLAYERS}人)"
ROLLNUM_RANGE_HINT = f"請輸入正確人數，例如 !rollnum 3 ({ROLL_MIN_PLAYERS}~{ROLL_MAX_PLAYERS}人)"
NOT_A_NUMBER = "還敢亂搞啊 {token} 是數字嗎？給我打整數"
CREATE_FAILED = "建立遊戲失敗，請稍後再試"
GAME_CREATED = "請依序輸入 !roll 會自動記錄比對，超過30分鐘沒比完的會自動關閉。"
NO_GAME = "還沒有進行中的比大小，請先輸入 !rollnum {人數}，例如 !rollnum 3"
ROLL_FAILED = "骰子失敗，請稍後再試"
COMMAND_FAILED = "處理命令時發生錯誤"

ROLL_ERROR_MESSAGES = {
    GameError.GameFull: "參加人數已滿，無法加入",
    GameError.AlreadyRolled: "你已經骰過了！",
}


def normalize_command(text: str) -> str:
    return text.replace("！", "!")


def format_roll_line(display_name: str, point: int) -> str:
    return f"{display_name}骰出 : {point} 點"


class RollGameService:
    def __init__(self, games: GameStateNamespace, line_client: LineClient):
        self.games = games
        self.line_client = line_client

    async def handle_roll_command(self, group_id: str, user_id: str, reply_token: str, text: str) -> None:
        normalized_text = normalize_command(text).strip()
        if normalized_text.startswith("!rollnum"):
            await self.handle_roll_num(group_id, reply_token, normalized_text)
        elif normalized_text == "!roll":
            await self.handle_roll(group_id, user_id, reply_token)
        else:
            await self.line_client.send_reply(reply_token, UNKNOWN_COMMAND)

    async def handle_roll_num(self, group_id: str, reply_token: str, text: str) -> None:
        """Start a game: `!rollnum <players>`

        Args:
            group_id (str): LINE group id
            reply_token (str): Reply token of the command message
            text (str): Normalized command text
        """
        existing = await self.games.get_game(group_id)
        if existing.ok and existing.data is not None:
            await self.line_client.send_reply(reply_token, GAME_IN_PROGRESS)
            return

        parts = text.split()
        if len(parts) != 2:
            await self.line_client.send_reply(reply_token, ROLLNUM_FORMAT_HINT)
            return

        player_count = validate_player_count(parts[1])
        if player_count is None:
            await self.line_client.send_reply(reply_token, NOT_A_NUMBER.format(token=parts[1]))
            return
        if not is_valid_max_players(player_count):
            await self.line_client.send_reply(reply_token, ROLLNUM_RANGE_HINT)
            return

        result = await self.games.create(group_id, player_count)
        if not result.ok:
            logging.warning(f"Creating game for group {group_id} failed: {result.error.name}")
            message = GAME_IN_PROGRESS if result.error is GameError.GameAlreadyExists else CREATE_FAILED
            await self.line_client.send_reply(reply_token, message)
            return
        await self.line_client.send_reply(reply_token, GAME_CREATED)

    async def handle_roll(self, group_id: str, user_id: str, reply_token: str) -> None:
        try:
            game = await self.games.get_game(group_id)
            if game.ok and game.data is None:
                await self.line_client.send_reply(reply_token, NO_GAME)
                return

            result = await self.games.roll(group_id, user_id)
            if not result.ok:
                if result.error is GameError.NotFound:
                    # Completed or expired between the lookup and the roll.
                    await self.line_client.send_reply(reply_token, NO_GAME)
                    return
                await self.line_client.send_reply(
                    reply_token, ROLL_ERROR_MESSAGES.get(result.error, ROLL_FAILED)
                )
                return

            await self.handle_roll_result(result.data, group_id, reply_token, user_id)
        except Exception as e:
            logging.error(f"Roll command failed in group {group_id}: {e}")
            await self.line_client.send_reply(reply_token, COMMAND_FAILED)

    async def handle_roll_result(self, result: RollResultModel, group_id: str, reply_token: str, user_id: str) -> None:
        display_name = await self.line_client.fetch_group_member_profile(user_id, group_id)
        if result.is_complete:
            await self.send_final_results(result, group_id, reply_token, display_name)
        else:
            await self.line_client.send_reply(reply_token, format_roll_line(display_name, result.point))

    async def send_final_results(self, result: RollResultModel, group_id: str, reply_token: str, display_name: str) -> None:
        """Reply with the roller's line and the leaderboard in a single reply

        Falls back to the roller's line alone if the two-message reply fails.

        Args:
            result (RollResultModel): The completing roll
            group_id (str): LINE group id
            reply_token (str): Reply token of the command message
            display_name (str): Display name of the roller
        """
        roll_line = format_roll_line(display_name, result.point)
        try:
            player_ids = list(result.players)
            names = await asyncio.gather(
                *(self.line_client.fetch_group_member_profile(player_id, group_id) for player_id in player_ids)
            )
            player_names = dict(zip(player_ids, names))
            leaderboard = "\n".join(
                f"{player_names[player_id]} : {score} 點" for player_id, score in result.players.items()
            )
            winner = pick_winner(result.players)
            messages = [
                LineMessageModel(type="text", text=roll_line),
                LineMessageModel(type="text", text=f"{leaderboard}\n獲勝者為 : {player_names[winner]}"),
            ]
            sent = await self.line_client.send_line_messages(reply_token, messages)
        except Exception as e:
            logging.error(f"Failed to build final results for group {group_id}: {e}")
            sent = False
        if not sent:
            await self.line_client.send_reply(reply_token, roll_line)
