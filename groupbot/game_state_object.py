"""Per-group dice game actor.

One ``GameStateObject`` instance is bound to one LINE group through
``GameStateNamespace``; the namespace serializes every call addressed to the
same group, so the check-then-mutate sequences below never interleave.

The instance keeps a ``games`` mapping (group id -> game) that mirrors the
``games`` blob in its actor storage. Every operation reloads that blob first,
so a restarted process, or an earlier write that failed, never leaves stale
state in memory.
"""

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from groupbot.actor import ActorNamespace, ActorStorage
from groupbot.crud import StorageError
from groupbot.domain.dice_rules import (
    draw_point,
    has_player_rolled,
    is_game_expired,
    is_game_full,
    is_valid_max_players,
)
from groupbot.models.dc_models import GameModel, RollResultModel

STORAGE_KEY = "games"


class GameError(str, Enum):
    """Every way a game operation can fail, with its wire reason string."""

    InvalidParameter = "Invalid maxPlayers"
    GameAlreadyExists = "Game already exists"
    NotFound = "Game not found or expired"
    MissingParameter = "Missing userId"
    GameFull = "Game is full"
    AlreadyRolled = "Already rolled"
    StorageFailure = "Internal server error"

    @property
    def status_code(self) -> int:
        if self is GameError.StorageFailure:
            return 500
        return 400


@dataclass
class ActorResult:
    data: Any = None
    error: Optional[GameError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def now_ms() -> int:
    return int(time.time() * 1000)


class GameStateObject:
    def __init__(
        self,
        storage: ActorStorage,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
    ):
        self.storage = storage
        self.clock = clock
        self.rng = rng or random.Random()
        self.games: Dict[str, GameModel] = {}

    async def initialize_state(self) -> None:
        """Reload games from storage and purge the finished ones.

        A game is finished once it expired or every player has rolled; a full
        game left behind by a failed removal write is dropped here.

        The purge is persisted only if something was dropped.

        Raises:
            StorageError: The storage could not be read or written
        """
        stored = await self.storage.get(STORAGE_KEY) or {}
        self.games = {
            group_id: GameModel.model_validate(game) for group_id, game in stored.items()
        }
        now = self.clock()
        purged = [
            group_id
            for group_id, game in self.games.items()
            if is_game_expired(game, now) or is_game_full(game)
        ]
        for group_id in purged:
            logging.info(f"Purging finished game of group {group_id}")
            del self.games[group_id]
        if purged:
            await self.save_state()

    async def save_state(self) -> None:
        await self.storage.put(
            STORAGE_KEY,
            {group_id: game.model_dump(by_alias=True) for group_id, game in self.games.items()},
        )

    async def create(self, group_id: str, max_players: int) -> ActorResult:
        """Start a new game for the group

        Args:
            group_id (str): LINE group id
            max_players (int): Number of rolls that completes the game, 2 to 10

        Returns:
            ActorResult: The new GameModel, or InvalidParameter / GameAlreadyExists / StorageFailure
        """
        try:
            await self.initialize_state()
            if not is_valid_max_players(max_players):
                return ActorResult(error=GameError.InvalidParameter)
            if group_id in self.games:
                return ActorResult(error=GameError.GameAlreadyExists)

            game = GameModel(players={}, max_players=max_players, started_at=self.clock())
            self.games[group_id] = game
            await self.save_state()
        except StorageError as e:
            logging.error(f"Failed to create game for group {group_id}: {e}")
            return ActorResult(error=GameError.StorageFailure)
        logging.info(f"Created game for group {group_id} with {max_players} players")
        return ActorResult(data=game.model_copy(deep=True))

    async def get(self, group_id: str) -> ActorResult:
        """Return the live game of the group, data is None when there is none."""
        try:
            await self.initialize_state()
        except StorageError as e:
            logging.error(f"Failed to read game for group {group_id}: {e}")
            return ActorResult(error=GameError.StorageFailure)
        game = self.games.get(group_id)
        return ActorResult(data=game.model_copy(deep=True) if game else None)

    async def roll(self, group_id: str, user_id: Optional[str]) -> ActorResult:
        """Register one roll of a player

        The roll that brings the player count to max players completes the
        game: the game is persisted with that roll and then removed.

        Args:
            group_id (str): LINE group id
            user_id (Optional[str]): LINE user id of the roller

        Returns:
            ActorResult: RollResultModel, or NotFound / MissingParameter / GameFull /
                AlreadyRolled / StorageFailure
        """
        try:
            await self.initialize_state()
            game = self.games.get(group_id)
            if game is None:
                return ActorResult(error=GameError.NotFound)
            if not user_id:
                return ActorResult(error=GameError.MissingParameter)
            if is_game_full(game):
                return ActorResult(error=GameError.GameFull)
            if has_player_rolled(game, user_id):
                return ActorResult(error=GameError.AlreadyRolled)

            point = draw_point(self.rng)
            game.players[user_id] = point
            is_complete = len(game.players) == game.max_players
            result = RollResultModel(point=point, is_complete=is_complete, players=dict(game.players))
            await self.save_state()
        except StorageError as e:
            logging.error(f"Failed to roll for {user_id} in group {group_id}: {e}")
            return ActorResult(error=GameError.StorageFailure)

        if is_complete:
            del self.games[group_id]
            try:
                await self.save_state()
            except StorageError as e:
                # The roll itself is stored; the next operation purges the full game.
                logging.error(f"Failed to remove completed game of group {group_id}: {e}")
        logging.info(f"{user_id} rolled {point} in group {group_id}, complete: {is_complete}")
        return ActorResult(data=result)

    async def fetch(self, action: Optional[str], group_id: Optional[str], params: Dict[str, str]) -> Tuple[int, str]:
        """HTTP-shaped entry point: dispatch an action and render status + body.

        Args:
            action (Optional[str]): "create", "get" or "roll"
            group_id (Optional[str]): LINE group id
            params (Dict[str, str]): Query parameters, "maxPlayers" or "userId"

        Returns:
            Tuple[int, str]: Status code and JSON (or reason string) body
        """
        if not group_id:
            return 400, "Missing groupId"

        if action == "create":
            try:
                max_players = int(params.get("maxPlayers") or 0)
            except ValueError:
                max_players = 0
            result = await self.create(group_id, max_players)
        elif action == "get":
            result = await self.get(group_id)
        elif action == "roll":
            result = await self.roll(group_id, params.get("userId"))
        else:
            return 400, "Invalid action"

        if not result.ok:
            return result.error.status_code, result.error.value
        if result.data is None:
            return 200, ""
        return 200, result.data.model_dump_json(by_alias=True)


class GameStateNamespace(ActorNamespace):
    """Game actors addressed by LINE group id."""

    def __init__(self, session_factory: async_sessionmaker, **actor_kwargs):
        super().__init__(GameStateObject, session_factory, **actor_kwargs)

    async def create(self, group_id: str, max_players: int) -> ActorResult:
        stub = await self.get(group_id)
        return await stub.call("create", group_id, max_players)

    async def get_game(self, group_id: str) -> ActorResult:
        stub = await self.get(group_id)
        return await stub.call("get", group_id)

    async def roll(self, group_id: str, user_id: Optional[str]) -> ActorResult:
        stub = await self.get(group_id)
        return await stub.call("roll", group_id, user_id)

    async def fetch(self, action: Optional[str], group_id: Optional[str], params: Dict[str, str]) -> Tuple[int, str]:
        if not group_id:
            return 400, "Missing groupId"
        stub = await self.get(group_id)
        return await stub.call("fetch", action, group_id, params)
