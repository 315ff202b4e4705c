"""Dice game rules that are independent from HTTP, storage and the clock.

Rule of thumb:
- OK: validation, ranking, expiry arithmetic on timestamps passed in.
- Not OK: touching storage, LINE, FastAPI, time.time(), the global RNG.
"""

import random
import re
from typing import Dict, List, Optional, Tuple

from groupbot.constants import (
    ROLL_MAX_PLAYERS,
    ROLL_MAX_POINT,
    ROLL_MIN_PLAYERS,
    ROLL_MIN_POINT,
    ROLL_TIMEOUT_MS,
)
from groupbot.models.dc_models import GameModel

DIGITS_ONLY = re.compile(r"[0-9]+")


def is_game_expired(game: GameModel, now_ms: int, timeout_ms: int = ROLL_TIMEOUT_MS) -> bool:
    """Return True once more than ``timeout_ms`` has passed since the game started."""
    return now_ms - game.started_at > timeout_ms


def is_game_full(game: GameModel) -> bool:
    return len(game.players) >= game.max_players


def has_player_rolled(game: GameModel, user_id: str) -> bool:
    return user_id in game.players


def is_valid_max_players(max_players: int) -> bool:
    return ROLL_MIN_PLAYERS <= max_players <= ROLL_MAX_PLAYERS


def draw_point(rng: random.Random) -> int:
    """Draw one uniformly distributed point in [1, 100]."""
    return rng.randint(ROLL_MIN_POINT, ROLL_MAX_POINT)


def validate_player_count(token: str) -> Optional[int]:
    """Parse the player count typed after ``!rollnum``.

    Only plain ASCII digits are accepted; signs, decimals and full-width digits
    return None.

    Args:
        token (str): The second whitespace separated token of the command

    Returns:
        Optional[int]: The parsed count, or None if the token is not a pure integer
    """
    if not DIGITS_ONLY.fullmatch(token):
        return None
    return int(token)


def rank_players(players: Dict[str, int]) -> List[Tuple[str, int]]:
    """Sort players by score, highest first.

    ``sorted`` is stable, so players with the same score keep their join order.
    """
    return sorted(players.items(), key=lambda item: item[1], reverse=True)


def pick_winner(players: Dict[str, int]) -> Optional[str]:
    """Return the id of the highest roll; the earliest roller wins a tie."""
    ranking = rank_players(players)
    if not ranking:
        return None
    return ranking[0][0]
