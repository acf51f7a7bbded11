"""Socket.IO event names and inbound command parsing.

Every inbound payload is turned into a command dataclass before it reaches
the coordinator; ``kind`` is the event name the command came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

# Inbound
CREATE_GAME = "create_game"
JOIN_GAME = "join_game"
START_GAME = "start_game"
SUBMIT_PROMPT = "submit_prompt"
SUBMIT_DRAWING = "submit_drawing"
SUBMIT_GUESS = "submit_guess"
GET_RANDOM_PROMPT = "get_random_prompt"

# Outbound
GAME_CREATED = "game_created"
GAME_JOINED = "game_joined"
PLAYER_JOINED = "player_joined"
PLAYER_LEFT = "player_left"
ACTIVE_GAMES_LIST = "active_games_list"
GAME_STARTED = "game_started"
TASK_PROMPT = "task_prompt"
TASK_DRAW = "task_draw"
TASK_GUESS = "task_guess"
START_TIMER = "start_timer"
TIMES_UP = "times_up"
SUBMISSION_RECEIVED = "submission_received"
REVEAL_DATA = "reveal_data"
GAME_OVER = "game_over"
ERROR_MESSAGE = "error_message"
RANDOM_PROMPT_RESULT = "random_prompt_result"


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def _int(payload: dict, key: str) -> int | None:
    value = payload.get(key)
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class CreateGame:
    player_name: str
    game_code: str
    num_rounds: int | None = None
    prompt_time: int | None = None
    draw_time: int | None = None
    guess_time: int | None = None
    kind: str = CREATE_GAME


@dataclass(frozen=True)
class JoinGame:
    player_name: str
    game_code: str
    kind: str = JOIN_GAME


@dataclass(frozen=True)
class StartGame:
    game_code: str
    player_id: int | None
    kind: str = START_GAME


@dataclass(frozen=True)
class SubmitPrompt:
    game_code: str
    player_id: int | None
    prompt_text: str
    kind: str = SUBMIT_PROMPT


@dataclass(frozen=True)
class SubmitDrawing:
    game_code: str
    player_id: int | None
    thread_id: int | None
    drawing_data_url: str
    kind: str = SUBMIT_DRAWING


@dataclass(frozen=True)
class SubmitGuess:
    game_code: str
    player_id: int | None
    thread_id: int | None
    guess_text: str
    kind: str = SUBMIT_GUESS


@dataclass(frozen=True)
class GetRandomPrompt:
    kind: str = GET_RANDOM_PROMPT


Command = Union[
    CreateGame, JoinGame, StartGame, SubmitPrompt, SubmitDrawing, SubmitGuess, GetRandomPrompt
]


def parse_command(event: str, data: Any) -> Command:
    payload = data if isinstance(data, dict) else {}

    if event == CREATE_GAME:
        return CreateGame(
            player_name=_text(payload, "playerName"),
            game_code=_text(payload, "gameCode"),
            num_rounds=_int(payload, "numRounds"),
            prompt_time=_int(payload, "promptTime"),
            draw_time=_int(payload, "drawTime"),
            guess_time=_int(payload, "guessTime"),
        )
    if event == JOIN_GAME:
        return JoinGame(player_name=_text(payload, "playerName"), game_code=_text(payload, "gameCode"))
    if event == START_GAME:
        return StartGame(game_code=_text(payload, "gameCode"), player_id=_int(payload, "playerId"))
    if event == SUBMIT_PROMPT:
        return SubmitPrompt(
            game_code=_text(payload, "gameCode"),
            player_id=_int(payload, "playerId"),
            prompt_text=_text(payload, "promptText"),
        )
    if event == SUBMIT_DRAWING:
        return SubmitDrawing(
            game_code=_text(payload, "gameCode"),
            player_id=_int(payload, "playerId"),
            thread_id=_int(payload, "threadId"),
            drawing_data_url=_text(payload, "drawingDataUrl"),
        )
    if event == SUBMIT_GUESS:
        return SubmitGuess(
            game_code=_text(payload, "gameCode"),
            player_id=_int(payload, "playerId"),
            thread_id=_int(payload, "threadId"),
            guess_text=_text(payload, "guessText"),
        )
    if event == GET_RANDOM_PROMPT:
        return GetRandomPrompt()
    raise ValueError(f"Unknown event: {event}")


INBOUND_EVENTS = (
    CREATE_GAME,
    JOIN_GAME,
    START_GAME,
    SUBMIT_PROMPT,
    SUBMIT_DRAWING,
    SUBMIT_GUESS,
    GET_RANDOM_PROMPT,
)
