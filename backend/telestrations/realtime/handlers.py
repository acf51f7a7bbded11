from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from flask import request
from flask_socketio import SocketIO, emit, join_room

from ..game.coordinator import GameCoordinator
from ..game.errors import GameError, NotFoundError
from . import events
from .events import (
    Command,
    CreateGame,
    GetRandomPrompt,
    JoinGame,
    StartGame,
    SubmitDrawing,
    SubmitGuess,
    SubmitPrompt,
    parse_command,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected server error occurred."


def register_socketio_handlers(socketio: SocketIO, coordinator: GameCoordinator) -> None:
    def on_create_game(cmd: CreateGame) -> None:
        result = coordinator.create_game(
            request.sid,
            cmd.player_name,
            game_code=cmd.game_code,
            num_rounds=cmd.num_rounds,
            prompt_time=cmd.prompt_time,
            draw_time=cmd.draw_time,
            guess_time=cmd.guess_time,
        )
        join_room(result["gameCode"])
        emit(events.GAME_CREATED, result)
        coordinator.broadcast_waiting_games()

    def on_join_game(cmd: JoinGame) -> None:
        result = coordinator.join_game(request.sid, cmd.player_name, cmd.game_code)
        code = result.game.code
        join_room(code)
        emit(events.GAME_JOINED, result.to_payload())
        emit(
            events.PLAYER_JOINED,
            {
                "playerId": result.player_id,
                "playerName": result.player_name,
                "players": [p.to_public() for p in result.players],
            },
            to=code,
            include_self=False,
        )
        if result.pending_task is not None:
            emit(*result.pending_task)
        if result.reveal is not None:
            emit(events.REVEAL_DATA, result.reveal)
        coordinator.broadcast_waiting_games()

    def on_start_game(cmd: StartGame) -> None:
        coordinator.start_game(cmd.game_code, cmd.player_id)

    def on_submit_prompt(cmd: SubmitPrompt) -> None:
        game = coordinator.submit_prompt(cmd.game_code, cmd.player_id, cmd.prompt_text)
        emit(events.SUBMISSION_RECEIVED, {"type": "prompt"})
        coordinator.check_phase_completion(game.id)

    def on_submit_drawing(cmd: SubmitDrawing) -> None:
        game = coordinator.submit_drawing(
            cmd.game_code, cmd.player_id, cmd.thread_id, cmd.drawing_data_url
        )
        emit(events.SUBMISSION_RECEIVED, {"type": "drawing"})
        coordinator.check_phase_completion(game.id)

    def on_submit_guess(cmd: SubmitGuess) -> None:
        game = coordinator.submit_guess(cmd.game_code, cmd.player_id, cmd.thread_id, cmd.guess_text)
        emit(events.SUBMISSION_RECEIVED, {"type": "guess"})
        coordinator.check_phase_completion(game.id)

    def on_get_random_prompt(cmd: GetRandomPrompt) -> None:
        emit(events.RANDOM_PROMPT_RESULT, {"prompt": coordinator.random_prompt()})

    dispatch: dict[str, Callable[[Any], None]] = {
        events.CREATE_GAME: on_create_game,
        events.JOIN_GAME: on_join_game,
        events.START_GAME: on_start_game,
        events.SUBMIT_PROMPT: on_submit_prompt,
        events.SUBMIT_DRAWING: on_submit_drawing,
        events.SUBMIT_GUESS: on_submit_guess,
        events.GET_RANDOM_PROMPT: on_get_random_prompt,
    }

    def handle(event: str, data: Any) -> None:
        try:
            command: Command = parse_command(event, data)
            dispatch[command.kind](command)
        except NotFoundError as e:
            emit(events.ERROR_MESSAGE, e.message)
            coordinator.broadcast_waiting_games()
        except GameError as e:
            logger.info("%s from %s rejected: %s", event, request.sid, e.message)
            emit(events.ERROR_MESSAGE, e.message)
        except Exception:
            logger.exception("Error handling %s from %s", event, request.sid)
            emit(events.ERROR_MESSAGE, GENERIC_ERROR)

    def _bind(event: str) -> Callable[..., None]:
        def handler(data: Any = None) -> None:
            handle(event, data)

        handler.__name__ = f"on_{event}"
        return handler

    for event in events.INBOUND_EVENTS:
        socketio.on_event(event, _bind(event))

    @socketio.on("connect")
    def on_connect(auth=None):
        logger.info("Client connected: %s", request.sid)
        try:
            emit(events.ACTIVE_GAMES_LIST, coordinator.waiting_games())
        except Exception:
            logger.exception("Failed to send waiting games to %s", request.sid)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        logger.info("Client disconnected: %s", request.sid)
        try:
            coordinator.leave(request.sid)
        except Exception:
            logger.exception("Error handling disconnect of %s", request.sid)
