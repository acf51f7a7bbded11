"""Game flow: lobby, submissions, phase completion, transitions and reveal.

``GameCoordinator`` owns the in-memory per-game state (``GameSessions``
and ``PhaseTimers``); everything durable goes through ``Repository``.
Handlers for one game run under that game's lock, so a submission and a
timer expiry never act on the same phase at once.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from ..db.engine import session_scope
from ..db.repository import Repository
from ..realtime import events
from ..realtime.notifier import Notifier
from ..utils.images import parse_data_url
from .assignment import assign, assign_to_originators, task_content
from .errors import ConflictError, NotFoundError, ValidationError
from .models import (
    IDLE_STATUSES,
    GameSettings,
    GameStatus,
    PhaseAssignments,
    PlayerInfo,
    StepType,
    Task,
    Transition,
)
from .phases import PROMPT_STEP, expected_step, next_transition, timer_phase_for
from .prompts import generate_game_code, normalize_code
from .reveal import build_reveal, reveal_payload
from .session import GameSessions
from .timers import PhaseTimer, PhaseTimers

logger = logging.getLogger(__name__)

TASK_EVENTS = {StepType.DRAWING: events.TASK_DRAW, StepType.GUESS: events.TASK_GUESS}
TASK_NAMES = {StepType.DRAWING: "draw", StepType.GUESS: "guess"}
SUBMIT_STATUSES = {
    StepType.PROMPT: (GameStatus.PROMPTING,),
    StepType.DRAWING: (GameStatus.INITIAL_DRAWING, GameStatus.DRAWING),
    StepType.GUESS: (GameStatus.GUESSING,),
}


def players_payload(players: list[PlayerInfo]) -> list[dict]:
    return [p.to_public() for p in players]


@dataclass
class JoinResult:
    game: GameSettings
    player_id: int
    player_name: str
    players: list[PlayerInfo]
    is_rejoin: bool = False
    reveal: dict | None = None
    # (event, payload) of an unfinished task from the current phase.
    pending_task: tuple[str, dict] | None = None

    def to_payload(self) -> dict:
        return {
            "gameCode": self.game.code,
            "gameId": self.game.id,
            "playerId": self.player_id,
            "playerName": self.player_name,
            "isGameMaster": self.game.game_master_player_id == self.player_id,
            "players": players_payload(self.players),
            "gameStatus": self.game.status.value,
            "currentRound": self.game.current_round,
            "isRejoin": self.is_rejoin,
        }


@dataclass
class LeaveResult:
    game: GameSettings
    player_id: int
    players: list[PlayerInfo] = field(default_factory=list)
    game_master_player_id: int | None = None


class GameCoordinator:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        notifier: Notifier,
        timers: PhaseTimers,
        config: Mapping[str, Any],
        rng: random.Random | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.notifier = notifier
        self.timers = timers
        self.config = config
        self.sessions = GameSessions()
        self._rng = rng or random.Random()

    @contextmanager
    def repository(self) -> Iterator[Repository]:
        with session_scope(self._session_factory) as session:
            yield Repository(session)

    # --- Lobby ---

    def waiting_games(self) -> list[dict]:
        with self.repository() as repo:
            return repo.list_waiting_games()

    def broadcast_waiting_games(self) -> None:
        try:
            games = self.waiting_games()
        except Exception:
            logger.exception("Failed to load waiting games for broadcast")
            return
        self.notifier.broadcast(events.ACTIVE_GAMES_LIST, games)

    def random_prompt(self) -> str:
        with self.repository() as repo:
            return repo.get_random_prompt()

    def create_game(
        self,
        session_id: str | None,
        player_name: str | None,
        game_code: str | None = None,
        num_rounds: int | None = None,
        prompt_time: int | None = None,
        draw_time: int | None = None,
        guess_time: int | None = None,
    ) -> dict:
        name = self._clean_name(player_name or "Admin")
        requested = normalize_code(game_code)
        if requested:
            code = requested
        elif self.config.get("DEBUG_MODE"):
            code = normalize_code(self.config.get("DEBUG_GAME_CODE", "DEBUG"))
        else:
            code = ""

        settings = {
            "num_rounds": _positive(num_rounds, self.config.get("DEFAULT_NUM_ROUNDS", 2)),
            "prompt_time": _positive(prompt_time, self.config.get("DEFAULT_PROMPT_TIME_SEC", 60)),
            "draw_time": _positive(draw_time, self.config.get("DEFAULT_DRAW_TIME_SEC", 300)),
            "guess_time": _positive(guess_time, self.config.get("DEFAULT_GUESS_TIME_SEC", 120)),
        }

        if code:
            with self.repository() as repo:
                game_id, player_id = repo.create_game_with_player(code, name, session_id, **settings)
        else:
            game_id = player_id = None
            for _ in range(5):
                code = generate_game_code()
                try:
                    with self.repository() as repo:
                        game_id, player_id = repo.create_game_with_player(
                            code, name, session_id, **settings
                        )
                    break
                except ConflictError:
                    logger.info("Generated game code %s already in use, retrying", code)
            if game_id is None:
                raise ConflictError("Failed to create game (code conflict). Please try again.")

        logger.info(
            "Game %s created by %s (player %s): rounds=%s times=%s/%s/%s",
            code,
            name,
            player_id,
            settings["num_rounds"],
            settings["prompt_time"],
            settings["draw_time"],
            settings["guess_time"],
        )
        return {
            "gameCode": code,
            "gameId": game_id,
            "playerId": player_id,
            "playerName": name,
            "isGameMaster": True,
            "players": [{"playerId": player_id, "playerName": name}],
        }

    def join_game(self, session_id: str | None, player_name: str | None, game_code: str | None) -> JoinResult:
        code = normalize_code(game_code)
        if not code or not (player_name or "").strip():
            raise ValidationError("Please provide game code and name.")
        name = self._clean_name(player_name)

        with self.repository() as repo:
            game = repo.get_game(code=code)
        if game is None:
            raise NotFoundError("Game not found. It might have started or ended.")

        with self.sessions.locked(game.id) as session:
            with self.repository() as repo:
                game = repo.get_game(game.id)
                if game is None:
                    raise NotFoundError("Game not found. It might have started or ended.")
                active_ids = {p.id for p in repo.get_active_players(game.id)}

                inactive_id = repo.find_inactive_player(game.id, name)
                if inactive_id is not None:
                    repo.reactivate_player(inactive_id, session_id)
                    player_id = inactive_id
                    is_rejoin = True
                    logger.info(
                        "Player %s (%s) rejoined game %s (%s)", name, player_id, code, game.status.value
                    )
                else:
                    if game.status != GameStatus.WAITING:
                        raise ConflictError("Game has already started or finished.")
                    player_id = repo.add_player(game.id, name, session_id)
                    is_rejoin = False
                    logger.info("Player %s (%s) joined game %s", name, player_id, code)

                # Everyone, the game master included, may have left the lobby.
                if game.status == GameStatus.WAITING and game.game_master_player_id not in active_ids:
                    repo.set_game_master(game.id, player_id)
                    logger.info("Player %s set as game master of %s", player_id, code)

                game = repo.get_game(game.id)
                players = repo.get_active_players(game.id)
                pending_task = None
                if is_rejoin and game.status not in IDLE_STATUSES and session is not None:
                    pending_task = self._pending_task(repo, game, session.assignments, player_id)

        result = JoinResult(
            game=game,
            player_id=player_id,
            player_name=name,
            players=players,
            is_rejoin=is_rejoin,
            pending_task=pending_task,
        )
        if game.status in (GameStatus.REVEALING, GameStatus.FINISHED):
            result.reveal = self.reveal_for(game.id)
        return result

    def _pending_task(
        self, repo: Repository, game: GameSettings, phase: PhaseAssignments | None, player_id: int
    ) -> tuple[str, dict] | None:
        """Task event still owed to a rejoining player in the current phase, if any."""
        step_number, step_type = expected_step(game.status, game.current_round)
        if phase is None or not phase.matches(step_number, step_type):
            return None
        thread_id = next((tid for tid, pid in phase.assignments.items() if pid == player_id), None)
        if thread_id is None or thread_id not in repo.get_active_thread_ids(game.id):
            return None
        if any(tid == thread_id for tid, _ in repo.get_submitted_steps(game.id, step_number)):
            return None

        timer = self.timers.get(game.id)
        if timer is not None:
            duration = timer.remaining()
        else:
            duration = self.timers.normalize_duration(game.time_limit(step_type))
        if step_type == StepType.PROMPT:
            return events.TASK_PROMPT, {"duration": duration}

        item = next(
            (i for i in repo.get_previous_step_items(game.id, step_number - 1) if i.thread_id == thread_id),
            None,
        )
        if item is None:
            return None
        task = Task(
            task=TASK_NAMES[step_type],
            thread_id=thread_id,
            content=task_content(item, step_type),
            duration=duration,
        )
        logger.info(
            "Game %s: resending %s task for thread %s to player %s",
            game.code,
            step_type.value,
            thread_id,
            player_id,
        )
        return TASK_EVENTS[step_type], task.to_payload()

    def leave(self, session_id: str) -> LeaveResult | None:
        """Deactivate the player bound to a disconnected session."""
        with self.repository() as repo:
            found = repo.find_player_by_session(session_id)
            if found is None:
                return None
            player, game = found
            repo.deactivate_player(player.id)
            players = repo.get_active_players(game.id)
            gm_id = game.game_master_player_id
            if game.status == GameStatus.WAITING and gm_id == player.id and players:
                gm_id = players[0].id
                repo.set_game_master(game.id, gm_id)
                logger.info("Game %s: game master handed to player %s", game.code, gm_id)

        logger.info("Player %s left game %s (%s)", player.id, game.code, game.status.value)
        if players:
            self.notifier.to_room(
                game.code,
                events.PLAYER_LEFT,
                {
                    "playerId": player.id,
                    "players": players_payload(players),
                    "gameMasterPlayerId": gm_id,
                },
            )
        if game.status == GameStatus.WAITING:
            self.broadcast_waiting_games()
        elif game.status not in IDLE_STATUSES:
            self.check_phase_completion(game.id)
        return LeaveResult(game=game, player_id=player.id, players=players, game_master_player_id=gm_id)

    # --- Game start ---

    def start_game(self, game_code: str | None, player_id: int | None) -> None:
        code = normalize_code(game_code)
        with self.repository() as repo:
            game = repo.get_game(code=code) if code else None
        if game is None:
            raise NotFoundError("Game not found.")

        with self.sessions.locked(game.id):
            with self.repository() as repo:
                game = repo.get_game(game.id)
                if player_id != game.game_master_player_id:
                    raise ConflictError("Only the Game Master can start.")
                if game.status != GameStatus.WAITING:
                    raise ConflictError("Game already started/finished.")
                players = repo.get_active_players(game.id)
                min_players = self.config.get("MIN_PLAYERS", 2)
                if len(players) < min_players:
                    raise ConflictError(f"Need at least {min_players} players.")
                repo.update_game_status(game.id, GameStatus.PROMPTING, StepType.PROMPT, 0)
                thread_ids = repo.create_threads_for_players(game.id, [p.id for p in players])

            session = self.sessions.create(game.id, game.code)
            session.assignments = PhaseAssignments(
                step_type=StepType.PROMPT,
                step_number=PROMPT_STEP,
                assignments={tid: p.id for tid, p in zip(thread_ids, players)},
            )
            duration = self.timers.normalize_duration(game.prompt_time_limit_sec)
            self.notifier.to_room(game.code, events.GAME_STARTED, {"players": players_payload(players)})
            self.notifier.to_room(game.code, events.TASK_PROMPT, {"duration": duration})
            self._start_timer(game, "prompting", duration, GameStatus.PROMPTING, 0)

        logger.info("Game %s started with %d players", game.code, len(players))
        self.broadcast_waiting_games()

    # --- Submissions ---

    def submit_prompt(self, game_code: str | None, player_id: int | None, prompt_text: str | None) -> GameSettings:
        text = self._clean_text(prompt_text, "Prompt cannot be empty.")
        return self._submit(game_code, player_id, None, StepType.PROMPT, text=text)

    def submit_drawing(
        self,
        game_code: str | None,
        player_id: int | None,
        thread_id: int | None,
        drawing_data_url: str | None,
    ) -> GameSettings:
        if not drawing_data_url or thread_id is None:
            raise ValidationError("Drawing data or context missing.")
        image = parse_data_url(drawing_data_url)
        if image is None:
            raise ValidationError("Invalid drawing data format.")
        return self._submit(game_code, player_id, thread_id, StepType.DRAWING, image=image)

    def submit_guess(
        self,
        game_code: str | None,
        player_id: int | None,
        thread_id: int | None,
        guess_text: str | None,
    ) -> GameSettings:
        if thread_id is None:
            raise ValidationError("Guess or context missing.")
        text = self._clean_text(guess_text, "Guess or context missing.")
        return self._submit(game_code, player_id, thread_id, StepType.GUESS, text=text)

    def _submit(
        self,
        game_code: str | None,
        player_id: int | None,
        thread_id: int | None,
        step_type: StepType,
        text: str | None = None,
        image: bytes | None = None,
    ) -> GameSettings:
        code = normalize_code(game_code)
        if player_id is None:
            raise ValidationError("Player missing.")
        with self.repository() as repo:
            game = repo.get_game(code=code) if code else None
        if game is None:
            raise NotFoundError("Game not found.")

        with self.sessions.locked(game.id) as session:
            with self.repository() as repo:
                game = repo.get_game(game.id)
                if game.status not in SUBMIT_STATUSES[step_type]:
                    raise ConflictError(f"Not accepting a {step_type.value} right now.")
                step_number, _ = expected_step(game.status, game.current_round)

                player = repo.get_player(player_id)
                if player is None or player.game_id != game.id or not player.is_active:
                    raise NotFoundError("Player not found in this game.")

                if step_type == StepType.PROMPT:
                    thread_id = repo.get_thread_id_for_player_prompt(game.id, player_id)
                    if thread_id is None:
                        raise NotFoundError("Could not find active thread for player prompt.")
                else:
                    thread = repo.get_thread(thread_id)
                    if thread is None or thread.game_id != game.id:
                        raise NotFoundError(f"Thread {thread_id} not found.")
                    phase = session.assignments if session is not None else None
                    if phase is not None and phase.matches(step_number, step_type):
                        if phase.assignments.get(thread_id) != player_id:
                            raise ConflictError("This task is not assigned to you.")

                repo.save_step(
                    thread_id,
                    player_id,
                    step_number,
                    step_type,
                    text_content=text,
                    image_content=image,
                )
            logger.info(
                "Game %s: player %s submitted %s step %s for thread %s",
                game.code,
                player_id,
                step_type.value,
                step_number,
                thread_id,
            )
        return game

    # --- Phase completion ---

    def check_phase_completion(self, game_id: int, forced: bool = False) -> None:
        with self.sessions.locked(game_id) as session:
            try:
                self._check_phase_completion(game_id, forced)
            except Exception:
                logger.exception("Error checking phase completion for game %s", game_id)
                room = session.code if session is not None else None
                if room:
                    self.notifier.to_room(
                        room, events.ERROR_MESSAGE, "Internal server error checking game progress."
                    )
                self._ensure_timer(game_id)

    def _check_phase_completion(self, game_id: int, forced: bool) -> None:
        with self.repository() as repo:
            game = repo.get_game(game_id)
            if game is None or game.status in IDLE_STATUSES:
                logger.debug("Game %s not in a checkable state", game_id)
                return
            step_number, step_type = expected_step(game.status, game.current_round)
            active_threads = repo.get_active_thread_ids(game_id)
            required = len(active_threads)
            submitted = repo.count_submitted_steps(game_id, step_number, step_type)

        logger.info(
            "Game %s: %s round %s expects step %s (%s): %d/%d submitted%s",
            game.code,
            game.status.value,
            game.current_round,
            step_number,
            step_type.value,
            submitted,
            required,
            " (forced)" if forced else "",
        )

        if required == 0 and not forced:
            self._end_game(game, "No active threads left.")
            return

        if submitted >= required:
            self._complete_phase(game)
            return

        if not forced:
            return

        remaining = self._deactivate_dropouts(game, step_number, step_type, active_threads)
        if remaining <= 0:
            self._end_game(game, "All active threads ended due to missed steps.")
            return
        self._complete_phase(game)

    def _deactivate_dropouts(
        self, game: GameSettings, step_number: int, step_type: StepType, active_threads: list[int]
    ) -> int:
        """Deactivate threads whose assignee missed the deadline; returns threads left."""
        session = self.sessions.get(game.id)
        phase = session.assignments if session is not None else None
        if phase is None or not phase.matches(step_number, step_type):
            logger.warning(
                "Game %s: no assignments recorded for step %s (%s); not deactivating anyone",
                game.code,
                step_number,
                step_type.value,
            )
            return len(active_threads)

        active = set(active_threads)
        with self.repository() as repo:
            done = {thread_id for thread_id, _ in repo.get_submitted_steps(game.id, step_number)}
            missed = []
            for thread_id, player_id in phase.assignments.items():
                if thread_id in active and thread_id not in done:
                    logger.info(
                        "Game %s: player %s missed step %s for thread %s",
                        game.code,
                        player_id,
                        step_number,
                        thread_id,
                    )
                    missed.append(thread_id)
            repo.deactivate_threads(missed)
        return len(active_threads) - len(missed)

    def _complete_phase(self, game: GameSettings) -> None:
        self.timers.cancel(game.id)
        self.sessions.clear_assignments(game.id)
        self._transition(game)

    # --- Transitions ---

    def _transition(self, game: GameSettings) -> None:
        transition = next_transition(game.status, game.current_round, game.num_rounds)
        logger.info(
            "Game %s: %s round %s -> %s round %s",
            game.code,
            game.status.value,
            game.current_round,
            transition.status.value,
            transition.round,
        )
        with self.repository() as repo:
            repo.update_game_status(game.id, transition.status, transition.step_type, transition.round)

        if transition.is_reveal:
            self.trigger_reveal(game)
        else:
            self._assign_tasks(game, transition)

    def _assign_tasks(self, game: GameSettings, transition: Transition) -> None:
        step_type = transition.step_type
        with self.repository() as repo:
            players = repo.get_active_players(game.id)
            items = repo.get_previous_step_items(game.id, transition.source_step)
            active_threads = repo.get_active_thread_ids(game.id)

            if not players or not items:
                logger.warning(
                    "Game %s: nothing to assign (%d players, %d items from step %s)",
                    game.code,
                    len(players),
                    len(items),
                    transition.source_step,
                )
                result = None
            else:
                player_ids = [p.id for p in players]
                if transition.to_originator:
                    result = assign_to_originators(items, player_ids)
                else:
                    result = assign(items, player_ids, self._rng)

                with_content = {item.thread_id for item in items}
                stalled = [tid for tid in active_threads if tid not in with_content]
                stalled.extend(result.unassigned)
                if stalled:
                    logger.warning("Game %s: deactivating stalled threads %s", game.code, stalled)
                    repo.deactivate_threads(stalled)

            if not result or not result.assignments:
                repo.update_game_status(game.id, GameStatus.REVEALING, None, transition.round)

        if not result or not result.assignments:
            self.trigger_reveal(game)
            return

        step_number, _ = expected_step(transition.status, transition.round)
        session = self.sessions.create(game.id, game.code)
        session.assignments = PhaseAssignments(
            step_type=step_type, step_number=step_number, assignments=dict(result.assignments)
        )

        duration = self.timers.normalize_duration(game.time_limit(step_type))
        by_thread = {item.thread_id: item for item in items}
        sessions_by_player = {p.id: p.session_id for p in players}
        for thread_id, player_id in result.assignments.items():
            task = Task(
                task=TASK_NAMES[step_type],
                thread_id=thread_id,
                content=task_content(by_thread[thread_id], step_type),
                duration=duration,
            )
            sid = sessions_by_player.get(player_id)
            if sid:
                self.notifier.to_session(sid, TASK_EVENTS[step_type], task.to_payload())
            else:
                logger.warning(
                    "Game %s: no session for player %s, task for thread %s not sent",
                    game.code,
                    player_id,
                    thread_id,
                )

        logger.info("Game %s: assigned %d %s tasks", game.code, len(result.assignments), step_type.value)
        self._start_timer(game, transition.timer_phase, duration, transition.status, transition.round)

    # --- Timers ---

    def _start_timer(
        self, game: GameSettings, phase: str, duration: int, status: GameStatus, current_round: int
    ) -> None:
        self.notifier.to_room(game.code, events.START_TIMER, {"phase": phase, "duration": duration})

        def on_expire(timer: PhaseTimer) -> None:
            self._on_timer_expired(game.id, game.code, status, current_round, timer)

        self.timers.start(game.id, phase, duration, on_expire)

    def _on_timer_expired(
        self, game_id: int, code: str, status: GameStatus, current_round: int, timer: PhaseTimer
    ) -> None:
        with self.sessions.locked(game_id):
            with self.repository() as repo:
                game = repo.get_game(game_id)
            if game is None:
                logger.warning("Timer ended for game %s (id %s) but the game no longer exists", code, game_id)
                return
            if (game.status, game.current_round) != (status, current_round):
                logger.info(
                    "Game %s: stale %s timer ignored (now %s round %s)",
                    code,
                    timer.phase,
                    game.status.value,
                    game.current_round,
                )
                return
            self.notifier.to_room(code, events.TIMES_UP, {"phase": timer.phase})
            self.check_phase_completion(game_id, forced=True)

    def _ensure_timer(self, game_id: int) -> None:
        """Keep a failed phase pending on a timer so it is eventually forced."""
        if self.timers.get(game_id) is not None:
            return
        try:
            with self.repository() as repo:
                game = repo.get_game(game_id)
        except Exception:
            logger.exception("Game %s: could not reload game to re-arm its timer", game_id)
            return
        if game is None or game.status in IDLE_STATUSES:
            return
        _, step_type = expected_step(game.status, game.current_round)
        self._start_timer(
            game,
            timer_phase_for(game.status),
            self.timers.normalize_duration(game.time_limit(step_type)),
            game.status,
            game.current_round,
        )

    # --- End of game ---

    def _end_game(self, game: GameSettings, message: str) -> None:
        self.timers.cancel(game.id)
        self.sessions.drop(game.id)
        with self.repository() as repo:
            repo.update_game_status(game.id, GameStatus.FINISHED)
        logger.info("Game %s finished: %s", game.code, message)
        self.notifier.to_room(game.code, events.GAME_OVER, {"message": message})
        self.broadcast_waiting_games()

    def trigger_reveal(self, game: GameSettings) -> None:
        self.timers.cancel(game.id)
        self.sessions.drop(game.id)
        try:
            with self.repository() as repo:
                threads = build_reveal(repo, game.id)
                current = repo.get_game(game.id)
                if current is not None and current.status != GameStatus.FINISHED:
                    repo.update_game_status(game.id, GameStatus.FINISHED, None, current.current_round)
            self.notifier.to_room(game.code, events.REVEAL_DATA, reveal_payload(threads))
            logger.info("Reveal sent for game %s (%d active threads)", game.code, len(threads))
            if not threads:
                self.notifier.to_room(game.code, events.GAME_OVER, {"message": "No active threads left."})
        except Exception:
            logger.exception("Error triggering reveal for game %s", game.code)
            self.notifier.to_room(game.code, events.ERROR_MESSAGE, "Failed to load reveal data.")
        self.broadcast_waiting_games()

    def reveal_for(self, game_id: int) -> dict:
        with self.repository() as repo:
            return reveal_payload(build_reveal(repo, game_id))

    def discard(self, game_id: int) -> None:
        """Forget the in-memory state of a game that no longer exists."""
        self.timers.cancel(game_id)
        self.sessions.forget(game_id)

    def shutdown(self) -> None:
        self.timers.cancel_all()
        for session in self.sessions.all():
            self.sessions.drop(session.game_id)

    # --- Validation ---

    def _clean_name(self, raw: str | None) -> str:
        name = (raw or "").strip()
        max_len = self.config.get("MAX_NAME_LENGTH", 24)
        if not name or len(name) > max_len:
            raise ValidationError(f"Name must be 1-{max_len} characters.")
        if "<" in name or ">" in name or any(ord(ch) < 32 for ch in name):
            raise ValidationError("Name contains invalid characters.")
        return name

    def _clean_text(self, raw: str | None, empty_message: str) -> str:
        text = raw.strip() if isinstance(raw, str) else ""
        if not text:
            raise ValidationError(empty_message)
        max_len = self.config.get("MAX_TEXT_LENGTH", 200)
        if len(text) > max_len:
            raise ValidationError(f"Text must be at most {max_len} characters.")
        return text


def _positive(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return int(default)
    return number if number > 0 else int(default)
