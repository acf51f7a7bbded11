from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock

from .models import PhaseAssignments


@dataclass
class GameSession:
    """In-memory state of a running game: its lock and the current phase's assignments.

    Lives from ``start_game`` until the game is finished.
    """

    game_id: int
    code: str
    lock: RLock = field(default_factory=RLock)
    assignments: PhaseAssignments | None = None


class GameSessions:
    def __init__(self) -> None:
        # Guards the two dicts only; never held while a game handler runs.
        self._lock = RLock()
        self._sessions: dict[int, GameSession] = {}
        self._game_locks: dict[int, RLock] = {}

    def _lock_for(self, game_id: int) -> RLock:
        with self._lock:
            lock = self._game_locks.get(game_id)
            if lock is None:
                lock = self._game_locks[game_id] = RLock()
            return lock

    def create(self, game_id: int, code: str) -> GameSession:
        with self._lock:
            session = self._sessions.get(game_id)
            if session is None:
                session = GameSession(game_id=game_id, code=code, lock=self._lock_for(game_id))
                self._sessions[game_id] = session
            return session

    def get(self, game_id: int) -> GameSession | None:
        with self._lock:
            return self._sessions.get(game_id)

    def drop(self, game_id: int) -> GameSession | None:
        with self._lock:
            return self._sessions.pop(game_id, None)

    def forget(self, game_id: int) -> None:
        """Drop a deleted game's session and lock."""
        with self._lock:
            self._sessions.pop(game_id, None)
            self._game_locks.pop(game_id, None)

    def clear_assignments(self, game_id: int) -> None:
        session = self.get(game_id)
        if session is not None:
            session.assignments = None

    def all(self) -> list[GameSession]:
        with self._lock:
            return list(self._sessions.values())

    @contextmanager
    def locked(self, game_id: int) -> Iterator[GameSession | None]:
        """Serialize handlers of one game.

        Every game has its own lock from the first time it is touched, so
        games without a session (not started, or already finished) never
        block each other.
        """
        with self._lock_for(game_id):
            yield self.get(game_id)
