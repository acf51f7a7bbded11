from __future__ import annotations

import logging
import math
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import RLock
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PhaseTimer:
    game_id: int
    phase: str
    duration: float
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: float = field(default_factory=time.monotonic)

    def remaining(self) -> int:
        """Whole seconds left, rounded up."""
        return max(0, math.ceil(self.duration - (time.monotonic() - self.started_at)))


class PhaseTimers:
    """At most one pending phase timer per game.

    Scheduling goes through ``start_background_task`` and ``sleep`` (the
    Socket.IO server's), so a timer is a cooperative task under eventlet and
    a thread in ``threading`` mode. A replaced or cancelled timer still wakes
    up, sees it is no longer current, and does nothing.
    """

    def __init__(
        self,
        start_background_task: Callable[..., Any],
        sleep: Callable[[float], Any],
        default_duration: int = 60,
    ) -> None:
        self._start_background_task = start_background_task
        self._sleep = sleep
        self.default_duration = default_duration
        self._lock = RLock()
        self._timers: dict[int, PhaseTimer] = {}

    def normalize_duration(self, duration: Any) -> int:
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
            return self.default_duration
        return int(duration)

    def start(
        self,
        game_id: int,
        phase: str,
        duration: Any,
        on_expire: Callable[[PhaseTimer], None],
    ) -> PhaseTimer:
        timer = PhaseTimer(game_id=game_id, phase=phase, duration=self.normalize_duration(duration))
        with self._lock:
            replaced = self._timers.get(game_id)
            self._timers[game_id] = timer
        if replaced is not None:
            logger.info("Game %s: replacing %s timer with %s timer", game_id, replaced.phase, phase)
        logger.info("Game %s: starting %s timer (%ss)", game_id, phase, timer.duration)
        self._start_background_task(self._run, timer, on_expire)
        return timer

    def _run(self, timer: PhaseTimer, on_expire: Callable[[PhaseTimer], None]) -> None:
        self._sleep(timer.duration)
        with self._lock:
            if self._timers.get(timer.game_id) is not timer:
                return
            del self._timers[timer.game_id]
        logger.info("Game %s: %s timer expired", timer.game_id, timer.phase)
        try:
            on_expire(timer)
        except Exception:
            logger.exception("Game %s: error handling %s timer expiry", timer.game_id, timer.phase)

    def cancel(self, game_id: int) -> bool:
        with self._lock:
            return self._timers.pop(game_id, None) is not None

    def get(self, game_id: int) -> PhaseTimer | None:
        with self._lock:
            return self._timers.get(game_id)

    def cancel_all(self) -> None:
        with self._lock:
            self._timers.clear()
