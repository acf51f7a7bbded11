"""Shared test fixtures."""

from __future__ import annotations

import base64
import random
from typing import Any

import pytest

from telestrations.config import Config
from telestrations.db.engine import create_engine, create_session_factory, init_db
from telestrations.game.coordinator import GameCoordinator
from telestrations.game.timers import PhaseTimers
from telestrations.realtime.notifier import Notifier

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class RecordingNotifier(Notifier):
    """Keeps every outbound message as (target, event, data)."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, Any]] = []

    def to_room(self, room: str, event: str, data: Any = None) -> None:
        self.sent.append((f"room:{room}", event, data))

    def to_session(self, session_id: str, event: str, data: Any = None) -> None:
        self.sent.append((f"sid:{session_id}", event, data))

    def broadcast(self, event: str, data: Any = None) -> None:
        self.sent.append(("*", event, data))

    def events(self, event: str, target: str | None = None) -> list[Any]:
        return [d for t, e, d in self.sent if e == event and (target is None or t == target)]

    def clear(self) -> None:
        self.sent.clear()


class ManualScheduler:
    """Stands in for ``socketio.start_background_task``; tasks run on demand."""

    def __init__(self) -> None:
        self.tasks: list[tuple[Any, tuple]] = []
        self.slept: list[float] = []

    def start_background_task(self, target, *args) -> None:
        self.tasks.append((target, args))

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)

    def run_pending(self) -> int:
        tasks, self.tasks = self.tasks, []
        for target, args in tasks:
            target(*args)
        return len(tasks)


def config_dict(**overrides: Any) -> dict[str, Any]:
    values = {k: getattr(Config, k) for k in dir(Config) if k.isupper()}
    values.update(DEBUG_MODE=False, MIN_PLAYERS=2, DEFAULT_PHASE_SECONDS=60)
    values.update(overrides)
    return values


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://")
    factory = create_session_factory(engine)
    init_db(engine, factory)
    yield factory
    engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def timers(scheduler: ManualScheduler) -> PhaseTimers:
    return PhaseTimers(scheduler.start_background_task, scheduler.sleep, default_duration=60)


@pytest.fixture
def coordinator(session_factory, notifier, timers) -> GameCoordinator:
    coord = GameCoordinator(session_factory, notifier, timers, config_dict(), rng=random.Random(7))
    yield coord
    coord.shutdown()


@pytest.fixture
def app_and_socketio():
    from telestrations.server import create_app

    app, socketio = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": "sqlite://",
            "SOCKETIO_ASYNC_MODE": "threading",
            "ADMIN_TOKEN": "secret",
            "DEBUG_MODE": False,
        }
    )
    yield app, socketio
    app.extensions["telestrations"].shutdown()
