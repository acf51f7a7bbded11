from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from flask_socketio import SocketIO


class Notifier(ABC):
    """Outbound side of the transport: room broadcast, per-session emit, global broadcast."""

    @abstractmethod
    def to_room(self, room: str, event: str, data: Any = None) -> None: ...

    @abstractmethod
    def to_session(self, session_id: str, event: str, data: Any = None) -> None: ...

    @abstractmethod
    def broadcast(self, event: str, data: Any = None) -> None: ...


class SocketIONotifier(Notifier):
    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def to_room(self, room: str, event: str, data: Any = None) -> None:
        self.socketio.emit(event, data, to=room)

    def to_session(self, session_id: str, event: str, data: Any = None) -> None:
        self.socketio.emit(event, data, to=session_id)

    def broadcast(self, event: str, data: Any = None) -> None:
        self.socketio.emit(event, data)
