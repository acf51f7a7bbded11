from __future__ import annotations


class GameError(Exception):
    """Base error reported back to the client that caused it."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    code = "invalid_payload"


class ConflictError(GameError):
    code = "conflict"


class NotFoundError(GameError):
    code = "not_found"


class InvalidTransition(GameError):
    code = "invalid_transition"
