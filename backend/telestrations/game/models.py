from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class GameStatus(str, Enum):
    WAITING = "waiting"
    PROMPTING = "prompting"
    INITIAL_DRAWING = "initial_drawing"
    GUESSING = "guessing"
    DRAWING = "drawing"
    REVEALING = "revealing"
    FINISHED = "finished"


class StepType(str, Enum):
    PROMPT = "prompt"
    DRAWING = "drawing"
    GUESS = "guess"


# Statuses in which no submissions are expected.
IDLE_STATUSES = frozenset({GameStatus.WAITING, GameStatus.REVEALING, GameStatus.FINISHED})


@dataclass
class GameSettings:
    id: int
    code: str
    status: GameStatus
    current_round: int
    current_step_type: StepType | None
    num_rounds: int
    prompt_time_limit_sec: int
    draw_time_limit_sec: int
    guess_time_limit_sec: int
    game_master_player_id: int | None = None

    def time_limit(self, step_type: StepType) -> int:
        if step_type == StepType.PROMPT:
            return self.prompt_time_limit_sec
        if step_type == StepType.DRAWING:
            return self.draw_time_limit_sec
        return self.guess_time_limit_sec


@dataclass
class PlayerInfo:
    id: int
    name: str
    session_id: str | None = None

    def to_public(self) -> dict:
        return {"playerId": self.id, "playerName": self.name}


@dataclass
class AssignmentItem:
    """Content from the previous step of one active thread, ready to hand off."""

    thread_id: int
    previous_player_id: int
    original_player_id: int
    text_content: str | None = None
    image_content: bytes | None = None


@dataclass
class AssignmentResult:
    assignments: dict[int, int] = field(default_factory=dict)  # thread_id -> player_id
    unassigned: list[int] = field(default_factory=list)  # thread ids


@dataclass
class Task:
    task: str
    thread_id: int
    content: str
    duration: int

    def to_payload(self) -> dict:
        return {
            "task": self.task,
            "threadId": self.thread_id,
            "content": self.content,
            "duration": self.duration,
        }


@dataclass
class PhaseAssignments:
    """Thread -> player mapping valid for exactly one phase."""

    step_type: StepType
    step_number: int
    assignments: dict[int, int] = field(default_factory=dict)

    def matches(self, step_number: int, step_type: StepType) -> bool:
        return self.step_number == step_number and self.step_type == step_type


@dataclass(frozen=True)
class Transition:
    status: GameStatus
    round: int
    step_type: StepType | None
    # Step number whose content feeds the next phase, None for the reveal.
    source_step: int | None = None
    to_originator: bool = False
    timer_phase: str | None = None

    @property
    def is_reveal(self) -> bool:
        return self.status == GameStatus.REVEALING


@dataclass
class RevealStep:
    step_number: int
    step_type: str
    player_id: int
    player_name: str
    player_is_active: bool
    content: str

    def to_payload(self) -> dict:
        return {
            "stepNumber": self.step_number,
            "stepType": self.step_type,
            "playerId": self.player_id,
            "playerName": self.player_name,
            "playerIsActive": self.player_is_active,
            "content": self.content,
        }


@dataclass
class RevealThread:
    thread_id: int
    original_player_id: int
    original_player_name: str
    steps: list[RevealStep] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "threadId": self.thread_id,
            "originalPlayerId": self.original_player_id,
            "originalPlayerName": self.original_player_name,
            "steps": [s.to_payload() for s in self.steps],
        }
