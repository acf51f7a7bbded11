"""Phase state machine.

Step numbering: the prompt is step 0 and the first drawing step 1. From
round 1 on, the guess of round R is step ``2R`` and the drawing of round R
(R >= 2) is step ``2R - 1``. Every transition below is derived from that rule.
"""

from __future__ import annotations

from .errors import InvalidTransition
from .models import GameStatus, StepType, Transition

PROMPT_STEP = 0
INITIAL_DRAWING_STEP = 1


def expected_step(status: GameStatus | str, current_round: int) -> tuple[int, StepType] | None:
    """Step number and type the current phase collects, None when idle."""
    status = GameStatus(status)
    if status == GameStatus.PROMPTING:
        return PROMPT_STEP, StepType.PROMPT
    if status == GameStatus.INITIAL_DRAWING:
        return INITIAL_DRAWING_STEP, StepType.DRAWING
    if status == GameStatus.GUESSING:
        return current_round * 2, StepType.GUESS
    if status == GameStatus.DRAWING:
        return current_round * 2 - 1, StepType.DRAWING
    return None


def next_transition(status: GameStatus | str, current_round: int, num_rounds: int) -> Transition:
    status = GameStatus(status)

    if status == GameStatus.PROMPTING:
        return Transition(
            status=GameStatus.INITIAL_DRAWING,
            round=0,
            step_type=StepType.DRAWING,
            source_step=PROMPT_STEP,
            to_originator=True,
            timer_phase="drawing",
        )

    if status == GameStatus.INITIAL_DRAWING:
        return Transition(
            status=GameStatus.GUESSING,
            round=1,
            step_type=StepType.GUESS,
            source_step=INITIAL_DRAWING_STEP,
            timer_phase="guessing",
        )

    if status == GameStatus.GUESSING:
        if current_round < num_rounds:
            return Transition(
                status=GameStatus.DRAWING,
                round=current_round + 1,
                step_type=StepType.DRAWING,
                source_step=current_round * 2,
                timer_phase="drawing",
            )
        return Transition(status=GameStatus.REVEALING, round=current_round, step_type=None)

    if status == GameStatus.DRAWING:
        return Transition(
            status=GameStatus.GUESSING,
            round=current_round,
            step_type=StepType.GUESS,
            source_step=current_round * 2 - 1,
            timer_phase="guessing",
        )

    raise InvalidTransition(f"No transition out of status '{status.value}'.")


def timer_phase_for(status: GameStatus | str) -> str | None:
    status = GameStatus(status)
    if status == GameStatus.PROMPTING:
        return "prompting"
    if status in (GameStatus.INITIAL_DRAWING, GameStatus.DRAWING):
        return "drawing"
    if status == GameStatus.GUESSING:
        return "guessing"
    return None
