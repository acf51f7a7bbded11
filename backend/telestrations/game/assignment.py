"""Assignment of previous-step content to the players of the next phase.

Pure functions of (items, active players); the coordinator owns the side
effects (notification, timers, deactivating stalled threads).
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence

from ..utils.images import to_data_url
from .models import AssignmentItem, AssignmentResult, StepType

logger = logging.getLogger(__name__)

MISSING_IMAGE = "[Error: Invalid Image Data]"


def assign(
    items: Sequence[AssignmentItem],
    player_ids: Iterable[int],
    rng: random.Random | None = None,
) -> AssignmentResult:
    """Map each thread to a player who did not produce its latest step.

    Each player gets at most one thread. Among eligible players, those who did
    not write the thread's original prompt are preferred. A thread only goes
    back to its previous contributor when that contributor is the last active
    player. Threads that cannot be placed end up in ``unassigned``.
    """
    rng = rng or random.Random()
    players = list(dict.fromkeys(player_ids))
    result = AssignmentResult()

    if not players:
        result.unassigned = [item.thread_id for item in items]
        return result

    active = set(players)
    single_player = len(players) == 1

    pending = list(items)
    rng.shuffle(pending)
    # An item whose previous contributor is still playing has one candidate
    # fewer than the others, so it is placed first.
    constrained = [item for item in pending if item.previous_player_id in active]
    unconstrained = [item for item in pending if item.previous_player_id not in active]

    available = list(players)
    placed: list[AssignmentItem] = []

    for item in constrained + unconstrained:
        if not available:
            result.unassigned.append(item.thread_id)
            continue

        eligible = [pid for pid in available if pid != item.previous_player_id]
        if not eligible:
            if single_player:
                logger.warning(
                    "Thread %s goes back to previous player %s (only player left)",
                    item.thread_id,
                    item.previous_player_id,
                )
                _place(result, available, placed, item, item.previous_player_id)
            elif not _swap_in(result, available, placed, item, rng):
                result.unassigned.append(item.thread_id)
            continue

        preferred = [pid for pid in eligible if pid != item.original_player_id]
        _place(result, available, placed, item, rng.choice(preferred or eligible))

    if result.unassigned:
        logger.warning(
            "Ran out of players: %d thread(s) left without an assignee", len(result.unassigned)
        )
    return result


def _place(
    result: AssignmentResult,
    available: list[int],
    placed: list[AssignmentItem],
    item: AssignmentItem,
    player_id: int,
) -> None:
    result.assignments[item.thread_id] = player_id
    available.remove(player_id)
    placed.append(item)


def _swap_in(
    result: AssignmentResult,
    available: list[int],
    placed: list[AssignmentItem],
    item: AssignmentItem,
    rng: random.Random,
) -> bool:
    """Place an item whose only remaining candidate is its previous contributor.

    The leftover player takes over an already placed thread they did not
    contribute to, and the item receives that thread's former assignee.
    """
    leftover = item.previous_player_id
    candidates = [other for other in placed if other.previous_player_id != leftover]
    if not candidates:
        return False

    def keeps_preference(other: AssignmentItem) -> bool:
        return (
            other.original_player_id != leftover
            and result.assignments[other.thread_id] != item.original_player_id
        )

    other = rng.choice([c for c in candidates if keeps_preference(c)] or candidates)
    taken = result.assignments[other.thread_id]
    result.assignments[other.thread_id] = leftover
    result.assignments[item.thread_id] = taken
    available.remove(leftover)
    placed.append(item)
    return True


def assign_to_originators(
    items: Sequence[AssignmentItem], player_ids: Iterable[int]
) -> AssignmentResult:
    """Initial drawing: every prompt goes back to the player who wrote it."""
    active = set(player_ids)
    result = AssignmentResult()
    for item in items:
        owner = item.original_player_id
        if owner in active and owner not in result.assignments.values():
            result.assignments[item.thread_id] = owner
        else:
            result.unassigned.append(item.thread_id)
    return result


def task_content(item: AssignmentItem, step_type: StepType) -> str:
    """Content shown to the assignee: a data URL to guess from, or text to draw."""
    if step_type == StepType.GUESS:
        if not item.image_content:
            logger.error("Thread %s has no image content to guess from", item.thread_id)
            return MISSING_IMAGE
        return to_data_url(item.image_content)
    return item.text_content or ""
