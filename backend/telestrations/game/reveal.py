from __future__ import annotations

import logging

from ..db.repository import Repository
from ..utils.images import to_data_url
from .models import RevealStep, RevealThread, StepType

logger = logging.getLogger(__name__)

MISSING_DRAWING = "[Error: Drawing data missing]"


def build_reveal(repo: Repository, game_id: int) -> list[RevealThread]:
    """Full history of every active thread, ordered by original author name."""
    threads: dict[int, RevealThread] = {}
    for thread, step, original_name, author_name, author_active in repo.get_reveal_rows(game_id):
        entry = threads.get(thread.id)
        if entry is None:
            entry = RevealThread(
                thread_id=thread.id,
                original_player_id=thread.original_player_id,
                original_player_name=original_name,
            )
            threads[thread.id] = entry

        if step.step_type == StepType.DRAWING.value:
            if step.image_content:
                content = to_data_url(step.image_content)
            else:
                logger.warning("Drawing step %s of thread %s has no image", step.id, thread.id)
                content = MISSING_DRAWING
        else:
            content = step.text_content or ""

        entry.steps.append(
            RevealStep(
                step_number=step.step_number,
                step_type=step.step_type,
                player_id=step.player_id,
                player_name=author_name,
                player_is_active=bool(author_active),
                content=content,
            )
        )

    return sorted(threads.values(), key=lambda t: (t.original_player_name.lower(), t.thread_id))


def reveal_payload(threads: list[RevealThread]) -> dict:
    return {"threads": [t.to_payload() for t in threads]}
