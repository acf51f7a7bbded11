"""Repository pattern for database access.

Wraps one SQLAlchemy session; the caller's ``session_scope`` decides the
transaction boundary, so multi-row writes made through one repository commit
or roll back together. Steps are append-only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from ..game.errors import ConflictError, NotFoundError
from ..game.models import AssignmentItem, GameSettings, GameStatus, PlayerInfo, StepType
from ..game.prompts import FALLBACK_PROMPT
from .models import GameRow, PlayerRow, RandomPromptRow, StepRow, ThreadRow

logger = logging.getLogger(__name__)


def _settings(row: GameRow) -> GameSettings:
    return GameSettings(
        id=row.id,
        code=row.code,
        status=GameStatus(row.status),
        current_round=row.current_round,
        current_step_type=StepType(row.current_step_type) if row.current_step_type else None,
        num_rounds=row.num_rounds,
        prompt_time_limit_sec=row.prompt_time_limit_sec,
        draw_time_limit_sec=row.draw_time_limit_sec,
        guess_time_limit_sec=row.guess_time_limit_sec,
        game_master_player_id=row.game_master_player_id,
    )


def _player(row: PlayerRow) -> PlayerInfo:
    return PlayerInfo(id=row.id, name=row.name, session_id=row.session_id)


class Repository:
    """Persistence gateway for games, players, threads and steps."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # --- Games ---

    def create_game_with_player(
        self,
        code: str,
        player_name: str,
        session_id: str | None,
        num_rounds: int,
        prompt_time: int,
        draw_time: int,
        guess_time: int,
    ) -> tuple[int, int]:
        """Create a waiting game and its game master in one transaction."""
        existing = self.session.scalar(select(GameRow.id).where(GameRow.code == code))
        if existing is not None:
            raise ConflictError(f"Game code '{code}' already exists.")

        game = GameRow(
            code=code,
            status=GameStatus.WAITING.value,
            num_rounds=num_rounds,
            prompt_time_limit_sec=prompt_time,
            draw_time_limit_sec=draw_time,
            guess_time_limit_sec=guess_time,
        )
        try:
            self.session.add(game)
            self.session.flush()
            player = PlayerRow(game_id=game.id, name=player_name, session_id=session_id)
            self.session.add(player)
            self.session.flush()
            game.game_master_player_id = player.id
            self.session.flush()
        except IntegrityError as e:
            raise ConflictError(f"Game code '{code}' already exists.") from e

        logger.info("Game %s (id %s) created, game master player %s", code, game.id, player.id)
        return game.id, player.id

    def get_game(self, game_id: int | None = None, code: str | None = None) -> GameSettings | None:
        if game_id is not None:
            row = self.session.get(GameRow, game_id)
        elif code:
            row = self.session.scalar(select(GameRow).where(GameRow.code == code))
        else:
            return None
        return _settings(row) if row is not None else None

    def update_game_status(
        self,
        game_id: int,
        status: GameStatus,
        step_type: StepType | None = None,
        current_round: int | None = None,
    ) -> None:
        values: dict[str, object] = {
            "status": GameStatus(status).value,
            "current_step_type": step_type.value if step_type else None,
        }
        if current_round is not None:
            values["current_round"] = current_round
        self.session.execute(update(GameRow).where(GameRow.id == game_id).values(**values))
        logger.info(
            "Game %s: status=%s round=%s step_type=%s",
            game_id,
            values["status"],
            current_round if current_round is not None else "-",
            values["current_step_type"],
        )

    def set_game_master(self, game_id: int, player_id: int) -> None:
        self.session.execute(
            update(GameRow).where(GameRow.id == game_id).values(game_master_player_id=player_id)
        )

    def list_waiting_games(self) -> list[dict]:
        player_count = (
            select(func.count(PlayerRow.id))
            .where(PlayerRow.game_id == GameRow.id, PlayerRow.is_active.is_(True))
            .correlate(GameRow)
            .scalar_subquery()
        )
        stmt = (
            select(GameRow.code, GameRow.id, player_count)
            .where(GameRow.status == GameStatus.WAITING.value)
            .order_by(GameRow.created_at.desc(), GameRow.id.desc())
        )
        return [
            {"gameCode": code, "gameId": game_id, "playerCount": count}
            for code, game_id, count in self.session.execute(stmt)
        ]

    def list_games(self) -> list[GameSettings]:
        rows = self.session.scalars(select(GameRow).order_by(GameRow.id))
        return [_settings(row) for row in rows]

    def delete_game(self, code: str) -> bool:
        row = self.session.scalar(select(GameRow).where(GameRow.code == code))
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        logger.info("Game %s (id %s) deleted", code, row.id)
        return True

    # --- Players ---

    def get_active_players(self, game_id: int) -> list[PlayerInfo]:
        rows = self.session.scalars(
            select(PlayerRow)
            .where(PlayerRow.game_id == game_id, PlayerRow.is_active.is_(True))
            .order_by(PlayerRow.id)
        )
        return [_player(row) for row in rows]

    def get_player(self, player_id: int) -> PlayerRow | None:
        return self.session.get(PlayerRow, player_id)

    def add_player(self, game_id: int, name: str, session_id: str | None) -> int:
        taken = self.session.scalar(
            select(PlayerRow.id).where(
                PlayerRow.game_id == game_id,
                PlayerRow.name == name,
                PlayerRow.is_active.is_(True),
            )
        )
        if taken is not None:
            raise ConflictError(f"Name '{name}' is already taken in this game.")
        row = PlayerRow(game_id=game_id, name=name, session_id=session_id)
        self.session.add(row)
        self.session.flush()
        return row.id

    def find_inactive_player(self, game_id: int, name: str) -> int | None:
        """Id of an inactive player with this name, unless the name is in use."""
        rows = self.session.scalars(
            select(PlayerRow)
            .where(PlayerRow.game_id == game_id, PlayerRow.name == name)
            .order_by(PlayerRow.id)
        ).all()
        if any(row.is_active for row in rows):
            return None
        return rows[0].id if rows else None

    def reactivate_player(self, player_id: int, session_id: str | None) -> None:
        self.session.execute(
            update(PlayerRow)
            .where(PlayerRow.id == player_id)
            .values(is_active=True, session_id=session_id)
        )

    def find_player_by_session(self, session_id: str) -> tuple[PlayerInfo, GameSettings] | None:
        row = self.session.scalar(
            select(PlayerRow)
            .where(PlayerRow.session_id == session_id, PlayerRow.is_active.is_(True))
            .order_by(PlayerRow.id.desc())
        )
        if row is None:
            return None
        return _player(row), _settings(row.game)

    def deactivate_player(self, player_id: int) -> list[int]:
        """Mark a player inactive together with every thread they started.

        Returns the ids of threads that were active before the call.
        """
        thread_ids = list(
            self.session.scalars(
                select(ThreadRow.id).where(
                    ThreadRow.original_player_id == player_id, ThreadRow.is_active.is_(True)
                )
            )
        )
        self.session.execute(
            update(PlayerRow)
            .where(PlayerRow.id == player_id)
            .values(is_active=False, session_id=None)
        )
        self.session.execute(
            update(ThreadRow)
            .where(ThreadRow.original_player_id == player_id)
            .values(is_active=False)
        )
        logger.info("Player %s and originated threads %s marked inactive", player_id, thread_ids)
        return thread_ids

    def get_session_id(self, player_id: int) -> str | None:
        return self.session.scalar(
            select(PlayerRow.session_id).where(
                PlayerRow.id == player_id, PlayerRow.is_active.is_(True)
            )
        )

    # --- Threads ---

    def create_threads_for_players(self, game_id: int, player_ids: Iterable[int]) -> list[int]:
        rows = [ThreadRow(game_id=game_id, original_player_id=pid) for pid in player_ids]
        self.session.add_all(rows)
        self.session.flush()
        logger.info("Created %d threads for game %s", len(rows), game_id)
        return [row.id for row in rows]

    def get_active_thread_ids(self, game_id: int) -> list[int]:
        return list(
            self.session.scalars(
                select(ThreadRow.id)
                .where(ThreadRow.game_id == game_id, ThreadRow.is_active.is_(True))
                .order_by(ThreadRow.id)
            )
        )

    def get_thread(self, thread_id: int) -> ThreadRow | None:
        return self.session.get(ThreadRow, thread_id)

    def get_thread_id_for_player_prompt(self, game_id: int, player_id: int) -> int | None:
        return self.session.scalar(
            select(ThreadRow.id).where(
                ThreadRow.game_id == game_id,
                ThreadRow.original_player_id == player_id,
                ThreadRow.is_active.is_(True),
            )
        )

    def deactivate_thread(self, thread_id: int) -> None:
        self.deactivate_threads([thread_id])

    def deactivate_threads(self, thread_ids: Sequence[int]) -> None:
        if not thread_ids:
            return
        self.session.execute(
            update(ThreadRow).where(ThreadRow.id.in_(list(thread_ids))).values(is_active=False)
        )
        logger.info("Threads %s marked inactive", list(thread_ids))

    # --- Steps ---

    def save_step(
        self,
        thread_id: int,
        player_id: int,
        step_number: int,
        step_type: StepType,
        text_content: str | None = None,
        image_content: bytes | None = None,
    ) -> int:
        thread = self.session.get(ThreadRow, thread_id)
        if thread is None:
            raise NotFoundError(f"Thread {thread_id} not found.")
        if not thread.is_active:
            raise ConflictError(f"Thread {thread_id} is no longer active.")

        duplicate = self.session.scalar(
            select(StepRow.id).where(
                StepRow.thread_id == thread_id, StepRow.step_number == step_number
            )
        )
        if duplicate is not None:
            raise ConflictError("This step has already been submitted.")

        row = StepRow(
            thread_id=thread_id,
            player_id=player_id,
            step_number=step_number,
            step_type=StepType(step_type).value,
            text_content=text_content,
            image_content=image_content,
        )
        try:
            self.session.add(row)
            self.session.flush()
        except IntegrityError as e:
            raise ConflictError("This step has already been submitted.") from e
        return row.id

    def count_submitted_steps(self, game_id: int, step_number: int, step_type: StepType) -> int:
        return self.session.scalar(
            select(func.count(StepRow.id))
            .join(ThreadRow, StepRow.thread_id == ThreadRow.id)
            .where(
                ThreadRow.game_id == game_id,
                ThreadRow.is_active.is_(True),
                StepRow.step_number == step_number,
                StepRow.step_type == StepType(step_type).value,
            )
        ) or 0

    def get_submitted_steps(self, game_id: int, step_number: int) -> list[tuple[int, int]]:
        """(thread_id, player_id) of every step at ``step_number`` on an active thread."""
        rows = self.session.execute(
            select(StepRow.thread_id, StepRow.player_id)
            .join(ThreadRow, StepRow.thread_id == ThreadRow.id)
            .where(
                ThreadRow.game_id == game_id,
                ThreadRow.is_active.is_(True),
                StepRow.step_number == step_number,
            )
        )
        return [(thread_id, player_id) for thread_id, player_id in rows]

    def get_previous_step_items(self, game_id: int, step_number: int) -> list[AssignmentItem]:
        rows = self.session.execute(
            select(StepRow, ThreadRow.original_player_id)
            .join(ThreadRow, StepRow.thread_id == ThreadRow.id)
            .where(
                ThreadRow.game_id == game_id,
                ThreadRow.is_active.is_(True),
                StepRow.step_number == step_number,
            )
            .order_by(StepRow.thread_id)
        )
        return [
            AssignmentItem(
                thread_id=step.thread_id,
                previous_player_id=step.player_id,
                original_player_id=original_player_id,
                text_content=step.text_content,
                image_content=step.image_content,
            )
            for step, original_player_id in rows
        ]

    def get_reveal_rows(self, game_id: int) -> list[tuple[ThreadRow, StepRow, str, str, bool]]:
        """(thread, step, origin name, author name, author active) for every active thread."""
        origin = aliased(PlayerRow)
        author = aliased(PlayerRow)
        rows = self.session.execute(
            select(ThreadRow, StepRow, origin.name, author.name, author.is_active)
            .join(StepRow, StepRow.thread_id == ThreadRow.id)
            .join(origin, ThreadRow.original_player_id == origin.id)
            .join(author, StepRow.player_id == author.id)
            .where(ThreadRow.game_id == game_id, ThreadRow.is_active.is_(True))
            .order_by(ThreadRow.id, StepRow.step_number)
        )
        return [tuple(row) for row in rows]

    # --- Random prompts ---

    def get_random_prompt(self) -> str:
        text = self.session.scalar(
            select(RandomPromptRow.text).order_by(func.random()).limit(1)
        )
        return text or FALLBACK_PROMPT

    def seed_random_prompts(self, prompts: Iterable[str]) -> int:
        if self.session.scalar(select(func.count(RandomPromptRow.id))):
            return 0
        rows = [RandomPromptRow(text=p) for p in prompts]
        self.session.add_all(rows)
        self.session.flush()
        return len(rows)
