"""Tests for the persistence gateway against in-memory SQLite."""

import pytest
from sqlalchemy import delete, inspect

from telestrations.db.engine import session_scope
from telestrations.db.models import GameRow, RandomPromptRow
from telestrations.db.repository import Repository
from telestrations.game.errors import ConflictError, NotFoundError
from telestrations.game.models import GameStatus, StepType
from telestrations.game.prompts import DEFAULT_PROMPTS, FALLBACK_PROMPT


@pytest.fixture
def repo(session_factory):
    with session_scope(session_factory) as session:
        yield Repository(session)


def new_game(repo: Repository, code: str = "ABCDE", name: str = "Alice"):
    return repo.create_game_with_player(code, name, "sid-a", 2, 60, 300, 120)


class TestTables:
    def test_all_tables_created(self, session_factory):
        with session_scope(session_factory) as session:
            tables = set(inspect(session.get_bind()).get_table_names())
        assert {"games", "players", "threads", "steps", "random_prompts"} <= tables


class TestGames:
    def test_create_game_sets_game_master(self, repo):
        game_id, player_id = new_game(repo)
        game = repo.get_game(game_id)

        assert game.code == "ABCDE"
        assert game.status == GameStatus.WAITING
        assert game.current_round == 0
        assert game.game_master_player_id == player_id
        assert (game.prompt_time_limit_sec, game.draw_time_limit_sec, game.guess_time_limit_sec) == (
            60,
            300,
            120,
        )
        assert [p.name for p in repo.get_active_players(game_id)] == ["Alice"]

    def test_duplicate_code_conflicts(self, repo):
        new_game(repo)
        with pytest.raises(ConflictError):
            new_game(repo, name="Bob")

    def test_code_taken_between_lookup_and_insert_conflicts(self, session_factory):
        """The unique constraint catches a row the code lookup could not see yet."""
        session = session_factory()
        try:
            # Pending and unflushed, like another create landing in the same instant.
            session.add(
                GameRow(
                    code="RACE1",
                    num_rounds=2,
                    prompt_time_limit_sec=60,
                    draw_time_limit_sec=300,
                    guess_time_limit_sec=120,
                )
            )
            with pytest.raises(ConflictError):
                Repository(session).create_game_with_player("RACE1", "Bob", "sid-b", 2, 60, 300, 120)
        finally:
            session.rollback()
            session.close()

        with session_scope(session_factory) as session:
            assert Repository(session).get_game(code="RACE1") is None

    def test_lookup_by_code(self, repo):
        game_id, _ = new_game(repo)
        assert repo.get_game(code="ABCDE").id == game_id
        assert repo.get_game(code="NOPE") is None
        assert repo.get_game() is None

    def test_waiting_games_list_counts_active_players(self, repo):
        game_id, _ = new_game(repo)
        bob = repo.add_player(game_id, "Bob", "sid-b")
        repo.deactivate_player(bob)
        other_id, _ = new_game(repo, code="ZZZZZ")
        repo.update_game_status(other_id, GameStatus.PROMPTING, StepType.PROMPT, 0)

        assert repo.list_waiting_games() == [{"gameCode": "ABCDE", "gameId": game_id, "playerCount": 1}]

    def test_update_status_keeps_round_when_omitted(self, repo):
        game_id, _ = new_game(repo)
        repo.update_game_status(game_id, GameStatus.GUESSING, StepType.GUESS, 1)
        repo.update_game_status(game_id, GameStatus.REVEALING)

        game = repo.get_game(game_id)
        assert game.status == GameStatus.REVEALING
        assert game.current_round == 1
        assert game.current_step_type is None

    def test_delete_game_cascades(self, repo):
        game_id, player_id = new_game(repo)
        (thread_id,) = repo.create_threads_for_players(game_id, [player_id])
        repo.save_step(thread_id, player_id, 0, StepType.PROMPT, text_content="x")

        assert repo.delete_game("ABCDE") is True
        assert repo.get_game(game_id) is None
        assert repo.get_thread(thread_id) is None
        assert repo.delete_game("ABCDE") is False


class TestPlayers:
    def test_active_name_is_taken(self, repo):
        game_id, _ = new_game(repo)
        with pytest.raises(ConflictError):
            repo.add_player(game_id, "Alice", "sid-x")

    def test_rejoin_by_name(self, repo):
        game_id, _ = new_game(repo)
        bob = repo.add_player(game_id, "Bob", "sid-b")
        assert repo.find_inactive_player(game_id, "Bob") is None

        repo.deactivate_player(bob)
        assert repo.find_inactive_player(game_id, "Bob") == bob

        repo.reactivate_player(bob, "sid-b2")
        assert repo.get_session_id(bob) == "sid-b2"
        player, game = repo.find_player_by_session("sid-b2")
        assert (player.id, game.id) == (bob, game_id)

    def test_deactivation_cascades_to_originated_threads(self, repo):
        game_id, alice = new_game(repo)
        bob = repo.add_player(game_id, "Bob", "sid-b")
        t_alice, t_bob = repo.create_threads_for_players(game_id, [alice, bob])

        assert repo.deactivate_player(bob) == [t_bob]
        assert repo.get_active_thread_ids(game_id) == [t_alice]
        assert [p.id for p in repo.get_active_players(game_id)] == [alice]
        assert repo.find_player_by_session("sid-b") is None
        assert repo.get_session_id(bob) is None


class TestSteps:
    def test_duplicate_step_conflicts(self, repo):
        game_id, alice = new_game(repo)
        (thread_id,) = repo.create_threads_for_players(game_id, [alice])
        repo.save_step(thread_id, alice, 0, StepType.PROMPT, text_content="first")

        with pytest.raises(ConflictError):
            repo.save_step(thread_id, alice, 0, StepType.PROMPT, text_content="again")

    def test_inactive_or_missing_thread_rejected(self, repo):
        game_id, alice = new_game(repo)
        (thread_id,) = repo.create_threads_for_players(game_id, [alice])
        repo.deactivate_thread(thread_id)

        with pytest.raises(ConflictError):
            repo.save_step(thread_id, alice, 0, StepType.PROMPT, text_content="late")
        with pytest.raises(NotFoundError):
            repo.save_step(9999, alice, 0, StepType.PROMPT, text_content="lost")

    def test_counts_only_active_threads(self, repo):
        game_id, alice = new_game(repo)
        bob = repo.add_player(game_id, "Bob", "sid-b")
        t_alice, t_bob = repo.create_threads_for_players(game_id, [alice, bob])
        repo.save_step(t_alice, alice, 0, StepType.PROMPT, text_content="a")
        repo.save_step(t_bob, bob, 0, StepType.PROMPT, text_content="b")
        assert repo.count_submitted_steps(game_id, 0, StepType.PROMPT) == 2

        repo.deactivate_threads([t_bob])
        assert repo.count_submitted_steps(game_id, 0, StepType.PROMPT) == 1
        assert repo.count_submitted_steps(game_id, 0, StepType.DRAWING) == 0
        assert repo.get_submitted_steps(game_id, 0) == [(t_alice, alice)]

    def test_previous_step_items(self, repo):
        game_id, alice = new_game(repo)
        bob = repo.add_player(game_id, "Bob", "sid-b")
        t_alice, t_bob = repo.create_threads_for_players(game_id, [alice, bob])
        repo.save_step(t_alice, bob, 1, StepType.DRAWING, image_content=b"img")

        (only,) = repo.get_previous_step_items(game_id, 1)
        assert only.thread_id == t_alice
        assert only.previous_player_id == bob
        assert only.original_player_id == alice
        assert only.image_content == b"img"
        assert repo.get_previous_step_items(game_id, 2) == []

    def test_prompt_thread_lookup(self, repo):
        game_id, alice = new_game(repo)
        (thread_id,) = repo.create_threads_for_players(game_id, [alice])
        assert repo.get_thread_id_for_player_prompt(game_id, alice) == thread_id
        repo.deactivate_thread(thread_id)
        assert repo.get_thread_id_for_player_prompt(game_id, alice) is None


class TestRandomPrompts:
    def test_seeded_on_init(self, repo):
        assert repo.get_random_prompt() in DEFAULT_PROMPTS

    def test_seeding_is_skipped_when_populated(self, repo):
        assert repo.seed_random_prompts(["another"]) == 0

    def test_fallback_when_empty(self, session_factory):
        with session_scope(session_factory) as session:
            session.execute(delete(RandomPromptRow))
        with session_scope(session_factory) as session:
            assert Repository(session).get_random_prompt() == FALLBACK_PROMPT
