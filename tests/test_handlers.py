"""Socket.IO handler tests using the Flask-SocketIO test client."""

from __future__ import annotations

import pytest

from conftest import PNG_DATA_URL
from telestrations.realtime.events import (
    CreateGame,
    GetRandomPrompt,
    SubmitDrawing,
    parse_command,
)
from telestrations.realtime.notifier import Notifier


def messages(client, name):
    return [m["args"][0] if m["args"] else None for m in client.get_received() if m["name"] == name]


def by_name(received, name):
    return [m["args"][0] if m["args"] else None for m in received if m["name"] == name]


@pytest.fixture
def clients(app_and_socketio):
    app, socketio = app_and_socketio
    opened = []

    def connect():
        client = socketio.test_client(app)
        opened.append(client)
        return client

    yield connect
    for client in opened:
        if client.is_connected():
            client.disconnect()


def lobby(clients, code="ROOM1"):
    alice = clients()
    bob = clients()
    alice.get_received()
    bob.get_received()

    alice.emit("create_game", {"playerName": "Alice", "gameCode": code.lower()})
    (created,) = messages(alice, "game_created")
    bob.emit("join_game", {"playerName": "Bob", "gameCode": code})
    (joined,) = messages(bob, "game_joined")
    alice.get_received()
    return alice, bob, created, joined


class TestParsing:
    def test_create_game_coerces_numbers(self):
        cmd = parse_command("create_game", {"playerName": " Al ", "numRounds": "3", "drawTime": "x"})
        assert cmd == CreateGame(player_name="Al", game_code="", num_rounds=3, draw_time=None)

    def test_missing_payload(self):
        cmd = parse_command("submit_drawing", None)
        assert isinstance(cmd, SubmitDrawing)
        assert cmd.thread_id is None
        assert cmd.drawing_data_url == ""

    def test_random_prompt_has_no_payload(self):
        assert parse_command("get_random_prompt", None) == GetRandomPrompt()

    def test_unknown_event(self):
        with pytest.raises(ValueError):
            parse_command("nope", {})

    def test_notifier_must_implement_every_channel(self):
        class RoomOnly(Notifier):
            def to_room(self, room, event, data=None):
                pass

        with pytest.raises(TypeError):
            RoomOnly()


class TestLobbyEvents:
    def test_connect_sends_waiting_games(self, clients):
        client = clients()
        assert messages(client, "active_games_list") == [[]]

    def test_create_and_join(self, clients):
        alice = clients()
        bob = clients()
        alice.get_received()
        bob.get_received()

        alice.emit("create_game", {"playerName": "Alice", "gameCode": "room1", "numRounds": 1})
        received = alice.get_received()
        (created,) = by_name(received, "game_created")
        assert created["gameCode"] == "ROOM1"
        assert created["isGameMaster"] is True
        assert by_name(received, "active_games_list")[-1][0]["gameCode"] == "ROOM1"

        bob.emit("join_game", {"playerName": "Bob", "gameCode": "room1"})
        (joined,) = messages(bob, "game_joined")
        assert joined["gameCode"] == "ROOM1"
        assert joined["isGameMaster"] is False
        assert [p["playerName"] for p in joined["players"]] == ["Alice", "Bob"]

        (notice,) = messages(alice, "player_joined")
        assert notice["playerName"] == "Bob"

    def test_duplicate_code_is_an_error(self, clients):
        alice = clients()
        bob = clients()
        alice.emit("create_game", {"playerName": "Alice", "gameCode": "SAME1"})
        bob.get_received()
        bob.emit("create_game", {"playerName": "Bob", "gameCode": "same1"})

        received = bob.get_received()
        assert by_name(received, "game_created") == []
        assert by_name(received, "error_message") == ["Game code 'SAME1' already exists."]

    def test_join_unknown_game_refreshes_list(self, clients):
        client = clients()
        client.get_received()
        client.emit("join_game", {"playerName": "Bob", "gameCode": "NOPE"})

        received = client.get_received()
        assert by_name(received, "error_message") == ["Game not found. It might have started or ended."]
        assert by_name(received, "active_games_list") == [[]]

    def test_random_prompt(self, clients):
        client = clients()
        client.emit("get_random_prompt")
        (result,) = messages(client, "random_prompt_result")
        assert result["prompt"]

    def test_disconnect_notifies_room(self, clients):
        alice, bob, created, joined = lobby(clients)
        bob.disconnect()

        (left,) = messages(alice, "player_left")
        assert left["playerId"] == joined["playerId"]
        assert left["gameMasterPlayerId"] == created["playerId"]


class TestGameEvents:
    def test_only_game_master_starts(self, clients):
        alice, bob, created, joined = lobby(clients)
        bob.emit("start_game", {"gameCode": "ROOM1", "playerId": joined["playerId"]})
        assert messages(bob, "error_message") == ["Only the Game Master can start."]

    def test_start_and_prompt_flow(self, clients):
        alice, bob, created, joined = lobby(clients)

        alice.emit("start_game", {"gameCode": "ROOM1", "playerId": created["playerId"]})
        for client in (alice, bob):
            received = client.get_received()
            assert len(by_name(received, "game_started")) == 1
            assert by_name(received, "task_prompt") == [{"duration": 60}]
            assert by_name(received, "start_timer") == [{"phase": "prompting", "duration": 60}]

        alice.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": created["playerId"], "promptText": "A cat"})
        assert messages(alice, "submission_received") == [{"type": "prompt"}]

        bob.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": joined["playerId"], "promptText": "A dog"})
        received = bob.get_received()
        assert by_name(received, "submission_received") == [{"type": "prompt"}]
        (task,) = by_name(received, "task_draw")
        assert task["content"] == "A dog"
        assert task["duration"] == 300
        assert by_name(received, "start_timer") == [{"phase": "drawing", "duration": 300}]

        (alice_task,) = messages(alice, "task_draw")
        assert alice_task["content"] == "A cat"

    def test_empty_prompt_rejected(self, clients):
        alice, bob, created, joined = lobby(clients)
        alice.emit("start_game", {"gameCode": "ROOM1", "playerId": created["playerId"]})
        alice.get_received()

        alice.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": created["playerId"], "promptText": " "})
        received = alice.get_received()
        assert by_name(received, "error_message") == ["Prompt cannot be empty."]
        assert by_name(received, "submission_received") == []

    def test_malformed_drawing_rejected(self, clients, app_and_socketio):
        app, _ = app_and_socketio
        alice, bob, created, joined = lobby(clients)
        alice.emit("start_game", {"gameCode": "ROOM1", "playerId": created["playerId"]})
        alice.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": created["playerId"], "promptText": "A cat"})
        bob.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": joined["playerId"], "promptText": "A dog"})
        (task,) = messages(bob, "task_draw")
        alice.get_received()

        bob.emit(
            "submit_drawing",
            {
                "gameCode": "ROOM1",
                "playerId": joined["playerId"],
                "threadId": task["threadId"],
                "drawingDataUrl": "data:image/png;base64,%%%",
            },
        )
        received = bob.get_received()
        assert by_name(received, "error_message") == ["Invalid drawing data format."]
        assert by_name(received, "submission_received") == []

        coordinator = app.extensions["telestrations"]
        with coordinator.repository() as repo:
            game = repo.get_game(code="ROOM1")
            assert repo.count_submitted_steps(game.id, 1, "drawing") == 0
        assert game.status.value == "initial_drawing"

        bob.emit(
            "submit_drawing",
            {
                "gameCode": "ROOM1",
                "playerId": joined["playerId"],
                "threadId": str(task["threadId"]),
                "drawingDataUrl": PNG_DATA_URL,
            },
        )
        assert messages(bob, "submission_received") == [{"type": "drawing"}]

    def test_rejoin_mid_phase_gets_task_again(self, clients):
        alice, bob, created, joined = lobby(clients)
        alice.emit("start_game", {"gameCode": "ROOM1", "playerId": created["playerId"]})
        alice.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": created["playerId"], "promptText": "A cat"})
        bob.emit("submit_prompt", {"gameCode": "ROOM1", "playerId": joined["playerId"], "promptText": "A dog"})
        (alice_task,) = messages(alice, "task_draw")
        (bob_task,) = messages(bob, "task_draw")
        for client, player_id, task in ((alice, created["playerId"], alice_task), (bob, joined["playerId"], bob_task)):
            client.emit(
                "submit_drawing",
                {
                    "gameCode": "ROOM1",
                    "playerId": player_id,
                    "threadId": task["threadId"],
                    "drawingDataUrl": PNG_DATA_URL,
                },
            )
        (guess_task,) = messages(bob, "task_guess")
        assert guess_task["threadId"] == alice_task["threadId"]

        bob.disconnect()
        again = clients()
        again.get_received()
        again.emit("join_game", {"playerName": "Bob", "gameCode": "ROOM1"})

        received = again.get_received()
        (rejoined,) = by_name(received, "game_joined")
        assert rejoined["isRejoin"] is True
        assert rejoined["playerId"] == joined["playerId"]
        (resent,) = by_name(received, "task_guess")
        assert resent["threadId"] == guess_task["threadId"]
        assert resent["content"] == PNG_DATA_URL
