"""
WebSocket protocol tests: one JSON frame in, one JSON frame out.
"""
from uuid import uuid4


def test_create_join_and_get(client):
    with client.websocket_connect("/ws/games") as ws:
        ws.send_json({"action": "create"})
        created = ws.receive_json()
        assert created["type"] == "created"
        game_id = created["gameId"]

        ws.send_json({"action": "join", "gameId": game_id, "name": "Alice"})
        joined = ws.receive_json()
        assert joined["type"] == "joined"
        assert joined["player"]["symbol"] == "X"

        ws.send_json({"action": "get", "gameId": game_id})
        state = ws.receive_json()
        assert state["type"] == "state"
        assert state["game"]["gameId"] == game_id
        assert [p["name"] for p in state["game"]["players"]] == ["Alice"]


def test_list_action(client):
    with client.websocket_connect("/ws/games") as ws:
        ws.send_json({"action": "create"})
        game_id = ws.receive_json()["gameId"]

        ws.send_json({"action": "list", "status": "WAITING"})
        reply = ws.receive_json()
        assert reply["type"] == "games"
        assert game_id in [g["gameId"] for g in reply["games"]]


def test_malformed_frames_get_error_replies(client):
    with client.websocket_connect("/ws/games") as ws:
        ws.send_text("{not json")
        assert ws.receive_json() == {"error": "Invalid JSON"}

        ws.send_json({"action": "surrender"})
        assert ws.receive_json() == {"error": "Unknown action"}

        ws.send_json({"action": "get", "gameId": "not-a-uuid"})
        assert ws.receive_json() == {"error": "Invalid gameId"}

        ws.send_json({"action": "move", "gameId": str(uuid4()), "move": {"row": 0}})
        assert ws.receive_json() == {"error": "Bad move request"}

        # The connection survives bad frames.
        ws.send_json({"action": "create"})
        assert ws.receive_json()["type"] == "created"


def test_domain_rejection_carries_reason(client):
    with client.websocket_connect("/ws/games") as ws:
        ws.send_json({"action": "get", "gameId": str(uuid4())})
        reply = ws.receive_json()
        assert reply["reason"] == "GAME_NOT_FOUND"
        assert reply["error"]


def test_move_is_broadcast_to_other_sockets(client):
    with client.websocket_connect("/ws/games") as alice, client.websocket_connect(
        "/ws/games"
    ) as bob:
        alice.send_json({"action": "create"})
        game_id = alice.receive_json()["gameId"]
        alice.send_json({"action": "join", "gameId": game_id, "name": "Alice"})
        x = alice.receive_json()["player"]
        bob.send_json({"action": "join", "gameId": game_id, "name": "Bob"})
        assert bob.receive_json()["player"]["symbol"] == "O"

        alice.send_json(
            {"action": "move", "gameId": game_id, "move": {"playerId": x["playerId"], "row": 0, "col": 0}}
        )
        own = alice.receive_json()
        pushed = bob.receive_json()

        assert own["type"] == "update"
        assert pushed == own
        assert pushed["game"]["nextTurn"] == "O"


def test_invalid_join_name_and_list_status(client):
    with client.websocket_connect("/ws/games") as ws:
        ws.send_json({"action": "create"})
        game_id = ws.receive_json()["gameId"]

        ws.send_json({"action": "join", "gameId": game_id, "name": ""})
        assert ws.receive_json() == {"error": "Invalid name"}

        ws.send_json({"action": "join", "gameId": game_id, "name": "x" * 65})
        assert ws.receive_json() == {"error": "Invalid name"}

        ws.send_json({"action": "join", "gameId": game_id})
        assert ws.receive_json() == {"error": "Invalid name"}

        ws.send_json({"action": "list", "status": "PAUSED"})
        assert ws.receive_json() == {"error": "Invalid status"}
