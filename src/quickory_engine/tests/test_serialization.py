"""
Tests for the session codec.
"""

import base64

import orjson
import pytest

from quickory_engine import errors
from quickory_engine.constants import GameStatus
from quickory_engine.engine import create_session, join_session, process_round_results, start_game, submit_answers
from quickory_engine.errors import GameError
from quickory_engine.rules import create_config
from quickory_engine.serialization import (
    decode, decode_base64, encode, encode_base64, get_public_session_info, session_to_dict
)

CONFIG = create_config(letters=["B"], categories=["Colors", "Animals"])


def mid_game_session():
    """Two rounds configured; round one scored."""
    state = create_session("Host", "😀", 2, 2, session_id="s1", host_id="host")
    state = join_session(state, "Bob", "🦊", CONFIG, player_id="bob").state
    state = start_game(state, "host", CONFIG, now=1000.0).state
    state = submit_answers(state, "host", {"Colors": "blue", "Animals": "bear"}, now=1004.5).state
    state = submit_answers(state, "bob", {"Colors": "brown"}, now=1010.0).state
    return process_round_results(state, "host", CONFIG).state


def test_round_trip():
    state = mid_game_session()
    assert state.round_history

    restored = decode(encode(state))

    assert restored == state
    assert restored.status == GameStatus.ROUND_ENDED
    assert restored.submitted_player_ids == {"host", "bob"}


def test_encoding_is_json():
    data = orjson.loads(encode(mid_game_session()))
    assert data["status"] == "roundEnded"
    assert data["players"][1]["name"] == "Bob"
    assert data["submitted_player_ids"] == ["bob", "host"]


def test_decode_missing_fields_use_defaults():
    state = decode(b'{"id": "x", "host_player_id": "h"}')
    assert state.id == "x"
    assert state.status == GameStatus.WAITING_FOR_PLAYERS
    assert state.players == []
    assert state.version == 0
    assert state.round_duration_seconds == 120
    assert state.round_started_at is None


def test_decode_ignores_unknown_fields():
    data = session_to_dict(mid_game_session())
    data["something_new"] = {"nested": True}
    data["players"][0]["colour"] = "red"
    restored = decode(orjson.dumps(data))
    assert restored.players[0].name == "Host"


@pytest.mark.parametrize("blob", [
    b"not json",
    b"[1, 2]",
    b'{"host_player_id": "h"}',
    b'{"id": "x", "host_player_id": "h", "status": "dancing"}',
    b'{"id": "x", "host_player_id": "h", "players": [{"name": "no id"}]}',
    b'{"id": "x", "host_player_id": "h", "players": ["h"]}',
    b'{"id": "x", "host_player_id": "h", "status": "roundEnded", "round_history": [1]}',
    b'{"id": "x", "host_player_id": "h", "current_letter": 7}',
    b'{"id": "x", "host_player_id": "h", "submissions": {"h": {"answers": ["blue"]}}}',
    b'{"id": "x", "host_player_id": "h", "submissions": ["h"]}',
])
def test_decode_failures(blob):
    with pytest.raises(GameError) as exc:
        decode(blob)
    assert exc.value.code == errors.DECODE_FAILED


def test_base64_round_trip():
    state = mid_game_session()
    text = encode_base64(state)
    assert base64.b64decode(text) == encode(state)
    assert decode_base64(text) == state


def test_decode_base64_invalid():
    with pytest.raises(GameError) as exc:
        decode_base64("%%% not base64 %%%")
    assert exc.value.code == errors.DECODE_FAILED


def test_public_session_info():
    info = get_public_session_info(mid_game_session(), max_players=8)
    assert info["id"] == "s1"
    assert info["status"] == "roundEnded"
    assert info["display_text"] == "Round complete"
    assert info["player_count"] == 2
    assert info["max_players"] == 8
    assert [p["name"] for p in info["players"]] == ["Host", "Bob"]
    assert "submissions" not in info


def test_decode_unanswered_category_is_empty():
    blob = orjson.dumps({
        "id": "x",
        "host_player_id": "h",
        "submissions": {"h": {"answers": {"Colors": None, "Animals": "bear"}}},
    })
    answers = decode(blob).submissions["h"].answers
    assert answers == {"Colors": "", "Animals": "bear"}
