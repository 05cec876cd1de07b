"""
Session codec and public summaries.

Sessions travel between devices as UTF-8 JSON bytes. Decoding is
tolerant: missing fields take their defaults and unknown fields are
ignored, so older and newer peers can still read each other's blobs.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Optional

import orjson

from . import errors
from .constants import DEFAULT_ROUND_DURATION_SECONDS, GameStatus
from .errors import GameError
from .models import Player, Session, Submission, clean_answers

logger = logging.getLogger(__name__)


def _player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "avatar": player.avatar,
        "score": player.score,
        "is_host": player.is_host,
    }


def _expect(value, kind, name: str):
    if not isinstance(value, kind):
        raise TypeError(f"{name} has type {type(value).__name__}")
    return value


def _player_from_dict(data: Dict[str, Any]) -> Player:
    _expect(data, dict, "player")
    return Player(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        avatar=str(data.get("avatar", "")),
        score=int(data.get("score", 0)),
        is_host=bool(data.get("is_host", False)),
    )


def _submission_from_dict(player_id: str, data: Dict[str, Any]) -> Submission:
    _expect(data, dict, "submission")
    return Submission(
        player_id=str(data.get("player_id", player_id)),
        answers=clean_answers(_expect(data.get("answers") or {}, dict, "answers")),
        submitted_at=float(data.get("submitted_at", 0.0)),
    )


def session_to_dict(state: Session) -> Dict[str, Any]:
    """
    Convert a session into plain JSON-compatible data.

    Args:
        state: Session to convert

    Returns:
        Dictionary holding every field needed to rebuild the session
    """
    return {
        "id": state.id,
        "version": state.version,
        "host_player_id": state.host_player_id,
        "status": state.status.value,
        "players": [_player_to_dict(p) for p in state.players],
        "current_round": state.current_round,
        "total_rounds": state.total_rounds,
        "categories_per_round": state.categories_per_round,
        "round_duration_seconds": state.round_duration_seconds,
        "current_letter": state.current_letter,
        "current_categories": list(state.current_categories),
        "round_started_at": state.round_started_at,
        "submissions": {
            player_id: {
                "player_id": submission.player_id,
                "answers": dict(submission.answers),
                "submitted_at": submission.submitted_at,
            }
            for player_id, submission in state.submissions.items()
        },
        "submitted_player_ids": sorted(state.submitted_player_ids),
        "round_history": list(state.round_history),
    }


def session_from_dict(data: Dict[str, Any]) -> Session:
    """
    Rebuild a session from :func:`session_to_dict` output.

    Only ``id`` and ``host_player_id`` are required.

    Raises:
        GameError: If required fields are missing or a value has the wrong type
    """
    try:
        round_started_at = data.get("round_started_at")
        letter = data.get("current_letter")
        if letter is not None:
            _expect(letter, str, "current_letter")
        history = _expect(data.get("round_history") or [], list, "round_history")
        for entry in history:
            _expect(entry, dict, "round_history entry")
        return Session(
            id=str(data["id"]),
            host_player_id=str(data["host_player_id"]),
            total_rounds=int(data.get("total_rounds", 1)),
            categories_per_round=int(data.get("categories_per_round", 1)),
            round_duration_seconds=int(data.get("round_duration_seconds", DEFAULT_ROUND_DURATION_SECONDS)),
            version=int(data.get("version", 0)),
            status=GameStatus(data.get("status", GameStatus.WAITING_FOR_PLAYERS.value)),
            players=[_player_from_dict(p) for p in _expect(data.get("players") or [], list, "players")],
            current_round=int(data.get("current_round", 0)),
            current_letter=letter,
            current_categories=[str(c) for c in _expect(data.get("current_categories") or [], list, "current_categories")],
            round_started_at=float(round_started_at) if round_started_at is not None else None,
            submissions={
                str(player_id): _submission_from_dict(str(player_id), submission)
                for player_id, submission in _expect(data.get("submissions") or {}, dict, "submissions").items()
            },
            round_history=list(history),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise GameError(errors.DECODE_FAILED, f"Invalid session data: {e}")


def encode(state: Session) -> bytes:
    """Encode a session as JSON bytes for transport."""
    return orjson.dumps(session_to_dict(state))


def decode(blob: bytes) -> Session:
    """
    Decode transport bytes into a session.

    Raises:
        GameError: DECODE_FAILED if the bytes are not a valid session
    """
    try:
        data = orjson.loads(blob)
    except orjson.JSONDecodeError as e:
        raise GameError(errors.DECODE_FAILED, f"Malformed session blob: {e}")
    if not isinstance(data, dict):
        raise GameError(errors.DECODE_FAILED, "Session blob is not a JSON object")
    return session_from_dict(data)


def encode_base64(state: Session) -> str:
    """Encode a session for text channels."""
    return base64.b64encode(encode(state)).decode("ascii")


def decode_base64(text: str) -> Session:
    """Inverse of :func:`encode_base64`."""
    try:
        blob = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise GameError(errors.DECODE_FAILED, f"Invalid base64 payload: {e}")
    return decode(blob)


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for lobby player list."""
    return {
        "id": player.id,
        "name": player.name,
        "avatar": player.avatar,
        "score": player.score,
    }


def get_public_session_info(state: Session, max_players: Optional[int] = None) -> Dict[str, Any]:
    """Get public information about a session for listings."""
    info = {
        "id": state.id,
        "version": state.version,
        "status": state.status.value,
        "display_text": state.display_text,
        "current_round": state.current_round,
        "total_rounds": state.total_rounds,
        "player_count": len(state.players),
        "players": [serialize_player_for_list(p) for p in state.players],
    }
    if max_players is not None:
        info["max_players"] = max_players
    return info
