"""
WebSocket relay for encoded session blobs.

Devices connect to ``/ws/{session_id}`` and publish their session as a
base64 blob. The relay forwards every decodable blob to the other
devices of that session and remembers the newest one, so a device that
connects late can ask for it with ``request_state``.
"""

import logging
from collections import defaultdict
from typing import Dict, Optional, Set, Tuple

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..errors import GameError
from ..serialization import decode_base64
from .events import (
    ErrorCode, PublishEvent, RequestStateEvent, create_ack_event,
    create_error_event, create_state_blob_event, parse_inbound_event
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Tracks sockets and the latest blob per session."""

    def __init__(self):
        self.session_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.latest: Dict[str, Tuple[int, str]] = {}  # session id -> (version, base64 blob)

    async def connect(self, websocket: WebSocket, session_id: str):
        """Register an accepted socket with a session."""
        self.session_connections[session_id].add(websocket)
        logger.info(f"Device connected to session {session_id} ({len(self.session_connections[session_id])} connected)")

    def disconnect(self, websocket: WebSocket, session_id: str):
        """Remove a socket; drop the connection set once empty."""
        connections = self.session_connections.get(session_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            del self.session_connections[session_id]
        logger.info(f"Device disconnected from session {session_id}")

    def store(self, session_id: str, version: int, blob: str) -> bool:
        """Keep ``blob`` if it is newer than the stored one. Returns True if kept."""
        current = self.latest.get(session_id)
        if current is not None and version <= current[0]:
            return False
        self.latest[session_id] = (version, blob)
        return True

    def get_latest(self, session_id: str) -> Optional[Tuple[int, str]]:
        return self.latest.get(session_id)

    async def broadcast(self, session_id: str, payload: str, exclude: Optional[WebSocket] = None):
        """Send a payload to every socket of a session except ``exclude``."""
        for websocket in list(self.session_connections.get(session_id, ())):
            if websocket is exclude:
                continue
            try:
                await websocket.send_text(payload)
            except Exception as e:
                logger.error(f"Error forwarding to a device in session {session_id}: {e}")
                self.disconnect(websocket, session_id)

    def stats(self) -> Dict[str, int]:
        return {
            "sessions": len(self.latest),
            "connections": sum(len(c) for c in self.session_connections.values()),
        }


manager = ConnectionManager()


@router.websocket("/ws/{session_id}")
async def websocket_endpoint(websocket: WebSocket, session_id: str):
    """Relay endpoint for one session."""
    await websocket.accept()
    await manager.connect(websocket, session_id)

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                event = parse_inbound_event(orjson.loads(raw_data))
                if isinstance(event, PublishEvent):
                    await handle_publish(websocket, session_id, event)
                elif isinstance(event, RequestStateEvent):
                    await handle_request_state(websocket, session_id)
            except orjson.JSONDecodeError as e:
                error_event = create_error_event(ErrorCode.INVALID_EVENT, f"Malformed JSON: {e}")
                await websocket.send_text(error_event.model_dump_json())
            except ValueError as e:
                error_event = create_error_event(ErrorCode.INVALID_EVENT, str(e))
                await websocket.send_text(error_event.model_dump_json())

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from session {session_id}")
    finally:
        manager.disconnect(websocket, session_id)


async def handle_publish(websocket: WebSocket, session_id: str, event: PublishEvent):
    """Validate a published blob, remember it if newer and forward it."""
    try:
        session = decode_base64(event.blob)
    except GameError as e:
        logger.warning(f"Rejected undecodable blob for session {session_id}: {e.message}")
        error_event = create_error_event(ErrorCode.DECODE_FAILED, e.message)
        await websocket.send_text(error_event.model_dump_json())
        return

    if session.id != session_id:
        error_event = create_error_event(
            ErrorCode.SESSION_MISMATCH, f"Blob is for session {session.id}, not {session_id}"
        )
        await websocket.send_text(error_event.model_dump_json())
        return

    stored = manager.store(session_id, session.version, event.blob)
    logger.info(f"Session {session_id} v{session.version} published (stored={stored})")

    # Older versions are still forwarded; the host may need submissions they carry
    state_event = create_state_blob_event(session_id, session.version, event.blob)
    await manager.broadcast(session_id, state_event.model_dump_json(), exclude=websocket)
    await websocket.send_text(create_ack_event(session.version, stored).model_dump_json())


async def handle_request_state(websocket: WebSocket, session_id: str):
    """Send the newest stored blob to the requesting device."""
    latest = manager.get_latest(session_id)
    if latest is None:
        error_event = create_error_event(ErrorCode.NO_STATE, f"No state published for session {session_id}")
        await websocket.send_text(error_event.model_dump_json())
        return

    version, blob = latest
    await websocket.send_text(create_state_blob_event(session_id, version, blob).model_dump_json())
