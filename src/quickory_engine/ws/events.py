"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Union

from pydantic import BaseModel, Field, ValidationError


class EventType(str, Enum):
    """Inbound event types."""
    PUBLISH = "publish"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    STATE_BLOB = "state_blob"
    ACK = "ack"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    DECODE_FAILED = "DECODE_FAILED"
    SESSION_MISMATCH = "SESSION_MISMATCH"
    NO_STATE = "NO_STATE"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class PublishEvent(BaseEvent):
    """A device publishing its current session."""
    type: EventType = EventType.PUBLISH
    blob: str = Field(..., min_length=1, description="base64 encoded session JSON")


class RequestStateEvent(BaseEvent):
    """Ask the relay for the latest session it has seen."""
    type: EventType = EventType.REQUEST_STATE


InboundEvent = Union[PublishEvent, RequestStateEvent]


# Outbound event models
class StateBlobEvent(BaseModel):
    """Session blob forwarded to devices."""
    type: OutboundEventType = OutboundEventType.STATE_BLOB
    session_id: str
    version: int
    blob: str
    timestamp: float


class AckEvent(BaseModel):
    """Publish acknowledgement."""
    type: OutboundEventType = OutboundEventType.ACK
    version: int
    stored: bool
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


OutboundEvent = Union[StateBlobEvent, AckEvent, ErrorEvent]


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into the matching event model.

    Raises:
        ValueError: If the event type is unknown or the data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.PUBLISH: PublishEvent,
        EventType.REQUEST_STATE: RequestStateEvent,
    }

    try:
        return event_map[event_type](**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e}")


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message, timestamp=time.time())


def create_state_blob_event(session_id: str, version: int, blob: str) -> StateBlobEvent:
    """Create a state blob event."""
    return StateBlobEvent(session_id=session_id, version=version, blob=blob, timestamp=time.time())


def create_ack_event(version: int, stored: bool) -> AckEvent:
    """Create a publish acknowledgement."""
    return AckEvent(version=version, stored=stored, timestamp=time.time())
