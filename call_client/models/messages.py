"""
Pydantic models for messages flowing through the call client.

Every inbound frame and every outbound user input is represented as an
immutable Message. The set of message kinds is closed; observers switch on
``Message.kind`` and never receive raw frames.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from call_client.config.constants import DEFAULT_TTS_AUDIO_FORMAT


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageKind(str, Enum):
    """Closed set of message variants."""

    USER_TEXT = "user_text"
    AGENT_TEXT = "agent_text"
    SYSTEM = "system"
    AUDIO_CHUNK = "audio_chunk"
    TTS_AUDIO = "tts_audio"


class ConnectionState(str, Enum):
    """Connection manager states."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class Message(BaseModel):
    """A single immutable message emitted to observers."""

    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    content: str = Field(..., description="Text content or a human readable summary")
    timestamp: datetime = Field(default_factory=_utcnow)
    session_id: Optional[str] = Field(None, description="Session the message belongs to")
    audio_payload: Optional[bytes] = Field(None, description="Raw audio bytes for audio kinds")
    audio_format: Optional[str] = Field(None, description="MIME type of audio_payload")
    event_type: Optional[str] = Field(None, description="Structured event type for system messages")
    data: Optional[Dict[str, Any]] = Field(None, description="Parsed structured event payload")

    @classmethod
    def user_text(cls, content: str, session_id: Optional[str]) -> "Message":
        return cls(kind=MessageKind.USER_TEXT, content=content, session_id=session_id)

    @classmethod
    def agent_text(cls, content: str, session_id: Optional[str]) -> "Message":
        return cls(kind=MessageKind.AGENT_TEXT, content=content, session_id=session_id)

    @classmethod
    def system(
        cls,
        content: str,
        session_id: Optional[str],
        event_type: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> "Message":
        return cls(
            kind=MessageKind.SYSTEM,
            content=content,
            session_id=session_id,
            event_type=event_type,
            data=data,
        )

    @classmethod
    def tts_audio(
        cls, payload: bytes, session_id: Optional[str], audio_format: Optional[str] = None
    ) -> "Message":
        return cls(
            kind=MessageKind.TTS_AUDIO,
            content=f"TTS audio: {len(payload)} bytes",
            session_id=session_id,
            audio_payload=payload,
            audio_format=audio_format or DEFAULT_TTS_AUDIO_FORMAT,
        )

    @classmethod
    def audio_chunk(cls, payload: bytes, session_id: Optional[str], audio_format: str) -> "Message":
        return cls(
            kind=MessageKind.AUDIO_CHUNK,
            content=f"Audio chunk: {len(payload)} bytes",
            session_id=session_id,
            audio_payload=payload,
            audio_format=audio_format,
        )


class AudioQueueItem(BaseModel):
    """One synthesized-speech chunk waiting for playback."""

    model_config = ConfigDict(frozen=True)

    payload: bytes
    format: str = DEFAULT_TTS_AUDIO_FORMAT

    @classmethod
    def from_message(cls, message: Message) -> "AudioQueueItem":
        return cls(
            payload=message.audio_payload or b"",
            format=message.audio_format or DEFAULT_TTS_AUDIO_FORMAT,
        )


class CallStatus(BaseModel):
    """Observable snapshot of the call, published on every transition."""

    model_config = ConfigDict(frozen=True)

    is_connected: bool = False
    is_call_active: bool = False
    conversation_id: Optional[str] = None
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
