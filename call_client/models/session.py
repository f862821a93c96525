"""
Session state and REST peer result models.

The Session ties a server-assigned (or locally minted) conversation id to the
live socket. Its id never changes once created; the lifecycle controller drops
the whole object when the call ends.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from call_client.config.constants import (
    CONTROL_TYPE_BOT_REGISTRATION,
    PCM16_CHANNELS,
    PCM16_SAMPLE_RATE,
)


class SessionState(str, Enum):
    """Lifecycle controller states: idle -> starting -> active -> ending -> idle."""

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ENDING = "ending"


class Session(BaseModel):
    """The single active call of a client instance."""

    id: str = Field(..., frozen=True, description="Conversation id, immutable for the session")
    active: bool = False
    degraded: bool = Field(
        False, description="True when the id was minted locally because the REST peer failed"
    )
    meeting_id: Optional[str] = Field(None, frozen=True)
    ws_url: Optional[str] = Field(None, frozen=True, description="Socket address returned by the peer")

    @property
    def socket_key(self) -> str:
        """Identifier the socket address is keyed by."""
        return self.meeting_id or self.id


class StartCallResult(BaseModel):
    """Response of the conversations/start endpoint."""

    conversation_id: str
    meeting_id: Optional[str] = None
    meeting_url: Optional[str] = None
    meeting_ui_url: Optional[str] = None
    ws_url: Optional[str] = None

    def model_post_init(self, __context: Any) -> None:
        if self.meeting_ui_url is None and self.meeting_url is not None:
            self.meeting_ui_url = self.meeting_url


class JoinCallResult(BaseModel):
    """Response of the conversations/{id}/join endpoint."""

    conversation_id: str
    ws_url: Optional[str] = None


class FailedDeletion(BaseModel):
    conversation_id: str
    error: str


class BulkDeleteResult(BaseModel):
    """Response of the conversations/bulk-delete endpoint."""

    deleted_count: int = 0
    total_requested: int = 0
    failed_deletions: List[FailedDeletion] = Field(default_factory=list)

    @classmethod
    def all_failed(cls, conversation_ids: List[str], error: str) -> "BulkDeleteResult":
        return cls(
            deleted_count=0,
            total_requested=len(conversation_ids),
            failed_deletions=[
                FailedDeletion(conversation_id=cid, error=error) for cid in conversation_ids
            ],
        )

    def failed_ids(self) -> List[str]:
        return [failure.conversation_id for failure in self.failed_deletions]


def registration_payload(session_id: str, bot_name: str, platform: str) -> Dict[str, Any]:
    """Build the bot_registration message sent right after the socket opens."""
    return {
        "type": CONTROL_TYPE_BOT_REGISTRATION,
        "sessionId": session_id,
        "meetingId": session_id,
        "botName": bot_name,
        "platform": platform,
        "audioConfig": {"sampleRate": PCM16_SAMPLE_RATE, "channels": PCM16_CHANNELS},
    }
