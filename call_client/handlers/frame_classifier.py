"""
Classifies inbound websocket frames into typed messages.

The gateway overloads one channel with three frame shapes: plain text replies,
JSON objects carrying structured events, and binary synthesized speech. The
checks run in a fixed order (keepalive, then JSON, then plain text, then
binary) so that a keepalive reply is never surfaced and a JSON event is never
shown to the user as agent speech.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from call_client.config.constants import (
    DEFAULT_TTS_AUDIO_FORMAT,
    EVENT_TYPE_AI_RESPONSE,
    EVENT_TYPE_TRANSCRIPTION,
    KEEPALIVE_PONG,
    LOGGER_NAME,
)
from call_client.models.messages import Message

logger = logging.getLogger(LOGGER_NAME)

Frame = Union[str, bytes, bytearray, memoryview]


def parse_structured_event(text: str) -> Optional[Dict[str, Any]]:
    """
    Parse text as a structured event.

    Returns:
        The decoded object when text is a JSON object with a non-empty string
        "type" field, otherwise None
    """
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    event_type = parsed.get("type")
    if not isinstance(event_type, str) or not event_type:
        return None
    return parsed


class FrameClassifier:
    """Turns one inbound frame into at most one Message."""

    def __init__(self, default_audio_format: str = DEFAULT_TTS_AUDIO_FORMAT):
        self.default_audio_format = default_audio_format

    def classify(
        self,
        frame: Frame,
        session_id: Optional[str],
        audio_format: Optional[str] = None,
    ) -> Optional[Message]:
        """
        Classify a single inbound frame.

        Args:
            frame: The raw frame as delivered by the socket
            session_id: Session the frame arrived on
            audio_format: MIME type supplied by the transport for binary frames

        Returns:
            The classified Message, or None for keepalive replies and
            unsupported frame types
        """
        if isinstance(frame, str):
            return self._classify_text(frame, session_id)

        if isinstance(frame, (bytes, bytearray, memoryview)):
            payload = bytes(frame)
            logger.debug(f"Received binary frame of size {len(payload)} bytes")
            return Message.tts_audio(
                payload, session_id, audio_format or self.default_audio_format
            )

        logger.warning(f"Dropping frame of unsupported type: {type(frame).__name__}")
        return None

    def _classify_text(self, text: str, session_id: Optional[str]) -> Optional[Message]:
        if text == KEEPALIVE_PONG:
            return None

        event = parse_structured_event(text)
        if event is not None:
            return self._classify_event(event, text, session_id)

        return Message.agent_text(text, session_id)

    def _classify_event(
        self, event: Dict[str, Any], raw: str, session_id: Optional[str]
    ) -> Message:
        event_type = event["type"]
        content = event.get("content")

        if event_type == EVENT_TYPE_AI_RESPONSE and isinstance(content, str):
            return Message.agent_text(content, session_id)
        if event_type == EVENT_TYPE_TRANSCRIPTION and isinstance(content, str):
            return Message.user_text(content, session_id)

        logger.debug(f"Received structured event of type: {event_type}")
        return Message.system(raw, session_id, event_type=event_type, data=event)
