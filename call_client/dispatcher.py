"""
Serializes user input onto the call socket.

User text goes out as a UTF-8 text frame and microphone audio as raw binary
frames. Both require an open connection. Text first triggers barge-in on the
playback queue so the agent stops talking over the user, and identical text
repeated within the de-duplication window is dropped to absorb double-fire
from the upstream speech-capture component.
"""

import json
import logging
import time
from typing import Callable, Optional

from call_client.audio.codec import float_to_pcm16
from call_client.audio.playback_queue import AudioPlaybackQueue
from call_client.config.constants import (
    CONTROL_TYPE_COMMIT,
    CONTROL_TYPE_INTERRUPT,
    DEDUP_WINDOW,
    DEFAULT_CAPTURE_AUDIO_FORMAT,
    LOGGER_NAME,
)
from call_client.connection_manager import ConnectionManager
from call_client.events import EventBus, EventKind
from call_client.exceptions import NotConnectedError
from call_client.models.messages import Message

logger = logging.getLogger(LOGGER_NAME)


class OutboundDispatcher:
    def __init__(
        self,
        connection: ConnectionManager,
        playback: AudioPlaybackQueue,
        events: EventBus,
        dedup_window: float = DEDUP_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.connection = connection
        self.playback = playback
        self.events = events
        self.dedup_window = dedup_window
        self._clock = clock
        self._last_text: Optional[str] = None
        self._last_text_at: Optional[float] = None

    def _require_connected(self) -> None:
        if not self.connection.is_connected:
            raise NotConnectedError()

    def is_duplicate(self, content: str) -> bool:
        """True if content equals the last sent text and is inside the window."""
        if self._last_text is None or content != self._last_text:
            return False
        return (self._clock() - self._last_text_at) < self.dedup_window

    async def send_text(self, content: str) -> bool:
        """
        Send a user utterance.

        Returns:
            True if the text was sent, False if it was suppressed as a duplicate

        Raises:
            NotConnectedError: If the connection is not open
        """
        self._require_connected()
        if self.is_duplicate(content):
            logger.info("Suppressed duplicate user message inside de-duplication window")
            return False

        # Recorded before the send so a concurrent duplicate is caught
        previous = (self._last_text, self._last_text_at)
        self._last_text = content
        self._last_text_at = self._clock()

        self.playback.stop_and_clear()
        try:
            await self.connection.send(content)
        except Exception:
            self._last_text, self._last_text_at = previous
            raise

        self.events.emit(
            EventKind.MESSAGE, Message.user_text(content, self.connection.session_id)
        )
        return True

    async def send_audio_chunk(
        self, payload: bytes, audio_format: str = DEFAULT_CAPTURE_AUDIO_FORMAT
    ) -> None:
        """
        Send one raw microphone chunk.

        Raises:
            NotConnectedError: If the connection is not open
        """
        self._require_connected()
        await self.connection.send(bytes(payload))
        logger.debug(f"Sent audio chunk of {len(payload)} bytes")
        self.events.emit(
            EventKind.MESSAGE,
            Message.audio_chunk(bytes(payload), self.connection.session_id, audio_format),
        )

    async def send_audio_samples(self, samples) -> None:
        """Convert float samples in [-1, 1] to PCM16 and send them."""
        await self.send_audio_chunk(float_to_pcm16(samples), DEFAULT_CAPTURE_AUDIO_FORMAT)

    async def send_interrupt(self) -> None:
        """Barge in locally and tell the agent to stop its current response."""
        self._require_connected()
        self.playback.stop_and_clear()
        await self.connection.send(json.dumps({"type": CONTROL_TYPE_INTERRUPT}))
        logger.info("Sent interrupt")

    async def commit_audio(self) -> None:
        """Mark the end of a spoken user turn."""
        self._require_connected()
        await self.connection.send(json.dumps({"type": CONTROL_TYPE_COMMIT}))
        logger.debug("Committed user audio turn")
