"""
Audio output backends used by the playback queue.

A player owns the audio-output resource. ``play`` materializes one payload,
plays it to completion and releases it; ``stop`` halts whatever is playing.
Failures are raised from ``play`` so the queue can drop the offending chunk.
"""

import logging
from typing import Protocol, runtime_checkable

from call_client.audio.codec import decode_clip
from call_client.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


@runtime_checkable
class AudioPlayer(Protocol):
    async def play(self, payload: bytes, audio_format: str) -> None:
        ...

    def stop(self) -> None:
        ...


class NullAudioPlayer:
    """Headless player: validates and discards audio without blocking."""

    def __init__(self):
        self.played = 0
        self.stopped = 0

    async def play(self, payload: bytes, audio_format: str) -> None:
        clip = decode_clip(payload, audio_format)
        self.played += 1
        logger.debug(f"Discarded {clip.duration:.2f}s of {audio_format} audio")

    def stop(self) -> None:
        self.stopped += 1
