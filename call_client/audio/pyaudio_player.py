"""
Speaker output through PyAudio.

Each payload gets its own output stream, opened for the clip's sample format
and closed as soon as the clip finishes or is stopped. Writes are blocking, so
they run in a worker thread and check a playback token between buffers; a
``stop()`` therefore takes effect within one buffer.
"""

import asyncio
import logging
from typing import Optional

import pyaudio

from call_client.audio.codec import PcmClip, decode_clip
from call_client.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

CHUNK_FRAMES = 1024


class PyAudioPlayer:
    def __init__(self, chunk_frames: int = CHUNK_FRAMES):
        self.chunk_frames = chunk_frames
        self._pa = pyaudio.PyAudio()
        self._token: Optional[object] = None

    async def play(self, payload: bytes, audio_format: str) -> None:
        clip = decode_clip(payload, audio_format)
        token = object()
        self._token = token
        await asyncio.to_thread(self._write_clip, clip, token)

    def _write_clip(self, clip: PcmClip, token: object) -> None:
        stream = self._pa.open(
            format=self._pa.get_format_from_width(clip.sample_width),
            channels=clip.channels,
            rate=clip.sample_rate,
            output=True,
            frames_per_buffer=self.chunk_frames,
        )
        step = self.chunk_frames * clip.channels * clip.sample_width
        try:
            for offset in range(0, len(clip.frames), step):
                if self._token is not token:
                    logger.debug("Playback stopped mid-clip")
                    break
                stream.write(clip.frames[offset:offset + step])
        finally:
            stream.stop_stream()
            stream.close()

    def stop(self) -> None:
        self._token = None

    def close(self) -> None:
        self.stop()
        self._pa.terminate()
