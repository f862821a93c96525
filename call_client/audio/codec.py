"""
Audio payload helpers.

Decodes synthesized-speech payloads into raw PCM frames for playback and
converts captured float samples into the PCM16 bytes the gateway expects.
"""

import io
import wave
from dataclasses import dataclass

import numpy as np

from call_client.config.constants import (
    PCM16_CHANNELS,
    PCM16_FORMATS,
    PCM16_SAMPLE_RATE,
    WAV_FORMATS,
)
from call_client.exceptions import UnsupportedAudioFormatError


@dataclass(frozen=True)
class PcmClip:
    """Decoded PCM audio ready to be written to an output device."""

    frames: bytes
    sample_rate: int
    channels: int
    sample_width: int

    @property
    def duration(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * self.sample_width
        if bytes_per_second == 0:
            return 0.0
        return len(self.frames) / bytes_per_second


def decode_clip(payload: bytes, audio_format: str) -> PcmClip:
    """
    Decode an audio payload into PCM frames.

    WAV containers are recognized by MIME type or by their RIFF header; raw
    PCM16 is assumed to be 16 kHz mono.

    Raises:
        UnsupportedAudioFormatError: For empty payloads, compressed formats or
            malformed WAV data
    """
    if not payload:
        raise UnsupportedAudioFormatError("Empty audio payload")

    fmt = (audio_format or "").lower()
    if fmt in WAV_FORMATS or payload[:4] == b"RIFF":
        try:
            with wave.open(io.BytesIO(payload), "rb") as wav:
                return PcmClip(
                    frames=wav.readframes(wav.getnframes()),
                    sample_rate=wav.getframerate(),
                    channels=wav.getnchannels(),
                    sample_width=wav.getsampwidth(),
                )
        except (wave.Error, EOFError) as e:
            raise UnsupportedAudioFormatError(f"Malformed WAV payload: {e}") from e

    if fmt in PCM16_FORMATS:
        return PcmClip(
            frames=payload,
            sample_rate=PCM16_SAMPLE_RATE,
            channels=PCM16_CHANNELS,
            sample_width=2,
        )

    raise UnsupportedAudioFormatError(f"Cannot decode audio format: {audio_format}")


def float_to_pcm16(samples) -> bytes:
    """
    Convert float samples in [-1.0, 1.0] to little-endian signed 16-bit PCM.

    Negative samples scale by 32768 and positive ones by 32767 so both ends of
    the range map onto the full int16 span.
    """
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return np.round(scaled).astype("<i2").tobytes()
