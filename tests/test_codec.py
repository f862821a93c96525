import io
import wave

import numpy as np
import pytest

from call_client.audio.codec import decode_clip, float_to_pcm16
from call_client.exceptions import UnsupportedAudioFormatError


def make_wav(frames=b"\x00\x00" * 800, rate=8000, channels=1):
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(frames)
    return buffer.getvalue()


def test_decode_wav_by_mime_type():
    clip = decode_clip(make_wav(), "audio/wav")

    assert clip.sample_rate == 8000
    assert clip.channels == 1
    assert clip.sample_width == 2
    assert len(clip.frames) == 1600
    assert clip.duration == pytest.approx(0.1)


def test_decode_wav_by_header_when_mime_type_is_generic():
    clip = decode_clip(make_wav(rate=24000), "application/octet-stream")

    assert clip.sample_rate == 24000


def test_decode_raw_pcm16():
    clip = decode_clip(b"\x00\x00" * 16000, "audio/pcm")

    assert clip.sample_rate == 16000
    assert clip.channels == 1
    assert clip.duration == pytest.approx(1.0)


@pytest.mark.parametrize(
    "payload, fmt",
    [
        (b"", "audio/wav"),
        (b"\xff\xfb\x90\x00", "audio/mp3"),
        (b"RIFF\x00\x00", "audio/wav"),
    ],
)
def test_undecodable_payloads_raise(payload, fmt):
    with pytest.raises(UnsupportedAudioFormatError):
        decode_clip(payload, fmt)


def test_float_to_pcm16_extremes():
    pcm = float_to_pcm16([-1.0, 0.0, 1.0, 0.5, -0.5])

    values = np.frombuffer(pcm, dtype="<i2").tolist()
    assert values == [-32768, 0, 32767, 16384, -16384]


def test_float_to_pcm16_clips_out_of_range_samples():
    pcm = float_to_pcm16(np.array([2.0, -3.0], dtype=np.float32))

    assert np.frombuffer(pcm, dtype="<i2").tolist() == [32767, -32768]
    assert len(pcm) == 4
