import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from call_client.audio.playback_queue import AudioPlaybackQueue
from call_client.connection_manager import ConnectionManager
from call_client.dispatcher import OutboundDispatcher
from call_client.events import EventKind
from call_client.exceptions import NotConnectedError
from call_client.models.messages import MessageKind


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def connection():
    connection = MagicMock(spec=ConnectionManager)
    connection.is_connected = True
    connection.session_id = "abc123"
    connection.send = AsyncMock()
    return connection


@pytest.fixture
def playback():
    playback = MagicMock(spec=AudioPlaybackQueue)
    playback.stop_and_clear.return_value = 0
    return playback


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher(connection, playback, events, clock):
    return OutboundDispatcher(connection, playback, events, dedup_window=2.0, clock=clock)


@pytest.mark.asyncio
async def test_send_text_barges_in_then_sends(dispatcher, connection, playback, events):
    messages = []
    events.subscribe(EventKind.MESSAGE, messages.append)

    sent = await dispatcher.send_text("What's on my calendar?")

    assert sent is True
    playback.stop_and_clear.assert_called_once()
    connection.send.assert_awaited_once_with("What's on my calendar?")
    assert len(messages) == 1
    assert messages[0].kind == MessageKind.USER_TEXT
    assert messages[0].content == "What's on my calendar?"
    assert messages[0].session_id == "abc123"


@pytest.mark.asyncio
async def test_duplicate_inside_window_is_suppressed(dispatcher, connection, playback, clock):
    await dispatcher.send_text("hello")
    clock.now += 0.5

    sent = await dispatcher.send_text("hello")

    assert sent is False
    assert connection.send.await_count == 1
    assert playback.stop_and_clear.call_count == 1


@pytest.mark.asyncio
async def test_duplicate_after_window_is_sent(dispatcher, connection, clock):
    await dispatcher.send_text("hello")
    clock.now += 2.5

    assert await dispatcher.send_text("hello") is True
    assert connection.send.await_count == 2


@pytest.mark.asyncio
async def test_different_text_is_never_deduplicated(dispatcher, connection):
    await dispatcher.send_text("hello")
    await dispatcher.send_text("goodbye")

    assert connection.send.await_count == 2


@pytest.mark.asyncio
async def test_send_text_while_disconnected(dispatcher, connection, playback, events):
    connection.is_connected = False
    messages = []
    events.subscribe(EventKind.MESSAGE, messages.append)

    with pytest.raises(NotConnectedError):
        await dispatcher.send_text("hello")

    connection.send.assert_not_awaited()
    playback.stop_and_clear.assert_not_called()
    assert messages == []


@pytest.mark.asyncio
async def test_send_audio_chunk_sends_binary(dispatcher, connection, playback, events):
    messages = []
    events.subscribe(EventKind.MESSAGE, messages.append)

    await dispatcher.send_audio_chunk(bytearray(b"\x01\x02\x03\x04"))

    connection.send.assert_awaited_once_with(b"\x01\x02\x03\x04")
    playback.stop_and_clear.assert_not_called()
    assert messages[0].kind == MessageKind.AUDIO_CHUNK
    assert messages[0].audio_payload == b"\x01\x02\x03\x04"
    assert messages[0].audio_format == "audio/pcm"


@pytest.mark.asyncio
async def test_send_audio_chunk_while_disconnected(dispatcher, connection):
    connection.is_connected = False

    with pytest.raises(NotConnectedError):
        await dispatcher.send_audio_chunk(b"\x00\x00")


@pytest.mark.asyncio
async def test_send_audio_samples_converts_to_pcm16(dispatcher, connection):
    await dispatcher.send_audio_samples([0.0, 1.0, -1.0])

    connection.send.assert_awaited_once_with(b"\x00\x00\xff\x7f\x00\x80")


@pytest.mark.asyncio
async def test_send_interrupt(dispatcher, connection, playback):
    await dispatcher.send_interrupt()

    playback.stop_and_clear.assert_called_once()
    assert json.loads(connection.send.await_args.args[0]) == {"type": "interrupt"}


@pytest.mark.asyncio
async def test_commit_audio(dispatcher, connection, playback):
    await dispatcher.commit_audio()

    playback.stop_and_clear.assert_not_called()
    assert json.loads(connection.send.await_args.args[0]) == {"type": "commit"}


@pytest.mark.asyncio
async def test_concurrent_duplicates_send_once(dispatcher, connection):
    async def slow_send(_data):
        await asyncio.sleep(0)

    connection.send.side_effect = slow_send

    results = await asyncio.gather(dispatcher.send_text("hello"), dispatcher.send_text("hello"))

    assert sorted(results) == [False, True]
    assert connection.send.await_count == 1


@pytest.mark.asyncio
async def test_failed_send_does_not_suppress_retry(dispatcher, connection):
    connection.send.side_effect = [NotConnectedError(), None]

    with pytest.raises(NotConnectedError):
        await dispatcher.send_text("hello")

    assert await dispatcher.send_text("hello") is True
    assert connection.send.await_count == 2
