import asyncio
import logging

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK
from websockets.frames import Close

from call_client.events import EventBus
from call_client.exceptions import UnsupportedAudioFormatError


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self):
        self.sent = []
        self.closed_with = None
        self._inbox = asyncio.Queue()

    async def recv(self):
        item = await self._inbox.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def send(self, data):
        self.sent.append(data)

    async def close(self, code=1000, reason=""):
        self.closed_with = code

    def feed(self, frame):
        self._inbox.put_nowait(frame)

    def drop(self, code=1011, reason="server went away"):
        """Simulate the peer closing the connection."""
        if code == 1000:
            error = ConnectionClosedOK(Close(code, reason), None)
        else:
            error = ConnectionClosedError(Close(code, reason), None)
        self._inbox.put_nowait(error)


class ControlledPlayer:
    """Audio player whose clips finish only when the test releases them."""

    def __init__(self, fail_on=()):
        self.started = []
        self.finished = []
        self.stop_calls = 0
        self.fail_on = set(fail_on)
        self._releases = {}

    async def play(self, payload, audio_format):
        self.started.append(payload)
        if payload in self.fail_on:
            raise UnsupportedAudioFormatError("bad chunk")
        release = asyncio.Event()
        self._releases[payload] = release
        await release.wait()
        self.finished.append(payload)

    def release(self, payload):
        self._releases[payload].set()

    def stop(self):
        self.stop_calls += 1


async def drain_loop(ticks=10):
    """Let pending callbacks and tasks run."""
    for _ in range(ticks):
        await asyncio.sleep(0)


@pytest.fixture
def drain():
    return drain_loop


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def make_socket():
    return FakeSocket


@pytest.fixture
def player():
    return ControlledPlayer()


@pytest.fixture
def make_player():
    return ControlledPlayer
