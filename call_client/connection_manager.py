"""
Owns the single websocket of a call session.

The ConnectionManager opens the socket at a session-scoped address, runs the
receive loop that feeds the frame classifier, keeps the link alive with textual
pings, and reconnects with exponential backoff after an unexpected close. It
publishes every state transition on the event bus.

A deliberate ``disconnect()`` is distinguished from a network-caused close:
only the latter triggers the connection-lost handler and reconnection, and
reconnection happens only while the owning session is still active.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from call_client.config.constants import (
    CLOSE_CODE_ABNORMAL,
    CLOSE_CODE_INTERNAL_ERROR,
    CLOSE_CODE_NORMAL,
    CONNECTED_GREETING,
    CONNECTION_TIMEOUT,
    EVENT_TYPE_CONNECTED,
    KEEPALIVE_INTERVAL,
    KEEPALIVE_PING,
    LOGGER_NAME,
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_BASE_DELAY,
    WS_MAX_SIZE,
)
from call_client.events import EventBus, EventKind
from call_client.exceptions import CallConnectionError, NotConnectedError
from call_client.handlers.frame_classifier import FrameClassifier
from call_client.models.messages import ConnectionState, Message

logger = logging.getLogger(LOGGER_NAME)

LostHandler = Callable[[int], Awaitable[None]]


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before reconnect attempt number ``attempt`` (1-based)."""
    return base_delay * (2 ** (attempt - 1))


class ConnectionManager:
    def __init__(
        self,
        ws_base_url: str,
        events: EventBus,
        classifier: Optional[FrameClassifier] = None,
        reconnect_base_delay: float = RECONNECT_BASE_DELAY,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        connect_timeout: float = CONNECTION_TIMEOUT,
    ):
        self.ws_base_url = ws_base_url.rstrip("/")
        self.events = events
        self.classifier = classifier or FrameClassifier()
        self.reconnect_base_delay = reconnect_base_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.keepalive_interval = keepalive_interval
        self.connect_timeout = connect_timeout

        self.ws = None
        self.session_id: Optional[str] = None
        self.state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.last_reconnect_delay: Optional[float] = None

        self._url: Optional[str] = None
        self._registration: Optional[Dict[str, Any]] = None
        self._recv_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._lost_task: Optional[asyncio.Task] = None
        self._is_closing = False
        self._session_active: Callable[[], bool] = lambda: self.session_id is not None
        self._connection_lost_handler: Optional[LostHandler] = None

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED and self.ws is not None

    def url_for(self, session_id: str) -> str:
        return f"{self.ws_base_url}/ws/{session_id}"

    def set_connection_handlers(
        self,
        session_active: Optional[Callable[[], bool]] = None,
        lost_handler: Optional[LostHandler] = None,
    ) -> None:
        """
        Bind the owning session to this connection.

        Args:
            session_active: Returns whether the session is still active; gates
                every reconnect attempt
            lost_handler: Awaited with the close code after an unexpected,
                non-normal close while the session is active
        """
        if session_active is not None:
            self._session_active = session_active
        self._connection_lost_handler = lost_handler
        logger.debug("Connection event handlers registered")

    async def connect(
        self,
        session_id: str,
        url: Optional[str] = None,
        registration: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Open the socket for session_id.

        Idempotent while already connected to the same session. Connecting to a
        different session closes the previous socket first.

        Raises:
            CallConnectionError: If the socket could not be opened
        """
        if self.is_connected and self.session_id == session_id:
            logger.debug(f"Already connected for session {session_id}")
            return

        if self.ws is not None:
            await self.disconnect()

        self._is_closing = False
        if url is not None:
            self._url = url
        elif self._url is None or session_id != self.session_id:
            self._url = self.url_for(session_id)
        self.session_id = session_id
        if registration is not None:
            self._registration = registration

        self._set_state(ConnectionState.CONNECTING)
        logger.info(f"Connecting call socket at {self._url}")
        try:
            ws = await asyncio.wait_for(
                websockets.connect(
                    self._url,
                    max_size=WS_MAX_SIZE,
                    # keepalive is the textual ping below
                    ping_interval=None,
                ),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            self._set_state(ConnectionState.ERROR)
            raise CallConnectionError(
                f"Timeout while connecting to {self._url} (after {self.connect_timeout}s)"
            ) from e
        except Exception as e:
            self._set_state(ConnectionState.ERROR)
            raise CallConnectionError(f"Failed to connect to {self._url}: {e}") from e

        if self._is_closing:
            # disconnect() raced the handshake
            await ws.close(code=CLOSE_CODE_NORMAL)
            raise CallConnectionError("Connection cancelled by disconnect")

        self.ws = ws
        self.reconnect_attempts = 0
        self._set_state(ConnectionState.CONNECTED)
        logger.info(f"Connected call socket for session {session_id}")

        if self._registration is not None:
            try:
                await ws.send(json.dumps(self._registration))
            except Exception as e:
                logger.error(f"Failed to send registration message: {e}")

        self._recv_task = asyncio.create_task(self._recv_loop(ws))
        self._keepalive_task = asyncio.create_task(self._keepalive(ws))

        self.events.emit(
            EventKind.MESSAGE,
            Message.system(CONNECTED_GREETING, session_id, event_type=EVENT_TYPE_CONNECTED),
        )

    async def disconnect(self) -> None:
        """Close the socket deliberately; never followed by a reconnect."""
        self._is_closing = True
        self._cancel(self._reconnect_task)
        self._reconnect_task = None
        self._cancel(self._keepalive_task)
        self._keepalive_task = None
        self._cancel(self._recv_task)
        self._recv_task = None

        ws, self.ws = self.ws, None
        if ws is not None:
            try:
                await ws.close(code=CLOSE_CODE_NORMAL, reason="client disconnect")
            except Exception as e:
                logger.warning(f"Error closing call socket: {e}")
            logger.info("Closed call socket")

        self.session_id = None
        self._url = None
        self._registration = None
        self.reconnect_attempts = 0
        self._set_state(ConnectionState.DISCONNECTED)

    async def send(self, data: Union[str, bytes]) -> None:
        """
        Send one text or binary frame.

        Raises:
            NotConnectedError: Unless the connection is in the connected state
        """
        if not self.is_connected:
            raise NotConnectedError()
        try:
            await self.ws.send(data)
        except ConnectionClosed as e:
            raise NotConnectedError(f"Connection closed while sending: {e}") from e

    async def _recv_loop(self, ws) -> None:
        close_code = CLOSE_CODE_ABNORMAL
        try:
            while True:
                frame = await ws.recv()
                try:
                    message = self.classifier.classify(frame, self.session_id)
                except Exception as e:
                    logger.error(f"Dropping frame that could not be classified: {e}")
                    continue
                if message is not None:
                    self.events.emit(EventKind.MESSAGE, message)
        except ConnectionClosed as e:
            if e.rcvd is not None:
                close_code = e.rcvd.code
            logger.info(f"Call socket closed with code {close_code}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in receive loop: {e}", exc_info=True)
            # The socket may still be open; close it before any reconnect
            try:
                await ws.close(code=CLOSE_CODE_INTERNAL_ERROR, reason="receive loop failed")
            except Exception as close_error:
                logger.warning(f"Error closing call socket: {close_error}")

        if ws is self.ws and not self._is_closing:
            self._handle_unexpected_close(close_code)

    def _handle_unexpected_close(self, close_code: int) -> None:
        self.ws = None
        self._recv_task = None
        self._cancel(self._keepalive_task)
        self._keepalive_task = None
        self._set_state(ConnectionState.DISCONNECTED)

        if not self._session_active():
            return

        if close_code != CLOSE_CODE_NORMAL and self._connection_lost_handler is not None:
            logger.warning(f"Call socket closed unexpectedly ({close_code}), notifying session")
            self._lost_task = asyncio.create_task(self._notify_connection_lost(close_code))

        self._schedule_reconnect()

    async def _notify_connection_lost(self, close_code: int) -> None:
        try:
            await self._connection_lost_handler(close_code)
        except Exception as e:
            logger.error(f"Error in connection lost handler: {e}")

    def _schedule_reconnect(self) -> bool:
        if self._is_closing or not self._session_active():
            return False
        if self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.error(
                f"Max reconnection attempts ({self.max_reconnect_attempts}) reached, giving up"
            )
            self._set_state(ConnectionState.DISCONNECTED)
            return False

        self.reconnect_attempts += 1
        delay = backoff_delay(self.reconnect_base_delay, self.reconnect_attempts)
        self.last_reconnect_delay = delay
        logger.info(
            f"Scheduling reconnect attempt {self.reconnect_attempts}/{self.max_reconnect_attempts} in {delay}s"
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))
        return True

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._is_closing or not self._session_active() or self.session_id is None:
            logger.info("Session no longer active, abandoning reconnect")
            return
        try:
            await self.connect(self.session_id)
        except CallConnectionError as e:
            logger.warning(f"Reconnect attempt {self.reconnect_attempts} failed: {e}")
            self._schedule_reconnect()

    async def _keepalive(self, ws) -> None:
        while True:
            await asyncio.sleep(self.keepalive_interval)
            if ws is not self.ws or self.state != ConnectionState.CONNECTED:
                return
            try:
                await ws.send(KEEPALIVE_PING)
                logger.debug("Sent keepalive ping")
            except ConnectionClosed:
                logger.debug("Keepalive stopped, socket closed")
                return

    def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        logger.debug(f"Connection state {self.state.value} -> {state.value}")
        self.state = state
        self.events.emit(EventKind.CONNECTION_STATE, state)

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
