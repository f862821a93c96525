"""
The composed call client.

CallClient is an explicit, constructible session object: each instance owns its
own event bus, connection manager, playback queue, dispatcher and lifecycle
controller. UI layers create one, subscribe to messages and status, and drive
the call through its async methods.
"""

import logging
from typing import Callable, Iterable, List, Optional

from call_client.audio.playback_queue import AudioPlaybackQueue
from call_client.audio.players import AudioPlayer, NullAudioPlayer
from call_client.config.constants import LOGGER_NAME
from call_client.config.settings import CallClientSettings
from call_client.connection_manager import ConnectionManager
from call_client.dispatcher import OutboundDispatcher
from call_client.events import EventBus, EventKind, Subscription
from call_client.handlers.frame_classifier import FrameClassifier
from call_client.lifecycle import SessionLifecycleController
from call_client.models.messages import AudioQueueItem, CallStatus, Message, MessageKind
from call_client.models.session import BulkDeleteResult, Session, StartCallResult
from call_client.services.conversations_api import ConversationsAPI, HttpClient, RequestsHttpClient

logger = logging.getLogger(LOGGER_NAME)


class CallClient:
    """
    Real-time call with a remote conversational agent.

    Args:
        settings: Base addresses and tuning; read from the environment when omitted
        player: Audio output for synthesized speech; headless when omitted
        http: HTTP transport for the conversations peer
        api: Fully built conversations client, overriding ``http``
    """

    def __init__(
        self,
        settings: Optional[CallClientSettings] = None,
        player: Optional[AudioPlayer] = None,
        http: Optional[HttpClient] = None,
        api: Optional[ConversationsAPI] = None,
    ):
        self.settings = settings or CallClientSettings.from_env()
        self.events = EventBus()

        self.connection = ConnectionManager(
            self.settings.resolved_ws_base_url,
            self.events,
            FrameClassifier(self.settings.default_tts_audio_format),
            reconnect_base_delay=self.settings.reconnect_base_delay,
            max_reconnect_attempts=self.settings.max_reconnect_attempts,
            keepalive_interval=self.settings.keepalive_interval,
            connect_timeout=self.settings.connect_timeout,
        )
        self.playback = AudioPlaybackQueue(player or NullAudioPlayer())
        self.dispatcher = OutboundDispatcher(
            self.connection,
            self.playback,
            self.events,
            dedup_window=self.settings.dedup_window,
        )
        self.api = api or ConversationsAPI(
            self.settings.http_base_url,
            http or RequestsHttpClient(timeout=self.settings.request_timeout),
        )
        self.lifecycle = SessionLifecycleController(
            self.api,
            self.connection,
            self.events,
            bot_name=self.settings.bot_name,
            platform=self.settings.platform,
        )

        self.events.subscribe(EventKind.MESSAGE, self._route_audio)
        self.events.subscribe(EventKind.CONNECTION_STATE, self._publish_status)
        self.events.subscribe(EventKind.SESSION_STATE, self._publish_status)

    # Status

    @property
    def status(self) -> CallStatus:
        return CallStatus(
            is_connected=self.connection.is_connected,
            is_call_active=self.lifecycle.is_active,
            conversation_id=self.lifecycle.conversation_id,
            connection_state=self.connection.state,
        )

    @property
    def conversation_id(self) -> Optional[str]:
        return self.lifecycle.conversation_id

    @property
    def session(self) -> Optional[Session]:
        return self.lifecycle.session

    # Subscriptions

    def on_message(
        self,
        handler: Callable[[Message], None],
        kinds: Optional[Iterable[MessageKind]] = None,
    ) -> Subscription:
        """Subscribe to messages, optionally only those of the given kinds."""
        if kinds is None:
            return self.events.subscribe(EventKind.MESSAGE, handler)

        wanted = frozenset(MessageKind(kind) for kind in kinds)

        def filtered(message: Message):
            if message.kind in wanted:
                return handler(message)
            return None

        return self.events.subscribe(EventKind.MESSAGE, filtered)

    def on_status_change(self, handler: Callable[[CallStatus], None]) -> Subscription:
        return self.events.subscribe(EventKind.STATUS, handler)

    # Lifecycle

    async def start_call(self, context_id: Optional[str] = None) -> StartCallResult:
        return await self.lifecycle.start_call(context_id)

    async def join_call(self, conversation_id: str) -> Session:
        return await self.lifecycle.join_call(conversation_id)

    async def end_call(self) -> None:
        self.playback.stop_and_clear()
        await self.lifecycle.end_call()
        self.playback.stop_and_clear()

    async def leave_call(self) -> None:
        self.playback.stop_and_clear()
        await self.lifecycle.leave_call()
        self.playback.stop_and_clear()

    async def delete_call(self) -> None:
        self.playback.stop_and_clear()
        await self.lifecycle.delete_call()
        self.playback.stop_and_clear()

    async def delete_conversation(self, conversation_id: str) -> bool:
        return await self.lifecycle.delete_conversation(conversation_id)

    async def bulk_delete_conversations(self, conversation_ids: List[str]) -> BulkDeleteResult:
        return await self.lifecycle.bulk_delete_conversations(conversation_ids)

    # Outbound

    async def send_message(self, content: str) -> bool:
        return await self.dispatcher.send_text(content)

    async def send_audio_chunk(self, payload: bytes, audio_format: Optional[str] = None) -> None:
        if audio_format is None:
            await self.dispatcher.send_audio_chunk(payload)
        else:
            await self.dispatcher.send_audio_chunk(payload, audio_format)

    async def send_audio_samples(self, samples) -> None:
        await self.dispatcher.send_audio_samples(samples)

    async def send_interrupt(self) -> None:
        await self.dispatcher.send_interrupt()

    async def commit_audio(self) -> None:
        await self.dispatcher.commit_audio()

    def notify_user_speaking(self) -> int:
        """
        Barge-in hook for the speech-capture component.

        Returns:
            Number of queued audio chunks discarded
        """
        return self.playback.stop_and_clear()

    async def close(self) -> None:
        """End any active call and release audio."""
        if self.lifecycle.session is not None:
            await self.end_call()
        else:
            self.playback.stop_and_clear()
        player_close = getattr(self.playback.player, "close", None)
        if callable(player_close):
            player_close()

    # Internal routing

    def _route_audio(self, message: Message) -> None:
        if message.kind != MessageKind.TTS_AUDIO:
            return
        if not message.audio_payload:
            logger.debug("Ignoring empty TTS audio frame")
            return
        if not self.lifecycle.is_active:
            logger.debug("Ignoring TTS audio received outside an active call")
            return
        self.playback.enqueue(AudioQueueItem.from_message(message))

    def _publish_status(self, _state) -> None:
        self.events.emit(EventKind.STATUS, self.status)
