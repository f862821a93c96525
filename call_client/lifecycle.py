"""
Drives the call session through idle -> starting -> active -> ending -> idle.

The controller obtains a conversation id from the REST peer (or mints one
locally when the peer is unreachable), binds it to the connection manager and
tears everything down again when the call ends. Local state always changes
synchronously and optimistically; remote notifications on end, leave and
delete are advisory, so their failures are logged and never block cleanup.
"""

import logging
import uuid
from typing import List, Optional

from call_client.config.constants import LOGGER_NAME
from call_client.connection_manager import ConnectionManager
from call_client.events import EventBus, EventKind
from call_client.exceptions import CallAlreadyActiveError, CallConnectionError, ConversationAPIError
from call_client.models.session import (
    BulkDeleteResult,
    Session,
    SessionState,
    StartCallResult,
    registration_payload,
)
from call_client.services.conversations_api import ConversationsAPI

logger = logging.getLogger(LOGGER_NAME)


class SessionLifecycleController:
    def __init__(
        self,
        api: ConversationsAPI,
        connection: ConnectionManager,
        events: EventBus,
        bot_name: str = "Web Client",
        platform: str = "clerk",
    ):
        self.api = api
        self.connection = connection
        self.events = events
        self.bot_name = bot_name
        self.platform = platform
        self.session: Optional[Session] = None
        self.state = SessionState.IDLE
        self.user_id: Optional[str] = None

        connection.set_connection_handlers(
            session_active=lambda: self.is_active,
            lost_handler=self._on_connection_lost,
        )

    @property
    def is_active(self) -> bool:
        return self.session is not None and self.session.active

    @property
    def conversation_id(self) -> Optional[str]:
        return self.session.id if self.session else None

    async def start_call(self, context_id: Optional[str] = None) -> StartCallResult:
        """
        Create a conversation on the peer and open its socket.

        Falls back to a locally generated id (degraded mode) when the peer
        cannot be reached.

        Raises:
            CallAlreadyActiveError: If a call is already in progress
            CallConnectionError: If the socket cannot be opened
        """
        self._require_idle()
        self._set_state(SessionState.STARTING)
        self.user_id = str(uuid.uuid4())

        degraded = False
        try:
            result = await self.api.start_conversation(
                user_id=self.user_id, context_id=context_id, platform=self.platform
            )
        except ConversationAPIError as e:
            logger.error(f"Failed to start conversation on backend: {e}")
            result = StartCallResult(conversation_id=str(uuid.uuid4()))
            degraded = True
            logger.warning(f"Continuing in degraded mode with local id {result.conversation_id}")

        self.session = Session(
            id=result.conversation_id,
            active=True,
            degraded=degraded,
            meeting_id=result.meeting_id,
            ws_url=result.ws_url,
        )
        self._set_state(SessionState.ACTIVE)
        await self._open_connection()
        return result

    async def join_call(self, conversation_id: str) -> Session:
        """
        Attach to an existing conversation.

        Raises:
            CallAlreadyActiveError: If a call is already in progress
            ConversationAPIError: If the peer refuses or cannot be reached
            CallConnectionError: If the socket cannot be opened
        """
        self._require_idle()
        self._set_state(SessionState.STARTING)
        self.user_id = str(uuid.uuid4())

        try:
            result = await self.api.join_conversation(conversation_id, self.user_id)
        except ConversationAPIError as e:
            logger.error(f"Failed to join call: {e}")
            self.user_id = None
            self._set_state(SessionState.IDLE)
            raise

        self.session = Session(id=result.conversation_id, active=True, ws_url=result.ws_url)
        self._set_state(SessionState.ACTIVE)
        await self._open_connection()
        logger.info("Successfully joined call")
        return self.session

    async def end_call(self) -> None:
        """Close the conversation on the peer (best effort) and tear down locally."""
        await self._finish("end")

    async def leave_call(self) -> None:
        """Leave the conversation on the peer (best effort) and tear down locally."""
        await self._finish("leave")

    async def delete_call(self) -> None:
        """Delete the current conversation record (best effort) and tear down locally."""
        await self._finish("delete")

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Administrative removal of one conversation record; never raises."""
        try:
            await self.api.delete_conversation(conversation_id)
            return True
        except ConversationAPIError as e:
            logger.error(f"Failed to delete conversation {conversation_id}: {e}")
            return False

    async def bulk_delete_conversations(self, conversation_ids: List[str]) -> BulkDeleteResult:
        """Administrative removal of many records; failures are reported, not raised."""
        if not conversation_ids:
            return BulkDeleteResult()
        try:
            return await self.api.bulk_delete_conversations(conversation_ids)
        except ConversationAPIError as e:
            logger.error(f"Failed to bulk delete conversations: {e}")
            return BulkDeleteResult.all_failed(list(conversation_ids), str(e))

    async def _open_connection(self) -> None:
        session = self.session
        try:
            await self.connection.connect(
                session.socket_key,
                url=session.ws_url,
                registration=registration_payload(session.socket_key, self.bot_name, self.platform),
            )
        except CallConnectionError as e:
            logger.error(f"Failed to connect call socket: {e}")
            if self.session is session:
                session.active = False
                await self._teardown()
            raise

    async def _finish(self, operation: str) -> None:
        session = self.session
        if session is None:
            logger.debug(f"No active call to {operation}")
            return

        self._set_state(SessionState.ENDING)
        # Inactive before any await so no reconnect is scheduled meanwhile
        session.active = False

        if session.degraded:
            logger.info(f"Skipping backend {operation} for locally minted session {session.id}")
        else:
            try:
                if operation == "end":
                    await self.api.end_conversation(session.id)
                elif operation == "leave":
                    await self.api.leave_conversation(session.id, self.user_id)
                else:
                    await self.api.delete_conversation(session.id)
            except ConversationAPIError as e:
                logger.error(f"Failed to {operation} conversation on backend: {e}")

        await self._teardown()

    async def _teardown(self) -> None:
        await self.connection.disconnect()
        self.session = None
        self.user_id = None
        self._set_state(SessionState.IDLE)

    async def _on_connection_lost(self, close_code: int) -> None:
        session = self.session
        if session is None or session.degraded:
            return
        logger.info(f"Socket lost ({close_code}), ending conversation {session.id} on backend")
        try:
            await self.api.end_conversation(session.id)
        except ConversationAPIError as e:
            logger.error(f"Failed to end conversation on backend after disconnect: {e}")

    def _require_idle(self) -> None:
        if self.state != SessionState.IDLE:
            raise CallAlreadyActiveError()

    def _set_state(self, state: SessionState) -> None:
        if state == self.state:
            return
        logger.debug(f"Session state {self.state.value} -> {state.value}")
        self.state = state
        self.events.emit(EventKind.SESSION_STATE, state)
