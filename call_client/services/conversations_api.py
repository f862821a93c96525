"""
Client for the conversations REST peer.

The lifecycle controller uses this module to create, join, end, leave and
delete conversation records. HTTP goes through an injected HttpClient so the
controller can be exercised without a live peer; the default implementation
runs a ``requests.Session`` in a worker thread.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic import ValidationError

from call_client.config.constants import LOGGER_NAME, REQUEST_TIMEOUT
from call_client.exceptions import ConversationAPIError
from call_client.models.session import BulkDeleteResult, JoinCallResult, StartCallResult

logger = logging.getLogger(LOGGER_NAME)


class HttpClient(Protocol):
    async def request(
        self, method: str, url: str, json: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Perform a request and return the decoded JSON body (None when empty)."""
        ...


class RequestsHttpClient:
    """HttpClient backed by requests, run off the event loop."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    async def request(
        self, method: str, url: str, json: Optional[Dict[str, Any]] = None
    ) -> Any:
        try:
            response = await asyncio.to_thread(
                self.session.request,
                method,
                url,
                json=json,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ConversationAPIError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise ConversationAPIError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ConversationAPIError(f"{method} {url} returned invalid JSON") from e

    def close(self) -> None:
        self.session.close()


class ConversationsAPI:
    """Typed wrapper over the {base}/conversations endpoints."""

    def __init__(self, base_url: str, http: Optional[HttpClient] = None):
        self.base_url = f"{base_url.rstrip('/')}/conversations"
        self.http = http or RequestsHttpClient()

    async def start_conversation(
        self,
        user_id: str,
        context_id: Optional[str] = None,
        platform: str = "clerk",
    ) -> StartCallResult:
        payload: Dict[str, Any] = {
            "room_id": f"room-{user_id}",
            "user_id": user_id,
            "meeting_platform": platform,
        }
        if context_id:
            payload["context_id"] = context_id
        data = await self.http.request("POST", f"{self.base_url}/start", json=payload)
        result = self._parse(StartCallResult, data, "start")
        logger.info(f"Backend conversation ID: {result.conversation_id}")
        return result

    async def join_conversation(self, conversation_id: str, user_id: str) -> JoinCallResult:
        data = await self.http.request(
            "POST", f"{self.base_url}/{conversation_id}/join", json={"user_id": user_id}
        )
        result = self._parse(JoinCallResult, data, "join")
        logger.info(f"Joined conversation: {result.conversation_id}")
        return result

    async def end_conversation(self, conversation_id: str) -> None:
        await self.http.request("POST", f"{self.base_url}/{conversation_id}/end")
        logger.info(f"Conversation ended on backend: {conversation_id}")

    async def leave_conversation(self, conversation_id: str, user_id: Optional[str] = None) -> None:
        payload = {"user_id": user_id} if user_id else None
        await self.http.request("POST", f"{self.base_url}/{conversation_id}/leave", json=payload)
        logger.info(f"Left conversation on backend: {conversation_id}")

    async def delete_conversation(self, conversation_id: str) -> None:
        await self.http.request("DELETE", f"{self.base_url}/{conversation_id}")
        logger.info(f"Conversation deleted on backend: {conversation_id}")

    async def bulk_delete_conversations(self, conversation_ids: List[str]) -> BulkDeleteResult:
        data = await self.http.request(
            "POST", f"{self.base_url}/bulk-delete", json={"conversation_ids": list(conversation_ids)}
        )
        result = self._parse(BulkDeleteResult, data, "bulk-delete")
        logger.info(
            f"Bulk delete completed: {result.deleted_count}/{result.total_requested} conversations deleted"
        )
        if result.failed_deletions:
            logger.warning(f"Some conversations failed to delete: {result.failed_ids()}")
        return result

    @staticmethod
    def _parse(model, data: Any, operation: str):
        if not isinstance(data, dict):
            raise ConversationAPIError(f"Unexpected {operation} response: {data!r}")
        try:
            return model(**data)
        except ValidationError as e:
            raise ConversationAPIError(f"Invalid {operation} response: {e}") from e
