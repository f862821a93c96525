"""
Typed publish/subscribe for call client observers.

Listeners register per event kind and receive an explicit Subscription handle.
Any listener can detach independently without affecting the others, and a
listener that raises is logged and skipped so the remaining listeners still run.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from call_client.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class EventKind(str, Enum):
    MESSAGE = "message"
    CONNECTION_STATE = "connection_state"
    SESSION_STATE = "session_state"
    STATUS = "status"


class Subscription:
    """Handle returned by EventBus.subscribe; call it (or unsubscribe()) to detach."""

    def __init__(self, bus: "EventBus", kind: EventKind, handler: Handler):
        self._bus = bus
        self.kind = kind
        self.handler = handler

    @property
    def active(self) -> bool:
        return self._bus._is_registered(self)

    def unsubscribe(self) -> None:
        self._bus._remove(self)

    def __call__(self) -> None:
        self.unsubscribe()


class EventBus:
    """Observer lists keyed by EventKind."""

    def __init__(self):
        self._subscriptions: Dict[EventKind, List[Subscription]] = {}
        self._pending: set = set()

    def subscribe(self, kind: EventKind, handler: Handler) -> Subscription:
        subscription = Subscription(self, kind, handler)
        self._subscriptions.setdefault(kind, []).append(subscription)
        return subscription

    def listener_count(self, kind: EventKind) -> int:
        return len(self._subscriptions.get(kind, []))

    def emit(self, kind: EventKind, payload: Any) -> int:
        """
        Deliver payload to every listener of kind, in subscription order.

        Coroutine listeners are scheduled on the running loop.

        Returns:
            Number of listeners invoked
        """
        delivered = 0
        # Copy so listeners may unsubscribe while being notified
        for subscription in list(self._subscriptions.get(kind, [])):
            try:
                result = subscription.handler(payload)
                if inspect.isawaitable(result):
                    self._schedule(result, kind)
                delivered += 1
            except Exception as e:
                logger.error(f"Error in {kind.value} listener: {e}", exc_info=True)
        return delivered

    def clear(self, kind: Optional[EventKind] = None) -> None:
        if kind is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(kind, None)

    def _schedule(self, awaitable: Awaitable[None], kind: EventKind) -> None:
        task = asyncio.ensure_future(self._run_listener(awaitable, kind))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_listener(self, awaitable: Awaitable[None], kind: EventKind) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.error(f"Error in async {kind.value} listener: {e}", exc_info=True)

    def _is_registered(self, subscription: Subscription) -> bool:
        return any(s is subscription for s in self._subscriptions.get(subscription.kind, []))

    def _remove(self, subscription: Subscription) -> None:
        listeners = self._subscriptions.get(subscription.kind, [])
        for index, registered in enumerate(listeners):
            if registered is subscription:
                del listeners[index]
                return
