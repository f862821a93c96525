"""
Real-Time Call Client - live text and voice conversations with a remote agent

This package conducts a bidirectional conversation between a person and a
remote conversational agent over one persistent websocket per session, carrying
interleaved text and synthesized speech, with a REST peer that owns the
conversation records.

Architecture Overview:
- Session lifecycle against the conversations REST peer (start, join, end,
  leave, delete), degrading to a locally minted id when the peer is down
- One websocket per session with keepalive and bounded exponential-backoff
  reconnection
- Order-sensitive classification of inbound frames into typed messages
- FIFO playback of synthesized speech with barge-in on user activity
- Typed publish/subscribe for messages and status

Key Components:
- client: CallClient, the constructible object composing everything below
- connection_manager: Socket ownership, keepalive and reconnection
- handlers: The frame classifier
- audio: Playback queue, players and PCM helpers
- dispatcher: Outbound text, audio and control messages
- lifecycle: The idle/starting/active/ending state machine
- services: The conversations REST client and HTTP abstraction
- config: Constants, logging setup and environment settings

Getting Started:
1. Set up environment variables:
   - CALL_CLIENT_HTTP_URL: Base address of the conversations peer
     (default http://localhost:8000)
   - CALL_CLIENT_WS_URL: Base address of the websocket gateway
     (default derived from the HTTP address)
   - LOG_LEVEL: Logging level (default INFO)

2. Use the client:
   ```python
   from call_client import CallClient

   client = CallClient()
   client.on_message(lambda message: print(message.kind, message.content))
   await client.start_call()
   await client.send_message("Hello")
   await client.end_call()
   ```

3. Or talk to the agent from a terminal:
   ```bash
   python -m call_client.main --audio
   ```
"""

from call_client.client import CallClient
from call_client.config.settings import CallClientSettings
from call_client.events import EventBus, EventKind, Subscription
from call_client.exceptions import (
    CallAlreadyActiveError,
    CallClientError,
    CallConnectionError,
    ConversationAPIError,
    NotConnectedError,
)
from call_client.models.messages import CallStatus, ConnectionState, Message, MessageKind
