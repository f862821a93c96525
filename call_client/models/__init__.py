"""
Models module for data structures and state in the call client.

Key components:
- messages: The immutable Message variants emitted to observers, the audio
  queue item, connection states and the CallStatus snapshot.
- session: The Session record, the lifecycle state enum and the pydantic models
  validating responses from the conversations REST peer.

Usage examples:
```python
from call_client.models import Message, MessageKind

message = Message.agent_text("Hello there", session_id="abc123")
assert message.kind is MessageKind.AGENT_TEXT
```
"""

from call_client.models.messages import (
    AudioQueueItem,
    CallStatus,
    ConnectionState,
    Message,
    MessageKind,
)
from call_client.models.session import (
    BulkDeleteResult,
    FailedDeletion,
    JoinCallResult,
    Session,
    SessionState,
    StartCallResult,
    registration_payload,
)
