"""
Handlers module for inbound traffic on the call socket.

Key components:
- frame_classifier: Decodes each inbound frame (keepalive reply, structured
  JSON event, plain text reply or binary speech) into exactly one typed Message,
  in a fixed, tested order.

Usage examples:
```python
from call_client.handlers import FrameClassifier

classifier = FrameClassifier()
message = classifier.classify('{"type": "participant_joined", "data": {}}', "abc123")
assert message.event_type == "participant_joined"
```
"""

from call_client.handlers.frame_classifier import FrameClassifier, parse_structured_event
