"""
Services module for the REST peer integration of the call client.

Key components:
- conversations_api: ConversationsAPI, the typed client for the
  {base}/conversations endpoints (start, join, end, leave, delete,
  bulk-delete), and the HttpClient abstraction it runs on. RequestsHttpClient
  is the default transport; tests inject their own.

Usage examples:
```python
from call_client.services.conversations_api import ConversationsAPI, RequestsHttpClient

api = ConversationsAPI("http://localhost:8000", RequestsHttpClient(timeout=5))
result = await api.start_conversation(user_id="user-1")
print(result.conversation_id)
```
"""

# Services module initialization
