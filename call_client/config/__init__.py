"""
Configuration module for the call client.

This module provides centralized configuration for the package: wire constants,
logging setup and environment-based settings.

Key components:
- constants: Keepalive tokens, close codes, MIME types and timing defaults
  shared by every component.
- logging_config: Console and rotating-file logging under a single logger name.
- settings: The CallClientSettings model, populated from environment variables
  (and an optional .env file) with base addresses and tuning knobs.

Usage examples:
```python
from call_client.config.logging_config import configure_logging
from call_client.config.settings import CallClientSettings

logger = configure_logging()
settings = CallClientSettings.from_env()
logger.info(f"Gateway at {settings.resolved_ws_base_url}")
```
"""

# Config module initialization
