"""
Environment-based settings for the call client.

Base addresses for the REST peer and the websocket gateway come from the
environment (optionally a ``.env`` file), together with the timing knobs that
govern reconnection, keepalive and duplicate suppression.
"""

import os
from pathlib import Path
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, field_validator

from call_client.config.constants import (
    CONNECTION_TIMEOUT,
    DEDUP_WINDOW,
    DEFAULT_TTS_AUDIO_FORMAT,
    KEEPALIVE_INTERVAL,
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_BASE_DELAY,
    REQUEST_TIMEOUT,
)

DEFAULT_HTTP_BASE_URL = "http://localhost:8000"


def http_to_ws(url: str) -> str:
    """Convert an http(s) base address into the matching ws(s) address."""
    if url.startswith("https://"):
        return "wss://" + url[len("https://"):]
    if url.startswith("http://"):
        return "ws://" + url[len("http://"):]
    return url


class CallClientSettings(BaseModel):
    """Runtime configuration for a CallClient instance."""

    http_base_url: str = Field(DEFAULT_HTTP_BASE_URL, description="REST peer base address")
    ws_base_url: Optional[str] = Field(
        None, description="Websocket gateway base address, derived from http_base_url when unset"
    )
    reconnect_base_delay: float = Field(RECONNECT_BASE_DELAY, gt=0)
    max_reconnect_attempts: int = Field(MAX_RECONNECT_ATTEMPTS, ge=0)
    keepalive_interval: float = Field(KEEPALIVE_INTERVAL, gt=0)
    dedup_window: float = Field(DEDUP_WINDOW, ge=0)
    connect_timeout: float = Field(CONNECTION_TIMEOUT, gt=0)
    request_timeout: float = Field(REQUEST_TIMEOUT, gt=0)
    default_tts_audio_format: str = DEFAULT_TTS_AUDIO_FORMAT
    bot_name: str = "Web Client"
    platform: str = "clerk"

    @field_validator("http_base_url", "ws_base_url")
    def strip_trailing_slash(cls, v):
        """Normalize base addresses so paths can be appended directly."""
        if v is None:
            return v
        return v.rstrip("/")

    @property
    def resolved_ws_base_url(self) -> str:
        return self.ws_base_url or http_to_ws(self.http_base_url)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "CallClientSettings":
        """
        Build settings from environment variables.

        A ``.env`` file in the working directory (or ``env_file``) is loaded first
        when it exists; variables already present in the environment win.

        Returns:
            CallClientSettings populated from the environment
        """
        env_path = env_file or Path(".") / ".env"
        if env_path.exists():
            dotenv.load_dotenv(env_path)

        values = {}
        http_url = os.getenv("CALL_CLIENT_HTTP_URL") or os.getenv("API_URL")
        if http_url:
            values["http_base_url"] = http_url
        ws_url = os.getenv("CALL_CLIENT_WS_URL")
        if ws_url:
            values["ws_base_url"] = ws_url

        env_fields = {
            "reconnect_base_delay": "CALL_CLIENT_RECONNECT_BASE_DELAY",
            "max_reconnect_attempts": "CALL_CLIENT_MAX_RECONNECT_ATTEMPTS",
            "keepalive_interval": "CALL_CLIENT_KEEPALIVE_INTERVAL",
            "dedup_window": "CALL_CLIENT_DEDUP_WINDOW",
            "connect_timeout": "CALL_CLIENT_CONNECT_TIMEOUT",
            "request_timeout": "CALL_CLIENT_REQUEST_TIMEOUT",
            "bot_name": "CALL_CLIENT_BOT_NAME",
            "platform": "CALL_CLIENT_PLATFORM",
        }
        for field_name, env_name in env_fields.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value

        return cls(**values)
