"""
Constants and configuration values used throughout the call client.

This module defines the wire tokens, close codes, MIME types and tuning defaults
shared by the connection manager, frame classifier, playback queue and
dispatcher, so that every layer agrees on the same names.
"""

# Logger name used throughout the package
LOGGER_NAME = "call_client"

# Keepalive tokens exchanged as plain text frames
KEEPALIVE_PING = "ping"
KEEPALIVE_PONG = "pong"

# Websocket close codes
CLOSE_CODE_NORMAL = 1000
CLOSE_CODE_ABNORMAL = 1006
CLOSE_CODE_INTERNAL_ERROR = 1011

# Reconnection and keepalive defaults (seconds)
RECONNECT_BASE_DELAY = 1.0
MAX_RECONNECT_ATTEMPTS = 5
KEEPALIVE_INTERVAL = 30.0
CONNECTION_TIMEOUT = 10.0
REQUEST_TIMEOUT = 10.0

# Identical user text inside this window is dropped (seconds)
DEDUP_WINDOW = 2.0

# Websocket frame size limit, large enough for synthesized speech chunks
WS_MAX_SIZE = 16 * 1024 * 1024

# Audio format constants
AUDIO_FORMAT_WAV = "audio/wav"
AUDIO_FORMAT_MP3 = "audio/mp3"
AUDIO_FORMAT_PCM16 = "audio/pcm"
DEFAULT_TTS_AUDIO_FORMAT = AUDIO_FORMAT_WAV
DEFAULT_CAPTURE_AUDIO_FORMAT = AUDIO_FORMAT_PCM16
WAV_FORMATS = ("audio/wav", "audio/wave", "audio/x-wav", "wav/lpcm16")
PCM16_FORMATS = ("audio/pcm", "audio/l16", "raw/lpcm16")
PCM16_SAMPLE_RATE = 16000
PCM16_CHANNELS = 1

# Structured event types understood by the frame classifier
EVENT_TYPE_AI_RESPONSE = "ai_response"
EVENT_TYPE_TRANSCRIPTION = "transcription"
EVENT_TYPE_CONNECTED = "connected"

# Outbound control messages
CONTROL_TYPE_INTERRUPT = "interrupt"
CONTROL_TYPE_COMMIT = "commit"
CONTROL_TYPE_BOT_REGISTRATION = "bot_registration"

CONNECTED_GREETING = "Connected. How can I help you today?"
