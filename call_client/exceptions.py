"""Exception types raised by the call client."""

from typing import Optional


class CallClientError(Exception):
    """Base class for all call client errors."""


class NotConnectedError(CallClientError):
    """Raised when sending while the socket is not in the connected state."""

    def __init__(self, message: str = "Not connected to call"):
        super().__init__(message)


class CallAlreadyActiveError(CallClientError):
    """Raised when starting or joining while another call is in progress."""

    def __init__(self, message: str = "Call is already active"):
        super().__init__(message)


class CallConnectionError(CallClientError):
    """Raised when the call socket cannot be opened."""


class ConversationAPIError(CallClientError):
    """Raised when a request to the conversations REST peer fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnsupportedAudioFormatError(CallClientError):
    """Raised by audio players for payloads they cannot decode."""
