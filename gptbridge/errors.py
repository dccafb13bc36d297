from __future__ import annotations


class BridgeError(RuntimeError):
    pass


class ConfigurationError(BridgeError):
    pass


class APIStatusError(BridgeError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(APIStatusError):
    pass


class NotFoundError(APIStatusError, LookupError):
    pass


class TransportError(BridgeError):
    pass


class ProtocolError(BridgeError, ValueError):
    """A stream record that could not be interpreted. Never fatal to the stream."""
