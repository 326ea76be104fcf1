from __future__ import annotations


class DelegateCallError(RuntimeError):
    """Raised when the completion provider call fails or returns no text."""


class MediaStoreError(RuntimeError):
    """Raised when an upload to the permanent media store fails."""


class RelayTransportError(RuntimeError):
    """Raised when the persistence service cannot be reached at all."""


class JsonExtractionError(ValueError):
    def __init__(self, message: str, *, reason: str, raw_response: str | None = None):
        super().__init__(message)
        self.reason = reason
        self.raw_response = raw_response
