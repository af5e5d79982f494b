"""Error types raised by the audio service client."""

from __future__ import annotations

from typing import Optional


class AudioApiError(Exception):
    """
    A REST call failed.

    ``detail`` is the reason reported by the server (its ``detail`` field) or,
    for transport-level failures, the underlying client error.
    """

    def __init__(self, detail: str, status: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status = status


class StreamError(Exception):
    """Base class for realtime transcription stream failures."""


class HandshakeError(StreamError):
    """The server rejected the session (``error`` frame) before it became ready."""


class TransportError(StreamError):
    """The WebSocket could not be opened or dropped unexpectedly."""


class StreamClosedError(StreamError):
    """The stream was stopped or closed while ``connect()`` was still waiting for ``ready``."""


class StreamStateError(StreamError):
    """An operation was attempted in a state that does not allow it (sessions are single-use)."""


class FrameDecodeError(ValueError):
    """An inbound frame is not a valid control envelope."""
