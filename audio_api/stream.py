"""
Realtime transcription stream: the public handle.

Lifecycle
---------
1. **Construction**: pass the stream URL, the handshake parameters and three
   callbacks. No network calls happen here.

2. **connect()**: opens the WebSocket, sends ``init`` and waits until the
   server answers ``ready``. Raises HandshakeError when the server answers
   ``error`` first, TransportError when the socket cannot be opened or drops,
   and StreamClosedError when ``stop()`` is called while still waiting.

3. **Streaming**: ``send_audio(chunk)`` forwards raw audio bytes. Audio sent
   before the stream is ready is dropped with a warning. Transcripts arrive
   through ``on_partial`` / ``on_final``; failures through ``on_error``.

4. **stop()**: sends ``stop`` and closes the socket. Use it as the cleanup
   step after any failure; calling it again is a no-op.

A stream is single-use. After a failure or ``stop()`` build a new one.

Usage::

    stream = RealtimeTranscriptionStream(url, params, print, print, print)
    async with stream:
        for chunk in chunks:
            await stream.send_audio(chunk)
"""

from __future__ import annotations

from logging import getLogger
from typing import Callable, Optional

from audio_api.stream_codec import HandshakeParameters
from audio_api.stream_connection import Readiness, StreamConnection
from audio_api.stream_dispatcher import MessageDispatcher


logger = getLogger(__name__)


class RealtimeTranscriptionStream:

    def __init__(
            self,
            url: str,
            params: HandshakeParameters,
            on_partial: Callable[[str], None],
            on_final: Callable[[str], None],
            on_error: Callable[[str], None],
            *,
            token: Optional[str] = None,
    ) -> None:
        self._params = params
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._connection = StreamConnection(url, on_error, headers=headers)
        self._dispatcher = MessageDispatcher(self._connection, on_partial, on_final, on_error)

    async def __aenter__(self) -> "RealtimeTranscriptionStream":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @property
    def readiness(self) -> Readiness:
        return self._connection.readiness

    async def connect(self) -> None:
        """Open the stream and wait for the server's ``ready``."""
        completion = await self._connection.open(self._params, self._dispatcher.dispatch)
        await completion

    async def send_audio(self, pcm_chunk: bytes) -> None:
        await self._connection.send(pcm_chunk)

    async def stop(self) -> None:
        await self._connection.close()

    def is_connected(self) -> bool:
        return self._connection.is_open and self._connection.readiness is Readiness.READY
