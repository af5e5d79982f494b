from __future__ import annotations

import asyncio
from contextlib import suppress
from enum import Enum
from logging import getLogger
from typing import Awaitable, Callable, Dict, Optional, Union

from websockets import connect, ConnectionClosed, ConnectionClosedOK
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from audio_api.errors import HandshakeError, StreamClosedError, StreamError, StreamStateError, TransportError
from audio_api.stream_codec import HandshakeParameters, InitFrame, OutboundFrame, StopFrame, encode_frame, is_audio
from config import (
    STT_STREAM_CLOSE_TIMEOUT_S,
    STT_STREAM_MAX_QUEUE,
    STT_STREAM_OPEN_TIMEOUT_S,
    STT_STREAM_PING_INTERVAL_S,
    STT_STREAM_PING_TIMEOUT_S,
)


logger = getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "WebSocket connection error"

MessageHandler = Callable[[Union[str, bytes]], Awaitable[None]]


class Readiness(Enum):
    NOT_CONNECTED = "not_connected"
    AWAITING_READY = "awaiting_ready"
    READY = "ready"
    CLOSED = "closed"


class StreamConnection:
    """
    Owns the transcription WebSocket and the readiness state of one session.

    This is the only place that changes ``readiness``:

        NOT_CONNECTED -> AWAITING_READY -> READY -> CLOSED
        (CLOSED is reachable from every state)

    CLOSED is terminal; a session is never reopened. Inbound messages are read
    by a single receiver task and handed to ``on_message`` one at a time, in
    wire order, so no locking is needed.
    """

    def __init__(
            self,
            url: str,
            on_error: Callable[[str], None],
            *,
            headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._url = url
        self._on_error = on_error
        self._headers = headers
        self._ws = None
        self._readiness = Readiness.NOT_CONNECTED
        self._pending: Optional[asyncio.Future[None]] = None
        self._rx_task: Optional[asyncio.Task] = None

    @property
    def readiness(self) -> Readiness:
        return self._readiness

    @property
    def is_open(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    async def open(self, params: HandshakeParameters, on_message: MessageHandler) -> asyncio.Future[None]:
        """
        Open the transport and send the ``init`` frame before anything else.

        Returns the completion future for the handshake: it resolves on the
        first ``ready`` frame and is rejected on the first failure before that.
        If the transport cannot be opened the returned future is already
        rejected with TransportError.
        """
        if self._readiness is not Readiness.NOT_CONNECTED:
            raise StreamStateError(f"Stream session already used (state: {self._readiness.value})")

        self._pending = asyncio.get_running_loop().create_future()
        self._readiness = Readiness.AWAITING_READY
        logger.debug("[STREAM] Connecting to %s", self._url)

        try:
            self._ws = await connect(
                self._url,
                additional_headers=self._headers,
                open_timeout=STT_STREAM_OPEN_TIMEOUT_S,
                ping_interval=STT_STREAM_PING_INTERVAL_S,
                ping_timeout=STT_STREAM_PING_TIMEOUT_S,
                close_timeout=STT_STREAM_CLOSE_TIMEOUT_S,
                max_queue=STT_STREAM_MAX_QUEUE,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error("[STREAM] Could not open %s: %r", self._url, e)
            await self.fail(TRANSPORT_ERROR_MESSAGE, TransportError(f"{TRANSPORT_ERROR_MESSAGE}: {e}"))
            return self._pending

        logger.info("[STREAM] Real-time transcription WebSocket connected.")
        try:
            await self._ws.send(encode_frame(InitFrame.from_params(params)))
        except ConnectionClosed as e:
            logger.error("[STREAM] Connection closed while sending init: %s", e)
            await self.fail(TRANSPORT_ERROR_MESSAGE, TransportError(f"{TRANSPORT_ERROR_MESSAGE}: {e}"))
            return self._pending

        self._rx_task = asyncio.create_task(self._recv_loop(self._ws, on_message))
        return self._pending

    def mark_ready(self) -> None:
        """Handshake completed. Only meaningful while awaiting ``ready``."""
        if self._readiness is not Readiness.AWAITING_READY:
            logger.debug("[STREAM] Ignoring ready frame in state %s", self._readiness.value)
            return
        self._readiness = Readiness.READY
        if self._pending is not None and not self._pending.done():
            self._pending.set_result(None)
        logger.info("[STREAM] Real-time transcription ready.")

    async def fail(self, message: str, error: Optional[StreamError] = None) -> None:
        """
        Report a session failure.

        Before readiness the pending handshake is rejected (once) with
        ``error`` or HandshakeError(message). The error callback always sees
        ``message``. A faulted session is then closed and never resumed.
        """
        was_ready = self._readiness is Readiness.READY
        logger.error("[STREAM] Transcription error (%s): %s", "after ready" if was_ready else "handshake", message)
        self._reject_pending(error or HandshakeError(message))
        try:
            self._on_error(message)
        except Exception as e:
            logger.exception("[STREAM] Error callback raised: %r", e)
        finally:
            await self.close()

    async def send(self, frame: OutboundFrame) -> bool:
        """
        Send one frame. Audio is only accepted once the session is READY.

        Returns False when the frame was dropped; a drop is logged, never raised.
        """
        if not self.is_open:
            logger.warning("[STREAM] WebSocket not open, dropping %s", _describe(frame))
            return False
        if is_audio(frame) and self._readiness is not Readiness.READY:
            logger.warning("[STREAM] WebSocket not ready, cannot send audio (%s)", self._readiness.value)
            return False
        try:
            await self._ws.send(encode_frame(frame))
        except ConnectionClosed:
            logger.warning("[STREAM] Connection closed while sending %s", _describe(frame))
            return False
        return True

    async def close(self) -> None:
        """Send ``stop`` if still open, close the transport and end the session. Safe to repeat."""
        if self._readiness is Readiness.CLOSED and self._ws is None:
            return

        ws, self._ws = self._ws, None
        self._readiness = Readiness.CLOSED
        self._reject_pending(StreamClosedError("Stream stopped before it became ready"))

        if ws is not None:
            try:
                if ws.state is State.OPEN:
                    await ws.send(encode_frame(StopFrame()))
                await ws.close()
            except ConnectionClosed as e:
                logger.debug("[STREAM] Connection already closed while stopping: %s", e)
            logger.info("[STREAM] Real-time transcription WebSocket closed.")

        rx_task, self._rx_task = self._rx_task, None
        if rx_task is not None and rx_task is not asyncio.current_task():
            rx_task.cancel()
            with suppress(asyncio.CancelledError):
                await rx_task

    def _reject_pending(self, error: StreamError) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(error)

    def _on_transport_closed(self) -> None:
        if self._readiness is Readiness.CLOSED:
            return
        logger.info("[STREAM] Real-time transcription WebSocket closed by server.")
        self._readiness = Readiness.CLOSED
        self._reject_pending(TransportError("Connection closed before the stream became ready"))

    async def _recv_loop(self, ws, on_message: MessageHandler) -> None:
        """Single consumer of inbound frames."""
        try:
            async for message in ws:
                await on_message(message)
        except ConnectionClosedOK:
            logger.debug("[STREAM] Session closed cleanly.")
        except ConnectionClosed as e:
            if self._readiness is not Readiness.CLOSED:
                logger.warning("[STREAM] Connection closed unexpectedly: %s", e)
                await self.fail(TRANSPORT_ERROR_MESSAGE, TransportError(f"{TRANSPORT_ERROR_MESSAGE}: {e}"))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("[STREAM] Receiver crashed: %r", e)
            if self._readiness is not Readiness.CLOSED:
                await self.fail(f"Receiver crashed: {e!r}", TransportError(f"Receiver crashed: {e!r}"))
        finally:
            self._on_transport_closed()


def _describe(frame: OutboundFrame) -> str:
    if is_audio(frame):
        return f"audio frame ({len(frame)} bytes)"
    return type(frame).__name__
