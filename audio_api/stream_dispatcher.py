from __future__ import annotations

from logging import getLogger
from typing import Callable, Union

from audio_api.errors import FrameDecodeError
from audio_api.stream_codec import ErrorFrame, FinalFrame, PartialFrame, ReadyFrame, UnknownFrame, decode_frame
from audio_api.stream_connection import StreamConnection


logger = getLogger(__name__)

PARSE_ERROR_MESSAGE = "Failed to parse server message"


class MessageDispatcher:
    """
    Routes every inbound frame to exactly one outcome.

    A frame that cannot be decoded is reported through ``on_error`` and
    otherwise ignored; the connection stays up.
    """

    def __init__(
            self,
            connection: StreamConnection,
            on_partial: Callable[[str], None],
            on_final: Callable[[str], None],
            on_error: Callable[[str], None],
    ) -> None:
        self._connection = connection
        self._on_partial = on_partial
        self._on_final = on_final
        self._on_error = on_error

    async def dispatch(self, message: Union[str, bytes]) -> None:
        try:
            frame = decode_frame(message)
        except FrameDecodeError as e:
            logger.error("[STREAM] Error parsing WebSocket message: %s", e)
            self._on_error(PARSE_ERROR_MESSAGE)
            return

        if isinstance(frame, ReadyFrame):
            self._connection.mark_ready()
        elif isinstance(frame, PartialFrame):
            logger.debug("[STREAM] Partial transcription: %s", frame.text[:50])
            self._on_partial(frame.text)
        elif isinstance(frame, FinalFrame):
            logger.debug("[STREAM] Final transcription: %s", frame.text[:50])
            self._on_final(frame.text)
        elif isinstance(frame, ErrorFrame):
            await self._connection.fail(frame.message)
        elif isinstance(frame, UnknownFrame):
            logger.info("[STREAM] Unknown message type: %s", frame.type)
        else:
            raise TypeError(f"Unhandled inbound frame: {frame!r}")
