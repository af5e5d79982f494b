"""
Wire format of the realtime transcription stream.

Control frames travel as JSON text frames with a ``type`` tag; audio travels
as raw binary frames and is never touched here.

Outbound:  init {api_key, region, language}, stop, <binary audio>
Inbound:   ready, partial {text}, final {text}, error {message}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from json import loads, dumps, JSONDecodeError
from typing import Any, Dict, Union

from audio_api.errors import FrameDecodeError
from config import STT_STREAM_LANGUAGE


@dataclass(frozen=True)
class HandshakeParameters:
    """
    Values sent in the ``init`` frame.

    No default credential or region: both must be
    injected by the caller, construction fails otherwise.
    """
    api_key: str
    region: str
    language: str = STT_STREAM_LANGUAGE

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("Realtime transcription API key is required")
        if not self.region:
            raise ValueError("Realtime transcription region is required")
        if not self.language:
            raise ValueError("Realtime transcription language is required")


# outbound

@dataclass(frozen=True)
class InitFrame:
    api_key: str
    region: str
    language: str

    @classmethod
    def from_params(cls, params: HandshakeParameters) -> "InitFrame":
        return cls(api_key=params.api_key, region=params.region, language=params.language)


@dataclass(frozen=True)
class StopFrame:
    pass


# inbound

@dataclass(frozen=True)
class ReadyFrame:
    pass


@dataclass(frozen=True)
class PartialFrame:
    text: str


@dataclass(frozen=True)
class FinalFrame:
    text: str


@dataclass(frozen=True)
class ErrorFrame:
    message: str


@dataclass(frozen=True)
class UnknownFrame:
    """Any tag this client does not know yet. Kept for logging only."""
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)


ControlFrame = Union[InitFrame, StopFrame, ReadyFrame, PartialFrame, FinalFrame, ErrorFrame, UnknownFrame]
InboundFrame = Union[ReadyFrame, PartialFrame, FinalFrame, ErrorFrame, UnknownFrame]
# bytes is the audio frame
OutboundFrame = Union[InitFrame, StopFrame, bytes]


def is_audio(frame: OutboundFrame) -> bool:
    return isinstance(frame, (bytes, bytearray, memoryview))


def encode_frame(frame: OutboundFrame) -> Union[str, bytes]:
    """Serialize an outbound frame: control frames to JSON text, audio untouched."""
    if is_audio(frame):
        return frame
    if isinstance(frame, InitFrame):
        return dumps({
            "type": "init",
            "api_key": frame.api_key,
            "region": frame.region,
            "language": frame.language,
        })
    if isinstance(frame, StopFrame):
        return dumps({"type": "stop"})
    raise TypeError(f"Not an outbound frame: {frame!r}")


def _text_field(data: Dict[str, Any], typ: str) -> str:
    text = data.get("text")
    if not isinstance(text, str):
        raise FrameDecodeError(f"'{typ}' frame without text: {data!r}")
    return text


def decode_frame(message: Union[str, bytes]) -> InboundFrame:
    """
    Parse one inbound WebSocket message into a control frame.

    Raises FrameDecodeError when the message is binary, not JSON, not a JSON
    object, has no string ``type``, or is a transcript frame without ``text``.
    """
    if isinstance(message, (bytes, bytearray, memoryview)):
        raise FrameDecodeError(f"Unexpected binary frame ({len(message)} bytes)")

    try:
        data = loads(message)
    except JSONDecodeError as e:
        raise FrameDecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise FrameDecodeError(f"Expected a JSON object, got {type(data).__name__}")

    typ = data.get("type")
    if not isinstance(typ, str):
        raise FrameDecodeError(f"Frame without type: {data!r}")

    if typ == "ready":
        return ReadyFrame()
    if typ == "partial":
        return PartialFrame(text=_text_field(data, typ))
    if typ == "final":
        return FinalFrame(text=_text_field(data, typ))
    if typ == "error":
        message_field = data.get("message")
        return ErrorFrame(message=message_field if isinstance(message_field, str) else str(data))
    return UnknownFrame(type=typ, payload=data)
