"""
REST client for the audio service.

Every call is one HTTP request carrying the bearer token. A non-2xx answer is
turned into AudioApiError with the server's ``detail`` as the reason; network
failures are reported the same way. There are no retries.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from logging import getLogger
from pathlib import Path
from typing import Any, Callable, Optional, Union

import aiohttp

from audio_api.errors import AudioApiError
from audio_api.stream import RealtimeTranscriptionStream
from audio_api.stream_codec import HandshakeParameters
from audio_api.utils import stream_url_from_base
from config import AUDIO_API_TIMEOUT_S, TTS_DEFAULT_SPEAKER


logger = getLogger(__name__)


@dataclass(frozen=True)
class AudioConfigForm:
    """Payload of ``POST /config/update``."""
    url: str
    key: str
    model: str
    speaker: str


class AudioApiClient:
    """
    Thin async wrapper over the audio service endpoints.

    Use as an async context manager, or call ``close()`` when done::

        async with AudioApiClient(AUDIO_API_BASE_URL, token) as api:
            voices = await api.get_voices()
    """

    def __init__(self, base_url: str, token: str, *, timeout_s: Optional[float] = AUDIO_API_TIMEOUT_S) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AudioApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _request(
            self,
            method: str,
            path: str,
            *,
            json: Any = None,
            data: Any = None,
            binary: bool = False,
    ) -> Any:
        """Issue one request; return decoded JSON (or raw bytes when ``binary``)."""
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self._token}"}
        if not binary:
            headers["Accept"] = "application/json"
        try:
            async with self._get_session().request(method, url, json=json, data=data, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    detail = await _error_detail(resp)
                    logger.error("[API] %s %s failed (%d): %s", method, path, resp.status, detail)
                    raise AudioApiError(detail, status=resp.status)
                if binary:
                    return await resp.read()
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("[API] %s %s failed: %r", method, path, e)
            raise AudioApiError(str(e) or type(e).__name__) from e

    # config

    async def get_config(self) -> dict:
        return await self._request("GET", "/config")

    async def update_config(self, form: AudioConfigForm) -> dict:
        return await self._request("POST", "/config/update", json=asdict(form))

    # speech to text

    async def transcribe(
            self,
            audio: Union[bytes, Path],
            language: Optional[str] = None,
            *,
            filename: Optional[str] = None,
    ) -> dict:
        """Upload one audio file for batch transcription."""
        if isinstance(audio, Path):
            filename = filename or audio.name
            audio = await asyncio.to_thread(audio.read_bytes)

        form = aiohttp.FormData()
        form.add_field("file", audio, filename=filename or "audio.wav", content_type="application/octet-stream")
        if language:
            form.add_field("language", language)
        return await self._request("POST", "/transcriptions", data=form)

    def realtime_transcription_stream(
            self,
            params: HandshakeParameters,
            on_partial: Callable[[str], None],
            on_final: Callable[[str], None],
            on_error: Callable[[str], None],
    ) -> RealtimeTranscriptionStream:
        """Build (not connect) a realtime stream on this service, authenticated with the same token."""
        return RealtimeTranscriptionStream(
            stream_url_from_base(self.base_url),
            params,
            on_partial,
            on_final,
            on_error,
            token=self._token,
        )

    # text to speech

    async def synthesize_speech(self, text: str, speaker: str = TTS_DEFAULT_SPEAKER, model: Optional[str] = None) -> bytes:
        """Return the synthesized audio bytes exactly as served."""
        payload = {"input": text, "voice": speaker}
        if model:
            payload["model"] = model
        return await self._request("POST", "/speech", json=payload, binary=True)

    async def get_models(self) -> dict:
        return await self._request("GET", "/models")

    async def get_voices(self) -> dict:
        return await self._request("GET", "/voices")


async def _error_detail(resp: aiohttp.ClientResponse) -> str:
    """The server's ``detail`` field, falling back to the body text or HTTP reason."""
    body = await resp.text()
    try:
        data = await resp.json(content_type=None)
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("detail") is not None:
        detail = data["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return body.strip() or resp.reason or f"HTTP {resp.status}"
