"""
Feeding recorded PCM audio into a realtime transcription stream.

The stream carries raw audio untouched, so the only accepted input is what
the service expects on the wire: uncompressed 16-bit PCM at
``AUDIO_SAMPLE_RATE`` / ``AUDIO_CHANNELS``. Anything else is rejected up
front instead of being converted.
"""

from __future__ import annotations

import asyncio
import wave
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Iterator, List

from audio_api.stream import RealtimeTranscriptionStream
from audio_api.utils import make_silence_chunk
from config import AUDIO_CHANNELS, AUDIO_SAMPLE_RATE


logger = getLogger(__name__)

SAMPLE_WIDTH_BYTES = 2


@dataclass(frozen=True)
class PcmAudio:
    """A block of 16-bit PCM in the stream's wire format."""
    data: bytes
    sample_rate: int = AUDIO_SAMPLE_RATE
    channels: int = AUDIO_CHANNELS

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channels * SAMPLE_WIDTH_BYTES

    @property
    def duration_s(self) -> float:
        return len(self.data) / self.bytes_per_second

    def chunks(self, chunk_ms: int) -> Iterator[bytes]:
        """Split into audio frames of ``chunk_ms``; the last one may be shorter."""
        step = self.bytes_per_second * chunk_ms // 1000
        step -= step % (self.channels * SAMPLE_WIDTH_BYTES)
        if step <= 0:
            raise ValueError(f"chunk_ms={chunk_ms} is shorter than one sample")
        for offset in range(0, len(self.data), step):
            yield self.data[offset:offset + step]


def load_pcm_wav(path: Path) -> PcmAudio:
    """
    Read a WAV file that is already in the stream's wire format.

    Raises ValueError listing every mismatch (compression, sample width,
    rate, channels) so the caller can re-export the file once. A file that
    is not a WAV at all is reported as ValueError too.
    """
    try:
        wf = wave.open(str(path), "rb")
    except (wave.Error, EOFError) as e:
        raise ValueError(f"{path.name}: not a WAV file ({e})") from e

    with wf:
        problems: List[str] = []
        if wf.getcomptype() != "NONE":
            problems.append(f"compressed ({wf.getcompname()})")
        if wf.getsampwidth() != SAMPLE_WIDTH_BYTES:
            problems.append(f"{wf.getsampwidth() * 8}-bit samples")
        if wf.getframerate() != AUDIO_SAMPLE_RATE:
            problems.append(f"{wf.getframerate()} Hz")
        if wf.getnchannels() != AUDIO_CHANNELS:
            problems.append(f"{wf.getnchannels()} channels")
        if problems:
            raise ValueError(
                f"{path.name}: {', '.join(problems)}; expected "
                f"{AUDIO_SAMPLE_RATE} Hz, {AUDIO_CHANNELS} channel(s), 16-bit PCM"
            )
        return PcmAudio(data=wf.readframes(wf.getnframes()))


async def send_pcm_realtime(
        stream: RealtimeTranscriptionStream,
        audio: PcmAudio,
        *,
        chunk_ms: int,
        realtime_factor: float = 1.0,
        post_roll_silence_s: float = 1.0,
) -> int:
    """
    Send ``audio`` to a connected stream, paced like a live microphone.

    ``realtime_factor`` scales the pause between frames (1.0 = live, 0.0 =
    no pause). Trailing silence lets the server commit the last segment.
    Stops as soon as the stream is no longer connected. Returns the number
    of frames sent.
    """
    delay = chunk_ms / 1000.0 * realtime_factor
    silence = make_silence_chunk(audio.sample_rate, chunk_ms / 1000.0)
    n_silence = round(post_roll_silence_s * 1000 / chunk_ms)
    logger.info("[PCM] Streaming %.1f s of audio in %d ms frames.", audio.duration_s, chunk_ms)

    sent = 0
    frames = list(audio.chunks(chunk_ms)) + [silence] * n_silence
    for frame in frames:
        if not stream.is_connected():
            logger.warning("[PCM] Stream disconnected after %d of %d frames.", sent, len(frames))
            break
        await stream.send_audio(frame)
        sent += 1
        if delay > 0:
            await asyncio.sleep(delay)
    return sent
