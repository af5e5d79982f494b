"""
Realtime transcription of a WAV file
====================================

Connects to the audio service's realtime transcription stream, streams a
16 kHz mono 16-bit PCM WAV file at real-time pace, prints partial and final
transcripts as they arrive, then stops the stream.

Credentials come from the environment (or .env):

    AUDIO_API_BASE_URL, AUDIO_API_TOKEN, STT_STREAM_API_KEY, STT_STREAM_REGION

Usage
-----
    source .venv/bin/activate
    python stream_wav.py path/to/file.wav [--language nl-NL] [--realtime-factor 0.5]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from logging import getLogger, INFO
from pathlib import Path
from typing import List

from audio_api.errors import StreamError
from audio_api.rest_client import AudioApiClient
from audio_api.stream_codec import HandshakeParameters
from audio_api.pcm_audio import load_pcm_wav, send_pcm_realtime
from audio_api.utils import setup_logging
from config import (
    AUDIO_API_BASE_URL,
    AUDIO_API_TOKEN,
    CHUNK_MS,
    FINAL_SILENCE_S,
    REALTIME_FACTOR,
    STT_STREAM_API_KEY,
    STT_STREAM_LANGUAGE,
    STT_STREAM_REGION,
)

logger = getLogger(__name__)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stream a WAV file to the realtime transcription endpoint.")
    parser.add_argument("wav", type=Path, help="PCM WAV file (16 kHz, mono, 16-bit)")
    parser.add_argument("--language", default=STT_STREAM_LANGUAGE, help="BCP-47 language tag")
    parser.add_argument("--realtime-factor", type=float, default=REALTIME_FACTOR,
                        help="1.0 = realtime, 0.0 = as fast as possible")
    parser.add_argument("--chunk-ms", type=int, default=CHUNK_MS)
    return parser.parse_args(argv)


async def main(argv: List[str]) -> int:
    args = parse_args(argv)

    if not AUDIO_API_TOKEN:
        logger.error("AUDIO_API_TOKEN not set. Set it in .env and retry.")
        return 1
    try:
        params = HandshakeParameters(api_key=STT_STREAM_API_KEY, region=STT_STREAM_REGION, language=args.language)
    except ValueError as e:
        logger.error("%s. Set STT_STREAM_API_KEY and STT_STREAM_REGION in .env and retry.", e)
        return 1

    try:
        audio = await asyncio.to_thread(load_pcm_wav, args.wav)
    except (OSError, ValueError) as e:
        logger.error("Cannot use %s: %s", args.wav, e)
        return 1

    finals: List[str] = []
    errors: List[str] = []

    def on_partial(text: str) -> None:
        print(f"\r… {text}", end="", flush=True)

    def on_final(text: str) -> None:
        print(f"\r✔ {text}", flush=True)
        finals.append(text)

    async with AudioApiClient(AUDIO_API_BASE_URL, AUDIO_API_TOKEN) as api:
        stream = api.realtime_transcription_stream(params, on_partial, on_final, errors.append)
        try:
            await stream.connect()
        except StreamError as e:
            logger.error("Could not start transcription: %s", e)
            return 1

        try:
            await send_pcm_realtime(
                stream,
                audio,
                chunk_ms=args.chunk_ms,
                realtime_factor=args.realtime_factor,
                post_roll_silence_s=FINAL_SILENCE_S,
            )
            # give the server a moment to flush the last final segment
            await asyncio.sleep(FINAL_SILENCE_S)
        finally:
            await stream.stop()

    print("\n" + " ".join(finals))
    for err in errors:
        logger.error("Stream reported: %s", err)
    return 1 if errors else 0


if __name__ == "__main__":
    setup_logging(INFO)
    sys.exit(asyncio.run(main(sys.argv[1:])))
