import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv()

# credentials (never defaulted, must come from the environment or the caller)
AUDIO_API_TOKEN = os.getenv("AUDIO_API_TOKEN")
STT_STREAM_API_KEY = os.getenv("STT_STREAM_API_KEY")
STT_STREAM_REGION = os.getenv("STT_STREAM_REGION")

# logging config
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEV").upper()

# file config
BASE_PATH = Path(__file__).parent
LOG_PATH = Path(os.getenv("LOG_PATH", BASE_PATH / "log"))

# Audio service endpoints
# The realtime stream lives under the same base, with http(s) swapped for ws(s).
AUDIO_API_BASE_URL = os.getenv("AUDIO_API_BASE_URL", "http://localhost:8080/api/v1/audio").rstrip("/")
AUDIO_API_STREAM_PATH = "/transcriptions/stream"
# Total timeout for REST calls in seconds. Unset means no client-side timeout.
AUDIO_API_TIMEOUT_S = float(os.getenv("AUDIO_API_TIMEOUT_S")) if os.getenv("AUDIO_API_TIMEOUT_S") else None

# Speech to text stream parameters
STT_STREAM_LANGUAGE = os.getenv("STT_STREAM_LANGUAGE", "nl-NL")
# Keep-alive pings on the transcription socket.
STT_STREAM_PING_INTERVAL_S = 10
STT_STREAM_PING_TIMEOUT_S = 10
STT_STREAM_OPEN_TIMEOUT_S = 10
STT_STREAM_CLOSE_TIMEOUT_S = 5
# Inbound frames buffered by websockets before backpressure kicks in.
STT_STREAM_MAX_QUEUE = 32

# Text to speech parameters
TTS_DEFAULT_SPEAKER = "alloy"

# audio
AUDIO_SAMPLE_RATE = 16000
AUDIO_CHANNELS = 1
CHUNK_MS = 100
# 1.0 = realtime, 0.0 = as fast as possible
REALTIME_FACTOR = float(os.getenv("STT_REALTIME_FACTOR", "1.0"))
FINAL_SILENCE_S = 1.0
