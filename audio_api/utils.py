from datetime import datetime
from logging import getLogger, basicConfig, DEBUG, INFO, WARNING, FileHandler, Formatter, Filter, LogRecord
from pathlib import Path

from config import AUDIO_API_STREAM_PATH, LOG_LEVEL, LOG_PATH


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

CLIENT_LOGGERS = ("audio_api", "__main__")

_LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(funcName)s(): %(message)s"


def is_client_logger(name: str) -> bool:
    return any(name == root or name.startswith(root + ".") for root in CLIENT_LOGGERS)


class TransportNoiseFilter(Filter):
    """
    Keeps every record of the client's own loggers and drops websockets/aiohttp
    records below ``min_level`` (frame dumps, keepalive pings).
    """

    def __init__(self, min_level: int = INFO) -> None:
        super().__init__()
        self.min_level = min_level

    def filter(self, record: LogRecord) -> bool:
        return is_client_logger(record.name) or record.levelno >= self.min_level


def setup_logging(level: int | None = None, log_dir: Path = LOG_PATH) -> Path:
    """
    Configure console and file logging for scripts driving a stream session.

    The console level is ``level``, or DEBUG when LOG_LEVEL is DEV and WARNING
    otherwise. The session log file under ``log_dir`` gets the client's own
    records at DEBUG and transport records from INFO up.

    Returns the path to the log file.
    """
    if level is None:
        level = DEBUG if LOG_LEVEL == "DEV" else WARNING
    basicConfig(level=level, format=_LOG_FORMAT)
    for noisy in ("websockets.client", "aiohttp"):
        getLogger(noisy).setLevel(INFO)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"audio_api_{datetime.now():%Y%m%d_%H%M%S}.log"
    handler = FileHandler(log_file, encoding="utf-8")
    handler.setLevel(DEBUG)
    handler.setFormatter(Formatter(_LOG_FORMAT))
    handler.addFilter(TransportNoiseFilter())
    getLogger().addHandler(handler)

    getLogger(__name__).info("Session log: %s", log_file)
    return log_file


# ---------------------------------------------------------------------------
# Audio / URL helpers
# ---------------------------------------------------------------------------

def make_silence_chunk(sample_rate: int, duration_s: float = 0.1) -> bytes:
    """Create a silence audio chunk (16-bit mono PCM) of given duration."""
    return b"\x00\x00" * int(sample_rate * duration_s)


def stream_url_from_base(base_url: str) -> str:
    """
    Derive the realtime transcription WebSocket URL from the REST base URL.

    http -> ws, https -> wss; the rest of the URL is kept.
    """
    base_url = base_url.rstrip("/")
    if base_url.startswith("https://"):
        ws_base = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        ws_base = "ws://" + base_url[len("http://"):]
    else:
        ws_base = base_url
    return ws_base + AUDIO_API_STREAM_PATH
