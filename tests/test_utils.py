from __future__ import annotations

import tempfile
import unittest
from logging import DEBUG, INFO, NOTSET, WARNING, FileHandler, LogRecord, getLogger
from pathlib import Path

from audio_api.utils import TransportNoiseFilter, make_silence_chunk, setup_logging, stream_url_from_base


def _record(name: str, level: int) -> LogRecord:
    return LogRecord(name, level, __file__, 1, "msg", None, None)


class TestStreamUrl(unittest.TestCase):

    def test_scheme_mapping(self) -> None:
        cases = {
            "http://localhost:8080/api/v1/audio": "ws://localhost:8080/api/v1/audio/transcriptions/stream",
            "https://example.org/api/v1/audio/": "wss://example.org/api/v1/audio/transcriptions/stream",
            "wss://example.org/audio": "wss://example.org/audio/transcriptions/stream",
        }
        for base, expected in cases.items():
            with self.subTest(base=base):
                self.assertEqual(stream_url_from_base(base), expected)

    def test_host_containing_http_is_untouched(self) -> None:
        url = stream_url_from_base("https://http-proxy.internal/audio")
        self.assertEqual(url, "wss://http-proxy.internal/audio/transcriptions/stream")


class TestSilence(unittest.TestCase):

    def test_silence_length(self) -> None:
        chunk = make_silence_chunk(16000, 0.1)
        self.assertEqual(len(chunk), 3200)
        self.assertEqual(set(chunk), {0})


class TestTransportNoiseFilter(unittest.TestCase):

    def test_client_records_pass_at_debug(self) -> None:
        f = TransportNoiseFilter()
        self.assertTrue(f.filter(_record("audio_api.stream_connection", DEBUG)))
        self.assertTrue(f.filter(_record("audio_api", DEBUG)))
        self.assertTrue(f.filter(_record("__main__", DEBUG)))

    def test_transport_debug_is_dropped(self) -> None:
        f = TransportNoiseFilter()
        self.assertFalse(f.filter(_record("websockets.client", DEBUG)))
        self.assertTrue(f.filter(_record("websockets.client", INFO)))
        self.assertTrue(f.filter(_record("aiohttp.client", WARNING)))

    def test_lookalike_name_is_not_client(self) -> None:
        self.assertFalse(TransportNoiseFilter().filter(_record("audio_api_extra", DEBUG)))

    def test_min_level_is_configurable(self) -> None:
        f = TransportNoiseFilter(min_level=WARNING)
        self.assertFalse(f.filter(_record("aiohttp.access", INFO)))
        self.assertTrue(f.filter(_record("aiohttp.access", WARNING)))


class TestSetupLogging(unittest.TestCase):

    def test_session_log_file(self) -> None:
        root = getLogger()
        before = list(root.handlers)
        with tempfile.TemporaryDirectory() as tmp:
            log_dir = Path(tmp) / "logs"
            try:
                path = setup_logging(WARNING, log_dir=log_dir)
                getLogger("audio_api.test").setLevel(DEBUG)
                getLogger("audio_api.test").debug("client detail")
                getLogger("websockets.client").debug("frame dump")
                added = [h for h in root.handlers if h not in before]
                for h in added:
                    h.flush()
                self.assertEqual(path.parent, log_dir)
                self.assertTrue(path.name.startswith("audio_api_"))
                text = path.read_text(encoding="utf-8")
                self.assertIn("client detail", text)
                self.assertNotIn("frame dump", text)
            finally:
                getLogger("audio_api.test").setLevel(NOTSET)
                for h in root.handlers[:]:
                    if h not in before and isinstance(h, FileHandler):
                        root.removeHandler(h)
                        h.close()
