"""Tests for fetch.py -- timeout-bounded httpx calls."""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch

import httpx
import pytest

from audio_resolver.errors import (
    MalformedResponseFailure,
    NetworkFailure,
    TimeoutFailure,
    UpstreamStatusFailure,
)
from audio_resolver.fetch import fetch, fetch_json
from conftest import fake_stream

URL = "https://a1.test/api/v1/videos/abc"


class _TrickleHandler(BaseHTTPRequestHandler):
    """Answers immediately, then sends the body one byte at a time."""

    body = b'{"ok": 1}'
    delay = 0.3

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        try:
            for i in range(len(self.body)):
                self.wfile.write(self.body[i:i + 1])
                self.wfile.flush()
                time.sleep(self.delay)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def trickle_url(monkeypatch):
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TrickleHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/slow"
    server.shutdown()
    server.server_close()


class TestFetch:
    @patch("audio_resolver.fetch.httpx.stream")
    def test_passes_timeout_and_params(self, mock_stream):
        mock_stream.side_effect = fake_stream({})
        fetch(URL, params={"query": "x"}, timeout=8.0)
        mock_stream.assert_called_once()
        assert mock_stream.call_args.args == ("GET", URL)
        assert mock_stream.call_args.kwargs["timeout"] == 8.0
        assert mock_stream.call_args.kwargs["params"] == {"query": "x"}

    @patch("audio_resolver.fetch.httpx.stream")
    def test_returns_body_and_status(self, mock_stream):
        mock_stream.side_effect = fake_stream(({"a": 1}, 500))
        resp = fetch(URL)
        assert resp.status_code == 500
        assert resp.json() == {"a": 1}

    @patch("audio_resolver.fetch.httpx.stream")
    def test_timeout_becomes_timeout_failure(self, mock_stream):
        mock_stream.side_effect = fake_stream(httpx.ReadTimeout("too slow"))
        with pytest.raises(TimeoutFailure) as exc_info:
            fetch(URL, timeout=8.0)
        assert exc_info.value.timeout == 8.0
        assert exc_info.value.url == URL

    @patch("audio_resolver.fetch.httpx.stream")
    def test_connect_timeout_is_timeout_failure(self, mock_stream):
        mock_stream.side_effect = fake_stream(httpx.ConnectTimeout("no answer"))
        with pytest.raises(TimeoutFailure):
            fetch(URL)

    @patch("audio_resolver.fetch.httpx.stream")
    def test_connection_error_becomes_network_failure(self, mock_stream):
        mock_stream.side_effect = fake_stream(httpx.ConnectError("connection refused"))
        with pytest.raises(NetworkFailure) as exc_info:
            fetch(URL)
        assert "connection refused" in str(exc_info.value)

    def test_trickling_body_cut_off_at_deadline(self, trickle_url):
        started = time.monotonic()
        with pytest.raises(TimeoutFailure):
            fetch(trickle_url, timeout=1.0)
        # body would take ~2.7s at one byte per 0.3s
        assert time.monotonic() - started < 2.0

    def test_fast_local_server_within_budget(self, trickle_url, monkeypatch):
        monkeypatch.setattr(_TrickleHandler, "delay", 0.0)
        assert fetch_json(trickle_url, timeout=5.0) == {"ok": 1}


class TestFetchJson:
    @patch("audio_resolver.fetch.httpx.stream")
    def test_decodes_body(self, mock_stream):
        mock_stream.side_effect = fake_stream({"title": "Imagine"})
        assert fetch_json(URL) == {"title": "Imagine"}

    @pytest.mark.parametrize("status", [301, 404, 429, 502])
    @patch("audio_resolver.fetch.httpx.stream")
    def test_non_2xx_raises(self, mock_stream, status):
        mock_stream.side_effect = fake_stream(({}, status))
        with pytest.raises(UpstreamStatusFailure) as exc_info:
            fetch_json(URL)
        assert exc_info.value.status_code == status

    @patch("audio_resolver.fetch.httpx.stream")
    def test_malformed_body_raises(self, mock_stream):
        mock_stream.side_effect = fake_stream(b"<html>not json</html>")
        with pytest.raises(MalformedResponseFailure):
            fetch_json(URL)
