"""
Tests for the device web client and the response cache.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from devman.core.cache import ResponseCache
from devman.web.client import WebClient, WebError


def http_response(status_code=200, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


class TestWebClient:
    """WebClient.get()"""

    def test_url(self):
        assert WebClient("192.0.2.10").url("/status.xml") == "https://192.0.2.10/status.xml"
        assert WebClient("2001:db8::1").url("", scheme="http") == "http://[2001:db8::1]/"

    def test_certificates_not_verified(self):
        assert WebClient("192.0.2.10").session.verify is False

    def test_get_body(self):
        client = WebClient("192.0.2.10", timeout=3)
        with patch.object(client.session, "get", return_value=http_response(200, b"<html/>")) as mock_get:
            assert client.get("index.html") == b"<html/>"
        mock_get.assert_called_once_with("https://192.0.2.10/index.html", timeout=3)

    def test_error_status_keeps_body(self):
        client = WebClient("192.0.2.10")
        with patch.object(client.session, "get", return_value=http_response(401, b"login required")):
            with pytest.raises(WebError, match="status code: 401") as exc:
                client.get()
        assert exc.value.status_code == 401
        assert exc.value.body == b"login required"

    def test_transport_failure(self):
        client = WebClient("192.0.2.10")
        error = requests.ConnectionError("connection refused")
        with patch.object(client.session, "get", side_effect=error):
            with pytest.raises(WebError, match="connection refused") as exc:
                client.get()
        assert exc.value.status_code is None
        assert exc.value.body == b""


class TestResponseCache:
    """ResponseCache expiry."""

    def test_get_or_set_calls_factory_once(self):
        cache = ResponseCache(ttl=10)
        factory = MagicMock(return_value="v1")

        assert cache.get_or_set("ecs_version", factory) == "v1"
        assert cache.get_or_set("ecs_version", factory) == "v1"
        factory.assert_called_once()

    def test_expiry(self):
        cache = ResponseCache(ttl=10)
        with patch("devman.core.cache.time.monotonic", return_value=100.0):
            cache.set("web_root", b"body")
        with patch("devman.core.cache.time.monotonic", return_value=109.9):
            assert cache.get("web_root") == b"body"
        with patch("devman.core.cache.time.monotonic", return_value=110.0):
            assert cache.get("web_root") is None

    def test_disabled(self):
        cache = ResponseCache(enabled=False)
        cache.set("web_root", b"body")
        assert cache.get("web_root") is None

    def test_clear(self):
        cache = ResponseCache()
        cache.set("web_root", b"body")
        cache.clear()
        assert cache.get("web_root", "missing") == "missing"
