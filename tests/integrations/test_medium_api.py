"""Tests for the Medium API client."""

from __future__ import annotations

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from medium_migrator.errors import PublishError
from medium_migrator.integrations.medium import (
    MediumAPIClient,
    MediumConfig,
    build_post_payload,
    check_errors,
)

_TEST_CONFIG = MediumConfig(token="secret-token", publication_id="pub-123")


def _mock_response(payload: dict) -> MagicMock:
    mock_response = MagicMock()
    mock_response.read.return_value = json.dumps(payload).encode()
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


def _http_error(code: int, payload: dict | str) -> urllib.error.HTTPError:
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return urllib.error.HTTPError(
        "https://api.medium.com/v1/x", code, "error", {}, io.BytesIO(body.encode())
    )


# ── MediumConfig ─────────────────────────────────────────────────────────

class TestMediumConfig:
    def test_is_configured_when_both_set(self):
        assert _TEST_CONFIG.is_configured is True

    def test_not_configured_without_publication(self):
        assert MediumConfig(token="t").is_configured is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MEDIUM_TOKEN", "env-token")
        monkeypatch.setenv("MEDIUM_PUB_ID", "env-pub")
        cfg = MediumConfig.from_env()
        assert cfg.token == "env-token"
        assert cfg.publication_id == "env-pub"

    def test_from_env_empty(self, monkeypatch):
        monkeypatch.delenv("MEDIUM_TOKEN", raising=False)
        monkeypatch.delenv("MEDIUM_PUB_ID", raising=False)
        assert MediumConfig.from_env().is_configured is False


# ── Error handling ───────────────────────────────────────────────────────

class TestCheckErrors:
    def test_no_errors(self):
        check_errors({"data": {"id": "1"}})

    def test_errors_list(self):
        with pytest.raises(PublishError) as exc_info:
            check_errors({"errors": [{"message": "Token was invalid.", "code": 6003}]})
        assert exc_info.value.messages == ["Token was invalid."]

    def test_multiple_messages(self):
        with pytest.raises(PublishError) as exc_info:
            check_errors({"errors": [{"message": "one"}, {"message": "two"}]})
        assert str(exc_info.value) == "one; two"


# ── Requests ─────────────────────────────────────────────────────────────

class TestMediumAPIClientRequests:
    def test_get_user_id(self):
        client = MediumAPIClient(_TEST_CONFIG)
        response = _mock_response({"data": {"id": "user-1", "username": "devseed"}})

        with patch("urllib.request.urlopen", return_value=response) as mock_urlopen:
            assert client.get_user_id() == "user-1"

        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.medium.com/v1/me"
        assert req.method == "GET"
        assert req.get_header("Authorization") == "Bearer secret-token"
        assert req.data is None

    def test_get_publication_id(self):
        client = MediumAPIClient(_TEST_CONFIG)
        response = _mock_response({
            "data": [
                {"id": "p1", "name": "Other"},
                {"id": "p2", "name": "Development Seed"},
            ]
        })
        with patch("urllib.request.urlopen", return_value=response) as mock_urlopen:
            assert client.get_publication_id("user-1", "Development Seed") == "p2"

        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.medium.com/v1/users/user-1/publications"

    def test_get_publication_id_not_found(self):
        client = MediumAPIClient(_TEST_CONFIG)
        response = _mock_response({"data": [{"id": "p1", "name": "Other"}]})
        with patch("urllib.request.urlopen", return_value=response):
            with pytest.raises(PublishError, match="not found"):
                client.get_publication_id("user-1", "Missing")

    def test_create_post_request_format(self):
        client = MediumAPIClient(_TEST_CONFIG)
        response = _mock_response({
            "data": {"id": "abc", "url": "https://medium.com/devseed/hello-abc"}
        })

        with patch("urllib.request.urlopen", return_value=response) as mock_urlopen:
            result = client.create_post("Hello", "# Body", "2018-01-05T00:00:00.000Z")

        assert result.url == "https://medium.com/devseed/hello-abc"
        assert result.id == "abc"
        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.medium.com/v1/publications/pub-123/posts"
        assert req.method == "POST"
        assert req.get_header("Content-type") == "application/json"
        assert json.loads(req.data) == {
            "title": "Hello",
            "contentFormat": "markdown",
            "content": "# Body",
            "publishedAt": "2018-01-05T00:00:00.000Z",
        }

    def test_create_post_errors_in_body(self):
        client = MediumAPIClient(_TEST_CONFIG)
        response = _mock_response({"errors": [{"message": "Publication not writable"}]})
        with patch("urllib.request.urlopen", return_value=response):
            with pytest.raises(PublishError) as exc_info:
                client.create_post("T", "c", "2018-01-05T00:00:00.000Z")
        assert exc_info.value.messages == ["Publication not writable"]

    def test_http_error_with_errors_body(self):
        client = MediumAPIClient(_TEST_CONFIG)
        error = _http_error(401, {"errors": [{"message": "Token was invalid.", "code": 6003}]})
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(PublishError) as exc_info:
                client.get_user_id()
        assert exc_info.value.messages == ["Token was invalid."]

    def test_http_error_without_json(self):
        client = MediumAPIClient(_TEST_CONFIG)
        with patch("urllib.request.urlopen", side_effect=_http_error(502, "Bad Gateway")):
            with pytest.raises(PublishError, match="HTTP 502"):
                client.get_user_id()

    def test_network_failure(self):
        client = MediumAPIClient(_TEST_CONFIG)
        error = urllib.error.URLError("connection refused")
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(PublishError, match="Cannot reach Medium"):
                client.get_user_id()

    def test_missing_user_in_response(self):
        client = MediumAPIClient(_TEST_CONFIG)
        with patch("urllib.request.urlopen", return_value=_mock_response({"data": {}})):
            with pytest.raises(PublishError, match="user id"):
                client.get_user_id()

    def test_missing_url_in_response(self):
        client = MediumAPIClient(_TEST_CONFIG)
        with patch("urllib.request.urlopen", return_value=_mock_response({"data": {}})):
            with pytest.raises(PublishError, match="post URL"):
                client.create_post("T", "c", "2018-01-05T00:00:00.000Z")


class TestDryRun:
    def test_create_post_makes_no_request(self):
        client = MediumAPIClient(_TEST_CONFIG, dry_run=True)
        with patch("urllib.request.urlopen") as mock_urlopen:
            result = client.create_post("Hello Big World", "c", "2018-01-05T00:00:00.000Z")
        mock_urlopen.assert_not_called()
        assert result.url == "http://localhost/post/hello-big-world"


def test_build_post_payload():
    assert build_post_payload("T", "C", "D") == {
        "title": "T",
        "contentFormat": "markdown",
        "content": "C",
        "publishedAt": "D",
    }
