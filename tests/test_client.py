"""Tests for the Vault HTTP client."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from vaultctl.core.client import VaultClient
from vaultctl.core.exceptions import (
    AuthenticationError,
    InvalidURLError,
    ResourceNotFoundError,
    RetryExhaustedError,
    VersionMismatchError,
)


def _make_response(status_code: int, json_data=None, method: str = "GET") -> httpx.Response:
    req = httpx.Request(method, "https://vault.example.org/api/x")
    return httpx.Response(status_code, request=req, json=json_data if json_data is not None else {})


@pytest.fixture
def sleep(monkeypatch) -> MagicMock:
    """Disable retry backoff sleeps."""
    mock = MagicMock()
    monkeypatch.setattr("vaultctl.core.client.time.sleep", mock)
    return mock


def _client_with(monkeypatch, *responses, **kwargs) -> tuple[VaultClient, MagicMock]:
    client = VaultClient(base_url="https://vault.example.org/", **kwargs)
    mock_httpx = MagicMock()
    mock_httpx.request = MagicMock(side_effect=list(responses))
    mock_httpx.post = MagicMock(side_effect=list(responses))
    monkeypatch.setattr(client, "_get_client", MagicMock(return_value=mock_httpx))
    return client, mock_httpx


class TestClientInit:
    """Tests for client construction."""

    def test_strips_trailing_slash(self):
        assert VaultClient(base_url="https://vault.example.org/").base_url == (
            "https://vault.example.org"
        )

    def test_rejects_bad_url(self):
        with pytest.raises(InvalidURLError):
            VaultClient(base_url="vault.example.org")


class TestAuthenticate:
    """Tests for token authentication."""

    def test_stores_token_and_sends_header(self, monkeypatch):
        client, mock_httpx = _client_with(
            monkeypatch,
            _make_response(200, {"token": "abc123"}, "POST"),
            username="user",
            password="pass",
        )

        assert client.authenticate() == "abc123"
        assert client.is_authenticated
        mock_httpx.post.assert_called_once_with(
            "/api/token-auth/", json={"username": "user", "password": "pass"}
        )
        assert client._get_headers(None) == {"Authorization": "Token abc123"}

    def test_rejected_credentials(self, monkeypatch):
        client, _ = _client_with(
            monkeypatch, _make_response(400, {"detail": "bad"}, "POST"), username="u", password="p"
        )
        with pytest.raises(AuthenticationError):
            client.authenticate()

    def test_requires_credentials(self):
        with pytest.raises(AuthenticationError):
            VaultClient(base_url="https://vault.example.org").authenticate()


class TestRequestRetry:
    """Tests for retry and error mapping."""

    def test_retries_transient_status(self, monkeypatch, sleep):
        client, mock_httpx = _client_with(
            monkeypatch, _make_response(503), _make_response(502), _make_response(200, {"ok": 1})
        )

        resp = client.get("/api/x")

        assert resp.status_code == 200
        assert mock_httpx.request.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [2, 4]

    def test_retries_connect_error(self, monkeypatch, sleep):
        client, mock_httpx = _client_with(
            monkeypatch, httpx.ConnectError("refused"), _make_response(200)
        )

        assert client.get("/api/x").status_code == 200
        assert mock_httpx.request.call_count == 2

    def test_retry_exhausted(self, monkeypatch, sleep):
        client, mock_httpx = _client_with(
            monkeypatch, *[_make_response(504)] * 3, max_retries=2
        )

        with pytest.raises(RetryExhaustedError) as excinfo:
            client.post("/api/flow_chunk", data={"a": "b"})

        assert "POST /api/flow_chunk" in str(excinfo.value)
        assert mock_httpx.request.call_count == 3

    def test_auth_error_not_retried(self, monkeypatch, sleep):
        client, mock_httpx = _client_with(monkeypatch, _make_response(401))

        with pytest.raises(AuthenticationError):
            client.get("/api/x")
        assert mock_httpx.request.call_count == 1
        sleep.assert_not_called()

    def test_not_found(self, monkeypatch, sleep):
        client, _ = _client_with(monkeypatch, _make_response(404))
        with pytest.raises(ResourceNotFoundError):
            client.get("/api/deposits/9/files")

    def test_client_error_raises_http_error(self, monkeypatch, sleep):
        client, mock_httpx = _client_with(monkeypatch, _make_response(400))
        with pytest.raises(httpx.HTTPStatusError):
            client.get("/api/x")
        assert mock_httpx.request.call_count == 1


class TestVersion:
    """Tests for API version checks."""

    def test_version_from_json(self, monkeypatch):
        client, _ = _client_with(monkeypatch, _make_response(200, {"version": "1"}))
        assert client.version() == "1"

    def test_missing_version_endpoint(self, monkeypatch):
        client, _ = _client_with(monkeypatch, _make_response(404))
        assert client.version() == ""

    def test_check_version_mismatch(self, monkeypatch):
        client, _ = _client_with(monkeypatch, _make_response(200, {"version": "2"}))
        with pytest.raises(VersionMismatchError):
            client.check_version()

    def test_ping(self, monkeypatch):
        client, _ = _client_with(monkeypatch, _make_response(200, {"version": "1"}))
        result = client.ping()
        assert result["status"] == "ok"
        assert result["version"] == "1"
        assert result["url"] == "https://vault.example.org"
