import json

import pytest
import requests

from app.core.config import RemoteConfig
from app.core.exceptions import RemoteUnavailableError, RemoteWriteError
from app.services.remote_backend import RestRemoteBackend, _escape_like


class StubSession(requests.Session):
    """Records requests and answers each with the next queued response."""

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.sent = []

    def request(self, method, url, **kwargs):
        self.sent.append((method, url, kwargs))
        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def _response(status=200, body=None):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body if body is not None else []).encode()
    return response


def _backend(*responses):
    session = StubSession(*responses)
    config = RemoteConfig(url="https://acme.example.co", api_key="key")
    return RestRemoteBackend(config, session=session), session


def test_escape_like_neutralizes_wildcards():
    assert _escape_like("a_b%c") == "a\\_b\\%c"
    assert _escape_like("a*b") == "a_b"


def test_select_ilike_returns_exact_matches_only():
    rows = [{"id": "1", "username": "a*b"}, {"id": "2", "username": "axb"}, {"id": "3", "username": "A*B"}]
    backend, session = _backend(_response(body=rows))

    found = backend.select_ilike("users", "username", "a*b")

    assert [r["id"] for r in found] == ["1", "3"]
    method, url, kwargs = session.sent[0]
    assert url == "https://acme.example.co/rest/v1/users"
    assert kwargs["params"]["username"] == "ilike.a_b"


def test_select_one_clean_not_found():
    backend, _ = _backend(_response(body=[]))
    assert backend.select_one("employees", "id", "missing") is None


def test_connection_failure_is_unavailable():
    backend, _ = _backend(requests.exceptions.ConnectionError("down"))
    with pytest.raises(RemoteUnavailableError):
        backend.select("employees")


def test_server_error_is_unavailable():
    backend, _ = _backend(_response(503, {"message": "maintenance"}))
    with pytest.raises(RemoteUnavailableError):
        backend.select("employees")


def test_rejected_write_is_write_error():
    backend, _ = _backend(_response(409, {"message": "duplicate key"}))
    with pytest.raises(RemoteWriteError):
        backend.upsert("users", [{"id": "u1", "username": "ann"}])
