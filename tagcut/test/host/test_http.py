from __future__ import annotations

import http.client
import urllib.error
import urllib.request
from collections.abc import Callable

import pytest

from tagcut.core.result import Err
from tagcut.host.http import TransportError, UrllibTransport


def _raise(exc: BaseException) -> Callable[..., None]:
    def urlopen(*args: object, **kwargs: object) -> None:
        raise exc

    return urlopen


@pytest.mark.parametrize(
    "exc",
    [
        http.client.IncompleteRead(b"partia", 94),
        http.client.BadStatusLine("garbage"),
        http.client.RemoteDisconnected("Remote end closed connection"),
        urllib.error.URLError("Name or service not known"),
        TimeoutError(),
        ConnectionResetError("reset by peer"),
    ],
)
def test_broken_exchange_is_transport_error(
    monkeypatch: pytest.MonkeyPatch, exc: BaseException
) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", _raise(exc))

    result = UrllibTransport().request(
        "POST", "https://api.example.test/repos/acme/widget/releases", headers={}, timeout=5
    )

    assert isinstance(result, Err)
    assert isinstance(result.error, TransportError)
    assert result.error.url.endswith("/releases")
    assert result.error.message


def test_spent_timeout_sends_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", _raise(AssertionError("sent")))

    result = UrllibTransport().request("GET", "https://api.example.test/", headers={}, timeout=0)

    assert isinstance(result, Err)
    assert "deadline exceeded" in result.error.message
