from __future__ import annotations

import pytest
import requests

from owner_scout.config import ExternalHTTPSettings
from owner_scout.connectors import ConnectorRequestError, RobloxIdentityConnector
from owner_scout.connectors.roblox_connector import PLACEHOLDER_HEADSHOT_URL


class FakeResponse:
    def __init__(self, status_code: int, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class RoutedSession:
    """
    Answers each URL prefix with a queue of canned responses.
    """

    def __init__(self, routes: dict[str, list[FakeResponse]]) -> None:
        self.routes = routes
        self.calls: list[tuple[str, str]] = []

    def request(self, *, method, url, params=None, json=None, timeout=None) -> FakeResponse:
        self.calls.append((method, url))
        for prefix, responses in self.routes.items():
            if url.startswith(prefix):
                return responses.pop(0) if len(responses) > 1 else responses[0]
        raise requests.ConnectionError(f"no route for {url}")


HTTP_SETTINGS = ExternalHTTPSettings(
    timeout_seconds=1.0,
    max_retries=2,
    backoff_initial_seconds=0.5,
    backoff_multiplier=2.0,
    rate_limit_per_second=0.0,
)


def _connector(session: RoutedSession, sleeps: list[float] | None = None) -> RobloxIdentityConnector:
    recorded = sleeps if sleeps is not None else []
    return RobloxIdentityConnector(http_settings=HTTP_SETTINGS, session=session, sleep=recorded.append)


def test_fetch_user_collects_headshot_and_rap() -> None:
    session = RoutedSession(
        {
            "https://users.roblox.com": [
                FakeResponse(200, {"data": [{"id": 156, "name": "builderman", "displayName": "Builderman"}]})
            ],
            "https://thumbnails.roblox.com": [
                FakeResponse(200, {"data": [{"imageUrl": "https://tr.rbxcdn.com/abc/420/420/Png"}]})
            ],
            "https://inventory.roblox.com": [
                FakeResponse(
                    200,
                    {"data": [{"recentAveragePrice": 1500}, {"recentAveragePrice": None}, {"recentAveragePrice": 250}]},
                )
            ],
        }
    )

    user = _connector(session).fetch_user("builderman")

    assert user is not None
    assert user.user_id == 156
    assert user.display_name == "Builderman"
    assert user.thumbnail_url == "https://tr.rbxcdn.com/abc/420/420/Png"
    assert user.total_rap == 1750


def test_unknown_username_returns_none() -> None:
    session = RoutedSession({"https://users.roblox.com": [FakeResponse(200, {"data": []})]})
    assert _connector(session).fetch_user("nobody_here_123") is None


def test_secondary_lookups_degrade_to_fallbacks() -> None:
    session = RoutedSession(
        {
            "https://users.roblox.com": [FakeResponse(200, {"data": [{"id": 1, "name": "roblox"}]})],
            "https://thumbnails.roblox.com": [FakeResponse(404)],
            "https://inventory.roblox.com": [FakeResponse(403)],
        }
    )

    user = _connector(session).fetch_user("roblox")

    assert user.thumbnail_url == PLACEHOLDER_HEADSHOT_URL
    assert user.total_rap == 0


def test_rate_limited_lookup_is_retried() -> None:
    sleeps: list[float] = []
    session = RoutedSession(
        {
            "https://users.roblox.com": [
                FakeResponse(429),
                FakeResponse(200, {"data": []}),
            ]
        }
    )

    assert _connector(session, sleeps).fetch_user("builderman") is None
    assert sleeps == [0.5]
    assert len(session.calls) == 2


def test_exhausted_retries_raise() -> None:
    sleeps: list[float] = []
    session = RoutedSession({"https://users.roblox.com": [FakeResponse(503)]})

    with pytest.raises(ConnectorRequestError):
        _connector(session, sleeps).fetch_user("builderman")
    assert sleeps == [0.5, 1.0]
