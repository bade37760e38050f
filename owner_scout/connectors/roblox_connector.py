"""
owner_scout/connectors/roblox_connector.py

Identity, avatar and collectible lookups against the public Roblox REST APIs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from owner_scout.config import ExternalHTTPSettings
from owner_scout.connectors.base import BaseConnector, ConnectorRequestError

logger = logging.getLogger(__name__)

USERS_URL = "https://users.roblox.com/v1/usernames/users"
HEADSHOT_URL = "https://thumbnails.roblox.com/v1/users/avatar-headshot"
COLLECTIBLES_URL = "https://inventory.roblox.com/v1/users/{user_id}/assets/collectibles"
PLACEHOLDER_HEADSHOT_URL = (
    "https://www.roblox.com/headshot-thumbnail/image?userId=1&width=420&height=420&format=png"
)


@dataclass(frozen=True)
class RobloxUser:
    user_id: int
    username: str
    display_name: str
    thumbnail_url: str
    total_rap: int


class RobloxIdentityConnector(BaseConnector):
    """
    Resolves a username to its account, headshot and collectible RAP total.
    """

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        **kwargs,
    ) -> None:
        super().__init__(source="roblox", http_settings=http_settings, session=session, **kwargs)

    def fetch_user(self, username: str) -> RobloxUser | None:
        """
        Return the account for `username`, or None when no such user exists.

        Transport failures on the account lookup raise `ConnectorRequestError`;
        the headshot and RAP lookups degrade to fallbacks.
        """

        payload = self._request_json(
            method="POST",
            url=USERS_URL,
            json_body={"usernames": [username], "excludeBannedUsers": False},
        )
        users = payload.get("data") if isinstance(payload, dict) else None
        if not users:
            logger.info("Roblox user not found username=%s", username)
            return None

        user = users[0]
        user_id = int(user["id"])
        return RobloxUser(
            user_id=user_id,
            username=str(user.get("name", username)),
            display_name=str(user.get("displayName", "")),
            thumbnail_url=self.fetch_headshot_url(user_id),
            total_rap=self.fetch_total_rap(user_id),
        )

    def fetch_headshot_url(self, user_id: int) -> str:
        try:
            payload = self._request_json(
                method="GET",
                url=HEADSHOT_URL,
                params={"userIds": user_id, "size": "420x420", "format": "Png"},
            )
        except ConnectorRequestError as exc:
            logger.warning("Headshot lookup failed user_id=%s error=%s", user_id, exc)
            return PLACEHOLDER_HEADSHOT_URL

        entries = payload.get("data") if isinstance(payload, dict) else None
        if entries and entries[0].get("imageUrl"):
            return str(entries[0]["imageUrl"])
        return PLACEHOLDER_HEADSHOT_URL

    def fetch_total_rap(self, user_id: int) -> int:
        """
        Sum positive recent-average-prices over the first collectibles page.
        """

        try:
            payload = self._request_json(
                method="GET",
                url=COLLECTIBLES_URL.format(user_id=user_id),
                params={"sortOrder": "Asc", "limit": 100},
            )
        except ConnectorRequestError as exc:
            logger.warning("Could not fetch RAP data user_id=%s error=%s", user_id, exc)
            return 0

        items = payload.get("data") if isinstance(payload, dict) else None
        total = 0
        for item in items or []:
            price = item.get("recentAveragePrice") or 0
            if price > 0:
                total += int(price)
        return total
