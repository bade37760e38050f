"""
Look up a Roblox account, headshot and collectible RAP from the CLI.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict

from owner_scout.config import get_external_http_settings
from owner_scout.connectors import ConnectorRequestError, RobloxIdentityConnector


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve a Roblox username.")
    parser.add_argument("username", help="Roblox username to resolve.")
    args = parser.parse_args()

    connector = RobloxIdentityConnector(http_settings=get_external_http_settings())
    try:
        user = connector.fetch_user(args.username)
    except ConnectorRequestError as exc:
        print(json.dumps({"username": args.username, "error": str(exc)}, indent=2))
        return 1

    if user is None:
        print(json.dumps({"username": args.username, "found": False}, indent=2))
        return 1
    print(json.dumps({"found": True, **asdict(user)}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
