"""
External REST connectors.
"""

from owner_scout.connectors.base import BaseConnector, ConnectorRequestError
from owner_scout.connectors.roblox_connector import RobloxIdentityConnector, RobloxUser

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "RobloxIdentityConnector",
    "RobloxUser",
]
