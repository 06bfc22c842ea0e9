"""Public interface for the Roblox Open Cloud adapter."""

from __future__ import annotations

from .client import RobloxGateway
from .schema import DevProductResponse, ErrorResponse, GamepassResponse

__all__ = [
    "DevProductResponse",
    "ErrorResponse",
    "GamepassResponse",
    "RobloxGateway",
]
