"""Domain port definitions for adapters."""

from __future__ import annotations

from .gateway import RemoteMutationGateway, ResourceFields
from .persistence import MappingStore

__all__ = ["MappingStore", "RemoteMutationGateway", "ResourceFields"]
