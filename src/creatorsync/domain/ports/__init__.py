"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import IdentityRepository
from .platforms import PlatformAdapter, PlatformAdapters

__all__ = ["IdentityRepository", "PlatformAdapter", "PlatformAdapters"]
