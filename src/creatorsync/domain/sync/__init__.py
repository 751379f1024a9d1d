"""Fetching platform data and funnelling it through single-writer sessions."""

from __future__ import annotations

from .coordinator import SyncCoordinator
from .result import FetchFailure, SyncResult
from .session import IdentitySession, SessionRegistry, WritePolicy
from .webhooks import PlatformUpdateEvent, apply_webhook_event

__all__ = [
    "FetchFailure",
    "IdentitySession",
    "PlatformUpdateEvent",
    "SessionRegistry",
    "SyncCoordinator",
    "SyncResult",
    "WritePolicy",
    "apply_webhook_event",
]
