"""Per-cycle sync state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from types import MappingProxyType

log = getLogger(__name__)


class SyncState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    PARTIALLY_COMMITTED = "partially_committed"
    FAILED = "failed"


_TRANSITIONS = MappingProxyType(
    {
        SyncState.IDLE: frozenset({SyncState.FETCHING, SyncState.RECONCILING, SyncState.FAILED}),
        SyncState.FETCHING: frozenset({SyncState.RECONCILING, SyncState.FAILED}),
        SyncState.RECONCILING: frozenset(
            {SyncState.COMMITTED, SyncState.PARTIALLY_COMMITTED, SyncState.FAILED}
        ),
        SyncState.COMMITTED: frozenset[SyncState](),
        SyncState.PARTIALLY_COMMITTED: frozenset[SyncState](),
        SyncState.FAILED: frozenset[SyncState](),
    }
)


@dataclass(slots=True)
class SyncCycle:
    """Tracks one sync cycle: Idle -> Fetching -> Reconciling -> outcome.

    Webhook-driven updates skip Fetching and enter Reconciling directly.
    """

    identity_id: str
    state: SyncState = SyncState.IDLE
    history: list[SyncState] = field(default_factory=list["SyncState"])

    def advance(self, target: SyncState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal sync transition {self.state} -> {target}")
        log.debug("Sync %s: %s -> %s", self.identity_id, self.state, target)
        self.history.append(self.state)
        self.state = target

    @property
    def finished(self) -> bool:
        return not _TRANSITIONS[self.state]
