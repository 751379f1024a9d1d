"""Per-identity session context with a single-writer discipline.

Full syncs and webhook updates for one identity share one session: they read
the same in-memory identity and take turns committing through ``writer``.
Sessions are opened through a ``SessionRegistry`` and torn down when their
last holder exits, so no identity state outlives its users.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.domain.errors import ConcurrentReconciliationError

if TYPE_CHECKING:
    from creatorsync.domain.model import Identity
    from creatorsync.domain.ports import IdentityRepository
    from creatorsync.domain.reconciliation import SyncReport

log = getLogger(__name__)

type CommitListener = Callable[[Identity, SyncReport | None], None]


class WritePolicy(StrEnum):
    QUEUE = "queue"
    REJECT = "reject"


@dataclass(eq=False)
class IdentitySession:
    identity: Identity
    repository: IdentityRepository
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _holders: int = field(default=0, repr=False)
    _listeners: list[CommitListener] = field(default_factory=list["CommitListener"], repr=False)

    @property
    def identity_id(self) -> str:
        return self.identity.id

    @property
    def holders(self) -> int:
        return self._holders

    @asynccontextmanager
    async def writer(self, policy: WritePolicy = WritePolicy.QUEUE) -> AsyncIterator[Identity]:
        """Hold the write side; yields the identity as committed so far.

        ``QUEUE`` waits for the current writer to finish, ``REJECT`` raises
        ``ConcurrentReconciliationError`` instead.
        """

        if policy is WritePolicy.REJECT and self._lock.locked():
            raise ConcurrentReconciliationError(self.identity_id)
        async with self._lock:
            yield self.identity

    def commit(self, identity: Identity, report: SyncReport | None = None) -> None:
        """Persist ``identity`` and make it the session's current state."""

        if not self._lock.locked():
            raise RuntimeError("commit requires the session writer")
        if identity.id != self.identity_id:
            raise ValueError(f"Cannot commit {identity.id} into session {self.identity_id}")
        if identity is not self.identity:
            self.repository.save(identity)
            self.identity = identity
            log.debug("Committed %s at version %s", identity.id, identity.version)
        for listener in tuple(self._listeners):
            listener(identity, report)

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """Register a commit listener; returns a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


@dataclass(eq=False)
class SessionRegistry:
    repository: IdentityRepository
    _sessions: dict[str, IdentitySession] = field(
        default_factory=dict["str", "IdentitySession"], repr=False
    )

    def active(self, identity_id: str) -> IdentitySession | None:
        return self._sessions.get(identity_id)

    def __len__(self) -> int:
        return len(self._sessions)

    @asynccontextmanager
    async def open(self, identity_id: str) -> AsyncIterator[IdentitySession]:
        """Join (or create) the session for ``identity_id``.

        Raises ``IdentityNotFoundError`` when the repository has no such identity.
        """

        session = self._sessions.get(identity_id)
        if session is None:
            identity = self.repository.get(identity_id)
            session = IdentitySession(identity=identity, repository=self.repository)
            self._sessions[identity_id] = session
            log.debug("Opened session for %s", identity_id)
        session._holders += 1  # noqa: SLF001
        try:
            yield session
        finally:
            session._holders -= 1  # noqa: SLF001
            if session.holders == 0 and self._sessions.get(identity_id) is session:
                del self._sessions[identity_id]
                log.debug("Closed session for %s", identity_id)
