"""Persistence port for identities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from creatorsync.domain.model import Identity


@runtime_checkable
class IdentityRepository(Protocol):
    """Store collaborator. Lookups raise ``IdentityNotFoundError`` on a miss."""

    def get(self, identity_id: str) -> Identity: ...

    def add(self, identity: Identity) -> None: ...

    def save(self, identity: Identity) -> None: ...
