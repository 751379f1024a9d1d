"""In-process identity store."""

from __future__ import annotations

import copy
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.domain.errors import IdentityNotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from creatorsync.domain.model import Identity
    from creatorsync.domain.ports import IdentityRepository

log = getLogger(__name__)


class InMemoryIdentityRepository:
    """Keeps private copies, so callers never share state with the store."""

    def __init__(self, identities: Iterable[Identity] | None = None) -> None:
        self._identities: dict[str, Identity] = {}
        for identity in identities or ():
            self.add(identity)

    def get(self, identity_id: str) -> Identity:
        try:
            return copy.deepcopy(self._identities[identity_id])
        except KeyError:
            raise IdentityNotFoundError(identity_id) from None

    def add(self, identity: Identity) -> None:
        if identity.id in self._identities:
            raise ValidationError(f"Identity {identity.id!r} already exists")
        self._identities[identity.id] = copy.deepcopy(identity)
        log.debug("Stored new identity %s", identity.id)

    def save(self, identity: Identity) -> None:
        stored = self._identities.get(identity.id)
        if stored is None:
            raise IdentityNotFoundError(identity.id)
        if identity.version < stored.version:
            raise ValidationError(
                f"Refusing to overwrite {identity.id} v{stored.version} with v{identity.version}"
            )
        self._identities[identity.id] = copy.deepcopy(identity)

    def __contains__(self, identity_id: object) -> bool:
        return identity_id in self._identities

    def __len__(self) -> int:
        return len(self._identities)


if TYPE_CHECKING:
    _repository_check: IdentityRepository = InMemoryIdentityRepository()
