from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from creatorsync.adapters.memory import InMemoryIdentityRepository
from creatorsync.config.sync import SyncConfig
from creatorsync.domain.reconciliation import (
    ConflictDetector,
    ConflictResolver,
    ReconciliationEngine,
)
from creatorsync.domain.scoring import EvidenceScorer
from creatorsync.domain.sync import SessionRegistry

if TYPE_CHECKING:
    from collections.abc import Iterator

_ENV_PREFIX = "CREATORSYNC_"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX):
            monkeypatch.delenv(name)
    yield


@pytest.fixture
def scorer() -> EvidenceScorer:
    return EvidenceScorer()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


@pytest.fixture
def engine(scorer: EvidenceScorer, sync_config: SyncConfig) -> ReconciliationEngine:
    return ReconciliationEngine(
        scorer=scorer,
        detector=ConflictDetector(sync_config),
        resolver=ConflictResolver(sync_config),
    )


@pytest.fixture
def repository() -> InMemoryIdentityRepository:
    return InMemoryIdentityRepository()


@pytest.fixture
def sessions(repository: InMemoryIdentityRepository) -> SessionRegistry:
    return SessionRegistry(repository)
