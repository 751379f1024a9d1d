from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from creatorsync.domain.errors import ConcurrentReconciliationError, IdentityNotFoundError
from creatorsync.domain.sync import SessionRegistry, WritePolicy
from tests.helpers.identities import NOW, make_identity

if TYPE_CHECKING:
    from creatorsync.adapters.memory import InMemoryIdentityRepository


def test_writers_queue_behind_each_other(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    repository.add(make_identity())
    order: list[str] = []

    async def write(name: str) -> None:
        async with sessions.open("uci_0123456789abcdef") as session:
            async with session.writer() as identity:
                order.append(f"{name}:start")
                await asyncio.sleep(0.01)
                updated = repository.get(identity.id)
                updated.touch(NOW)
                session.commit(updated)
                order.append(f"{name}:end")

    async def scenario() -> None:
        await asyncio.gather(write("a"), write("b"))

    asyncio.run(scenario())

    assert order == ["a:start", "a:end", "b:start", "b:end"]
    assert repository.get("uci_0123456789abcdef").version == 3
    assert len(sessions) == 0


def test_reject_policy_refuses_a_second_writer(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    repository.add(make_identity())

    async def scenario() -> None:
        async with sessions.open("uci_0123456789abcdef") as session:
            async with session.writer():
                with pytest.raises(ConcurrentReconciliationError):
                    async with session.writer(WritePolicy.REJECT):
                        pass

    asyncio.run(scenario())


def test_commit_requires_the_writer(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    repository.add(make_identity())

    async def scenario() -> None:
        async with sessions.open("uci_0123456789abcdef") as session:
            with pytest.raises(RuntimeError):
                session.commit(session.identity)

    asyncio.run(scenario())


def test_sessions_are_shared_and_torn_down(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    repository.add(make_identity())
    seen: list[int] = []

    async def scenario() -> None:
        async with sessions.open("uci_0123456789abcdef") as first:
            async with sessions.open("uci_0123456789abcdef") as second:
                assert first is second
                seen.append(second.holders)
            seen.append(first.holders)
            assert sessions.active("uci_0123456789abcdef") is first

    asyncio.run(scenario())

    assert seen == [2, 1]
    assert sessions.active("uci_0123456789abcdef") is None


def test_commit_notifies_listeners(
    repository: InMemoryIdentityRepository, sessions: SessionRegistry
) -> None:
    repository.add(make_identity())
    versions: list[int] = []

    async def scenario() -> None:
        async with sessions.open("uci_0123456789abcdef") as session:
            unsubscribe = session.subscribe(lambda identity, _: versions.append(identity.version))
            async with session.writer() as identity:
                updated = repository.get(identity.id)
                updated.touch(NOW)
                session.commit(updated)
            unsubscribe()
            async with session.writer() as identity:
                session.commit(identity)

    asyncio.run(scenario())

    assert versions == [2]


def test_unknown_identity_cannot_be_opened(sessions: SessionRegistry) -> None:
    async def scenario() -> None:
        async with sessions.open("uci_missing"):
            pass

    with pytest.raises(IdentityNotFoundError):
        asyncio.run(scenario())
    assert len(sessions) == 0
