from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from creatorsync.adapters.jsonfile import dump_identity, load_identity
from creatorsync.adapters.memory import InMemoryIdentityRepository
from creatorsync.adapters.platforms import build_platform_adapters, close_platform_adapters
from creatorsync.app import (
    SyncRequest,
    add_verification,
    build_services,
    sync_identity,
)
from creatorsync.config import configure_logging
from creatorsync.domain.errors import ValidationError
from creatorsync.domain.model import VerificationType
from creatorsync.domain.sync import SessionRegistry

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from creatorsync.adapters.platforms import HttpPlatformAdapter
    from creatorsync.app import SyncServices
    from creatorsync.domain.model import Identity
    from creatorsync.domain.reconciliation import SyncResponse

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Creator identity verification and sync")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    score = subparsers.add_parser("score", help="Show the scores of an identity document")
    score.add_argument("identity", type=Path, help="Path to the identity JSON document")

    verify = subparsers.add_parser("verify", help="Add a verification method to an identity")
    verify.add_argument("identity", type=Path, help="Path to the identity JSON document")
    verify.add_argument(
        "--type",
        dest="method_type",
        required=True,
        choices=[str(member) for member in VerificationType],
        help="Verification method type",
    )
    verify.add_argument(
        "--confidence",
        required=True,
        help="Confidence in [0, 1]; out-of-range values are clamped",
    )
    verify.add_argument(
        "--expires-at",
        type=str,
        help="ISO-8601 timestamp after which the method no longer counts",
    )

    sync = subparsers.add_parser("sync", help="Sync an identity with its connected platforms")
    sync.add_argument("identity", type=Path, help="Path to the identity JSON document")
    sync.add_argument(
        "--platform",
        dest="platforms",
        action="append",
        help="Platform to sync (repeatable; defaults to every connected platform)",
    )
    sync.add_argument(
        "--force",
        action="store_true",
        help="Ignore sync frequency and auto-sync settings",
    )
    sync.add_argument(
        "--output",
        type=Path,
        help="Where to write the updated identity (defaults to overwriting the input)",
    )

    return parser.parse_args(list(argv))


def _require_file(path: Path) -> Path:
    if not path.is_file():
        raise ValueError(f"Identity document not found: {path}")
    return path


def _print_json(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n")


def _run_score(args: argparse.Namespace) -> None:
    services = build_services()
    identity = load_identity(args.identity, scorer=services.scorer)
    _print_json(
        {
            "identity_id": identity.id,
            "verification_level": identity.verification_level,
            "authenticity_score": identity.authenticity_score,
            "risk_tier": str(identity.risk_tier),
        }
    )


def _run_verify(args: argparse.Namespace) -> None:
    services = build_services()
    identity = load_identity(args.identity, scorer=services.scorer)
    repository = InMemoryIdentityRepository([identity])
    payload: dict[str, object] = {"type": args.method_type, "confidence": args.confidence}
    if args.expires_at:
        payload["expires_at"] = args.expires_at
    level = asyncio.run(
        add_verification(
            identity.id,
            payload,
            sessions=SessionRegistry(repository),
            scorer=services.scorer,
        )
    )
    dump_identity(repository.get(identity.id), args.identity)
    log.info("Verification level for %s is now %s", identity.id, level)


def _fetchable_platforms(identity: Identity, requested: tuple[str, ...] | None) -> list[str]:
    return [
        platform_id
        for platform_id, connection in sorted(identity.connected_platforms.items())
        if connection.is_fetchable and (requested is None or platform_id in requested)
    ]


async def _sync_and_close(
    request: SyncRequest,
    *,
    sessions: SessionRegistry,
    adapters: dict[str, HttpPlatformAdapter],
    services: SyncServices,
) -> SyncResponse:
    try:
        return await sync_identity(
            request, sessions=sessions, adapters=adapters, services=services
        )
    finally:
        await close_platform_adapters(adapters)


def _run_sync(args: argparse.Namespace) -> int:
    services = build_services()
    identity = load_identity(args.identity, scorer=services.scorer)
    platforms = tuple(args.platforms) if args.platforms else None
    adapters = build_platform_adapters(_fetchable_platforms(identity, platforms))
    repository = InMemoryIdentityRepository([identity])
    response = asyncio.run(
        _sync_and_close(
            SyncRequest(identity.id, platforms=platforms, force_sync=args.force),
            sessions=SessionRegistry(repository),
            adapters=adapters,
            services=services,
        )
    )
    if response.success:
        dump_identity(repository.get(identity.id), args.output or args.identity)
    _print_json(response.to_dict())
    return 0 if response.success else 1


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _require_file(parsed_args.identity)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "score":
            _run_score(parsed_args)
        elif parsed_args.command == "verify":
            _run_verify(parsed_args)
        elif parsed_args.command == "sync":
            if _run_sync(parsed_args) != 0:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ValidationError:
        log.exception("Rejected input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
