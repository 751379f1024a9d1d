"""Identity documents stored as JSON files."""

from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

import pydantic

from creatorsync.domain.errors import ValidationError

from .schema import IdentityDocument
from .translator import identity_from_document, identity_to_document

if TYPE_CHECKING:
    from creatorsync.domain.model import Identity
    from creatorsync.domain.scoring import EvidenceScorer

log = getLogger(__name__)


def load_identity(
    path: Path, *, scorer: EvidenceScorer, as_of: datetime | None = None
) -> Identity:
    """Read an identity document; malformed documents raise ``ValidationError``."""

    try:
        document = IdentityDocument.model_validate_json(path.read_bytes())
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"{path} is not a valid identity document: {exc.error_count()} error(s)"
        ) from exc
    return identity_from_document(document, scorer=scorer, as_of=as_of or datetime.now(tz=UTC))


def dump_identity(identity: Identity, path: Path) -> None:
    """Write the document to a sibling temporary file, then swap it into place."""

    payload = identity_to_document(identity).model_dump_json(indent=2, exclude_none=True) + "\n"
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", delete=False
    ) as handle:
        temporary = Path(handle.name)
        try:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            temporary.unlink(missing_ok=True)
            raise
    temporary.replace(path)
    log.debug("Wrote identity %s v%s to %s", identity.id, identity.version, path)


__all__ = [
    "IdentityDocument",
    "dump_identity",
    "identity_from_document",
    "identity_to_document",
    "load_identity",
]
