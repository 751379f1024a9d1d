"""Registry of profile fields tracked across platforms."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from .contracts import FieldKind, ResolutionStrategy

if TYPE_CHECKING:
    from collections.abc import Mapping

    from creatorsync.domain.model import FieldScalar

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class TrackedField:
    name: str
    kind: FieldKind
    default_strategy: ResolutionStrategy
    # decimal places kept after averaging; numeric fields only
    precision: int = 0


TRACKED_FIELDS: Mapping[str, TrackedField] = MappingProxyType(
    {
        "display_name": TrackedField(
            "display_name", FieldKind.TEXT, ResolutionStrategy.VERIFIED_PLATFORM_PRIORITY
        ),
        "bio": TrackedField("bio", FieldKind.TEXT, ResolutionStrategy.LONGEST_VALUE),
        "follower_count": TrackedField(
            "follower_count", FieldKind.NUMERIC, ResolutionStrategy.WEIGHTED_AVERAGE
        ),
        "following_count": TrackedField(
            "following_count", FieldKind.NUMERIC, ResolutionStrategy.LATEST_TIMESTAMP
        ),
        "content_count": TrackedField(
            "content_count", FieldKind.NUMERIC, ResolutionStrategy.LATEST_TIMESTAMP
        ),
        "engagement_rate": TrackedField(
            "engagement_rate",
            FieldKind.NUMERIC,
            ResolutionStrategy.WEIGHTED_AVERAGE,
            precision=4,
        ),
    }
)


def tracked_field(name: str) -> TrackedField:
    try:
        return TRACKED_FIELDS[name]
    except KeyError as exc:
        raise KeyError(f"Untracked profile field: {name}") from exc


def conflict_kind(tracked: TrackedField) -> str:
    suffix = "variance" if tracked.kind is FieldKind.NUMERIC else "conflict"
    return f"{tracked.name}_{suffix}"


def normalize_text(value: FieldScalar) -> str:
    """Case- and whitespace-insensitive comparison form."""

    text = unicodedata.normalize("NFKC", str(value))
    return _WHITESPACE.sub(" ", text).strip().casefold()


def comparable(tracked: TrackedField, value: FieldScalar | None) -> object:
    if value is None:
        return None
    if tracked.kind is FieldKind.TEXT:
        return normalize_text(value)
    return float(value)
