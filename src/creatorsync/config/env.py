"""Readers for ``CREATORSYNC_*`` environment variables.

Blank values count as unset everywhere, so an exported but empty variable in a
``.env`` file falls back to the default or is reported as missing.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable


def _read(name: str) -> str | None:
    raw = os.environ.get(name, "").strip()
    return raw or None


def require_env_vars(names: Iterable[str]) -> dict[str, str]:
    """Read every name in ``names``, reporting all absent ones in a single error."""

    found = {name: _read(name) for name in names}
    if missing := [name for name, value in found.items() if value is None]:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in found.items() if value is not None}


def require_env_var(name: str) -> str:
    value = _read(name)
    if value is None:
        raise MissingConfigurationError([name])
    return value


def optional_float(name: str, default: float) -> float:
    raw = _read(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def optional_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Split a comma-separated variable into lower-cased items, dropping empty ones."""

    raw = _read(name)
    if raw is None:
        return default
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())
