"""Error taxonomy shared by verification, sync and reconciliation."""

from __future__ import annotations


class CreatorSyncError(Exception):
    """Base class for all domain errors."""


class ValidationError(CreatorSyncError, ValueError):
    """Malformed evidence or input, rejected before any mutation."""


class UnknownVerificationTypeError(ValidationError):
    """Verification type outside the closed enumeration."""


class InvalidConfidenceError(ValidationError):
    """Confidence could not be interpreted as a number."""


class DuplicateContentCredentialError(ValidationError):
    """A credential with the same content hash already exists on the identity."""


class IdentityRevokedError(ValidationError):
    """Mutation attempted on a revoked identity."""


class InvalidStatusTransitionError(ValidationError):
    """A lifecycle status change that the state model does not allow."""


class IdentityNotFoundError(CreatorSyncError, LookupError):
    def __init__(self, identity_id: str) -> None:
        super().__init__(f"Identity {identity_id!r} not found")
        self.identity_id = identity_id


class AdapterFailure(CreatorSyncError):
    """One platform could not deliver a snapshot. Isolated to that platform."""

    retryable = True

    def __init__(self, platform_id: str, message: str) -> None:
        super().__init__(f"[{platform_id}] {message}")
        self.platform_id = platform_id


class AdapterTimeoutError(AdapterFailure):
    pass


class AdapterRateLimitedError(AdapterFailure):
    def __init__(
        self, platform_id: str, message: str, *, retry_after: float | None = None
    ) -> None:
        super().__init__(platform_id, message)
        self.retry_after = retry_after


class AdapterUnavailableError(AdapterFailure):
    pass


class AdapterPayloadError(AdapterFailure):
    retryable = False


class ConflictUnresolvable(CreatorSyncError):  # noqa: N818
    """High-severity conflict that no automatic strategy may settle."""

    def __init__(self, field: str, kind: str) -> None:
        super().__init__(f"Conflict {kind!r} on field {field!r} requires manual adjudication")
        self.field = field
        self.kind = kind


class ConcurrentReconciliationError(CreatorSyncError):
    """Another reconciliation is in flight for the same identity."""

    retryable = True

    def __init__(self, identity_id: str) -> None:
        super().__init__(f"Reconciliation already in progress for identity {identity_id!r}")
        self.identity_id = identity_id


class StaleDataError(CreatorSyncError):
    """Fetched data is older than what the identity already holds."""

    def __init__(self, platform_id: str, message: str) -> None:
        super().__init__(f"[{platform_id}] {message}")
        self.platform_id = platform_id


class SyncCancelledError(CreatorSyncError):
    """The sync cycle was cancelled; nothing was committed."""
