"""Conflict resolution strategies.

Every strategy is a pure function of the candidate values and the identity's
verified-platform set. The only notion of time is the ``observed_at`` stamp
already carried by each candidate, so the same inputs always produce the same
value, strategy and reasoning.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, assert_never

from creatorsync.config.sync import SyncConfig
from creatorsync.domain.errors import ConflictUnresolvable

from .contracts import FieldKind, ResolutionStrategy, ResolvedValue
from .detect import coefficient_of_variation
from .fields import TrackedField, normalize_text, tracked_field

if TYPE_CHECKING:
    from collections.abc import Sequence

    from creatorsync.domain.model import FieldScalar, Identity

    from .contracts import CandidateValue, SyncConflict

type CandidateOrder = Callable[[CandidateValue], tuple[float, int, str]]


def _agreement(
    tracked: TrackedField, candidates: Sequence[CandidateValue], value: FieldScalar
) -> float:
    """Share of candidates that reported the chosen value."""

    if tracked.kind is FieldKind.TEXT:
        target = normalize_text(value)
        matches = sum(1 for c in candidates if normalize_text(c.value) == target)
    else:
        matches = sum(1 for c in candidates if float(c.value) == float(value))
    return round(matches / len(candidates), 4)


def _quantize(value: float, precision: int) -> FieldScalar:
    exponent = Decimal(1).scaleb(-precision)
    rounded = Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if precision == 0 else float(rounded)


@dataclass(slots=True)
class ConflictResolver:
    config: SyncConfig = field(default_factory=SyncConfig)
    # conflict kind -> strategy, overriding the field default
    overrides: Mapping[str, ResolutionStrategy] = field(
        default_factory=dict["str", "ResolutionStrategy"]
    )

    def strategy_for(self, conflict: SyncConflict) -> ResolutionStrategy:
        override = self.overrides.get(conflict.kind)
        if override is not None:
            return override
        return tracked_field(conflict.field).default_strategy

    def resolve(self, conflict: SyncConflict, identity: Identity) -> ResolvedValue:
        """Resolve (or, for manual conflicts, recommend) a value for ``conflict``."""

        return self.settle(
            conflict.field,
            conflict.candidates,
            identity,
            strategy=self.strategy_for(conflict),
        )

    def resolve_or_raise(self, conflict: SyncConflict, identity: Identity) -> ResolvedValue:
        if not conflict.auto_resolvable:
            raise ConflictUnresolvable(conflict.field, conflict.kind)
        return self.resolve(conflict, identity)

    def settle(
        self,
        field_name: str,
        candidates: Sequence[CandidateValue],
        identity: Identity,
        *,
        strategy: ResolutionStrategy | None = None,
    ) -> ResolvedValue:
        if not candidates:
            raise ValueError(f"No candidates to settle for {field_name}")
        tracked = tracked_field(field_name)
        chosen = strategy or tracked.default_strategy
        match chosen:
            case ResolutionStrategy.LATEST_TIMESTAMP:
                return self._latest_timestamp(tracked, candidates)
            case ResolutionStrategy.VERIFIED_PLATFORM_PRIORITY:
                return self._verified_platform_priority(tracked, candidates, identity)
            case ResolutionStrategy.LONGEST_VALUE:
                return self._longest_value(tracked, candidates)
            case ResolutionStrategy.WEIGHTED_AVERAGE:
                return self._weighted_average(tracked, candidates)
            case _:
                assert_never(chosen)

    def _order(self) -> CandidateOrder:
        # newest first, then configured platform priority, then platform id
        def key(candidate: CandidateValue) -> tuple[float, int, str]:
            return (
                -candidate.observed_at.timestamp(),
                self.config.priority_rank(candidate.platform_id),
                candidate.platform_id,
            )

        return key

    def _latest_timestamp(
        self, tracked: TrackedField, candidates: Sequence[CandidateValue]
    ) -> ResolvedValue:
        ordered = sorted(candidates, key=self._order())
        winner = ordered[0]
        tied = [c for c in ordered if c.observed_at == winner.observed_at]
        reasoning = (
            f"{winner.platform_id} reported the most recent value "
            f"at {winner.observed_at.isoformat()}"
        )
        if len(tied) > 1:
            reasoning += (
                f"; tie with {', '.join(c.platform_id for c in tied[1:])} "
                "broken by platform priority"
            )
        return ResolvedValue(
            field=tracked.name,
            value=winner.value,
            strategy=ResolutionStrategy.LATEST_TIMESTAMP,
            confidence=_agreement(tracked, candidates, winner.value),
            reasoning=reasoning,
            source_platform=winner.platform_id,
        )

    def _verified_platform_priority(
        self,
        tracked: TrackedField,
        candidates: Sequence[CandidateValue],
        identity: Identity,
    ) -> ResolvedValue:
        verified = identity.verified_platforms()
        qualifying = [c for c in candidates if c.platform_id in verified]
        if not qualifying:
            fallback = self._latest_timestamp(tracked, candidates)
            return ResolvedValue(
                field=fallback.field,
                value=fallback.value,
                strategy=fallback.strategy,
                confidence=fallback.confidence,
                reasoning=f"no verified platform reported {tracked.name}; {fallback.reasoning}",
                source_platform=fallback.source_platform,
            )
        winner = sorted(qualifying, key=self._order())[0]
        if len(qualifying) == 1:
            confidence = 1.0
            reasoning = f"{winner.platform_id} is the only verified platform reporting {tracked.name}"
        else:
            confidence = 0.8
            reasoning = (
                f"{len(qualifying)} verified platforms reported {tracked.name}; "
                f"{winner.platform_id} has the most recent value"
            )
        return ResolvedValue(
            field=tracked.name,
            value=winner.value,
            strategy=ResolutionStrategy.VERIFIED_PLATFORM_PRIORITY,
            confidence=confidence,
            reasoning=reasoning,
            source_platform=winner.platform_id,
        )

    def _longest_value(
        self, tracked: TrackedField, candidates: Sequence[CandidateValue]
    ) -> ResolvedValue:
        longest = max(len(normalize_text(c.value)) for c in candidates)
        pool = [c for c in candidates if len(normalize_text(c.value)) == longest]
        winner = sorted(pool, key=self._order())[0]
        reasoning = f"{winner.platform_id} reported the longest {tracked.name} ({longest} characters)"
        if len(pool) > 1:
            reasoning += "; equal lengths broken by most recent timestamp"
        return ResolvedValue(
            field=tracked.name,
            value=winner.value,
            strategy=ResolutionStrategy.LONGEST_VALUE,
            confidence=_agreement(tracked, candidates, winner.value),
            reasoning=reasoning,
            source_platform=winner.platform_id,
        )

    @staticmethod
    def _weighted_average(
        tracked: TrackedField, candidates: Sequence[CandidateValue]
    ) -> ResolvedValue:
        if tracked.kind is not FieldKind.NUMERIC:
            raise ValueError(f"Weighted average needs a numeric field, got {tracked.name}")
        total_weight = sum(c.weight for c in candidates)
        average = sum(float(c.value) * c.weight for c in candidates) / total_weight
        value = _quantize(average, tracked.precision)
        cv = coefficient_of_variation([float(c.value) for c in candidates])
        return ResolvedValue(
            field=tracked.name,
            value=value,
            strategy=ResolutionStrategy.WEIGHTED_AVERAGE,
            confidence=round(1.0 - min(cv, 1.0), 4),
            reasoning=(
                f"follower-weighted average of {len(candidates)} platforms "
                f"({', '.join(sorted(c.platform_id for c in candidates))})"
            ),
        )
