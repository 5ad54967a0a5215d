"""Significance scoring: fuses text and structural diffs into a regenerate/skip decision."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from docdrift.core.errors import InputError
from docdrift.core.models import (
    ChangeCategory,
    Classification,
    Level,
    PrimaryChangeType,
    Recommendation,
    Severity,
    SignificanceResult,
    StructuralDelta,
    TextDiffResult,
    TypeChangeSet,
)
from docdrift.core.settings import ScoringPolicy, settings

logger = logging.getLogger(__name__)

OverrideRule = Callable[[SignificanceResult], SignificanceResult]


def _high_relevance(result: SignificanceResult) -> SignificanceResult:
    if result.classification.documentation_relevance != Level.HIGH:
        return result
    recommendation = result.recommendation
    priority = recommendation.priority if recommendation.priority != Level.NONE else Level.LOW
    return result.model_copy(
        update={
            "recommendation": recommendation.with_reason(
                "Change is highly relevant to existing documentation",
                should_regenerate=True,
                confidence=round(min(0.95, recommendation.confidence + 0.2), 2),
                priority=priority,
            )
        }
    )


def _no_relevance(result: SignificanceResult) -> SignificanceResult:
    if result.classification.documentation_relevance != Level.NONE:
        return result
    return result.model_copy(
        update={
            "recommendation": result.recommendation.with_reason(
                "Change does not affect documentation",
                should_regenerate=False,
                confidence=0.90,
                priority=Level.NONE,
            )
        }
    )


def _formatting_only(result: SignificanceResult) -> SignificanceResult:
    if result.classification.primary_type != PrimaryChangeType.FORMATTING:
        return result
    return result.model_copy(
        update={
            "recommendation": result.recommendation.with_reason(
                "Formatting-only change, documentation stays current",
                should_regenerate=False,
                confidence=0.95,
                priority=Level.NONE,
            )
        }
    )


def _interface_or_namespace(result: SignificanceResult) -> SignificanceResult:
    classification = result.classification
    if classification.primary_type == PrimaryChangeType.FORMATTING:
        return result
    if not {ChangeCategory.INTERFACES, ChangeCategory.NAMESPACE} & classification.categories:
        return result
    return result.model_copy(
        update={
            "recommendation": result.recommendation.with_reason(
                "Interface or namespace change requires a documentation update",
                should_regenerate=True,
                confidence=0.90,
                priority=Level.HIGH,
            )
        }
    )


OVERRIDE_RULES: tuple[OverrideRule, ...] = (
    _high_relevance,
    _no_relevance,
    _formatting_only,
    _interface_or_namespace,
)


class SignificanceScorer:
    """Scores a change 0-100 and recommends whether documentation must be regenerated."""

    def __init__(self, policy: ScoringPolicy | None = None, rules: tuple[OverrideRule, ...] = OVERRIDE_RULES):
        self.policy = policy or settings.scoring
        self.rules = rules

    def score(
        self,
        diff: TextDiffResult | dict[str, Any],
        delta: StructuralDelta | dict[str, Any],
        documented_symbols: Iterable[str] | None = None,
    ) -> SignificanceResult:
        """Score one file change.

        Args:
            diff: Text diff classification, or its serialized form
            delta: Structural delta, or its serialized form
            documented_symbols: Qualified names already documented for this file;
                each one the delta touches adds a bonus

        Raises:
            InputError: If either payload is malformed
        """
        diff = self._coerce(TextDiffResult, diff)
        delta = self._coerce(StructuralDelta, delta)

        points = self._points(diff, delta, documented_symbols)
        result = SignificanceResult(
            score=points,
            classification=self.classify(diff, delta),
            recommendation=self._threshold_recommendation(points),
        )
        for rule in self.rules:
            result = rule(result)

        logger.debug(
            f"Scored change: {result.score}/100, regenerate={result.should_regenerate}, "
            f"confidence={result.recommendation.confidence}"
        )
        return result

    @staticmethod
    def _coerce(model, payload):
        if isinstance(payload, model):
            return payload
        if not isinstance(payload, dict):
            raise InputError(f"Expected {model.__name__} or mapping, got {type(payload).__name__}")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InputError(f"Malformed {model.__name__}: {e.error_count()} validation error(s)") from e

    def _points(
        self, diff: TextDiffResult, delta: StructuralDelta, documented_symbols: Iterable[str] | None
    ) -> int:
        policy = self.policy
        score = 0

        if diff.structural_changes:
            score += policy.structural_change
        if diff.semantic_changes:
            score += policy.semantic_change
        if diff.comments_only:
            score += policy.comments_only
        if diff.whitespace_only:
            score += policy.whitespace_only

        total = diff.change_counts.total
        if total > 10:
            score += policy.hunks_large
        elif total > 5:
            score += policy.hunks_medium
        elif total > 1:
            score += policy.hunks_small

        if delta.namespace_changed:
            score += policy.namespace_changed
        if delta.types.has_changes:
            score += self._type_points(delta.types)
        if delta.interfaces.has_changes:
            score += policy.interfaces_changed
        if delta.functions.has_changes:
            score += policy.functions_changed
        if delta.imports.has_changes:
            score += policy.imports_changed

        if delta.has_changes:
            score += {
                Severity.MAJOR: policy.severity_major,
                Severity.MINOR: policy.severity_minor,
                Severity.MINIMAL: policy.severity_minimal,
            }[delta.severity]

        if documented_symbols is not None:
            documented = set(documented_symbols)
            touched = set(delta.touched_symbols()) & documented
            score += policy.documented_symbol_bonus * len(touched)

        return min(100, max(0, score))

    def _type_points(self, types: TypeChangeSet) -> int:
        policy = self.policy
        score = (len(types.added) + len(types.removed)) * policy.type_added_or_removed

        for type_delta in types.modified.values():
            if type_delta.extends_changed:
                score += policy.extends_changed
            if type_delta.implements_changes.has_changes:
                score += policy.implements_changed

            methods = type_delta.methods_changes
            score += (len(methods.added) + len(methods.removed)) * policy.method_added_or_removed
            score += len(methods.modified) * policy.method_modified

            properties = type_delta.properties_changes
            score += (len(properties.added) + len(properties.removed)) * policy.property_added_or_removed
            score += len(properties.modified) * policy.property_modified

            if type_delta.modifiers_changed.has_changes:
                score += policy.modifiers_changed

        return score

    def classify(self, diff: TextDiffResult, delta: StructuralDelta) -> Classification:
        """Derive the primary change type, touched categories and impact levels.

        Impact and relevance only ever escalate, except that a whitespace-only
        diff pins both to ``none``.
        """
        primary: PrimaryChangeType | None = None
        categories: set[ChangeCategory] = set()
        impact = Level.LOW
        relevance = Level.LOW

        if diff.whitespace_only:
            primary = PrimaryChangeType.FORMATTING
            categories.add(ChangeCategory.WHITESPACE)
        elif diff.comments_only:
            primary = PrimaryChangeType.DOCUMENTATION
            categories.add(ChangeCategory.COMMENTS)
        elif diff.structural_changes:
            primary = PrimaryChangeType.STRUCTURAL
            categories.add(ChangeCategory.STRUCTURE)
            impact = relevance = Level.HIGH
        elif diff.semantic_changes:
            primary = PrimaryChangeType.SEMANTIC
            categories.add(ChangeCategory.LOGIC)
            impact = relevance = Level.MEDIUM

        if delta.types.has_changes:
            categories.add(ChangeCategory.TYPES)
            impact = impact.escalate(Level.MEDIUM)
            relevance = relevance.escalate(Level.MEDIUM)
        if delta.interfaces.has_changes or delta.implements_changed:
            categories.add(ChangeCategory.INTERFACES)
            impact = relevance = Level.HIGH
        if delta.functions.has_changes:
            categories.add(ChangeCategory.FUNCTIONS)
            impact = impact.escalate(Level.MEDIUM)
            relevance = relevance.escalate(Level.MEDIUM)
        if delta.namespace_changed:
            categories.add(ChangeCategory.NAMESPACE)
            impact = relevance = Level.HIGH
        if delta.imports.has_changes:
            categories.add(ChangeCategory.IMPORTS)

        if primary is None:
            if {ChangeCategory.TYPES, ChangeCategory.INTERFACES} & categories:
                primary = PrimaryChangeType.STRUCTURAL
            elif ChangeCategory.FUNCTIONS in categories:
                primary = PrimaryChangeType.FUNCTIONAL
            elif ChangeCategory.IMPORTS in categories:
                primary = PrimaryChangeType.DEPENDENCIES
            else:
                primary = PrimaryChangeType.MINOR

        if diff.whitespace_only:
            impact = relevance = Level.NONE

        return Classification(
            primary_type=primary,
            categories=frozenset(categories),
            impact_level=impact,
            documentation_relevance=relevance,
        )

    def _threshold_recommendation(self, score: int) -> Recommendation:
        policy = self.policy
        if score >= policy.high_threshold:
            return Recommendation(
                should_regenerate=True,
                confidence=0.95,
                priority=Level.HIGH,
                reasons=(f"High significance score ({score}/100) indicates substantial changes",),
            )
        if score >= policy.medium_threshold:
            return Recommendation(
                should_regenerate=True,
                confidence=0.75,
                priority=Level.MEDIUM,
                reasons=(f"Moderate significance score ({score}/100) suggests the documentation needs an update",),
            )
        if score >= policy.low_threshold:
            return Recommendation(
                should_regenerate=True,
                confidence=0.50,
                priority=Level.LOW,
                reasons=(f"Low significance score ({score}/100), but the change may affect documentation",),
            )
        return Recommendation(
            should_regenerate=False,
            confidence=0.85,
            priority=Level.NONE,
            reasons=(f"Very low significance score ({score}/100), documentation is unlikely to be affected",),
        )
