"""Tests for significance scoring and the override rules."""

import pytest

from docdrift.core.change_analyzer import ChangeAnalyzer
from docdrift.core.errors import InputError
from docdrift.core.models import (
    ChangeCategory,
    ChangeCounts,
    Classification,
    Level,
    NameChangeSet,
    PrimaryChangeType,
    Recommendation,
    SignificanceResult,
    StructuralDelta,
    TextDiffResult,
    TypeChangeSet,
    TypeDelta,
)
from docdrift.core.settings import ScoringPolicy
from docdrift.core.significance import (
    OVERRIDE_RULES,
    SignificanceScorer,
    _formatting_only,
    _high_relevance,
    _interface_or_namespace,
)
from docdrift.core.structural_diff import StructuralDiffComparator
from docdrift.core.structural_parser import parse


@pytest.fixture
def scorer() -> SignificanceScorer:
    return SignificanceScorer(ScoringPolicy())


@pytest.fixture
def analyzer() -> ChangeAnalyzer:
    return ChangeAnalyzer(ScoringPolicy())


def _result(primary: PrimaryChangeType, categories=(), relevance=Level.LOW, **recommendation) -> SignificanceResult:
    return SignificanceResult(
        score=10,
        classification=Classification(
            primary_type=primary,
            categories=frozenset(categories),
            documentation_relevance=relevance,
        ),
        recommendation=Recommendation(**recommendation),
    )


def test_score__reindented_class_is_skipped_as_formatting(analyzer) -> None:
    analysis = analyzer.analyze(
        "Foo.php",
        "class Foo { public function bar() {} }",
        "class Foo {\n    public function bar() {}\n}\n",
    )
    result = analysis.result

    assert analysis.text_diff.whitespace_only
    assert result.score <= 1
    assert result.classification.primary_type == PrimaryChangeType.FORMATTING
    assert result.recommendation.should_regenerate is False
    assert result.recommendation.confidence == 0.95


def test_score__added_interface_implementation_regenerates_with_high_priority(analyzer) -> None:
    analysis = analyzer.analyze("Foo.php", "class Foo {}", "class Foo implements Bar {}")
    result = analysis.result

    assert analysis.delta.types.modified["Foo"].implements_changes.has_changes
    assert analysis.delta.severity.value == "major"
    assert result.score >= 70
    assert result.recommendation.should_regenerate is True
    assert result.recommendation.priority == Level.HIGH
    assert ChangeCategory.INTERFACES in result.classification.categories
    assert "Interface or namespace change requires a documentation update" in result.recommendation.reasons


def test_score__removed_private_method_lands_in_low_band(scorer) -> None:
    old = "class Foo {\n    public function bar() {}\n    private function baz() {}\n}\n"
    new = "class Foo {\n    public function bar() {}\n}\n"
    delta = StructuralDiffComparator().compare(parse(old), parse(new))
    diff = TextDiffResult(change_counts=ChangeCounts(total=1, deletions=1))

    result = scorer.score(diff, delta)

    assert delta.types.modified["Foo"].methods_changes.removed == ["baz"]
    assert 20 <= result.score < 40
    assert result.recommendation.should_regenerate is True
    assert result.recommendation.confidence == 0.50
    assert result.recommendation.priority == Level.LOW


def test_score__removed_private_method_regenerates_end_to_end(analyzer) -> None:
    old = "class Foo {\n    public function bar() {}\n    private function baz() {}\n}\n"
    new = "class Foo {\n    public function bar() {}\n}\n"

    analysis = analyzer.analyze("Foo.php", old, new)
    result = analysis.result

    assert analysis.text_diff.structural_changes
    assert analysis.delta.severity.value == "minor"
    assert result.score == 65
    assert result.recommendation.should_regenerate is True
    assert result.recommendation.confidence == 0.95
    assert result.recommendation.priority == Level.MEDIUM


def test_score__documented_symbols_add_a_bonus(scorer) -> None:
    old = "class Foo {\n    public function bar() {}\n    private function baz() {}\n}\n"
    new = "class Foo {\n    public function bar() {}\n}\n"
    delta = StructuralDiffComparator().compare(parse(old), parse(new))
    diff = TextDiffResult(change_counts=ChangeCounts(total=1, deletions=1))

    plain = scorer.score(diff, delta)
    documented = scorer.score(diff, delta, documented_symbols=["Foo", "Foo::baz"])
    unrelated = scorer.score(diff, delta, documented_symbols=["Foo::bar"])

    assert documented.score == plain.score + ScoringPolicy().documented_symbol_bonus
    assert unrelated.score == plain.score


def test_score__never_decreases_when_flags_are_added(scorer) -> None:
    delta = StructuralDelta()
    base = TextDiffResult(change_counts=ChangeCounts(total=1))
    variants = [
        TextDiffResult(comments_only=True, change_counts=ChangeCounts(total=1)),
        TextDiffResult(semantic_changes=True, change_counts=ChangeCounts(total=1)),
        TextDiffResult(structural_changes=True, change_counts=ChangeCounts(total=1)),
        TextDiffResult(structural_changes=True, semantic_changes=True, change_counts=ChangeCounts(total=1)),
    ]

    base_score = scorer.score(base, delta).score
    for variant in variants:
        assert scorer.score(variant, delta).score >= base_score


def test_score__never_decreases_when_delta_grows(scorer) -> None:
    diff = TextDiffResult(structural_changes=True, change_counts=ChangeCounts(total=1))
    small = StructuralDelta(types=TypeChangeSet(added=["Foo"]))
    large = StructuralDelta(types=TypeChangeSet(added=["Foo", "Bar"]), namespace_changed=True)

    assert scorer.score(diff, large).score >= scorer.score(diff, small).score


def test_score__is_clamped_to_100(scorer) -> None:
    diff = TextDiffResult(structural_changes=True, semantic_changes=True, change_counts=ChangeCounts(total=20))
    delta = StructuralDelta(
        namespace_changed=True,
        types=TypeChangeSet(added=["A", "B", "C"]),
        interfaces=TypeChangeSet(added=["I"]),
    )

    assert scorer.score(diff, delta).score == 100


def test_score__whitespace_only_always_skips_even_with_interface_delta(scorer) -> None:
    diff = TextDiffResult(whitespace_only=True, change_counts=ChangeCounts(total=3))
    delta = StructuralDelta(
        namespace_changed=True,
        interfaces=TypeChangeSet(added=["Greeter"]),
        types=TypeChangeSet(modified={"Foo": TypeDelta(implements_changes=NameChangeSet(added=["Greeter"]))}),
    )

    result = scorer.score(diff, delta)

    assert result.classification.primary_type == PrimaryChangeType.FORMATTING
    assert result.classification.impact_level == Level.NONE
    assert result.classification.documentation_relevance == Level.NONE
    assert result.recommendation.should_regenerate is False


def test_score__accepts_serialized_payloads(scorer) -> None:
    result = scorer.score({"semantic_changes": True, "change_counts": {"total": 1}}, {})

    assert result.score == ScoringPolicy().semantic_change
    assert result.classification.primary_type == PrimaryChangeType.SEMANTIC


@pytest.mark.parametrize(
    "diff, delta",
    [
        ({"change_counts": {"total": -1}}, {}),
        ({"whitespace_only": True, "semantic_changes": True}, {}),
        ({}, {"severity": "catastrophic"}),
        ("not a diff", {}),
    ],
)
def test_score__rejects_malformed_input(scorer, diff, delta) -> None:
    with pytest.raises(InputError):
        scorer.score(diff, delta)


def test_score__respects_custom_policy() -> None:
    scorer = SignificanceScorer(ScoringPolicy(semantic_change=80))
    diff = TextDiffResult(semantic_changes=True, change_counts=ChangeCounts(total=1))

    result = scorer.score(diff, StructuralDelta())

    assert result.score == 80
    assert result.recommendation.priority == Level.HIGH


def test_classify__imports_only_is_dependencies(scorer) -> None:
    from docdrift.core.models import ImportChangeSet

    classification = scorer.classify(TextDiffResult(), StructuralDelta(imports=ImportChangeSet(added=["Foo\\Bar"])))

    assert classification.primary_type == PrimaryChangeType.DEPENDENCIES
    assert classification.categories == frozenset({ChangeCategory.IMPORTS})


def test_high_relevance_rule__forces_regeneration_and_raises_confidence() -> None:
    result = _result(PrimaryChangeType.STRUCTURAL, relevance=Level.HIGH, confidence=0.5)

    updated = _high_relevance(result)

    assert updated.recommendation.should_regenerate is True
    assert updated.recommendation.confidence == 0.7
    assert updated.recommendation.priority == Level.LOW
    assert result.recommendation.should_regenerate is False


def test_formatting_rule__ignores_other_change_types() -> None:
    result = _result(PrimaryChangeType.SEMANTIC, should_regenerate=True, confidence=0.75)

    assert _formatting_only(result) is result


def test_interface_rule__yields_to_formatting() -> None:
    result = _result(PrimaryChangeType.FORMATTING, categories=[ChangeCategory.INTERFACES])

    assert _interface_or_namespace(result) is result


def test_interface_rule__applies_to_namespace_changes() -> None:
    result = _result(PrimaryChangeType.MINOR, categories=[ChangeCategory.NAMESPACE])

    updated = _interface_or_namespace(result)

    assert updated.recommendation.should_regenerate is True
    assert updated.recommendation.confidence == 0.90
    assert updated.recommendation.priority == Level.HIGH


def test_override_rules__run_in_fixed_order() -> None:
    assert OVERRIDE_RULES[-1] is _interface_or_namespace
    assert OVERRIDE_RULES.index(_high_relevance) < OVERRIDE_RULES.index(_formatting_only)
