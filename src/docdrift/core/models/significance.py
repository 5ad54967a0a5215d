"""Significance scoring result models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Level(str, Enum):
    """Ordered impact / relevance / priority level."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def escalate(self, other: "Level") -> "Level":
        """Return the higher of the two levels."""
        return other if other.rank > self.rank else self


_LEVEL_ORDER = [Level.NONE, Level.LOW, Level.MEDIUM, Level.HIGH]


class PrimaryChangeType(str, Enum):
    FORMATTING = "formatting"
    DOCUMENTATION = "documentation"
    STRUCTURAL = "structural"
    SEMANTIC = "semantic"
    FUNCTIONAL = "functional"
    DEPENDENCIES = "dependencies"
    MINOR = "minor"


class ChangeCategory(str, Enum):
    """Tags describing which parts of a file a change touched."""

    WHITESPACE = "whitespace"
    COMMENTS = "comments"
    STRUCTURE = "structure"
    LOGIC = "logic"
    TYPES = "types"
    INTERFACES = "interfaces"
    FUNCTIONS = "functions"
    NAMESPACE = "namespace"
    IMPORTS = "imports"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_type: PrimaryChangeType = PrimaryChangeType.MINOR
    categories: frozenset[ChangeCategory] = Field(default_factory=frozenset)
    impact_level: Level = Level.LOW
    documentation_relevance: Level = Level.LOW


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_regenerate: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    priority: Level = Level.NONE
    reasons: tuple[str, ...] = ()

    def with_reason(self, reason: str, **changes) -> "Recommendation":
        """Copy with ``changes`` applied and ``reason`` appended."""
        return self.model_copy(update={**changes, "reasons": (*self.reasons, reason)})


class SignificanceResult(BaseModel):
    """Score, classification and recommendation for one file change."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    classification: Classification
    recommendation: Recommendation

    @property
    def should_regenerate(self) -> bool:
        return self.recommendation.should_regenerate

    @classmethod
    def unscorable(cls, reason: str) -> "SignificanceResult":
        """Result used when the inputs could not be scored at all."""
        return cls(
            score=0,
            classification=Classification(impact_level=Level.NONE, documentation_relevance=Level.NONE),
            recommendation=Recommendation(
                should_regenerate=False, confidence=0.0, priority=Level.NONE, reasons=(reason,)
            ),
        )

    @classmethod
    def certain(cls, regenerate: bool, reason: str) -> "SignificanceResult":
        """Result for trivially decidable pairs: identical content or a brand-new file."""
        level = Level.HIGH if regenerate else Level.NONE
        return cls(
            score=100 if regenerate else 0,
            classification=Classification(
                primary_type=PrimaryChangeType.STRUCTURAL if regenerate else PrimaryChangeType.MINOR,
                impact_level=level,
                documentation_relevance=level,
            ),
            recommendation=Recommendation(
                should_regenerate=regenerate, confidence=1.0, priority=level, reasons=(reason,)
            ),
        )
