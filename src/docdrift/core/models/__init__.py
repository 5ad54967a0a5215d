"""Models package for docdrift.

Re-exports all model types from submodules for convenience.
"""

from docdrift.core.models.diff import (
    ChangeCounts,
    ImportChange,
    ImportChangeSet,
    MemberChange,
    MemberChangeSet,
    ModifierChanges,
    NameChangeSet,
    Severity,
    StructuralDelta,
    TextDiffResult,
    TypeChangeSet,
    TypeDelta,
)
from docdrift.core.models.git import CommitInfo
from docdrift.core.models.significance import (
    ChangeCategory,
    Classification,
    Level,
    PrimaryChangeType,
    Recommendation,
    SignificanceResult,
)
from docdrift.core.models.structure import (
    ImportDeclaration,
    MemberDeclaration,
    SourceLanguage,
    StructuralSummary,
    TypeDeclaration,
    TypeKind,
    TypeModifiers,
    Visibility,
)
from docdrift.core.models.tracking import (
    ChangeAnalysisAudit,
    CommitMarker,
    CostStats,
    DocumentedSymbol,
    FileHashEntry,
    ModelCostBreakdown,
    NeedsDocumentationResult,
    TrackingStats,
    UsageLedgerEntry,
)
from docdrift.core.models.watch import ChangeAnalysis, FileOutcome, OutcomeStatus, PassReport

__all__ = [
    # Diff
    "ChangeCounts",
    "ImportChange",
    "ImportChangeSet",
    "MemberChange",
    "MemberChangeSet",
    "ModifierChanges",
    "NameChangeSet",
    "Severity",
    "StructuralDelta",
    "TextDiffResult",
    "TypeChangeSet",
    "TypeDelta",
    # Git
    "CommitInfo",
    # Significance
    "ChangeCategory",
    "Classification",
    "Level",
    "PrimaryChangeType",
    "Recommendation",
    "SignificanceResult",
    # Structure
    "ImportDeclaration",
    "MemberDeclaration",
    "SourceLanguage",
    "StructuralSummary",
    "TypeDeclaration",
    "TypeKind",
    "TypeModifiers",
    "Visibility",
    # Tracking
    "ChangeAnalysisAudit",
    "CommitMarker",
    "CostStats",
    "DocumentedSymbol",
    "FileHashEntry",
    "ModelCostBreakdown",
    "NeedsDocumentationResult",
    "TrackingStats",
    "UsageLedgerEntry",
    # Watch
    "ChangeAnalysis",
    "FileOutcome",
    "OutcomeStatus",
    "PassReport",
]
