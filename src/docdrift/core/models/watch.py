"""Per-file and per-pass outcomes of a watcher run."""

from enum import Enum

from pydantic import BaseModel, Field

from docdrift.core.models.diff import StructuralDelta, TextDiffResult
from docdrift.core.models.significance import SignificanceResult


class OutcomeStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    ERROR = "error"


class ChangeAnalysis(BaseModel):
    """Everything derived while analysing one old/new pair."""

    result: SignificanceResult
    text_diff: TextDiffResult | None = None
    delta: StructuralDelta | None = None
    parse_error: str | None = None


class FileOutcome(BaseModel):
    """Terminal outcome of evaluating one file."""

    path: str
    status: OutcomeStatus
    detail: str = ""
    doc_path: str | None = None
    analysis: SignificanceResult | None = None


class PassReport(BaseModel):
    """Summary of one evaluation pass over a commit range."""

    from_commit: str | None = None
    to_commit: str | None = None
    outcomes: list[FileOutcome] = Field(default_factory=list)
    marker_advanced: bool = False

    @property
    def files_evaluated(self) -> int:
        return len(self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def counts(self) -> dict[str, int]:
        return {status.value: self.count(status) for status in OutcomeStatus}
