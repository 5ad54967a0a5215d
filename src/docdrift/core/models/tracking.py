"""Records persisted by the tracking store."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from docdrift.core.models.significance import Classification, Recommendation


class FileHashEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    last_hash: str
    doc_path: str | None = None
    updated_at: datetime


class CommitMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository: str
    commit_hash: str
    updated_at: datetime


class DocumentedSymbol(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_path: str
    symbol_name: str
    first_documented_at: datetime
    last_seen_hash: str


class UsageLedgerEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)
    cost: float = Field(ge=0.0)
    file_path: str | None = None
    timestamp: datetime


class ChangeAnalysisAudit(BaseModel):
    """Cached significance decision for one (path, old hash, new hash) triple."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    old_hash: str
    new_hash: str
    score: int
    classification: Classification
    recommendation: Recommendation
    timestamp: datetime


class NeedsDocumentationResult(BaseModel):
    """Whether a file's content moved since it was last documented.

    ``error`` is set instead of raising when the file cannot be read.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    needs_update: bool
    is_new: bool
    current_hash: str | None = None
    last_hash: str | None = None
    error: str | None = None


class TrackingStats(BaseModel):
    total_files: int = 0
    recent_updates: int = Field(default=0, description="Files documented in the last 7 days")
    last_commit: str | None = None
    documented_symbols: int = 0
    total_analyses: int = 0
    recommended_regenerations: int = 0
    skipped_regenerations: int = 0
    avg_confidence: float = 0.0
    avg_score: float = 0.0

    @property
    def skip_rate(self) -> float:
        if self.total_analyses == 0:
            return 0.0
        return round(self.skipped_regenerations / self.total_analyses * 100, 1)


class ModelCostBreakdown(BaseModel):
    model: str
    calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0


class CostStats(BaseModel):
    total_calls: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: float = 0.0
    by_model: list[ModelCostBreakdown] = Field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens
