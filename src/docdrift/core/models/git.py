"""Git collaborator models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    author: str
    date: datetime
    message: str

    @property
    def short_hash(self) -> str:
        return self.hash[:8]
