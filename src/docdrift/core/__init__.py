"""Core change-tracking and significance-scoring machinery."""

from docdrift.core.database import TrackingStore
from docdrift.core.settings import settings

__all__ = [
    "TrackingStore",
    "settings",
]
