"""Orchestrator package - coordinates upload batches."""
from .arbiter import ConflictArbiter, fixed_resolution
from .core import UploadPipeline
from .reporter import OutcomeReporter
from .scheduler import QueueCursor, UploadScheduler

__all__ = [
    "ConflictArbiter",
    "fixed_resolution",
    "OutcomeReporter",
    "QueueCursor",
    "UploadPipeline",
    "UploadScheduler",
]
