"""
vaultsync - upload pipeline and workspace client for a remote file vault.

Usage:
    from vaultsync import UploadPipeline, UploadConfig

    async def ask(filename):
        return "replace"          # or "duplicate", "skip", None (dismissed)

    async with UploadPipeline(UploadConfig.from_env(), prompt=ask) as pipeline:
        report = await pipeline.upload([Path("report.pdf")], folder_id=3)
        print(report.tally.as_notification())
"""
from .orchestrator import ConflictArbiter, OutcomeReporter, UploadPipeline, UploadScheduler
from .models import (
    BatchReport,
    ConflictResolution,
    FailureNotice,
    FileEntry,
    FolderEntry,
    ItemDisposition,
    ItemKind,
    ItemResult,
    RunTally,
    TransferOutcome,
    UploadConfig,
    UploadItem,
)
from .services import TransferGateway, VaultAPIClient, WorkspaceService
from .state import View, WorkspaceState

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadPipeline",
    "UploadScheduler",
    "ConflictArbiter",
    "OutcomeReporter",
    # Models
    "BatchReport",
    "ConflictResolution",
    "FailureNotice",
    "FileEntry",
    "FolderEntry",
    "ItemDisposition",
    "ItemKind",
    "ItemResult",
    "RunTally",
    "TransferOutcome",
    "UploadConfig",
    "UploadItem",
    # Services
    "TransferGateway",
    "VaultAPIClient",
    "WorkspaceService",
    # State
    "View",
    "WorkspaceState",
]
