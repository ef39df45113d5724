"""
Models for vaultsync module.

Immutable dataclasses for the upload pipeline plus the workspace entry types
shared with the collaborators.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


DEFAULT_API_BASE = "http://localhost/File Sharing/backend/api/"
STORAGE_QUOTA_BYTES = 5 * 1024 * 1024 * 1024


class ConflictResolution(Enum):
    """User decision for a naming conflict."""
    REPLACE = "replace"
    DUPLICATE = "duplicate"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Any) -> "ConflictResolution":
        """Map a prompt answer to a resolution. ``None`` means the prompt was dismissed."""
        if value is None:
            return cls.SKIP
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown conflict resolution: {value!r}")


class OutcomeKind(Enum):
    """Classification of a single transfer attempt."""
    SUCCESS = "success"
    CONFLICT = "conflict"
    FAILURE = "failure"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one transfer attempt. Never outlives the attempt."""
    kind: OutcomeKind
    conflicting_name: Optional[str] = None
    error_message: Optional[str] = None
    http_status: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_conflict(self) -> bool:
        return self.kind is OutcomeKind.CONFLICT

    @classmethod
    def success(cls, payload: Optional[Dict[str, Any]] = None):
        return cls(kind=OutcomeKind.SUCCESS, payload=payload or {})

    @classmethod
    def conflict(cls, name: str):
        return cls(kind=OutcomeKind.CONFLICT, conflicting_name=name, http_status=409)

    @classmethod
    def failure(cls, message: str, status: Optional[int] = None):
        return cls(kind=OutcomeKind.FAILURE, error_message=message, http_status=status)


@dataclass(frozen=True)
class UploadItem:
    """One local file queued for transfer."""
    file_path: Path
    display_name: str
    size_bytes: int = 0
    target_folder_id: Optional[int] = None

    @classmethod
    def from_path(cls, path: Path, target_folder_id: Optional[int] = None) -> "UploadItem":
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
        except OSError:
            size = 0
        return cls(
            file_path=file_path,
            display_name=file_path.name,
            size_bytes=size,
            target_folder_id=target_folder_id,
        )


class ItemDisposition(Enum):
    """Terminal state of an item within a batch."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ItemResult:
    """Immutable terminal result for one batch item."""
    index: int
    filename: str
    disposition: ItemDisposition
    resolution: Optional[ConflictResolution] = None
    error: Optional[str] = None
    http_status: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.disposition is ItemDisposition.SUCCESS

    @classmethod
    def ok(cls, index: int, filename: str, resolution: Optional[ConflictResolution] = None):
        return cls(
            index=index,
            filename=filename,
            disposition=ItemDisposition.SUCCESS,
            resolution=resolution,
        )

    @classmethod
    def fail(cls, index: int, filename: str, error: str, http_status: Optional[int] = None,
             resolution: Optional[ConflictResolution] = None):
        return cls(
            index=index,
            filename=filename,
            disposition=ItemDisposition.FAILED,
            resolution=resolution,
            error=error,
            http_status=http_status,
        )

    @classmethod
    def skipped(cls, index: int, filename: str):
        return cls(
            index=index,
            filename=filename,
            disposition=ItemDisposition.SKIPPED,
            resolution=ConflictResolution.SKIP,
        )


@dataclass
class RunTally:
    """Success/total accounting for one batch run."""
    total: int
    completed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    def record(self, disposition: ItemDisposition) -> None:
        if disposition is ItemDisposition.SUCCESS:
            self.completed_count += 1
        elif disposition is ItemDisposition.FAILED:
            self.failed_count += 1
        else:
            self.skipped_count += 1

    @property
    def settled(self) -> int:
        return self.completed_count + self.failed_count + self.skipped_count

    def as_notification(self) -> Dict[str, int]:
        return {"total": self.total, "completed": self.completed_count}


@dataclass(frozen=True)
class FailureNotice:
    """Per-file failure description shown after the batch drains."""
    name: str
    message: str


@dataclass
class BatchReport:
    """Everything the outcome reporter receives for one batch."""
    tally: RunTally
    results: List[ItemResult]

    @property
    def failures(self) -> List[FailureNotice]:
        return [
            FailureNotice(name=r.filename, message=r.error or "Transfer failed")
            for r in self.results
            if r.disposition is ItemDisposition.FAILED
        ]

    @property
    def success(self) -> bool:
        return self.tally.failed_count == 0


class ItemKind(Enum):
    """Workspace item kind."""
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class FileEntry:
    """A stored file as listed by the backend."""
    id: int
    name: str
    size_bytes: int = 0
    folder_id: Optional[int] = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.FILE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileEntry":
        return cls(
            id=int(data["id"]),
            name=data.get("original_name") or data.get("name") or "",
            size_bytes=int(data.get("file_size") or 0),
            folder_id=_optional_int(data.get("folder_id")),
        )


@dataclass(frozen=True)
class FolderEntry:
    """A stored folder (collection) as listed by the backend."""
    id: int
    name: str
    parent_id: Optional[int] = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.FOLDER

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderEntry":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            parent_id=_optional_int(data.get("parent_id")),
        )


WorkspaceEntry = Union[FileEntry, FolderEntry]


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for the client."""
    api_base: str = DEFAULT_API_BASE
    upload_endpoint: str = "upload.php"
    token: Optional[str] = None
    concurrency: int = 1
    timeout: float = 60.0
    max_retries: int = 3
    storage_quota: int = STORAGE_QUOTA_BYTES

    @property
    def share_base(self) -> str:
        """Public share prefix: the API base with ``/api/`` swapped for ``/s/``."""
        return self.api_base.replace("/api/", "/s/")

    @classmethod
    def from_env(cls, **overrides) -> "UploadConfig":
        values: Dict[str, Any] = {}
        api_base = os.getenv("VAULT_API_URL")
        if api_base:
            values["api_base"] = api_base if api_base.endswith("/") else api_base + "/"
        token = os.getenv("VAULT_TOKEN")
        if token:
            values["token"] = token
        concurrency = os.getenv("VAULT_CONCURRENCY")
        if concurrency:
            values["concurrency"] = int(concurrency)
        timeout = os.getenv("VAULT_TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
