"""
Workspace Service - listing, organizing, sharing and recovering stored items.

Thin wrapper over the backend's folder/file endpoints. Item kinds are
dispatched through the FileEntry/FolderEntry variant, never through strings.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..models import (
    STORAGE_QUOTA_BYTES,
    FileEntry,
    FolderEntry,
    ItemKind,
    WorkspaceEntry,
)
from ..protocols import IAPIClient
from ..utils.formatting import format_size
from .api_client import APIError

logger = logging.getLogger(__name__)

FILES_ENDPOINT = "files.php"
FOLDERS_ENDPOINT = "folders.php"
RENAME_ENDPOINT = "rename.php"
SHARE_ENDPOINT = "share.php"

SHARE_NOTE_LIMIT = 500
EXPIRY_UNITS = ("minutes", "hours", "days")


@dataclass
class WorkspaceListing:
    """Folders and files of one workspace view."""
    folders: List[FolderEntry] = field(default_factory=list)
    files: List[FileEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.files

    def __len__(self) -> int:
        return len(self.folders) + len(self.files)


@dataclass(frozen=True)
class StorageUsage:
    """Used bytes against the account quota."""
    used_bytes: int
    quota_bytes: int = STORAGE_QUOTA_BYTES

    @property
    def percent(self) -> float:
        if self.quota_bytes <= 0:
            return 100.0
        return min(self.used_bytes / self.quota_bytes * 100, 100.0)

    @property
    def used_label(self) -> str:
        return format_size(self.used_bytes)


def custom_expiry(amount: int, unit: str) -> str:
    """Build a custom share expiry such as ``"3days"``."""
    if not amount or amount < 1:
        raise ValueError("Please enter a valid duration.")
    if unit not in EXPIRY_UNITS:
        raise ValueError(f"Unknown expiry unit: {unit}")
    return f"{amount}{unit}"


def _entry_target(entry: WorkspaceEntry) -> Dict[str, Any]:
    if isinstance(entry, FileEntry):
        return {"endpoint": FILES_ENDPOINT, "id_field": "file_id"}
    if isinstance(entry, FolderEntry):
        return {"endpoint": FOLDERS_ENDPOINT, "id_field": "folder_id"}
    raise TypeError(f"Unsupported workspace entry: {entry!r}")


def _as_list(value: Any) -> List[Dict[str, Any]]:
    return value if isinstance(value, list) else []


class WorkspaceService:
    """
    Backend operations on the stored workspace.

    Implements the listing used to refresh the view after an upload batch,
    plus folder creation, trash/restore, rename and share links.
    """

    def __init__(
        self,
        api_client: IAPIClient,
        share_base: Optional[str] = None,
        storage_quota: int = STORAGE_QUOTA_BYTES,
    ):
        self._api = api_client
        self._share_base = share_base
        self._storage_quota = storage_quota

    async def list_contents(
        self,
        folder_id: Optional[int] = None,
        trash: bool = False,
    ) -> WorkspaceListing:
        """List the folders and files directly inside ``folder_id`` (root when None)."""
        folder_params: Dict[str, Any] = {"parent_id": "" if folder_id is None else folder_id}
        file_params: Dict[str, Any] = {"folder_id": "" if folder_id is None else folder_id}
        if trash:
            folder_params["trash"] = "true"
            file_params["trash"] = "true"

        folders, files = await asyncio.gather(
            self._api.get(FOLDERS_ENDPOINT, params=folder_params),
            self._api.get(FILES_ENDPOINT, params=file_params),
        )
        listing = WorkspaceListing(
            folders=[FolderEntry.from_dict(f) for f in _as_list(folders)],
            files=[FileEntry.from_dict(f) for f in _as_list(files)],
        )
        logger.debug(
            f"Listed {len(listing.folders)} folder(s), {len(listing.files)} file(s) "
            f"in {'trash' if trash else folder_id or 'root'}"
        )
        return listing

    async def all_files(self) -> List[FileEntry]:
        data = await self._api.get(FILES_ENDPOINT, params={"all": "true"})
        return [FileEntry.from_dict(f) for f in _as_list(data)]

    async def storage_usage(self) -> StorageUsage:
        files = await self.all_files()
        used = sum(f.size_bytes for f in files)
        return StorageUsage(used_bytes=used, quota_bytes=self._storage_quota)

    async def create_folder(self, name: str, parent_id: Optional[int] = None) -> Any:
        name = (name or "").strip()
        if not name:
            raise ValueError("Folder name must not be empty")
        return await self._api.post(FOLDERS_ENDPOINT, json={"name": name, "parent_id": parent_id})

    async def delete(self, entries: Iterable[WorkspaceEntry], permanent: bool = False) -> None:
        """Move entries to trash, or erase them when ``permanent``."""
        file_ids: List[int] = []
        folder_ids: List[int] = []
        for entry in entries:
            if entry.kind is ItemKind.FILE:
                file_ids.append(entry.id)
            elif entry.kind is ItemKind.FOLDER:
                folder_ids.append(entry.id)
            else:
                raise TypeError(f"Unsupported workspace entry: {entry!r}")

        if file_ids:
            await self._api.delete(FILES_ENDPOINT, json={"file_ids": file_ids, "permanent": permanent})
        if folder_ids:
            await self._api.delete(FOLDERS_ENDPOINT, json={"folder_ids": folder_ids, "permanent": permanent})
        logger.info(
            f"{'Erased' if permanent else 'Trashed'} {len(file_ids)} file(s) and {len(folder_ids)} folder(s)"
        )

    async def restore(self, entry: WorkspaceEntry) -> Any:
        target = _entry_target(entry)
        return await self._api.post(target["endpoint"], json={target["id_field"]: entry.id, "action": "restore"})

    async def rename(self, entry: WorkspaceEntry, new_name: str) -> Any:
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValueError("New name must not be empty")
        return await self._api.post(
            RENAME_ENDPOINT,
            json={"id": entry.id, "name": new_name, "type": entry.kind.value},
        )

    async def share(
        self,
        entry: WorkspaceEntry,
        expiry: str = "none",
        password: str = "",
        note: Optional[str] = None,
    ) -> str:
        """Create a share link and return its public URL."""
        _entry_target(entry)
        note = (note or "").strip()[:SHARE_NOTE_LIMIT]
        response = await self._api.post(
            SHARE_ENDPOINT,
            json={
                "id": entry.id,
                "type": entry.kind.value,
                "expiry": expiry,
                "password": password,
                "note": note or None,
            },
        )
        token = response.get("share_token") if isinstance(response, dict) else None
        if not token:
            raise APIError("No share token received from server.")
        if not self._share_base:
            return token
        return f"{self._share_base}{token}"
