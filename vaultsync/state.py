"""
Workspace view state.

Selection, breadcrumb trail and current view live in one explicitly passed
object with a small transition API, so the upload pipeline and the UI can be
tested without each other.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set

from .models import FileEntry, FolderEntry, ItemKind, WorkspaceEntry

ROOT_LABEL = "Root Hub"
TRASH_LABEL = "Trash Archive"


class View(Enum):
    """Which collection the workspace is showing."""
    FILES = "files"
    TRASH = "trash"


@dataclass(frozen=True)
class Breadcrumb:
    folder_id: Optional[int]
    name: str


def _root_trail() -> List[Breadcrumb]:
    return [Breadcrumb(None, ROOT_LABEL)]


@dataclass
class WorkspaceState:
    """Mutable view state of one workspace session."""
    view: View = View.FILES
    breadcrumbs: List[Breadcrumb] = field(default_factory=_root_trail)
    selected_files: Set[int] = field(default_factory=set)
    selected_folders: Set[int] = field(default_factory=set)

    @property
    def current_folder_id(self) -> Optional[int]:
        if self.view is View.TRASH:
            return None
        return self.breadcrumbs[-1].folder_id

    @property
    def is_trash_view(self) -> bool:
        return self.view is View.TRASH

    @property
    def selected_count(self) -> int:
        return len(self.selected_files) + len(self.selected_folders)

    def _bucket(self, entry: WorkspaceEntry) -> Set[int]:
        if entry.kind is ItemKind.FILE:
            return self.selected_files
        if entry.kind is ItemKind.FOLDER:
            return self.selected_folders
        raise TypeError(f"Unsupported workspace entry: {entry!r}")

    def select_item(self, entry: WorkspaceEntry) -> None:
        self._bucket(entry).add(entry.id)

    def deselect_item(self, entry: WorkspaceEntry) -> None:
        self._bucket(entry).discard(entry.id)

    def toggle_item(self, entry: WorkspaceEntry, selected: bool) -> None:
        if selected:
            self.select_item(entry)
        else:
            self.deselect_item(entry)

    def is_selected(self, entry: WorkspaceEntry) -> bool:
        return entry.id in self._bucket(entry)

    def select_all(self, entries: List[WorkspaceEntry], selected: bool = True) -> None:
        for entry in entries:
            self.toggle_item(entry, selected)

    def clear_selection(self) -> None:
        self.selected_files.clear()
        self.selected_folders.clear()

    def set_view(self, view: View) -> None:
        """Switch between the file tree and the trash, resetting the trail."""
        self.view = view
        if view is View.TRASH:
            self.breadcrumbs = [Breadcrumb(None, TRASH_LABEL)]
        else:
            self.breadcrumbs = _root_trail()
        self.clear_selection()

    def push_breadcrumb(self, folder_id: int, name: str) -> bool:
        """Descend into a folder. Ignored while viewing the trash."""
        if self.view is View.TRASH:
            return False
        self.breadcrumbs.append(Breadcrumb(folder_id, name))
        self.clear_selection()
        return True

    def navigate_to_folder(self, folder: FolderEntry) -> bool:
        return self.push_breadcrumb(folder.id, folder.name)

    def navigate_to_breadcrumb(self, index: int) -> None:
        """Jump back to the trail element at ``index``, dropping everything after it."""
        if not 0 <= index < len(self.breadcrumbs):
            raise IndexError(f"No breadcrumb at index {index}")
        if self.view is View.TRASH:
            self.set_view(View.TRASH)
            return
        self.breadcrumbs = self.breadcrumbs[: index + 1]
        self.clear_selection()

    def selected_entries(self) -> List[WorkspaceEntry]:
        """Selection as entries, enough to drive bulk delete."""
        entries: List[WorkspaceEntry] = [FileEntry(id=i, name="") for i in sorted(self.selected_files)]
        entries.extend(FolderEntry(id=i, name="") for i in sorted(self.selected_folders))
        return entries
