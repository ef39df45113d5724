"""
Protocols (Interfaces) for the upload pipeline's collaborators.

The scheduler only talks to these small seams, so the UI and the network
layer can be swapped or faked independently.
"""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Optional, Protocol, Union, runtime_checkable

from .models import BatchReport, ConflictResolution, TransferOutcome, UploadItem


@runtime_checkable
class IAPIClient(Protocol):
    """Interface for REST operations against the storage backend."""

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        ...

    async def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Any:
        ...

    async def delete(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Any:
        ...

    async def upload(
        self,
        endpoint: str,
        files: Dict[str, Any],
        data: Optional[Dict[str, str]] = None,
    ) -> Any:
        ...


@runtime_checkable
class ITransferGateway(Protocol):
    """Interface for single-file transfers."""

    async def transfer(
        self,
        item: UploadItem,
        resolution: Optional[ConflictResolution] = None,
    ) -> TransferOutcome:
        ...


@runtime_checkable
class IConflictPrompt(Protocol):
    """
    Asks the user how to resolve a conflict.

    Returns ``"replace"``, ``"duplicate"``, ``"skip"`` (or the matching
    ConflictResolution), or ``None`` when the prompt was dismissed. May be a
    plain function or a coroutine function.
    """

    def __call__(self, filename: str) -> Union[Any, Awaitable[Any]]:
        ...


class IOutcomeReporter(ABC):
    """Interface for the end-of-batch summary."""

    @abstractmethod
    async def report(self, batch_report: BatchReport) -> bool:
        """Render the summary. Returns True when a refresh was triggered."""
        pass
