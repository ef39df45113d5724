"""Core pipeline - wires the upload services for one client session."""
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from ..models import BatchReport, ConflictResolution, UploadConfig, UploadItem
from ..protocols import IAPIClient, IConflictPrompt
from ..services.api_client import VaultAPIClient
from ..services.gateway import TransferGateway
from ..services.workspace import WorkspaceListing, WorkspaceService

from .arbiter import ConflictArbiter, fixed_resolution
from .reporter import OutcomeReporter, SummarySink
from .scheduler import UploadScheduler

logger = logging.getLogger(__name__)


class UploadPipeline:
    """
    Upload pipeline for one configured client session.

    Usage:
        async with UploadPipeline(config, prompt=ask_user) as pipeline:
            pipeline.scheduler.on_item_fail(show_error)
            report = await pipeline.upload([Path("a.pdf"), Path("b.png")], folder_id=7)
            print(report.tally.completed_count, pipeline.last_listing)
    """

    def __init__(
        self,
        config: Optional[UploadConfig] = None,
        prompt: Optional[IConflictPrompt] = None,
        api_client: Optional[IAPIClient] = None,
        summary_sink: Optional[SummarySink] = None,
        on_refresh: Optional[Callable[[WorkspaceListing], Any]] = None,
    ):
        """
        Initialize pipeline with dependencies.

        Args:
            config: Client configuration (defaults to UploadConfig())
            prompt: Conflict prompt; conflicts are skipped when omitted
            api_client: Pre-built API client; one is created from config otherwise
            summary_sink: Receives the BatchReport once a batch drains
            on_refresh: Receives the refreshed listing after a successful batch
        """
        self._config = config or UploadConfig()
        self._prompt = prompt or fixed_resolution(ConflictResolution.SKIP)
        self._external_api = api_client
        self._summary_sink = summary_sink
        self._on_refresh = on_refresh

        # Initialized in __aenter__
        self._api_client: Optional[Any] = None
        self._owns_api_client = False
        self._gateway: Optional[TransferGateway] = None
        self._workspace: Optional[WorkspaceService] = None
        self._arbiter: Optional[ConflictArbiter] = None
        self._scheduler: Optional[UploadScheduler] = None

        self._refresh_folder_id: Optional[int] = None
        self.last_listing: Optional[WorkspaceListing] = None

    async def __aenter__(self):
        if self._external_api is not None:
            self._api_client = self._external_api
        else:
            self._api_client = VaultAPIClient(
                self._config.api_base,
                token=self._config.token,
                timeout=self._config.timeout,
                max_retries=self._config.max_retries,
            )
            await self._api_client.__aenter__()
            self._owns_api_client = True

        self._gateway = TransferGateway(self._api_client, self._config.upload_endpoint)
        self._workspace = WorkspaceService(
            self._api_client,
            share_base=self._config.share_base,
            storage_quota=self._config.storage_quota,
        )
        self._arbiter = ConflictArbiter(self._prompt)
        reporter = OutcomeReporter(refresh=self._refresh_listing, sink=self._summary_sink)
        self._scheduler = UploadScheduler(
            self._gateway,
            self._arbiter,
            reporter,
            default_concurrency=self._config.concurrency,
        )
        return self

    async def __aexit__(self, *args):
        if self._owns_api_client and self._api_client is not None:
            await self._api_client.__aexit__(*args)
        self._owns_api_client = False

    @property
    def scheduler(self) -> UploadScheduler:
        assert self._scheduler is not None, "UploadPipeline not initialized. Use 'async with' context."
        return self._scheduler

    @property
    def workspace(self) -> WorkspaceService:
        assert self._workspace is not None, "UploadPipeline not initialized. Use 'async with' context."
        return self._workspace

    @property
    def arbiter(self) -> ConflictArbiter:
        assert self._arbiter is not None, "UploadPipeline not initialized. Use 'async with' context."
        return self._arbiter

    @staticmethod
    def build_batch(paths: Iterable[Path], folder_id: Optional[int] = None) -> List[UploadItem]:
        """Turn local paths into upload items, preserving order."""
        batch = []
        for path in paths:
            file_path = Path(path)
            if not file_path.is_file():
                raise ValueError(f"Not a file: {file_path}")
            batch.append(UploadItem.from_path(file_path, folder_id))
        return batch

    async def upload(
        self,
        paths: Iterable[Path],
        folder_id: Optional[int] = None,
        concurrency: Optional[int] = None,
    ) -> BatchReport:
        batch = self.build_batch(paths, folder_id)
        return await self.upload_items(batch, folder_id, concurrency)

    async def upload_items(
        self,
        batch: List[UploadItem],
        folder_id: Optional[int] = None,
        concurrency: Optional[int] = None,
    ) -> BatchReport:
        logger.info(f"Initiating sync for {len(batch)} item(s)...")
        self._refresh_folder_id = folder_id
        return await self.scheduler.execute(batch, concurrency)

    async def _refresh_listing(self) -> None:
        listing = await self.workspace.list_contents(self._refresh_folder_id)
        self.last_listing = listing
        if self._on_refresh is not None:
            self._on_refresh(listing)
