from typing import Callable, List, Optional, Sequence
import asyncio
import logging
from vaultsync.models import (
    BatchReport,
    ConflictResolution,
    ItemResult,
    RunTally,
    UploadItem,
)
from vaultsync.orchestrator.arbiter import ConflictArbiter
from vaultsync.protocols import IOutcomeReporter, ITransferGateway
from vaultsync.utils.events import EventEmitter
logger = logging.getLogger(__name__)

SECONDARY_CONFLICT_ERROR = "Name conflict persisted after resolution"


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class QueueCursor:
    """
    Shared, monotonically advancing index into a batch.

    ``claim`` never awaits, so on the event loop a claim cannot interleave
    with another worker's claim.
    """

    def __init__(self, size: int):
        self._size = size
        self._next = 0
        self._claimed: List[int] = []

    def claim(self) -> Optional[int]:
        if self._next >= self._size:
            return None
        index = self._next
        self._next += 1
        self._claimed.append(index)
        return index

    @property
    def claimed(self) -> List[int]:
        return list(self._claimed)

    @property
    def exhausted(self) -> bool:
        return self._next >= self._size


class _BatchRun:
    """State of one ``execute`` call. Discarded when the call returns."""

    def __init__(self, batch: Sequence[UploadItem]):
        self.batch = batch
        self.cursor = QueueCursor(len(batch))
        self.tally = RunTally(total=len(batch))
        self.results: List[Optional[ItemResult]] = [None] * len(batch)

    def record(self, result: ItemResult) -> None:
        self.results[result.index] = result
        self.tally.record(result.disposition)


class UploadScheduler:
    """
    Runs a batch of uploads across a bounded set of asyncio workers.

    Each worker claims the next index, transfers the item, routes conflicts
    through the arbiter and retries at most once with the user's decision.
    A failing item never stops the batch: every exception raised for an item
    becomes a recorded failure.

    Usage:
        scheduler = UploadScheduler(gateway, arbiter, reporter)
        scheduler.on_item_fail(lambda result: print(result.error))
        tally = await scheduler.run(items)
    """

    def __init__(
        self,
        gateway: ITransferGateway,
        arbiter: ConflictArbiter,
        reporter: Optional[IOutcomeReporter] = None,
        default_concurrency: int = 1,
    ):
        self._gateway = gateway
        self._arbiter = arbiter
        self._reporter = reporter
        self._default_concurrency = default_concurrency
        self._events = EventEmitter()

    # Event subscription methods
    def on_item_start(self, callback: Callable[[int, UploadItem], None]):
        """Called when a worker claims an item. Receives (index, item)."""
        self._events.on("item_start", callback)

    def on_conflict(self, callback: Callable[[int, UploadItem], None]):
        """Called when the backend reports a name conflict. Receives (index, item)."""
        self._events.on("conflict", callback)

    def on_item_complete(self, callback: Callable[[ItemResult], None]):
        self._events.on("item_complete", callback)

    def on_item_fail(self, callback: Callable[[ItemResult], None]):
        self._events.on("item_fail", callback)

    def on_item_skip(self, callback: Callable[[ItemResult], None]):
        self._events.on("item_skip", callback)

    def on_finish(self, callback: Callable[[BatchReport], None]):
        """Called once after every worker has joined."""
        self._events.on("finish", callback)

    async def run(
        self,
        batch: Sequence[UploadItem],
        concurrency: Optional[int] = None,
    ) -> RunTally:
        report = await self.execute(batch, concurrency)
        return report.tally

    async def execute(
        self,
        batch: Sequence[UploadItem],
        concurrency: Optional[int] = None,
    ) -> BatchReport:
        if concurrency is None:
            concurrency = self._default_concurrency
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if not batch:
            raise ValueError("batch must not be empty")

        run = _BatchRun(batch)
        worker_count = min(concurrency, len(batch))
        logger.info(f"Starting batch: {len(batch)} item(s), {worker_count} worker(s)")

        await asyncio.gather(*(self._worker(run) for _ in range(worker_count)))

        report = BatchReport(tally=run.tally, results=[r for r in run.results if r is not None])
        logger.info(
            f"Batch complete: {run.tally.completed_count}/{run.tally.total} uploaded, "
            f"{run.tally.failed_count} failed, {run.tally.skipped_count} skipped"
        )

        await self._events.emit("finish", report)
        if self._reporter is not None:
            await self._reporter.report(report)
        return report

    async def _worker(self, run: _BatchRun) -> None:
        total = len(run.batch)
        while True:
            index = run.cursor.claim()
            if index is None:
                return

            item = run.batch[index]
            logger.info(f"[{index + 1}/{total}] Uploading: {item.display_name}")
            await self._events.emit("item_start", index, item)

            result = await self._process(index, item)
            run.record(result)

            if result.success:
                logger.info(f"[{index + 1}/{total}] ✓ Success: {item.display_name}")
                await self._events.emit("item_complete", result)
            elif result.resolution is ConflictResolution.SKIP:
                logger.info(f"[{index + 1}/{total}] Skipped: {item.display_name}")
                await self._events.emit("item_skip", result)
            else:
                logger.error(f"[{index + 1}/{total}] ✗ Failed: {item.display_name}: {result.error}")
                await self._events.emit("item_fail", result)

    async def _process(self, index: int, item: UploadItem) -> ItemResult:
        resolution: Optional[ConflictResolution] = None
        try:
            outcome = await self._gateway.transfer(item)

            if outcome.is_conflict:
                await self._events.emit("conflict", index, item)
                resolution = await self._arbiter.resolve(outcome.conflicting_name or item.display_name)
                if resolution is ConflictResolution.SKIP:
                    return ItemResult.skipped(index, item.display_name)

                outcome = await self._gateway.transfer(item, resolution)
                if outcome.is_conflict:
                    return ItemResult.fail(
                        index, item.display_name, SECONDARY_CONFLICT_ERROR, outcome.http_status, resolution
                    )

            if outcome.is_success:
                return ItemResult.ok(index, item.display_name, resolution)
            return ItemResult.fail(
                index,
                item.display_name,
                outcome.error_message or "Transfer failed",
                outcome.http_status,
                resolution,
            )
        except Exception as e:
            return ItemResult.fail(index, item.display_name, _describe_exception(e), resolution=resolution)
