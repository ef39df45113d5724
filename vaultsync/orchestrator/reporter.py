"""End-of-batch summary and workspace refresh."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..models import BatchReport
from ..protocols import IOutcomeReporter

logger = logging.getLogger(__name__)

SummarySink = Callable[[BatchReport], Any]
RefreshCallback = Callable[[], Awaitable[Any]]


class OutcomeReporter(IOutcomeReporter):
    """
    Logs the batch summary, forwards it to an optional sink (the CLI display)
    and refreshes the workspace listing whenever at least one item completed.
    """

    def __init__(
        self,
        refresh: Optional[RefreshCallback] = None,
        sink: Optional[SummarySink] = None,
    ):
        self._refresh = refresh
        self._sink = sink

    @staticmethod
    def should_refresh(batch_report: BatchReport) -> bool:
        return batch_report.tally.completed_count > 0

    async def report(self, batch_report: BatchReport) -> bool:
        tally = batch_report.tally
        logger.info(f"Vault synchronized: {tally.completed_count}/{tally.total} item(s) secured")
        for notice in batch_report.failures:
            logger.warning(f"Transfer failed: {notice.name} ({notice.message})")

        if self._sink is not None:
            try:
                rendered = self._sink(batch_report)
                if asyncio.iscoroutine(rendered):
                    await rendered
            except Exception as e:
                logger.error(f"Summary rendering failed: {e}")

        if not self.should_refresh(batch_report) or self._refresh is None:
            return False

        try:
            await self._refresh()
        except Exception as e:
            logger.warning(f"Workspace refresh failed: {e}")
        return True
