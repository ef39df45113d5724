"""Tests for the outcome reporter."""
from unittest.mock import AsyncMock, Mock

import pytest

from vaultsync.models import BatchReport, ItemResult, RunTally
from vaultsync.orchestrator.reporter import OutcomeReporter


def _report(completed: int, failed: int = 0) -> BatchReport:
    results = [ItemResult.ok(i, f"ok{i}.txt") for i in range(completed)]
    results += [ItemResult.fail(completed + i, f"bad{i}.txt", "Forbidden", 403) for i in range(failed)]
    tally = RunTally(total=completed + failed, completed_count=completed, failed_count=failed)
    return BatchReport(tally=tally, results=results)


@pytest.mark.asyncio
async def test_refreshes_when_something_completed():
    refresh = AsyncMock()
    sink = Mock()
    reporter = OutcomeReporter(refresh=refresh, sink=sink)
    report = _report(completed=1, failed=1)

    assert await reporter.report(report) is True

    refresh.assert_awaited_once()
    sink.assert_called_once_with(report)


@pytest.mark.asyncio
async def test_no_refresh_when_nothing_completed():
    refresh = AsyncMock()
    reporter = OutcomeReporter(refresh=refresh)

    assert await reporter.report(_report(completed=0, failed=2)) is False
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_async_sink_is_awaited():
    sink = AsyncMock()
    reporter = OutcomeReporter(sink=sink)
    report = _report(completed=0, failed=1)

    await reporter.report(report)

    sink.assert_awaited_once_with(report)


@pytest.mark.asyncio
async def test_refresh_failure_is_logged_not_raised(caplog):
    refresh = AsyncMock(side_effect=RuntimeError("offline"))
    reporter = OutcomeReporter(refresh=refresh)

    assert await reporter.report(_report(completed=2)) is True
    assert "Workspace refresh failed" in caplog.text
