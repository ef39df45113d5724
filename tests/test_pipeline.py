"""End-to-end tests for the upload pipeline over a mocked backend."""
import httpx
import pytest

from vaultsync.models import ConflictResolution, UploadConfig
from vaultsync.orchestrator import UploadPipeline

CONFIG = UploadConfig(api_base="http://test/api/", token="tok", max_retries=1)


@pytest.fixture
def files(tmp_path):
    paths = []
    for name in ("one.txt", "two.txt", "three.txt"):
        path = tmp_path / name
        path.write_text(name)
        paths.append(path)
    return paths


def _add_listing(httpx_mock):
    httpx_mock.add_response(method="GET", json=[])
    httpx_mock.add_response(method="GET", json=[])


@pytest.mark.asyncio
async def test_clean_batch_uploads_everything_and_refreshes(httpx_mock, files):
    for _ in files:
        httpx_mock.add_response(method="POST", json={"message": "ok"})
    _add_listing(httpx_mock)
    prompted = []

    async with UploadPipeline(CONFIG, prompt=prompted.append) as pipeline:
        report = await pipeline.upload(files)

    assert report.tally.as_notification() == {"total": 3, "completed": 3}
    assert prompted == []
    assert pipeline.last_listing is not None
    posts = [r for r in httpx_mock.get_requests() if r.method == "POST"]
    assert len(posts) == 3
    assert all(r.headers["Authorization"] == "Bearer tok" for r in posts)


@pytest.mark.asyncio
async def test_conflict_then_replace(httpx_mock, files):
    httpx_mock.add_response(method="POST", status_code=409, text="")
    httpx_mock.add_response(method="POST", json={"message": "replaced"})
    httpx_mock.add_response(method="POST", json={"message": "ok"})
    _add_listing(httpx_mock)
    asked = []

    async def prompt(filename):
        asked.append(filename)
        return "replace"

    async with UploadPipeline(CONFIG, prompt=prompt) as pipeline:
        report = await pipeline.upload(files[:2], folder_id=8)

    assert asked == ["one.txt"]
    assert report.tally.completed_count == 2
    assert report.results[0].resolution is ConflictResolution.REPLACE
    assert pipeline.arbiter.prompts_shown == 1


@pytest.mark.asyncio
async def test_conflict_skipped_without_retry_or_refresh(httpx_mock, files):
    httpx_mock.add_response(method="POST", status_code=409, json={"message": "exists"})

    async with UploadPipeline(CONFIG, prompt=lambda name: "skip") as pipeline:
        report = await pipeline.upload(files[:1])

    assert report.tally.as_notification() == {"total": 1, "completed": 0}
    assert len(httpx_mock.get_requests()) == 1
    assert pipeline.last_listing is None


@pytest.mark.asyncio
async def test_network_error_on_first_file(httpx_mock, files):
    httpx_mock.add_exception(httpx.WriteError("connection dropped"), method="POST")
    httpx_mock.add_response(method="POST", json={"message": "ok"})
    _add_listing(httpx_mock)
    refreshed = []

    async with UploadPipeline(CONFIG, on_refresh=refreshed.append) as pipeline:
        report = await pipeline.upload(files[:2])

    assert report.tally.as_notification() == {"total": 2, "completed": 1}
    assert report.failures[0].name == "one.txt"
    assert report.success is False
    assert len(refreshed) == 1


@pytest.mark.asyncio
async def test_default_prompt_skips_conflicts(httpx_mock, files):
    httpx_mock.add_response(method="POST", status_code=409, json={})

    async with UploadPipeline(CONFIG) as pipeline:
        report = await pipeline.upload(files[:1])

    assert report.tally.skipped_count == 1


@pytest.mark.asyncio
async def test_summary_sink_receives_report(httpx_mock, files):
    httpx_mock.add_response(method="POST", status_code=500, json={"message": "Disk full"})
    summaries = []

    async with UploadPipeline(CONFIG, summary_sink=summaries.append) as pipeline:
        report = await pipeline.upload(files[:1])

    assert summaries == [report]
    assert report.failures[0].message == "Disk full"


def test_build_batch_rejects_directories(tmp_path):
    with pytest.raises(ValueError, match="Not a file"):
        UploadPipeline.build_batch([tmp_path])


def test_build_batch_preserves_order_and_folder(files):
    batch = UploadPipeline.build_batch(list(reversed(files)), folder_id=3)
    assert [item.display_name for item in batch] == ["three.txt", "two.txt", "one.txt"]
    assert all(item.target_folder_id == 3 for item in batch)
