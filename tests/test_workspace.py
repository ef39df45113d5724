"""Tests for the workspace service."""
import json
from unittest.mock import AsyncMock

import pytest

from vaultsync.models import FileEntry, FolderEntry, UploadConfig
from vaultsync.services.api_client import APIError, VaultAPIClient
from vaultsync.services.workspace import StorageUsage, WorkspaceService, custom_expiry
from vaultsync.utils.formatting import format_size


@pytest.fixture
def api():
    return AsyncMock()


class TestListing:
    @pytest.mark.asyncio
    async def test_list_root(self, api):
        api.get.side_effect = [
            [{"id": 1, "name": "Invoices", "parent_id": None}],
            [{"id": 5, "original_name": "a.pdf", "file_size": 100}],
        ]
        service = WorkspaceService(api)

        listing = await service.list_contents()

        assert listing.folders == [FolderEntry(id=1, name="Invoices")]
        assert listing.files == [FileEntry(id=5, name="a.pdf", size_bytes=100)]
        assert len(listing) == 2
        api.get.assert_any_await("folders.php", params={"parent_id": ""})
        api.get.assert_any_await("files.php", params={"folder_id": ""})

    @pytest.mark.asyncio
    async def test_list_trash(self, api):
        api.get.side_effect = [[], []]
        service = WorkspaceService(api)

        listing = await service.list_contents(folder_id=3, trash=True)

        assert listing.is_empty is True
        api.get.assert_any_await("folders.php", params={"parent_id": 3, "trash": "true"})
        api.get.assert_any_await("files.php", params={"folder_id": 3, "trash": "true"})

    @pytest.mark.asyncio
    async def test_unexpected_payload_is_treated_as_empty(self, api):
        api.get.side_effect = [{}, {}]
        listing = await WorkspaceService(api).list_contents()
        assert listing.is_empty is True


class TestStorageUsage:
    @pytest.mark.asyncio
    async def test_sums_all_files(self, api):
        api.get.return_value = [
            {"id": 1, "original_name": "a", "file_size": "1024"},
            {"id": 2, "original_name": "b", "file_size": 512},
        ]
        usage = await WorkspaceService(api, storage_quota=4096).storage_usage()

        assert usage.used_bytes == 1536
        assert usage.percent == pytest.approx(37.5)
        assert usage.used_label == "1.5 KB"
        api.get.assert_awaited_once_with("files.php", params={"all": "true"})

    def test_percent_is_capped(self):
        assert StorageUsage(used_bytes=10, quota_bytes=5).percent == 100.0


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_folder(self, api):
        await WorkspaceService(api).create_folder("  Taxes ", parent_id=2)
        api.post.assert_awaited_once_with("folders.php", json={"name": "Taxes", "parent_id": 2})

    @pytest.mark.asyncio
    async def test_create_folder_rejects_blank_name(self, api):
        with pytest.raises(ValueError):
            await WorkspaceService(api).create_folder("   ")
        api.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_delete_splits_by_kind(self, api):
        entries = [FileEntry(1, "a"), FolderEntry(2, "b"), FileEntry(3, "c")]

        await WorkspaceService(api).delete(entries, permanent=True)

        api.delete.assert_any_await("files.php", json={"file_ids": [1, 3], "permanent": True})
        api.delete.assert_any_await("folders.php", json={"folder_ids": [2], "permanent": True})

    @pytest.mark.asyncio
    async def test_delete_files_only(self, api):
        await WorkspaceService(api).delete([FileEntry(1, "a")])
        api.delete.assert_awaited_once_with("files.php", json={"file_ids": [1], "permanent": False})

    @pytest.mark.asyncio
    async def test_restore_dispatches_on_kind(self, api):
        service = WorkspaceService(api)
        await service.restore(FileEntry(4, "a"))
        await service.restore(FolderEntry(8, "b"))

        api.post.assert_any_await("files.php", json={"file_id": 4, "action": "restore"})
        api.post.assert_any_await("folders.php", json={"folder_id": 8, "action": "restore"})

    @pytest.mark.asyncio
    async def test_restore_rejects_unknown_entry(self, api):
        with pytest.raises(TypeError):
            await WorkspaceService(api).restore(object())

    @pytest.mark.asyncio
    async def test_rename(self, api):
        await WorkspaceService(api).rename(FolderEntry(8, "old"), "new ")
        api.post.assert_awaited_once_with("rename.php", json={"id": 8, "name": "new", "type": "folder"})


class TestShare:
    @pytest.mark.asyncio
    async def test_share_builds_public_url(self, api):
        api.post.return_value = {"share_token": "abc123"}
        service = WorkspaceService(api, share_base="http://host/backend/s/")

        url = await service.share(FileEntry(1, "a.pdf"), expiry="2days", password="pw", note="x" * 600)

        assert url == "http://host/backend/s/abc123"
        _, kwargs = api.post.call_args
        payload = kwargs["json"]
        assert payload["type"] == "file"
        assert payload["expiry"] == "2days"
        assert len(payload["note"]) == 500

    @pytest.mark.asyncio
    async def test_empty_note_is_sent_as_null(self, api):
        api.post.return_value = {"share_token": "t"}
        await WorkspaceService(api).share(FolderEntry(1, "a"), note="   ")
        assert api.post.call_args.kwargs["json"]["note"] is None

    @pytest.mark.asyncio
    async def test_missing_token_raises(self, api):
        api.post.return_value = {}
        with pytest.raises(APIError, match="No share token"):
            await WorkspaceService(api).share(FileEntry(1, "a"))

    def test_custom_expiry(self):
        assert custom_expiry(3, "hours") == "3hours"
        with pytest.raises(ValueError):
            custom_expiry(0, "days")
        with pytest.raises(ValueError):
            custom_expiry(2, "weeks")


class TestFormatSize:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "0 B"),
            (512, "512 B"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1 MB"),
            (5 * 1024 ** 3, "5 GB"),
        ],
    )
    def test_format_size(self, value, expected):
        assert format_size(value) == expected


class TestOverHTTP:
    @pytest.mark.asyncio
    async def test_share_round_trip(self, httpx_mock):
        httpx_mock.add_response(
            method="POST", url="http://test/api/share.php", json={"share_token": "tok42"}
        )
        config = UploadConfig(api_base="http://test/api/", token="t")

        async with VaultAPIClient(config.api_base, token=config.token) as client:
            service = WorkspaceService(client, share_base=config.share_base)
            url = await service.share(FileEntry(3, "a.pdf"), expiry=custom_expiry(2, "days"))

        assert url == "http://test/s/tok42"
        request = httpx_mock.get_request()
        assert json.loads(request.content) == {
            "id": 3,
            "type": "file",
            "expiry": "2days",
            "password": "",
            "note": None,
        }

    @pytest.mark.asyncio
    async def test_server_error_message_surfaces(self, httpx_mock):
        httpx_mock.add_response(
            method="POST", url="http://test/api/rename.php", status_code=400, json={"message": "Name taken"}
        )

        async with VaultAPIClient("http://test/api/") as client:
            with pytest.raises(APIError, match="Name taken"):
                await WorkspaceService(client).rename(FileEntry(1, "a"), "b")
