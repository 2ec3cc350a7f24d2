"""Tests for the upload workflow."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from onedrive_gateway.core.onedrive.exceptions import (
    ForbiddenError,
    SessionCreationError,
    ShareLinkError,
    UnknownApiError,
    UploadTransferError,
)
from onedrive_gateway.core.onedrive.upload import UploadWorkflow, stored_file_name

UPLOAD_URL = "https://api.onedrive.com/rup/abc123"


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "9f86d081884c7d65"
    path.write_bytes(b"\x89PNG fake image bytes")
    return path


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.call = AsyncMock(
        side_effect=[
            {"uploadUrl": UPLOAD_URL},
            {"link": {"webUrl": "https://1drv.ms/i/s!share"}},
        ]
    )
    client.put_upload_content = AsyncMock(
        return_value=(
            201,
            {"id": "item-1", "webUrl": "https://onedrive.live.com/item-1"},
        )
    )
    return client


class TestStoredFileName:
    """Tests for remote file naming."""

    def test_temp_name_with_original_extension(self):
        assert stored_file_name("photo.PNG", "/tmp/abc123") == "abc123.PNG"

    def test_uses_last_extension(self):
        assert stored_file_name("archive.tar.gz", "/tmp/abc") == "abc.gz"

    def test_custom_name_replaces_base(self):
        assert stored_file_name("photo.jpg", "/tmp/abc", "holiday") == "holiday.jpg"

    def test_no_extension_keeps_base(self):
        assert stored_file_name("README", "/tmp/abc") == "abc"
        assert stored_file_name("trailing.", "/tmp/abc") == "abc"


class TestUploadWorkflow:
    """Tests for UploadWorkflow.upload."""

    @pytest.mark.asyncio
    async def test_successful_upload(self, mock_client, local_file):
        workflow = UploadWorkflow(mock_client)

        result = await workflow.upload("cat.jpg", local_file, "d1", "folder-1")

        assert result.file_name == "9f86d081884c7d65.jpg"
        assert result.web_url == "https://onedrive.live.com/item-1"
        assert result.share_url == "https://1drv.ms/i/s!share"

    @pytest.mark.asyncio
    async def test_session_request(self, mock_client, local_file):
        workflow = UploadWorkflow(mock_client)

        await workflow.upload("cat.jpg", local_file, "d1", "folder-1", custom_file_name="my cat")

        args, kwargs = mock_client.call.call_args_list[0]
        assert args == (
            "POST",
            "/drives/d1/items/folder-1:/my%20cat.jpg:/createUploadSession",
        )
        assert kwargs["json"] == {"item": {"@microsoft.graph.conflictBehavior": "replace"}}

    @pytest.mark.asyncio
    async def test_sends_whole_file_in_one_range(self, mock_client, local_file):
        workflow = UploadWorkflow(mock_client)
        size = local_file.stat().st_size

        await workflow.upload("cat.jpg", local_file, "d1", "folder-1")

        args, kwargs = mock_client.put_upload_content.call_args
        assert args[0] == UPLOAD_URL
        assert args[1] == local_file.read_bytes()
        assert kwargs["content_range"] == f"bytes 0-{size - 1}/{size}"

    @pytest.mark.asyncio
    async def test_share_link_request(self, mock_client, local_file):
        workflow = UploadWorkflow(mock_client)

        await workflow.upload("cat.jpg", local_file, "d1", "folder-1")

        args, kwargs = mock_client.call.call_args_list[1]
        assert args == ("POST", "/drives/d1/items/item-1/createLink")
        assert kwargs["json"] == {"type": "view", "scope": "anonymous"}

    @pytest.mark.asyncio
    async def test_does_not_delete_local_file(self, mock_client, local_file):
        await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")
        assert local_file.exists()

    @pytest.mark.asyncio
    async def test_session_failure(self, mock_client, local_file):
        mock_client.call.side_effect = ForbiddenError(403, "Access denied")

        with pytest.raises(SessionCreationError) as exc_info:
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")

        assert exc_info.value.file_name == "9f86d081884c7d65.jpg"
        assert isinstance(exc_info.value.__cause__, ForbiddenError)
        mock_client.put_upload_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_without_upload_url(self, mock_client, local_file):
        mock_client.call.side_effect = [{}]

        with pytest.raises(SessionCreationError, match="uploadUrl"):
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")

    @pytest.mark.asyncio
    async def test_transfer_failure(self, mock_client, local_file):
        mock_client.put_upload_content.side_effect = UnknownApiError(500, "Server error")

        with pytest.raises(UploadTransferError) as exc_info:
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")

        assert isinstance(exc_info.value.__cause__, UnknownApiError)
        assert mock_client.call.call_count == 1

    @pytest.mark.asyncio
    async def test_incomplete_transfer(self, mock_client, local_file):
        """A 202 means the session expects more ranges."""
        mock_client.put_upload_content.return_value = (202, {"nextExpectedRanges": ["5-"]})

        with pytest.raises(UploadTransferError):
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")

    @pytest.mark.asyncio
    async def test_missing_local_file(self, mock_client, tmp_path):
        with pytest.raises(UploadTransferError, match="Cannot read local file"):
            await UploadWorkflow(mock_client).upload(
                "cat.jpg", tmp_path / "missing", "d1", "folder-1"
            )

    @pytest.mark.asyncio
    async def test_empty_file(self, mock_client, tmp_path):
        empty = tmp_path / "empty"
        empty.write_bytes(b"")

        with pytest.raises(UploadTransferError, match="empty"):
            await UploadWorkflow(mock_client).upload("cat.jpg", empty, "d1", "folder-1")

        mock_client.put_upload_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_share_link_failure_identifies_uploaded_file(self, mock_client, local_file):
        mock_client.call.side_effect = [
            {"uploadUrl": UPLOAD_URL},
            ForbiddenError(403, "Sharing disabled"),
        ]

        with pytest.raises(ShareLinkError) as exc_info:
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")

        assert exc_info.value.item_id == "item-1"
        assert exc_info.value.web_url == "https://onedrive.live.com/item-1"

    @pytest.mark.asyncio
    async def test_share_link_without_url(self, mock_client, local_file):
        mock_client.call.side_effect = [{"uploadUrl": UPLOAD_URL}, {"link": {}}]

        with pytest.raises(ShareLinkError):
            await UploadWorkflow(mock_client).upload("cat.jpg", local_file, "d1", "folder-1")
