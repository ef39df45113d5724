"""
Transfer Gateway - Single Responsibility: move one file to the backend.

Classifies every attempt into success, conflict or failure. A 409 is an
expected outcome and never raises.
"""
import logging
import mimetypes
from typing import Dict, Optional

import httpx

from ..models import ConflictResolution, TransferOutcome, UploadItem
from ..protocols import IAPIClient
from .api_client import APIError

logger = logging.getLogger(__name__)

CONFLICT_STATUS = 409


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class TransferGateway:
    """
    Sends one UploadItem per call.

    Implements ITransferGateway protocol. Calling twice for the same item
    (plain, then with a resolution) is the expected retry pattern.
    """

    def __init__(self, api_client: IAPIClient, endpoint: str = "upload.php"):
        self._api = api_client
        self._endpoint = endpoint

    @staticmethod
    def build_form(
        item: UploadItem,
        resolution: Optional[ConflictResolution] = None,
    ) -> Dict[str, str]:
        """Non-file multipart fields for a transfer."""
        if resolution is ConflictResolution.SKIP:
            raise ValueError("A skipped item must not be transferred")

        form: Dict[str, str] = {}
        if item.target_folder_id is not None:
            form["folder_id"] = str(item.target_folder_id)
        if resolution is not None:
            form["resolution"] = resolution.value
        return form

    async def transfer(
        self,
        item: UploadItem,
        resolution: Optional[ConflictResolution] = None,
    ) -> TransferOutcome:
        form = self.build_form(item, resolution)
        content_type = mimetypes.guess_type(item.display_name)[0] or "application/octet-stream"

        try:
            with open(item.file_path, "rb") as handle:
                payload = await self._api.upload(
                    self._endpoint,
                    files={"file": (item.display_name, handle, content_type)},
                    data=form or None,
                )
        except APIError as exc:
            if exc.status_code == CONFLICT_STATUS:
                logger.debug(f"Conflict reported for {item.display_name}")
                return TransferOutcome.conflict(item.display_name)
            logger.warning(f"Transfer rejected for {item.display_name}: {exc.message} ({exc.status_code})")
            return TransferOutcome.failure(exc.message, exc.status_code)
        except (httpx.HTTPError, OSError) as exc:
            error_msg = _describe_exception(exc)
            logger.warning(f"Transfer failed for {item.display_name}: {error_msg}")
            return TransferOutcome.failure(error_msg, None)

        return TransferOutcome.success(payload if isinstance(payload, dict) else {})
