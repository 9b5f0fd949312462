"""File records (files_c), each attached to a task through task_c."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flowtrack.services.client import get_apper_client
from flowtrack.services.notifier import Notifier, notifier as default_notifier
from flowtrack.services.uploader import formats
from flowtrack.services.uploader.widget import UploadSDKProvider, upload_sdk

from .base import ClientProvider, RecordService
from .query import FILE_PROJECTION


class FileService(RecordService):
    """
    Record service for uploaded files.

    Binary references in file_c are converted to the backend's create format
    through the loaded upload SDK when there is one, otherwise through the
    built-in converter.
    """

    table_name = "files_c"
    projection = FILE_PROJECTION
    foreign_key = "task_c"

    def __init__(
        self,
        client_provider: ClientProvider = get_apper_client,
        notifier: Notifier = default_notifier,
        sdk_provider: Optional[UploadSDKProvider] = upload_sdk,
    ):
        super().__init__(client_provider, notifier)
        self.sdk_provider = sdk_provider

    async def get_by_task_id(self, task_id: Any) -> List[Dict[str, Any]]:
        return await self.get_by_foreign_key(task_id)

    async def _to_create_format(self, file: Dict[str, Any]) -> Dict[str, Any]:
        sdk = self.sdk_provider.current() if self.sdk_provider else None
        if sdk is not None and sdk.file_uploader is not None:
            return await sdk.file_uploader.to_create_format(file)
        return formats.to_create_format(file)

    async def build_create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        file_field = data.get("file_c")
        if file_field:
            if isinstance(file_field, list):
                file_field = [await self._to_create_format(file) for file in file_field]
            else:
                file_field = await self._to_create_format(file_field)
        else:
            file_field = None

        task_id = data.get("task_c")
        return {
            "Name": data.get("Name") or data.get("file_name_c") or "",
            "file_name_c": data.get("file_name_c") or "",
            "file_size_c": data.get("file_size_c") or 0,
            "upload_date_c": data.get("upload_date_c") or datetime.now(timezone.utc).isoformat(),
            "task_c": int(task_id) if task_id is not None else None,
            "file_c": file_field,
            "Tags": data.get("Tags") or "",
        }
