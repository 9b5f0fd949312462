"""Task records (task_c) and their file attachments."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from flowtrack.services.client import get_apper_client
from flowtrack.services.notifier import Notifier, notifier as default_notifier

from .base import ClientProvider, RecordService
from .envelope import describe_error
from .files import FileService
from .query import TASK_PROJECTION

logger = logging.getLogger(__name__)


# canonical field -> legacy short name
TASK_FIELD_ALIASES: Dict[str, str] = {
    "Name": "title",
    "description_c": "description",
    "priority_c": "priority",
    "status_c": "status",
    "completed_at_c": "completedAt",
}

TASK_WRITABLE_FIELDS = ("Name", "description_c", "priority_c", "status_c", "completed_at_c", "Tags")


def resolve_aliases(
    values: Mapping[str, Any],
    fields=TASK_WRITABLE_FIELDS,
    aliases: Mapping[str, str] = TASK_FIELD_ALIASES,
) -> Dict[str, Any]:
    """
    Map a payload that may use either spelling onto canonical field names.

    Only fields present under some spelling are returned. When both spellings
    are present the canonical one wins, unless it is None.
    """
    resolved: Dict[str, Any] = {}
    for canonical in fields:
        alias = aliases.get(canonical)
        has_alias = alias is not None and alias in values
        if canonical in values and (values[canonical] is not None or not has_alias):
            resolved[canonical] = values[canonical]
        elif has_alias:
            resolved[canonical] = values[alias]
    return resolved


class TaskService(RecordService):
    """Record service for tasks. Creating a task can attach files to it."""

    table_name = "task_c"
    projection = TASK_PROJECTION

    def __init__(
        self,
        client_provider: ClientProvider = get_apper_client,
        notifier: Notifier = default_notifier,
        file_service: Optional[FileService] = None,
    ):
        super().__init__(client_provider, notifier)
        self.file_service = file_service or FileService(client_provider, notifier)

    async def build_create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = resolve_aliases(data)
        if not record.get("Tags"):
            record["Tags"] = ""
        return record

    async def create(
        self,
        data: Dict[str, Any],
        files: Optional[List[Dict[str, Any]]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Create a task, then one file record per entry in files (or data["files"]).

        Attachment failures are logged and skipped; they never turn a created
        task into a failed create.
        """
        if files is None:
            files = data.get("files")

        created = await super().create(data)
        if created and files:
            await self._attach_files(created, files)
        return created

    async def _attach_files(self, task: Dict[str, Any], files: List[Dict[str, Any]]) -> None:
        task_id = task.get("Id")
        for file in files:
            name = None
            try:
                name = file.get("name")
                attached = await self.file_service.create({
                    "Name": name or "Uploaded File",
                    "file_name_c": name,
                    "file_size_c": file.get("size") or 0,
                    "upload_date_c": datetime.now(timezone.utc).isoformat(),
                    "task_c": task_id,
                    "file_c": file,
                    "Tags": "",
                })
            except Exception as exc:
                logger.error(
                    f"Error creating file attachment {name!r} for task {task_id}: {describe_error(exc)}",
                    extra={"operation": "create", "table": self.file_service.table_name, "record_id": task_id},
                )
                continue

            if attached is None:
                logger.warning(
                    f"File attachment {name!r} was not created for task {task_id}",
                    extra={"operation": "create", "table": self.file_service.table_name, "record_id": task_id},
                )

    async def update(self, record_id: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Send only the fields present in updates, under their canonical names."""
        return await self._update(record_id, resolve_aliases(updates))
