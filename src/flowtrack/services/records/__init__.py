"""
Record services package entrypoint.

Exports the global service instances used throughout the application.
"""

from .base import (
    LookupResult,
    LookupStatus,
    NotificationPolicy,
    OPERATION_POLICIES,
    RecordService,
)
from .envelope import BatchResult, report_batch
from .files import FileService
from .query import FILE_PROJECTION, TASK_PROJECTION, FieldProjection, QuerySpec
from .tasks import TASK_FIELD_ALIASES, TaskService, resolve_aliases


__all__ = [
    "BatchResult",
    "FILE_PROJECTION",
    "FieldProjection",
    "FileService",
    "LookupResult",
    "LookupStatus",
    "NotificationPolicy",
    "OPERATION_POLICIES",
    "QuerySpec",
    "RecordService",
    "TASK_FIELD_ALIASES",
    "TASK_PROJECTION",
    "TaskService",
    "file_service",
    "report_batch",
    "resolve_aliases",
    "task_service",
]


file_service = FileService()
task_service = TaskService(file_service=file_service)
