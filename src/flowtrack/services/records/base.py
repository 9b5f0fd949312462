"""
Record access abstractions shared by every resource service.

Each resource wraps one backend table behind the same contract. Every public
operation is total: failures are turned into a sentinel return value ([],
None or False) and reported through the log and, for writes, the
notification channel.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from flowtrack.services.client import ApperClient, get_apper_client
from flowtrack.services.notifier import Notifier, notifier as default_notifier

from .envelope import (
    BatchResult,
    describe_error,
    envelope_failed,
    envelope_message,
    normalize_list,
    normalize_record,
    notify,
    report_batch,
)
from .query import FieldProjection, equal_to

logger = logging.getLogger(__name__)


class ClientNotInitialized(RuntimeError):
    """Raised internally when no backend client has been configured."""


class NotificationPolicy(str, Enum):
    """How a failed operation is surfaced."""

    LOG_ONLY = "log_only"
    LOG_AND_NOTIFY = "log_and_notify"


OPERATION_POLICIES: Dict[str, NotificationPolicy] = {
    "list_all": NotificationPolicy.LOG_ONLY,
    "get_by_id": NotificationPolicy.LOG_ONLY,
    "get_by_foreign_key": NotificationPolicy.LOG_ONLY,
    "create": NotificationPolicy.LOG_AND_NOTIFY,
    "update": NotificationPolicy.LOG_AND_NOTIFY,
    "delete": NotificationPolicy.LOG_AND_NOTIFY,
}


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a single-record lookup that keeps "missing" and "failed" apart."""
    status: LookupStatus
    record: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


ClientProvider = Callable[[], Optional[ApperClient]]


class RecordService(ABC):
    """Base class for a table-backed resource service."""

    table_name: str
    projection: FieldProjection
    foreign_key: Optional[str] = None

    def __init__(
        self,
        client_provider: ClientProvider = get_apper_client,
        notifier: Notifier = default_notifier,
    ):
        self.client_provider = client_provider
        self.notifier = notifier

    @abstractmethod
    async def build_create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply the resource's field defaults and return the record to submit."""

    def _require_client(self) -> ApperClient:
        client = self.client_provider()
        if not client:
            raise ClientNotInitialized("ApperClient not initialized")
        return client

    def _context(self, operation: str, record_id: Any = None) -> Dict[str, Any]:
        return {"operation": operation, "table": self.table_name, "record_id": record_id}

    async def _report_failure(self, operation: str, message: str, record_id: Any = None) -> None:
        logger.error(message, extra=self._context(operation, record_id))
        if OPERATION_POLICIES[operation] is NotificationPolicy.LOG_AND_NOTIFY:
            await notify(self.notifier, message)

    # Reads

    async def list_all(self) -> List[Dict[str, Any]]:
        """Every record, newest first. Returns [] on any failure."""
        return await self._fetch("list_all", self.projection.query())

    async def get_by_foreign_key(self, parent_id: Any) -> List[Dict[str, Any]]:
        """Records whose foreign key equals parent_id, newest first."""
        if self.foreign_key is None:
            await self._report_failure(
                "get_by_foreign_key",
                f"{self.table_name} has no foreign key to filter on",
                parent_id,
            )
            return []
        try:
            condition = equal_to(self.foreign_key, int(parent_id))
        except (TypeError, ValueError) as exc:
            await self._report_failure(
                "get_by_foreign_key",
                f"Error fetching {self.table_name} records for {self.foreign_key} {parent_id}: {exc}",
                parent_id,
            )
            return []
        return await self._fetch(
            "get_by_foreign_key",
            self.projection.query(where=[condition]),
            record_id=parent_id,
        )

    async def _fetch(self, operation: str, query, record_id: Any = None) -> List[Dict[str, Any]]:
        try:
            client = self._require_client()
            response = await client.fetch_records(self.table_name, query.to_params())
        except Exception as exc:
            await self._report_failure(
                operation,
                f"Error fetching {self.table_name} records: {describe_error(exc)}",
                record_id,
            )
            return []

        if envelope_failed(response):
            await self._report_failure(
                operation,
                envelope_message(response, f"Failed to fetch {self.table_name} records"),
                record_id,
            )
            return []
        return normalize_list(response)

    async def lookup(self, record_id: Any) -> LookupResult:
        """
        Fetch one record by Id.

        Returns:
            LookupResult tagged FOUND, NOT_FOUND or TRANSPORT_ERROR. A missing
            record is not an error and is not logged.
        """
        try:
            client = self._require_client()
            response = await client.get_record_by_id(
                self.table_name, int(record_id), self.projection.select().to_params()
            )
        except Exception as exc:
            message = f"Error fetching {self.table_name} record {record_id}: {describe_error(exc)}"
            await self._report_failure("get_by_id", message, record_id)
            return LookupResult(LookupStatus.TRANSPORT_ERROR, error=message)

        if envelope_failed(response):
            message = envelope_message(response, f"Failed to fetch {self.table_name} record {record_id}")
            await self._report_failure("get_by_id", message, record_id)
            return LookupResult(LookupStatus.TRANSPORT_ERROR, error=message)

        record = normalize_record(response)
        if record is None:
            return LookupResult(LookupStatus.NOT_FOUND)
        return LookupResult(LookupStatus.FOUND, record=record)

    async def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """The record, or None when it is missing or the lookup failed."""
        result = await self.lookup(record_id)
        return result.record

    # Writes

    async def create(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create one record. Returns the created record, or None."""
        try:
            record = await self.build_create_payload(data)
        except Exception as exc:
            await self._report_failure(
                "create", f"Error preparing {self.table_name} record: {describe_error(exc)}"
            )
            return None

        batch = await self._submit(
            "create",
            lambda client: client.create_record(self.table_name, {"records": [record]}),
        )
        return batch.first_record if batch else None

    async def _update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            record = {"Id": int(record_id), **changes}
        except (TypeError, ValueError) as exc:
            await self._report_failure(
                "update", f"Error updating {self.table_name} record {record_id}: {exc}", record_id
            )
            return None

        batch = await self._submit(
            "update",
            lambda client: client.update_record(self.table_name, {"records": [record]}),
            record_id=record_id,
        )
        return batch.first_record if batch else None

    async def delete(self, record_id: Any) -> bool:
        """True iff the backend reports at least one record deleted."""
        try:
            params = {"RecordIds": [int(record_id)]}
        except (TypeError, ValueError) as exc:
            await self._report_failure(
                "delete", f"Error deleting {self.table_name} record {record_id}: {exc}", record_id
            )
            return False

        batch = await self._submit(
            "delete",
            lambda client: client.delete_record(self.table_name, params),
            record_id=record_id,
        )
        return bool(batch and batch.any_succeeded)

    async def _submit(
        self,
        operation: str,
        call: Callable[[ApperClient], Awaitable[Dict[str, Any]]],
        record_id: Any = None,
    ) -> Optional[BatchResult]:
        """
        Run a write call and classify its per-record results.

        Returns None when the call raised, the envelope reported failure or
        no per-record results came back.
        """
        try:
            client = self._require_client()
            response = await call(client)
        except Exception as exc:
            await self._report_failure(
                operation,
                f"Error during {operation} on {self.table_name}: {describe_error(exc)}",
                record_id,
            )
            return None

        if envelope_failed(response):
            await self._report_failure(
                operation,
                envelope_message(response, f"Failed to {operation} {self.table_name} record"),
                record_id,
            )
            return None

        results = response.get("results")
        if results is None:
            return None

        return await report_batch(
            results,
            self.notifier,
            operation=operation,
            table=self.table_name,
        )
