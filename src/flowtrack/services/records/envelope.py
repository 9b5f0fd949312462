"""
Response normalization and batch result aggregation.

The backend answers every call with an envelope:
{"success": bool, "message": str?, "data": ..., "results": [...]?}
Write calls carry one entry in "results" per submitted record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from flowtrack.services.notifier import Notifier

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Per-record outcomes of a write batch, split by success."""
    succeeded: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def first_record(self) -> Optional[Dict[str, Any]]:
        if not self.succeeded:
            return None
        return self.succeeded[0].get("data")

    @property
    def any_succeeded(self) -> bool:
        return len(self.succeeded) > 0


def describe_error(exc: BaseException) -> str:
    """Prefer the backend's own message when an HTTP error response carries one."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    return str(exc) or exc.__class__.__name__


def envelope_failed(response: Optional[Dict[str, Any]]) -> bool:
    return not isinstance(response, dict) or not response.get("success")


def envelope_message(response: Optional[Dict[str, Any]], default: str) -> str:
    if isinstance(response, dict) and response.get("message"):
        return str(response["message"])
    return default


def normalize_list(response: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return the list of records in a successful envelope, or []."""
    data = response.get("data") if isinstance(response, dict) else None
    if not data:
        return []
    return list(data)


def normalize_record(response: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    data = response.get("data") if isinstance(response, dict) else None
    return data or None


def format_field_error(error: Any) -> str:
    if isinstance(error, dict):
        label = error.get("fieldLabel") or error.get("field") or "Field"
        message = error.get("message") or error.get("error") or ""
        return f"{label}: {message}"
    return str(error)


async def report_batch(
    results: List[Dict[str, Any]],
    notifier: Notifier,
    *,
    operation: str,
    table: str,
) -> BatchResult:
    """
    Split write results into succeeded/failed and surface every failure.

    For each failed record, one toast per field error ("<label>: <message>")
    and one for the record-level message when present. Never retries.
    """
    batch = BatchResult()
    for result in results or []:
        if result.get("success"):
            batch.succeeded.append(result)
        else:
            batch.failed.append(result)

    if batch.failed:
        logger.error(
            f"Failed to {operation} {len(batch.failed)} {table} records: {batch.failed}",
            extra={"operation": operation, "table": table},
        )
        for record in batch.failed:
            for error in record.get("errors") or []:
                await notify(notifier, format_field_error(error))
            if record.get("message"):
                await notify(notifier, record["message"])

    return batch


async def notify(notifier: Notifier, message: str) -> None:
    """Push an error toast. A broken notification channel is logged, never raised."""
    try:
        await notifier.error(message)
    except Exception:
        logger.exception(f"Unable to deliver notification: {message}")
