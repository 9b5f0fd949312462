"""
Async client for the hosted Apper backend.
Every call returns the backend's response envelope unchanged:
{"success": bool, "message": str?, "data": ..., "results": [...]?}
"""

import os
from typing import Optional, Dict, Any
import httpx

from flowtrack.utils import env_float


class ApperClient:
    """An async wrapper around the Apper record API. Using awaitable calls
    keeps FastAPI's event loop from being blocked by backend calls, so requests
    don't get serialized under load."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        project_id: Optional[str] = None,
        public_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or os.getenv("APPER_URL")
        self.project_id = project_id or os.getenv("APPER_PROJECT_ID")
        self.public_key = public_key or os.getenv("APPER_PUBLIC_KEY")
        self.timeout = timeout or env_float("APPER_TIMEOUT_SECONDS", 30.0)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.project_id and self.public_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client"""
        if self._client is None:
            if not self.is_configured:
                raise ValueError(
                    "APPER_URL, APPER_PROJECT_ID and APPER_PUBLIC_KEY must be set. "
                    "Set them as environment variables or pass them to ApperClient."
                )
            self._client = httpx.AsyncClient(
                base_url = self.base_url,
                timeout = self.timeout,
                transport = self._transport,
                headers = {
                    "X-Apper-Project-Id": self.project_id,
                    "X-Apper-Public-Key": self.public_key,
                }
            )
        return self._client

    async def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        response = await client.request(method, path, json=payload)
        response.raise_for_status()
        return response.json()

    async def fetch_records(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Query a table.

        Args:
            table: Table name, e.g. "task_c"
            params: Serialized query spec (fields, where, orderBy)

        Returns:
            Envelope whose "data" is a list of records
        """
        return await self._send("POST", f"/api/v1/tables/{table}/records/query", params)

    async def get_record_by_id(self, table: str, record_id: int, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch a single record. A missing record comes back as a successful
        envelope with no "data".
        """
        return await self._send(
            "POST",
            f"/api/v1/tables/{table}/records/{int(record_id)}/query",
            params
        )

    async def create_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Create records. params is {"records": [...]}; the envelope carries per-record "results"."""
        return await self._send("POST", f"/api/v1/tables/{table}/records", params)

    async def update_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Update records. Each entry of params["records"] must carry its Id."""
        return await self._send("PUT", f"/api/v1/tables/{table}/records", params)

    async def delete_record(self, table: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Delete records. params is {"RecordIds": [...]}."""
        return await self._send("DELETE", f"/api/v1/tables/{table}/records", params)

    async def close(self):
        """Close httpx client connection"""
        if self._client:
            await self._client.aclose()
            self._client = None


apper_client = ApperClient()


def get_apper_client() -> Optional[ApperClient]:
    """Return the process-wide client, or None when it hasn't been configured."""
    if apper_client is None or not apper_client.is_configured:
        return None
    return apper_client


def set_apper_client(client: Optional[ApperClient]) -> None:
    """Replace the process-wide client. Intended for startup wiring and tests."""
    global apper_client
    apper_client = client
