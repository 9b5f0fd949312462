"""
Upload widget boundary and the provider that hands out the upload SDK.

The hosted upload SDK is loaded by the host application at its own pace, so
callers wait for it explicitly instead of assuming it is there.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import formats


class UploadWidget(ABC):
    """A hosted file field. All calls may raise."""

    @abstractmethod
    async def mount(self, anchor_id: str, config: Dict[str, Any]) -> None:
        """Render the widget into the UI anchor with the given config."""

    @abstractmethod
    async def unmount(self, anchor_id: str) -> None:
        """Tear down the widget mounted at the anchor."""

    @abstractmethod
    async def update_files(self, field_key: str, files: List[Dict[str, Any]]) -> None:
        """Replace the files displayed for a field."""

    @abstractmethod
    async def clear_field(self, field_key: str) -> None:
        """Reset a field to show no files."""

    async def to_ui_format(self, files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return formats.to_ui_format(files)

    async def to_create_format(self, file: Dict[str, Any]) -> Dict[str, Any]:
        return formats.to_create_format(file)


@dataclass
class UploadSDK:
    """Handle to a loaded upload SDK. file_uploader is None when the SDK
    loaded without its file-upload module."""
    file_uploader: Optional[UploadWidget] = None


class UploadSDKNotLoaded(RuntimeError):
    pass


class UploadSDKProvider:
    """Holds the upload SDK handle once the host has loaded it."""

    def __init__(self, sdk: Optional[UploadSDK] = None):
        self._sdk = sdk

    def register(self, sdk: UploadSDK) -> None:
        self._sdk = sdk

    def clear(self) -> None:
        self._sdk = None

    def current(self) -> Optional[UploadSDK]:
        return self._sdk

    async def wait_until_ready(self, poll_interval: float = 0.1, max_attempts: int = 50) -> UploadSDK:
        """
        Poll for the SDK handle.

        Args:
            poll_interval: Seconds between checks
            max_attempts: Number of checks before giving up

        Raises:
            UploadSDKNotLoaded: the handle never showed up
        """
        for attempt in range(1, max_attempts + 1):
            sdk = self.current()
            if sdk is not None:
                return sdk
            if attempt < max_attempts:
                await asyncio.sleep(poll_interval)

        raise UploadSDKNotLoaded(
            "Upload SDK not loaded. Please ensure the SDK is registered "
            f"before mounting a file field (waited {max_attempts} attempts)."
        )


upload_sdk = UploadSDKProvider()
