"""
Keeps a hosted upload widget mounted and in step with the host's file list.

The host calls render() every time its anchor, config or existing files may
have changed. The bridge remounts only when the widget's identity changes and
otherwise pushes file-list updates, skipping snapshots it has already shown.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from flowtrack.utils import env_float, env_int

from .formats import file_identifier, is_api_format
from .widget import UploadSDKNotLoaded, UploadSDKProvider, UploadWidget, upload_sdk

logger = logging.getLogger(__name__)


class BridgeState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    ERROR = "error"


@dataclass
class FileFieldConfig:
    """Configuration for one file field. field_key, field_name and table_name
    identify the widget; changing any of them forces a remount."""
    field_key: str
    field_name: Optional[str] = None
    table_name: Optional[str] = None
    existing_files: Optional[List[Dict[str, Any]]] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def identity(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.field_key, self.field_name, self.table_name)

    def to_mount_config(self, existing_files: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            **self.options,
            "fieldKey": self.field_key,
            "fieldName": self.field_name,
            "tableName": self.table_name,
            "existingFiles": existing_files,
        }


class FileUploadBridge:
    """
    Lifecycle for one mounted file field.

    States: UNINITIALIZED -> READY, UNINITIALIZED -> ERROR, and back to
    UNINITIALIZED on deactivate(). Mount, sync and unmount run one at a time
    per bridge, in the order they were requested. No method raises.
    """

    def __init__(
        self,
        sdk_provider: UploadSDKProvider = upload_sdk,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        self.sdk_provider = sdk_provider
        self.poll_interval = poll_interval if poll_interval is not None else env_float("UPLOAD_SDK_POLL_INTERVAL", 0.1)
        self.max_attempts = max_attempts if max_attempts is not None else env_int("UPLOAD_SDK_MAX_ATTEMPTS", 50)
        self._lock = asyncio.Lock()
        self._reset()

    def _reset(self) -> None:
        self.state = BridgeState.UNINITIALIZED
        self.error: Optional[str] = None
        self.anchor_id: Optional[str] = None
        self.config: Optional[FileFieldConfig] = None
        self._widget: Optional[UploadWidget] = None
        self._mounted = False
        self._existing_files: List[Dict[str, Any]] = []

    @property
    def is_ready(self) -> bool:
        return self.state is BridgeState.READY

    def _identity(self) -> Optional[Tuple]:
        if self.config is None:
            return None
        return (self.anchor_id, *self.config.identity())

    def _memoize(self, files: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """
        Return the last-seen snapshot when the new one looks the same: equal
        length and equal first-file identifier. Mid-list edits that keep both
        are not picked up.
        """
        if not isinstance(files, list) or not files:
            return []

        current = self._existing_files
        if len(current) == len(files) and (
            file_identifier(current[0] if current else None) == file_identifier(files[0])
        ):
            return current
        return files

    # Public API

    async def render(self, anchor_id: str, config: FileFieldConfig) -> BridgeState:
        """Reconcile with the host's current anchor and config."""
        async with self._lock:
            if self._identity() != (anchor_id, *config.identity()):
                if self.state is not BridgeState.UNINITIALIZED:
                    await self._deactivate()
                await self._activate(anchor_id, config)
            else:
                self.config = config
            await self._sync(config.existing_files)
            return self.state

    async def activate(self, anchor_id: str, config: FileFieldConfig) -> BridgeState:
        async with self._lock:
            await self._activate(anchor_id, config)
            return self.state

    async def sync_files(self, files: Optional[List[Dict[str, Any]]]) -> bool:
        """Push a new snapshot to the widget. Returns True if a remote call was made."""
        async with self._lock:
            return await self._sync(files)

    async def deactivate(self) -> None:
        async with self._lock:
            await self._deactivate()

    # Internals, called with the lock held

    async def _activate(self, anchor_id: str, config: FileFieldConfig) -> None:
        self.anchor_id = anchor_id
        self.config = config

        try:
            sdk = await self.sdk_provider.wait_until_ready(
                poll_interval=self.poll_interval,
                max_attempts=self.max_attempts,
            )
        except UploadSDKNotLoaded as exc:
            self.state = BridgeState.ERROR
            self.error = str(exc)
            logger.error(f"File uploader for {anchor_id} unavailable: {exc}")
            return

        files = self._memoize(config.existing_files)
        try:
            widget = sdk.file_uploader
            if widget is None:
                raise RuntimeError("File uploader not available in upload SDK")
            await widget.mount(anchor_id, config.to_mount_config(files))
        except Exception as exc:
            self.state = BridgeState.ERROR
            self.error = f"Failed to mount file uploader: {exc}"
            logger.exception(f"File uploader mount error for {anchor_id}")
            return

        self._widget = widget
        self._existing_files = copy.deepcopy(files)
        self._mounted = True
        self.state = BridgeState.READY
        self.error = None

    async def _sync(self, files: Optional[List[Dict[str, Any]]]) -> bool:
        if not self.is_ready or self._widget is None:
            return False
        if self.config is None or not self.config.field_key:
            return False

        snapshot = self._memoize(files)
        if snapshot == self._existing_files:
            return False

        field_key = self.config.field_key
        try:
            files_to_push = snapshot
            if is_api_format(files_to_push):
                files_to_push = await self._widget.to_ui_format(files_to_push)

            if files_to_push:
                await self._widget.update_files(field_key, files_to_push)
            else:
                await self._widget.clear_field(field_key)
        except Exception as exc:
            self.state = BridgeState.ERROR
            self.error = f"Failed to update files: {exc}"
            logger.exception(f"File uploader update error for {field_key}")
            return True

        self._existing_files = copy.deepcopy(snapshot)
        return True

    async def _deactivate(self) -> None:
        if self._mounted and self._widget is not None:
            try:
                await self._widget.unmount(self.anchor_id)
            except Exception:
                logger.exception(f"File uploader unmount error for {self.anchor_id}")
        self._reset()
