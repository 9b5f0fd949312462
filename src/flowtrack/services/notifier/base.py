"""
Notification channel abstractions.

User-visible errors are pushed as short-lived "toasts" that the front-end
drains and displays. Backends only have to hold messages until they are
drained or expire.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List


class ToastLevel(str, Enum):
    """Severity shown next to a toast."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def build_toast(message: str, level: ToastLevel) -> Dict:
    return {
        "message": str(message),
        "level": level.value,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


class Notifier(ABC):
    """Abstract interface for the transient notification channel."""

    @abstractmethod
    async def push(self, message: str, level: ToastLevel = ToastLevel.ERROR) -> Dict:
        """Queue a toast and return the stored entry."""

    @abstractmethod
    async def drain(self) -> List[Dict]:
        """Return every pending toast, oldest first, and forget them."""

    @abstractmethod
    async def close(self) -> None:
        """Release any underlying resources (connections, pools, etc.)."""

    async def error(self, message: str) -> Dict:
        return await self.push(message, ToastLevel.ERROR)
