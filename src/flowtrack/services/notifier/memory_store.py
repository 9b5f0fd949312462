"""In-process Notifier implementation."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Deque, Dict, List

from .base import Notifier, ToastLevel, build_toast


class MemoryNotifier(Notifier):
    """
    Keeps toasts in a bounded deque.

    - Entries older than ttl_seconds are dropped when the queue is drained.
    - Only suitable for a single worker process; use RedisNotifier otherwise.
    """

    def __init__(self, ttl_seconds: int = 30, max_pending: int = 100):
        self.ttl_seconds = ttl_seconds
        self._pending: Deque[Dict] = deque(maxlen=max_pending)

    async def push(self, message: str, level: ToastLevel = ToastLevel.ERROR) -> Dict:
        toast = build_toast(message, level)
        self._pending.append(toast)
        return toast

    async def drain(self) -> List[Dict]:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.ttl_seconds)
        toasts = [
            toast for toast in self._pending
            if datetime.fromisoformat(toast["created_at"]) >= cutoff
        ]
        self._pending.clear()
        return toasts

    async def close(self) -> None:
        self._pending.clear()
