"""
Notifier package entrypoint.

Provides the factory for selecting the toast backend and exports the global
notifier instance used by the record services.
"""

from __future__ import annotations

import os

from flowtrack.utils import env_int

from .base import Notifier, ToastLevel
from .memory_store import MemoryNotifier


__all__ = [
    "MemoryNotifier",
    "Notifier",
    "ToastLevel",
    "create_notifier",
    "notifier",
    "notifier_factory",
]


def create_notifier() -> Notifier:
    """Instantiate the configured notification backend."""

    backend = (os.getenv("NOTIFICATION_BACKEND") or "memory").strip().lower()
    ttl_seconds = env_int("NOTIFICATION_TTL_SECONDS", 30)

    if backend == "memory":
        return MemoryNotifier(ttl_seconds=ttl_seconds)

    if backend == "redis":
        try:
            from .redis_store import RedisNotifier
        except ImportError as exc:
            raise ImportError(
                "Redis notification backend requested, but dependencies "
                "are missing. Install redis and ensure redis_store.py is available."
            ) from exc
        return RedisNotifier(ttl_seconds=ttl_seconds)

    raise ValueError(
        f"Unsupported NOTIFICATION_BACKEND '{backend}'. "
        "Supported values: memory or redis"
    )


# Global notifier instance used by default across the application.
notifier: Notifier = create_notifier()


def notifier_factory() -> Notifier:
    """
    Convenience callable compatible with dependency injection systems.

    Returns the module-level notifier by default, but can be overridden
    or swapped in tests.
    """

    return notifier
