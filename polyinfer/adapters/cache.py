from __future__ import annotations
"""Response cache for the orchestrator.

PromptCache – in-memory store keyed by a request **fingerprint**, with a
per-entry expiry given in milliseconds. Expired entries are evicted when
read; there is no size bound and no LRU eviction.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from polyinfer.core.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "CacheEntry",
    "PromptCache",
    "fingerprint",
    "DEFAULT_SCOPE",
]

DEFAULT_SCOPE = "global"


def fingerprint(text: str, scope: str = DEFAULT_SCOPE, model_hint: Optional[str] = None) -> str:
    """Deterministic cache key built from scope, optional model hint and the literal prompt."""
    if model_hint:
        return f"{scope}::{model_hint}::{text}"
    return f"{scope}::{text}"


@dataclass
class CacheEntry:
    value: Any
    expires_at: float  # epoch milliseconds


class PromptCache:
    """Asyncio-safe TTL cache for fingerprint → result."""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        # clock returns seconds, like time.time
        self._clock = clock or time.time
        self._store: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    # ------------------------------------------------------------------
    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._now_ms() > entry.expires_at:
                # expired
                del self._store[key]
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        async with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=self._now_ms() + ttl)

    def clear(self) -> None:
        self._store.clear()
        logger.debug("Cache cleared")

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store
