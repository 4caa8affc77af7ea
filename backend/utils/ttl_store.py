"""
In-process key/value store with per-entry expiry.

Used for short-lived state that does not need to survive a restart:
email OTP codes, password-reset tokens and payment redirect sessions.

The clock is injectable so expiry can be tested without sleeping.
"""

import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class TTLStore(Generic[V]):
    """
    Map of key -> value where every entry carries an absolute expiry time.

    Writes are last-write-wins: setting a key again replaces both the value
    and the expiry. Expired entries are never returned and are dropped
    lazily on access or eagerly via purge().
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[V, float]] = {}

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def is_expired(self, key: str) -> bool:
        """True only when the key exists but its entry has expired."""
        entry = self._entries.get(key)
        return entry is not None and self._clock() > entry[1]

    def pop(self, key: str) -> Optional[V]:
        """Remove and return a live entry (single-use reads)."""
        value = self.get(key)
        self._entries.pop(key, None)
        return value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in list(self._entries.items()) if now > expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)
