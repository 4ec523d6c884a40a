from __future__ import annotations

import logging
import re
import threading
from typing import Iterable, List, Sequence, Tuple

from ecotrip.core.config import Settings

logger = logging.getLogger(__name__)


def parse_api_keys(raw: str | None) -> List[str]:
    if not raw or not raw.strip():
        return []
    return [token.strip() for token in re.split(r"[\r\n,]+", raw) if token.strip()]


def dedupe_keys(keys: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for key in keys:
        token = (key or "").strip()
        if not token or token in seen:
            continue
        seen.add(token)
        out.append(token)
    return out


def load_api_keys(settings: Settings) -> List[str]:
    """Primary key first, then the explicit GEMINI_API_KEYS list, deduplicated."""
    keys: List[str] = []
    if settings.gemini_api_key:
        keys.append(settings.gemini_api_key)
    keys.extend(parse_api_keys(settings.gemini_api_keys))
    return dedupe_keys(keys)


def api_key_fingerprint(api_key: str) -> str:
    token = (api_key or "").strip()
    if not token:
        return "none"
    return f"...{token[-4:]}"


class KeyPool:
    """
    Ordered, immutable set of API keys plus the shared rotation cursor.

    One pool is created per process and handed to every dispatcher; the cursor
    is only touched under ``_lock``.
    """

    def __init__(self, keys: Sequence[str]) -> None:
        self._keys: Tuple[str, ...] = tuple(dedupe_keys(keys))
        self._cursor = 0
        self._lock = threading.Lock()
        if not self._keys:
            logger.warning("No Gemini API keys configured; every dispatch will fail.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeyPool":
        return cls(load_api_keys(settings))

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def keys(self) -> Tuple[str, ...]:
        return self._keys

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    def current(self) -> Tuple[int, str]:
        with self._lock:
            if not self._keys:
                raise IndexError("key pool is empty")
            return self._cursor, self._keys[self._cursor]

    def advance_past(self, index: int) -> int:
        """Move the cursor off ``index``; a no-op if another caller already did."""
        with self._lock:
            if self._keys and self._cursor == index:
                self._cursor = (self._cursor + 1) % len(self._keys)
            return self._cursor
