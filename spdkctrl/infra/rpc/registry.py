"""In-flight call registry: request id -> method name.

SPDK responses carry the request id but not the method, so the method is
remembered here when the request is written and looked up again when the
response header is parsed.
"""

from __future__ import annotations

import threading


class CallRegistry:
    """Mutex-protected map of pending request ids to method names."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[int, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def __contains__(self, call_id: object) -> bool:
        with self._lock:
            return call_id in self._pending

    def register(self, call_id: int, method: str) -> None:
        with self._lock:
            if call_id in self._pending:
                raise ValueError(f"Request id {call_id} is already in flight")
            self._pending[call_id] = method

    def resolve(self, call_id: int) -> str | None:
        """Remove and return the method for ``call_id`` (None if unknown)."""
        with self._lock:
            return self._pending.pop(call_id, None)

    def drain(self) -> list[int]:
        """Remove every entry and return the ids that were still pending."""
        with self._lock:
            ids = sorted(self._pending)
            self._pending.clear()
        return ids
