import threading


class ParseOffsetStore:
    """Remembers, per session, the file offset up to which records were extracted."""

    def __init__(self) -> None:
        self._offsets: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> int:
        with self._lock:
            return self._offsets.get(session_id, 0)

    def set(self, session_id: str, offset: int) -> None:
        with self._lock:
            self._offsets[session_id] = offset

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._offsets.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._offsets

    def __len__(self) -> int:
        with self._lock:
            return len(self._offsets)
