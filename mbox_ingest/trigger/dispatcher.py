import threading
from concurrent.futures import Future, ThreadPoolExecutor

from mbox_ingest.logging.logger import Log
from mbox_ingest.trigger.advancer import ParseTrigger


class ParseDispatcher:
    """Runs parse triggers in the background, at most one per session at a time.

    A request for a session that is already queued or running is coalesced:
    the running task makes one more pass when it finishes, so bytes that
    arrived meanwhile are never left unparsed.
    """

    def __init__(self, trigger: ParseTrigger, max_workers: int = 4) -> None:
        self._trigger = trigger
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mbox-parse"
        )
        self._active: set[str] = set()
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def submit(self, session_id: str) -> Future[None] | None:
        """Schedule a parse and return immediately.

        Returns the scheduled future, or None when the request was folded into
        a parse that is already in flight.
        """
        with self._lock:
            if session_id in self._active:
                self._pending.add(session_id)
                return None
            self._active.add(session_id)
        try:
            return self._executor.submit(self._run, session_id)
        except RuntimeError as exc:
            with self._lock:
                self._active.discard(session_id)
            Log.warning(f"Could not schedule parsing for session {session_id}: {exc}")
            return None

    def is_busy(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._active

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(self, session_id: str) -> None:
        while True:
            try:
                self._trigger.try_advance(session_id)
            except Exception as exc:
                Log.exception(f"Error during incremental parsing for session {session_id}: {exc}")
            with self._lock:
                if session_id not in self._pending:
                    self._active.discard(session_id)
                    return
                self._pending.discard(session_id)
