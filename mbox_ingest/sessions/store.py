from __future__ import annotations

import re
import threading
import uuid
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

from mbox_ingest.logging.logger import Log
from mbox_ingest.sessions.models import (
    ParsedRecord,
    UploadSession,
    UploadSessionSummary,
    UploadStatus,
    utc_now,
)

DeletionListener = Callable[[str], None]


def session_file_path(temp_dir: Path, session_id: str, file_name: str) -> Path:
    """Build the backing file path: {temp_dir}/{session_id}_{sanitized file name}"""
    sanitized = re.sub(r"[^\w\-.]", "_", Path(file_name).name) or "upload"
    return temp_dir / f"{session_id}_{sanitized}"


class SessionStore:
    """In-memory registry of upload sessions and owner of their temp files.

    Insert and remove are atomic under a store-wide lock. Each session also
    gets its own lock, which serializes chunk writes and record appends for
    that session without blocking any other session.
    """

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = temp_dir
        self._sessions: dict[str, UploadSession] = {}
        self._session_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._deletion_listeners: list[DeletionListener] = []

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def create(self, file_name: str, total_size: int) -> str:
        """Register a new session. The temp file is created by the first append."""
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        session_id = str(uuid.uuid4())
        session = UploadSession(
            id=session_id,
            file_name=file_name,
            total_size=total_size,
            temp_file_path=str(session_file_path(self._temp_dir, session_id, file_name)),
            status=UploadStatus.IN_PROGRESS,
        )
        with self._lock:
            self._sessions[session_id] = session
            self._session_locks[session_id] = threading.Lock()
        Log.info(f"Created upload session {session_id} for {file_name} ({total_size} bytes)")
        return session_id

    def append(self, session_id: str, data: bytes, is_last: bool) -> bool:
        """Append a chunk to the session's temp file.

        Returns False if the session is unknown or the write fails. A failed
        write marks the session Failed but keeps it in the store.
        """
        session, lock = self._lookup(session_id)
        if session is None or lock is None:
            return False

        with lock:
            if not self._is_registered(session_id):
                # Deleted between lookup and lock; writing would recreate its file.
                return False
            try:
                with open(session.temp_file_path, "ab") as fh:
                    fh.write(data)
            except OSError as exc:
                session.status = UploadStatus.FAILED
                session.error_message = str(exc)
                Log.error(f"Failed to append chunk for session {session_id}: {exc}")
                return False

            session.uploaded_size += len(data)
            session.last_chunk_at = utc_now()
            if is_last:
                session.upload_complete = True
                session.status = UploadStatus.COMPLETED

        Log.debug(
            f"Appended {len(data)} bytes to session {session_id} "
            f"({session.uploaded_size}/{session.total_size})"
        )
        return True

    def get(self, session_id: str) -> UploadSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_all(self) -> list[UploadSessionSummary]:
        """Snapshot of all sessions, newest first."""
        with self._lock:
            sessions = list(self._sessions.values())
        summaries = [UploadSessionSummary.from_session(s) for s in sessions]
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)

    def update_status(
        self,
        session_id: str,
        status: UploadStatus,
        error_message: str | None = None,
    ) -> None:
        session = self.get(session_id)
        if session is None:
            return
        session.status = status
        if error_message is not None:
            session.error_message = error_message

    def append_record(self, session_id: str, record: ParsedRecord) -> None:
        session, lock = self._lookup(session_id)
        if session is None or lock is None:
            return
        with lock:
            session.parsed_records.append(record)
            session.parsed_record_count = len(session.parsed_records)

    def list_records(
        self,
        session_id: str,
        page: int = 1,
        page_size: int = 20,
    ) -> list[ParsedRecord]:
        """Return one 1-based page of records in append order."""
        session, lock = self._lookup(session_id)
        if session is None or lock is None or page < 1 or page_size < 1:
            return []
        start = (page - 1) * page_size
        with lock:
            return session.parsed_records[start : start + page_size]

    def record_count(self, session_id: str) -> int:
        session = self.get(session_id)
        return session.parsed_record_count if session is not None else 0

    def delete(self, session_id: str) -> bool:
        """Remove a session and best-effort delete its temp file.

        Returns True if the session existed, whether or not the file could be
        removed.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
            lock = self._session_locks.pop(session_id, None) or threading.Lock()
        if session is None:
            return False

        try:
            with lock:
                Path(session.temp_file_path).unlink(missing_ok=True)
        except OSError as exc:
            Log.warning(f"Could not delete temp file for session {session_id}: {exc}")

        Log.info(f"Deleted upload session {session_id}")
        self._notify_deleted(session_id)
        return True

    def sweep_older_than(self, max_age: timedelta) -> int:
        """Delete every session whose last chunk arrived before now - max_age."""
        cutoff = utc_now() - max_age
        with self._lock:
            expired = [s.id for s in self._sessions.values() if s.last_chunk_at < cutoff]
        removed = sum(1 for session_id in expired if self.delete(session_id))
        if removed:
            Log.info(f"Swept {removed} expired upload sessions")
        return removed

    def subscribe_deleted(self, listener: DeletionListener) -> None:
        """Register a callback invoked with the session id after each deletion."""
        self._deletion_listeners.append(listener)

    def _lookup(
        self, session_id: str
    ) -> tuple[UploadSession | None, threading.Lock | None]:
        with self._lock:
            return self._sessions.get(session_id), self._session_locks.get(session_id)

    def _is_registered(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _notify_deleted(self, session_id: str) -> None:
        for listener in list(self._deletion_listeners):
            try:
                listener(session_id)
            except Exception as exc:
                Log.error(f"Deletion listener failed for session {session_id}: {exc}")
