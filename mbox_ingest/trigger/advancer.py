import threading
from collections.abc import Callable
from pathlib import Path

from mbox_ingest.config.settings import Settings
from mbox_ingest.decoding.models import DecodedMessage
from mbox_ingest.logging.logger import Log
from mbox_ingest.parser.incremental import IncrementalParser
from mbox_ingest.parser.models import ParseProgress
from mbox_ingest.sessions.models import ParsedRecord, UploadSession, UploadStatus
from mbox_ingest.sessions.store import SessionStore
from mbox_ingest.trigger.notifier import BaseParsingNotifier
from mbox_ingest.trigger.offsets import ParseOffsetStore

TRUNCATION_MARKER = "..."


def truncate_body(body: str, max_length: int) -> str:
    if len(body) <= max_length:
        return body
    return body[:max_length] + TRUNCATION_MARKER


class ParseTrigger:
    """Drive the incremental parser for one session and fold results into the store.

    Safe to call redundantly: without new bytes it returns False and touches
    nothing. Calls for the same session are serialized.
    """

    def __init__(
        self,
        store: SessionStore,
        parser: IncrementalParser,
        offsets: ParseOffsetStore,
        notifier: BaseParsingNotifier,
        settings: Settings,
    ) -> None:
        self._store = store
        self._parser = parser
        self._offsets = offsets
        self._notifier = notifier
        self._settings = settings
        self._parse_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        store.subscribe_deleted(self._on_session_deleted)

    def try_advance(self, session_id: str) -> bool:
        """Parse whatever arrived since the last call. Returns True if records were added."""
        if self._store.get(session_id) is None:
            return False
        with self._parse_lock(session_id):
            advanced = self._advance(session_id)
        if self._store.get(session_id) is None:
            # Deleted while parsing; drop the state this call left behind.
            self._on_session_deleted(session_id)
        return advanced

    def _advance(self, session_id: str) -> bool:
        session = self._store.get(session_id)
        if session is None or not self._is_parseable(session):
            return False

        last_offset = self._offsets.get(session_id)
        file_path = Path(session.temp_file_path)
        try:
            if file_path.stat().st_size <= last_offset:
                return False
        except OSError:
            return False

        final = session.upload_complete
        Log.info(f"Parsing new chunks for session {session_id} from position {last_offset}")
        try:
            self._store.update_status(session_id, UploadStatus.PARSING)
            result = self._parser.parse_incremental(
                file_path,
                last_offset,
                final=final,
                progress=lambda p: self._log_progress(session_id, p),
            )

            new_records: list[ParsedRecord] = []
            for message in result.new_messages:
                if message.offset < last_offset:
                    Log.debug(
                        f"Session {session_id}: dropping record at offset {message.offset} "
                        f"already emitted before {last_offset}"
                    )
                    continue
                record = self._build_record(session, message)
                self._store.append_record(session_id, record)
                new_records.append(record)

            self._offsets.set(session_id, result.resume_offset)
            Log.info(
                f"Parsed {len(new_records)} new records for session {session_id} "
                f"({result.skipped_count} skipped). Total: {session.parsed_record_count}"
            )
            if new_records:
                self._notify(self._notifier.notify_new_records, session_id, new_records)

            status = self._next_status(session, result.resume_offset, result.has_more_data)
            self._store.update_status(session_id, status)
            self._notify(
                self._notifier.notify_status, session_id, status, session.parsed_record_count
            )
            return bool(new_records)
        except Exception as exc:
            Log.exception(f"Error parsing chunks for session {session_id}: {exc}")
            self._store.update_status(
                session_id, UploadStatus.FAILED, f"Parsing error: {exc}"
            )
            return False

    def _is_parseable(self, session: UploadSession) -> bool:
        extension = self._settings.mailbox_extension.lower()
        return session.file_name.lower().endswith(extension)

    @staticmethod
    def _next_status(
        session: UploadSession, resume_offset: int, has_more_data: bool
    ) -> UploadStatus:
        # upload_complete is read after the parse; the last chunk may have landed meanwhile.
        if not session.upload_complete:
            return UploadStatus.IN_PROGRESS
        if not has_more_data and resume_offset >= session.uploaded_size:
            return UploadStatus.PARSE_COMPLETED
        return UploadStatus.COMPLETED

    def _build_record(self, session: UploadSession, message: DecodedMessage) -> ParsedRecord:
        body = message.text_body or message.html_body or "(No content)"
        return ParsedRecord(
            subject=message.subject or "(No Subject)",
            sender=message.sender or "Unknown",
            recipient=message.recipient or "",
            date=message.date,
            has_attachments=message.has_attachments,
            body=truncate_body(body, self._settings.body_excerpt_max_chars),
            index=session.parsed_record_count,
        )

    def _parse_lock(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._parse_locks.setdefault(session_id, threading.Lock())

    def _on_session_deleted(self, session_id: str) -> None:
        self._offsets.remove(session_id)
        with self._locks_guard:
            self._parse_locks.pop(session_id, None)

    @staticmethod
    def _log_progress(session_id: str, progress: ParseProgress) -> None:
        Log.debug(f"Parsing progress for session {session_id}: {progress.message}")

    @staticmethod
    def _notify(send: Callable[..., None], *args: object) -> None:
        try:
            send(*args)
        except Exception as exc:
            Log.warning(f"Parse notification failed: {exc}")
