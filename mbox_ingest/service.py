from pathlib import Path

from mbox_ingest.config.settings import Settings
from mbox_ingest.decoding.factory import MessageDecoderFactory
from mbox_ingest.logging.logger import Log
from mbox_ingest.parser.incremental import IncrementalParser
from mbox_ingest.sessions.models import ChunkAppendResult, RecordPage, UploadSessionSummary
from mbox_ingest.sessions.store import SessionStore
from mbox_ingest.trigger.advancer import ParseTrigger
from mbox_ingest.trigger.dispatcher import ParseDispatcher
from mbox_ingest.trigger.notifier import BaseParsingNotifier, LogNotifier
from mbox_ingest.trigger.offsets import ParseOffsetStore


class IngestService:
    """Session lifecycle operations offered to the transport layer.

    Chunk uploads are acknowledged as soon as the bytes are on disk; parsing
    is scheduled in the background and its progress is observed through
    get_session, list_records or the notifier.
    """

    def __init__(self, store: SessionStore, dispatcher: ParseDispatcher) -> None:
        self._store = store
        self._dispatcher = dispatcher

    @property
    def store(self) -> SessionStore:
        return self._store

    def create_session(self, file_name: str, total_size: int) -> str:
        return self._store.create(file_name, total_size)

    def upload_chunk(self, session_id: str, data: bytes, is_last: bool) -> ChunkAppendResult:
        """Append one chunk and schedule parsing without waiting for it."""
        if not data:
            return ChunkAppendResult(success=False, message="No chunk data provided")
        if self._store.get(session_id) is None:
            return ChunkAppendResult(success=False, message="Upload session not found")

        if not self._store.append(session_id, data, is_last):
            return ChunkAppendResult(success=False, message="Failed to process chunk")

        self.advance(session_id)

        session = self._store.get(session_id)
        return ChunkAppendResult(
            success=True,
            message="Chunk uploaded successfully",
            progress_percentage=session.progress_percentage if session else 0.0,
            parsed_record_count=session.parsed_record_count if session else 0,
        )

    def advance(self, session_id: str) -> None:
        """Fire-and-forget request to parse whatever is new for a session."""
        self._dispatcher.submit(session_id)

    def get_session(self, session_id: str) -> UploadSessionSummary | None:
        session = self._store.get(session_id)
        if session is None:
            return None
        return UploadSessionSummary.from_session(session)

    def list_sessions(self) -> list[UploadSessionSummary]:
        return self._store.list_all()

    def list_records(self, session_id: str, page: int = 1, page_size: int = 20) -> RecordPage:
        return RecordPage(
            records=self._store.list_records(session_id, page, page_size),
            total_count=self._store.record_count(session_id),
            page=page,
            page_size=page_size,
        )

    def delete_session(self, session_id: str) -> bool:
        return self._store.delete(session_id)

    def close(self) -> None:
        self._dispatcher.shutdown(wait=True)


def build_ingest_service(
    settings: Settings,
    temp_dir: Path | None = None,
    notifier: BaseParsingNotifier | None = None,
) -> IngestService:
    """Wire the store, parser, trigger and dispatcher from settings."""
    store = SessionStore(temp_dir if temp_dir is not None else Path(settings.upload_temp_dir))
    parser = IncrementalParser(
        decoder=MessageDecoderFactory.create(settings),
        lookback_bytes=settings.parse_lookback_bytes,
        progress_every=settings.parse_progress_every,
    )
    trigger = ParseTrigger(
        store=store,
        parser=parser,
        offsets=ParseOffsetStore(),
        notifier=notifier if notifier is not None else LogNotifier(),
        settings=settings,
    )
    dispatcher = ParseDispatcher(trigger, max_workers=settings.parse_max_workers)
    Log.info(f"Ingest service ready (decoder={settings.decoder_engine}, temp_dir={store.temp_dir})")
    return IngestService(store, dispatcher)
