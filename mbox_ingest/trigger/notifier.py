from abc import ABC, abstractmethod

from mbox_ingest.logging.logger import Log
from mbox_ingest.sessions.models import ParsedRecord, UploadStatus


class BaseParsingNotifier(ABC):
    """Contract for pushing parse events to subscribers of a session.

    Delivery is best-effort; implementations may drop events.
    """

    @abstractmethod
    def notify_new_records(self, session_id: str, records: list[ParsedRecord]) -> None:
        """Deliver records parsed for a session since the last notification."""

    @abstractmethod
    def notify_status(self, session_id: str, status: UploadStatus, record_count: int) -> None:
        """Deliver a parse status change together with the running record count."""


class LogNotifier(BaseParsingNotifier):
    """Notifier that only writes events to the log."""

    def notify_new_records(self, session_id: str, records: list[ParsedRecord]) -> None:
        Log.info(f"Session {session_id}: {len(records)} new records parsed")

    def notify_status(self, session_id: str, status: UploadStatus, record_count: int) -> None:
        Log.info(f"Session {session_id}: parsing status {status.value}, {record_count} records")
