import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UploadStatus(str, Enum):
    """Lifecycle of an upload session.

    InProgress -> Completed on the last chunk; Parsing while a parse runs;
    ParseCompleted once the finished file has no unparsed bytes left;
    Failed on an append or parse error.
    """

    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    PARSING = "Parsing"
    PARSE_COMPLETED = "ParseCompleted"


@dataclass(frozen=True)
class ParsedRecord:
    """Display summary of one message extracted from a session's mailbox."""

    subject: str
    sender: str
    recipient: str
    date: datetime | None
    has_attachments: bool
    body: str
    index: int


@dataclass
class UploadSession:
    """One tracked upload-and-parse lifecycle for a single file."""

    id: str
    file_name: str
    total_size: int
    temp_file_path: str
    uploaded_size: int = 0
    upload_complete: bool = False
    status: UploadStatus = UploadStatus.IN_PROGRESS
    created_at: datetime = field(default_factory=utc_now)
    last_chunk_at: datetime = field(default_factory=utc_now)
    parsed_record_count: int = 0
    parsed_records: list[ParsedRecord] = field(default_factory=list)
    error_message: str | None = None

    @property
    def progress_percentage(self) -> float:
        if self.total_size <= 0:
            return 0.0
        return self.uploaded_size / self.total_size * 100

    @property
    def is_completed(self) -> bool:
        return self.status == UploadStatus.COMPLETED

    @property
    def has_error(self) -> bool:
        return self.status == UploadStatus.FAILED


@dataclass(frozen=True)
class UploadSessionSummary:
    """Snapshot of a session as exposed to the transport layer."""

    id: str
    file_name: str
    total_size: int
    status: UploadStatus
    progress_percentage: float
    parsed_record_count: int
    created_at: datetime
    error_message: str | None = None

    @classmethod
    def from_session(cls, session: UploadSession) -> "UploadSessionSummary":
        return cls(
            id=session.id,
            file_name=session.file_name,
            total_size=session.total_size,
            status=session.status,
            progress_percentage=session.progress_percentage,
            parsed_record_count=session.parsed_record_count,
            created_at=session.created_at,
            error_message=session.error_message,
        )


@dataclass(frozen=True)
class RecordPage:
    """One page of parsed records plus pagination totals."""

    records: list[ParsedRecord]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


@dataclass(frozen=True)
class ChunkAppendResult:
    """Outcome of accepting one uploaded chunk."""

    success: bool
    message: str
    progress_percentage: float = 0.0
    parsed_record_count: int = 0
