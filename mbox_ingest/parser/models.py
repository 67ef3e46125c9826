from dataclasses import dataclass, field

from mbox_ingest.decoding.models import DecodedMessage


@dataclass(frozen=True)
class MboxRecord:
    """One framed record: raw bytes and their [start, end) span in the file.

    terminated is True when another marker line follows the record, which
    proves the record is whole.
    """

    data: bytes
    start: int
    end: int
    terminated: bool = False


@dataclass(frozen=True)
class ParseProgress:
    """Progress snapshot reported while a parse is running."""

    bytes_processed: int
    total_bytes: int
    parsed_count: int
    skipped_count: int
    message: str = ""


@dataclass
class IncrementalParseResult:
    """Outcome of one incremental parse invocation."""

    new_messages: list[DecodedMessage] = field(default_factory=list)
    resume_offset: int = 0
    skipped_count: int = 0
    has_more_data: bool = False

    @property
    def parsed_count(self) -> int:
        return len(self.new_messages)
