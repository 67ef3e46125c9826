import re
from abc import ABC, abstractmethod

from mbox_ingest.decoding.exceptions import MalformedMessageError
from mbox_ingest.decoding.models import DecodedMessage

MARKER = b"From "

_HEADER_LINE = re.compile(rb"^[\x21-\x39\x3b-\x7e]+[ \t]*:")


def strip_envelope(record: bytes) -> bytes:
    """Drop the leading "From " marker line, if present."""
    if not record.startswith(MARKER):
        return record
    newline = record.find(b"\n")
    return b"" if newline == -1 else record[newline + 1 :]


def ensure_header_block(message: bytes) -> None:
    """Reject non-blank content whose first line is not an RFC 5322 header.

    Raises:
        MalformedMessageError: if the message has content but no headers.
    """
    if not message.strip():
        return
    first_line = message.split(b"\n", 1)[0]
    if not _HEADER_LINE.match(first_line):
        raise MalformedMessageError(
            f"record does not start with a header line: {first_line[:40]!r}"
        )


class BaseMessageDecoder(ABC):
    """Contract for all mailbox message decoding adapters."""

    @abstractmethod
    def decode(self, record: bytes) -> DecodedMessage:
        """Decode one framed mailbox record.

        Args:
            record: Raw record bytes, normally starting with the "From " line.
                A record with no content after the marker decodes to an
                empty message.

        Returns:
            DecodedMessage with headers, bodies and attachment presence.

        Raises:
            MessageDecodeError: if the record cannot be decoded.
        """
