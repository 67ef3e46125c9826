from collections.abc import Iterator
from typing import BinaryIO

from mbox_ingest.decoding.base import MARKER
from mbox_ingest.parser.models import MboxRecord

_BLANK_LINES = (b"\r\n\r\n", b"\n\n")


def iter_records(fh: BinaryIO, start: int, end: int) -> Iterator[MboxRecord]:
    """Split the byte range [start, end) of an mbox file into records.

    A record begins at a line starting with the "From " marker and runs up to
    the next such line. Bytes before the first marker form a record of their
    own. Nothing past end is read, even if the file has grown since.
    """
    fh.seek(start)
    position = start
    record_start = start
    lines: list[bytes] = []
    while position < end:
        line = fh.readline(end - position)
        if not line:
            break
        if line.startswith(MARKER) and lines:
            yield MboxRecord(b"".join(lines), record_start, position, terminated=True)
            lines = []
            record_start = position
        lines.append(line)
        position += len(line)
    if lines:
        yield MboxRecord(b"".join(lines), record_start, position)


def is_complete(record: MboxRecord, final: bool) -> bool:
    """Decide whether a record can be decoded now.

    A record followed by another marker is whole. So is anything once the
    upload is final. An unterminated tail counts as whole only when it ends
    on a blank line that closes a body, not the header/body separator.

    The blank-line rule is a guess: a paragraph break inside a body that lands
    exactly at the end of the available data also passes. Such a record is
    decoded with its body cut at that break, and the later paragraphs are not
    recovered once the rest of the record arrives.
    """
    if record.terminated or final:
        return True
    data = record.data
    for blank in _BLANK_LINES:
        if data.endswith(blank):
            header_end = data.find(blank)
            return header_end + len(blank) < len(data)
    return False
