import dataclasses
import os
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from mbox_ingest.decoding.base import MARKER, BaseMessageDecoder
from mbox_ingest.decoding.exceptions import MessageDecodeError
from mbox_ingest.logging.logger import Log
from mbox_ingest.parser.boundary import find_resume_boundary
from mbox_ingest.parser.exceptions import ParseFileError
from mbox_ingest.parser.models import IncrementalParseResult, ParseProgress
from mbox_ingest.parser.reader import is_complete, iter_records

ProgressSink = Callable[[ParseProgress], None]


class IncrementalParser:
    """Extracts newly available records from a growing mbox file.

    Each call reads from a previously returned offset to the end of the file
    as it was when the call started. When resuming past byte zero, the parser
    looks back up to lookback_bytes for the nearest marker line instead of
    trusting the offset blindly. If the window holds no marker, the fragment at
    the offset is skipped rather than decoded. Records the decoder rejects are
    skipped and counted once, by the call whose range they start in. A
    trailing record that may still be growing is left for the next call, and
    the returned resume offset points at its first byte.
    """

    def __init__(
        self,
        decoder: BaseMessageDecoder,
        lookback_bytes: int = 64 * 1024,
        progress_every: int = 50,
    ) -> None:
        self._decoder = decoder
        self._lookback_bytes = lookback_bytes
        self._progress_every = progress_every

    def parse_incremental(
        self,
        file_path: str | Path,
        start_offset: int,
        final: bool = False,
        progress: ProgressSink | None = None,
    ) -> IncrementalParseResult:
        """Decode every complete record between start_offset and end of file.

        Args:
            file_path: Mailbox file being appended to.
            start_offset: Offset returned by the previous call, or 0.
            final: True once the upload is finished, so the trailing record
                is accepted even without a closing blank line.
            progress: Optional callable receiving ParseProgress snapshots.

        Raises:
            ParseFileError: if the file cannot be opened or read.
        """
        try:
            file_length = os.path.getsize(file_path)
        except OSError as exc:
            raise ParseFileError(f"Cannot stat mailbox file {file_path}: {exc}") from exc

        if file_length <= start_offset:
            return IncrementalParseResult(resume_offset=start_offset)

        try:
            with open(file_path, "rb") as fh:
                return self._parse_range(fh, start_offset, file_length, final, progress)
        except OSError as exc:
            raise ParseFileError(f"Failed to read mailbox file {file_path}: {exc}") from exc

    def _parse_range(
        self,
        fh: BinaryIO,
        start_offset: int,
        file_length: int,
        final: bool,
        progress: ProgressSink | None,
    ) -> IncrementalParseResult:
        read_from = start_offset
        blind_resume = False
        if start_offset > 0:
            boundary = find_resume_boundary(fh, start_offset, self._lookback_bytes)
            if boundary is None:
                Log.debug(
                    f"No marker within {self._lookback_bytes} bytes before offset "
                    f"{start_offset}, resuming from the offset itself"
                )
                blind_resume = True
            else:
                read_from = boundary

        result = IncrementalParseResult(resume_offset=read_from)
        for record in iter_records(fh, read_from, file_length):
            if not is_complete(record, final):
                break
            result.resume_offset = record.end
            if not record.data.strip():
                continue
            if blind_resume and record.start == read_from and not record.data.startswith(MARKER):
                # Tail of a record whose marker lies outside the lookback window.
                result.skipped_count += 1
                Log.debug(f"Skipped record fragment at offset {record.start}")
                continue
            try:
                message = self._decoder.decode(record.data)
            except MessageDecodeError as exc:
                # Records before start_offset were already counted by an earlier call.
                if record.start >= start_offset:
                    result.skipped_count += 1
                Log.debug(f"Skipped malformed record at offset {record.start}: {exc}")
            else:
                result.new_messages.append(dataclasses.replace(message, offset=record.start))
            self._maybe_report(progress, result, file_length)

        result.resume_offset = max(result.resume_offset, start_offset)
        result.has_more_data = result.resume_offset < file_length
        if progress is not None:
            progress(self._snapshot(result, file_length, "Finished parsing available data"))
        return result

    def _maybe_report(
        self,
        progress: ProgressSink | None,
        result: IncrementalParseResult,
        file_length: int,
    ) -> None:
        if progress is None or self._progress_every <= 0:
            return
        seen = result.parsed_count + result.skipped_count
        if seen and seen % self._progress_every == 0:
            progress(self._snapshot(result, file_length, f"Parsed {seen} records..."))

    @staticmethod
    def _snapshot(
        result: IncrementalParseResult, file_length: int, message: str
    ) -> ParseProgress:
        return ParseProgress(
            bytes_processed=result.resume_offset,
            total_bytes=file_length,
            parsed_count=result.parsed_count,
            skipped_count=result.skipped_count,
            message=message,
        )
