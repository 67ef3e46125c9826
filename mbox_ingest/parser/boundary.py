from typing import BinaryIO

from mbox_ingest.decoding.base import MARKER


def find_resume_boundary(fh: BinaryIO, start_offset: int, lookback: int) -> int | None:
    """Locate the last marker line that begins at or before start_offset.

    Only the window [start_offset - lookback, start_offset] is searched. A
    marker counts when it directly follows a newline or sits at the window
    start.

    Returns:
        Absolute file offset of the marker, or None if the window has none.
    """
    window_start = max(0, start_offset - lookback)
    fh.seek(window_start)
    window = fh.read(start_offset - window_start + len(MARKER))

    limit = start_offset - window_start
    pos = window.rfind(MARKER, 0, limit + len(MARKER))
    while pos != -1:
        if pos == 0 or window[pos - 1 : pos] == b"\n":
            return window_start + pos
        pos = window.rfind(MARKER, 0, pos + len(MARKER) - 1)
    return None
