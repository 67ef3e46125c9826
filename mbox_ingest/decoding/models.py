from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DecodedMessage:
    """Structured view of one mailbox record, as produced by a decoder."""

    subject: str | None = None
    sender: str | None = None
    recipient: str | None = None
    date: datetime | None = None
    has_attachments: bool = False
    text_body: str | None = None
    html_body: str | None = None
    offset: int = 0
