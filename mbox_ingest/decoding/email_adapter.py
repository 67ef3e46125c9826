from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parsedate_to_datetime

from mbox_ingest.decoding.base import BaseMessageDecoder, ensure_header_block, strip_envelope
from mbox_ingest.decoding.exceptions import MessageDecodeError
from mbox_ingest.decoding.models import DecodedMessage


class EmailLibAdapter(BaseMessageDecoder):
    """Decodes mailbox records using the standard library email package."""

    def __init__(self) -> None:
        self._parser = BytesParser(policy=policy.default)

    def decode(self, record: bytes) -> DecodedMessage:
        message_bytes = strip_envelope(record)
        ensure_header_block(message_bytes)
        if not message_bytes.strip():
            return DecodedMessage()
        try:
            msg = self._parser.parsebytes(message_bytes)
            return DecodedMessage(
                subject=_header(msg, "Subject"),
                sender=_header(msg, "From"),
                recipient=_header(msg, "To"),
                date=_parse_date(_header(msg, "Date")),
                has_attachments=any(True for _ in msg.iter_attachments()),
                text_body=_body(msg, "plain"),
                html_body=_body(msg, "html"),
            )
        except MessageDecodeError:
            raise
        except Exception as exc:
            raise MessageDecodeError(f"email decoding failed: {exc}") from exc


def _header(msg: EmailMessage, name: str) -> str | None:
    value = msg.get(name)
    if value is None:
        return None
    return str(value).strip() or None


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def _body(msg: EmailMessage, subtype: str) -> str | None:
    part = msg.get_body(preferencelist=(subtype,))
    if part is None:
        return None
    try:
        content = part.get_content()
    except (LookupError, ValueError):
        payload = part.get_payload(decode=True) or b""
        content = payload.decode("utf-8", errors="replace")
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return content if isinstance(content, str) else None
