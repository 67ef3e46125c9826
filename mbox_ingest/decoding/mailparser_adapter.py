import mailparser

from mbox_ingest.decoding.base import BaseMessageDecoder, ensure_header_block, strip_envelope
from mbox_ingest.decoding.exceptions import MessageDecodeError
from mbox_ingest.decoding.models import DecodedMessage


class MailParserAdapter(BaseMessageDecoder):
    """Decodes mailbox records using mail-parser."""

    def decode(self, record: bytes) -> DecodedMessage:
        message_bytes = strip_envelope(record)
        ensure_header_block(message_bytes)
        if not message_bytes.strip():
            return DecodedMessage()
        try:
            parsed = mailparser.parse_from_bytes(message_bytes)
            return DecodedMessage(
                subject=parsed.subject or None,
                sender=_addresses(parsed.from_),
                recipient=_addresses(parsed.to),
                date=parsed.date or None,
                has_attachments=bool(parsed.attachments),
                text_body="\n".join(parsed.text_plain) or None,
                html_body="\n".join(parsed.text_html) or None,
            )
        except MessageDecodeError:
            raise
        except Exception as exc:
            raise MessageDecodeError(f"mail-parser decoding failed: {exc}") from exc


def _addresses(pairs: list[tuple[str, str]] | None) -> str | None:
    if not pairs:
        return None
    formatted = [f"{name} <{addr}>" if name else addr for name, addr in pairs if addr]
    return ", ".join(formatted) or None
