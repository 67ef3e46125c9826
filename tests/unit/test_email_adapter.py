from datetime import datetime, timezone

import pytest

from mbox_ingest.decoding.email_adapter import EmailLibAdapter
from mbox_ingest.decoding.exceptions import MalformedMessageError, MessageDecodeError
from tests.conftest import GARBAGE_RECORD, build_message

MULTIPART_RECORD = (
    b"From carol@example.com Mon Jan  1 10:00:00 2024\n"
    b"From: carol@example.com\n"
    b"To: dave@example.com\n"
    b"Subject: Report attached\n"
    b"MIME-Version: 1.0\n"
    b'Content-Type: multipart/mixed; boundary="XYZ"\n'
    b"\n"
    b"--XYZ\n"
    b"Content-Type: text/html; charset=utf-8\n"
    b"\n"
    b"<p>See attached</p>\n"
    b"--XYZ\n"
    b"Content-Type: application/pdf\n"
    b'Content-Disposition: attachment; filename="report.pdf"\n'
    b"Content-Transfer-Encoding: base64\n"
    b"\n"
    b"JVBERi0xLjQK\n"
    b"--XYZ--\n"
    b"\n"
)


class TestDecodeHeaders:
    def test_extracts_summary_fields(self) -> None:
        message = EmailLibAdapter().decode(build_message(7))

        assert message.subject == "Message 7"
        assert message.sender == "Alice <alice@example.com>"
        assert message.recipient == "bob@example.com"
        assert message.date == datetime(2024, 1, 1, 10, 7, tzinfo=timezone.utc)
        assert message.has_attachments is False

    def test_extracts_plain_text_body(self) -> None:
        message = EmailLibAdapter().decode(build_message(1, body="Hello there"))

        assert message.text_body is not None
        assert message.text_body.startswith("Hello there")
        assert message.html_body is None

    def test_unparseable_date_becomes_none(self) -> None:
        record = build_message(1).replace(
            b"Date: Mon, 01 Jan 2024 10:01:00 +0000", b"Date: sometime last week"
        )

        message = EmailLibAdapter().decode(record)

        assert message.date is None

    def test_record_without_marker_line_is_decoded(self) -> None:
        record = build_message(3).split(b"\n", 1)[1]

        message = EmailLibAdapter().decode(record)

        assert message.subject == "Message 3"


class TestDecodeMultipart:
    def test_detects_attachment_and_html_body(self) -> None:
        message = EmailLibAdapter().decode(MULTIPART_RECORD)

        assert message.has_attachments is True
        assert message.html_body is not None
        assert "See attached" in message.html_body
        assert message.text_body is None


class TestDecodeEdgeCases:
    def test_marker_without_content_is_empty_message(self) -> None:
        message = EmailLibAdapter().decode(b"From alice@example.com Mon Jan  1 10:00:00 2024\n")

        assert message.subject is None
        assert message.text_body is None

    def test_garbage_is_malformed(self) -> None:
        with pytest.raises(MalformedMessageError):
            EmailLibAdapter().decode(GARBAGE_RECORD)

    def test_malformed_is_a_decode_error(self) -> None:
        with pytest.raises(MessageDecodeError):
            EmailLibAdapter().decode(b"From x\nthis is not a header line\n\n")
