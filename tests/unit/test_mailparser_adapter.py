import pytest

pytest.importorskip("mailparser")

from mbox_ingest.decoding.exceptions import MalformedMessageError
from mbox_ingest.decoding.mailparser_adapter import MailParserAdapter
from tests.conftest import GARBAGE_RECORD, build_message


class TestMailParserDecode:
    def test_extracts_subject_and_addresses(self) -> None:
        message = MailParserAdapter().decode(build_message(4))

        assert message.subject == "Message 4"
        assert message.sender is not None
        assert "alice@example.com" in message.sender
        assert message.recipient is not None
        assert "bob@example.com" in message.recipient

    def test_extracts_plain_text_body(self) -> None:
        message = MailParserAdapter().decode(build_message(1, body="Hello there"))

        assert message.text_body is not None
        assert "Hello there" in message.text_body
        assert message.has_attachments is False

    def test_garbage_is_malformed(self) -> None:
        with pytest.raises(MalformedMessageError):
            MailParserAdapter().decode(GARBAGE_RECORD)

    def test_marker_without_content_is_empty_message(self) -> None:
        message = MailParserAdapter().decode(b"From alice@example.com Mon Jan  1 10:00:00 2024\n")

        assert message.subject is None
