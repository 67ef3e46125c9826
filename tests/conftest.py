from collections.abc import Callable

import pytest


def build_message(
    index: int,
    body: str | None = None,
    sender: str = "alice@example.com",
    recipient: str = "bob@example.com",
) -> bytes:
    """Build one mbox record (marker line, headers, body, closing blank line)."""
    text = body if body is not None else f"Body of message {index}"
    return (
        f"From {sender} Mon Jan  1 10:00:00 2024\n"
        f"From: Alice <{sender}>\n"
        f"To: {recipient}\n"
        f"Subject: Message {index}\n"
        f"Date: Mon, 01 Jan 2024 10:{index % 60:02d}:00 +0000\n"
        f"\n"
        f"{text}\n"
        f"\n"
    ).encode()


def build_sized_message(index: int, size: int) -> bytes:
    """Build a record padded to exactly size bytes."""
    head = build_message(index, body="")[: -len(b"\n\n")]
    filler = size - len(head) - len(b"\n\n")
    if filler < 1:
        raise ValueError(f"size {size} is too small for a record")
    return head + b"y" * filler + b"\n\n"


GARBAGE_RECORD = b"From garbage@example.com Mon Jan  1 10:00:00 2024\n\x00\x01\xff\xfe binary junk !!\n\n"


@pytest.fixture()
def make_message() -> Callable[..., bytes]:
    return build_message


@pytest.fixture()
def sample_mbox_bytes() -> bytes:
    """Three well-formed records."""
    return build_message(1) + build_message(2) + build_message(3)


@pytest.fixture()
def malformed_mbox_bytes() -> bytes:
    """A good record, a garbage blob between two markers, another good record."""
    return build_message(1) + GARBAGE_RECORD + build_message(2)
