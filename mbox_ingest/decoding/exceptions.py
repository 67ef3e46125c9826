class MessageDecodeError(Exception):
    """Raised when a single mailbox record cannot be decoded."""


class MalformedMessageError(MessageDecodeError):
    """Raised when a record carries content but no parseable header block."""
