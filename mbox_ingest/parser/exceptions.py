class ParserError(Exception):
    """Base exception for all incremental parser errors."""


class ParseFileError(ParserError):
    """Raised when the mailbox file cannot be opened or read."""
