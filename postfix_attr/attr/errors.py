from __future__ import annotations


class AttrError(Exception):
    """Base class for every error raised by the attribute client."""


class ConfigurationError(AttrError):
    pass


class AttrConnectionError(AttrError, ConnectionError):
    def __init__(self, target: str, message: str) -> None:
        super().__init__(f"can't connect to '{target}': {message}")
        self.target = target


class AttrIOError(AttrError, OSError):
    def __init__(self, target: str, message: str) -> None:
        super().__init__(f"I/O error talking to '{target}': {message}")
        self.target = target


class MalformedInputError(AttrError, ValueError):
    """Raised by strict decoding when a section can't be read as whole pairs.

    ``pairs`` holds what could be recovered from the section before the
    malformed token or line, so callers can still use a truncated record.
    """

    def __init__(
        self, message: str, *, section: int, pairs: list[tuple[bytes, bytes]]
    ) -> None:
        super().__init__(f"section {section}: {message}")
        self.section = section
        self.pairs = pairs
