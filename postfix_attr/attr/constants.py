from __future__ import annotations

from enum import StrEnum
from typing import Final


class Codec(StrEnum):
    NULL = "0"
    BASE64 = "64"
    PLAIN = "plain"


class SendState(StrEnum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    ENCODING = "ENCODING"
    WRITING = "WRITING"
    READING = "READING_UNTIL_EOF"
    DECODING = "DECODING"
    CLOSED = "CLOSED"
    FAILED = "FAILED"


# Unknown or missing codec names fall back to this one instead of failing.
DEFAULT_CODEC: Final[Codec] = Codec.PLAIN

NUL: Final[bytes] = b"\0"
NEWLINE: Final[bytes] = b"\n"
PLAIN_JOINER: Final[bytes] = b"="
BASE64_JOINER: Final[bytes] = b":"

READ_CHUNK_BYTES: Final[int] = 64 * 1024
