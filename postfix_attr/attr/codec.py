"""Encoders and decoders for the Postfix attribute wire formats.

Three formats exist, all describing an ordered list of key/value pairs:

    0       key\\0value\\0 ...            section ends with an extra \\0
    64      b64(key):b64(value)\\n ...    section ends with an extra \\n
    plain   key=value\\n ...              section ends with an extra \\n

A buffer may hold several sections back to back; decoders return one record per
section. Only the ``64`` format can carry delimiter bytes inside keys or values.
``plain`` has no escaping at all, so an ``=`` or newline inside a key or value
corrupts the record on decode.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from postfix_attr.attr.constants import (
    BASE64_JOINER,
    DEFAULT_CODEC,
    NEWLINE,
    NUL,
    PLAIN_JOINER,
    Codec,
)
from postfix_attr.attr.errors import MalformedInputError

AttrPair = tuple[bytes, bytes]
AttrRecord = list[AttrPair]
AttrInput = Mapping[Any, Any] | Iterable[tuple[Any, Any]]

# Zero-width split points right after a doubled separator, so each section keeps
# its own terminator.
_NULL_SECTION_RE = re.compile(rb"(?<=\x00\x00)")
_LINE_SECTION_RE = re.compile(rb"(?<=\n\n)")
_PLAIN_TOKEN_RE = re.compile(rb"[\n=]")


def to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, bytearray | memoryview):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    return str(value).encode("utf-8")


def iter_pairs(record: AttrInput) -> Iterator[AttrPair]:
    items = record.items() if isinstance(record, Mapping) else record
    for key, value in items:
        yield to_bytes(key), to_bytes(value)


def _split_sections(data: bytes, pattern: re.Pattern[bytes]) -> list[bytes]:
    if not data:
        return []
    return [s for s in pattern.split(data) if s]


def _strip_terminator(section: bytes, sep: bytes) -> bytes:
    if section.endswith(sep + sep):
        return section[:-2]
    if section.endswith(sep):
        return section[:-1]
    return section


def _pair_tokens(tokens: list[bytes], *, index: int, strict: bool) -> AttrRecord:
    pairs = list(zip(tokens[0::2], tokens[1::2], strict=False))
    if len(tokens) % 2:
        if strict:
            raise MalformedInputError(
                f"odd number of tokens ({len(tokens)})", section=index, pairs=pairs
            )
        logger.warning(
            f"Dropping dangling attribute token {tokens[-1]!r} in section {index}"
        )
    return pairs


def _decode_tokenized(
    data: bytes,
    *,
    pattern: re.Pattern[bytes],
    sep: bytes,
    tokenize: Callable[[bytes], list[bytes]],
    strict: bool,
) -> list[AttrRecord]:
    sections: list[AttrRecord] = []
    for section in _split_sections(data, pattern):
        body = _strip_terminator(section, sep)
        if not body:
            continue
        pairs = _pair_tokens(tokenize(body), index=len(sections), strict=strict)
        if pairs:
            sections.append(pairs)
    return sections


def encode_0(record: AttrInput) -> bytes:
    out = bytearray()
    for key, value in iter_pairs(record):
        out += key + NUL + value + NUL
    out += NUL
    return bytes(out)


def decode_0(data: bytes, *, strict: bool = False) -> list[AttrRecord]:
    return _decode_tokenized(
        data,
        pattern=_NULL_SECTION_RE,
        sep=NUL,
        tokenize=lambda body: body.split(NUL),
        strict=strict,
    )


def encode_64(record: AttrInput) -> bytes:
    out = bytearray()
    for key, value in iter_pairs(record):
        out += base64.b64encode(key) + BASE64_JOINER + base64.b64encode(value) + NEWLINE
    out += NEWLINE
    return bytes(out)


def _decode_64_line(line: bytes) -> AttrPair | None:
    parts = line.split(BASE64_JOINER)
    if len(parts) != 2:
        return None
    try:
        key, value = (base64.b64decode(p, validate=True) for p in parts)
    except binascii.Error:
        return None
    return key, value


def decode_64(data: bytes, *, strict: bool = False) -> list[AttrRecord]:
    sections: list[AttrRecord] = []
    for section in _split_sections(data, _LINE_SECTION_RE):
        index = len(sections)
        pairs: AttrRecord = []
        for line in section.split(NEWLINE):
            if not line:
                continue
            pair = _decode_64_line(line)
            if pair is None:
                if strict:
                    raise MalformedInputError(
                        f"not a base64 key:value line: {line!r}",
                        section=index,
                        pairs=pairs,
                    )
                logger.warning(f"Skipping malformed base64 attribute line {line!r}")
                continue
            pairs.append(pair)
        if pairs:
            sections.append(pairs)
    return sections


def encode_plain(record: AttrInput) -> bytes:
    out = bytearray()
    for key, value in iter_pairs(record):
        out += key + PLAIN_JOINER + value + NEWLINE
    out += NEWLINE
    return bytes(out)


def decode_plain(data: bytes, *, strict: bool = False) -> list[AttrRecord]:
    return _decode_tokenized(
        data,
        pattern=_LINE_SECTION_RE,
        sep=NEWLINE,
        tokenize=_PLAIN_TOKEN_RE.split,
        strict=strict,
    )


@dataclass(frozen=True)
class AttrCodec:
    name: Codec
    encoder: Callable[[AttrInput], bytes]
    decoder: Callable[..., list[AttrRecord]]

    def encode(self, record: AttrInput) -> bytes:
        return self.encoder(record)

    def decode(self, data: bytes, *, strict: bool = False) -> list[AttrRecord]:
        return self.decoder(bytes(data), strict=strict)


CODECS: dict[Codec, AttrCodec] = {
    Codec.NULL: AttrCodec(Codec.NULL, encode_0, decode_0),
    Codec.BASE64: AttrCodec(Codec.BASE64, encode_64, decode_64),
    Codec.PLAIN: AttrCodec(Codec.PLAIN, encode_plain, decode_plain),
}


def get_codec(name: str | int | Codec | None = None) -> AttrCodec:
    """Return the codec registered under ``name``, or the default codec.

    Missing and unrecognised names are not an error; they select ``plain``.
    """
    try:
        codec = Codec(str(name))
    except ValueError:
        if name is not None:
            logger.debug(f"Unknown attribute codec {name!r}, using {DEFAULT_CODEC}")
        codec = DEFAULT_CODEC
    return CODECS[codec]
