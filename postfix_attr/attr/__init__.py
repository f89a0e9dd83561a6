from postfix_attr.attr.client import AttrClient
from postfix_attr.attr.codec import (
    AttrCodec,
    decode_0,
    decode_64,
    decode_plain,
    encode_0,
    encode_64,
    encode_plain,
    get_codec,
)
from postfix_attr.attr.constants import Codec
from postfix_attr.attr.errors import (
    AttrConnectionError,
    AttrError,
    AttrIOError,
    ConfigurationError,
    MalformedInputError,
)

__all__ = [
    "AttrClient",
    "AttrCodec",
    "AttrConnectionError",
    "AttrError",
    "AttrIOError",
    "Codec",
    "ConfigurationError",
    "MalformedInputError",
    "decode_0",
    "decode_64",
    "decode_plain",
    "encode_0",
    "encode_64",
    "encode_plain",
    "get_codec",
]
