__version__ = "0.3.0"

from postfix_attr.attr import (
    AttrClient,
    AttrCodec,
    AttrConnectionError,
    AttrError,
    AttrIOError,
    Codec,
    ConfigurationError,
    MalformedInputError,
    get_codec,
)

__all__ = [
    "__version__",
    "AttrClient",
    "AttrCodec",
    "AttrConnectionError",
    "AttrError",
    "AttrIOError",
    "Codec",
    "ConfigurationError",
    "MalformedInputError",
    "get_codec",
]
