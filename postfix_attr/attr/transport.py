from __future__ import annotations

import errno
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from postfix_attr.attr.constants import READ_CHUNK_BYTES
from postfix_attr.attr.errors import ConfigurationError

if TYPE_CHECKING:
    from postfix_attr.core.config import ClientConfig


class Connection(Protocol):
    def write_all(self, data: bytes) -> None: ...

    def read_to_end(self) -> bytes: ...

    def close(self) -> None: ...


class AttrTransport(Protocol):
    def connect(self) -> Connection: ...

    def describe(self) -> str: ...


@dataclass
class SocketConnection:
    sock: socket.socket
    closed: bool = field(default=False, init=False)

    def write_all(self, data: bytes) -> None:
        self.sock.sendall(data)
        try:
            self.sock.shutdown(socket.SHUT_WR)
        except OSError as exc:
            # Some platforms raise ENOTCONN here even after a successful send.
            # The request is self-terminating, so the half-close is optional.
            if exc.errno not in {errno.ENOTCONN, errno.EINVAL}:
                raise

    def read_to_end(self) -> bytes:
        buf = bytearray()
        while True:
            chunk = self.sock.recv(READ_CHUNK_BYTES)
            if not chunk:
                break
            buf += chunk
        return bytes(buf)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.sock.close()


@dataclass(frozen=True)
class UnixSocketTransport:
    sock_path: Path
    timeout_s: float | None = None

    def connect(self) -> SocketConnection:
        s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            s.settimeout(self.timeout_s)
            s.connect(str(self.sock_path))
        except OSError:
            s.close()
            raise
        return SocketConnection(s)

    def describe(self) -> str:
        return f"unix:{self.sock_path}"


def resolve_port(port: int | str) -> int:
    if isinstance(port, int):
        return port
    port = port.strip()
    if port.isdigit():
        return int(port)
    # Raises OSError for unknown service names.
    return socket.getservbyname(port, "tcp")


def parse_inet_target(target: str) -> tuple[str, int | str]:
    """Split ``host:port`` into its parts.

    IPv6 literals must be bracketed (``[::1]:10025``). The port is returned as
    given; service names are resolved when connecting.
    """
    raw = str(target).strip()
    if raw.startswith("["):
        host, sep, rest = raw[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ConfigurationError(f"invalid inet target: {target!r}")
        port = rest[1:]
    else:
        host, sep, port = raw.rpartition(":")
        if not sep:
            raise ConfigurationError(f"inet target must be host:port, got {target!r}")
    if not host or not port:
        raise ConfigurationError(f"inet target must be host:port, got {target!r}")
    return host, int(port) if port.isdigit() else port


@dataclass(frozen=True)
class InetSocketTransport:
    host: str
    port: int | str
    timeout_s: float | None = None

    @classmethod
    def from_target(
        cls, target: str, *, timeout_s: float | None = None
    ) -> InetSocketTransport:
        host, port = parse_inet_target(target)
        return cls(host=host, port=port, timeout_s=timeout_s)

    def connect(self) -> SocketConnection:
        s = socket.create_connection(
            (self.host, resolve_port(self.port)), timeout=self.timeout_s
        )
        return SocketConnection(s)

    def describe(self) -> str:
        return f"inet:{self.host}:{self.port}"


def transport_for(config: ClientConfig) -> AttrTransport:
    """Build the transport named by ``config``; a socket path wins over inet."""
    if config.path:
        return UnixSocketTransport(Path(config.path), timeout_s=config.timeout_s)
    if config.inet:
        return InetSocketTransport.from_target(config.inet, timeout_s=config.timeout_s)
    raise ConfigurationError("must have 'path' or 'inet' set to use send")
