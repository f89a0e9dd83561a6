from __future__ import annotations

import socket
from pathlib import Path

import pytest

from postfix_attr.attr.errors import ConfigurationError
from postfix_attr.attr.transport import (
    InetSocketTransport,
    SocketConnection,
    UnixSocketTransport,
    parse_inet_target,
    resolve_port,
    transport_for,
)
from postfix_attr.core.config import ClientConfig


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        ("localhost:9999", ("localhost", 9999)),
        ("127.0.0.1:10025", ("127.0.0.1", 10025)),
        ("mail.example.com:smtp", ("mail.example.com", "smtp")),
        ("[::1]:9999", ("::1", 9999)),
        (" localhost:25 ", ("localhost", 25)),
    ],
)
def test_parse_inet_target(target: str, expected: tuple) -> None:
    assert parse_inet_target(target) == expected


@pytest.mark.parametrize("target", ["localhost", "localhost:", ":25", "[::1]", "[::1]25", ""])
def test_parse_inet_target_rejects_incomplete(target: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_inet_target(target)


def test_resolve_port_numbers_and_names(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    assert resolve_port(25) == 25
    assert resolve_port("10025") == 10025

    monkeypatch.setattr(socket, "getservbyname", lambda name, proto: 587)
    assert resolve_port("submission") == 587


def test_resolve_port_unknown_service(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    def _fail(name: str, proto: str) -> int:
        raise OSError("service/proto not found")

    monkeypatch.setattr(socket, "getservbyname", _fail)
    with pytest.raises(OSError):
        resolve_port("no-such-service")


def test_transport_for_prefers_socket_path() -> None:
    t = transport_for(ClientConfig(path="/tmp/verify", inet="localhost:25", timeout_s=3.0))
    assert isinstance(t, UnixSocketTransport)
    assert t.sock_path == Path("/tmp/verify")
    assert t.timeout_s == 3.0
    assert t.describe() == "unix:/tmp/verify"


def test_transport_for_inet() -> None:
    t = transport_for(ClientConfig(inet="localhost:9999"))
    assert isinstance(t, InetSocketTransport)
    assert (t.host, t.port, t.timeout_s) == ("localhost", 9999, None)
    assert t.describe() == "inet:localhost:9999"


def test_transport_for_without_target() -> None:
    with pytest.raises(ConfigurationError, match="'path' or 'inet'"):
        transport_for(ClientConfig())


def test_socket_connection_reads_until_peer_closes() -> None:
    left, right = socket.socketpair()
    conn = SocketConnection(left)
    try:
        conn.write_all(b"request=query\n\n")
        assert right.recv(1024) == b"request=query\n\n"
        # Our side was half-closed after the write.
        assert right.recv(1024) == b""

        right.sendall(b"status=0\n")
        right.sendall(b"reason=ok\n\n")
        right.close()
        assert conn.read_to_end() == b"status=0\nreason=ok\n\n"
    finally:
        conn.close()
        conn.close()
    assert conn.closed is True


def test_unix_transport_connect_failure_raises_oserror(tmp_path: Path) -> None:
    t = UnixSocketTransport(tmp_path / "missing.sock")
    with pytest.raises(OSError):
        t.connect()
