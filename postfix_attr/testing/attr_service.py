"""pytest plugin providing a fake Postfix attribute service.

The service accepts a connection, reads the request until the client
half-closes its side, records it, writes a canned reply and closes. That is the
exchange ``AttrClient.send`` expects from a real service.
"""

from __future__ import annotations

import os
import socketserver
import tempfile
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from loguru import logger

Responder = Callable[[bytes], bytes]


class _Handler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        service: FakeAttrService = self.server.service  # type: ignore[attr-defined]
        request = self.rfile.read()
        service.requests.append(request)
        reply = service.responder(request)
        if reply:
            self.wfile.write(reply)


class _UnixServer(socketserver.ThreadingMixIn, socketserver.UnixStreamServer):
    daemon_threads = True


class _TCPServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    daemon_threads = True
    allow_reuse_address = True


@dataclass
class FakeAttrService:
    responder: Responder
    sock_path: Path | None = None
    requests: list[bytes] = field(default_factory=list)
    _server: socketserver.BaseServer | None = field(default=None, init=False)
    _thread: threading.Thread | None = field(default=None, init=False)

    @property
    def inet(self) -> str:
        assert isinstance(self._server, _TCPServer)
        host, port = self._server.server_address[:2]
        return f"{host}:{port}"

    def start(self) -> None:
        if self.sock_path is not None:
            self._server = _UnixServer(str(self.sock_path), _Handler)
        else:
            self._server = _TCPServer(("127.0.0.1", 0), _Handler)
        self._server.service = self  # type: ignore[attr-defined]

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.05},
            name="fake-attr-service",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread is not None:
            self._thread.join(timeout=2)
            self._thread = None
        if self.sock_path is not None:
            try:
                self.sock_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.debug(
                    f"Failed to remove fake service socket {self.sock_path}: {exc}"
                )


def short_socket_path(prefix: str = "pfattr") -> Path:
    # macOS has a short AF_UNIX path limit; pytest's tmp_path can be too long.
    base = Path("/tmp") if Path("/tmp").exists() else Path(tempfile.gettempdir())
    return base / f"{prefix}-{os.getpid()}-{time.time_ns()}.sock"


@pytest.fixture
def attr_service() -> Iterator[Callable[..., FakeAttrService]]:
    """Factory fixture: ``attr_service(reply_or_responder, unix=True)``."""
    started: list[FakeAttrService] = []

    def _start(reply: bytes | Responder, *, unix: bool = True) -> FakeAttrService:
        responder = reply if callable(reply) else (lambda _req: reply)
        service = FakeAttrService(
            responder=responder, sock_path=short_socket_path() if unix else None
        )
        service.start()
        started.append(service)
        return service

    yield _start

    for service in started:
        service.stop()
