from __future__ import annotations

from pathlib import Path

from loguru import logger

from postfix_attr.attr.codec import (
    AttrCodec,
    AttrInput,
    AttrPair,
    AttrRecord,
    get_codec,
)
from postfix_attr.attr.constants import Codec, SendState
from postfix_attr.attr.errors import AttrConnectionError, AttrIOError
from postfix_attr.attr.transport import AttrTransport, Connection, transport_for
from postfix_attr.core.config import ClientConfig, load_client_config


class AttrClient:
    """Send one attribute record to a Postfix service and decode its reply.

    Every ``send`` opens its own connection, writes the encoded record, reads
    until the service closes the stream and decodes what came back. Nothing is
    shared between calls, so a client can be used from several threads.
    """

    def __init__(
        self,
        codec: str | int | Codec | None = None,
        *,
        path: str | Path | None = None,
        inet: str | None = None,
        timeout_s: float | None = None,
        transport: AttrTransport | None = None,
    ) -> None:
        self._codec = get_codec(codec)
        self._config = ClientConfig(
            codec=self._codec.name,
            path=str(path) if path else None,
            inet=inet or None,
            timeout_s=timeout_s,
        )
        self._transport = transport

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> AttrClient:
        cfg = load_client_config(config_path)
        return cls(cfg.codec, path=cfg.path, inet=cfg.inet, timeout_s=cfg.timeout_s)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def codec(self) -> AttrCodec:
        return self._codec

    def encode(self, record: AttrInput) -> bytes:
        return self._codec.encode(record)

    def decode(self, data: bytes, *, strict: bool = False) -> list[AttrRecord]:
        return self._codec.decode(data, strict=strict)

    def send(self, record: AttrInput) -> list[AttrPair]:
        """Return the reply's pairs from every section, in order."""
        return [pair for section in self.send_sections(record) for pair in section]

    def send_sections(self, record: AttrInput) -> list[AttrRecord]:
        target = self._config.target() or "<no target>"
        state = SendState.IDLE
        conn: Connection | None = None
        try:
            state = self._step(target, state, SendState.CONNECTING)
            # Target errors surface here rather than at construction.
            transport = self._transport or transport_for(self._config)
            target = transport.describe()
            try:
                conn = transport.connect()
            except OSError as exc:
                logger.error(f"Failed to connect to {target}: {exc}")
                raise AttrConnectionError(target, str(exc)) from exc

            state = self._step(target, state, SendState.ENCODING)
            payload = self._codec.encode(record)

            state = self._step(target, state, SendState.WRITING)
            try:
                conn.write_all(payload)
                state = self._step(target, state, SendState.READING)
                reply = conn.read_to_end()
            except OSError as exc:
                raise AttrIOError(target, str(exc)) from exc

            state = self._step(target, state, SendState.DECODING)
            sections = self._codec.decode(reply)
        except Exception:
            self._step(target, state, SendState.FAILED)
            raise
        finally:
            if conn is not None:
                conn.close()

        self._step(target, state, SendState.CLOSED)
        logger.debug(
            f"Sent {len(payload)} bytes to {target}, got {len(reply)} bytes "
            f"in {len(sections)} section(s)"
        )
        return sections

    @staticmethod
    def _step(target: str, current: SendState, new: SendState) -> SendState:
        logger.debug(f"[{target}] {current} -> {new}")
        return new
