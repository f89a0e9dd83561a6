from __future__ import annotations

import json
import sys
from typing import Any, BinaryIO

import click
from loguru import logger

from postfix_attr.attr.client import AttrClient
from postfix_attr.attr.codec import AttrPair, AttrRecord, get_codec
from postfix_attr.attr.constants import Codec
from postfix_attr.attr.errors import AttrError, MalformedInputError
from postfix_attr.core.config import load_client_config

_CODEC_CHOICE = click.Choice([c.value for c in Codec], case_sensitive=False)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _pairs_json(pairs: list[AttrPair]) -> list[list[str]]:
    return [[_text(k), _text(v)] for k, v in pairs]


def _sections_json(sections: list[AttrRecord]) -> list[list[list[str]]]:
    return [_pairs_json(s) for s in sections]


def _parse_attrs(attrs: tuple[str, ...]) -> list[tuple[str, str]]:
    pairs = []
    for item in attrs:
        key, sep, value = item.partition("=")
        if not sep:
            raise click.UsageError(f"attribute must be KEY=VALUE, got {item!r}")
        pairs.append((key, value))
    return pairs


@click.group(name="attr", help="Encode, decode and send Postfix attribute lists.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def attr_cli(log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())


@attr_cli.command(name="encode", help="Write the wire form of KEY=VALUE pairs.")
@click.option(
    "--codec", type=_CODEC_CHOICE, default=Codec.PLAIN.value, show_default=True
)
@click.argument("attrs", nargs=-1)
def encode_cmd(codec: str, attrs: tuple[str, ...]) -> None:
    data = get_codec(codec).encode(_parse_attrs(attrs))
    out = sys.stdout.buffer
    out.write(data)
    out.flush()


@attr_cli.command(name="decode", help="Decode wire data (stdin by default) to JSON.")
@click.option(
    "--codec", type=_CODEC_CHOICE, default=Codec.PLAIN.value, show_default=True
)
@click.option("--strict/--lenient", default=False, show_default=True)
@click.argument("source", type=click.File("rb"), default="-")
def decode_cmd(codec: str, strict: bool, source: BinaryIO) -> None:
    try:
        sections = get_codec(codec).decode(source.read(), strict=strict)
    except MalformedInputError as exc:
        _echo_json(
            {
                "ok": False,
                "error": "malformed_input",
                "message": str(exc),
                "section": exc.section,
                "pairs": _pairs_json(exc.pairs),
            }
        )
        sys.exit(1)
    _echo_json({"ok": True, "result": {"sections": _sections_json(sections)}})


@attr_cli.command(name="send", help="Send KEY=VALUE pairs, print the reply.")
@click.option("--codec", type=_CODEC_CHOICE, default=None, help="Defaults to config.")
@click.option("--path", "sock_path", default=None, help="Unix socket of the service.")
@click.option("--inet", default=None, help="host:port of the service.")
@click.option("--timeout", "timeout_s", type=float, default=None)
@click.option("--config", "config_path", default=None, help="JSON config file.")
@click.argument("attrs", nargs=-1)
def send_cmd(
    codec: str | None,
    sock_path: str | None,
    inet: str | None,
    timeout_s: float | None,
    config_path: str | None,
    attrs: tuple[str, ...],
) -> None:
    pairs = _parse_attrs(attrs)
    cfg = load_client_config(config_path)
    if sock_path or inet:
        path_opt, inet_opt = sock_path, inet
    else:
        path_opt, inet_opt = cfg.path, cfg.inet
    client = AttrClient(
        codec or cfg.codec,
        path=path_opt,
        inet=inet_opt,
        timeout_s=timeout_s if timeout_s is not None else cfg.timeout_s,
    )
    try:
        result = client.send(pairs)
    except AttrError as exc:
        _echo_json(
            {
                "ok": False,
                "error": type(exc).__name__,
                "message": str(exc),
                "target": client.config.target(),
            }
        )
        sys.exit(1)
    _echo_json({"ok": True, "result": {"attrs": _pairs_json(result)}})
