import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from postfix_attr.attr.codec import get_codec
from postfix_attr.attr.constants import DEFAULT_CODEC, Codec

CONFIG_FILENAME = "config.json"

ENV_CONFIG = "POSTFIX_ATTR_CONFIG"
ENV_CODEC = "POSTFIX_ATTR_CODEC"
ENV_PATH = "POSTFIX_ATTR_PATH"
ENV_INET = "POSTFIX_ATTR_INET"
ENV_TIMEOUT = "POSTFIX_ATTR_TIMEOUT"


def find_config_file(path: str | Path | None = None) -> Path | None:
    """Locate the client config file.

    An explicit ``path`` wins, then ``$POSTFIX_ATTR_CONFIG``. Otherwise
    ``config.json`` is searched for from the working directory upwards, stopping
    at the first directory that holds a ``pyproject.toml``.
    """
    if path is None:
        path = os.environ.get(ENV_CONFIG, "").strip() or None
    if path is not None:
        return Path(path).expanduser()

    cwd = Path.cwd().resolve()
    for directory in [cwd, *cwd.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (directory / "pyproject.toml").exists():
            break
    return None


def _client_section(cfg_path: Path | None) -> dict[str, Any]:
    if cfg_path is None or not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Ignoring unreadable config file {cfg_path}: {exc}")
        return {}
    section = data.get("client") if isinstance(data, dict) else None
    return section if isinstance(section, dict) else {}


@dataclass(frozen=True)
class ClientConfig:
    """Where and how an attribute client talks to its service.

    ``codec`` is always a valid codec; ``path`` and ``inet`` may both be unset,
    which only becomes an error when a request is sent.
    """

    codec: Codec = DEFAULT_CODEC
    path: str | None = None
    inet: str | None = None
    timeout_s: float | None = None

    def target(self) -> str:
        return self.path or self.inet or ""


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _timeout(value: Any) -> float | None:
    text = _clean(value)
    if text is None:
        return None
    try:
        timeout_s = float(text)
    except ValueError:
        logger.warning(f"Ignoring non-numeric timeout {text!r}")
        return None
    return timeout_s if timeout_s > 0 else None


def load_client_config(path: str | Path | None = None) -> ClientConfig:
    """Build a ``ClientConfig`` from the config file, then environment overrides."""
    section = _client_section(find_config_file(path))

    codec = os.environ.get(ENV_CODEC) or section.get("codec")
    return ClientConfig(
        codec=get_codec(codec).name,
        path=_clean(os.environ.get(ENV_PATH) or section.get("path")),
        inet=_clean(os.environ.get(ENV_INET) or section.get("inet")),
        timeout_s=_timeout(os.environ.get(ENV_TIMEOUT) or section.get("timeout_s")),
    )
