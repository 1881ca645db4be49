"""Logging setup for processes that host the development key store."""
import json
import logging
import os
import re
from typing import Any

from .settings import Settings

_PASSPHRASE_KV = re.compile(r"\b(pass(?:word|phrase)?|storepass|keypass|secret)\s*=\s*([^\s,;]+)", re.IGNORECASE)
_PEM_PRIVATE_KEY = re.compile(
    r"-----BEGIN (?:RSA |ENCRYPTED )?PRIVATE KEY-----.*?-----END (?:RSA |ENCRYPTED )?PRIVATE KEY-----",
    re.DOTALL,
)


def redact(text: str) -> str:
    text = _PEM_PRIVATE_KEY.sub("[REDACTED-PRIVATE-KEY]", text)
    return _PASSPHRASE_KV.sub(lambda m: f"{m.group(1)}=[REDACTED]", text)


class _Redact(logging.Filter):
    """Scrubs key material from the rendered message, %-args included."""

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        scrubbed = redact(rendered)
        if scrubbed != rendered:
            record.msg = scrubbed
            record.args = None
        return True


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _json_from_env() -> bool:
    return os.getenv("DEVKEYSTORE_LOG_JSON", "false").lower() in ("1", "true", "yes")


def setup_logging(settings: Settings, json_mode: bool | None = None) -> logging.Handler:
    """
    Attach one redacting stream handler to the root logger (once per process)
    and return it. The ``devkeystore`` logger follows ``settings.LOG_LEVEL``.
    """
    root = logging.getLogger()
    installed = getattr(root, "_devkeystore_handler", None)
    if installed is not None:
        return installed

    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.getLogger("devkeystore").setLevel(level)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)

    handler = logging.StreamHandler()
    handler.addFilter(_Redact())
    use_json = _json_from_env() if json_mode is None else json_mode
    handler.setFormatter(_JsonFormatter() if use_json else logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)

    setattr(root, "_devkeystore_handler", handler)
    return handler
