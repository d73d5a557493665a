from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Loggers whose records are also written to a dedicated ledger file.
LEDGER_LOGS = {
    "shopledger.sales": "sales.log",
    "shopledger.payments": "payments.log",
}


def parse_event(message: str) -> dict:
    """Split ``event key=value ...`` lines into ``{"event", "fields"}``.

    A value may contain spaces (e.g. ``error=Customer not found.``); such
    words are glued to the preceding field. Anything that does not start
    with an event name followed by a ``key=value`` pair returns ``{}``.
    """
    event, _, rest = message.partition(" ")
    tokens = rest.split(" ")
    if not event or "=" in event or "=" not in tokens[0]:
        return {}
    fields: dict[str, str] = {}
    key = None
    for token in tokens:
        name, sep, value = token.partition("=")
        if sep and name.isidentifier():
            key = name
            fields[key] = value
        elif key is not None:
            fields[key] += " " + token
    return {"event": event, "fields": fields}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        payload.update(parse_event(message))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    return fh


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    root.addHandler(_handler(logs_dir / "app.log", level))
    root.addHandler(_handler(logs_dir / "errors.log", logging.ERROR))

    for name, filename in LEDGER_LOGS.items():
        logger = logging.getLogger(name)
        logger.addHandler(_handler(logs_dir / filename, logging.INFO))
        logger.setLevel(min(level, logging.INFO))
