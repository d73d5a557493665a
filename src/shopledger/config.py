from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "ShopLedger"
HOME_ENV = "SHOPLEDGER_HOME"
LOG_LEVEL_ENV = "SHOPLEDGER_LOG_LEVEL"


@dataclass(frozen=True)
class AppConfig:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    log_level: int = logging.INFO


def default_base_dir(app_name: str = APP_NAME) -> Path:
    """Per-user data directory for the current platform."""
    if sys.platform.startswith("win"):
        return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming"))) / app_name
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    return Path.home() / f".{app_name.lower()}"


def _log_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def load_config(env=None) -> AppConfig:
    """Resolve where the ledger lives.

    ``SHOPLEDGER_HOME`` moves the whole data directory (database and logs);
    ``SHOPLEDGER_LOG_LEVEL`` takes a level name such as ``DEBUG``. Unknown
    level names fall back to INFO.
    """
    env = os.environ if env is None else env
    home = env.get(HOME_ENV, "").strip()
    base = Path(home) if home else default_base_dir()
    logs = base / "logs"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        base_dir=base,
        db_path=base / "ledger.db",
        logs_dir=logs,
        log_level=_log_level(env.get(LOG_LEVEL_ENV, "")),
    )
