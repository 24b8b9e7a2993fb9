"""Runtime settings read from the environment (and a local `.env`, if any)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from common.logger import get_logger

DEFAULT_DEBOUNCE_MS = 100
PERSIST_MODES = ("sync", "debounced")


def _default_dir() -> Path:
    return Path.home() / ".storebox"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    password: Optional[str] = None
    persist_mode: str = "sync"
    debounce_ms: int = DEFAULT_DEBOUNCE_MS

    @property
    def secure_dir(self) -> Path:
        return self.data_dir / "secure"

    @property
    def insecure_dir(self) -> Path:
        return self.data_dir / "insecure"

    @property
    def debounce_delay(self) -> float:
        return self.debounce_ms / 1000.0


def _parse_persist_mode(raw: Optional[str]) -> str:
    mode = (raw or "sync").lower().strip()
    if mode not in PERSIST_MODES:
        get_logger(__name__).warning("config: unknown STOREBOX_PERSIST_MODE=%r, using sync", raw)
        return "sync"
    return mode


def _parse_debounce_ms(raw: Optional[str]) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_DEBOUNCE_MS
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        get_logger(__name__).warning(
            "config: invalid STOREBOX_DEBOUNCE_MS=%r, using %d", raw, DEFAULT_DEBOUNCE_MS
        )
        return DEFAULT_DEBOUNCE_MS
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from the process environment.

    `.env` values never override variables that are already set.
    """
    load_dotenv(env_file)
    data_dir = os.environ.get("STOREBOX_DIR")
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else _default_dir(),
        password=os.environ.get("STOREBOX_PASSWORD") or None,
        persist_mode=_parse_persist_mode(os.environ.get("STOREBOX_PERSIST_MODE")),
        debounce_ms=_parse_debounce_ms(os.environ.get("STOREBOX_DEBOUNCE_MS")),
    )
