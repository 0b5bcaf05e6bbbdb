"""Configuration for the farm server.

Reads environment variables (and a .env file via python-dotenv). Values are
resolved when a Settings instance is created, so tests can patch the
environment and build a fresh one.
"""
from typing import List, Optional
import logging
import os

from dotenv import load_dotenv

load_dotenv()

_TRUE = ("1", "true", "yes")
STORE_BACKENDS = ("file", "memory")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    """Settings holder for the Flask surface and the snapshot store."""

    def __init__(self) -> None:
        self.HOST: str = os.getenv("FARM_HOST", "127.0.0.1")
        self.PORT: int = _int_env("FARM_PORT", 5173)
        self.DEBUG: bool = os.getenv("FARM_DEBUG", "false").lower() in _TRUE
        self.SAVE_DIR: str = os.getenv("FARM_SAVE_DIR") or os.path.join(os.getcwd(), "saves")
        self.STORE: str = os.getenv("FARM_STORE", "file").lower()
        # how many session log entries the client view carries
        self.LOG_LIMIT: int = _int_env("FARM_LOG_LIMIT", 60)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def validate(self, required: Optional[List[str]] = None) -> List[str]:
        """Return the names of settings that are missing or invalid (empty when all good)."""
        problems: List[str] = []
        for name in required or []:
            val = getattr(self, name, None)
            if val is None or (isinstance(val, str) and not val.strip()):
                problems.append(name)
        if self.STORE not in STORE_BACKENDS:
            problems.append("STORE")
        if not (0 < self.PORT < 65536):
            problems.append("PORT")
        if self.LOG_LIMIT <= 0:
            problems.append("LOG_LIMIT")
        if not isinstance(logging.getLevelName(self.LOG_LEVEL), int):
            problems.append("LOG_LEVEL")
        return problems


settings = Settings()
