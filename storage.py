# storage.py
# Snapshot persistence: an in-memory store and a JSON-file-per-session store.
# Both hand out deep copies so nobody aliases stored state.

from __future__ import annotations
from typing import Dict, Any, Optional
import os, json, tempfile, time, copy

from logger import get_logger

logger = get_logger("farm.storage")


def safe_key(key: str) -> str:
    return "".join(ch for ch in str(key) if ch.isalnum() or ch in "_-")


class MemoryStore:
    """Keeps snapshots in a dict. Good for tests and throwaway servers."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        st = self._data.get(key)
        return copy.deepcopy(st) if st is not None else None

    def set(self, key: str, snapshot: Dict[str, Any]) -> bool:
        self._data[key] = copy.deepcopy(snapshot)
        return True

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """One `<key>.json` per session under save_dir.

    Writes go through a temp file and os.replace so a crash never leaves a
    half-written save. Unreadable files are renamed to `*.corrupt` and read
    back as missing.
    """

    def __init__(self, save_dir: str) -> None:
        self.save_dir = save_dir
        os.makedirs(save_dir, exist_ok=True)

    def path(self, key: str) -> str:
        return os.path.join(self.save_dir, f"{safe_key(key)}.json")

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        p = self.path(key)
        if not os.path.exists(p):
            return None
        try:
            with open(p, "r", encoding="utf-8") as f:
                st = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            self._quarantine(p)
            return None
        if not isinstance(st, dict):
            self._quarantine(p)
            return None
        return st

    def _quarantine(self, p: str) -> None:
        corrupt = p + ".corrupt"
        if os.path.exists(corrupt):
            corrupt = p + f".{int(time.time())}.corrupt"
        os.replace(p, corrupt)
        logger.warning("corrupt save moved aside: %s", corrupt)

    def set(self, key: str, snapshot: Dict[str, Any]) -> bool:
        p = self.path(key)
        tmp_fd, tmp_path = tempfile.mkstemp(prefix="save_", suffix=".tmp", dir=self.save_dir)
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, p)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        return True

    def delete(self, key: str) -> None:
        p = self.path(key)
        if os.path.exists(p):
            os.remove(p)


def make_store(kind: str, save_dir: str):
    if kind == "memory":
        return MemoryStore()
    if kind == "file":
        return JsonFileStore(save_dir)
    raise ValueError(f"unknown store backend: {kind}")
