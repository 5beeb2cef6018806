from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonStore:
    """Key-value persistence in a single JSON file, one namespace per key."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self.lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write(self._empty())
            logger.info("Created data file %s", self.path)

    @staticmethod
    def _empty() -> dict[str, Any]:
        return {"settings": {}, "locations": [], "items": [], "batches": []}

    def _read(self) -> dict[str, Any]:
        with self.path.open("r", encoding="utf-8") as fp:
            return json.load(fp)

    def _write(self, data: dict[str, Any]) -> None:
        with self.path.open("w", encoding="utf-8") as fp:
            json.dump(data, fp, ensure_ascii=False, indent=2)

    def get_list(self, namespace: str) -> list[dict[str, Any]]:
        with self.lock:
            rows = self._read().get(namespace, [])
            if isinstance(rows, list):
                return rows
            return []

    def get_obj(self, namespace: str) -> dict[str, Any] | None:
        with self.lock:
            value = self._read().get(namespace)
            if isinstance(value, dict):
                return value
            return None

    def set_obj(self, namespace: str, value: dict[str, Any]) -> None:
        with self.lock:
            data = self._read()
            data[namespace] = value
            self._write(data)

    def set_many(self, values: dict[str, Any]) -> None:
        with self.lock:
            data = self._read()
            data.update(values)
            self._write(data)
