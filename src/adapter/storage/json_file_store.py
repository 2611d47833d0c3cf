"""JSON-file backed KeyValueStore, used as the durable tier.

The whole store is one JSON object on disk. Writes go through a temp file
and ``os.replace`` so a crash never leaves a half-written file behind. An unreadable file
is renamed with a ``.corrupt`` suffix instead of being overwritten.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


class JsonFileKeyValueStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._move_aside(str(e))
            return {}

        if not isinstance(data, dict):
            self._move_aside("not a JSON object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _move_aside(self, reason: str) -> None:
        """Keep an unreadable file for inspection; the store then reads as empty."""
        aside = self.path.with_suffix(self.path.suffix + CORRUPT_SUFFIX)
        os.replace(self.path, aside)
        logger.warning("Moved unreadable client store aside", extra={
            "path": str(self.path),
            "movedTo": str(aside),
            "error": reason,
        })

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp_path, self.path)
