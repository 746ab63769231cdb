"""JSONL-backed log store.

Layout under the data directory::

    history.jsonl   one executed command per line
    logs.jsonl      opaque log records, sent verbatim
    values.json     key/value pairs (watermark, sent time, identity)

Reads that fail raise RetrievalError; nothing is silently dropped.
"""
from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone

from cloudstats.config import (
    ANONYMOUS_ID_KEY, DEFAULT_REGION, REGION_KEY, SECONDARY_ID_KEY,
)
from cloudstats.errors import RetrievalError
from cloudstats.models import CommandLogEntry

logger = logging.getLogger(__name__)

_LAST_HISTORY_ID_KEY = "last_history_id"


class Database:
    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self.history_path = os.path.join(base_dir, "history.jsonl")
        self.logs_path = os.path.join(base_dir, "logs.jsonl")
        self.values_path = os.path.join(base_dir, "values.json")

    # -- low level ----------------------------------------------------------

    def _read_jsonl(self, path: str) -> list[dict]:
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return [json.loads(line) for line in f if line.strip()]
        except (OSError, json.JSONDecodeError) as e:
            raise RetrievalError(f"cannot read {path}: {e}") from e

    def _append_jsonl(self, path: str, record: dict) -> None:
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
        except OSError as e:
            raise RetrievalError(f"cannot write {path}: {e}") from e

    def _delete(self, path: str) -> None:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise RetrievalError(f"cannot delete {path}: {e}") from e

    def _load_values(self) -> dict:
        if not os.path.exists(self.values_path):
            return {}
        try:
            with open(self.values_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RetrievalError(f"cannot read {self.values_path}: {e}") from e

    def _set_value(self, key: str, value) -> None:
        values = self._load_values()
        values[key] = value
        tmp_path = self.values_path + ".tmp"
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(values, f, indent=2)
            os.replace(tmp_path, self.values_path)
        except OSError as e:
            raise RetrievalError(f"cannot write {self.values_path}: {e}") from e

    # -- values -------------------------------------------------------------

    def get_string_value(self, key: str) -> str:
        value = self._load_values().get(key, "")
        return value if isinstance(value, str) else str(value)

    def set_string_value(self, key: str, value: str) -> None:
        self._set_value(key, value)

    def get_int_value(self, key: str) -> int:
        value = self._load_values().get(key, 0)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise RetrievalError(f"value of {key} is not an int: {value!r}") from e

    def set_int_value(self, key: str, value: int) -> None:
        self._set_value(key, int(value))

    def get_time_value(self, key: str) -> datetime | None:
        """Stored time, or None when the key was never set."""
        value = self._load_values().get(key)
        if value is None:
            return None
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError) as e:
            raise RetrievalError(f"value of {key} is not a time: {value!r}") from e

    def set_time_value(self, key: str, value: datetime) -> None:
        self._set_value(key, value.isoformat())

    def get_default_region(self) -> str:
        return self.get_string_value(REGION_KEY) or DEFAULT_REGION

    def ensure_identity(self) -> str:
        """Create the anonymous ids on first use. Returns the primary id."""
        values = self._load_values()
        for key in (ANONYMOUS_ID_KEY, SECONDARY_ID_KEY):
            if not values.get(key):
                self._set_value(key, uuid.uuid4().hex)
        return self.get_string_value(ANONYMOUS_ID_KEY)

    # -- history ------------------------------------------------------------

    def add_history(self, tokens: list[str], timestamp: datetime | None = None) -> CommandLogEntry:
        """Append a command. Ids keep increasing across delete_history()."""
        entry_id = self.get_int_value(_LAST_HISTORY_ID_KEY) + 1
        entry = CommandLogEntry(
            id=entry_id,
            timestamp=timestamp or datetime.now(timezone.utc),
            tokens=tuple(tokens),
        )
        self._append_jsonl(self.history_path, {
            "id": entry.id,
            "ts": entry.timestamp.isoformat(),
            "cmd": list(entry.tokens),
        })
        self.set_int_value(_LAST_HISTORY_ID_KEY, entry_id)
        return entry

    def get_history_since(self, watermark: int) -> list[CommandLogEntry]:
        entries = []
        for row in self._read_jsonl(self.history_path):
            try:
                entry = CommandLogEntry(
                    id=int(row["id"]),
                    timestamp=datetime.fromisoformat(row["ts"]),
                    tokens=tuple(row.get("cmd") or ()),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise RetrievalError(f"malformed history entry {row!r}: {e}") from e
            if entry.id > watermark:
                entries.append(entry)
        entries.sort(key=lambda e: e.id)
        return entries

    def delete_history(self) -> None:
        self._delete(self.history_path)

    # -- logs ---------------------------------------------------------------

    def add_log(self, message: str, timestamp: datetime | None = None) -> dict:
        record = {
            "Time": (timestamp or datetime.now(timezone.utc)).isoformat(),
            "Msg": message,
        }
        self._append_jsonl(self.logs_path, record)
        return record

    def get_all_logs(self) -> list[dict]:
        return self._read_jsonl(self.logs_path)

    def delete_logs(self) -> None:
        self._delete(self.logs_path)
