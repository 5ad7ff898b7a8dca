"""
Flat key-value stores backing configuration and story persistence.
"""

from __future__ import annotations

import copy
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Protocol

import yaml

DEFAULT_STORE_PATH = Path("~/.storybook_ai/store.yaml")


class KeyValueStore(Protocol):
    """Two operations: read a named record, write a named record."""

    def read(self, key: str) -> Any | None: ...

    def write(self, key: str, value: Any) -> None: ...


class InMemoryKeyValueStore:
    """
    Process-local store. Values are deep-copied in and out so callers never share state.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._records: MutableMapping[str, Any] = copy.deepcopy(dict(initial or {}))

    def read(self, key: str) -> Any | None:
        return copy.deepcopy(self._records.get(key))

    def write(self, key: str, value: Any) -> None:
        self._records[key] = copy.deepcopy(value)


class YamlFileKeyValueStore:
    """
    All records kept in a single YAML document on disk.

    The file is re-read on every access, so the last writer wins.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        raw_path = path or os.getenv("STORYBOOK_STORE_PATH") or DEFAULT_STORE_PATH
        self._path = Path(raw_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str) -> Any | None:
        return self._load().get(key)

    def write(self, key: str, value: Any) -> None:
        records = self._load()
        records[key] = value
        document = yaml.safe_dump(records, sort_keys=False, allow_unicode=True)

        # Replace the document atomically; a failed write leaves the old file intact.
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            try:
                handle.write(document)
                handle.flush()
                os.fsync(handle.fileno())
            except BaseException:
                handle.close()
                temp_path.unlink(missing_ok=True)
                raise
        os.replace(temp_path, self._path)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}

        data = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Store file {self._path} must deserialize to a mapping.")
        return dict(data)
