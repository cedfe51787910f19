"""Infrastructure layer for release, commit and config persistence."""
from __future__ import annotations

import copy
import threading
from typing import Any, Mapping, Protocol


class SiteRepository(Protocol):
    """Persistence contract for the site's records."""

    def list_releases(self) -> list[dict[str, Any]]: ...

    def count_releases(self) -> int: ...

    def find_release(self, release_id: str) -> dict[str, Any] | None: ...

    def add_release(self, record: Mapping[str, Any]) -> None: ...

    def increment_download(self, release_id: str, file_index: int) -> bool: ...

    def insert_commits(self, records: list[dict[str, Any]]) -> int: ...

    def latest_commit(self) -> dict[str, Any] | None: ...

    def get_config(self) -> dict[str, Any] | None: ...

    def set_config(self, record: Mapping[str, Any]) -> None: ...

    def update_config(self, fields: Mapping[str, Any]) -> bool: ...

    def reset(self) -> None: ...


class InMemorySiteRepository:
    """Simple in-memory repository for fast iteration and tests.

    Records are stored and returned as deep copies so callers never mutate
    the repository's state by accident.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._releases: list[dict[str, Any]] = []
        self._commits: list[dict[str, Any]] = []
        self._config: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # releases
    # ------------------------------------------------------------------
    def list_releases(self) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._releases)

    def count_releases(self) -> int:
        with self._lock:
            return len(self._releases)

    def find_release(self, release_id: str) -> dict[str, Any] | None:
        with self._lock:
            for record in self._releases:
                if record.get("releaseID") == release_id:
                    return copy.deepcopy(record)
        return None

    def add_release(self, record: Mapping[str, Any]) -> None:
        with self._lock:
            self._releases.append(copy.deepcopy(dict(record)))

    def increment_download(self, release_id: str, file_index: int) -> bool:
        with self._lock:
            for record in self._releases:
                if record.get("releaseID") != release_id:
                    continue
                files = record.get("files") or []
                if not 0 <= file_index < len(files):
                    return False
                files[file_index]["downloads"] = int(files[file_index].get("downloads") or 0) + 1
                return True
        return False

    # ------------------------------------------------------------------
    # commits
    # ------------------------------------------------------------------
    def insert_commits(self, records: list[dict[str, Any]]) -> int:
        with self._lock:
            self._commits.extend(copy.deepcopy(records))
            return len(records)

    def latest_commit(self) -> dict[str, Any] | None:
        with self._lock:
            if not self._commits:
                return None
            return copy.deepcopy(self._commits[-1])

    # ------------------------------------------------------------------
    # server config
    # ------------------------------------------------------------------
    def get_config(self) -> dict[str, Any] | None:
        with self._lock:
            return copy.deepcopy(self._config) if self._config is not None else None

    def set_config(self, record: Mapping[str, Any]) -> None:
        with self._lock:
            self._config = copy.deepcopy(dict(record))

    def update_config(self, fields: Mapping[str, Any]) -> bool:
        """Set dotted-path fields (``"wakatime.accessToken"``) on the config record."""

        with self._lock:
            if self._config is None:
                return False
            for dotted, value in fields.items():
                node = self._config
                *parents, leaf = dotted.split(".")
                for key in parents:
                    node = node.setdefault(key, {})
                node[leaf] = value
            return True

    def reset(self) -> None:
        with self._lock:
            self._releases.clear()
            self._commits.clear()
            self._config = None
