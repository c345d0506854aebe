"""
Release Builder: record store interface.

The builder only needs keyed reads and an atomic partial update of a
release. ``InMemoryRecordStore`` is the reference implementation used by
the tests and by local runs seeded from a JSON file.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from release_builder.errors import InvalidUpdateError, RecordNotFoundError
from release_builder.models.release import IMMUTABLE_RELEASE_FIELDS, Package, Project, Release
from release_builder.utils.logging import logger

WRITABLE_RELEASE_FIELDS = frozenset(Release.model_fields) - IMMUTABLE_RELEASE_FIELDS


class RecordStore(Protocol):
    async def fetch_release(self, release_id: int) -> Release: ...

    async def fetch_package(self, package_id: int) -> Package: ...

    async def fetch_project(self, project_id: int) -> Project: ...

    async def update_release(self, release_id: int, fields: Mapping[str, Any]) -> Release:
        """Apply all ``fields`` in one atomic write and return the new record."""
        ...


class InMemoryRecordStore:
    """Dict-backed store; every update replaces the record in one step."""

    def __init__(
        self,
        releases: Iterable[Release] = (),
        packages: Iterable[Package] = (),
        projects: Iterable[Project] = (),
    ):
        self._releases = {r.id: r for r in releases}
        self._packages = {p.id: p for p in packages}
        self._projects = {p.id: p for p in projects}
        self._lock = asyncio.Lock()
        self.history: list[tuple[int, dict[str, Any]]] = []

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryRecordStore":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls(
            releases=[Release(**r) for r in data.get("releases", [])],
            packages=[Package(**p) for p in data.get("packages", [])],
            projects=[Project(**p) for p in data.get("projects", [])],
        )
        logger.info(
            "  Loaded record store from %s: %d releases, %d packages, %d projects",
            path, len(store._releases), len(store._packages), len(store._projects),
        )
        return store

    async def fetch_release(self, release_id: int) -> Release:
        try:
            return self._releases[release_id].model_copy()
        except KeyError:
            raise RecordNotFoundError("Release", release_id) from None

    async def fetch_package(self, package_id: int) -> Package:
        try:
            return self._packages[package_id].model_copy()
        except KeyError:
            raise RecordNotFoundError("Package", package_id) from None

    async def fetch_project(self, project_id: int) -> Project:
        try:
            return self._projects[project_id].model_copy()
        except KeyError:
            raise RecordNotFoundError("Project", project_id) from None

    async def update_release(self, release_id: int, fields: Mapping[str, Any]) -> Release:
        rejected = [name for name in fields if name not in WRITABLE_RELEASE_FIELDS]
        if rejected:
            raise InvalidUpdateError(release_id, rejected)
        async with self._lock:
            current = self._releases.get(release_id)
            if current is None:
                raise RecordNotFoundError("Release", release_id)
            updated = Release(**{**current.model_dump(), **fields})
            self._releases[release_id] = updated
            self.history.append((release_id, dict(fields)))
        return updated.model_copy()


_default_store: InMemoryRecordStore | None = None


def get_record_store() -> InMemoryRecordStore:
    """Process-wide store, seeded from RELEASE_STORE_PATH when set."""
    global _default_store
    if _default_store is None:
        from release_builder.core.config import settings

        if settings.store_path:
            _default_store = InMemoryRecordStore.from_json_file(settings.store_path)
        else:
            logger.warning("  RELEASE_STORE_PATH not set; record store starts empty.")
            _default_store = InMemoryRecordStore()
    return _default_store
