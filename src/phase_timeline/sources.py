"""Interfaces to the task feed and the record cache, with file-backed versions.

The analytics services never touch these: callers resolve task collections
through a ``TaskFeed`` (optionally backed by a ``RecordStore``) and pass the
resulting ``ProjectRecord`` values in.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from .domain import ProjectRecord
from .errors import FeedError
from .utils.datetime import Clock, now_utc, parse_timestamp, to_iso_string


logger = logging.getLogger(__name__)

DEFAULT_EXPIRATION = timedelta(hours=24)


class TaskFeed(ABC):
    """Source of projects and their tasks."""

    @abstractmethod
    def list_projects(self) -> List[ProjectRecord]:
        """Return every project with its full task set."""
        pass


class RecordStore(ABC):
    """Key-value store of fetched records and when they were fetched."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def fetched_at(self, key: str) -> Optional[datetime]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def is_expired(self, key: str, now: Optional[datetime] = None,
                   expiration: timedelta = DEFAULT_EXPIRATION) -> bool:
        """True when ``key`` was never fetched or is older than ``expiration``."""
        fetched = self.fetched_at(key)
        if fetched is None:
            return True
        now = now or now_utc()
        return now - fetched >= expiration


class JsonExportFeed(TaskFeed):
    """Reads projects from a JSON export file.

    Expected shape: ``{"projects": [{"name", "gid", "created_at", "tasks": [...]}]}``
    or a bare list of such project entries.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_raw(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise FeedError(f"Cannot read export {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise FeedError(f"Export {self.path} is not valid JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("projects", data.get("data"))
        if not isinstance(data, list):
            raise FeedError(f"Export {self.path} holds no project list")
        return [entry for entry in data if isinstance(entry, dict)]

    def list_projects(self) -> List[ProjectRecord]:
        projects = [ProjectRecord.from_dict(entry) for entry in self.load_raw()]
        logger.debug("Loaded %d projects from %s", len(projects), self.path)
        return projects


class JsonRecordStore(RecordStore):
    """Record cache persisted as a single JSON file.

    Each entry keeps the stored value next to the time it was fetched so
    callers can decide whether to refresh it.
    """

    def __init__(self, path: Path, clock: Optional[Clock] = None):
        self.path = Path(path)
        self.clock = clock or now_utc
        self._records: Dict[str, Dict[str, Any]] = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable record cache %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._records, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[Any]:
        record = self._records.get(key)
        return record.get("value") if record else None

    def put(self, key: str, value: Any) -> None:
        self._records[key] = {
            "value": value,
            "fetched_at": to_iso_string(self.clock()),
        }
        self._save()

    def fetched_at(self, key: str) -> Optional[datetime]:
        record = self._records.get(key)
        return parse_timestamp(record.get("fetched_at")) if record else None

    def keys(self) -> List[str]:
        return list(self._records)

    def clear(self) -> None:
        self._records = {}
        if self.path.exists():
            self.path.unlink()


class CachedTaskFeed(TaskFeed):
    """Serves projects from a record store, refreshing from ``feed`` when expired."""

    def __init__(self, feed: TaskFeed, store: RecordStore,
                 expiration: timedelta = DEFAULT_EXPIRATION,
                 clock: Optional[Clock] = None,
                 cache_key: str = "projects"):
        self.feed = feed
        self.store = store
        self.cache_key = cache_key
        self.expiration = expiration
        self.clock = clock or now_utc

    def list_projects(self) -> List[ProjectRecord]:
        if not self.store.is_expired(self.cache_key, self.clock(), self.expiration):
            cached = self.store.get(self.cache_key) or []
            logger.debug("Serving %d projects from cache", len(cached))
            return [ProjectRecord.from_dict(entry) for entry in cached]

        projects = self.feed.list_projects()
        self.store.put(self.cache_key, [p.to_dict() for p in projects])
        return projects
