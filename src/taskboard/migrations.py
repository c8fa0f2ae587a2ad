"""Schema migration for persisted task collections.

Persisted generations, newest first:

- ``kanban.tasks.v1``: the current board schema. A JSON array of records with
  ``id, title, description, status, priority, tags, dueDate, order,
  createdAt, updatedAt?``.
- ``todo.tasks.v1``: the earlier to-do list. A JSON array of records with
  ``id, title, description, status ('completed' | 'pending'), createdAt,
  updatedAt``. Mapped as follows:

  * ``status == 'completed'`` (or ``completed: true``) -> the workflow's
    terminal status, anything else -> the initial status
  * ``priority`` -> the workflow's default priority
  * ``tags`` -> ``[]``; ``dueDate`` -> no due date
  * ``order`` -> the record's position in the legacy array
  * ``id``, ``title``, ``description``, ``createdAt``, ``updatedAt`` are
    carried over (a missing id or createdAt is regenerated)

The current key is authoritative whenever it exists, even as an empty array.
Legacy keys are only read when it is absent, and are never written.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .errors import CorruptStateError
from .models import new_task_id, utcnow
from .stores import KeyValueStore
from .workflow import WorkflowConfig

logger = logging.getLogger(__name__)

CURRENT_KEY = "kanban.tasks.v1"
LEGACY_TODO_KEY = "todo.tasks.v1"

Adapter = Callable[[List[Any], WorkflowConfig, datetime], List[Dict[str, Any]]]


@dataclass(frozen=True)
class LegacySource:
    """A superseded storage key and the adapter that upgrades its records."""

    key: str
    adapter: Adapter


@dataclass
class MigrationResult:
    """
    Outcome of reading the store.

    records are current-shape but not yet normalized. source_key is the key
    the records were read from (None when nothing was stored). migrated is
    True when a legacy source was upgraded and needs a write-back. error
    holds a recovered CorruptStateError, if any.
    """

    records: List[Any] = field(default_factory=list)
    source_key: Optional[str] = None
    migrated: bool = False
    error: Optional[CorruptStateError] = None


# PUBLIC_INTERFACE
def adapt_todo_v1(records: List[Any], config: WorkflowConfig, now: datetime) -> List[Dict[str, Any]]:
    """Upgrade records of the earlier to-do list schema to the board schema."""
    upgraded: List[Dict[str, Any]] = []
    for i, raw in enumerate(records):
        t: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
        completed = t.get("status") == "completed" or t.get("completed") is True
        upgraded.append(
            {
                "id": t.get("id") or new_task_id(),
                "title": t.get("title") or "",
                "description": t.get("description") or "",
                "status": config.terminal_status if completed else config.initial_status,
                "priority": config.default_priority,
                "dueDate": "",
                "tags": [],
                "order": i,
                "createdAt": t.get("createdAt") or now.isoformat(),
                "updatedAt": t.get("updatedAt"),
            }
        )
    return upgraded


DEFAULT_LEGACY_SOURCES: Sequence[LegacySource] = (LegacySource(LEGACY_TODO_KEY, adapt_todo_v1),)


def _parse_collection(key: str, raw: str) -> List[Any]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise CorruptStateError(key, f"invalid JSON ({e})") from e
    if not isinstance(data, list):
        raise CorruptStateError(key, f"expected a JSON array, got {type(data).__name__}")
    return data


# PUBLIC_INTERFACE
class SchemaMigrator:
    """
    Detects the persisted schema generation and produces current-shape records.

    Sources are examined newest first. StoreUnavailableError from the store is
    not handled here; the persistence gateway owns that boundary.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        current_key: str = CURRENT_KEY,
        legacy_sources: Optional[Sequence[LegacySource]] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.current_key = current_key
        self.legacy_sources: Sequence[LegacySource] = (
            DEFAULT_LEGACY_SOURCES if legacy_sources is None else tuple(legacy_sources)
        )
        self._clock = clock

    def read(self, store: KeyValueStore) -> MigrationResult:
        raw = store.get(self.current_key)
        if raw is not None:
            try:
                records = _parse_collection(self.current_key, raw)
            except CorruptStateError as e:
                logger.warning("Discarding corrupt task collection", extra={"key": e.key, "reason": e.reason})
                return MigrationResult(source_key=self.current_key, error=e)
            return MigrationResult(records=records, source_key=self.current_key)

        for source in self.legacy_sources:
            legacy_raw = store.get(source.key)
            if legacy_raw is None:
                continue
            try:
                legacy = _parse_collection(source.key, legacy_raw)
            except CorruptStateError as e:
                logger.warning("Discarding corrupt legacy collection", extra={"key": e.key, "reason": e.reason})
                return MigrationResult(source_key=source.key, error=e)
            records = source.adapter(legacy, self.config, self._clock())
            logger.info(
                "Migrated legacy task collection",
                extra={"from_key": source.key, "to_key": self.current_key, "count": len(records)},
            )
            return MigrationResult(records=records, source_key=source.key, migrated=True)

        return MigrationResult()
