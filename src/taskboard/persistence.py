from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Mapping, Optional, Set

from .errors import StoreUnavailableError, TaskBoardError
from .migrations import SchemaMigrator
from .models import TaskEntity, new_task_id, normalize, to_record, utcnow
from .ordering import OrderingEngine
from .stores import KeyValueStore
from .workflow import WorkflowConfig

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class PersistenceGateway:
    """
    Load/save of the whole task collection through a key-value store.

    load() always returns a normalized, schema-current, densely ordered list
    and never raises. save() absorbs store failures so the board keeps
    working in memory; the most recent recovered error is kept in last_error.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: WorkflowConfig,
        migrator: Optional[SchemaMigrator] = None,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self.store = store
        self.config = config
        self.migrator = migrator or SchemaMigrator(config, clock=clock)
        self._ordering = OrderingEngine(config)
        self._clock = clock
        self.last_error: Optional[TaskBoardError] = None

    @property
    def key(self) -> str:
        return self.migrator.current_key

    def load(self) -> List[TaskEntity]:
        self.last_error = None
        try:
            result = self.migrator.read(self.store)
        except StoreUnavailableError as e:
            logger.error("Store unavailable on load, starting empty", extra={"key": e.key, "reason": e.reason})
            self.last_error = e
            return []
        if result.error is not None:
            self.last_error = result.error

        now = self._clock()
        tasks: List[TaskEntity] = []
        seen: Set[str] = set()
        for i, raw in enumerate(result.records):
            if not isinstance(raw, Mapping):
                logger.warning("Skipping non-object task record", extra={"key": result.source_key, "index": i})
                continue
            task = normalize(raw, index=i, config=self.config, now=now)
            if task["id"] in seen:
                task["id"] = new_task_id()
            seen.add(task["id"])
            tasks.append(task)
        self._ordering.reindex_all(tasks)

        if result.migrated:
            self.save(tasks)
        logger.info("Loaded tasks", extra={"key": result.source_key, "count": len(tasks), "migrated": result.migrated})
        return tasks

    def save(self, tasks: List[TaskEntity]) -> bool:
        payload = json.dumps([to_record(t) for t in tasks], ensure_ascii=False)
        try:
            self.store.set(self.key, payload)
        except StoreUnavailableError as e:
            logger.error("Store unavailable on save, keeping changes in memory", extra={"key": e.key, "reason": e.reason})
            self.last_error = e
            return False
        return True
