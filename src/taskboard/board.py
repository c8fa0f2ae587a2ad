from __future__ import annotations

import logging
from datetime import date, datetime
from threading import RLock
from typing import Callable, Dict, List, Optional

from .errors import TaskBoardError, ValidationError
from .migrations import SchemaMigrator
from .models import TaskEntity, clean_title, clone, new_task_id, utcnow
from .ordering import OrderingEngine, find_index
from .persistence import PersistenceGateway
from .schemas import TaskCreate, TaskUpdate
from .stores import KeyValueStore
from .views import ViewQuery, count, make_query, project
from .workflow import CLASSIC, WorkflowConfig

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class TaskBoard:
    """
    One task board: owns its task collection and its current filter.

    Every mutating call validates its input, applies the change through the
    ordering engine, and saves the whole collection before returning. Store
    failures never surface here; see last_store_error. Callers get
    ValidationError for bad input and NotFoundError for unknown ids, with
    the board left unchanged.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: WorkflowConfig = CLASSIC,
        clock: Callable[[], datetime] = utcnow,
        today: Callable[[], date] = date.today,
        migrator: Optional[SchemaMigrator] = None,
    ) -> None:
        self.config = config
        self._clock = clock
        self._today = today
        self._lock = RLock()
        self.ordering = OrderingEngine(config)
        self.gateway = PersistenceGateway(store, config, migrator=migrator, clock=clock)
        self._tasks: List[TaskEntity] = self.gateway.load()
        self._filter = ViewQuery()

    def _now(self) -> datetime:
        return self._clock()

    def _persist(self) -> None:
        self.gateway.save(self._tasks)

    def _get(self, task_id: str) -> TaskEntity:
        return self._tasks[find_index(self._tasks, task_id)]

    def _check_status(self, status: str) -> str:
        if not self.config.is_valid_status(status):
            raise ValidationError(f"unknown status: {status!r}", field="status")
        return status

    def _check_priority(self, priority: str) -> str:
        if not self.config.is_valid_priority(priority):
            raise ValidationError(f"unknown priority: {priority!r}", field="priority")
        return priority

    @property
    def last_store_error(self) -> Optional[TaskBoardError]:
        return self.gateway.last_error

    # -------------------- queries --------------------
    def get(self, task_id: str) -> TaskEntity:
        with self._lock:
            return clone(self._get(task_id))

    def list(self) -> List[TaskEntity]:
        """All tasks, grouped by column order and sorted by manual order."""
        with self._lock:
            position = {s: i for i, s in enumerate(self.config.statuses)}
            ordered = sorted(self._tasks, key=lambda t: (position.get(t["status"], len(position)), t["order"]))
            return [clone(t) for t in ordered]

    # -------------------- task operations --------------------
    def create(self, data: TaskCreate) -> TaskEntity:
        title = clean_title(data.title)
        status = self._check_status(data.status or self.config.default_status)
        priority = self._check_priority(data.priority or self.config.default_priority)
        task: TaskEntity = {
            "id": new_task_id(),
            "title": title,
            "description": (data.description or "").strip(),
            "status": status,
            "priority": priority,
            "tags": list(data.tags),
            "due_date": data.due_date,
            "order": 0,
            "created_at": self._now(),
            "updated_at": None,
        }
        with self._lock:
            self.ordering.insert_at_head(self._tasks, task, status)
            self._persist()
        logger.info("Created task", extra={"task_id": task["id"], "status": status})
        return clone(task)

    def update(self, task_id: str, data: TaskUpdate) -> TaskEntity:
        fields = data.model_fields_set
        title = clean_title(data.title) if data.title is not None else None
        status = self._check_status(data.status) if data.status is not None else None
        priority = self._check_priority(data.priority) if data.priority is not None else None

        with self._lock:
            task = self._get(task_id)
            now = self._now()
            if title is not None:
                task["title"] = title
            if data.description is not None:
                task["description"] = data.description
            if priority is not None:
                task["priority"] = priority
            if "due_date" in fields:
                task["due_date"] = data.due_date
            if data.tags is not None:
                task["tags"] = list(data.tags)
            if status is not None and status != task["status"]:
                self.ordering.move_to(self._tasks, task_id, status, 0, now)
            task["updated_at"] = now
            self._persist()
            logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(fields)})
            return clone(task)

    def delete(self, task_id: str) -> None:
        with self._lock:
            removed = self.ordering.delete(self._tasks, task_id)
            self._persist()
        logger.info("Deleted task", extra={"task_id": task_id, "status": removed["status"]})

    def move_to(self, task_id: str, status: str, index: int) -> TaskEntity:
        with self._lock:
            task = self.ordering.move_to(self._tasks, task_id, status, index, self._now())
            self._persist()
            return clone(task)

    def advance_status(self, task_id: str) -> TaskEntity:
        """Move a task to its next workflow status. A no-op on terminal statuses."""
        with self._lock:
            before = self._get(task_id)["status"]
            if self.ordering.advance_status(self._tasks, task_id, self._now()):
                self._persist()
                logger.info(
                    "Advanced task",
                    extra={"task_id": task_id, "from_status": before, "to_status": self._get(task_id)["status"]},
                )
            return clone(self._get(task_id))

    def clear_status(self, status: str) -> int:
        """Delete every task in a status (e.g. clear done). Returns the count removed."""
        with self._lock:
            removed = self.ordering.remove_status(self._tasks, self._check_status(status))
            if removed:
                self._persist()
                logger.info("Cleared status", extra={"status": status, "removed": removed})
            return removed

    # -------------------- views --------------------
    @property
    def filter(self) -> ViewQuery:
        return self._filter

    def set_filter(self, query: ViewQuery) -> ViewQuery:
        """Save a filter, normalized and validated like HTTP input. Returns the stored query."""
        normalized = make_query(
            search=query.search,
            priority=query.priority,
            status=query.status,
            due=query.due,
            tags=list(query.tags),
            sort=query.sort,
            config=self.config,
        )
        with self._lock:
            self._filter = normalized
        return normalized

    def get_view(self, query: Optional[ViewQuery] = None) -> Dict[str, List[TaskEntity]]:
        with self._lock:
            return project(self._tasks, query or self._filter, self.config, self._today())

    def get_counts(self, query: Optional[ViewQuery] = None) -> Dict[str, int]:
        with self._lock:
            return count(self._tasks, query or self._filter, self.config, self._today())

    def today(self) -> date:
        return self._today()

    def __len__(self) -> int:
        return len(self._tasks)

