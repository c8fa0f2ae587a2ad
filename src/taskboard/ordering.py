"""Manual ordering of tasks within their status groups.

Every task carries a 0-based ``order`` that is only meaningful among tasks
sharing its status. After each operation here returns, every status group
holds the dense sequence 0..n-1. This module is the only writer of
``status`` and ``order``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from .errors import NotFoundError, ValidationError
from .models import TaskEntity
from .workflow import WorkflowConfig

logger = logging.getLogger(__name__)


def find_index(tasks: List[TaskEntity], task_id: str) -> int:
    for i, task in enumerate(tasks):
        if task["id"] == task_id:
            return i
    raise NotFoundError(task_id)


# PUBLIC_INTERFACE
class OrderingEngine:
    """Resolves inserts, moves, transitions and removals on a caller-owned task list."""

    def __init__(self, config: WorkflowConfig) -> None:
        self.config = config

    def _require_status(self, status: str) -> None:
        if not self.config.is_valid_status(status):
            raise ValidationError(f"unknown status: {status!r}", field="status")

    def group(self, tasks: List[TaskEntity], status: str) -> List[TaskEntity]:
        """Tasks of one status by manual order; ties keep collection order."""
        return sorted((t for t in tasks if t["status"] == status), key=lambda t: t["order"])

    def insert_at_head(self, tasks: List[TaskEntity], task: TaskEntity, status: str) -> None:
        """Place a new task first in its status group and append it to the collection."""
        self._require_status(status)
        if any(t["id"] == task["id"] for t in tasks):
            raise ValidationError(f"duplicate task id: {task['id']!r}", field="id")
        for t in tasks:
            if t["status"] == status:
                t["order"] += 1
        task["status"] = status
        task["order"] = 0
        tasks.append(task)

    def reindex(self, tasks: List[TaskEntity], status: str) -> None:
        for i, task in enumerate(self.group(tasks, status)):
            task["order"] = i

    def reindex_all(self, tasks: List[TaskEntity]) -> None:
        statuses = list(self.config.statuses)
        for task in tasks:
            if task["status"] not in statuses:
                statuses.append(task["status"])
        for status in statuses:
            self.reindex(tasks, status)

    def move_to(
        self,
        tasks: List[TaskEntity],
        task_id: str,
        new_status: str,
        target_index: int,
        now: datetime,
    ) -> TaskEntity:
        """
        Move a task to position target_index of new_status.

        target_index is interpreted against the full, unfiltered destination
        group (the mover excluded) and clamped into [0, len(group)], so every
        integer is accepted.
        """
        self._require_status(new_status)
        task = tasks[find_index(tasks, task_id)]
        old_status = task["status"]

        destination = [t for t in self.group(tasks, new_status) if t["id"] != task_id]
        index = max(0, min(int(target_index), len(destination)))
        destination.insert(index, task)

        task["status"] = new_status
        task["updated_at"] = now
        for i, t in enumerate(destination):
            t["order"] = i
        if old_status != new_status:
            self.reindex(tasks, old_status)

        logger.debug(
            "Moved task",
            extra={"task_id": task_id, "from_status": old_status, "to_status": new_status, "index": index},
        )
        return task

    def advance_status(self, tasks: List[TaskEntity], task_id: str, now: datetime) -> bool:
        """
        Follow the workflow's adjacency table one step.

        Returns False without touching the task when its status has no next
        status (terminal).
        """
        task = tasks[find_index(tasks, task_id)]
        target = self.config.next_status(task["status"])
        if target is None or target == task["status"]:
            return False
        task["status"] = target
        task["updated_at"] = now
        self.reindex_all(tasks)
        return True

    def delete(self, tasks: List[TaskEntity], task_id: str) -> TaskEntity:
        """Remove a task and close the gap in its former group only."""
        task = tasks.pop(find_index(tasks, task_id))
        self.reindex(tasks, task["status"])
        return task

    def remove_status(self, tasks: List[TaskEntity], status: str) -> int:
        """Remove every task in status. Returns how many were removed."""
        self._require_status(status)
        kept = [t for t in tasks if t["status"] != status]
        removed = len(tasks) - len(kept)
        if removed:
            tasks[:] = kept
            self.reindex_all(tasks)
        return removed
