"""Read-only projections of the task collection.

Views filter and sort copies of the canonical records; they never write
``order`` or ``status``. A view is for display only: indices for
``move_to`` always refer to the full, unfiltered status group.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import ValidationError
from .models import TagsInput, TaskEntity, clone, normalize_tags
from .workflow import WorkflowConfig

ALL = "all"
DUE_BUCKETS = ("all", "none", "overdue", "today", "week")
SORT_MODES = ("manual", "priority", "due_date", "created_at", "title")
DUE_SOON_DAYS = 2


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ViewQuery:
    """
    Filter and sort configuration for a board view.

    'all' (or an empty value) disables a clause. Active clauses are
    AND-combined.
    """

    search: str = ""
    priority: str = ALL
    status: str = ALL
    due: str = ALL  # allowed: all, none, overdue, today, week
    tags: Tuple[str, ...] = ()
    sort: str = "manual"  # allowed: manual, priority, due_date, created_at, title


def is_overdue(task: TaskEntity, today: date, config: WorkflowConfig) -> bool:
    due = task["due_date"]
    return due is not None and due < today and not config.is_terminal(task["status"])


def is_due_soon(task: TaskEntity, today: date, config: WorkflowConfig) -> bool:
    """Due today or within the next two days, and not finished."""
    due = task["due_date"]
    if due is None or config.is_terminal(task["status"]):
        return False
    return 0 <= (due - today).days <= DUE_SOON_DAYS


def _matches_due(task: TaskEntity, bucket: str, today: date, config: WorkflowConfig) -> bool:
    due = task["due_date"]
    if bucket == "none":
        return due is None
    if bucket == "overdue":
        return is_overdue(task, today, config)
    if bucket == "today":
        return due == today
    if bucket == "week":
        return due is not None and today <= due <= today + timedelta(days=7)
    return True


# PUBLIC_INTERFACE
def matches(task: TaskEntity, query: ViewQuery, config: WorkflowConfig, today: date) -> bool:
    """Return True if the task passes every active clause of the query."""
    if query.status not in (ALL, "") and task["status"] != query.status:
        return False
    if query.priority not in (ALL, "") and task["priority"] != query.priority:
        return False
    if query.due not in (ALL, "") and not _matches_due(task, query.due, today, config):
        return False
    if query.search:
        hay = " ".join([task["title"], task["description"], " ".join(task["tags"])]).lower()
        if query.search.strip().lower() not in hay:
            return False
    if query.tags:
        tag_set = set(task["tags"])
        if any(tag not in tag_set for tag in query.tags):
            return False
    return True


def _title_key(title: str) -> str:
    # Accents and case only break ties: "Éclair" sorts with "eclair".
    decomposed = unicodedata.normalize("NFKD", title.casefold())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def sort_key(mode: str, config: WorkflowConfig) -> Callable[[TaskEntity], Any]:
    """Key function giving a total order for a sort mode; unknown modes sort manually."""
    if mode == "priority":
        return lambda t: (-config.priority_rank(t["priority"]), t["created_at"], t["id"])
    if mode == "due_date":
        return lambda t: (t["due_date"] is None, t["due_date"] or date.min, t["created_at"], t["id"])
    if mode == "created_at":
        return lambda t: (t["created_at"], t["id"])
    if mode == "title":
        return lambda t: (_title_key(t["title"]), t["title"].casefold(), t["title"], t["created_at"], t["id"])
    return lambda t: (t["order"], t["created_at"], t["id"])


# PUBLIC_INTERFACE
def project(
    tasks: Iterable[TaskEntity],
    query: ViewQuery,
    config: WorkflowConfig,
    today: date,
) -> Dict[str, List[TaskEntity]]:
    """
    Group filtered copies of the tasks by status, in configured column order,
    each column sorted by the query's sort mode.
    """
    columns: Dict[str, List[TaskEntity]] = {s: [] for s in config.statuses}
    for task in tasks:
        if task["status"] in columns and matches(task, query, config, today):
            columns[task["status"]].append(clone(task))
    key = sort_key(query.sort, config)
    for status in columns:
        columns[status].sort(key=key)
    return columns


# PUBLIC_INTERFACE
def count(
    tasks: Iterable[TaskEntity],
    query: ViewQuery,
    config: WorkflowConfig,
    today: date,
) -> Dict[str, int]:
    """Post-filter size of every status column."""
    counts: Dict[str, int] = {s: 0 for s in config.statuses}
    for task in tasks:
        if task["status"] in counts and matches(task, query, config, today):
            counts[task["status"]] += 1
    return counts


def make_query(
    search: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    due: Optional[str] = None,
    tags: TagsInput = None,
    sort: Optional[str] = None,
    config: Optional[WorkflowConfig] = None,
) -> ViewQuery:
    """
    Build a ViewQuery from loose inputs, normalizing search and tags.

    Raises ValidationError for an unknown due bucket or sort mode, and, when
    a config is given, for a status or priority it does not define.
    """
    due = due or ALL
    sort = sort or "manual"
    status = status or ALL
    priority = priority or ALL
    if due not in DUE_BUCKETS:
        raise ValidationError(f"unknown due filter: {due!r}", field="due")
    if sort not in SORT_MODES:
        raise ValidationError(f"unknown sort mode: {sort!r}", field="sort")
    if config is not None:
        if status != ALL and not config.is_valid_status(status):
            raise ValidationError(f"unknown status: {status!r}", field="status")
        if priority != ALL and not config.is_valid_priority(priority):
            raise ValidationError(f"unknown priority: {priority!r}", field="priority")

    return ViewQuery(
        search=(search or "").strip().lower(),
        priority=priority,
        status=status,
        due=due,
        tags=tuple(normalize_tags(tags)),
        sort=sort,
    )
