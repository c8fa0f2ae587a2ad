from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, TypedDict, Union

from .errors import ValidationError
from .workflow import CLASSIC, WorkflowConfig

TagsInput = Union[str, Iterable[Any], None]


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Canonical in-memory task record.

    Fields:
    - id: Opaque unique string, immutable after creation
    - title: Non-empty trimmed title
    - description: Free text, may be empty
    - status: One of the workflow's statuses
    - priority: One of the workflow's priorities
    - tags: Lower-cased, trimmed, de-duplicated tags in display order
    - due_date: Optional calendar date
    - order: 0-based manual position within the task's status group
    - created_at: Creation timestamp (UTC)
    - updated_at: Last mutation timestamp (UTC), None until first mutation
    """

    id: str
    title: str
    description: str
    status: str
    priority: str
    tags: List[str]
    due_date: Optional[date]
    order: int
    created_at: datetime
    updated_at: Optional[datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def new_task_id() -> str:
    """Return a fresh opaque task id."""
    return uuid.uuid4().hex


# PUBLIC_INTERFACE
def clean_title(value: Any) -> str:
    """Trim a title and reject it when nothing is left."""
    if not isinstance(value, str):
        raise ValidationError("title is required", field="title")
    s = value.strip()
    if not s:
        raise ValidationError("title must not be empty", field="title")
    return s


# PUBLIC_INTERFACE
def normalize_tags(value: TagsInput) -> List[str]:
    """
    Normalize tags: trim, lower-case, drop empties and duplicates.

    Accepts a comma separated string or an iterable; non-string items are
    dropped. First occurrence wins, so display order is preserved.
    """
    if value is None:
        return []
    items: Iterable[Any] = value.split(",") if isinstance(value, str) else value
    seen: List[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        tag = item.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# PUBLIC_INTERFACE
def parse_due_date(value: Any) -> Optional[date]:
    """
    Parse an explicit due date input. Accepts None/'' (no due date), a date,
    a datetime (date part kept) or an ISO8601 date/datetime string.
    Raises ValidationError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            pass
        try:
            return _parse_datetime(s).date()
        except ValueError as e:
            raise ValidationError(
                "Invalid due_date format. Use an ISO8601 date such as '2025-01-31'.", field="due_date"
            ) from e
    raise ValidationError("Invalid type for due_date; expected date or ISO8601 string.", field="due_date")


def _parse_datetime(s: str) -> datetime:
    # Browser ISO strings end in 'Z'
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return _parse_datetime(value.strip())
        except ValueError:
            return None
    return None


def _coerce_due_date(value: Any) -> Optional[date]:
    try:
        return parse_due_date(value)
    except ValidationError:
        return None


def _coerce_order(value: Any, index: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return index
    if not math.isfinite(value) or value < 0:
        return index
    return int(math.floor(value))


def _coerce_id(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return new_task_id()


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


# PUBLIC_INTERFACE
def normalize(
    raw: Any,
    index: int = 0,
    config: WorkflowConfig = CLASSIC,
    now: Optional[datetime] = None,
) -> TaskEntity:
    """
    Decode an untrusted record into a TaskEntity. Never raises.

    Every field falls back to a documented default when missing or invalid:
    unknown status -> config.default_status, unknown priority ->
    config.default_priority, non-list tags -> [], unusable order -> index
    (the record's position in its input sequence), unparsable createdAt ->
    now. Both the on-disk camelCase keys and the in-memory snake_case keys
    are understood, so normalize(normalize(x)) == normalize(x).
    """
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    title = data.get("title")
    description = data.get("description")
    status = data.get("status")
    priority = data.get("priority")
    tags = data.get("tags")

    return {
        "id": _coerce_id(data.get("id")),
        "title": title.strip() if isinstance(title, str) else "",
        "description": description if isinstance(description, str) else "",
        "status": status if config.is_valid_status(status) else config.default_status,
        "priority": priority if config.is_valid_priority(priority) else config.default_priority,
        "tags": normalize_tags(tags) if isinstance(tags, list) else [],
        "due_date": _coerce_due_date(_pick(data, "due_date", "dueDate")),
        "order": _coerce_order(data.get("order"), index),
        "created_at": _coerce_datetime(_pick(data, "created_at", "createdAt")) or now or utcnow(),
        "updated_at": _coerce_datetime(_pick(data, "updated_at", "updatedAt")),
    }


# PUBLIC_INTERFACE
def to_record(task: TaskEntity) -> Dict[str, Any]:
    """Serialize a TaskEntity into its on-disk JSON shape."""
    record: Dict[str, Any] = {
        "id": task["id"],
        "title": task["title"],
        "description": task["description"],
        "status": task["status"],
        "priority": task["priority"],
        "tags": list(task["tags"]),
        "dueDate": task["due_date"].isoformat() if task["due_date"] else "",
        "order": task["order"],
        "createdAt": task["created_at"].isoformat(),
    }
    if task["updated_at"] is not None:
        record["updatedAt"] = task["updated_at"].isoformat()
    return record


def clone(task: TaskEntity) -> TaskEntity:
    """Copy a task so callers cannot mutate the canonical record."""
    copied = task.copy()
    copied["tags"] = list(task["tags"])
    return copied
