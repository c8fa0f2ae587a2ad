from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import clean_title, normalize_tags, parse_due_date


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write release notes",
                "description": "Summarize changes since 1.4",
                "status": "backlog",
                "priority": "high",
                "due_date": "2025-02-01",
                "tags": ["docs", "release"],
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: str = Field(default="", description="Optional detailed description")
    status: Optional[str] = Field(default=None, description="Initial status; defaults to the workflow's first status")
    priority: Optional[str] = Field(default=None, description="Priority; defaults to the workflow's default priority")
    due_date: Optional[date] = Field(default=None, description="Optional due date (ISO8601 date)")
    tags: List[str] = Field(default_factory=list, description="Tags as a list or a comma separated string")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """
        Strip whitespace and reject empty titles.
        """
        return clean_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due(cls, v: Any) -> Optional[date]:
        return parse_due_date(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> List[str]:
        return normalize_tags(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided fields will be updated.
    Manual order is not editable here; use the move endpoint.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write and publish release notes",
                "priority": "medium",
                "due_date": None,
                "tags": "docs, release",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Detailed description")
    status: Optional[str] = Field(default=None, description="New status; the task moves to the head of that column")
    priority: Optional[str] = Field(default=None, description="New priority")
    due_date: Optional[date] = Field(default=None, description="Due date; explicit null clears it")
    tags: Optional[List[str]] = Field(default=None, description="Replacement tags")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> Optional[str]:
        """
        If title is provided, strip whitespace and reject empty titles.
        """
        if v is None:
            return v
        return clean_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due(cls, v: Any) -> Optional[date]:
        return parse_due_date(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return v
        return normalize_tags(v)


# PUBLIC_INTERFACE
class MoveRequest(BaseModel):
    """
    Target of a manual reposition: a status column and an index into the
    full (unfiltered) column. Out-of-range indices are clamped.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"status": "in-progress", "index": 0}})

    status: str = Field(..., description="Destination status")
    index: int = Field(default=0, description="Destination position within the unfiltered column")


# PUBLIC_INTERFACE
class FilterIn(BaseModel):
    """
    Board filter and sort configuration. Omitted fields are inactive.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"search": "release", "priority": "all", "due": "week", "tags": ["docs"], "sort": "priority"}
        }
    )

    search: Optional[str] = Field(default=None, description="Case-insensitive text over title, description and tags")
    priority: Optional[str] = Field(default=None, description="Priority to match, or 'all'")
    status: Optional[str] = Field(default=None, description="Status to match, or 'all'")
    due: Optional[str] = Field(default=None, description="One of all, none, overdue, today, week")
    tags: List[str] = Field(default_factory=list, description="Every listed tag must be present")
    sort: Optional[str] = Field(default=None, description="One of manual, priority, due_date, created_at, title")

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> List[str]:
        return normalize_tags(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: str = Field(default="", description="Detailed description")
    status: str = Field(..., description="Current status")
    priority: str = Field(..., description="Priority")
    tags: List[str] = Field(default_factory=list, description="Normalized tags")
    due_date: Optional[date] = Field(default=None, description="Due date")
    order: int = Field(..., description="Manual position within the status column (0-based)")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")


class TaskCardOut(TaskOut):
    """
    Task as shown on the board, with due-date badges.
    """

    overdue: bool = Field(default=False, description="Due date passed and task not finished")
    due_soon: bool = Field(default=False, description="Due within two days and task not finished")


class FilterOut(BaseModel):
    search: str
    priority: str
    status: str
    due: str
    tags: List[str]
    sort: str


# PUBLIC_INTERFACE
class BoardOut(BaseModel):
    """
    Filtered and sorted board projection with per-column counts.
    """

    variant: str = Field(..., description="Workflow variant of the board")
    columns: Dict[str, List[TaskCardOut]] = Field(..., description="Tasks per status, in column order")
    counts: Dict[str, int] = Field(..., description="Post-filter task count per status")
    filter: FilterOut = Field(..., description="Filter the projection was computed with")


class WorkflowOut(BaseModel):
    name: str
    statuses: List[str]
    labels: Dict[str, str]
    transitions: Dict[str, str]
    terminal_statuses: List[str]
    priorities: List[str]
    default_status: str
    default_priority: str


class ClearOut(BaseModel):
    status: str
    removed: int
