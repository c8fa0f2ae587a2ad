from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class WorkflowConfig:
    """
    Enumerated workflow statuses and priorities a board is parameterized by.

    Fields:
    - name: variant name ('classic', 'urgent', 'review')
    - statuses: status keys in column order; the first one is the initial status
    - transitions: adjacency table used by advance_status (status -> next status)
    - terminal_statuses: statuses considered finished (no overdue, no advance)
    - priorities: priority keys ordered from lowest to highest rank
    - default_status / default_priority: fallbacks used by normalization
    - labels: user-facing names for statuses
    """

    name: str
    statuses: Tuple[str, ...]
    transitions: Mapping[str, str]
    terminal_statuses: Tuple[str, ...]
    priorities: Tuple[str, ...]
    default_status: str
    default_priority: str
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.statuses:
            raise ValueError("workflow needs at least one status")
        if self.default_status not in self.statuses:
            raise ValueError(f"default status {self.default_status!r} is not a configured status")
        if self.default_priority not in self.priorities:
            raise ValueError(f"default priority {self.default_priority!r} is not a configured priority")
        for src, dst in self.transitions.items():
            if src not in self.statuses or dst not in self.statuses:
                raise ValueError(f"transition {src!r} -> {dst!r} references an unknown status")

    def is_valid_status(self, status: object) -> bool:
        return isinstance(status, str) and status in self.statuses

    def is_valid_priority(self, priority: object) -> bool:
        return isinstance(priority, str) and priority in self.priorities

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal_statuses

    def priority_rank(self, priority: str) -> int:
        """Rank of a priority (0 = lowest). Unknown priorities rank below every known one."""
        try:
            return self.priorities.index(priority)
        except ValueError:
            return -1

    def next_status(self, status: str) -> Optional[str]:
        return self.transitions.get(status)

    def label(self, status: str) -> str:
        return self.labels.get(status, status)

    @property
    def initial_status(self) -> str:
        return self.statuses[0]

    @property
    def terminal_status(self) -> str:
        """The status legacy 'completed' records map to."""
        return self.terminal_statuses[0] if self.terminal_statuses else self.statuses[-1]


_LABELS: Dict[str, str] = {
    "backlog": "Backlog",
    "in-progress": "In Progress",
    "review": "Review",
    "blocked": "Blocked",
    "done": "Done",
}

CLASSIC = WorkflowConfig(
    name="classic",
    statuses=("backlog", "in-progress", "blocked", "done"),
    transitions={
        "backlog": "in-progress",
        "in-progress": "done",
        "blocked": "in-progress",
    },
    terminal_statuses=("done",),
    priorities=("low", "medium", "high"),
    default_status="backlog",
    default_priority="medium",
    labels=_LABELS,
)

URGENT = WorkflowConfig(
    name="urgent",
    statuses=CLASSIC.statuses,
    transitions=CLASSIC.transitions,
    terminal_statuses=("done",),
    priorities=("low", "medium", "high", "urgent"),
    default_status="backlog",
    default_priority="medium",
    labels=_LABELS,
)

REVIEW = WorkflowConfig(
    name="review",
    statuses=("backlog", "in-progress", "review", "blocked", "done"),
    transitions={
        "backlog": "in-progress",
        "in-progress": "review",
        "review": "done",
        "blocked": "in-progress",
    },
    terminal_statuses=("done",),
    priorities=("low", "medium", "high"),
    default_status="backlog",
    default_priority="medium",
    labels=_LABELS,
)

WORKFLOWS: Dict[str, WorkflowConfig] = {w.name: w for w in (CLASSIC, URGENT, REVIEW)}


# PUBLIC_INTERFACE
def get_workflow(name: Optional[str]) -> WorkflowConfig:
    """Return the named workflow variant, falling back to 'classic' for unknown names."""
    key = (name or "").strip().lower()
    workflow = WORKFLOWS.get(key)
    if workflow is None:
        logger.warning("Unknown workflow variant, using classic", extra={"variant": name})
        return CLASSIC
    return workflow
