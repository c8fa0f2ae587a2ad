"""
Task board package.

The engine (models, migrations, persistence, ordering, views, board) has no
web dependencies; the FastAPI application lives in src.taskboard.main and is
not imported here, so importing the engine has no side effects.
"""

from .board import TaskBoard  # noqa: F401
from .errors import (  # noqa: F401
    CorruptStateError,
    NotFoundError,
    StoreUnavailableError,
    TaskBoardError,
    ValidationError,
)
from .workflow import CLASSIC, REVIEW, URGENT, WorkflowConfig, get_workflow  # noqa: F401
