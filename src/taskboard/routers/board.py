from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ..board import TaskBoard
from ..models import TaskEntity
from ..schemas import BoardOut, ClearOut, FilterIn, FilterOut, TaskCardOut, WorkflowOut
from ..views import ViewQuery, is_due_soon, is_overdue, make_query
from .tasks import get_board

router = APIRouter(
    prefix="/api/v1/board",
    tags=["board"],
)


def _filter_out(query: ViewQuery) -> FilterOut:
    return FilterOut(
        search=query.search,
        priority=query.priority,
        status=query.status,
        due=query.due,
        tags=list(query.tags),
        sort=query.sort,
    )


def _card(board: TaskBoard, task: TaskEntity) -> TaskCardOut:
    today = board.today()
    return TaskCardOut(
        **task,
        overdue=is_overdue(task, today, board.config),
        due_soon=is_due_soon(task, today, board.config),
    )


def _board_out(board: TaskBoard, query: ViewQuery) -> BoardOut:
    view = board.get_view(query)
    columns: Dict[str, List[TaskCardOut]] = {
        status: [_card(board, t) for t in tasks] for status, tasks in view.items()
    }
    return BoardOut(
        variant=board.config.name,
        columns=columns,
        counts=board.get_counts(query),
        filter=_filter_out(query),
    )


# PUBLIC_INTERFACE
@router.get(
    "/config",
    response_model=WorkflowOut,
    summary="Workflow Config",
    description="Statuses, transitions and priorities of this board.",
)
def get_config(board: TaskBoard = Depends(get_board)) -> WorkflowOut:
    cfg = board.config
    return WorkflowOut(
        name=cfg.name,
        statuses=list(cfg.statuses),
        labels={s: cfg.label(s) for s in cfg.statuses},
        transitions=dict(cfg.transitions),
        terminal_statuses=list(cfg.terminal_statuses),
        priorities=list(cfg.priorities),
        default_status=cfg.default_status,
        default_priority=cfg.default_priority,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=BoardOut,
    summary="Board View",
    description=(
        "Filtered and sorted columns with post-filter counts.\n\n"
        "Without query parameters the board's saved filter is used. Any of the parameters "
        "below replaces it for this request only:\n"
        "- q: search text over title, description and tags\n"
        "- priority, status: value to match or 'all'\n"
        "- due: all, none, overdue, today, week\n"
        "- tags: comma separated; every tag must be present\n"
        "- sort: manual, priority, due_date, created_at, title"
    ),
    responses={
        200: {"description": "Board retrieved successfully"},
        422: {"description": "Invalid filter parameters"},
    },
)
def get_board_view(
    q: Optional[str] = Query(None, description="Search text"),
    priority: Optional[str] = Query(None, description="Priority filter"),
    status: Optional[str] = Query(None, description="Global status filter"),
    due: Optional[str] = Query(None, description="Due date bucket"),
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    sort: Optional[str] = Query(None, description="Sort mode"),
    board: TaskBoard = Depends(get_board),
) -> BoardOut:
    params = (q, priority, status, due, tags, sort)
    if all(p is None for p in params):
        query = board.filter
    else:
        query = make_query(
            search=q, priority=priority, status=status, due=due, tags=tags, sort=sort, config=board.config
        )
    return _board_out(board, query)


# PUBLIC_INTERFACE
@router.put(
    "/filter",
    response_model=BoardOut,
    summary="Set Filter",
    description="Replace the board's saved filter and return the resulting view.",
    responses={
        200: {"description": "Filter saved"},
        422: {"description": "Invalid filter"},
    },
)
def put_filter(payload: FilterIn, board: TaskBoard = Depends(get_board)) -> BoardOut:
    query = make_query(
        search=payload.search,
        priority=payload.priority,
        status=payload.status,
        due=payload.due,
        tags=payload.tags,
        sort=payload.sort,
        config=board.config,
    )
    query = board.set_filter(query)
    return _board_out(board, query)


# PUBLIC_INTERFACE
@router.delete(
    "/statuses/{status}/tasks",
    response_model=ClearOut,
    summary="Clear Status",
    description="Delete every task in a status column, e.g. clearing finished work.",
    responses={
        200: {"description": "Column cleared"},
        422: {"description": "Unknown status"},
    },
)
def clear_status(status: str, board: TaskBoard = Depends(get_board)) -> ClearOut:
    return ClearOut(status=status, removed=board.clear_status(status))
