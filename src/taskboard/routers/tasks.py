from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status

from ..board import TaskBoard
from ..schemas import MoveRequest, TaskCreate, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def get_board(request: Request) -> TaskBoard:
    """
    Dependency returning the board owned by the running application.
    """
    return request.app.state.board


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task at the top of its status column and return it.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, board: TaskBoard = Depends(get_board)) -> TaskOut:
    """
    Create a new task.
    """
    return TaskOut(**board.create(payload))


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="All tasks, unfiltered, in column order and manual order within each column.",
)
def list_tasks(board: TaskBoard = Depends(get_board)) -> List[TaskOut]:
    return [TaskOut(**t) for t in board.list()]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, board: TaskBoard = Depends(get_board)) -> TaskOut:
    return TaskOut(**board.get(task_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description=(
        "Partially update fields of a task. Changing the status moves the task to the top "
        "of its new column; manual order is only changed through the move endpoint."
    ),
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
        422: {"description": "Validation error"},
    },
)
def patch_task(task_id: str, payload: TaskUpdate, board: TaskBoard = Depends(get_board)) -> TaskOut:
    return TaskOut(**board.update(task_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, board: TaskBoard = Depends(get_board)) -> None:
    board.delete(task_id)
    return None


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/move",
    response_model=TaskOut,
    summary="Move Task",
    description=(
        "Place a task at an index of a status column. The index refers to the full, "
        "unfiltered column and is clamped into range."
    ),
    responses={
        200: {"description": "Task moved"},
        404: {"description": "Task not found"},
        422: {"description": "Unknown status"},
    },
)
def move_task(task_id: str, payload: MoveRequest, board: TaskBoard = Depends(get_board)) -> TaskOut:
    return TaskOut(**board.move_to(task_id, payload.status, payload.index))


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/advance",
    response_model=TaskOut,
    summary="Advance Task",
    description="Move a task to the next status of the workflow. Tasks in a terminal status are returned unchanged.",
    responses={
        200: {"description": "Task advanced (or unchanged if terminal)"},
        404: {"description": "Task not found"},
    },
)
def advance_task(task_id: str, board: TaskBoard = Depends(get_board)) -> TaskOut:
    return TaskOut(**board.advance_status(task_id))
