from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .board import TaskBoard
from .errors import NotFoundError, ValidationError
from .routers import board as board_router
from .routers import tasks as tasks_router
from .settings import Settings, get_settings
from .stores import get_store
from .workflow import get_workflow

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "tasks", "description": "Create, edit, move, advance and delete tasks."},
    {"name": "board", "description": "Filtered and sorted board views, filter state and column maintenance."},
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, board: Optional[TaskBoard] = None) -> FastAPI:
    """
    Build the API application around one task board.

    When no board is given, one is constructed from settings: the configured
    store backend and workflow variant. The board is loaded (and migrated)
    once here.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="Task Board",
        description="Personal task board with manual ordering, filtered views and schema migration.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    if board is None:
        board = TaskBoard(get_store(settings), config=get_workflow(settings.workflow_variant))
    app.state.board = board
    app.state.settings = settings
    logger.info(
        "Task board ready",
        extra={"store": settings.store_backend, "variant": board.config.name, "tasks": len(board)},
    )

    # Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(ValidationError)
    async def board_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": exc.message,
                "detail": [{"loc": [exc.field] if exc.field else [], "msg": exc.message}],
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Task not found"})

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health, the store backend and whether
            the last store access failed.
        """
        return {
            "message": "Healthy",
            "backend": settings.store_backend,
            "variant": board.config.name,
            "store_error": str(board.last_store_error) if board.last_store_error else None,
        }

    app.include_router(tasks_router.router)
    app.include_router(board_router.router)
    return app


app = create_app()
