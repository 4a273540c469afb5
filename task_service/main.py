from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from task_service import schemas
from task_service.config import Settings, get_settings
from task_service.logger import logger
from task_service.store import TaskStore

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorResponse},
}

# The body is parsed by get_task_create, so describe it for the schema by hand
TASK_CREATE_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": schemas.TaskCreate.model_json_schema()}},
    }
}

router = APIRouter()


def get_store(request: Request) -> TaskStore:
    """Store dependency"""
    return request.app.state.store


async def get_task_create(request: Request) -> schemas.TaskCreate:
    """Parse the create payload as JSON whatever the Content-Type says"""
    body = await request.body()
    try:
        return schemas.TaskCreate.model_validate_json(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": str(e), "input": {}}]
        ) from e
    except ValidationError as e:
        errors = [{**error, "loc": ("body",) + tuple(error["loc"])} for error in e.errors()]
        raise RequestValidationError(errors, body=body) from e


def validation_error_message(exc: RequestValidationError) -> str:
    """Reduce pydantic errors to the error category reported to clients"""
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        return "invalid JSON body"
    for error in errors:
        if tuple(error.get("loc", ()))[:2] == ("body", "title"):
            return "title is required"
    return "invalid request body"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Routing errors carry the status phrase ("Not Found"), ours are lowercase already
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail).lower()},
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = validation_error_message(exc)
    logger.debug(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message}
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal server error"}
    )


# Task endpoints
@router.get("/tasks", response_model=List[schemas.Task], tags=["Tasks"])
def read_tasks(store: TaskStore = Depends(get_store)):
    """Get all tasks"""
    return [schemas.Task.model_validate(task) for task in store.get_all()]


@router.post(
    "/tasks",
    response_model=schemas.Task,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    openapi_extra=TASK_CREATE_BODY,
    tags=["Tasks"]
)
def create_task(
        task: schemas.TaskCreate = Depends(get_task_create),
        store: TaskStore = Depends(get_store)
):
    """Create a new task"""
    created = store.create(task.title, task.description)
    return schemas.Task.model_validate(created)


@router.get(
    "/tasks/{task_id:path}",
    response_model=schemas.Task,
    responses=ERROR_RESPONSES,
    tags=["Tasks"]
)
def read_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Get a specific task by ID"""
    if not task_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    task, found = store.get(task_id)
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="task not found")
    return schemas.Task.model_validate(task)


@router.delete(
    "/tasks/{task_id:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
    tags=["Tasks"]
)
def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Delete a task"""
    if not task_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if not store.delete(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="task not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(store: Optional[TaskStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around the given store.

    Each call gets its own store unless one is passed in, so tests can run
    against isolated instances.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events"""
        logger.info(f"Starting {settings.app_name} {settings.version} ({settings.environment})")
        yield
        logger.info(f"Shutting down {settings.app_name}")

    # API docs are never served in production
    docs = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="In-memory task tracking API",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        redirect_slashes=False,
        lifespan=lifespan
    )
    app.state.store = store if store is not None else TaskStore()

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(router)
    return app


app = create_app()


def run():
    """Start the HTTP listener"""
    settings = get_settings()
    logger.info(f"Listening on {settings.host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
