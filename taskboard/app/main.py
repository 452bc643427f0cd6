import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard.app.config import get_settings
from taskboard.app.core.errors import TaskboardError
from taskboard.app.core.logging_config import configure_logging
from taskboard.app.db import get_database
from taskboard.app.routers import auth as auth_router
from taskboard.app.routers import tasks as tasks_router

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Taskboard",
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
)

settings = get_settings()
if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def on_startup() -> None:
    # Initialize database schema on boot (safe no-op if tables already exist)
    get_database().create_all()


@app.exception_handler(TaskboardError)
async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


app.include_router(auth_router.router)
app.include_router(tasks_router.router)


@app.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}
