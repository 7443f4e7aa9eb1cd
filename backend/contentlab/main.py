from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .db import Database
from .routes_artifacts import router as artifacts_router
from .routes_ops import router as ops_router
from .routes_pipeline import router as pipeline_router
from .routes_projects import router as projects_router
from .routes_youtube import router as youtube_router
from .settings import get_settings

logger = logging.getLogger("contentlab")

app = FastAPI(title="contentlab")
settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Pipeline endpoints answer malformed bodies with their 400 envelope."""
    if not request.url.path.startswith("/api/pipeline"):
        return await request_validation_exception_handler(request, exc)
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'invalid request')}" if field else first.get("msg", "invalid request")
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.get("/ping")
async def ping():
    return {"status": "ok"}


app.include_router(projects_router)
app.include_router(pipeline_router)
app.include_router(artifacts_router)
app.include_router(youtube_router)
app.include_router(ops_router)


@app.on_event("startup")
async def startup_event():
    """Open the database and start the scheduler."""
    from contentlab.services.scheduler import scheduler_service

    if getattr(app.state, "database", None) is None:
        app.state.database = Database(settings.async_database_url)
    scheduler_service.configure(app.state.database)
    scheduler_service.start()
    logger.info("Scheduler started on app startup")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the scheduler and release the connection pool."""
    from contentlab.services.scheduler import scheduler_service

    scheduler_service.stop()
    database = getattr(app.state, "database", None)
    if database is not None:
        await database.dispose()
        app.state.database = None
    logger.info("Scheduler stopped on app shutdown")
