# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
SECONS API
==========
Backend for the EdBlazon event-management platform: users and access-code
invitations, announcements, meetings, notifications, the event catalogue,
sports teams with fixtures, live match scoring and a points leaderboard,
domain finance, chat threads and a GA audit trail.

Port: 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from secons.controllers import (
    announcement_controller, audit_controller, auth_controller, chat_controller,
    dashboard_controller, event_controller, finance_controller, invitation_controller,
    match_controller, meeting_controller, notification_controller, system_controller,
    team_controller, user_controller,
)
from secons.core.config import settings
from secons.core.database import engine
from secons.core.logging import get_logger
from secons.core.schema import create_schema
from secons.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.CREATE_SCHEMA_ON_STARTUP:
        try:
            create_schema(engine)
            logger.info("Database schema ensured")
        except Exception:
            logger.exception("Could not create schema, DB may not be ready yet")
    logger.info("%s v%s starting", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    engine.dispose()
    logger.info("Shutting down, connection pool disposed")


app = FastAPI(
    title="SECONS API",
    description="Event-management backend: people, broadcasts, meetings, points and budgets.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


app.include_router(system_controller.router)
app.include_router(auth_controller.router)
app.include_router(user_controller.router)
app.include_router(announcement_controller.router)
app.include_router(meeting_controller.router)
app.include_router(notification_controller.router)
app.include_router(invitation_controller.router)
app.include_router(team_controller.router)
app.include_router(finance_controller.router)
app.include_router(dashboard_controller.router)
app.include_router(event_controller.router)
app.include_router(match_controller.router)
app.include_router(chat_controller.router)
app.include_router(audit_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
