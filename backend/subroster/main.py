import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from subroster.api.routes import absences, activity, assignments, availability, health, staffing
from subroster.core.config import get_settings
from subroster.core.exceptions import AppError
from subroster.core.logging_config import configure_logging
from subroster.core.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware
from subroster.db.bootstrap import create_missing_tables
from subroster.db.session import engine

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.auto_create_schema:
        create_missing_tables(engine)
    logger.info("%s started", settings.project_name)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(availability.router, prefix=settings.api_prefix, tags=["availability"])
app.include_router(absences.router, prefix=settings.api_prefix, tags=["absences"])
app.include_router(assignments.router, prefix=settings.api_prefix, tags=["assignments"])
app.include_router(staffing.router, prefix=settings.api_prefix, tags=["staffing"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
