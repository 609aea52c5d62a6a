# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import auth, employees
from .attachments import AttachmentManager
from .config import Settings, get_settings
from .database import build_engine, build_session_factory, create_db_and_tables
from .exceptions import ServiceError, ValidationFailed
from .validation import errors_from_pydantic

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating database and tables...")
    await create_db_and_tables(app.state.engine)
    logger.info(f"Database ready; serving uploads from {app.state.attachments.upload_dir}")
    yield
    await app.state.engine.dispose()
    logger.info("Database engine disposed.")


# --- Error handlers ---

async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = errors_from_pydantic(exc.errors())
    message = errors[0]["message"] if len(errors) == 1 else ValidationFailed.message
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationFailed(errors, message=message).to_dict(),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": False, "message": "Database unavailable"},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": False, "message": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Employee Management API",
        description="Employee records with profile pictures, filtered search and token login.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.attachments = AttachmentManager(
        settings.upload_dir,
        url_prefix=settings.upload_url_prefix,
        max_bytes=settings.max_upload_bytes,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(auth.router)
    app.include_router(employees.router)
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=app.state.attachments.upload_dir),
        name="uploads",
    )

    @app.get("/")
    def read_root():
        return {"ok": True, "message": "Welcome to the Employee Management API."}

    @app.get("/api/health/db")
    async def health_db():
        async with app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
        return {"db": "ok"}

    return app
